"""
                        Services Module

Business logic behind the API. Services take the database session
they work on at construction time.

Services:
    - restaurants: accounts, credentials and menus
    - orders: order ledger and bill finalization
    - pricing: monetary rules (line totals, GST, grand total)
    - invoice: PDF invoice layout and rendering
    - ledger: Excel ledger of generated bills
"""

from app.services.orders import OrderService
from app.services.restaurants import RestaurantService

__all__ = ["OrderService", "RestaurantService"]
