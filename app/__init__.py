"""
                InstaBite Backend

Food-ordering API: restaurant accounts and menus, customer orders
and GST tax invoices rendered as PDF.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
