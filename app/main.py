"""
FastAPI Application Entry Point

InstaBite Backend - restaurant accounts, menus, orders and tax invoices.

Endpoints (under API_PREFIX, default /api):
    - POST /restaurant/register, /restaurant/login: Restaurant accounts
    - GET /restaurant/{id}, PUT /restaurant/{id}/payment-info
    - POST|GET /restaurant/{id}/menu: Menu management
    - GET /restaurants: Catalog browsing
    - POST /orders, GET /orders/{id}, PUT /orders/{id}/status
    - GET /restaurant/{id}/orders: Orders for a restaurant
    - GET /orders/{id}/bill: Tax invoice PDF
    - GET /health: System health check

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from typing import Any
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
import redis

from app.core.config import get_settings, setup_logging
from app.core.exceptions import AppError, InvalidCredential, NotFound
from app.database import get_db, init_db, engine, ping_db
from app.schemas import (
    ErrorResponse,
    HealthResponse,
    MenuItemCreate,
    MenuResponse,
    OrderCreate,
    OrderListResponse,
    OrderOut,
    OrderResponse,
    OrderStatusUpdate,
    PaymentInfoResponse,
    PaymentInfoUpdate,
    RestaurantAuthResponse,
    RestaurantDetailResponse,
    RestaurantListResponse,
    RestaurantLogin,
    RestaurantRegister,
)
from app.services.invoice import invoice_filename, render_invoice
from app.services.orders import OrderService
from app.services.restaurants import RestaurantService
from app.tasks import queue_ledger_export

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    if not settings.is_development:
        problems = settings.validate_production_config()
        if problems:
            logger.warning(f"Unsafe {settings.env_mode.value} config: {problems}")

    logger.info(f"Health Check: {settings.api_prefix}/health")
    logger.info("Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food-ordering backend: restaurant accounts and menus, customer orders "
        "and GST tax invoices rendered as PDF."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix=settings.api_prefix)

ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

def get_restaurant_service(db: AsyncSession = Depends(get_db)) -> RestaurantService:
    return RestaurantService(db)


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db, settings)


def with_bill_url(request: Request, order: OrderOut) -> OrderOut:
    """Attach the absolute URL of the order's invoice."""
    url = str(request.url_for("get_order_bill", order_id=order.id))
    return order.model_copy(update={"bill_url": url})


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """API root with navigation links."""
    prefix = settings.api_prefix
    return {
        "success": True,
        "message": f"Welcome to {settings.app_name}!",
        "version": settings.app_version,
        "documentation": "/docs",
        "endpoints": {
            "health": f"{prefix}/health",
            "restaurant": {
                "register": f"{prefix}/restaurant/register [POST]",
                "login": f"{prefix}/restaurant/login [POST]",
                "get": f"{prefix}/restaurant/:id [GET]",
            },
            "orders": {
                "create": f"{prefix}/orders [POST]",
                "get": f"{prefix}/orders/:id [GET]",
                "bill": f"{prefix}/orders/:id/bill [GET]",
            },
        },
    }


def _ping_redis() -> None:
    client = redis.Redis.from_url(
        settings.redis_url, socket_timeout=2, socket_connect_timeout=2
    )
    try:
        client.ping()
    finally:
        client.close()


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Liveness probe; also reports database and Redis reachability."""

    db_status = "healthy"
    try:
        await ping_db(db)
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    redis_status = "healthy"
    try:
        await run_in_threadpool(_ping_redis)
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.warning(f"Redis health check failed: {e}")

    overall = "operational" if db_status == redis_status == "healthy" else "degraded"

    return HealthResponse(
        message=f"{settings.app_name} is running!",
        status=overall,
        database=db_status,
        redis=redis_status,
        environment=settings.env_mode.value,
        timestamp=datetime.now(),
    )


# =============================================================================
# RESTAURANT ENDPOINTS
# =============================================================================

@router.post(
    "/restaurant/register",
    response_model=RestaurantAuthResponse,
    status_code=201,
    responses=ERRORS,
    tags=["Restaurants"],
)
async def register_restaurant(
    payload: RestaurantRegister,
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantAuthResponse:
    """Create a restaurant account."""
    summary = await service.register(payload)
    return RestaurantAuthResponse(
        message="Restaurant registered successfully!",
        restaurant=summary,
    )


@router.post(
    "/restaurant/login",
    response_model=RestaurantAuthResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Restaurants"],
)
async def login_restaurant(
    payload: RestaurantLogin,
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantAuthResponse:
    """Verify credentials. Stateless: callers keep the returned id."""
    try:
        summary = await service.login(payload.email, payload.password)
    except NotFound as e:
        raise InvalidCredential(e.message) from e
    return RestaurantAuthResponse(message="Login successful!", restaurant=summary)


@router.get(
    "/restaurant/{restaurant_id}",
    response_model=RestaurantDetailResponse,
    responses=ERRORS,
    tags=["Restaurants"],
)
async def get_restaurant(
    restaurant_id: str,
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantDetailResponse:
    return RestaurantDetailResponse(restaurant=await service.get(restaurant_id))


@router.put(
    "/restaurant/{restaurant_id}/payment-info",
    response_model=PaymentInfoResponse,
    responses=ERRORS,
    tags=["Restaurants"],
)
async def update_payment_info(
    restaurant_id: str,
    payload: PaymentInfoUpdate,
    service: RestaurantService = Depends(get_restaurant_service),
) -> PaymentInfoResponse:
    info = await service.update_payment_info(restaurant_id, payload)
    return PaymentInfoResponse(
        message="Payment information updated successfully!",
        restaurant=info,
    )


@router.post(
    "/restaurant/{restaurant_id}/menu",
    response_model=MenuResponse,
    responses=ERRORS,
    tags=["Menu"],
)
async def add_menu_item(
    restaurant_id: str,
    payload: MenuItemCreate,
    service: RestaurantService = Depends(get_restaurant_service),
) -> MenuResponse:
    menu = await service.add_menu_item(restaurant_id, payload)
    return MenuResponse(message="Menu item added successfully!", menu=menu)


@router.get(
    "/restaurant/{restaurant_id}/menu",
    response_model=MenuResponse,
    responses=ERRORS,
    tags=["Menu"],
)
async def list_menu(
    restaurant_id: str,
    service: RestaurantService = Depends(get_restaurant_service),
) -> MenuResponse:
    return MenuResponse(menu=await service.list_menu(restaurant_id))


@router.get(
    "/restaurants",
    response_model=RestaurantListResponse,
    tags=["Restaurants"],
)
async def list_restaurants(
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantListResponse:
    """All restaurants with their menus, for customer browsing."""
    return RestaurantListResponse(restaurants=await service.list_all())


@router.get(
    "/restaurant/{restaurant_id}/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
)
async def list_restaurant_orders(
    restaurant_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Orders placed with a restaurant, newest first."""
    return OrderListResponse(orders=await service.list_for_restaurant(restaurant_id))


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=201,
    responses=ERRORS,
    tags=["Orders"],
    summary="Create Order",
)
async def create_order(
    payload: OrderCreate,
    request: Request,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """
    Create a new order.

    Line totals and the order total are computed server-side; GST and
    grand total are filled in when the bill is first generated.
    """
    logger.info(f"Creating order for: {payload.customer_name}")
    order = await service.create(payload)
    return OrderResponse(
        message="Order placed successfully!",
        order=with_bill_url(request, order),
    )


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses=ERRORS,
    tags=["Orders"],
)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.update_status(order_id, payload.status)
    return OrderResponse(message="Order status updated successfully!", order=order)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses=ERRORS,
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    request: Request,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.get(order_id)
    return OrderResponse(order=with_bill_url(request, order))


@router.get(
    "/orders/{order_id}/bill",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Download Tax Invoice",
)
async def get_order_bill(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> Response:
    """
    Render the tax invoice PDF.

    Generating the bill stamps gstAmount, grandTotal and billGenerated on
    the order. Repeated calls recompute the same values.
    """
    order, document = await service.generate_bill(order_id, render_invoice)

    if settings.ledger_export_enabled:
        queue_ledger_export(order)

    return Response(
        content=document,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename={invoice_filename(order)}"
        },
    )


app.include_router(router)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Domain errors carry their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or missing request fields -> 400."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())[1:])
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "; ".join(problems) or "Invalid request"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Unmatched routes and framework-level HTTP errors."""
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "message": f"Route {request.url.path} does not exist",
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "message": str(exc) or exc.__class__.__name__,
        },
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
