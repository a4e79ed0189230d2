# storefront/api/__init__.py
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from storefront.api.responses import register_error_handlers
from storefront.api.routers import carts, health, orders
from storefront.data.database import Database
from storefront.services.product_client import ProductClient, ProductDirectory
from storefront.utils.logging import get_logger
from storefront.utils.settings import API_PREFIX, AUTO_CREATE_TABLES, DATABASE_URL

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Storefront starting up...")
    if AUTO_CREATE_TABLES:
        await app.state.database.create_all()
    yield
    logger.info("Storefront shutting down...")
    close = getattr(app.state.products, "close", None)
    if close is not None:
        await close()
    await app.state.database.dispose()


def create_app(
    database: Database | None = None,
    products: ProductDirectory | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Storefront Cart & Order Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    #collaborators live on app.state, owned and closed by the lifespan
    app.state.database = database or Database(DATABASE_URL)
    app.state.products = products or ProductClient()

    register_error_handlers(app)

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(carts.router)
    api.include_router(orders.router)

    app.include_router(health.router)
    app.include_router(api)
    return app
