# storefront/api/__init__.py
from typing import Optional

from fastapi import FastAPI

from storefront.api.errors import register_exception_handlers
from storefront.api.routers import carts, coupons, health, orders, products
from storefront.data.database import init_db, make_engine, make_session_factory
from storefront.repos.unit_of_work import SqlAlchemyUnitOfWork, UnitOfWork
from storefront.services.notification_service import NotificationService, make_celery
from storefront.utils.logging import configure_logging, get_logger
from storefront.utils.settings import Settings

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    uow: Optional[UnitOfWork] = None,
    notifier: Optional[NotificationService] = None,
) -> FastAPI:
    """
    Builds the application. Without an explicit unit of work the database
    from `settings` is used, and its tables are created on the way.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if uow is None:
        engine = make_engine(settings)
        init_db(engine, attempts=settings.db_connect_attempts)
        uow = SqlAlchemyUnitOfWork(make_session_factory(engine))
        logger.info(f"Using database {engine.url.render_as_string(hide_password=True)}")

    app = FastAPI(title="Storefront", version="1.0.0")
    app.state.settings = settings
    app.state.uow = uow
    app.state.notifier = notifier if notifier is not None else NotificationService(make_celery(settings))

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(coupons.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
