# storefront/celery_worker.py
# worker entry point: celery -A storefront.celery_worker worker
from storefront.services.notification_service import make_celery
from storefront.utils.logging import configure_logging
from storefront.utils.settings import Settings

settings = Settings.from_env()
configure_logging(settings.log_level)

celery_app = make_celery(settings)
