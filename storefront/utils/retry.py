# storefront/utils/retry.py
from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential


def db_retry(attempts: int = 5):
    """
    Retry for start-up work against a database that may not accept connections yet.
    Not used around business operations: the core never retries on its own.
    """
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type(OperationalError),
    )
