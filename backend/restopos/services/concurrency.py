# Overview: Product row locking and retry for stock-changing transactions.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Product


RETRY_ATTEMPTS = 3
RETRY_BACKOFF = 0.05


def lock_product(product_id: int) -> Product:
    """
    Re-read a product with SELECT ... FOR UPDATE before its stock is rewritten.

    SQLite ignores the lock; Product.version_id still catches lost updates there.
    """
    return db.session.query(Product).filter(Product.id == product_id).with_for_update().one()


def run_with_retry(operation, *, attempts: int = RETRY_ATTEMPTS, backoff: float = RETRY_BACKOFF):
    """
    Run a stock-changing unit of work, retrying when the database reports a
    lock (OperationalError) or a stale product version (StaleDataError).

    Sale and stock errors raised by `operation` are not retried.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.warning("Stock write conflict, retry %s/%s: %s", attempt, attempts - 1, exc)
            time.sleep(backoff * (2 ** (attempt - 1)))
