"""Unit-of-work helper shared by the write services."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import CheckoutError, CheckoutInfrastructureError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, operation: str) -> Iterator[Session]:
    """Commit on success; roll back on any failure.

    Business errors propagate unchanged. Database errors are logged and
    replaced by an opaque ``CheckoutInfrastructureError``.
    """
    try:
        yield db
        db.commit()
    except CheckoutError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        logger.exception("[TRANSACTION] Database failure during %s", operation)
        db.rollback()
        raise CheckoutInfrastructureError() from exc
