"""Database seeding helpers."""

import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash
from app.services.user_service import create_user, get_user_by_email

logger = logging.getLogger(__name__)


def ensure_default_manager(session: Session) -> bool:
    """Create the bootstrap manager from ADMIN_USER/ADMIN_PASS when both are set.

    Returns True when a manager with that email exists after the call.
    """
    if not settings.admin_user or not settings.admin_pass:
        logger.info("[BOOTSTRAP] ADMIN_USER/ADMIN_PASS not set; skipping manager seed.")
        return False

    existing_user = get_user_by_email(db=session, email=settings.admin_user)
    if existing_user is not None:
        if not existing_user.is_active:
            existing_user.is_active = True
            session.commit()
            logger.info("[BOOTSTRAP] Manager exists but was inactive; account re-activated.")
        return True

    create_user(
        db=session,
        email=settings.admin_user,
        hashed_password=get_password_hash(settings.admin_pass),
        role="manager",
        name="Manager",
    )
    logger.warning("[SECURITY] Default manager account created for %s. Change the password immediately.", settings.admin_user)
    return True
