"""
Database Service Bridge
=======================
Bridges FastAPI to the trialtracker connection manager: one session per
request.
"""

import logging
from typing import Generator

from sqlalchemy.orm import Session

from trialtracker.database import get_db_manager

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; rolled back if the request fails."""
    session = get_db_manager().get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def database_status() -> str:
    """'connected' or 'unavailable', for the health endpoint."""
    return "connected" if get_db_manager().health_check() else "unavailable"
