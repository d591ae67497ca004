"""Dependency injection for repository layer."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..db.database import get_db
from .interfaces import TrackingLinkRepository
from .sqlalchemy_impl import SQLAlchemyTrackingLinkRepository


def get_tracking_link_repository(
    db: Session = Depends(get_db),
) -> TrackingLinkRepository:
    """Get TrackingLink repository instance bound to the request's session."""
    return SQLAlchemyTrackingLinkRepository(db)
