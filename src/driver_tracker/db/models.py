"""SQLAlchemy models for the driver tracker."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import Column, String, DateTime, Boolean, Index, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.types import TypeDecorator, CHAR

from .database import Base


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class GUID(TypeDecorator):
    """Platform-independent GUID type using String for SQLite."""

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID())
        else:
            return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, UUID):
            return UUID(str(value))
        return value


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, stored naive on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TrackingLink(Base):
    """A public tracking link for one driver.

    At most one link per driver is active at a time; superseded, cancelled
    and expired links stay in the table as history.
    """

    __tablename__ = "tracking_links"

    id = Column(GUID(), primary_key=True, default=uuid4)
    driver_name = Column(String(255), nullable=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)
    expires_at = Column(UTCDateTime(), nullable=False)
    created_by = Column(String(100), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index(
            "uq_tracking_links_active_driver",
            "driver_name",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
        Index("ix_tracking_links_active_expires", "active", "expires_at"),
        Index("ix_tracking_links_driver_name", "driver_name"),
    )

    def is_expired(self, now: datetime) -> bool:
        """Whether the link is past its expiry at ``now``."""
        return now > self.expires_at

    def is_live(self, now: datetime) -> bool:
        """Whether the link can currently be resolved."""
        return bool(self.active) and not self.is_expired(now)

    def __repr__(self) -> str:
        return (
            f"<TrackingLink(id={self.id}, driver_name='{self.driver_name}', "
            f"active={self.active})>"
        )
