"""Zone model definitions."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from crop_api.database import Base

ZONE_NAME_MIN_LENGTH = 2
ZONE_NAME_MAX_LENGTH = 100


class Zone(Base):
    """A named area of a farm, owned by exactly one user."""
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(ZONE_NAME_MAX_LENGTH), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    # {"type": "Point", "coordinates": [lng, lat], "address": "..."}
    location = Column(JSON, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

