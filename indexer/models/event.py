"""Event SQLAlchemy model (a video or live stream)."""

from sqlalchemy import JSON, BigInteger, Boolean, Column, DateTime, Integer, Text

from ..database import Base


class Event(Base):
    """
    Event model.

    Attributes:
        id: Key of the event
        series_id: Key of the series the event belongs to (nullable)
        title: Event title
        description: Optional description
        creators: List of creator names
        thumbnail: URL of the thumbnail image
        duration: Duration in milliseconds
        created: Creation timestamp
        is_live: Whether this is a live stream
        read_roles: Roles allowed to see the event
    """

    __tablename__ = "events"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    series_id = Column(BigInteger, nullable=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    creators = Column(JSON, nullable=False, default=list)
    thumbnail = Column(Text, nullable=True)
    duration = Column(BigInteger, nullable=False, default=0)
    created = Column(DateTime(timezone=True), nullable=False)
    is_live = Column(Boolean, nullable=False, default=False)
    read_roles = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}')>"
