"""Realm SQLAlchemy model.

Realms form a tree (the page hierarchy). The root realm has ID 0, an empty
path segment and an empty full path. All other realms have a full path
starting with '/' and never ending with '/'.
"""

from sqlalchemy import BigInteger, Column, ForeignKey, Integer, Text

from ..database import Base


class Realm(Base):
    """
    Realm model.

    Attributes:
        id: Key of the realm
        parent: FK to the parent realm (null only for the root)
        path_segment: Last segment of the realm's path
        name: Display name, null if the name is derived from a block
        index: Position among siblings
        full_path: Full path, maintained by database triggers
    """

    __tablename__ = "realms"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    parent = Column(
        BigInteger,
        ForeignKey("realms.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    path_segment = Column(Text, nullable=False)
    name = Column(Text, nullable=True)
    index = Column(Integer, nullable=False, default=2147483647)
    full_path = Column(Text, nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Realm(id={self.id}, full_path='{self.full_path}')>"
