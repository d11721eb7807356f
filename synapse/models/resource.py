"""Resource model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from synapse.database import Base
from synapse.models.user import utc_now


class Resource(Base):
    """Metadata for one shared study document stored in the upload directory."""

    __tablename__ = "resources"
    __table_args__ = (
        Index("idx_resources_filters", "subject", "year", "college", "type"),
        Index("idx_resources_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    year = Column(String, nullable=False)
    college = Column(String, nullable=False)
    type = Column(String, nullable=False)
    description = Column(Text, default="")
    file_name = Column(String, nullable=False)
    stored_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    # Lookup key only; the display name is cached so listings need no join.
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    uploaded_by_name = Column(String, nullable=False)
    download_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
