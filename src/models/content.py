from sqlalchemy import Column, Float, Integer, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class ContentModel(Base):
    __tablename__ = "contents"

    content_id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    subject = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False, index=True)  # <= 0 means free
    preview_url = Column(String, nullable=True)
    type = Column(String, nullable=False, default="other")
    lessons = Column(Integer, nullable=False)

    # Artifact reference, only set once an upload completed
    file_id = Column(String, nullable=True)
    file_name = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)

    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    library_entries = relationship(
        "LibraryEntryModel",
        back_populates="content",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
