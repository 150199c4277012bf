from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class LibraryEntryModel(Base):
    __tablename__ = "library_entries"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "content_id",
            name="uq_library_entries_user_content",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        String,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    content_id = Column(
        String,
        ForeignKey("contents.content_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    granted_at = Column(String, nullable=False)

    user = relationship("UserModel", back_populates="library_entries")
    content = relationship("ContentModel", back_populates="library_entries")
