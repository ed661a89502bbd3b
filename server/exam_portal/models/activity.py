from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from exam_portal.database import Base
from exam_portal.models.user import _values
import enum


class ActivityType(str, enum.Enum):
    USER = "user"
    PAPER = "paper"
    RESULT = "result"


class Activity(Base):
    """Append-only audit trail entry"""
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    # Kept when the acting user is deleted
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String, nullable=False)
    type = Column(SQLEnum(ActivityType, values_callable=_values), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    user = relationship("User", back_populates="activities")

    @property
    def user_name(self):
        return self.user.name if self.user else None
