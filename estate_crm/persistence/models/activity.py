"""Activity model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from estate_crm.persistence.database import Base, utcnow


class Activity(Base):
    """Logged interaction with a contact (call, email, meeting, note)."""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, contact_id={self.contact_id}, type={self.type})>"
