"""Notification model for in-app notifications."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from estate_crm.persistence.database import Base, utcnow


class Notification(Base):
    """In-app notification for an agent, optionally about a contact."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    agent_id = Column(String(64), nullable=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, contact_id={self.contact_id}, is_read={self.is_read})>"
