"""Contact model."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from estate_crm.persistence.database import Base, utcnow

CONTACT_STATUSES = ("lead", "active_client", "past_client")


class Contact(Base):
    """Contact model representing a person known to the CRM."""

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True, index=True)  # free-form, as entered
    contact_status = Column(String(20), nullable=False, default="lead", index=True)
    source = Column(String(50), nullable=True)  # 'website', 'referral', 'bulk_upload', etc.
    agent_id = Column(String(64), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, email={self.email}, phone={self.phone})>"
