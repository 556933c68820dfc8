"""Contact file model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from estate_crm.persistence.database import Base, utcnow


class ContactFile(Base):
    """Document stored in object storage and attached to a contact."""

    __tablename__ = "contact_files"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    path = Column(String(500), nullable=False)  # object storage key
    tag = Column(String(30), nullable=False, default="other")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ContactFile(id={self.id}, contact_id={self.contact_id}, tag={self.tag})>"
