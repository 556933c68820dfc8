"""ContactMergeLog model for audit trail of contact merges."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from estate_crm.persistence.database import Base, utcnow


class ContactMergeLog(Base):
    """Audit log for contact merge operations."""

    __tablename__ = "contact_merge_logs"

    id = Column(Integer, primary_key=True, index=True)
    primary_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    # The secondary contact is deleted by the merge, so no foreign key
    secondary_contact_id = Column(Integer, nullable=False, index=True)
    merged_by = Column(String(64), nullable=True)
    merged_at = Column(DateTime, default=utcnow, nullable=False)

    # Rows moved to the primary, per referencing column
    # Example: {"deals.contact_id": 2, "activities.contact_id": 5}
    reassigned_references = Column(JSON, nullable=True)

    # Backup of the secondary contact's data before merge
    # Example: {"email": "old@email.com", "phone": "555-1234", "name": "Old Name"}
    secondary_data_snapshot = Column(JSON, nullable=True)

    primary_contact = relationship("Contact", foreign_keys=[primary_contact_id])

    def __repr__(self) -> str:
        return f"<ContactMergeLog(id={self.id}, primary={self.primary_contact_id}, secondary={self.secondary_contact_id}, at={self.merged_at})>"
