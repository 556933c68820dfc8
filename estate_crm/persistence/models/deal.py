"""Deal model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from estate_crm.persistence.database import Base, utcnow


class Deal(Base):
    """Deal in the sales pipeline for a contact."""

    __tablename__ = "deals"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(30), nullable=False, default="prospecting")
    value = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, contact_id={self.contact_id}, status={self.status})>"
