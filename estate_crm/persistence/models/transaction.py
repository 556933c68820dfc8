"""Transaction model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from estate_crm.persistence.database import Base, utcnow


class Transaction(Base):
    """Closed sale or rental with its commission."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True)
    transaction_type = Column(String(10), nullable=False)  # 'sale' or 'rent'
    amount = Column(Numeric(14, 2), nullable=True)
    commission = Column(Numeric(14, 2), nullable=True)
    status = Column(String(30), nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, contact_id={self.contact_id}, status={self.status})>"
