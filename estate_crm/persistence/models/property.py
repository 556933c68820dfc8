"""Property model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from estate_crm.persistence.database import Base, utcnow


class Property(Base):
    """Listed property, optionally owned by a contact."""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    owner_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    offer_type = Column(String(10), nullable=False, default="sale")  # 'sale' or 'rent'
    price = Column(Numeric(14, 2), nullable=True)
    status = Column(String(30), nullable=False, default="available")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, owner_contact_id={self.owner_contact_id}, title={self.title})>"
