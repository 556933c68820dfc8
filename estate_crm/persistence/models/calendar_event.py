"""Calendar event model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from estate_crm.persistence.database import Base, utcnow


class CalendarEvent(Base):
    """Scheduled viewing, meeting or follow-up.

    An event can point at a contact twice: once as the contact it is with
    and once as the lead it was booked for. Both columns reference contacts.
    """

    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True, index=True)
    lead_id = Column(Integer, ForeignKey("contacts.id"), nullable=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True)
    title = Column(String(255), nullable=False)
    event_type = Column(String(30), nullable=False, default="meeting")
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<CalendarEvent(id={self.id}, contact_id={self.contact_id}, lead_id={self.lead_id})>"
