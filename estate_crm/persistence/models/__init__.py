"""Database models."""

from estate_crm.persistence.models.activity import Activity
from estate_crm.persistence.models.calendar_event import CalendarEvent
from estate_crm.persistence.models.contact import Contact
from estate_crm.persistence.models.contact_file import ContactFile
from estate_crm.persistence.models.contact_merge_log import ContactMergeLog
from estate_crm.persistence.models.deal import Deal
from estate_crm.persistence.models.notification import Notification
from estate_crm.persistence.models.property import Property
from estate_crm.persistence.models.transaction import Transaction

__all__ = [
    "Activity",
    "CalendarEvent",
    "Contact",
    "ContactFile",
    "ContactMergeLog",
    "Deal",
    "Notification",
    "Property",
    "Transaction",
]
