"""Registry of columns that hold a contact id.

A merge rewrites every column listed here, so a new table that points at
contacts has to be added to CONTACT_REFERENCES as well.
"""

from dataclasses import dataclass

from sqlalchemy import Column

from estate_crm.persistence.models.activity import Activity
from estate_crm.persistence.models.calendar_event import CalendarEvent
from estate_crm.persistence.models.contact_file import ContactFile
from estate_crm.persistence.models.contact_merge_log import ContactMergeLog
from estate_crm.persistence.models.deal import Deal
from estate_crm.persistence.models.notification import Notification
from estate_crm.persistence.models.property import Property
from estate_crm.persistence.models.transaction import Transaction


@dataclass(frozen=True)
class ContactReference:
    """A (model, column) pair referencing contacts.id."""

    model: type
    column_name: str

    @property
    def column(self) -> Column:
        return getattr(self.model, self.column_name)

    @property
    def key(self) -> str:
        """Stable label used in merge logs, e.g. 'deals.contact_id'."""
        return f"{self.model.__tablename__}.{self.column_name}"


CONTACT_REFERENCES: tuple[ContactReference, ...] = (
    ContactReference(Deal, "contact_id"),
    ContactReference(Activity, "contact_id"),
    ContactReference(CalendarEvent, "contact_id"),
    ContactReference(CalendarEvent, "lead_id"),
    ContactReference(Property, "owner_contact_id"),
    ContactReference(Transaction, "contact_id"),
    ContactReference(ContactFile, "contact_id"),
    ContactReference(Notification, "contact_id"),
)

# Merge logs of an absorbed contact move to the new primary, so history
# survives chained merges. Kept out of CONTACT_REFERENCES because audit
# rows never block deleting a contact.
MERGE_LOG_REFERENCE = ContactReference(ContactMergeLog, "primary_contact_id")
