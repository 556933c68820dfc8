"""Repository implementations."""

from estate_crm.persistence.repositories.base import BaseRepository
from estate_crm.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from estate_crm.persistence.repositories.contact_repository import ContactRepository

__all__ = [
    "BaseRepository",
    "ContactRepository",
    "ContactMergeLogRepository",
]
