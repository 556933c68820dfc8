"""Domain services."""

from estate_crm.domain.services.contact_merge_service import ContactMergeService
from estate_crm.domain.services.contact_service import ContactService
from estate_crm.domain.services.duplicate_detector import DuplicateGroup, find_duplicate_groups

__all__ = ["ContactMergeService", "ContactService", "DuplicateGroup", "find_duplicate_groups"]
