"""Domain errors for contact operations."""


class ContactDomainError(Exception):
    """Base class for contact domain errors."""


class ContactValidationError(ContactDomainError, ValueError):
    """Request carries invalid contact data."""


class MergeValidationError(ContactValidationError):
    """Merge request is malformed (e.g. the primary is also listed as a duplicate)."""


class ContactNotFoundError(ContactDomainError, LookupError):
    """One or more contact IDs do not exist."""

    def __init__(self, contact_ids: list[int]):
        self.contact_ids = sorted(contact_ids)
        super().__init__(f"Contacts not found: {self.contact_ids}")


class MergeIncompleteError(ContactDomainError):
    """A merge step failed after the merge started mutating data.

    When rolled_back is True the transaction was rolled back and nothing
    persisted. When False (best-effort mode) the steps in completed_steps
    were committed and stay in place.
    """

    def __init__(
        self,
        primary_id: int,
        failed_step: str,
        completed_steps: list[str],
        rolled_back: bool,
    ):
        self.primary_id = primary_id
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.rolled_back = rolled_back
        state = "rolled back" if rolled_back else "partially applied"
        super().__init__(
            f"Merge into contact {primary_id} failed at {failed_step} ({state})"
        )


class ContactInUseError(ContactValidationError):
    """Contact cannot be deleted while other records still point at it.

    references maps each referencing column to its row count; it is empty
    when the database rejected the delete without a prior count.
    """

    def __init__(self, contact_id: int, references: dict[str, int]):
        self.contact_id = contact_id
        self.references = dict(references)
        if references:
            held_by = ", ".join(f"{key} ({count})" for key, count in references.items())
        else:
            held_by = "other records"
        super().__init__(
            f"Contact {contact_id} is still referenced by {held_by}; "
            "merge it into another contact instead"
        )
