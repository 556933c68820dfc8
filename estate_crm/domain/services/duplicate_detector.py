"""Duplicate contact detection.

Contacts are linked when they share a normalized phone number or a
normalized email. Links are transitive: A-B on phone and B-C on email put
A, B and C in one group even though A and C share nothing.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from estate_crm.core.contact_keys import email_key, phone_key


@dataclass
class DuplicateGroup:
    """Contacts judged to be the same person, in input order."""

    contacts: list[Any]
    matched_on: list[str] = field(default_factory=list)  # shared keys, e.g. "phone:5551234567"

    @property
    def suggested_primary(self) -> Any:
        """First member in input order; callers may pick any other member."""
        return self.contacts[0]

    @property
    def contact_ids(self) -> list[Any]:
        return [_field(c, "id") for c in self.contacts]

    def __len__(self) -> int:
        return len(self.contacts)


def _field(contact: Any, name: str) -> Any:
    if isinstance(contact, Mapping):
        return contact.get(name)
    return getattr(contact, name, None)


def _keys_for(contact: Any, min_phone_digits: int) -> list[str]:
    keys = []
    phone = phone_key(_field(contact, "phone"), min_phone_digits)
    if phone:
        keys.append(phone)
    email = email_key(_field(contact, "email"))
    if email:
        keys.append(email)
    return keys


def find_duplicate_groups(
    contacts: Sequence[Any], min_phone_digits: int = 1
) -> list[DuplicateGroup]:
    """Partition contacts into groups of probable duplicates.

    Args:
        contacts: Contact rows, dicts or any objects with id/email/phone
        min_phone_digits: Phones with fewer digits are ignored for matching

    Returns:
        Groups with at least two members. Members keep input order and
        groups are ordered by their first member's position. Contacts
        with no match are left out.
    """
    parent = list(range(len(contacts)))

    def find(i: int) -> int:
        root = i
        while parent[root] != root:
            root = parent[root]
        while parent[i] != root:
            parent[i], i = root, parent[i]
        return root

    def union(a: int, b: int) -> None:
        root_a, root_b = find(a), find(b)
        if root_a == root_b:
            return
        # Lowest position stays root so output order never depends on union order
        if root_b < root_a:
            root_a, root_b = root_b, root_a
        parent[root_b] = root_a

    first_seen: dict[str, int] = {}
    key_hits: dict[str, int] = {}
    for index, contact in enumerate(contacts):
        for key in _keys_for(contact, min_phone_digits):
            key_hits[key] = key_hits.get(key, 0) + 1
            if key in first_seen:
                union(first_seen[key], index)
            else:
                first_seen[key] = index

    members: dict[int, list[int]] = {}
    for index in range(len(contacts)):
        members.setdefault(find(index), []).append(index)

    groups = []
    for root in sorted(members):
        indices = members[root]
        if len(indices) < 2:
            continue
        shared = [
            key for key, index in first_seen.items()
            if key_hits[key] > 1 and find(index) == root
        ]
        groups.append(DuplicateGroup(
            contacts=[contacts[i] for i in indices],
            matched_on=shared,
        ))
    return groups
