"""Contacts: duplicate detection, vCard import and interaction bookkeeping."""

from app.features.contacts.importer import import_contacts, parse_vcards
from app.features.contacts.matching import DuplicateGroup, find_potential_duplicates
from app.features.contacts.service import (
    delete_interaction,
    log_group_interaction,
    log_interaction,
    merge_duplicates,
)

__all__ = [
    "import_contacts",
    "parse_vcards",
    "DuplicateGroup",
    "find_potential_duplicates",
    "delete_interaction",
    "log_group_interaction",
    "log_interaction",
    "merge_duplicates",
]
