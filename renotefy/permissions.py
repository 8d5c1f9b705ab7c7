"""
Note permission rules.

Pure functions over a note snapshot and the acting principal. They fail
closed: with no principal, only reading a public note is allowed.
"""

from typing import Optional

from renotefy.identity import Principal, normalize_email
from renotefy.models.note import Note, SharePermission


def is_owner(note: Note, principal: Optional[Principal]) -> bool:
    return principal is not None and principal.id == note.owner_id


def _is_shared_with(note: Note, principal: Optional[Principal]) -> bool:
    if principal is None:
        return False
    return normalize_email(principal.email) in note.shared_with


def can_read(note: Note, principal: Optional[Principal]) -> bool:
    """Public notes are readable by anyone; others by owner or share list."""
    return note.is_public or is_owner(note, principal) or _is_shared_with(note, principal)


def can_edit(note: Note, principal: Optional[Principal]) -> bool:
    """Owner, or a shared principal holding the editor permission."""
    if is_owner(note, principal):
        return True
    if not _is_shared_with(note, principal):
        return False
    granted = note.shared_with_permissions.get(normalize_email(principal.email))
    return granted == SharePermission.EDITOR


def can_delete(note: Note, principal: Optional[Principal]) -> bool:
    return is_owner(note, principal)


def can_share(note: Note, principal: Optional[Principal]) -> bool:
    return is_owner(note, principal)


def can_toggle_visibility(note: Note, principal: Optional[Principal]) -> bool:
    """Covers both is_public and allow_copy."""
    return is_owner(note, principal)


def can_copy(note: Note, principal: Optional[Principal]) -> bool:
    """Owner, or any signed-in principal when the owner allows copies."""
    if principal is None:
        return False
    return is_owner(note, principal) or note.allow_copy
