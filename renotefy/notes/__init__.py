"""
Notes package.
Session caches and the permission-checked note repository.
"""

from renotefy.notes.cache import MutationKind, NoteCache, NoteSets, reconcile
from renotefy.notes.repository import NOTES_COLLECTION, NoteRepository

__all__ = [
    "MutationKind",
    "NoteCache",
    "NoteSets",
    "reconcile",
    "NOTES_COLLECTION",
    "NoteRepository",
]
