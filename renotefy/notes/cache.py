"""
Session-side note caches.

A session keeps three result sets (notes it owns, notes shared with it,
public notes) plus the note currently open. After a successful mutation
the sets are reconciled locally instead of being re-queried, so they can
drift in order until the next full fetch.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from renotefy.models.note import Note

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    """How a mutation can affect result-set membership."""
    CREATE = "create"          # new note (create or copy): prepend to owned
    PATCH = "patch"            # field change: replace wherever present
    VISIBILITY = "visibility"  # may move the note in or out of public
    DELETE = "delete"          # owner-only removal


@dataclass
class NoteSets:
    """The three per-session result sets, newest first as fetched."""
    owned: List[Note] = field(default_factory=list)
    shared_with_me: List[Note] = field(default_factory=list)
    public: List[Note] = field(default_factory=list)


def _replace(notes: List[Note], note: Note) -> List[Note]:
    return [note if n.id == note.id else n for n in notes]


def _without(notes: List[Note], note_id: str) -> List[Note]:
    return [n for n in notes if n.id != note_id]


def reconcile(
    sets: NoteSets,
    kind: MutationKind,
    before: Optional[Note],
    after: Optional[Note],
) -> NoteSets:
    """
    Compute the result sets after a successful mutation.

    Pure: the input sets are left untouched and a new NoteSets is
    returned. Patched entries keep their position; nothing is re-sorted.

    Args:
        sets: Result sets before the mutation.
        kind: What sort of mutation happened.
        before: The note as it was (None for CREATE).
        after: The note as written (None for DELETE).

    Returns:
        New NoteSets reflecting the mutation.
    """
    if kind == MutationKind.CREATE:
        return NoteSets(
            owned=[after] + _without(sets.owned, after.id),
            shared_with_me=list(sets.shared_with_me),
            public=list(sets.public),
        )

    if kind == MutationKind.DELETE:
        # Only owners delete, so the note can only be in their owned set
        return NoteSets(
            owned=_without(sets.owned, before.id),
            shared_with_me=list(sets.shared_with_me),
            public=list(sets.public),
        )

    owned = _replace(sets.owned, after)
    shared = _replace(sets.shared_with_me, after)

    if kind == MutationKind.PATCH:
        return NoteSets(owned=owned, shared_with_me=shared, public=_replace(sets.public, after))

    if after.is_public:
        if any(n.id == after.id for n in sets.public):
            public = _replace(sets.public, after)
        else:
            public = [after] + list(sets.public)
    else:
        public = _without(sets.public, after.id)
    return NoteSets(owned=owned, shared_with_me=shared, public=public)


class NoteCache:
    """Holds a session's result sets and its open-note cursor."""

    def __init__(self):
        self.sets = NoteSets()
        self.current_note: Optional[Note] = None

    def reset(self, sets: NoteSets) -> None:
        """Replace everything after a full fetch; the cursor is closed."""
        self.sets = sets
        self.current_note = None

    def open(self, note: Note) -> None:
        self.current_note = note

    def find(self, note_id: str) -> Optional[Note]:
        """The cached copy of a note, from the cursor or any result set."""
        if self.current_note is not None and self.current_note.id == note_id:
            return self.current_note
        for notes in (self.sets.owned, self.sets.shared_with_me, self.sets.public):
            for n in notes:
                if n.id == note_id:
                    return n
        return None

    def apply(
        self,
        kind: MutationKind,
        before: Optional[Note],
        after: Optional[Note],
    ) -> None:
        """Reconcile the sets and keep the cursor in step with them."""
        self.sets = reconcile(self.sets, kind, before, after)

        if self.current_note is None:
            return
        if kind == MutationKind.DELETE and self.current_note.id == before.id:
            logger.debug(f"Closing deleted note {before.id}")
            self.current_note = None
        elif kind in (MutationKind.PATCH, MutationKind.VISIBILITY) and self.current_note.id == after.id:
            self.current_note = after
