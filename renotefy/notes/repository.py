"""
Note repository.

Permission-checked note operations for one session, on top of a generic
DocumentStore. The repository owns the session's NoteCache: it re-queries
the three result sets whenever the signed-in principal changes and
reconciles them locally after each successful mutation.

Checks run before any write. If a check or the write itself fails, the
error propagates and the caches are left exactly as they were.
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from renotefy.ai import NoteAssistant, best_effort
from renotefy.errors import NotFoundError, PermissionDeniedError, ValidationError
from renotefy.identity import AuthSession, Principal, normalize_email
from renotefy.models.note import (
    DEFAULT_EMOJI,
    DEFAULT_NOTE_TITLE,
    Note,
    NoteUpdate,
    SharePermission,
)
from renotefy.notes.cache import MutationKind, NoteCache, NoteSets
from renotefy import permissions
from renotefy.store import SERVER_TIMESTAMP, DocumentStore, ObjectStore
from renotefy.utils.validators import validate_email

logger = logging.getLogger(__name__)

NOTES_COLLECTION = "notes"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.\-]")


def _newer(a: Note, b: Note) -> bool:
    return a.updated_at is not None and (b.updated_at is None or a.updated_at > b.updated_at)


class NoteRepository:
    """
    Notes as seen by one session.

    Args:
        store: Document store holding the notes collection.
        session: Sign-in state; the repository refreshes on every
            transition it reports.
        assistant: Suggests emojis for new notes. Optional.
        object_store: Storage for note images. Optional.
        default_emoji: Emoji used when no suggestion is available.
        default_title: Title given to notes created with a blank one.
    """

    def __init__(
        self,
        store: DocumentStore,
        session: AuthSession,
        assistant: Optional[NoteAssistant] = None,
        object_store: Optional[ObjectStore] = None,
        default_emoji: str = DEFAULT_EMOJI,
        default_title: str = DEFAULT_NOTE_TITLE,
    ):
        self._store = store
        self._session = session
        self._assistant = assistant
        self._object_store = object_store
        self._default_emoji = default_emoji
        self._default_title = default_title
        self._cache = NoteCache()
        self.loading = False
        self._unsubscribe = session.subscribe(self._on_principal_changed)

    # ============================================================
    # Cached views
    # ============================================================

    @property
    def session(self) -> AuthSession:
        return self._session

    @property
    def principal(self) -> Optional[Principal]:
        return self._session.current_principal

    @property
    def owned(self) -> List[Note]:
        return list(self._cache.sets.owned)

    @property
    def shared_with_me(self) -> List[Note]:
        return list(self._cache.sets.shared_with_me)

    @property
    def public(self) -> List[Note]:
        return list(self._cache.sets.public)

    @property
    def current_note(self) -> Optional[Note]:
        return self._cache.current_note

    def close(self) -> None:
        """Stop following the session's sign-in transitions."""
        self._unsubscribe()

    # ============================================================
    # Full fetch
    # ============================================================

    async def _on_principal_changed(self, principal: Optional[Principal]) -> None:
        await self.refresh()

    async def refresh(self) -> None:
        """Re-query all three result sets for the current principal.

        Public notes load even without a principal so they can be
        browsed anonymously.
        """
        principal = self.principal
        self.loading = True
        try:
            owned: List[Note] = []
            shared: List[Note] = []
            if principal is not None:
                owned = await self._query(equals={"userId": principal.id})
                shared = await self._query(array_contains={"sharedWith": principal.email})
            public = await self._query(equals={"isPublic": True})
        finally:
            self.loading = False

        self._cache.reset(NoteSets(owned=owned, shared_with_me=shared, public=public))
        logger.info(
            f"Loaded notes for {principal.id if principal else 'anonymous'}: "
            f"{len(owned)} owned, {len(shared)} shared, {len(public)} public"
        )

    async def _query(self, **filters: Any) -> List[Note]:
        docs = await self._store.query(
            NOTES_COLLECTION, order_by_desc="updatedAt", **filters
        )
        return [Note.from_doc(doc) for doc in docs]

    # ============================================================
    # Reads
    # ============================================================

    async def _load(self, note_id: str) -> Note:
        doc = await self._store.get(NOTES_COLLECTION, note_id)
        if doc is None:
            raise NotFoundError(f"Note {note_id} not found")
        return Note.from_doc(doc)

    async def get_note_by_id(self, note_id: str) -> Optional[Note]:
        """
        Fetch a note and make it the open note.

        Read permission is not checked here; the surface that displays
        the note decides whether to show it (see can_read).
        """
        doc = await self._store.get(NOTES_COLLECTION, note_id)
        if doc is None:
            logger.info(f"Note {note_id} not found")
            return None
        note = Note.from_doc(doc)
        self._cache.open(note)
        return note

    # ============================================================
    # Mutations
    # ============================================================

    def _require_principal(self, action: str) -> Principal:
        principal = self.principal
        if principal is None:
            raise PermissionDeniedError(f"You must be logged in to {action}")
        return principal

    def _deny(self, note: Note, action: str) -> PermissionDeniedError:
        who = self.principal.id if self.principal else "anonymous"
        logger.warning(f"Denied {action} on note {note.id} for {who}")
        return PermissionDeniedError(f"You do not have permission to {action} this note")

    async def _write(self, note: Note, partial: Dict[str, Any], kind: MutationKind) -> Note:
        """Write fields plus a fresh updatedAt, then reconcile the caches."""
        written = await self._store.update(
            NOTES_COLLECTION, note.id, {**partial, "updatedAt": SERVER_TIMESTAMP}
        )
        # Another write from this session may have landed since `note` was
        # loaded; patch on top of it so neither change is lost in the caches.
        base = note
        cached = self._cache.find(note.id)
        if cached is not None and _newer(cached, note):
            base = cached
        updated = base.patched(written)
        self._cache.apply(kind, note, updated)
        return updated

    async def _insert(self, doc: Dict[str, Any]) -> Note:
        note_id = await self._store.create(NOTES_COLLECTION, doc)
        stored = await self._store.get(NOTES_COLLECTION, note_id)
        if stored is None:
            # Only a concurrent delete can get here
            raise NotFoundError(f"Note {note_id} disappeared after creation")
        note = Note.from_doc(stored)
        self._cache.apply(MutationKind.CREATE, None, note)
        return note

    def _new_note_doc(self, principal: Principal, **fields: Any) -> Dict[str, Any]:
        return {
            **fields,
            "userId": principal.id,
            "userName": principal.display_name or "Anonymous",
            "userEmail": principal.email,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
            "isPublic": False,
            "allowCopy": False,
            "sharedWith": [],
            "sharedWithPermissions": {},
        }

    async def create_note(self, title: Optional[str], content: Optional[str] = "") -> Note:
        """
        Create a note owned by the signed-in principal.

        The emoji is suggested from the title and the start of the
        content; if the suggestion fails the default emoji is used.
        """
        principal = self._require_principal("create notes")
        title = (title or "").strip() or self._default_title
        content = content or ""

        emoji = self._default_emoji
        if self._assistant is not None:
            emoji = await best_effort(
                self._assistant.suggest_emoji(title, content[:200]),
                self._default_emoji,
                "Emoji suggestion",
            )

        note = await self._insert(
            self._new_note_doc(principal, title=title, content=content, emoji=emoji)
        )
        logger.info(f"Note {note.id} created by {principal.id}")
        return note

    async def update_note(
        self, note_id: str, fields: Union[NoteUpdate, Dict[str, Any]]
    ) -> Note:
        """
        Edit a note's title, content or emoji.

        Raises:
            ValidationError: If fields contains anything else.
            NotFoundError: If the note does not exist.
            PermissionDeniedError: If the principal cannot edit it.
        """
        if not isinstance(fields, NoteUpdate):
            try:
                fields = NoteUpdate.model_validate(fields)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid note update: {e.errors()[0]['msg']}") from e

        note = await self._load(note_id)
        if not permissions.can_edit(note, self.principal):
            raise self._deny(note, "edit")

        updated = await self._write(note, fields.to_doc(), MutationKind.PATCH)
        logger.info(f"Note {note_id} updated by {self.principal.id}")
        return updated

    async def delete_note(self, note_id: str) -> None:
        """Permanently delete a note. Owner only."""
        note = await self._load(note_id)
        if not permissions.can_delete(note, self.principal):
            raise self._deny(note, "delete")

        await self._store.delete(NOTES_COLLECTION, note_id)
        self._cache.apply(MutationKind.DELETE, note, None)
        logger.info(f"Note {note_id} deleted by {self.principal.id}")

    async def share_note(
        self,
        note_id: str,
        email: str,
        permission: Union[SharePermission, str] = SharePermission.VIEWER,
    ) -> Note:
        """
        Grant another principal access by email. Owner only.

        Sharing again with the same email keeps a single entry and
        replaces the recorded permission.
        """
        valid, message = validate_email(email.strip() if email else "")
        if not valid:
            raise ValidationError(message)
        try:
            permission = SharePermission(permission)
        except ValueError:
            raise ValidationError(f"Unknown permission: {permission}") from None
        email = normalize_email(email)

        note = await self._load(note_id)
        if not permissions.can_share(note, self.principal):
            raise self._deny(note, "share")
        if note.owner_email and normalize_email(note.owner_email) == email:
            raise ValidationError("You cannot share a note with yourself")

        shared_with = list(note.shared_with)
        if email not in shared_with:
            shared_with.append(email)
        grants = {**note.shared_with_permissions, email: permission.value}

        updated = await self._write(
            note,
            {"sharedWith": shared_with, "sharedWithPermissions": grants},
            MutationKind.PATCH,
        )
        logger.info(f"Note {note_id} shared with {email} as {permission.value}")
        return updated

    async def remove_note_sharing(self, note_id: str, email: str) -> Note:
        """Revoke a share. Removing an email that was never shared is a no-op."""
        note = await self._load(note_id)
        if not permissions.can_share(note, self.principal):
            raise self._deny(note, "share")

        email = normalize_email(email or "")
        if email not in note.shared_with and email not in note.shared_with_permissions:
            return note

        shared_with = [e for e in note.shared_with if e != email]
        grants = {e: p for e, p in note.shared_with_permissions.items() if e != email}
        updated = await self._write(
            note,
            {"sharedWith": shared_with, "sharedWithPermissions": grants},
            MutationKind.PATCH,
        )
        logger.info(f"Note {note_id} no longer shared with {email}")
        return updated

    async def toggle_public_status(self, note_id: str, is_public: bool) -> Note:
        """Publish or unpublish a note. Owner only."""
        note = await self._load(note_id)
        if not permissions.can_toggle_visibility(note, self.principal):
            raise self._deny(note, "change the visibility of")

        updated = await self._write(note, {"isPublic": bool(is_public)}, MutationKind.VISIBILITY)
        logger.info(f"Note {note_id} is now {'public' if is_public else 'private'}")
        return updated

    async def toggle_allow_copy(self, note_id: str, allow_copy: bool) -> Note:
        """Let non-owners clone the note as a template. Owner only."""
        note = await self._load(note_id)
        if not permissions.can_toggle_visibility(note, self.principal):
            raise self._deny(note, "change copy permission of")

        updated = await self._write(note, {"allowCopy": bool(allow_copy)}, MutationKind.VISIBILITY)
        logger.info(f"Note {note_id} allow_copy={bool(allow_copy)}")
        return updated

    async def copy_note_as_template(self, note_id: str) -> Note:
        """Clone a note into a new private note owned by the caller."""
        source = await self._load(note_id)
        if not permissions.can_copy(source, self.principal):
            raise self._deny(source, "copy")

        doc = self._new_note_doc(
            self.principal,
            title=f"Copy of {source.title}",
            content=source.content,
            emoji=source.emoji,
        )
        doc["copiedFrom"] = source.id
        note = await self._insert(doc)
        logger.info(f"Note {note.id} copied from {source.id} by {self.principal.id}")
        return note

    async def upload_image(self, note_id: str, filename: str, data: bytes) -> str:
        """
        Store an image for a note and return its URL.

        The note itself is not modified; the editor embeds the URL in
        the content.
        """
        if self._object_store is None:
            raise RuntimeError("No object store configured for image uploads")
        self._require_principal("upload images")
        note = await self._load(note_id)
        if not permissions.can_edit(note, self.principal):
            raise self._deny(note, "upload images to")

        safe_name = _UNSAFE_FILENAME_CHARS.sub("_", filename or "image") or "image"
        path = f"notes/{note_id}/images/{int(time.time() * 1000)}-{safe_name}"
        url = await self._object_store.put(path, data)
        logger.info(f"Image {path} uploaded by {self.principal.id}")
        return url
