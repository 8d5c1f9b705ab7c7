"""
Notes router.
Exposes a session's note repository over HTTP.

Reads work anonymously (public notes only); mutations need a bearer
token. Permission and validation failures are raised by the repository
as NoteError and mapped to responses by the app's exception handler.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from renotefy import permissions
from renotefy.models.note import (
    AllowCopyUpdate,
    ImageUploadResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    ShareRequest,
    VisibilityUpdate,
)
from renotefy.notes import NoteRepository
from renotefy.routers.auth import get_repository, require_repository

logger = logging.getLogger(__name__)
router = APIRouter()

# Images only; max size: 10 MB
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}
MAX_IMAGE_SIZE = 10 * 1024 * 1024


def _responses(notes) -> List[NoteResponse]:
    return [NoteResponse.from_note(n) for n in notes]


# ============================================================
# Result sets
# ============================================================
@router.get("", response_model=List[NoteResponse])
async def list_owned(repo: NoteRepository = Depends(require_repository)) -> List[NoteResponse]:
    """Notes owned by the caller, most recently updated first."""
    return _responses(repo.owned)


@router.get("/shared", response_model=List[NoteResponse])
async def list_shared(repo: NoteRepository = Depends(require_repository)) -> List[NoteResponse]:
    """Notes other principals have shared with the caller."""
    return _responses(repo.shared_with_me)


@router.get("/public", response_model=List[NoteResponse])
async def list_public(repo: NoteRepository = Depends(get_repository)) -> List[NoteResponse]:
    """Every public note. No token required."""
    return _responses(repo.public)


# ============================================================
# Single notes
# ============================================================
@router.post("", response_model=NoteResponse)
async def create_note(
    data: NoteCreate,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    """Create a note; its emoji is suggested from the title and content."""
    note = await repo.create_note(data.title, data.content)
    return NoteResponse.from_note(note)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    repo: NoteRepository = Depends(get_repository),
) -> NoteResponse:
    """Open a note the caller may read."""
    note = await repo.get_note_by_id(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    if not permissions.can_read(note, repo.principal):
        raise HTTPException(status_code=403, detail="You do not have access to this note")
    return NoteResponse.from_note(note)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    """Edit title, content or emoji (owner or editor)."""
    note = await repo.update_note(note_id, data)
    return NoteResponse.from_note(note)


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    repo: NoteRepository = Depends(require_repository),
) -> dict:
    """Delete a note (owner only)."""
    await repo.delete_note(note_id)
    return {"message": "Note deleted"}


# ============================================================
# Sharing & visibility
# ============================================================
@router.post("/{note_id}/share", response_model=NoteResponse)
async def share_note(
    note_id: str,
    data: ShareRequest,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    note = await repo.share_note(note_id, data.email, data.permission)
    return NoteResponse.from_note(note)


@router.delete("/{note_id}/share/{email}", response_model=NoteResponse)
async def remove_sharing(
    note_id: str,
    email: str,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    note = await repo.remove_note_sharing(note_id, email)
    return NoteResponse.from_note(note)


@router.put("/{note_id}/visibility", response_model=NoteResponse)
async def set_visibility(
    note_id: str,
    data: VisibilityUpdate,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    note = await repo.toggle_public_status(note_id, data.is_public)
    return NoteResponse.from_note(note)


@router.put("/{note_id}/allow-copy", response_model=NoteResponse)
async def set_allow_copy(
    note_id: str,
    data: AllowCopyUpdate,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    note = await repo.toggle_allow_copy(note_id, data.allow_copy)
    return NoteResponse.from_note(note)


@router.post("/{note_id}/copy", response_model=NoteResponse)
async def copy_note(
    note_id: str,
    repo: NoteRepository = Depends(require_repository),
) -> NoteResponse:
    """Clone a copyable note into a new private note owned by the caller."""
    note = await repo.copy_note_as_template(note_id)
    return NoteResponse.from_note(note)


# ============================================================
# Images
# ============================================================
@router.post("/{note_id}/images", response_model=ImageUploadResponse)
async def upload_image(
    note_id: str,
    file: UploadFile = File(...),
    repo: NoteRepository = Depends(require_repository),
) -> ImageUploadResponse:
    """Store an image for a note the caller can edit.

    Returns:
        The image URL to embed in the note content.

    Raises:
        HTTPException: If the file is not an image or is too large.
    """
    content_type = file.content_type or ""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {content_type}")

    content = await file.read()
    if len(content) > MAX_IMAGE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"Image too large. Max size: {MAX_IMAGE_SIZE // (1024 * 1024)} MB",
        )

    filename = file.filename or "image"
    url = await repo.upload_image(note_id, filename, content)
    return ImageUploadResponse(
        url=url,
        filename=filename,
        size=len(content),
        content_type=content_type,
    )
