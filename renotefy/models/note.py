"""
Note model definitions.
Represents a rich-text note together with its ownership and sharing state.

Notes are stored as camelCase documents (userId, sharedWith, ...) and
exposed as snake_case attributes through field aliases, so a stored
document validates straight into a Note and back.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

DEFAULT_NOTE_TITLE = "Untitled Note"
DEFAULT_EMOJI = "📝"


class SharePermission(str, Enum):
    """Access level granted to a principal a note is shared with."""
    VIEWER = "viewer"
    EDITOR = "editor"


class Note(BaseModel):
    """
    Full note model as stored in database.

    owner_id is written once on creation. owner_display_name and
    owner_email are a snapshot of the owner at that moment and are
    never synced afterwards.
    """
    id: Optional[str] = Field(None, alias="_id")
    title: str = DEFAULT_NOTE_TITLE
    content: str = ""
    emoji: str = DEFAULT_EMOJI
    owner_id: str = Field(..., alias="userId")
    owner_display_name: str = Field("Anonymous", alias="userName")
    owner_email: Optional[str] = Field(None, alias="userEmail")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    is_public: bool = Field(False, alias="isPublic")
    allow_copy: bool = Field(False, alias="allowCopy")
    shared_with: List[str] = Field(default_factory=list, alias="sharedWith")
    shared_with_permissions: Dict[str, SharePermission] = Field(
        default_factory=dict, alias="sharedWithPermissions"
    )
    copied_from: Optional[str] = Field(None, alias="copiedFrom")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Note":
        """Build a Note from a stored document (including its _id)."""
        return cls.model_validate(doc)

    def to_doc(self) -> Dict[str, Any]:
        """Document body to write, without the store-owned _id."""
        return self.model_dump(by_alias=True, exclude={"id"})

    def patched(self, partial: Dict[str, Any]) -> "Note":
        """Return a copy with camelCase document fields merged in."""
        data = self.model_dump(by_alias=True)
        data.update(partial)
        return Note.model_validate(data)


class NoteCreate(BaseModel):
    """Schema for creating a new note."""
    title: str = ""
    content: str = ""


class NoteUpdate(BaseModel):
    """
    Schema for editing a note's body.

    Only these fields are editable through an update; sharing and
    visibility have dedicated operations.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    emoji: Optional[str] = None

    class Config:
        extra = "forbid"

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ShareRequest(BaseModel):
    """Schema for sharing a note with another principal."""
    email: str
    permission: SharePermission = SharePermission.VIEWER


class VisibilityUpdate(BaseModel):
    """Schema for publishing or unpublishing a note."""
    is_public: bool


class AllowCopyUpdate(BaseModel):
    """Schema for allowing others to clone a note."""
    allow_copy: bool


class NoteResponse(BaseModel):
    """Note data returned in API responses."""
    id: str
    title: str
    content: str
    emoji: str
    owner_id: str
    owner_display_name: str
    owner_email: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    is_public: bool
    allow_copy: bool
    shared_with: List[str]
    shared_with_permissions: Dict[str, str]
    copied_from: Optional[str]

    @classmethod
    def from_note(cls, note: Note) -> "NoteResponse":
        return cls(**note.model_dump())


class ImageUploadResponse(BaseModel):
    """URL of an image stored for a note."""
    url: str
    filename: str
    size: int
    content_type: str
