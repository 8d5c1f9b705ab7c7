"""
Pydantic models package.
Each module contains models for a specific domain.
"""

from renotefy.models.user import User, UserCreate, UserLogin, UserResponse, TokenResponse
from renotefy.models.note import (
    Note, NoteCreate, NoteUpdate, NoteResponse, SharePermission,
    ShareRequest, VisibilityUpdate, AllowCopyUpdate, ImageUploadResponse,
)
from renotefy.models.ai import QuizQuestion, MindMap, MindMapNode, ReviewItem, ChatMessage

__all__ = [
    "User", "UserCreate", "UserLogin", "UserResponse", "TokenResponse",
    "Note", "NoteCreate", "NoteUpdate", "NoteResponse", "SharePermission",
    "ShareRequest", "VisibilityUpdate", "AllowCopyUpdate", "ImageUploadResponse",
    "QuizQuestion", "MindMap", "MindMapNode", "ReviewItem", "ChatMessage",
]
