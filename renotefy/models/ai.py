"""
AI helper model definitions.
Request bodies for the AI endpoints and the structured results parsed
out of model replies (quizzes, mind maps, reviews).
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator


class QuizQuestion(BaseModel):
    """A single generated quiz question."""
    id: str
    type: Literal["mcq", "short"] = "short"
    question: str
    options: List[str] = Field(default_factory=list)
    answer: str

    @field_validator("id", "answer", mode="before")
    @classmethod
    def _stringify(cls, value):
        # Models often number questions as plain integers
        return str(value) if isinstance(value, (int, float)) else value


class MindMapNode(BaseModel):
    """A branch of a mind map; children nest arbitrarily deep."""
    id: str
    title: str
    color: Optional[str] = None
    children: List["MindMapNode"] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return str(value) if isinstance(value, (int, float)) else value


class MindMap(BaseModel):
    """Mind map with a central topic and its branches."""
    central: str
    nodes: List[MindMapNode] = Field(default_factory=list)


class ReviewItem(BaseModel):
    """One grammar / style / content issue found in a text."""
    type: Literal["grammar", "style", "content"]
    snippet: str
    suggestion: str
    explanation: str = ""


class ChatMessage(BaseModel):
    """A turn in an AI chat conversation."""
    role: Literal["user", "assistant"]
    content: str


class TextRequest(BaseModel):
    """Body for helpers that only need the note text."""
    text: str = Field(..., min_length=1)


class SummarizeRequest(TextRequest):
    length: Literal["short", "medium", "long"] = "medium"


class QuizRequest(TextRequest):
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    count: int = Field(5, ge=1, le=20)
    type: Literal["mcq", "short", "mixed"] = "mixed"


class TranslateRequest(TextRequest):
    target_language: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    note_content: Optional[str] = None
