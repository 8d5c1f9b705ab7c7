"""
AI helpers router.

Thin HTTP wrappers over NoteAssistant. Provider failures surface as
UpstreamError and are answered with 502 by the app's exception handler.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from renotefy.ai import NoteAssistant, get_note_assistant
from renotefy.identity import Principal
from renotefy.models.ai import (
    ChatRequest,
    MindMap,
    QuizQuestion,
    QuizRequest,
    ReviewItem,
    SummarizeRequest,
    TextRequest,
    TranslateRequest,
)
from renotefy.routers.auth import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/summarize")
async def summarize(
    data: SummarizeRequest,
    current_user: Principal = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_note_assistant),
) -> dict:
    summary = await assistant.summarize(data.text, data.length)
    return {"summary": summary}


@router.post("/quiz", response_model=List[QuizQuestion])
async def quiz(
    data: QuizRequest,
    current_user: Principal = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_note_assistant),
) -> List[QuizQuestion]:
    return await assistant.generate_quiz(data.text, data.difficulty, data.count, data.type)


@router.post("/translate")
async def translate(
    data: TranslateRequest,
    current_user: Principal = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_note_assistant),
) -> dict:
    translation = await assistant.translate(data.text, data.target_language)
    return {"translation": translation, "target_language": data.target_language}


@router.post("/chat")
async def chat(
    data: ChatRequest,
    current_user: Principal = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_note_assistant),
) -> dict:
    """Answer the last message of a conversation, optionally about a note."""
    reply = await assistant.chat(data.messages, note_context=data.note_content)
    return {"role": "assistant", "content": reply}


@router.post("/mind-map", response_model=MindMap)
async def mind_map(
    data: TextRequest,
    current_user: Principal = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_note_assistant),
) -> MindMap:
    return await assistant.generate_mind_map(data.text)


@router.post("/review", response_model=List[ReviewItem])
async def review(
    data: TextRequest,
    current_user: Principal = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_note_assistant),
) -> List[ReviewItem]:
    return await assistant.review_text(data.text)
