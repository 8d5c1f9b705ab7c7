"""
AI helpers for notes.

Wraps an LLMProvider with the prompts behind every AI feature: emoji
suggestions for new notes, summaries, quizzes, translations, mind maps,
writing review and free-form chat about a note.

Provider failures surface as UpstreamError. Callers that only want a
nice-to-have result (the emoji for a new note) wrap the call in
best_effort() instead.
"""

import json
import logging
import re
from functools import lru_cache
from typing import Any, Awaitable, Dict, List, Optional, Sequence, TypeVar, Union

import httpx
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from renotefy.config import get_settings
from renotefy.errors import UpstreamError, ValidationError
from renotefy.llm import LLMProvider, provider_from_settings
from renotefy.models.ai import ChatMessage, MindMap, QuizQuestion, ReviewItem

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUMMARY_LENGTHS = {
    "short": "brief, concise summary (2-3 sentences)",
    "medium": "comprehensive summary (1 paragraph)",
    "long": "detailed summary with key points (multiple paragraphs)",
}

QUIZ_STYLES = {
    "mcq": "Only create multiple-choice questions with 4 options each.",
    "short": "Only create short-answer questions.",
    "mixed": "Create a mix of multiple-choice (with 4 options each) and short-answer questions.",
}

# Chat only sees the start of the note
CHAT_CONTEXT_CHARS = 1000
EMOJI_SNIPPET_CHARS = 200

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")


async def best_effort(call: Awaitable[T], default: T, what: str) -> T:
    """Await an optional AI call, falling back to default on any failure."""
    try:
        return await call
    except Exception as e:
        logger.warning(f"{what} failed, using default: {e}")
        return default


def _parse_json(reply: str, what: str) -> Any:
    """Parse JSON out of a model reply that may be fenced or padded."""
    text = _FENCE_RE.sub("", reply.strip())
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost array/object in the reply
    starts = [i for i in (text.find("["), text.find("{")) if i >= 0]
    end = max(text.rfind("]"), text.rfind("}"))
    if starts and end > min(starts):
        try:
            return json.loads(text[min(starts):end + 1])
        except json.JSONDecodeError:
            pass

    logger.error(f"Unparsable {what} reply: {reply[:200]!r}")
    raise UpstreamError(f"Failed to generate {what}")


class NoteAssistant:
    """Prompt layer over a text-generation provider."""

    def __init__(self, provider: LLMProvider, model: str, temperature: float = 0.7):
        self.provider = provider
        self.model = model
        self.temperature = temperature

    async def _complete(self, messages: List[Dict[str, str]], what: str) -> str:
        """Send messages to the provider and return the reply text.

        Raises:
            UpstreamError: On transport errors, error statuses, or replies
                missing the expected fields.
        """
        try:
            response = await self.provider.generate(
                messages, model=self.model, temperature=self.temperature
            )
        except httpx.HTTPError as e:
            logger.error(f"{what} request to {self.provider.provider_name} failed: {e}")
            raise UpstreamError(f"Failed to generate {what}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Malformed {what} response from {self.provider.provider_name}: {e}")
            raise UpstreamError(f"Failed to generate {what}") from e
        return response.content.strip()

    async def _prompt(self, prompt: str, what: str) -> str:
        return await self._complete([{"role": "user", "content": prompt}], what)

    async def suggest_emoji(self, title: str, snippet: str) -> str:
        """Pick a single emoji representing a note."""
        prompt = (
            "Based on this note title and content, suggest a single emoji "
            "that best represents it.\n"
            f"Title: {title}\n"
            f"Content snippet: {snippet[:EMOJI_SNIPPET_CHARS]}...\n\n"
            "Respond with only the emoji and nothing else."
        )
        reply = await self._prompt(prompt, "emoji")
        tokens = reply.split()
        if not tokens:
            raise UpstreamError("Empty emoji suggestion")
        return tokens[0]

    async def summarize(self, text: str, length: str = "medium") -> str:
        if length not in SUMMARY_LENGTHS:
            raise ValidationError(f"Unknown summary length: {length}")
        prompt = (
            f"Summarize the following text in a {SUMMARY_LENGTHS[length]}. "
            "Make key points bold using markdown.\n\n"
            f"Text to summarize:\n{text}"
        )
        return await self._prompt(prompt, "summary")

    async def generate_quiz(
        self,
        text: str,
        difficulty: str = "medium",
        count: int = 5,
        kind: str = "mixed",
    ) -> List[QuizQuestion]:
        """
        Generate quiz questions about a text.

        Args:
            text: Note content to quiz on.
            difficulty: Free-form difficulty hint (easy / medium / hard).
            count: Number of questions to ask for.
            kind: "mcq", "short", or "mixed".

        Returns:
            Parsed questions; the model may return fewer than count.
        """
        if kind not in QUIZ_STYLES:
            raise ValidationError(f"Unknown quiz type: {kind}")
        if count < 1:
            raise ValidationError("Quiz needs at least one question")
        prompt = (
            f'Create a quiz based on this content:\n\n"{text}"\n\n'
            f"Generate {count} questions at {difficulty} difficulty.\n"
            f"{QUIZ_STYLES[kind]}\n\n"
            "Format the output as a JSON array of question objects:\n"
            '[{"id": "1", "type": "mcq" or "short", "question": "Question text", '
            '"options": ["Option A", "Option B", "Option C", "Option D"] (only for mcq), '
            '"answer": "Correct answer"}]\n'
            "Return only the JSON."
        )
        data = _parse_json(await self._prompt(prompt, "quiz"), "quiz")
        return self._validate(List[QuizQuestion], data, "quiz")

    async def translate(self, text: str, target_language: str) -> str:
        if not target_language.strip():
            raise ValidationError("Target language is required")
        prompt = (
            f"Translate the following text into {target_language}:\n\n"
            f"{text}\n\n"
            "Provide only the translated text without any explanations."
        )
        return await self._prompt(prompt, "translation")

    async def generate_mind_map(self, text: str) -> MindMap:
        prompt = (
            "Create a mind map structure based on the following content.\n"
            "Return ONLY JSON in this format:\n"
            '{"central": "Main Topic", "nodes": [{"id": "1", "title": "Branch", '
            '"color": "#3b82f6", "children": [{"id": "1-1", "title": "Sub Topic", '
            '"color": "#60a5fa"}]}]}\n'
            "Capture the key concepts and how they relate. Use a different "
            "color for each branch.\n\n"
            f"Text content:\n{text}"
        )
        data = _parse_json(await self._prompt(prompt, "mind map"), "mind map")
        return self._validate(MindMap, data, "mind map")

    async def review_text(self, text: str) -> List[ReviewItem]:
        """Find grammar, style and content issues with suggested fixes."""
        prompt = (
            "Review the following text for grammar, style, and content issues. "
            "Identify any problems and suggest improvements.\n"
            "Return a JSON array in this format:\n"
            '[{"type": "grammar" or "style" or "content", "snippet": "original text", '
            '"suggestion": "suggested correction", "explanation": "brief explanation"}]\n\n'
            f"Text to review:\n{text}"
        )
        data = _parse_json(await self._prompt(prompt, "review"), "review")
        return self._validate(List[ReviewItem], data, "review")

    async def chat(
        self,
        history: Sequence[Union[ChatMessage, Dict[str, str]]],
        note_context: Optional[str] = None,
    ) -> str:
        """
        Continue a conversation, optionally grounded in a note.

        The note is primed as an opening exchange so the model treats it
        as background rather than as the user's question.
        """
        if not history:
            raise ValidationError("Chat needs at least one message")

        messages: List[Dict[str, str]] = []
        if note_context:
            messages.append({
                "role": "user",
                "content": (
                    "I am working on a note with the following content: "
                    f"{note_context[:CHAT_CONTEXT_CHARS]}... "
                    "Please keep this in mind when answering my questions."
                ),
            })
            messages.append({
                "role": "assistant",
                "content": (
                    "I'll keep this note content in mind when answering your "
                    "questions. What would you like to know?"
                ),
            })
        for msg in history:
            if isinstance(msg, ChatMessage):
                msg = msg.model_dump()
            messages.append({"role": msg["role"], "content": msg["content"]})

        return await self._complete(messages, "chat reply")

    @staticmethod
    def _validate(schema: Any, data: Any, what: str):
        try:
            return TypeAdapter(schema).validate_python(data)
        except PydanticValidationError as e:
            logger.error(f"Unexpected {what} structure: {e}")
            raise UpstreamError(f"Failed to generate {what}") from e


@lru_cache()
def get_note_assistant() -> NoteAssistant:
    """Shared assistant built from settings (cached like get_settings)."""
    settings = get_settings()
    return NoteAssistant(
        provider_from_settings(settings),
        model=settings.llm_model,
        temperature=settings.llm_temperature,
    )
