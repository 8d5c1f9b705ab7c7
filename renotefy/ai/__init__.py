"""
AI helpers package.
Prompts and parsing for the note-level AI features.
"""

from renotefy.ai.assistant import NoteAssistant, best_effort, get_note_assistant

__all__ = [
    "NoteAssistant",
    "best_effort",
    "get_note_assistant",
]
