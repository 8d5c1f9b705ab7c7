"""
Per-token session registry for the HTTP layer.

Each bearer token gets its own AuthSession and NoteRepository, so the
HTTP API behaves like one long-lived client per login: caches survive
between requests and are reconciled after each mutation.

Sessions idle for longer than the token lifetime are dropped, and the
least recently used ones are evicted once the registry is full.
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from renotefy.ai import NoteAssistant
from renotefy.identity import AuthSession, Principal
from renotefy.models.note import DEFAULT_EMOJI, DEFAULT_NOTE_TITLE
from renotefy.notes import NoteRepository
from renotefy.store import DocumentStore, ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 24 * 3600.0
DEFAULT_MAX_SESSIONS = 1000


class SessionRegistry:
    """
    Builds and tracks the repositories behind signed-in tokens.

    Args:
        idle_timeout: Seconds a session may go unused before it is dropped.
        max_sessions: Upper bound on live sessions; the least recently
            used is evicted first.
        clock: Monotonic time source, in seconds.
    """

    def __init__(
        self,
        store: DocumentStore,
        assistant: Optional[NoteAssistant] = None,
        object_store: Optional[ObjectStore] = None,
        default_emoji: str = DEFAULT_EMOJI,
        default_title: str = DEFAULT_NOTE_TITLE,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.assistant = assistant
        self.object_store = object_store
        self.default_emoji = default_emoji
        self.default_title = default_title
        self.idle_timeout = idle_timeout
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        # token -> (repository, last used); least recently used first
        self._sessions: "OrderedDict[str, Tuple[NoteRepository, float]]" = OrderedDict()

    def _new_repository(self) -> NoteRepository:
        return NoteRepository(
            self.store,
            AuthSession(),
            assistant=self.assistant,
            object_store=self.object_store,
            default_emoji=self.default_emoji,
            default_title=self.default_title,
        )

    def _drop(self, token: str) -> None:
        repo, _ = self._sessions.pop(token)
        repo.close()

    def _prune(self) -> None:
        cutoff = self._clock() - self.idle_timeout
        expired = [t for t, (_, used) in self._sessions.items() if used <= cutoff]
        for token in expired:
            self._drop(token)
        while len(self._sessions) > self.max_sessions:
            self._drop(next(iter(self._sessions)))
        if expired:
            logger.info(f"Dropped {len(expired)} idle sessions ({len(self._sessions)} active)")

    def _touch(self, token: str, repo: NoteRepository) -> None:
        self._sessions[token] = (repo, self._clock())
        self._sessions.move_to_end(token)

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, token: str) -> Optional[NoteRepository]:
        self._prune()
        entry = self._sessions.get(token)
        if entry is None:
            return None
        self._touch(token, entry[0])
        return entry[0]

    async def open(self, token: str, principal: Principal) -> NoteRepository:
        """
        Return the repository for a token, signing it in if needed.

        A token whose session was lost (e.g. after a restart or an idle
        timeout) gets a fresh one; signing in loads its caches.
        """
        repo = self.get(token)
        if repo is not None and repo.principal == principal:
            return repo
        if repo is not None:
            self._drop(token)

        repo = self._new_repository()
        await repo.session.sign_in(principal)
        self._touch(token, repo)
        self._prune()
        logger.info(f"Opened session for {principal.id} ({len(self._sessions)} active)")
        return repo

    async def close(self, token: str) -> None:
        """Sign out and forget the session behind a token."""
        entry = self._sessions.pop(token, None)
        if entry is None:
            return
        repo = entry[0]
        await repo.session.sign_out()
        repo.close()

    async def anonymous(self) -> NoteRepository:
        """A signed-out repository; only the public set is loaded."""
        repo = self._new_repository()
        await repo.session.sign_out()
        return repo


_registry: Optional[SessionRegistry] = None


def init_session_registry(store: DocumentStore, **kwargs) -> SessionRegistry:
    """Create the process-wide registry. Called from the app lifespan."""
    global _registry
    _registry = SessionRegistry(store, **kwargs)
    return _registry


def get_session_registry() -> SessionRegistry:
    """
    Raises:
        RuntimeError: If init_session_registry() hasn't been called yet.
    """
    if _registry is None:
        raise RuntimeError("Session registry not initialized")
    return _registry
