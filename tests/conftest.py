"""Shared fixtures: a real SQLite-backed store and a scripted LLM provider."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from renotefy.ai import NoteAssistant
from renotefy.identity import AuthSession, Principal
from renotefy.llm.base import LLMProvider, LLMResponse, ModelInfo
from renotefy.notes import NoteRepository
from renotefy.sqlite_db import SQLiteDatabase
from renotefy.store import DocumentStore, SQLiteDocumentStore


class FakeProvider(LLMProvider):
    """Replies from a script; raises `error` instead when one is set."""

    provider_name = "fake"

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        super().__init__(api_key="test-key")
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[List[Dict[str, str]]] = []

    def _get_headers(self) -> Dict[str, str]:
        return {}

    async def list_models(self) -> List[ModelInfo]:
        return [ModelInfo(id="fake-1", name="Fake 1")]

    async def generate(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else "🙂"
        return LLMResponse(content=content, model=model, provider=self.provider_name)


class RecordingStore(DocumentStore):
    """Passes everything through and records each write."""

    def __init__(self, inner: DocumentStore):
        self.inner = inner
        self.writes: List[tuple] = []

    async def create(self, collection: str, doc: Dict[str, Any]) -> str:
        self.writes.append(("create", collection, None))
        return await self.inner.create(collection, doc)

    async def get(self, collection: str, doc_id: str):
        return await self.inner.get(collection, doc_id)

    async def update(self, collection: str, doc_id: str, partial: Dict[str, Any]):
        self.writes.append(("update", collection, doc_id))
        return await self.inner.update(collection, doc_id, partial)

    async def delete(self, collection: str, doc_id: str) -> None:
        self.writes.append(("delete", collection, doc_id))
        await self.inner.delete(collection, doc_id)

    async def query(self, collection, equals=None, array_contains=None, order_by_desc=None):
        return await self.inner.query(
            collection, equals=equals, array_contains=array_contains, order_by_desc=order_by_desc
        )


@pytest.fixture
def alice() -> Principal:
    return Principal(id="u-alice", email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(id="u-bob", email="bob@example.com", display_name="Bob")


@pytest.fixture
def carol() -> Principal:
    return Principal(id="u-carol", email="carol@example.com", display_name=None)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def assistant(provider) -> NoteAssistant:
    return NoteAssistant(provider, model="fake-1")


@pytest.fixture
def run_with_store(tmp_path):
    """Run `scenario(store)` against a fresh SQLite file in one event loop."""

    def run(scenario):
        async def main():
            db = SQLiteDatabase(str(tmp_path / "notes.db"))
            await db.connect()
            try:
                return await scenario(RecordingStore(SQLiteDocumentStore(db)))
            finally:
                await db.close()

        return asyncio.run(main())

    return run


@pytest.fixture
def open_repo(assistant):
    """Async factory: a repository whose session is signed in (or out)."""

    async def factory(store, principal: Optional[Principal] = None, **kwargs) -> NoteRepository:
        kwargs.setdefault("assistant", assistant)
        repo = NoteRepository(store, AuthSession(), **kwargs)
        if principal is None:
            await repo.session.sign_out()
        else:
            await repo.session.sign_in(principal)
        return repo

    return factory
