"""
Pytest configuration and shared fakes.

This file adds the project root to the Python path so that tests can import
the domain, repositories, services and api packages, and provides in-memory
stand-ins for the Supabase query builder and the OpenAI client so no test
touches the network.
"""

import asyncio
import copy
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


CLIENT_ID = UUID("00000000-0000-0000-0000-0000000000c1")
OTHER_CLIENT_ID = UUID("00000000-0000-0000-0000-0000000000c2")
USER_ID = UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_USER_ID = UUID("00000000-0000-0000-0000-0000000000a2")

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


# ============================================================================
# Supabase fake
# ============================================================================

class FakeQuery:
    """Chainable subset of the PostgREST query builder used by the repositories."""

    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._filters: List[Tuple[str, Any]] = []
        self._limit: Optional[int] = None
        self._order: Optional[Tuple[str, bool]] = None
        self._upsert: Optional[Tuple[Dict[str, Any], List[str]]] = None

    def select(self, *_columns: str) -> "FakeQuery":
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def upsert(self, payload: Dict[str, Any], on_conflict: str = "") -> "FakeQuery":
        self._upsert = (payload, on_conflict.split(","))
        return self

    def execute(self) -> SimpleNamespace:
        self._db.executed.append(self._table)
        if self._db.fail_with is not None:
            return SimpleNamespace(data=None, error=self._db.fail_with)

        rows = self._db.tables.setdefault(self._table, [])

        if self._upsert is not None:
            payload, keys = self._upsert
            # A conflicting row is replaced as a whole, like ON CONFLICT DO UPDATE
            # with every column in the payload.
            rows[:] = [row for row in rows if any(row.get(k) != payload.get(k) for k in keys)]
            rows.append(copy.deepcopy(payload))
            return SimpleNamespace(data=[copy.deepcopy(payload)], error=None)

        result = [row for row in rows if all(str(row.get(c)) == str(v) for c, v in self._filters)]
        if self._order is not None:
            column, desc = self._order
            result.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self._limit is not None:
            result = result[: self._limit]
        return SimpleNamespace(data=copy.deepcopy(result), error=None)


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.executed: List[str] = []
        self.fail_with: Optional[str] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def add_client(self, client_id: UUID, name: str = "Ada Lovelace", stages: Tuple[str, ...] = ()) -> None:
        self.tables.setdefault("clients", []).append(
            {
                "id": str(client_id),
                "name": name,
                "company": "Analytical Engines",
                "email": "ada@example.com",
                "created_at": "2025-01-01T12:00:00Z",
            }
        )
        deals = self.tables.setdefault("deals", [])
        for index, stage in enumerate(stages):
            deals.append(
                {
                    "id": f"00000000-0000-0000-0000-{len(deals) + 1:012d}",
                    "client_id": str(client_id),
                    "title": f"Deal {index + 1}",
                    "stage": stage,
                    "amount": 1000,
                }
            )


@pytest.fixture
def fake_supabase(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    """Route every repository call to an in-memory table store."""

    fake = FakeSupabase()
    monkeypatch.setattr("repositories.client.get_supabase", lambda: fake)
    return fake


# ============================================================================
# OpenAI fake
# ============================================================================

class FakeCompletions:
    def __init__(self, content: Optional[str] = None, error: Optional[BaseException] = None, delay: float = 0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


class FakeOpenAI:
    def __init__(self, completions: FakeCompletions):
        self.chat = SimpleNamespace(completions=completions)


@pytest.fixture
def make_enrichment_service():
    """Build an ImageEnrichmentService backed by a scripted fake OpenAI client."""

    from services.enrichment_service import ImageEnrichmentService

    def _make(content: Optional[str] = None, error: Optional[BaseException] = None, delay: float = 0.0, timeout: float = 5.0):
        completions = FakeCompletions(content=content, error=error, delay=delay)
        service = ImageEnrichmentService(client=FakeOpenAI(completions), model="test-vision", timeout_seconds=timeout)
        return service, completions

    return _make
