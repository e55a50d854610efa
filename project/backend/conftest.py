"""
Pytest configuration and shared fixtures.

Provides in-memory stand-ins for the Supabase database and storage clients so
services and routes can be exercised without network access.
"""

import copy
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest


def pytest_configure(config):
    """Set up environment variables before any imports."""
    os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "test_service_key_1234567890123456789012345678901234567890")
    os.environ.setdefault("SUPABASE_ANON_KEY", "test_anon_key_1234567890123456789012345678901234567890")
    os.environ.setdefault("SUPABASE_JWT_SECRET", "test_jwt_secret_123456789012345678901234567890")
    os.environ.setdefault("AI_GATEWAY_API_KEY", "sk-test123456789012345678901234567890")
    os.environ.setdefault("REPLICATE_API_TOKEN", "r8_test123456789012345678901234567890")
    os.environ.setdefault("FRONTEND_URL", "https://roastme.test")
    os.environ.setdefault("ENVIRONMENT", "development")
    os.environ.setdefault("LOG_LEVEL", "DEBUG")
    os.environ.setdefault("LOG_DIR", "")
    os.environ.setdefault("AI_MOCK_MODE", "false")


class FakeQuery:
    """Chainable query mirroring AsyncTableQueryBuilder over in-memory rows."""

    def __init__(self, db: "FakeDatabase", table_name: str):
        self.db = db
        self.table_name = table_name
        self._op = "select"
        self._payload: Any = None
        self._filters: List[tuple] = []
        self._limit: Optional[int] = None
        self._not_null: List[str] = []
        self._order: Optional[tuple] = None

    def select(self, *args, **kwargs):
        self._op = "select"
        return self

    def insert(self, payload, *args, **kwargs):
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload, *args, **kwargs):
        self._op = "update"
        self._payload = payload
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def is_not_null(self, column):
        self._not_null.append(column)
        return self

    def order(self, column, desc=False, **kwargs):
        self._order = (column, desc)
        return self

    def limit(self, count, *args, **kwargs):
        self._limit = count
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        if any(row.get(column) is None for column in self._not_null):
            return False
        return all(row.get(column) == value for column, value in self._filters)

    async def execute(self):
        error = self.db.pop_failure(self.table_name, self._op)
        if error is not None:
            raise error

        rows = self.db.tables.setdefault(self.table_name, [])
        self.db.calls.append((self.table_name, self._op, copy.deepcopy(self._payload), list(self._filters)))

        if self._op == "insert":
            new_rows = self._payload if isinstance(self._payload, list) else [self._payload]
            rows.extend(copy.deepcopy(new_rows))
            return SimpleNamespace(data=copy.deepcopy(new_rows))

        matched = [row for row in rows if self._matches(row)]
        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
        if self._order is not None:
            column, desc = self._order
            matched = sorted(matched, key=lambda row: row.get(column) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[:self._limit]
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeDatabase:
    """In-memory DatabaseClient replacement."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.rpc_calls: List[tuple] = []
        self.rpc_error: Optional[Exception] = None
        self.healthy = True
        self._failures: Dict[tuple, List[Exception]] = {}

    def table(self, table_name: str) -> FakeQuery:
        return FakeQuery(self, table_name)

    def fail_next(self, table_name: str, op: str, error: Exception) -> None:
        """Make the next `op` on `table_name` raise `error`."""
        self._failures.setdefault((table_name, op), []).append(error)

    def pop_failure(self, table_name: str, op: str) -> Optional[Exception]:
        queue = self._failures.get((table_name, op))
        return queue.pop(0) if queue else None

    def writes(self, table_name: str, op: str) -> List[Any]:
        return [payload for name, call_op, payload, _ in self.calls if name == table_name and call_op == op]

    async def rpc(self, function_name: str, params: Optional[Dict[str, Any]] = None):
        self.rpc_calls.append((function_name, params or {}))
        if self.rpc_error is not None:
            raise self.rpc_error
        return SimpleNamespace(data=None)

    async def health_check(self) -> bool:
        return self.healthy


class FakeStorage:
    """In-memory StorageClient replacement."""

    def __init__(self, bucket: str = "roast-me-ai"):
        self.bucket = bucket
        self.files: Dict[str, bytes] = {}
        self.content_types: Dict[str, Optional[str]] = {}
        self.upload_error: Optional[Exception] = None
        self.healthy = True

    async def upload_file(self, path: str, file_data: bytes, content_type: Optional[str] = None) -> str:
        if self.upload_error is not None:
            raise self.upload_error
        self.files[path] = file_data
        self.content_types[path] = content_type
        return f"https://test.supabase.co/storage/v1/object/public/{self.bucket}/{path}"

    async def list_buckets(self) -> List[str]:
        return [self.bucket]

    async def health_check(self) -> bool:
        return self.healthy


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def settings():
    from shared.config import get_settings
    return get_settings()


@pytest.fixture
def analysis_payload() -> Dict[str, Any]:
    """Normalized analysis as stored in generation_params."""
    return {
        "features": [
            {"name": "Nose", "value": "Prominent nose", "confidence": 9, "exaggeration_factor": 8},
            {"name": "Ears", "value": "Large ears", "confidence": 7, "exaggeration_factor": 6},
        ],
        "character_style": "pixar",
        "dominant_color": "blue",
        "personality_traits": ["confident", "goofy"],
        "gender": "male",
        "age_range": "adult",
    }


@pytest.fixture
def roast_payload() -> Dict[str, Any]:
    return {
        "title": "Nose Knows",
        "roast_text": "Your nose entered the room five minutes before you did.",
        "punchline": "Smell you later!",
        "figurine_name": "Captain Schnoz",
    }


@pytest.fixture
def character_row(analysis_payload, roast_payload) -> Dict[str, Any]:
    """A character row in status=processing."""
    return {
        "id": "char-1",
        "user_id": None,
        "anon_id": "anon-token-1",
        "image_id": "img-1",
        "original_image_url": "https://example.com/a.jpg",
        "generated_image_url": None,
        "generation_params": {
            **analysis_payload,
            "roast_content": roast_payload,
            "status": "processing",
            "attempt": 1,
        },
        "og_title": "Hilarious pixar Roast Figurine | Roast Me Characters",
        "og_description": "Get roasted!",
        "seo_slug": "pixar-roast-nose-ears-abc",
        "public": True,
        "views_count": 0,
        "short_code": None,
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
    }
