"""
Shared fixtures: an in-memory Supabase stand-in, a scripted OpenAI client and
an httpx MockTransport wired into the shared HTTP client manager.
"""

import base64
import copy
import re
import uuid
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api import dependencies
from app.core.config import settings
from app.features.ai import AIService
from app.features.database import DatabaseClient
from app.features.security import RateLimiter
from app.services.http_client import http_client_manager

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TEST_ENCRYPTION_KEY = base64.b64encode(b"k" * 32).decode()


# =========================================================================
# SUPABASE
# =========================================================================

def _as_text(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _like(pattern: str, value) -> bool:
    if value is None:
        return False
    regex = ".*".join(re.escape(part) for part in pattern.split("%"))
    return re.fullmatch(regex, str(value), re.IGNORECASE | re.DOTALL) is not None


def _condition(expr: str):
    column, op, value = expr.split(".", 2)
    if op == "eq":
        return lambda row: _as_text(row.get(column)) == value
    if op == "neq":
        return lambda row: _as_text(row.get(column)) != value
    if op == "is":
        return lambda row: _as_text(row.get(column)) == value
    if op == "ilike":
        return lambda row: _like(value, row.get(column))
    raise ValueError(f"Unsupported or_ operator: {op}")


class FakeQuery:
    def __init__(self, store, table_name):
        self.store = store
        self.table_name = table_name
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.order_by = None
        self.max_rows = None

    @property
    def rows(self):
        return self.store.tables.setdefault(self.table_name, [])

    # actions
    def select(self, *columns, **kwargs):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.action, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def is_(self, column, value):
        self.filters.append(lambda row: _as_text(row.get(column)) == _as_text(value))
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) < value)
        return self

    def ilike(self, column, pattern):
        self.filters.append(lambda row: _like(pattern, row.get(column)))
        return self

    def or_(self, expression):
        conditions = [_condition(part) for part in expression.split(",")]
        self.filters.append(lambda row: any(cond(row) for cond in conditions))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    # execution
    def _matching(self):
        return [row for row in self.rows if all(f(row) for f in self.filters)]

    def _insert_one(self, row):
        row = {"id": str(uuid.uuid4()), **copy.deepcopy(row)}
        self.rows.append(row)
        return copy.deepcopy(row)

    def _upsert_one(self, row):
        keys = (self.on_conflict or "id").split(",")
        for existing in self.rows:
            if all(k in row and existing.get(k) == row[k] for k in keys):
                existing.update(copy.deepcopy(row))
                return copy.deepcopy(existing)
        return self._insert_one(row)

    def execute(self):
        if self.table_name in self.store.failing_tables:
            raise RuntimeError(f"{self.table_name} is unavailable")

        self.store.calls.append((self.table_name, self.action))
        payload = self.payload if isinstance(self.payload, list) else [self.payload]

        if self.action == "insert":
            data = [self._insert_one(row) for row in payload]
        elif self.action == "upsert":
            data = [self._upsert_one(row) for row in payload]
        elif self.action == "update":
            data = []
            for row in self._matching():
                row.update(copy.deepcopy(self.payload))
                data.append(copy.deepcopy(row))
        elif self.action == "delete":
            data = self._matching()
            for row in data:
                self.rows.remove(row)
        else:
            data = [copy.deepcopy(row) for row in self._matching()]
            if self.order_by:
                column, desc = self.order_by
                data.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
            if self.max_rows is not None:
                data = data[:self.max_rows]

        return SimpleNamespace(data=data)


class FakeRPC:
    def __init__(self, store, name, params):
        self.store, self.name, self.params = store, name, params

    def execute(self):
        self.store.rpc_calls.append((self.name, self.params))
        persons = self.store.tables.setdefault("persons", [])

        if self.name == "archive_contact":
            for row in persons:
                if row["id"] == self.params["p_contact_id"] and row["user_id"] == self.params["p_user_id"]:
                    row["archive_status"] = self.params["p_archived"]
                    row["archive_reason"] = self.params["p_reason"]
            return SimpleNamespace(data=True)

        if self.name == "merge_contacts":
            duplicate = self.params["duplicate_id"]
            self.store.tables["persons"] = [
                row for row in persons
                if not (row["id"] == duplicate and row["user_id"] == self.params["p_user_id"])
            ]
            return SimpleNamespace(data=True)

        return SimpleNamespace(data=None)


class FakeAuth:
    def __init__(self):
        self.sessions = {}

    def get_user(self, token):
        user_id = self.sessions.get(token)
        if user_id is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user_id))


class FakeSupabase:
    """Just enough of supabase-py's query builder for the repositories."""

    def __init__(self):
        self.tables = {}
        self.failing_tables = set()
        self.calls = []
        self.rpc_calls = []
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRPC(self, name, params)

    def seed(self, table, *rows):
        bucket = self.tables.setdefault(table, [])
        for row in rows:
            bucket.append({"id": str(uuid.uuid4()), **row})
        return bucket[-len(rows):]


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def db(supabase):
    return DatabaseClient(supabase)


# =========================================================================
# OPENAI
# =========================================================================

class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if self.replies else "OK"
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=8),
        )


class FakeOpenAI:
    def __init__(self, *replies):
        self.chat = SimpleNamespace(completions=FakeCompletions(replies))

    @property
    def calls(self):
        return self.chat.completions.calls


@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def ai_service(openai_client):
    return AIService(client=openai_client)


# =========================================================================
# HTTP
# =========================================================================

class MockHTTP:
    """Routes requests by (method, url without query) to canned responses."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, url, status_code=200, json=None):
        self.routes.setdefault((method, url), []).append((status_code, json))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?")[0]
        queue = self.routes.get((request.method, url))
        if not queue:
            return httpx.Response(404, json={"error": "not mocked"})
        status_code, body = queue[0] if len(queue) == 1 else queue.pop(0)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def mock_http(monkeypatch):
    mock = MockHTTP()
    client = httpx.AsyncClient(transport=httpx.MockTransport(mock.handler))
    monkeypatch.setattr(http_client_manager, "_client", client)
    monkeypatch.setattr(http_client_manager, "_initialized", True)
    return mock


# =========================================================================
# SETTINGS / APP
# =========================================================================

@pytest.fixture
def encryption_key(monkeypatch):
    monkeypatch.setattr(settings, "ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
    return TEST_ENCRYPTION_KEY


@pytest.fixture
def oauth_settings(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "google-client")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "google-secret")
    monkeypatch.setattr(settings, "MICROSOFT_CLIENT_ID", "ms-client")
    monkeypatch.setattr(settings, "MICROSOFT_CLIENT_SECRET", "ms-secret")
    monkeypatch.setattr(settings, "BASE_URL", "https://api.example.com")
    monkeypatch.setattr(settings, "FRONTEND_URL", "https://app.example.com")
    monkeypatch.setattr(settings, "OAUTH_STATE_SECRET", "state-secret")


@pytest.fixture
def app(db, ai_service):
    from main import app as fastapi_app

    limiter = RateLimiter()
    fastapi_app.dependency_overrides[dependencies.get_db] = lambda: db
    fastapi_app.dependency_overrides[dependencies.get_current_user] = lambda: USER_ID
    fastapi_app.dependency_overrides[dependencies.get_ai_service] = lambda: ai_service
    fastapi_app.dependency_overrides[dependencies.get_limiter] = lambda: limiter
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
