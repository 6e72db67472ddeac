"""Shared test fixtures: an in-memory Supabase stand-in and per-role users."""

import copy
import os
import re
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT", "1000/minute")
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")
os.environ.setdefault("UPLOAD_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase, get_admin_supabase
from app.main import app
from app.modules.auth.service import clear_auth_cache


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _coerce(value):
    """Turn a PostgREST filter literal into a Python value."""
    if value == "true":
        return True
    if value == "false":
        return False
    if value == "null":
        return None
    return value


def _like_to_regex(pattern):
    return re.compile("^" + ".*".join(re.escape(p) for p in pattern.split("%")) + "$", re.IGNORECASE)


def _split_top_level(expr):
    parts, depth, current = [], 0, ""
    for ch in expr:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += ch
    if current:
        parts.append(current)
    return parts


def _condition(column, op, value):
    if op == "eq":
        return lambda row: row.get(column) == value
    if op == "neq":
        return lambda row: row.get(column) != value
    if op == "in":
        values = list(value)
        return lambda row: row.get(column) in values
    if op == "ilike":
        regex = _like_to_regex(value)
        return lambda row: row.get(column) is not None and bool(regex.match(str(row.get(column))))
    if op == "is":
        return lambda row: row.get(column) is value
    compare = {
        "gt": lambda a, b: a > b,
        "gte": lambda a, b: a >= b,
        "lt": lambda a, b: a < b,
        "lte": lambda a, b: a <= b,
    }[op]
    return lambda row: row.get(column) is not None and compare(row.get(column), value)


def _parse_or(expr):
    conditions = []
    for part in _split_top_level(expr):
        column, op, raw = part.split(".", 2)
        if op == "in":
            value = [v.strip() for v in raw.strip("()").split(",") if v.strip()]
        else:
            value = _coerce(raw)
        conditions.append(_condition(column, op, value))
    return lambda row: any(c(row) for c in conditions)


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.count = None
        self.payload = None
        self.filters = []
        self.ordering = []
        self.limit_n = None
        self.offset_n = 0
        self.single_mode = None

    # Actions

    def select(self, columns="*", count=None):
        self.columns = columns
        self.count = count
        return self

    def insert(self, rows):
        self.action = "insert"
        self.payload = rows
        return self

    def update(self, values):
        self.action = "update"
        self.payload = values
        return self

    def delete(self):
        self.action = "delete"
        return self

    # Filters

    def eq(self, column, value):
        self.filters.append(_condition(column, "eq", value))
        return self

    def neq(self, column, value):
        self.filters.append(_condition(column, "neq", value))
        return self

    def in_(self, column, values):
        self.filters.append(_condition(column, "in", values))
        return self

    def gt(self, column, value):
        self.filters.append(_condition(column, "gt", value))
        return self

    def gte(self, column, value):
        self.filters.append(_condition(column, "gte", value))
        return self

    def lt(self, column, value):
        self.filters.append(_condition(column, "lt", value))
        return self

    def lte(self, column, value):
        self.filters.append(_condition(column, "lte", value))
        return self

    def ilike(self, column, pattern):
        self.filters.append(_condition(column, "ilike", pattern))
        return self

    def is_(self, column, value):
        self.filters.append(_condition(column, "is", _coerce(value)))
        return self

    def or_(self, expr):
        self.filters.append(_parse_or(expr))
        return self

    # Modifiers

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def offset(self, n):
        self.offset_n = n
        return self

    def range(self, start, end):
        self.offset_n = start
        self.limit_n = end - start + 1
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def single(self):
        self.single_mode = "single"
        return self

    # Execution

    def _matching(self):
        return [r for r in self.db.tables.setdefault(self.table, []) if all(f(r) for f in self.filters)]

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        keys = [c.strip() for c in self.columns.split(",")]
        return {k: copy.deepcopy(row.get(k)) for k in keys}

    def execute(self):
        if self.table in self.db.failing_tables and self.action != "select":
            raise Exception(f"simulated failure writing {self.table}")
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = {"id": str(uuid.uuid4()), "created_at": _now_iso(), **copy.deepcopy(item)}
                rows.append(row)
                created.append(copy.deepcopy(row))
            return SimpleNamespace(data=created, count=None)

        if self.action == "update":
            updated = []
            for row in self._matching():
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated, count=None)

        if self.action == "delete":
            doomed = self._matching()
            self.db.tables[self.table] = [r for r in rows if r not in doomed]
            return SimpleNamespace(data=copy.deepcopy(doomed), count=None)

        matched = self._matching()
        for column, desc in reversed(self.ordering):
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        total = len(matched)
        matched = matched[self.offset_n:]
        if self.limit_n is not None:
            matched = matched[:self.limit_n]
        data = [self._project(r) for r in matched]

        if self.single_mode == "maybe":
            # supabase-py returns None rather than an empty response here
            return SimpleNamespace(data=data[0], count=None) if data else None
        if self.single_mode == "single":
            if len(data) != 1:
                raise Exception("JSON object requested, multiple (or no) rows returned")
            return SimpleNamespace(data=data[0], count=None)
        return SimpleNamespace(data=data, count=total if self.count else None)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, content, file_options=None):
        if self.storage.fail_uploads:
            raise Exception("simulated storage failure")
        self.storage.objects[(self.name, path)] = content
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"http://localhost:54321/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop((self.name, path), None)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_uploads = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuthAdmin:
    def __init__(self, auth):
        self.auth = auth

    def create_user(self, attributes):
        user = self.auth.register(attributes["email"], attributes.get("password", ""))
        return SimpleNamespace(user=user)

    def update_user_by_id(self, user_id, attributes):
        for email, (uid, _) in list(self.auth.passwords.items()):
            if uid == user_id and "password" in attributes:
                self.auth.passwords[email] = (uid, attributes["password"])
        return SimpleNamespace(user=SimpleNamespace(id=user_id))

    def delete_user(self, user_id):
        self.auth.deleted.append(user_id)


class FakeAuth:
    def __init__(self):
        self.tokens = {}
        self.passwords = {}
        self.deleted = []
        self.signed_out = 0
        self.admin = FakeAuthAdmin(self)

    def register(self, email, password, user_id=None):
        user_id = user_id or str(uuid.uuid4())
        self.passwords[email] = (user_id, password)
        return SimpleNamespace(id=user_id, email=email, user_metadata={}, app_metadata={})

    def issue_token(self, user_id, email):
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = SimpleNamespace(id=user_id, email=email, user_metadata={}, app_metadata={})
        return token

    def get_user(self, jwt=None):
        user = self.tokens.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_in_with_password(self, credentials):
        entry = self.passwords.get(credentials["email"])
        if not entry or entry[1] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user_id = entry[0]
        token = self.issue_token(user_id, credentials["email"])
        return SimpleNamespace(
            user=SimpleNamespace(id=user_id, email=credentials["email"]),
            session=SimpleNamespace(access_token=token, refresh_token="refresh-" + token),
        )

    def sign_out(self):
        self.signed_out += 1


class FakeSupabase:
    """Enough of supabase.Client for the services: tables, auth and storage."""

    def __init__(self):
        self.tables = {}
        self.failing_tables = set()
        self.auth = FakeAuth()
        self.storage = FakeStorage()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])

    def add(self, table, /, **values):
        return self.table(table).insert(values).execute().data[0]


@pytest.fixture(autouse=True)
def _reset_state():
    limiter.reset()
    clear_auth_cache()
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def db():
    return FakeSupabase()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_admin_supabase] = lambda: db
    return TestClient(app)


@pytest.fixture()
def make_user(db):
    """Create a profile with a live session; returns the profile plus auth headers."""

    def _make(role="worker", status="active", full_name=None, email=None):
        email = email or f"{role}-{uuid.uuid4().hex[:6]}@example.com"
        user = db.auth.register(email, "Password1!")
        profile = db.add(
            "profiles",
            id=user.id,
            email=email,
            full_name=full_name or role.replace("_", " ").title(),
            role=role,
            status=status,
        )
        token = db.auth.issue_token(user.id, email)
        return {**profile, "token": token, "headers": {"Authorization": f"Bearer {token}"}}

    return _make


@pytest.fixture()
def worker(make_user):
    return make_user("worker", full_name="Kim Worker")


@pytest.fixture()
def manager(make_user):
    return make_user("site_manager", full_name="Lee Manager")


@pytest.fixture()
def admin(make_user):
    return make_user("admin", full_name="Park Admin")


@pytest.fixture()
def customer(make_user):
    return make_user("customer_manager", full_name="Choi Partner")


@pytest.fixture()
def site(db):
    return db.add("sites", name="Gangnam A Site", address="Seoul", status="active")


@pytest.fixture()
def assign(db):
    def _assign(user, site_row, role="worker"):
        return db.add(
            "site_assignments",
            site_id=site_row["id"],
            user_id=user["id"],
            role=role,
            assigned_date="2025-01-01",
            is_active=True,
        )

    return _assign
