import os

os.environ.setdefault("POSTGRES_DB", "inventory_test")
os.environ.setdefault("POSTGRES_USER", "inventory")
os.environ.setdefault("db_password", "inventory")
os.environ.setdefault("secret_key", "test-secret")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")

import pytest
import importlib


SERVICE_MODULES = [
    "app.services.category_service",
    "app.services.event_service",
    "app.services.seat_distribution_service",
]

class _StubSpan:
    def __init__(
        self,
        *,
        scope: str,
        action: str,
        object_type: str | None = None,
        object_id: int | None = None,
        organizer_id: int | None = None,
        event_id: int | None = None,
        category_id: int | None = None,
        meta: dict | None = None,
        **_ignored
    ):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.organizer_id = organizer_id
        self.event_id = event_id
        self.category_id = category_id
        self.meta = dict(meta or {})
        self.entered = False
        self.exited = False
        self.exit_args = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True
        self.exit_args = (exc_type, exc, tb)
        return False


@pytest.fixture(autouse=True)
def auditspan_stub(mocker, request):
    instances = []

    def factory(*a, **k):
        s = _StubSpan(*a, **k)
        instances.append(s)
        return s

    for mod in SERVICE_MODULES:
        importlib.import_module(mod)
        mocker.patch(f"{mod}.AuditSpan", side_effect=factory)

    return instances
