import json
import os
import pytest
from unittest.mock import patch

from eventify.core.config import settings
from eventify.core.security import get_password_hash
from eventify.models.db_models import User, UserRole
from eventify.services.local_store import LocalStore
from eventify.services.store import set_store

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PASSWORD = "secret"

# Hash once, bcrypt is slow
_PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def studio_config():
    with patch.object(settings, "STUDIO_CONFIG_PATH", os.path.join(ROOT, "data", "studio_config.json")):
        yield


@pytest.fixture
def store(tmp_path):
    local = LocalStore(str(tmp_path / "store.json"))
    set_store(local)
    yield local
    set_store(None)


@pytest.fixture
def admin():
    return User(id="user-admin", username="admin", name="Admin User", role=UserRole.ADMIN, password_hash=_PASSWORD_HASH)


@pytest.fixture
def alice():
    return User(id="user-alice", username="alice", name="Alice", phone="+91 98000 00001", password_hash=_PASSWORD_HASH)


@pytest.fixture
def bob():
    return User(id="user-bob", username="bob", name="Bob", password_hash=_PASSWORD_HASH)


@pytest.fixture
def seeded_store(store, admin, alice, bob):
    """Store holding an admin and two photographers, no bookings."""
    doc = {"users": [u.to_record() for u in (admin, alice, bob)], "events": {}, "meta": {}}
    with open(store.path, "w", encoding="utf-8") as f:
        json.dump(doc, f)
    return store
