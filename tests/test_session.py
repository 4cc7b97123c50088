"""Tests for the simulated profile store and entitlement checks."""

import json

import pytest

from repolens_cli.errors import GatedFeature
from repolens_cli.session import (
    PRO,
    PROFILE_KEY,
    ProfileStore,
    Session,
    User,
    require_pro,
)


@pytest.fixture
def store(tmp_path):
    return ProfileStore(tmp_path / "home")


class TestProfileStore:
    def test_empty(self, store):
        assert store.load() is None

    def test_save_and_load(self, store):
        user = User(id="abc123", email="ada@example.com", name="ada")
        store.save(user)
        assert store.load() == user
        raw = json.loads(store.path.read_text())
        assert raw[PROFILE_KEY]["email"] == "ada@example.com"

    def test_clear(self, store):
        store.save(User(id="1", email="a@b.c", name="a"))
        store.clear()
        assert store.load() is None

    def test_clear_without_file(self, store):
        store.clear()
        assert not store.path.exists()

    def test_corrupt_file(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        assert store.load() is None

    @pytest.mark.parametrize("entry", ["garbage", ["a@b.c"], 42])
    def test_non_object_entry(self, store, entry):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({PROFILE_KEY: entry}))
        assert store.load() is None

    def test_unknown_tier(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({PROFILE_KEY: {"id": "1", "email": "a@b.c", "tier": "gold"}}))
        assert store.load() is None


class TestSession:
    def test_login_derives_profile(self, store):
        session = Session.load(store)
        user = session.login("grace@example.com")
        assert user.name == "grace"
        assert user.tier == "free"
        assert "grace@example.com" in user.avatar_url
        assert Session.load(store).user == user

    def test_login_rejects_non_email(self, store):
        with pytest.raises(ValueError):
            Session(store).login("grace")

    def test_upgrade_persists(self, store):
        session = Session(store)
        session.login("grace@example.com")
        user = session.upgrade()
        assert user.tier == PRO
        assert Session.load(store).user.is_pro

    def test_upgrade_requires_user(self, store):
        with pytest.raises(GatedFeature):
            Session(store).upgrade()

    def test_logout(self, store):
        session = Session(store)
        session.login("grace@example.com")
        session.logout()
        assert session.user is None
        assert Session.load(store).user is None


class TestRequirePro:
    def test_anonymous(self, store):
        with pytest.raises(GatedFeature, match="Pro feature"):
            require_pro(Session(store))

    def test_free_user(self, store):
        session = Session(store)
        session.login("a@example.com")
        with pytest.raises(GatedFeature):
            require_pro(session)

    def test_pro_user(self, store):
        session = Session(store, User(id="1", email="a@example.com", name="a", tier=PRO))
        require_pro(session)
