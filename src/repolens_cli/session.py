"""Simulated user profile and tier entitlement.

There is no real authentication. The profile lives in one JSON file
under the repolens home directory, keyed by a single entry.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .errors import GatedFeature

logger = logging.getLogger(__name__)

PROFILE_FILE = "profile.json"
PROFILE_KEY = "repolens_user"
AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={email}"

FREE = "free"
PRO = "pro"
TIERS = (FREE, PRO)

PRO_REQUIRED = "ZIP Analysis is a Pro feature. Please upgrade your account."


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    tier: str = FREE
    avatar_url: str = ""

    @property
    def is_pro(self) -> bool:
        return self.tier == PRO

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "tier": self.tier,
            "avatarUrl": self.avatar_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        tier = data.get("tier", FREE)
        if tier not in TIERS:
            raise ValueError(f"Unknown tier: {tier!r}")
        return cls(
            id=data["id"],
            email=data["email"],
            name=data.get("name") or data["email"].split("@")[0],
            tier=tier,
            avatar_url=data.get("avatarUrl", ""),
        )


class ProfileStore:
    """Durable key-value store holding the serialized user."""

    def __init__(self, home: Path):
        self.path = Path(home) / PROFILE_FILE

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable profile store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> User | None:
        raw = self._read_all().get(PROFILE_KEY)
        if raw is None:
            return None
        if not isinstance(raw, dict):
            logger.warning("Ignoring corrupt profile entry: %s", type(raw).__name__)
            return None
        try:
            return User.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring corrupt profile entry: %s", e)
            return None

    def save(self, user: User) -> None:
        data = self._read_all()
        data[PROFILE_KEY] = user.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))

    def clear(self) -> None:
        data = self._read_all()
        if data.pop(PROFILE_KEY, None) is None:
            return
        self.path.write_text(json.dumps(data, indent=2))


class Session:
    """The current user, passed explicitly into every entitlement check."""

    def __init__(self, store: ProfileStore, user: User | None = None):
        self.store = store
        self.user = user

    @classmethod
    def load(cls, store: ProfileStore) -> Session:
        return cls(store, store.load())

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def login(self, email: str) -> User:
        email = email.strip()
        if "@" not in email:
            raise ValueError(f"Not an email address: {email!r}")
        self.user = User(
            id=uuid.uuid4().hex[:9],
            email=email,
            name=email.split("@")[0],
            tier=FREE,
            avatar_url=AVATAR_URL.format(email=email),
        )
        self.store.save(self.user)
        logger.info("Signed in as %s", email)
        return self.user

    def logout(self) -> None:
        self.user = None
        self.store.clear()

    def upgrade(self) -> User:
        if self.user is None:
            raise GatedFeature("Sign in before upgrading your account.")
        self.user = replace(self.user, tier=PRO)
        self.store.save(self.user)
        return self.user


def require_pro(session: Session) -> None:
    """Raise GatedFeature unless the session's user is on the pro tier."""
    if session.user is None or not session.user.is_pro:
        raise GatedFeature(PRO_REQUIRED)
