"""Pluggable user profile storage: in-memory for dev/test, Firestore for production.

``get_user_store()`` returns a singleton whose concrete type depends on
whether the app is running in mock mode.
"""

import abc
import logging
import threading
from datetime import datetime, timezone

from google.cloud.firestore_v1 import DocumentReference

from petcare.db.firestore import get_firestore_client, is_mock_mode
from petcare.errors import ConflictError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------

class UserStore(abc.ABC):
    """Common interface for user persistence."""

    @abc.abstractmethod
    def create_user(
        self,
        uid: str,
        email: str | None,
        username: str,
        photo_url: str | None = None,
    ) -> dict:
        """Create a new user profile. Raises ``ConflictError`` if it exists."""

    @abc.abstractmethod
    def get_user(self, uid: str) -> dict | None:
        """Return user profile by UID."""

    @abc.abstractmethod
    def update_user(self, uid: str, **fields) -> dict | None:
        """Update profile fields and return the updated document."""

    @abc.abstractmethod
    def delete_user(self, uid: str) -> bool:
        """Delete the profile; return *False* when there was none."""


def _user_exists(uid: str) -> ConflictError:
    return ConflictError(f"User '{uid}' already has a profile", code="user_already_exists")


# ---------------------------------------------------------------------------
# In-memory implementation (mock / test mode)
# ---------------------------------------------------------------------------

class InMemoryUserStore(UserStore):
    """Dict-backed store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, dict] = {}

    def create_user(
        self,
        uid: str,
        email: str | None,
        username: str,
        photo_url: str | None = None,
    ) -> dict:
        with self._lock:
            if uid in self._users:
                raise _user_exists(uid)
            user_data = {
                "id": uid,
                "username": username,
                "email": email,
                "photo_url": photo_url,
                "created_at": datetime.now(timezone.utc),
            }
            self._users[uid] = user_data
        logger.info("Created user profile for %s", uid)
        return dict(user_data)

    def get_user(self, uid: str) -> dict | None:
        user_data = self._users.get(uid)
        return dict(user_data) if user_data else None

    def update_user(self, uid: str, **fields) -> dict | None:
        with self._lock:
            user_data = self._users.get(uid)
            if user_data is None:
                return None
            user_data.update(fields)
            return dict(user_data)

    def delete_user(self, uid: str) -> bool:
        with self._lock:
            return self._users.pop(uid, None) is not None


# ---------------------------------------------------------------------------
# Firestore implementation
# ---------------------------------------------------------------------------

class FirestoreUserStore(UserStore):
    """Firestore-backed store using ``users/{uid}`` documents."""

    COLLECTION = "users"

    def _ref(self, uid: str) -> DocumentReference:
        return get_firestore_client().collection(self.COLLECTION).document(uid)

    def create_user(
        self,
        uid: str,
        email: str | None,
        username: str,
        photo_url: str | None = None,
    ) -> dict:
        ref = self._ref(uid)
        snap = ref.get()
        if snap.exists:
            raise _user_exists(uid)
        now = datetime.now(timezone.utc)
        doc = {
            "username": username,
            "email": email,
            "photo_url": photo_url,
            "created_at": now,
        }
        ref.set(doc)
        logger.info("Created Firestore user doc for %s", uid)
        return {"id": uid, **doc}

    def get_user(self, uid: str) -> dict | None:
        snap = self._ref(uid).get()
        if not snap.exists:
            return None
        data = snap.to_dict()
        data["id"] = uid
        return data

    def update_user(self, uid: str, **fields) -> dict | None:
        ref = self._ref(uid)
        snap = ref.get()
        if not snap.exists:
            return None
        ref.update(fields)
        updated = ref.get().to_dict()
        updated["id"] = uid
        return updated

    def delete_user(self, uid: str) -> bool:
        ref = self._ref(uid)
        if not ref.get().exists:
            return False
        ref.delete()
        logger.info("Deleted Firestore user doc for %s", uid)
        return True


# ---------------------------------------------------------------------------
# Singleton factory
# ---------------------------------------------------------------------------
_store: UserStore | None = None


def get_user_store() -> UserStore:
    """Return the singleton ``UserStore`` instance."""
    global _store
    if _store is None:
        if is_mock_mode():
            logger.info("Using InMemoryUserStore (mock mode)")
            _store = InMemoryUserStore()
        else:
            logger.info("Using FirestoreUserStore")
            _store = FirestoreUserStore()
    return _store
