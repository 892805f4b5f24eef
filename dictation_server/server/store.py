"""Thread-safe in-memory store for users, dictations, and dictionary entries.

WHY: The HTTP API needs per-user records: accounts, session tokens,
saved dictations, the phrase dictionary, and recognizer settings. The
durable relational store is an external collaborator; this in-memory
store provides the same operations for a single-process deployment and
for tests.

HOW: Four dataclasses hold the records. MemoryStore keeps them in
dicts keyed by id and guards every access with one threading.Lock.
Every lookup that takes a record id also takes the owning user id, so a
record belonging to another user behaves exactly like a missing one.

RULES:
- All public methods acquire self._lock
- Ids are UUID4 hex strings generated at creation time
- Lists are returned newest first (created_at, then insertion order)
- Lookups of missing or foreign records return None / False, never raise
- Email addresses are unique; create_user raises DuplicateEmailError
- Records are returned as live instances; callers must not mutate them
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class DuplicateEmailError(ValueError):
    """Raised when registering an email address that is already in use."""


@dataclass
class User:
    """An account.

    RULES:
    - password_hash is never serialized to clients
    - deepgram_options holds validated DeepgramSettings as a plain dict
    """

    id: str
    name: str
    email: str
    password_hash: str
    created_at: float
    deepgram_options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Dictation:
    id: str
    user_id: str
    text: str
    duration_sec: int
    created_at: float
    seq: int = 0


@dataclass
class DictionaryEntry:
    id: str
    user_id: str
    phrase: str
    weight: float
    created_at: float
    seq: int = 0


def _newest_first(records):
    return sorted(records, key=lambda r: (r.created_at, r.seq), reverse=True)


class MemoryStore:
    """Dict-backed store with one lock around all state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._users: Dict[str, User] = {}
        self._tokens: Dict[str, str] = {}
        self._dictations: Dict[str, Dictation] = {}
        self._dictionary: Dict[str, DictionaryEntry] = {}

    def clear(self) -> None:
        with self._lock:
            self._users.clear()
            self._tokens.clear()
            self._dictations.clear()
            self._dictionary.clear()

    # ------------------------------------------------------------------
    # Users and tokens
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise DuplicateEmailError("Email already in use")
            user = User(
                id=uuid.uuid4().hex,
                name=name,
                email=email,
                password_hash=password_hash,
                created_at=time.time(),
            )
            self._users[user.id] = user
        logger.info("Registered user %s", user.id)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user
            return None

    def add_token(self, token: str, user_id: str) -> None:
        with self._lock:
            self._tokens[token] = user_id

    def resolve_token(self, token: str) -> Optional[User]:
        with self._lock:
            user_id = self._tokens.get(token)
            if user_id is None:
                return None
            return self._users.get(user_id)

    def revoke_token(self, token: str) -> bool:
        with self._lock:
            return self._tokens.pop(token, None) is not None

    def get_deepgram_options(self, user_id: str) -> Dict[str, Any]:
        with self._lock:
            user = self._users.get(user_id)
            return dict(user.deepgram_options) if user else {}

    def set_deepgram_options(self, user_id: str, options: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return {}
            user.deepgram_options = dict(options)
            return dict(user.deepgram_options)

    # ------------------------------------------------------------------
    # Dictations
    # ------------------------------------------------------------------

    def list_dictations(self, user_id: str, offset: int, limit: int) -> Tuple[List[Dictation], int]:
        """Return one page of a user's dictations and the user's total count."""
        with self._lock:
            owned = [d for d in self._dictations.values() if d.user_id == user_id]
        ordered = _newest_first(owned)
        return ordered[offset:offset + limit], len(ordered)

    def create_dictation(self, user_id: str, text: str, duration_sec: int) -> Dictation:
        with self._lock:
            dictation = Dictation(
                id=uuid.uuid4().hex,
                user_id=user_id,
                text=text,
                duration_sec=duration_sec,
                created_at=time.time(),
                seq=next(self._seq),
            )
            self._dictations[dictation.id] = dictation
        logger.info("Saved dictation %s (%d chars, %ds)", dictation.id, len(text), duration_sec)
        return dictation

    def get_dictation(self, user_id: str, dictation_id: str) -> Optional[Dictation]:
        with self._lock:
            dictation = self._dictations.get(dictation_id)
            if dictation is None or dictation.user_id != user_id:
                return None
            return dictation

    def update_dictation_text(self, user_id: str, dictation_id: str, text: str) -> Optional[Dictation]:
        with self._lock:
            dictation = self._dictations.get(dictation_id)
            if dictation is None or dictation.user_id != user_id:
                return None
            dictation.text = text
            return dictation

    def delete_dictation(self, user_id: str, dictation_id: str) -> bool:
        with self._lock:
            dictation = self._dictations.get(dictation_id)
            if dictation is None or dictation.user_id != user_id:
                return False
            del self._dictations[dictation_id]
        logger.info("Deleted dictation %s", dictation_id)
        return True

    # ------------------------------------------------------------------
    # Dictionary
    # ------------------------------------------------------------------

    def list_dictionary(self, user_id: str) -> List[DictionaryEntry]:
        with self._lock:
            owned = [e for e in self._dictionary.values() if e.user_id == user_id]
        return _newest_first(owned)

    def create_dictionary_entry(self, user_id: str, phrase: str, weight: float) -> DictionaryEntry:
        with self._lock:
            entry = DictionaryEntry(
                id=uuid.uuid4().hex,
                user_id=user_id,
                phrase=phrase,
                weight=weight,
                created_at=time.time(),
                seq=next(self._seq),
            )
            self._dictionary[entry.id] = entry
        return entry

    def update_dictionary_entry(
        self,
        user_id: str,
        entry_id: str,
        phrase: Optional[str] = None,
        weight: Optional[float] = None,
    ) -> Optional[DictionaryEntry]:
        """Apply the non-None fields to an entry. Returns None if not found."""
        with self._lock:
            entry = self._dictionary.get(entry_id)
            if entry is None or entry.user_id != user_id:
                return None
            if phrase is not None:
                entry.phrase = phrase
            if weight is not None:
                entry.weight = weight
            return entry

    def delete_dictionary_entry(self, user_id: str, entry_id: str) -> bool:
        with self._lock:
            entry = self._dictionary.get(entry_id)
            if entry is None or entry.user_id != user_id:
                return False
            del self._dictionary[entry_id]
            return True
