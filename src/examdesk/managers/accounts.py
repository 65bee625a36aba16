"""
Module: managers.accounts

Purpose:
    Account records: login, password and settings updates, and the
    candidate-role account derived from a registered candidate.

Key Classes:
    - AccountManager: CRUD-style operations on the users collection
    - AuthResult: Outcome of authenticate()

Notes:
    Passwords are stored and compared verbatim (no hashing).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from examdesk.core.models import Account, Candidate
from examdesk.core.utils import generate_id, iso_timestamp
from examdesk.storage import DocumentStore

logger = logging.getLogger(__name__)

KIND = "users"


@dataclass(frozen=True)
class AuthResult:
    success: bool
    user: Optional[Account] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.user is not None:
            out["user"] = self.user.to_dict()
        if self.message:
            out["message"] = self.message
        return out


def _to_account(record: Mapping[str, Any]) -> Optional[Account]:
    try:
        return Account.from_dict(dict(record))
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed account record {record.get('id')!r}: {e}")
        return None


class AccountManager:
    """Operations on the users collection."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _find_index(self, records: List[Dict[str, Any]], user_id: str) -> int:
        for index, record in enumerate(records):
            if record.get("id") == user_id:
                return index
        return -1

    def get_all(self) -> List[Account]:
        accounts = (_to_account(record) for record in self.store.read(KIND))
        return [account for account in accounts if account is not None]

    def get(self, user_id: str) -> Optional[Account]:
        records = self.store.read(KIND)
        index = self._find_index(records, user_id)
        return _to_account(records[index]) if index >= 0 else None

    def authenticate(self, username: str, password: str) -> AuthResult:
        """
        Match an exact username + password pair.

        Admin and non-admin usernames use the same predicate.
        """
        for record in self.store.read(KIND):
            if record.get("username") == username and record.get("password") == password:
                account = _to_account(record)
                if account is not None:
                    logger.info(f"Login succeeded for {username!r} ({account.role})")
                    return AuthResult(success=True, user=account)

        logger.info(f"Login failed for {username!r}")
        return AuthResult(success=False, message="Invalid username or password")

    def update_password(self, user_id: str, new_password: str) -> bool:
        records = self.store.read(KIND)
        index = self._find_index(records, user_id)
        if index < 0:
            return False
        records[index]["password"] = new_password
        return self.store.write(KIND, records)

    def get_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        account = self.get(user_id)
        return account.settings if account is not None else None

    def update_settings(self, user_id: str, settings: Mapping[str, Any]) -> bool:
        """Shallow-merge `settings` into the stored settings map."""
        records = self.store.read(KIND)
        index = self._find_index(records, user_id)
        if index < 0:
            return False
        current = records[index].get("settings") or {}
        records[index]["settings"] = {**current, **settings}
        return self.store.write(KIND, records)

    # ─────────────────────────────────────────────────────────────────────────
    # Candidate Accounts
    # ─────────────────────────────────────────────────────────────────────────

    def _find_candidate_account(self, records: List[Dict[str, Any]], id_card: str) -> Optional[Dict[str, Any]]:
        for record in records:
            if record.get("role") == "candidate" and record.get("idCard") == id_card:
                return record
        return None

    def _new_candidate_record(self, candidate: Candidate) -> Dict[str, Any]:
        return Account(
            id=generate_id("usr_candidate_"),
            username=candidate.name,
            password=candidate.default_password,
            role="candidate",
            created_at=iso_timestamp(),
            id_card=candidate.id_card,
        ).to_dict()

    def derive_candidate_account(self, candidate: Candidate) -> Optional[Account]:
        """
        Create the candidate-role account for a candidate, once per idCard.

        username = candidate name, password = last 6 characters of idCard.

        Returns:
            The existing or new account; None if the new account could not be written
        """
        records = self.store.read(KIND)
        existing = self._find_candidate_account(records, candidate.id_card)
        if existing is not None:
            return _to_account(existing)

        record = self._new_candidate_record(candidate)
        records.append(record)
        if not self.store.write(KIND, records):
            return None
        logger.info(f"Created candidate account {record['id']} for {candidate.name!r}")
        return _to_account(record)

    def derive_candidate_accounts(self, candidates: Iterable[Candidate]) -> Optional[int]:
        """
        Batch form of derive_candidate_account (single rewrite).

        Returns:
            Number of accounts created (0 if all already existed), or None
            if the new accounts could not be written
        """
        records = self.store.read(KIND)
        known = {r.get("idCard") for r in records if r.get("role") == "candidate"}
        created = 0
        for candidate in candidates:
            if candidate.id_card in known:
                continue
            records.append(self._new_candidate_record(candidate))
            known.add(candidate.id_card)
            created += 1

        if created and not self.store.write(KIND, records):
            return None
        return created
