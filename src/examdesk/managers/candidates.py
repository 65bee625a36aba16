"""
Module: managers.candidates

Purpose:
    Registered candidates, keyed by idCard. Registering a candidate also
    derives its candidate-role login account (once per idCard).

Key Classes:
    - CandidateManager: add / batch add / delete / clear
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from examdesk.core.models import Candidate
from examdesk.core.schemas import is_valid_id_card
from examdesk.core.utils import generate_id
from examdesk.storage import DocumentStore

from .accounts import AccountManager

logger = logging.getLogger(__name__)

KIND = "candidates"


def normalize_id_card(value: Any) -> str:
    return str(value or "").strip().upper()


class CandidateManager:
    """
    Operations on the candidates collection.

    Attributes:
        store: Collection persistence
        accounts: If set, used to derive a login account per new candidate
    """

    def __init__(self, store: DocumentStore, accounts: Optional[AccountManager] = None) -> None:
        self.store = store
        self.accounts = accounts

    def get_all(self) -> List[Candidate]:
        return [Candidate.from_dict(record) for record in self.store.read(KIND) if isinstance(record, dict)]

    def get(self, id_card: str) -> Optional[Candidate]:
        id_card = normalize_id_card(id_card)
        for record in self.store.read(KIND):
            if record.get("idCard") == id_card:
                return Candidate.from_dict(record)
        return None

    def _build(self, data: Mapping[str, Any]) -> Candidate:
        """
        Raises:
            ValueError: Missing name or malformed idCard
        """
        name = str(data.get("name") or "").strip()
        id_card = normalize_id_card(data.get("idCard"))
        if not name:
            raise ValueError("Candidate requires a name")
        if not is_valid_id_card(id_card):
            raise ValueError(f"Invalid idCard format: {id_card!r}")
        return Candidate(
            name=name,
            id_card=id_card,
            project_name=data.get("projectName"),
            id=generate_id("cand_"),
        )

    def add(self, data: Mapping[str, Any]) -> bool:
        """
        Register one candidate.

        Returns:
            False (nothing written) if the idCard is already registered or
            the write failed. Also False if the candidate was stored but its
            login account could not be written. The candidate row is kept;
            AccountManager.derive_candidate_accounts(get_all()) fills the gap.

        Raises:
            ValueError: Missing name or malformed idCard
        """
        candidate = self._build(data)
        records = self.store.read(KIND)
        if any(r.get("idCard") == candidate.id_card for r in records):
            logger.info(f"Candidate {candidate.id_card} already registered")
            return False

        records.append(candidate.to_dict())
        if not self.store.write(KIND, records):
            return False
        if self.accounts is not None and self.accounts.derive_candidate_account(candidate) is None:
            logger.error(f"Candidate {candidate.id_card} stored without a login account")
            return False
        return True

    def add_batch(self, items: Iterable[Mapping[str, Any]]) -> bool:
        """
        Register many candidates with a single rewrite.

        Entries whose idCard is already registered (or repeated within the
        batch) are skipped, as are malformed entries (logged). Returns False
        if either the candidates or the derived accounts could not be
        written; stored candidate rows are kept in the latter case.
        """
        records = self.store.read(KIND)
        known = {r.get("idCard") for r in records}
        added: List[Candidate] = []
        for item in items:
            try:
                candidate = self._build(item)
            except ValueError as e:
                logger.warning(f"Skipping candidate {item.get('name')!r}: {e}")
                continue
            if candidate.id_card in known:
                continue
            known.add(candidate.id_card)
            added.append(candidate)

        records.extend(candidate.to_dict() for candidate in added)
        if not self.store.write(KIND, records):
            return False

        logger.info(f"Added {len(added)} candidate(s)")
        if self.accounts is not None and added:
            if self.accounts.derive_candidate_accounts(added) is None:
                logger.error(f"{len(added)} candidate(s) stored without login accounts")
                return False
        return True

    def delete(self, id_card: str) -> bool:
        id_card = normalize_id_card(id_card)
        records = self.store.read(KIND)
        remaining = [r for r in records if r.get("idCard") != id_card]
        if len(remaining) == len(records):
            return False
        return self.store.write(KIND, remaining)

    def clear(self) -> bool:
        return self.store.write(KIND, [])

    def records(self) -> List[Dict[str, Any]]:
        """Raw stored candidate dicts, in stored order."""
        return self.store.read(KIND)
