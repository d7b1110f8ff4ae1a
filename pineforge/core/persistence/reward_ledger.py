"""
Reward ledger — local, file-backed idempotent economy ledger.

Every award writes one ``LedgerEntry`` keyed by its idempotency key and
bumps the user's balance.  A key that is already present is never
credited again: the call returns the recorded amount and balance with
``idempotent=True``.

Amounts per event type and the prompt rate limit (60 rewarded prompts
per project per rolling hour) mirror the production ledger.  When the
limit is hit the entry is still recorded with amount 0, so the key is
consumed and a replay stays a no-op.

State lives in ``<state_dir>/ledger.json`` (atomic temp-file + rename),
or purely in memory when no path is given.
"""

from __future__ import annotations

import json
import logging
import tempfile
import threading
import time
from pathlib import Path

from pineforge.adapters.base import LedgerAdapter
from pineforge.core.errors import LedgerError
from pineforge.core.models.response import Credential
from pineforge.core.models.rewards import LedgerEntry, RewardAward

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_FILE = "ledger.json"

REWARD_AMOUNTS: dict[str, int] = {
    "prompt": 1,
    "link_linkedin": 5,
    "link_github": 5,
    "link_website": 3,
    "feature_shipped": 3,
    "customer_added": 5,
    "revenue_logged": 10,
}

PROMPT_RATE_LIMIT = 60
PROMPT_RATE_WINDOW_S = 3600.0


class RewardLedger(LedgerAdapter):
    """Thread-safe idempotent ledger with optional JSON persistence."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        amounts: dict[str, int] | None = None,
        prompt_rate_limit: int = PROMPT_RATE_LIMIT,
        clock=time.time,
    ) -> None:
        self._path = path
        self._amounts = dict(REWARD_AMOUNTS if amounts is None else amounts)
        self._prompt_rate_limit = prompt_rate_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, LedgerEntry] = {}
        self._balances: dict[str, int] = {}

        if path is not None and path.is_file():
            self._load()

    @property
    def name(self) -> str:
        return "ledger"

    @property
    def path(self) -> Path | None:
        return self._path

    # ── Award ───────────────────────────────────────────────────

    def award(
        self,
        credential: Credential,
        project_id: str | None,
        event_type: str,
        idempotency_key: str,
    ) -> RewardAward:
        if not credential.user_id or not idempotency_key:
            raise LedgerError("not_authenticated_or_missing_key")

        with self._lock:
            existing = self._entries.get(idempotency_key)
            if existing is not None:
                logger.debug("Ledger replay for key %s", idempotency_key)
                return RewardAward(
                    event_type=existing.event_type,
                    idempotency_key=idempotency_key,
                    amount=existing.reward_amount,
                    new_balance=existing.balance_after,
                    idempotent=True,
                )

            now = self._clock()
            amount = self._amounts.get(event_type, 0)
            if (
                event_type == "prompt"
                and project_id
                and amount > 0
                and self._recent_prompt_count(project_id, now) >= self._prompt_rate_limit
            ):
                logger.info("Prompt reward rate limit reached for project %s", project_id)
                amount = 0

            balance = self._balances.get(credential.user_id, 0) + amount
            entries = dict(self._entries)
            entries[idempotency_key] = LedgerEntry(
                idempotency_key=idempotency_key,
                user_id=credential.user_id,
                project_id=project_id,
                event_type=event_type,
                reward_amount=amount,
                balance_after=balance,
                created_at=now,
            )
            balances = dict(self._balances)
            balances[credential.user_id] = balance

            # Memory only changes once the file holds the new row
            self._save(entries, balances)
            self._entries, self._balances = entries, balances

        logger.debug(
            "Credited %d for %s (user=%s, balance=%d)",
            amount, event_type, credential.user_id, balance,
        )
        return RewardAward(
            event_type=event_type,
            idempotency_key=idempotency_key,
            amount=amount,
            new_balance=balance,
            idempotent=False,
        )

    # ── Queries ─────────────────────────────────────────────────

    def balance(self, user_id: str) -> int:
        with self._lock:
            return self._balances.get(user_id, 0)

    def entries(self, user_id: str | None = None) -> list[LedgerEntry]:
        """Ledger rows in insertion order, optionally for one user."""
        with self._lock:
            rows = list(self._entries.values())
        if user_id is not None:
            rows = [e for e in rows if e.user_id == user_id]
        return rows

    def credit_count(self, idempotency_key: str) -> int:
        """How many rows exist for a key (0 or 1 by construction)."""
        with self._lock:
            return 1 if idempotency_key in self._entries else 0

    # ── Internal helpers ────────────────────────────────────────

    def _recent_prompt_count(self, project_id: str, now: float) -> int:
        cutoff = now - PROMPT_RATE_WINDOW_S
        return sum(
            1
            for e in self._entries.values()
            if e.project_id == project_id
            and e.event_type == "prompt"
            and e.created_at > cutoff
        )

    def _save(self, entries: dict[str, LedgerEntry], balances: dict[str, int]) -> None:
        if self._path is None:
            return
        data = {
            "entries": [e.model_dump(mode="json") for e in entries.values()],
            "balances": balances,
        }
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".ledger_", suffix=".tmp")
        except OSError as e:
            raise LedgerError(f"Cannot persist ledger {self._path}: {e}") from e
        tmp = Path(tmp_name)
        try:
            with open(fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(self._path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise LedgerError(f"Cannot persist ledger {self._path}: {e}") from e

    def _load(self) -> None:
        if self._path is None:
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            for row in data.get("entries", []):
                entry = LedgerEntry.model_validate(row)
                self._entries[entry.idempotency_key] = entry
            self._balances = {str(k): int(v) for k, v in data.get("balances", {}).items()}
            logger.info("Loaded %d ledger entries from %s", len(self._entries), self._path)
        except (json.JSONDecodeError, OSError, ValueError) as e:
            raise LedgerError(f"Corrupt ledger file {self._path}: {e}") from e
