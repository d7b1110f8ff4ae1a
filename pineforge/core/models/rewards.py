"""
Reward and activity models — economy ledger awards and history events.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class RewardAward(BaseModel):
    """Ledger answer for one award call.

    On an idempotent replay ``amount`` and ``new_balance`` echo what was
    recorded the first time and nothing is credited again.
    """

    event_type: str
    idempotency_key: str
    amount: int = 0
    new_balance: int = 0
    idempotent: bool = False

    @property
    def credited(self) -> int:
        """Amount actually added to the balance by this call."""
        return 0 if self.idempotent else self.amount


class RewardSummary(BaseModel):
    """Totals across the (at most two) awards made for one response."""

    awards: list[RewardAward] = Field(default_factory=list)
    total_credited: int = 0
    latest_balance: int = 0

    def add(self, award: RewardAward) -> None:
        self.awards.append(award)
        self.total_credited += award.credited
        self.latest_balance = award.new_balance


class LedgerEntry(BaseModel):
    """One row of the reward ledger, keyed by its idempotency key."""

    idempotency_key: str
    user_id: str
    project_id: str | None = None
    event_type: str
    reward_amount: int = 0
    balance_after: int = 0
    created_at: float = 0.0         # epoch seconds, used for rate limiting


class ActivityEvent(BaseModel):
    """One entry of a project's bounded activity history."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    description: str = ""
    created_at: str = Field(default_factory=_now_iso, alias="createdAt")
    metadata: dict[str, Any] = Field(default_factory=dict)
