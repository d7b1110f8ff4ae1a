"""
Reward client — credit the economy ledger for a finished response.

Engages only for an authenticated caller, a project, and a caller-chosen
idempotency key.  Always awards the base ``prompt`` event under the key
verbatim; a tag with a bonus mapping also awards the bonus under
``<key>-tag-<tag>``, so each award has its own stable identity.

This stage is best-effort: any ledger failure is logged and swallowed,
and the response reports zero reward instead of failing.
"""

from __future__ import annotations

import logging

from pineforge.adapters.base import LedgerAdapter
from pineforge.core.models.response import Credential, GenerationRequest
from pineforge.core.models.rewards import RewardSummary

logger = logging.getLogger(__name__)

BASE_EVENT = "prompt"

DEFAULT_TAG_REWARDS: dict[str, str] = {
    "feature": "feature_shipped",
    "customer": "customer_added",
    "revenue": "revenue_logged",
}


def derive_tag_key(idempotency_key: str, tag: str) -> str:
    """Idempotency key for a tag bonus: ``abc`` + ``feature`` → ``abc-tag-feature``."""
    return f"{idempotency_key}-tag-{tag}"


def reward_engaged(request: GenerationRequest, credential: Credential | None) -> bool:
    """Whether the reward (and activity) stages run for this request."""
    return bool(
        credential is not None
        and credential.authenticated
        and request.effective_project_id
        and request.effective_idempotency_key
    )


class RewardClient:
    """Awards base and tag-bonus events for one response."""

    def __init__(
        self,
        ledger: LedgerAdapter,
        tag_rewards: dict[str, str] | None = None,
    ) -> None:
        self._ledger = ledger
        self._tag_rewards = dict(DEFAULT_TAG_REWARDS if tag_rewards is None else tag_rewards)

    def bonus_event(self, tag: str | None) -> str | None:
        return self._tag_rewards.get(tag) if tag else None

    def award_for_response(
        self,
        request: GenerationRequest,
        credential: Credential | None,
    ) -> RewardSummary | None:
        """Award the request's rewards.

        Returns:
            None when the stage does not engage; otherwise a summary,
            empty (zero totals) if the ledger failed part-way.
        """
        project_id = request.effective_project_id
        key = request.effective_idempotency_key
        if credential is None or key is None or not reward_engaged(request, credential):
            return None

        summary = RewardSummary()
        try:
            summary.add(self._ledger.award(credential, project_id, BASE_EVENT, key))

            bonus = self.bonus_event(request.tag)
            if bonus:
                summary.add(
                    self._ledger.award(
                        credential, project_id, bonus, derive_tag_key(key, request.tag or ""),
                    )
                )
        except Exception as e:
            logger.debug("Reward stage failed for key %s: %s", key, e)
            return RewardSummary()

        logger.info(
            "Rewards for %s: +%d (balance %d, %d awards)",
            project_id, summary.total_credited, summary.latest_balance, len(summary.awards),
        )
        return summary
