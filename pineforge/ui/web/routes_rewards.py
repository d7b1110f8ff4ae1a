"""
Rewards and activity routes — read-only views of the local stores.

Blueprint: rewards_bp
Prefix: /api (applied by server.py)

Endpoints:
    GET /api/rewards/balance              — caller's balance (Bearer auth)
    GET /api/projects/<id>/activity       — project's recent activity, newest first
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from pineforge.core.persistence.activity_store import ActivityStore
from pineforge.core.persistence.reward_ledger import RewardLedger
from pineforge.ui.web.helpers import credential_from_request, pipeline

rewards_bp = Blueprint("rewards", __name__)


@rewards_bp.route("/rewards/balance")
def rewards_balance():  # type: ignore[no-untyped-def]
    credential = credential_from_request()
    if credential is None:
        return jsonify({"error": "Unauthorized", "code": "UNAUTHORIZED"}), 401

    ledger = pipeline().collaborators.ledger
    if not isinstance(ledger, RewardLedger):
        return jsonify({"error": "Balance not available", "code": "UNSUPPORTED"}), 501

    return jsonify({
        "userId": credential.user_id,
        "balance": ledger.balance(credential.user_id),
    })


@rewards_bp.route("/projects/<project_id>/activity")
def project_activity(project_id: str):  # type: ignore[no-untyped-def]
    store = pipeline().collaborators.activity
    if not isinstance(store, ActivityStore):
        return jsonify({"error": "Activity not available", "code": "UNSUPPORTED"}), 501

    events = store.history(project_id)
    return jsonify({
        "projectId": project_id,
        "events": [e.model_dump(mode="json", by_alias=True) for e in reversed(events)],
    })
