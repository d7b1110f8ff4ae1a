"""
Web helpers shared by the route blueprints.
"""

from __future__ import annotations

from flask import current_app, request

from pineforge.core.engine.pipeline import ResponsePipeline
from pineforge.core.models.response import Credential
from pineforge.core.services.broadcast import BroadcastHub


def pipeline() -> ResponsePipeline:
    return current_app.extensions["pineforge"]["pipeline"]


def hub() -> BroadcastHub:
    return current_app.extensions["pineforge"]["hub"]


def bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[7:].strip() or None


def credential_from_request() -> Credential | None:
    """Credential for the current request, or None when anonymous."""
    token = bearer_token()
    if not token:
        return None
    user_id = current_app.extensions["pineforge"]["authenticate"](token)
    if not user_id:
        return None
    return Credential(token=token, user_id=user_id)
