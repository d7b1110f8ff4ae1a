"""
Chat API routes — run one generation request through the pipeline.

Blueprint: chat_bp
Prefix: /api (applied by server.py)

Endpoints:
    POST /api/chat   — generate, run directives, apply file plan, award rewards
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from pineforge.core.errors import BadRequest
from pineforge.core.models.response import GenerationRequest
from pineforge.ui.web.helpers import credential_from_request, pipeline

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat", __name__)


@chat_bp.route("/chat", methods=["POST"])
def chat_post():  # type: ignore[no-untyped-def]
    """Process one chat prompt.

    Body (JSON, camelCase):
        prompt (str, required), model, context, projectId,
        idempotencyKey, tag, threadId
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise BadRequest("Expected a JSON object body")

    try:
        gen_request = GenerationRequest.model_validate(body)
    except ValidationError as e:
        raise BadRequest(f"Invalid request: {e.errors()[0].get('msg', 'invalid')}") from e

    response = pipeline().process(gen_request, credential_from_request())
    return jsonify(response.to_payload())
