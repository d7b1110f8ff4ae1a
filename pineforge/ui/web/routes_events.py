"""
Realtime SSE stream.

Provides ``GET /api/realtime`` — a Server-Sent Events stream of every
frame the broadcast hub sends while the client is connected::

    event: file:created
    data: {"projectId":"p1","path":"app/page.tsx","action":"create"}

There is no replay: a reconnecting client only sees new events.  When
the client disconnects the server closes the generator, which
deregisters the subscriber from the hub.
"""

from __future__ import annotations

from flask import Blueprint, Response, request

from pineforge.ui.web.helpers import hub

events_bp = Blueprint("events", __name__)


@events_bp.route("/realtime")
def realtime_stream():  # type: ignore[no-untyped-def]
    """SSE endpoint — streams broadcast frames to the browser.

    Query params:
        heartbeat (float): Seconds between keep-alive comments (default 30).
    """
    heartbeat = request.args.get("heartbeat", 30.0, type=float)

    return Response(
        hub().stream(heartbeat_interval=heartbeat),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "X-Accel-Buffering": "no",      # disable nginx/proxy buffering
            "Connection": "keep-alive",
        },
    )
