"""Protected identity endpoint."""

from __future__ import annotations

from flask import Blueprint, g

from sessionguard.api.deps import json_response, timing
from sessionguard.api.gate import require_auth
from sessionguard.schemas import MeSchema

bp = Blueprint("me", __name__)

me_schema = MeSchema()


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the subject of the presented access token."""

    return json_response(me_schema.dump({"email": g.subject}))
