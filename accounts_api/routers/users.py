from __future__ import annotations

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from accounts_api.services.user_service import UserError, UserService

router = APIRouter(prefix="/users", tags=["users"])

# Every verb is routed to the service so unsupported ones get its 405 body.
ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def _get_user_service(request: Request) -> UserService:
    svc = getattr(getattr(request.app, "state", None), "user_service", None)
    if not svc:
        raise RuntimeError("UserService not configured")
    return svc


async def _json_payload(request: Request) -> dict:
    """Parse the body as a JSON object; anything else counts as empty."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


@router.api_route("", methods=ROUTED_METHODS)
async def users(request: Request):
    svc = _get_user_service(request)
    payload = await _json_payload(request)
    try:
        result = await svc.handle(request.method, dict(request.query_params), payload)
    except UserError as exc:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    return JSONResponse(result.body, status_code=result.status_code)
