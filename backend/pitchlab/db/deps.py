# backend/pitchlab/db/deps.py
from __future__ import annotations
import logging
from typing import Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

from pitchlab.container import AppContainer
from pitchlab.core.entities import CallerIdentity
from pitchlab.core.errors import RateLimited
from pitchlab.core.services.admission import client_id_from_headers

logger = logging.getLogger("pitchlab.deps")

# (method, path) -> admission policy; anything unlisted is not throttled
ADMISSION_ROUTES: Dict[Tuple[str, str], str] = {
    ("POST", "/seed"): "heavy",
    ("DELETE", "/seed"): "heavy",
    ("POST", "/seed/preview"): "heavy",
    ("POST", "/pitches/batch"): "batch",
}


def get_container(request: Request) -> AppContainer:
    """FastAPI dependency: the container built during app startup."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Application container not initialized")
    return container


def admission_policy(method: str, path: str) -> Optional[str]:
    return ADMISSION_ROUTES.get((method.upper(), path.rstrip("/") or "/"))


async def enforce_admission(request: Request, call_next):
    """
    HTTP middleware: count the request against its policy before routing,
    so a throttled request never has its body read or parsed.
    """
    policy = admission_policy(request.method, request.url.path)
    container = getattr(request.app.state, "container", None)
    if policy is None or container is None:
        return await call_next(request)

    fallback = request.client.host if request.client else None
    client_id = client_id_from_headers(request.headers, fallback)
    try:
        container.admission.admit(policy, client_id)
    except RateLimited as e:
        return JSONResponse(status_code=e.status_code, content=e.to_payload(), headers=e.headers())
    return await call_next(request)


def require_user(request: Request) -> CallerIdentity:
    return get_container(request).auth_gate.resolve(request.headers.get("authorization"))


def require_admin(request: Request) -> CallerIdentity:
    return get_container(request).auth_gate.resolve(request.headers.get("authorization"), require_role="admin")
