"""
Dependencies for idempotency and service wiring.
"""

from fastapi import Depends, Request
from typing import Optional, Dict, Any
import hashlib
import json
from sqlmodel import Session
from autoquote.db import get_session
from autoquote.errors import IdempotencyKeyReusedError
from autoquote.models import IdempotencyKey
from autoquote.services.binding import BindingService

IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def get_binding_service(session: Session = Depends(get_session)) -> BindingService:
    return BindingService(session)


async def check_idempotency_key(
    request: Request,
    session: Session = Depends(get_session),
    request_hash: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """
    Check idempotency key for duplicate requests.
    Returns None if new request, or cached response if duplicate.

    Raises:
        IdempotencyKeyReusedError: the key was stored for another endpoint
            or, when ``request_hash`` is given, for a different body
    """
    idempotency_key = request.headers.get(IDEMPOTENCY_HEADER)

    if not idempotency_key:
        return None

    cached_response = session.query(IdempotencyKey).filter(
        IdempotencyKey.key == idempotency_key
    ).first()

    if not cached_response:
        return None

    if (cached_response.method, cached_response.path) != (request.method, request.url.path):
        raise IdempotencyKeyReusedError(idempotency_key)
    if request_hash is not None and cached_response.request_hash != request_hash:
        raise IdempotencyKeyReusedError(idempotency_key)

    return json.loads(cached_response.response_json)


def store_idempotency_response(
    idempotency_key: str,
    method: str,
    path: str,
    request_hash: str,
    response_data: Dict[str, Any],
    session: Session
) -> None:
    """
    Store response for idempotency key so a retried request replays it.
    """
    if not idempotency_key:
        return

    idempotency_record = IdempotencyKey(
        key=idempotency_key,
        method=method,
        path=path,
        request_hash=request_hash,
        response_json=json.dumps(response_data, default=str)
    )

    session.add(idempotency_record)
    session.commit()


def generate_request_hash(request_body: Dict[str, Any]) -> str:
    """Generate a hash for request body to detect duplicates."""
    sorted_body = json.dumps(request_body, sort_keys=True, default=str)
    return hashlib.sha256(sorted_body.encode()).hexdigest()
