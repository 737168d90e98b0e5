"""Gateway authentication.

The HaruUp gateway signs in end users and calls this service with two headers:
``X-API-Key``, a shared secret from ``APP_API_KEYS``, and ``X-Member-Id``, the
numeric id of the signed-in member.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from haruup.core.config import settings
from haruup.core.errors import AuthenticationAppError
from haruup.core.logging import set_member_id

logger = logging.getLogger(__name__)


def parse_api_keys(raw: str | None) -> set[str]:
    """Split a comma-separated key list, ignoring blanks and surrounding spaces.

    Examples:
        >>> sorted(parse_api_keys("gw-prod, gw-batch ,"))
        ['gw-batch', 'gw-prod']
        >>> parse_api_keys(None)
        set()
    """
    return {key.strip() for key in (raw or "").split(",") if key.strip()}


def _fingerprint(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def validate_api_key(provided_key: str) -> None:
    """Check a key against ``APP_API_KEYS``.

    Pure logic without FastAPI types. Does nothing when
    ``APP_API_KEY_REQUIRED`` is false.

    Args:
        provided_key: Value of the ``X-API-Key`` header.

    Raises:
        AuthenticationAppError: ``api_keys_not_configured`` when auth is on but
            no keys are set, ``invalid_api_key`` when the key is unknown.
    """
    if not settings.app.api_key_required:
        return

    accepted = parse_api_keys(settings.app.api_keys)
    if not accepted:
        logger.error("auth.keys_not_configured")
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if provided_key not in accepted:
        logger.warning("auth.invalid_key", extra={"api_key_hash": _fingerprint(provided_key)})
        raise AuthenticationAppError(code="invalid_api_key", message="Invalid or missing API key")


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding every gateway-facing route.

    Args:
        x_api_key: Shared secret sent by the gateway.

    Raises:
        HTTPException: 403 when the header is missing or the key is unknown.
    """
    if not settings.app.api_key_required:
        return

    if not x_api_key:
        logger.warning("auth.missing_key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing API key. Provide X-API-Key header.",
        )

    try:
        validate_api_key(x_api_key)
    except AuthenticationAppError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message) from exc


def _parse_member_id(raw: str | None) -> int | None:
    value = (raw or "").strip()
    if not value.isdigit():
        return None
    member_id = int(value)
    return member_id if member_id > 0 else None


async def get_current_member_id(
    _: Annotated[None, Depends(verify_api_key)],
    x_member_id: Annotated[str | None, Header(alias="X-Member-Id")] = None,
) -> int:
    """Resolve the member on whose behalf the gateway is calling.

    Runs ``verify_api_key`` first and binds the member id to the logging
    context for the rest of the request.

    Args:
        x_member_id: Positive integer id forwarded by the gateway.

    Returns:
        The member id.

    Raises:
        HTTPException: 401 when the header is absent or not a positive integer;
            403 from ``verify_api_key``.
    """
    member_id = _parse_member_id(x_member_id)
    if member_id is None:
        logger.warning("auth.missing_member", extra={"member_header_present": bool(x_member_id)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid X-Member-Id header.",
        )

    set_member_id(member_id)
    return member_id


CurrentMemberId = Annotated[int, Depends(get_current_member_id)]
