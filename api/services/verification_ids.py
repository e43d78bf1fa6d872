"""Verification ID synthesis.

Format: ``{prefix}-{year}-{token}-{timestamp_ms}``, e.g. ``CERT-2024-JOH-1718000000000``.

The token is the first three alphanumeric characters of the participant's
name (``name_prefix`` strategy) or a random base-36 string (``random``
strategy). On a collision the base candidate gets an ``-{attempt}`` suffix.

Uniqueness is soft: probing the store and inserting are separate calls, so
two concurrent creations can still race. The store's unique constraint on
``participants.verification_id`` is the final arbiter.
"""

import logging
import re
import secrets
import string
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from core.config import get_settings

logger = logging.getLogger(__name__)

ExistsCheck = Callable[[str], Awaitable[bool]]

RANDOM_TOKEN_ALPHABET = string.digits + string.ascii_uppercase
RANDOM_TOKEN_LENGTH = 6
NAME_TOKEN_LENGTH = 3

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def name_token(name: str | None) -> str | None:
    """First three alphanumeric characters of ``name``, upper-cased."""
    token = _NON_ALNUM.sub("", name or "")[:NAME_TOKEN_LENGTH].upper()
    return token or None


def random_token(length: int = RANDOM_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(RANDOM_TOKEN_ALPHABET) for _ in range(length))


def _utc_now() -> datetime:
    return datetime.now(UTC)


async def generate_verification_id(
    name: str | None,
    exists: ExistsCheck,
    *,
    strategy: str | None = None,
    prefix: str | None = None,
    max_attempts: int | None = None,
    clock: Callable[[], datetime] = _utc_now,
    token_factory: Callable[[], str] = random_token,
) -> str:
    """Generate a verification ID not currently known to ``exists``.

    At most ``max_attempts`` candidates are probed: the base and suffixes
    ``-1`` up to ``-(max_attempts - 1)``. When all are taken, the
    ``-max_attempts`` candidate is returned without probing and the store's
    unique constraint decides.

    Raises:
        StoreError: If ``exists`` fails while probing.
    """
    settings = get_settings()
    strategy = strategy or settings.verification_id_strategy
    prefix = prefix or settings.verification_id_prefix
    if max_attempts is None:
        max_attempts = settings.verification_id_max_attempts

    token = name_token(name) if strategy == "name_prefix" else None
    if token is None:
        token = token_factory()

    now = clock()
    base = f"{prefix}-{now.year}-{token}-{int(now.timestamp() * 1000)}"

    candidate = base
    if not await exists(candidate):
        return candidate

    for attempt in range(1, max_attempts):
        logger.info(
            "verification_id.collision",
            extra={"candidate": candidate, "attempt": attempt},
        )
        candidate = f"{base}-{attempt}"
        if not await exists(candidate):
            return candidate

    candidate = f"{base}-{max_attempts}"
    logger.warning(
        "verification_id.unverified",
        extra={"verification_id": candidate, "attempts": max_attempts},
    )
    return candidate
