"""Canonical user identifier check."""

import re

CANONICAL_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_canonical_user_id(user_id: object) -> bool:
    """Return True for ids that may be persisted (RFC 4122 UUIDs, v1-v5).

    Anything else ('web', 'demo-user', CLI session ids) is a guest session
    whose state lives only in process memory.
    """
    return isinstance(user_id, str) and CANONICAL_ID_PATTERN.match(user_id) is not None
