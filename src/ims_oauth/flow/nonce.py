"""Per-session correlation identifiers."""

from __future__ import annotations

import secrets

ID_BYTES = 4


def random_id() -> str:
    """Generate a random 8 character hex id from a cryptographically strong source."""
    return secrets.token_bytes(ID_BYTES).hex()
