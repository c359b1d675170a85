"""Per-connection session identifiers.

Every message exchanged with the service carries the session ``uid``; replies
are correlated by it because the service may multiplex unrelated sessions.
"""

from __future__ import annotations

import uuid


def new_session_id() -> str:
    """Return a random version-4 UUID in canonical hyphenated form."""
    return str(uuid.uuid4())
