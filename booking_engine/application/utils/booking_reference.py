from __future__ import annotations

import secrets
import string
from datetime import datetime

_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def new_booking_reference(now: datetime | None = None) -> str:
    """Mint a booking reference: "BK" + epoch millis + 4 random base-36 chars.

    Collisions are not detected.
    """
    now = now or datetime.now()
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"BK{millis}{suffix}"
