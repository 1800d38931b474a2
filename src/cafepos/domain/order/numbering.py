from __future__ import annotations

import random
import string
from datetime import datetime

_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_number(now: datetime, rng: random.Random | None = None) -> str:
    """Human readable order number: ``ORD`` + last 8 epoch-ms digits + 4 base-36 chars."""
    source = rng or random.SystemRandom()
    millis = str(int(now.timestamp() * 1000))[-8:].rjust(8, "0")
    suffix = "".join(source.choice(_ALPHABET) for _ in range(4))
    return f"ORD{millis}{suffix}"
