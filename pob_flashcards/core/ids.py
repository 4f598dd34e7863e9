# core/ids.py
import random
import time
import uuid


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def create_id() -> str:
    """
    Returns a collision-resistant identifier for a local deck.
    Falls back to a timestamp + random suffix when the OS cannot supply
    randomness for uuid4.
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return f"safmeds_{now_ms()}_{random.getrandbits(48):x}"
