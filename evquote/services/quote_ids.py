# evquote/services/quote_ids.py
from __future__ import annotations

import secrets
import string
import time
from typing import Callable, Optional

QUOTE_ID_PREFIX = "EV"
_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def new_quote_id(
    *,
    now_ms: Optional[Callable[[], int]] = None,
    suffix_len: int = 5,
) -> str:
    """EV-<epoch millis>-<5 uppercase base-36 chars>, e.g. EV-1760700000000-K3Z9Q."""
    millis = now_ms() if now_ms else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(suffix_len))
    return f"{QUOTE_ID_PREFIX}-{millis}-{suffix}"
