# evquote/services/share_links.py
from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional, Protocol

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer


class ShareLinkStore(Protocol):
    def put(self, quote_id: str) -> str: ...

    def resolve(self, token: str) -> Optional[str]: ...


class InMemoryShareLinkStore:
    """
    One live token per quote, kept in process memory.

    Re-sending a quote mints a fresh token and retires the previous one.
    Tokens do not survive a restart.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_quote: Dict[str, str] = {}
        self._by_token: Dict[str, str] = {}

    def put(self, quote_id: str) -> str:
        token = str(uuid.uuid4())
        with self._lock:
            old = self._by_quote.get(quote_id)
            if old:
                self._by_token.pop(old, None)
            self._by_quote[quote_id] = token
            self._by_token[token] = quote_id
        return token

    def resolve(self, token: str) -> Optional[str]:
        with self._lock:
            return self._by_token.get(token)


class SignedShareLinkStore:
    """Stateless tokens: the quote id signed with SHARE_LINK_SECRET."""

    def __init__(
        self,
        secret: str,
        *,
        salt: str = "evquote-share-v1",
        max_age_seconds: Optional[int] = None,
    ):
        if not secret or len(secret) < 16:
            raise ValueError("SHARE_LINK_SECRET must be set (min length 16).")
        self._s = URLSafeTimedSerializer(secret_key=secret, salt=salt)
        self.max_age_seconds = max_age_seconds

    def put(self, quote_id: str) -> str:
        return self._s.dumps({"quote_id": quote_id})

    def resolve(self, token: str) -> Optional[str]:
        try:
            data = self._s.loads(token, max_age=self.max_age_seconds)
        except (SignatureExpired, BadSignature):
            return None
        if not isinstance(data, dict):
            return None
        return data.get("quote_id")
