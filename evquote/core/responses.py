# evquote/core/responses.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def ok(data: Any = None, **extra: Any) -> Dict[str, Any]:
    """`{"success": true, "data": ...}` envelope used by every JSON route."""
    body: Dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    return body


def fail(message: str, status_code: int, *, details: Optional[Any] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)
