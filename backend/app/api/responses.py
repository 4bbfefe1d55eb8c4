from typing import Any, Optional

from app.utils.clock import utcnow


def _timestamp() -> str:
    return utcnow().isoformat().replace("+00:00", "Z")


def success_response(data: Any) -> dict:
    return {"success": True, "data": data, "timestamp": _timestamp()}


def error_response(code: str, message: str, details: Optional[Any] = None) -> dict:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error, "timestamp": _timestamp()}
