"""
Utility Functions
Helpers for building error responses from upstream failures
"""
from typing import Any, Dict, List
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    """JSON error body shared by all endpoints: {success: false, error, ...}"""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, **extra}
    )


def describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """
    Turn pydantic validation errors into a single message.

    Missing or blank fields are listed as "Missing required fields: a, b";
    anything else is reported with its location.
    """
    missing = []
    invalid = []
    for error in errors:
        location = [str(part) for part in error.get('loc', ()) if part != 'body']
        field = '.'.join(location) or 'body'
        if error.get('type') in ('missing', 'string_too_short'):
            if field not in missing:
                missing.append(field)
        else:
            invalid.append(f"{field}: {error.get('msg')}")

    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    return f"Invalid request: {'; '.join(invalid)}"
