from typing import Any, Optional, Dict
import json

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
}


def api_response(
    status_code: int,
    body: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Centralized API Gateway response formatter.

    Args:
        status_code: HTTP status code
        body: Response body dict
        error: Error message (if error, body is ignored)
        headers: Custom headers to include, e.g. the CORS set of the function

    Returns:
        Formatted Lambda response for API Gateway
    """
    final_headers = (
        _DEFAULT_HEADERS if headers is None else {**_DEFAULT_HEADERS, **headers}
    )
    payload = {"error": error} if error else body

    return {
        "statusCode": status_code,
        "headers": final_headers,
        "body": json.dumps(payload) if payload is not None else "",
    }


def success(
    data: Dict[str, Any],
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Success response (2xx)."""
    return api_response(status_code, body=data, headers=headers)


def preflight(headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """CORS pre-flight response (200, empty body)."""
    return api_response(200, headers=headers)


def bad_request(error: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Bad request response (400)."""
    return api_response(400, error=error, headers=headers)


def method_not_allowed(headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Method not allowed response (405)."""
    return api_response(405, error="Method not allowed", headers=headers)


def error_response(
    status_code: int, error: str, headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Error response for an AppError (4xx)."""
    return api_response(status_code, error=error, headers=headers)


def internal_error(
    error: str = "Internal server error",
    details: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Internal server error response (500), carrying the fault detail."""
    body = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    return api_response(500, body=body, headers=headers)
