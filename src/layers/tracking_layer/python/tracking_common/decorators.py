from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union, TypedDict
from pydantic import BaseModel, ConfigDict, ValidationError
from tracking_common.errors import AppError, UnauthorizedError
from tracking_common.responses import (
    bad_request,
    error_response,
    internal_error,
    method_not_allowed,
    preflight,
)
from loguru import logger
import functools
import base64
import hmac
import json

T = TypeVar("T", bound=BaseModel)
JsonDict = Dict[str, Any]


class APIGatewayResponse(TypedDict):
    statusCode: int
    body: str
    headers: Dict[str, str]


Response = Union[APIGatewayResponse, Dict[str, Any]]


class ApiRequest(BaseModel):
    """Base class for all request payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def cors_headers(allow_headers: str = "Content-Type") -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": allow_headers,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


def _http_method(event: JsonDict) -> str:
    method = event.get("httpMethod")
    if not method:
        method = ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return (method or "").upper()


def _check_secret(event: JsonDict, secret: Optional[str]) -> None:
    """Requires ``Authorization: Bearer <secret>`` when a secret is configured."""
    if not secret:
        return
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    scheme, _, token = (headers.get("authorization") or "").partition(" ")
    valid = hmac.compare_digest(token.strip().encode(), secret.encode())
    if scheme.lower() != "bearer" or not valid:
        logger.warning("Rejected call with missing or invalid bearer token")
        raise UnauthorizedError()


def _parse_body(event: JsonDict) -> tuple[Dict[str, Any], Optional[str]]:
    """Parses JSON body safely. A body that is not an object carries no fields."""
    raw_body = event.get("body")
    if not raw_body:
        return {}, None

    try:
        if event.get("isBase64Encoded"):
            raw_body = base64.b64decode(raw_body).decode("utf-8")
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
        return {}, f"Invalid JSON body: {e}"

    if not isinstance(body, dict):
        return {}, None
    return body, None


def _merge_request_data(event: JsonDict, body: Dict) -> Dict[str, Any]:
    qs = event.get("queryStringParameters") or {}
    path = event.get("pathParameters") or {}
    return {**qs, **path, **body}


def _validation_message(e: ValidationError) -> str:
    """First validation message, without pydantic's "Value error, " prefix."""
    first = e.errors()[0]
    cause = (first.get("ctx") or {}).get("error")
    return str(cause) if cause is not None else first["msg"]


def lambda_wrapper(
    model: Type[T],
    error_message: str = "Internal server error",
    allow_headers: str = "Content-Type",
    secret_provider: Optional[Callable[[], Optional[str]]] = None,
) -> Callable[[Callable[[T, Any], Any]], Callable[..., Any]]:
    """
    Decorator that turns an API Gateway / Netlify event into a validated
    Pydantic model and every failure into a JSON response with CORS headers.

    Args:
        model: The Pydantic class to validate against.
        error_message: ``error`` field of the 500 response.
        allow_headers: Value of ``Access-Control-Allow-Headers``.
        secret_provider: Returns the shared bearer secret, or None to skip auth.
    """
    headers = cors_headers(allow_headers)

    def decorator(func: Callable[[T, Any], Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(event: Optional[JsonDict], context: Any) -> Response:
            event = event or {}

            method = _http_method(event)
            if method == "OPTIONS":
                return preflight(headers=headers)
            if method != "POST":
                return method_not_allowed(headers=headers)

            try:
                _check_secret(event, secret_provider() if secret_provider else None)

                body_data, err = _parse_body(event)
                if err:
                    logger.error(err)
                    return internal_error(error=error_message, details=err, headers=headers)

                request_data = _merge_request_data(event, body_data)

                try:
                    request_model = model(**request_data)
                except ValidationError as e:
                    logger.warning(f"Validation failed: {e.errors()}")
                    return bad_request(_validation_message(e), headers=headers)

                result = func(request_model, context)
                return {**result, "headers": {**result.get("headers", {}), **headers}}

            except AppError as e:
                if e.status_code >= 500:
                    logger.error(f"{e.error_code}: {e.message}")
                    return internal_error(
                        error=error_message, details=e.message, headers=headers
                    )
                return error_response(e.status_code, e.message, headers=headers)

            except Exception as e:
                logger.exception("Unhandled exception in lambda_wrapper")
                return internal_error(error=error_message, details=str(e), headers=headers)

        return wrapper

    return decorator
