import json
import logging
from typing import Any, Optional

from flareclient.errors import ApiError, ParseError
from flareclient.impl.http import _base_headers

log = logging.getLogger('flareclient.util')


def _headers(config):
    base_headers = _base_headers(config)
    base_headers.update({'Content-Type': "application/json"})
    return base_headers


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def api_error_message(status: int, body: Optional[str], reason_phrase: Optional[str] = None) -> str:
    """
    Builds the message carried by an :class:`ApiError` for a given HTTP status.

    The 401 message never includes the response body, since it may echo back credentials.
    """
    if status == 400:
        return "Bad request: %s" % (body or "Invalid request format")
    if status == 401:
        return "Unauthorized: Invalid or missing API key"
    if status == 404:
        return "Not found: %s" % (body or "Resource not found")
    return "API error (%d): %s" % (status, body or reason_phrase or "")


def throw_if_unsuccessful_response(resp):
    if is_success_status(resp.status):
        return
    body = None
    try:
        if resp.data:
            body = resp.data.decode('UTF-8')
    except (UnicodeDecodeError, AttributeError):
        body = None
    raise ApiError(resp.status, api_error_message(resp.status, body, getattr(resp, 'reason', None)))


def decode_json_body(resp, description: str) -> Any:
    try:
        return json.loads(resp.data.decode('UTF-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseError("Failed to deserialize %s response: %s" % (description, e)) from e


def http_error_description(status: int) -> str:
    return "HTTP error %d%s" % (status, " (invalid API key)" if status in (401, 403) else "")


def http_error_message(status: int, context: str, will_retry: bool = True) -> str:
    message = "Received %s for %s" % (http_error_description(status), context)
    if will_retry:
        message += " - will retry at next poll"
    return message
