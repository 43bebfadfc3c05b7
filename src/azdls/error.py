"""Turns a failed service response into a RemoteOperationFailed error."""
import json
import typing as t
import requests
from azdls.exc import RemoteOperationFailed


_KIND_BY_STATUS = {
    404: "not_found",
    403: "permission_denied",
    412: "condition_not_match",
    304: "condition_not_match",
    409: "condition_not_match",
}

_RECOVERABLE_STATUS = (500, 502, 503, 504)


def _parse_error_body(body: bytes) -> tuple[t.Optional[str], t.Optional[str]]:
    """Extract the error code and message from the JSON body the dfs endpoint returns."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None, None
    if not isinstance(payload, dict) or not isinstance(payload.get("error"), dict):
        return None, None
    return payload["error"].get("code"), payload["error"].get("message")


def parse_error(response: requests.Response) -> RemoteOperationFailed:
    """Drain the response body and build an error out of it and the status code."""
    try:
        body = response.content or b''
    finally:
        response.close()
    status = response.status_code
    error_code, message = _parse_error_body(body)
    if error_code is None:
        error_code = response.headers.get("x-ms-error-code")
    if message is None:
        message = body.decode("utf-8", errors="replace").strip()
    if not message:
        message = error_code or response.reason or "no response body"
    err = RemoteOperationFailed(
        f"Remote operation failed with status {status}: {message}",
        status,
        body=body,
        kind=_KIND_BY_STATUS.get(status, "unexpected"),
        error_code=error_code,
        is_recoverable=status in _RECOVERABLE_STATUS,
    )
    request_id = response.headers.get("x-ms-request-id")
    if request_id:
        err.with_context("request_id", request_id)
    return err
