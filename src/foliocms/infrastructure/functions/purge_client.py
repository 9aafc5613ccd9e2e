from __future__ import annotations

import json
import logging
import socket
import urllib.error
import urllib.request
from typing import Any, Callable

from foliocms.core.errors import FunctionInvocationError, RemoteDeletionLogicError

logger = logging.getLogger(__name__)

PURGE_FUNCTION_NAME = "delete-selected-data"


def build_purge_payload(group_keys: list[str]) -> dict[str, Any]:
    return {"sections_to_delete": list(group_keys)}


def decode_purge_response(payload: Any) -> str:
    """Turn a purge function response body into its success message.

    ``{"message": ...}`` is success; ``{"error": ...}`` raises
    RemoteDeletionLogicError; anything else raises FunctionInvocationError.
    """
    if not isinstance(payload, dict):
        raise FunctionInvocationError(f"Purge function returned an unexpected response: {payload!r}")
    error = payload.get("error")
    if error:
        raise RemoteDeletionLogicError(str(error))
    message = payload.get("message")
    if isinstance(message, str):
        return message
    raise FunctionInvocationError(f"Purge function returned an unexpected response: {payload!r}")


class HttpPurgeFunctionClient:
    """Calls the purge function over HTTP as a single JSON request."""

    def __init__(self, url: str, token: str | None = None, timeout_seconds: float = 60.0) -> None:
        self.url = url
        self.token = token
        self.timeout_seconds = timeout_seconds

    def invoke(self, group_keys: list[str]) -> str:
        body = json.dumps(build_purge_payload(group_keys)).encode("utf-8")
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        request = urllib.request.Request(self.url, data=body, headers=headers, method="POST")

        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as response:
                raw = response.read()
        except urllib.error.HTTPError as exc:
            raw_error = exc.read()
            payload = _parse_json(raw_error)
            if isinstance(payload, dict) and payload.get("error"):
                raise RemoteDeletionLogicError(str(payload["error"])) from exc
            if exc.code == 404:
                raise FunctionInvocationError(
                    f"Purge function is not deployed at {self.url} (HTTP 404)"
                ) from exc
            raise FunctionInvocationError(f"Purge function failed with HTTP {exc.code}: {exc.reason}") from exc
        except (urllib.error.URLError, socket.timeout, TimeoutError, ConnectionError) as exc:
            reason = getattr(exc, "reason", exc)
            raise FunctionInvocationError(f"Failed to reach purge function at {self.url}: {reason}") from exc

        payload = _parse_json(raw)
        if payload is None:
            raise FunctionInvocationError("Purge function returned a non-JSON response")
        return decode_purge_response(payload)


class InProcessPurgeFunctionClient:
    """Hands the purge request to a local handler that speaks the same wire format."""

    def __init__(self, handler: Callable[[dict[str, Any]], dict[str, Any]]) -> None:
        self.handler = handler

    def invoke(self, group_keys: list[str]) -> str:
        try:
            payload = self.handler(build_purge_payload(group_keys))
        except Exception as exc:
            logger.exception("In-process purge function crashed")
            raise FunctionInvocationError(f"Purge function crashed: {exc}") from exc
        return decode_purge_response(payload)


def _parse_json(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
