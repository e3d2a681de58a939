"""Chat-completion client for the hosted model provider."""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request
from typing import Any

from exam_predictor.errors import (
    EmptyResponseError,
    RemoteErrorKind,
    RemoteServiceError,
    classify_http_error,
)
from exam_predictor.pipeline.models import ModelBackendConfig

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


def _endpoint(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{path}"


def _request_json(
    url: str,
    timeout: float,
    method: str,
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(
        url,
        data=data,
        headers={"Content-Type": "application/json", **(headers or {})},
        method=method,
    )
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        body = json.load(resp)
    if not isinstance(body, dict):
        raise ValueError("Model backend returned non-object JSON response.")
    return body


def _read_error_body(exc: urllib.error.HTTPError) -> str:
    if exc.fp is None:
        return str(exc.reason or "")
    try:
        raw = exc.read()
    except OSError:
        return str(exc.reason or "")
    return raw.decode("utf-8", errors="replace")


def _extract_chat_content(payload: dict[str, Any]) -> str:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        first_choice = choices[0]
        if isinstance(first_choice, dict):
            message = first_choice.get("message", {})
            if isinstance(message, dict):
                content = message.get("content")
                if isinstance(content, str) and content.strip():
                    return content
            text = first_choice.get("text")
            if isinstance(text, str) and text.strip():
                return text

    error = payload.get("error")
    if isinstance(error, dict):
        message = str(error.get("message") or "Unknown error")
        code = error.get("code")
        status = code if isinstance(code, int) else 500
        raise classify_http_error(status, message)

    raise EmptyResponseError(detail=json.dumps(payload)[:500])


def build_chat_payload(config: ModelBackendConfig, messages: list[dict[str, str]]) -> dict[str, Any]:
    """Build the OpenAI-compatible request body."""
    return {
        "model": config.model,
        "messages": messages,
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
    }


def _auth_headers(config: ModelBackendConfig) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {config.api_key}"}
    if config.referer:
        headers["HTTP-Referer"] = config.referer
    if config.app_title:
        headers["X-Title"] = config.app_title
    return headers


def chat_completion(config: ModelBackendConfig, messages: list[dict[str, str]]) -> str:
    """Call the provider and return the completion text, classifying failures."""
    if not config.api_key:
        raise RemoteServiceError(
            "Model provider API key is not configured.",
            kind=RemoteErrorKind.CONFIGURATION,
        )

    url = _endpoint(config.base_url, CHAT_COMPLETIONS_PATH)
    try:
        response = _request_json(
            url=url,
            timeout=config.timeout,
            method="POST",
            payload=build_chat_payload(config, messages),
            headers=_auth_headers(config),
        )
    except urllib.error.HTTPError as exc:
        raise classify_http_error(exc.code, _read_error_body(exc)) from exc
    except urllib.error.URLError as exc:
        raise RemoteServiceError(f"Could not connect to model backend at {config.base_url}: {exc.reason}") from exc
    except TimeoutError as exc:
        raise RemoteServiceError(f"Model backend timed out after {config.timeout:g}s.") from exc
    except ValueError as exc:
        raise RemoteServiceError(f"Model backend returned an unreadable response: {exc}") from exc
    except (OSError, http.client.HTTPException) as exc:
        raise RemoteServiceError(f"Connection to model backend failed: {exc!r}") from exc
    return _extract_chat_content(response)
