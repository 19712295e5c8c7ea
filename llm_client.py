"""Streaming transport for OpenAI-compatible chat-completions endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator

import httpx

import config as cfg


class TransportError(Exception):
    """The completions request failed before or while streaming."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class AIConfig:
    api_key: str
    base_url: str
    model: str

    @classmethod
    def from_env(cls) -> "AIConfig":
        return cls(api_key=cfg.AI_API_KEY, base_url=cfg.AI_BASE_URL, model=cfg.AI_MODEL)

    @property
    def is_valid(self) -> bool:
        return bool(self.api_key and self.base_url and self.model)

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


def get_async_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=cfg.REQUEST_TIMEOUT)


def tools_to_openai(tools: list[dict]) -> list[dict]:
    """Convert ``{name, description, input_schema}`` tool definitions to function-calling format."""
    return [
        {
            "type": "function",
            "function": {
                "name": t["name"],
                "description": t["description"],
                "parameters": t["input_schema"],
            },
        }
        for t in tools
    ]


def build_request_body(
    config: AIConfig,
    messages: list[dict[str, Any]],
    tools: list[dict] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": config.model,
        "messages": messages,
        "stream": True,
    }
    if tools:
        body["tools"] = tools
        body["tool_choice"] = "auto"
    return body


async def iter_completion_chunks(
    client: httpx.AsyncClient,
    config: AIConfig,
    messages: list[dict[str, Any]],
    tools: list[dict] | None = None,
) -> AsyncIterator[str]:
    """POST one streaming request and yield the body as decoded text chunks.

    Raises :class:`TransportError` for non-2xx responses and network failures.
    Chunk boundaries are whatever the network delivers.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.api_key}",
    }
    body = build_request_body(config, messages, tools)
    try:
        async with client.stream("POST", config.completions_url, json=body, headers=headers) as response:
            if not response.is_success:
                detail = (await response.aread()).decode("utf-8", errors="replace")
                raise TransportError(
                    f"API request failed: {response.status_code} {detail[:500]}",
                    status_code=response.status_code,
                )
            async for chunk in response.aiter_text():
                yield chunk
    except httpx.HTTPError as exc:
        raise TransportError(f"API request failed: {exc}") from exc
