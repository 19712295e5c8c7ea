"""Chat-driven drawing agent.

Usage:
    python agent.py "a flowchart: start -> validate input -> save -> end"
    python agent.py "three boxes in a row labeled A, B, C" --output abc.json
    python agent.py "a client/server diagram" --model gpt-4o-mini --max-rounds 1
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from contextlib import aclosing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncGenerator, Callable

import httpx

import config as cfg
from canvas.base import ElementSummary, ToolExecutor
from commands.parser import CommandBuffer
from llm_client import AIConfig, TransportError, get_async_client, iter_completion_chunks, tools_to_openai
from session import ConversationSession
from stream import (
    ContentDelta,
    SSEDecoder,
    StreamEvent,
    ThinkingDelta,
    ToolCall,
    ToolCallAssembler,
    ToolCallDelta,
)
from tools import TOOL_DEFINITIONS, dispatch_tool, serialize_result

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (cfg.PROMPTS_DIR / "system.md").read_text(encoding="utf-8")
_OPENAI_TOOLS = tools_to_openai(TOOL_DEFINITIONS)

TOOL_ROUND_NOTICE = "\n\n[Analyzing the canvas...]\n\n"
BUDGET_NOTICE = (
    "\n\n[Stopped after {rounds} tool rounds without a final answer. "
    "Send another message to continue.]\n\n"
)
CONFIG_ERROR = "AI API is not configured: set AI_API_KEY, AI_BASE_URL and AI_MODEL."

Event = tuple[str, dict[str, Any]]


@dataclass
class CallBudget:
    """Follow-up tool rounds still allowed after the first one."""

    remaining: int

    def __post_init__(self) -> None:
        if self.remaining < 0:
            raise ValueError("budget must not be negative")

    def spend(self) -> bool:
        if self.remaining == 0:
            return False
        self.remaining -= 1
        return True


@dataclass
class ChatOutcome:
    status: str  # "done" | "budget_exhausted" | "failed" | "cancelled"
    reply: str = ""
    tool_rounds: int = 0
    error: str | None = None
    messages: list[dict[str, Any]] = field(default_factory=list)


# ── Conversation assembly ─────────────────────────────────────────────────────

def _format_element(el: ElementSummary, indent: str = "") -> str:
    parts = [f"id: {el.id}", f"type: {el.type}"]
    if el.text:
        parts.append(f'text: "{el.text}"')
    parts.append(f"position: ({el.x}, {el.y})")
    parts.append(f"size: {el.width}x{el.height}")
    if el.stroke_color:
        parts.append(f"strokeColor: {el.stroke_color}")
    if el.background_color and el.background_color != "transparent":
        parts.append(f"backgroundColor: {el.background_color}")
    return f"{indent}- {', '.join(parts)}"


def build_user_message(user_message: str, selected: list[ElementSummary] | None = None) -> str:
    """Wrap the request with a description of the user's current selection."""
    if not selected:
        return user_message

    main = [el for el in selected if not el.container_id]
    bound = [el for el in selected if el.container_id]
    main_ids = {el.id for el in main}

    lines = []
    for el in main:
        lines.append(_format_element(el))
        for child in bound:
            if child.container_id == el.id:
                lines.append(_format_element(child, "  ") + f" (text bound inside {el.id})")
    for el in bound:
        if el.container_id not in main_ids:
            lines.append(_format_element(el))

    return (
        "The user selected these elements; base your changes on them:\n"
        + "\n".join(lines)
        + f"\n\nUser request: {user_message}\n\n"
        "When modifying an existing element keep its id, so it is updated "
        "instead of drawn again."
    )


def build_messages(
    user_message: str,
    selected: list[ElementSummary] | None = None,
    history: list[dict[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = [{"role": "system", "content": _SYSTEM_PROMPT}]
    for msg in history or []:
        if msg.get("role") in ("user", "assistant"):
            messages.append({"role": msg["role"], "content": msg.get("content") or ""})
    messages.append({"role": "user", "content": build_user_message(user_message, selected)})
    return messages


# ── Multi-turn orchestration ──────────────────────────────────────────────────

def _is_cancelled(cancel: asyncio.Event | None) -> bool:
    return cancel is not None and cancel.is_set()


def _fold_event(
    event: StreamEvent,
    text_parts: list[str],
    assembler: ToolCallAssembler,
) -> Event | None:
    if isinstance(event, ContentDelta):
        text_parts.append(event.text)
        return "text_delta", {"delta": event.text}
    if isinstance(event, ThinkingDelta):
        return "thinking_delta", {"delta": event.text}
    if isinstance(event, ToolCallDelta):
        assembler.ingest(event)
    return None


def _check_finish_reason(reason: str | None, tool_calls: list[ToolCall]) -> None:
    # Assembled fragments decide; the reported reason is only cross-checked.
    if tool_calls and reason not in (None, "tool_calls"):
        logger.warning(
            "finish_reason=%r but %d tool call(s) were assembled; executing them",
            reason, len(tool_calls),
        )
    elif not tool_calls and reason == "tool_calls":
        logger.warning("finish_reason='tool_calls' but no complete tool call was assembled")


async def run_chat_stream(
    messages: list[dict[str, Any]],
    ai_config: AIConfig,
    executor: ToolExecutor | None = None,
    *,
    budget: int | None = None,
    client: httpx.AsyncClient | None = None,
    cancel: asyncio.Event | None = None,
) -> AsyncGenerator[Event, None]:
    """Stream completions, executing tool calls between turns, and yield events.

    ``messages`` is the conversation log owned by this run; assistant and tool
    messages are appended to it as the run progresses.

    Yields ``(event_type, payload)`` tuples:
      thinking_delta  reasoning text as it streams
      text_delta      displayable assistant text as it streams
      tool_start      a finalized tool call about to run
      tool_result     the structured result of that call
      notice          status text (tool round finished, budget exhausted)
      error           the transport failed; reported once
      turn_complete   always last; payload has status, reply, tool_rounds
    """
    budget_left = CallBudget(cfg.MAX_TOOL_ROUNDS if budget is None else budget)
    tools = _OPENAI_TOOLS if executor is not None else None
    owns_client = client is None
    http = client or get_async_client()
    reply_parts: list[str] = []
    rounds = 0

    def complete(status: str, error: str | None = None) -> Event:
        return "turn_complete", {
            "status": status,
            "reply": "".join(reply_parts),
            "tool_rounds": rounds,
            "error": error,
        }

    try:
        while True:
            if _is_cancelled(cancel):
                yield complete("cancelled")
                return

            logger.debug("Requesting completion (round %d, %d messages)", rounds, len(messages))
            decoder = SSEDecoder()
            assembler = ToolCallAssembler()
            text_parts: list[str] = []
            cancelled = False

            try:
                async with aclosing(iter_completion_chunks(http, ai_config, messages, tools)) as chunks:
                    while True:
                        if _is_cancelled(cancel):
                            cancelled = True
                            break
                        try:
                            chunk = await chunks.__anext__()
                        except StopAsyncIteration:
                            break
                        for event in decoder.feed(chunk):
                            folded = _fold_event(event, text_parts, assembler)
                            if folded:
                                yield folded
            except TransportError as exc:
                logger.error("Completion stream failed: %s", exc)
                yield "error", {"message": str(exc)}
                yield complete("failed", str(exc))
                return

            if cancelled:
                yield complete("cancelled")
                return

            for event in decoder.flush():
                folded = _fold_event(event, text_parts, assembler)
                if folded:
                    yield folded

            text = "".join(text_parts)
            reply_parts.append(text)
            tool_calls = assembler.finalize()
            _check_finish_reason(decoder.finish_reason, tool_calls)

            if not tool_calls or executor is None:
                messages.append({"role": "assistant", "content": text})
                yield complete("done")
                return

            if rounds > 0 and not budget_left.spend():
                logger.info("Tool budget exhausted after %d rounds", rounds)
                notice = BUDGET_NOTICE.format(rounds=rounds)
                reply_parts.append(notice)
                yield "notice", {"message": notice}
                yield complete("budget_exhausted")
                return

            messages.append({
                "role": "assistant",
                "content": text or None,
                "tool_calls": [tc.to_message() for tc in tool_calls],
            })
            for tc in tool_calls:
                yield "tool_start", {"tool": tc.name, "tool_call_id": tc.id, "arguments": tc.arguments}
                logger.info("Executing tool %s (%s)", tc.name, tc.id)
                result = dispatch_tool(tc.name, tc.arguments, executor)
                messages.append({
                    "role": "tool",
                    "tool_call_id": tc.id,
                    "content": serialize_result(result),
                })
                yield "tool_result", {"tool": tc.name, "tool_call_id": tc.id, "result": result}

            rounds += 1
            reply_parts.append(TOOL_ROUND_NOTICE)
            yield "notice", {"message": TOOL_ROUND_NOTICE}
    finally:
        if owns_client:
            await http.aclose()


async def stream_chat(
    user_message: str,
    on_chunk: Callable[[str], None],
    on_error: Callable[[str], None] | None = None,
    *,
    config: AIConfig | None = None,
    selected: list[ElementSummary] | None = None,
    executor: ToolExecutor | None = None,
    history: list[dict[str, Any]] | None = None,
    on_thinking: Callable[[str], None] | None = None,
    budget: int | None = None,
    client: httpx.AsyncClient | None = None,
    cancel: asyncio.Event | None = None,
) -> ChatOutcome:
    """Callback front-end for :func:`run_chat_stream`.

    ``on_chunk`` receives every text delta and status notice; ``on_error`` is
    called at most once.
    """
    config = config or AIConfig.from_env()
    if not config.is_valid:
        if on_error:
            on_error(CONFIG_ERROR)
        return ChatOutcome(status="failed", error=CONFIG_ERROR)

    messages = build_messages(user_message, selected, history)
    outcome = ChatOutcome(status="failed", messages=messages)
    async for event_type, payload in run_chat_stream(
        messages, config, executor, budget=budget, client=client, cancel=cancel
    ):
        if event_type == "text_delta":
            on_chunk(payload["delta"])
        elif event_type == "notice":
            on_chunk(payload["message"])
        elif event_type == "thinking_delta" and on_thinking:
            on_thinking(payload["delta"])
        elif event_type == "error" and on_error:
            on_error(payload["message"])
        elif event_type == "turn_complete":
            outcome.status = payload["status"]
            outcome.reply = payload["reply"]
            outcome.tool_rounds = payload["tool_rounds"]
            outcome.error = payload["error"]
    return outcome


# ── Drawing turn (session + scene wiring, for the server and CLI) ─────────────

async def run_turn_stream(
    session: ConversationSession,
    user_message: str,
    selected_ids: list[str] | None = None,
    *,
    config: AIConfig | None = None,
    client: httpx.AsyncClient | None = None,
    cancel: asyncio.Event | None = None,
) -> AsyncGenerator[Event, None]:
    """Run one user turn against the session's scene and yield events.

    Adds to the :func:`run_chat_stream` events:
      commands  drawing commands parsed from the reply and applied to the scene
      layout    overlap repair performed after the reply finished
    """
    config = config or AIConfig.from_env()
    if not config.is_valid:
        yield "error", {"message": CONFIG_ERROR}
        yield "turn_complete", {"status": "failed", "reply": "", "tool_rounds": 0, "error": CONFIG_ERROR}
        return

    scene = session.scene
    selected = scene.selection_summary(selected_ids or [])
    messages = build_messages(user_message, selected, session.history)
    buffer = CommandBuffer()
    final: dict[str, Any] = {"status": "failed", "reply": "", "tool_rounds": 0, "error": None}

    async for event_type, payload in run_chat_stream(
        messages, config, scene, client=client, cancel=cancel
    ):
        if event_type == "turn_complete":
            final = payload
            continue
        yield event_type, payload

        if event_type == "text_delta":
            commands = buffer.feed(payload["delta"])
            if commands:
                added, updated = scene.apply_commands(commands)
                yield "commands", {"commands": commands, "added": added, "updated": updated}

    for _ in range(cfg.LAYOUT_MAX_ITERATIONS):
        report = scene.check_and_fix_layout(cfg.LAYOUT_MIN_GAP)
        if not report.has_issues:
            break
        yield "layout", {
            "issues": report.issues,
            "fixed_count": report.fixed_count,
            "message": report.message,
        }
        if report.fixed_count == 0:
            break

    if final["status"] != "failed":
        session.record_turn(user_message, buffer.full_text)
    session.touch()
    yield "turn_complete", {**final, "element_count": len(scene)}


# ── CLI ───────────────────────────────────────────────────────────────────────

def _summarize(arguments: str) -> str:
    return arguments if len(arguments) <= 120 else arguments[:117] + "..."


async def _run_cli(description: str) -> tuple[dict[str, Any], ConversationSession]:
    session = ConversationSession(id="cli")
    final: dict[str, Any] = {"status": "failed"}
    async for event_type, payload in run_turn_stream(session, description):
        if event_type == "text_delta":
            print(payload["delta"], end="", flush=True)
        elif event_type == "notice":
            print(payload["message"], end="", flush=True)
        elif event_type == "tool_start":
            print(f"[tool] {payload['tool']}({_summarize(payload['arguments'])})", file=sys.stderr)
        elif event_type == "tool_result":
            preview = json.dumps(payload["result"], ensure_ascii=False)[:300]
            print(f"       → {preview}", file=sys.stderr)
        elif event_type == "commands":
            print(
                f"[canvas] +{len(payload['added'])} added, {len(payload['updated'])} updated",
                file=sys.stderr,
            )
        elif event_type == "layout":
            print(f"[layout] {payload['message']}", file=sys.stderr)
        elif event_type == "error":
            print(f"[error] {payload['message']}", file=sys.stderr)
        elif event_type == "turn_complete":
            final = payload
    print()
    return final, session


def _non_negative_int(value: str) -> int:
    try:
        rounds = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if rounds < 0:
        raise argparse.ArgumentTypeError("must be 0 or more")
    return rounds


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Draw diagrams on an in-memory canvas through a streaming chat model.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("description", help="Natural-language description of the drawing.")
    parser.add_argument(
        "--output",
        default="scene.json",
        metavar="FILENAME",
        help="Where to write the final scene as JSON (default: scene.json).",
    )
    parser.add_argument(
        "--model",
        metavar="MODEL_ID",
        help=f"Override the model (default: {cfg.AI_MODEL}).",
    )
    parser.add_argument(
        "--max-rounds",
        type=_non_negative_int,
        metavar="N",
        help=f"Override follow-up tool rounds (default: {cfg.MAX_TOOL_ROUNDS}).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=cfg.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    if args.model:
        cfg.AI_MODEL = args.model
    if args.max_rounds is not None:
        cfg.MAX_TOOL_ROUNDS = args.max_rounds

    final, session = asyncio.run(_run_cli(args.description))

    Path(args.output).write_text(
        json.dumps({"elements": session.scene.elements()}, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    print(json.dumps({k: v for k, v in final.items() if k != "reply"}, indent=2))

    if final["status"] != "done":
        sys.exit(1)


if __name__ == "__main__":
    main()
