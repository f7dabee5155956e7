"""Shared test fixtures and helpers for toolloop.

Provides canned chat-completion responses, a scripted fake completion
client, and agent/tool fixtures. No test touches the network.
"""

from __future__ import annotations

import json
import threading

import pytest

from toolloop import Agent, AgentConfig, ToolDefinition, Parameter


# ------------------------------------------------------------------
# Canned responses
# ------------------------------------------------------------------

def usage(prompt: int = 10, completion: int = 5) -> dict:
    return {
        "prompt_tokens": prompt,
        "completion_tokens": completion,
        "total_tokens": prompt + completion,
    }


def stop_response(content: str = "Done.", *, prompt: int = 10, completion: int = 5) -> dict:
    """A completion that ends the turn."""
    return {
        "id": "chatcmpl-stop",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": usage(prompt, completion),
    }


def tool_calls_response(
    calls: list[tuple[str, str, str]],
    *,
    content: str | None = None,
    prompt: int = 10,
    completion: int = 5,
) -> dict:
    """A completion requesting tool calls.

    Args:
        calls: List of (call_id, tool_name, raw_arguments) tuples.
    """
    return {
        "id": "chatcmpl-tools",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": content,
                    "tool_calls": [
                        {
                            "id": cid,
                            "type": "function",
                            "function": {"name": name, "arguments": args},
                        }
                        for cid, name, args in calls
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ],
        "usage": usage(prompt, completion),
    }


def tool_call_response(
    name: str, arguments: dict | str, call_id: str = "call_1", **kwargs
) -> dict:
    """A completion requesting a single tool call."""
    raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return tool_calls_response([(call_id, name, raw)], **kwargs)


# ------------------------------------------------------------------
# Fake completion client
# ------------------------------------------------------------------

class FakeClient:
    """Completion client that replays scripted responses.

    Each entry in ``responses`` is either a response dict or an exception
    instance to raise. Once the script runs out, the last entry repeats.
    Every call's arguments are recorded in ``calls`` (messages are copied
    so later mutation of the transcript does not affect the record).
    """

    def __init__(self, responses: list, *, gate: threading.Event | None = None):
        self._responses = list(responses)
        self._gate = gate
        self._lock = threading.Lock()
        self.calls: list[dict] = []
        self.closed = False

    def chat(self, messages, *, model=None, temperature=None, max_tokens=None, **kwargs):
        if self._gate is not None:
            self._gate.wait(5)
        with self._lock:
            self.calls.append({
                "messages": [dict(m) for m in messages],
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                **kwargs,
            })
            idx = min(len(self.calls) - 1, len(self._responses) - 1)
            response = self._responses[idx]
        if isinstance(response, BaseException):
            raise response
        return response

    def close(self) -> None:
        self.closed = True

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)


# ------------------------------------------------------------------
# Tools and agents
# ------------------------------------------------------------------

def echo_tool(name: str = "echo") -> ToolDefinition:
    """A tool that returns its ``text`` argument unchanged."""
    return ToolDefinition(
        name=name,
        description="Echo the given text back.",
        parameters={"text": Parameter(type="string", description="Text to echo")},
        required=("text",),
        handler=lambda raw: json.loads(raw)["text"],
    )


def failing_tool(message: str = "boom", name: str = "explode") -> ToolDefinition:
    def handler(raw: str):
        raise RuntimeError(message)

    return ToolDefinition(name=name, description="Always fails.", handler=handler)


def make_config(**overrides) -> AgentConfig:
    values = {
        "model": "test-model",
        "system_prompt": "You are a test assistant.",
        "max_loops": 20,
    }
    values.update(overrides)
    return AgentConfig(**values)


def make_agent(responses: list, *, tools: list[ToolDefinition] | None = None, **overrides):
    """Build an Agent around a FakeClient; returns (agent, client)."""
    client = FakeClient(responses)
    agent = Agent(make_config(**overrides), client=client)
    for tool in tools or []:
        agent.register_tool(tool)
    return agent, client


def collect_turn(session, timeout: float = 5.0) -> list:
    """Read events until (and including) the turn's terminal event."""
    events = []
    stream = session.events()
    while True:
        event = stream.get(timeout=timeout)
        if event is None:
            return events
        events.append(event)
        if event.type.terminal:
            return events


@pytest.fixture()
def echo():
    return echo_tool()
