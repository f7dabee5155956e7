"""Configuration model for toolloop agents.

AgentConfig holds everything an Agent needs before its first loop:
endpoint, credential, model, system prompt, the iteration ceiling and
the sampling temperature, plus knobs for the bundled HTTP client and
the session event stream.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_MAX_LOOPS = 20
DEFAULT_EVENT_BUFFER = 10


class AgentConfig(BaseModel):
    """Per-agent configuration.

    ``max_loops`` of 0 means the default ceiling of 20. ``temperature`` of
    0 means the field is left out of the request so the endpoint default
    applies.
    """

    api_key: str = ""
    api_url: str = ""
    model: str = ""
    system_prompt: str = ""
    max_loops: int = Field(default=DEFAULT_MAX_LOOPS, ge=0)
    temperature: float = Field(default=0.0, ge=0.0)
    event_buffer: int = Field(default=DEFAULT_EVENT_BUFFER, ge=1)
    timeout: float = Field(default=120.0, gt=0)
    max_retries: int = Field(default=3, ge=1)

    @field_validator("max_loops")
    @classmethod
    def _zero_means_default(cls, value: int) -> int:
        return value or DEFAULT_MAX_LOOPS

    def missing_fields(self, *, needs_transport: bool = True) -> list[str]:
        """Return the names of required fields that are empty."""
        required = ["model", "system_prompt"]
        if needs_transport:
            required = ["api_url", "api_key", *required]
        return [name for name in required if not getattr(self, name)]

    def request_temperature(self) -> float | None:
        """Temperature to send, or None to omit it."""
        return self.temperature if self.temperature > 0 else None
