"""Configuration schema using Pydantic.

Persisted to ~/.caiide/memory.json; every field can also be set through
``CAIIDE_MEMORY_*`` environment variables (``__`` for nesting).
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class WorkerConfig(BaseModel):
    """How to launch and talk to the memory worker process."""
    command: str = "python -m memory_mcp.server"
    cwd: str | None = None
    env: dict[str, str] = Field(default_factory=dict)  # Extra environment for the worker
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    handshake_timeout_seconds: float = Field(default=10.0, gt=0)
    shutdown_timeout_seconds: float = Field(default=2.0, gt=0)
    # Set to e.g. "tools/call" to wrap typed methods as {name, arguments} tool calls.
    tool_call_method: str | None = None


class ClientInfoConfig(BaseModel):
    """Identity sent in the initialize handshake."""
    name: str = "caiide-memory"
    version: str = "0.1.0"
    protocol_version: str = "0.1.0"


class Config(BaseSettings):
    """Root configuration for caiide-memory."""
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    client: ClientInfoConfig = Field(default_factory=ClientInfoConfig)
    auto_connect: bool = True
    default_tags: list[str] = Field(default_factory=list)
    search_limit: int = Field(default=20, ge=1)
    list_limit: int = Field(default=50, ge=1)
    log_level: str = "INFO"

    model_config = ConfigDict(
        env_prefix="CAIIDE_MEMORY_",
        env_nested_delimiter="__"
    )
