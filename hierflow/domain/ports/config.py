"""Config Port - configuration schema."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class WorkflowVariant(str, Enum):
    """How the Building phase is split into Builder sub-phases."""

    THREE_PHASE = "three_phase"  # Planner, Enhancer, one Builder
    FOUR_PHASE = "four_phase"  # Planner, Enhancer, Backend Builder, Frontend Builder


class ProviderOptions(BaseModel):
    """Provider-specific extras. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    top_p: float | None = Field(None, gt=0, le=1)
    num_ctx: int | None = Field(None, gt=0)  # Ollama context window


class WorkflowConfig(BaseModel):
    """Per-run workflow options. Every recognized option is a field; typos fail validation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    model: str = "qwen2.5-coder:7b"
    max_retries: int = Field(2, ge=0)  # Planner/Enhancer correction cycles
    variant: WorkflowVariant = WorkflowVariant.THREE_PHASE
    temperature: float = Field(0.0, ge=0, le=2)
    max_tokens: int | None = Field(None, gt=0)
    generation_retries: int = Field(2, ge=0)  # Stream-open retries inside the generation client
    provider_options: ProviderOptions = ProviderOptions()


class LLMConfig(BaseModel):
    """LLM provider selection."""

    provider: str = "ollama"  # "ollama" | "lm_studio"


class OllamaConfig(BaseModel):
    """Ollama connection configuration."""

    host: str = "http://localhost:11434"
    timeout: int = 120
    num_ctx: int | None = None  # Default context window when the run does not set one
    num_predict: int | None = None  # Default max tokens when the run does not set one


class OpenAICompatibleConfig(BaseModel):
    """LM Studio, vLLM, LocalAI - OpenAI-compatible API."""

    base_url: str = "http://localhost:1234/v1"
    api_key: str = ""
    timeout: int = 120
    max_tokens: int | None = None


class SecurityConfig(BaseModel):
    """Security settings."""

    cors_origins: list[str] = ["http://localhost:5173"]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    ollama: OllamaConfig = OllamaConfig()
    openai_compatible: OpenAICompatibleConfig = OpenAICompatibleConfig()
    workflow: WorkflowConfig = WorkflowConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3

