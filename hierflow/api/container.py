"""Dependency Injection Container - centralized service management."""

from functools import cached_property

from hierflow.application.workflow import RunRegistry, WorkflowUseCase
from hierflow.domain.ports.config import AppConfig
from hierflow.domain.ports.llm import LLMPort
from hierflow.infrastructure.config import load_config


class Container:
    """Dependency Injection Container with lazy initialization.

    Dependencies are created on first access and cached, so the run registry
    (and with it cancellation) is shared by every request of the process.
    """

    def __init__(self, config: AppConfig | None = None):
        """Initialize container with optional config override."""
        self._config_override = config

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def llm(self) -> LLMPort:
        """LLM adapter based on config provider."""
        if self.config.llm.provider == "lm_studio":
            from hierflow.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter

            return OpenAICompatibleAdapter(self.config.openai_compatible)

        from hierflow.infrastructure.llm.ollama import OllamaAdapter

        return OllamaAdapter(self.config.ollama)

    @cached_property
    def run_registry(self) -> RunRegistry:
        """Cancellation signals of in-flight runs."""
        return RunRegistry()

    @cached_property
    def workflow_use_case(self) -> WorkflowUseCase:
        """Workflow use case with all dependencies."""
        return WorkflowUseCase(
            llm=self.llm,
            config=self.config.workflow,
            runs=self.run_registry,
        )

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Install a prepared container (tests, embedding applications)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
