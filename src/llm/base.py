"""
LLM Provider Abstraction Layer - Base Classes

Provides a unified interface over the text generation providers (Gemini,
Claude) used to name clusters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    CLAUDE = "claude"


@dataclass
class GenerationConfig:
    """
    Model-agnostic generation configuration.

    Maps to provider-specific configs internally (top_p is Gemini only).
    """
    temperature: float = 0.7
    max_output_tokens: int = 2048
    top_p: float = 0.95


@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""
    text: str
    model: str
    provider: LLMProvider

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    finish_reason: Optional[str] = None


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM clients.

    Clients initialise their SDK lazily on first use and never retry:
    every SDK failure is raised as core.errors.ProviderError.
    """

    def __init__(self, model_id: str, project_id: Optional[str], region: str):
        """
        Args:
            model_id: Model identifier (e.g., "gemini-2.5-flash", "claude-haiku-4-5@20251001")
            project_id: GCP project ID
            region: GCP region
        """
        self.model_id = model_id
        self.project_id = project_id
        self.region = region
        self._initialized = False

    @property
    @abstractmethod
    def provider(self) -> LLMProvider:
        """Return the provider type."""

    @abstractmethod
    def _initialize(self) -> None:
        """Initialize the underlying client. Called lazily on first use."""

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self._initialize()
            self._initialized = True

    @abstractmethod
    def generate(self, prompt: str, config: Optional[GenerationConfig] = None) -> LLMResponse:
        """
        Generate text from a prompt.

        Raises:
            ProviderError: If the call fails or returns no text
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_id}, region={self.region})"
