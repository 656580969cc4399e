"""
Claude LLM Client Implementation

Uses the Anthropic SDK with the Vertex AI backend.
Requires: pip install 'anthropic[vertex]'
"""

import logging
import os
from typing import Optional

from core.errors import ProviderError

from .base import BaseLLMClient, GenerationConfig, LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class ClaudeClient(BaseLLMClient):
    """Claude client using AnthropicVertex."""

    def __init__(
        self,
        model_id: str = "claude-haiku-4-5@20251001",
        project_id: Optional[str] = None,
        region: Optional[str] = None
    ):
        project_id = project_id or os.environ.get('GCP_PROJECT')
        region = region or os.environ.get('CLAUDE_REGION', 'europe-west1')

        super().__init__(model_id, project_id, region)
        self._client = None

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.CLAUDE

    def _initialize(self) -> None:
        from anthropic import AnthropicVertex

        logger.info(f"Initializing Claude: model={self.model_id}, project={self.project_id}, region={self.region}")
        self._client = AnthropicVertex(
            project_id=self.project_id,
            region=self.region
        )

    def generate(self, prompt: str, config: Optional[GenerationConfig] = None) -> LLMResponse:
        config = config or GenerationConfig()

        try:
            self._ensure_initialized()
            response = self._client.messages.create(
                model=self.model_id,
                max_tokens=config.max_output_tokens,
                messages=[{"role": "user", "content": prompt}],
                temperature=config.temperature,
            )
        except Exception as e:
            logger.error(f"Claude generation failed: {e}")
            raise ProviderError(f"Claude generation failed: {e}", provider=self.provider.value) from e

        # Claude returns content blocks, concatenate text blocks
        text = ''.join(block.text for block in (response.content or []) if hasattr(block, 'text'))
        if not text.strip():
            raise ProviderError("Empty text from Claude API", provider=self.provider.value)

        usage = response.usage
        return LLMResponse(
            text=text,
            model=self.model_id,
            provider=self.provider,
            input_tokens=usage.input_tokens if usage else None,
            output_tokens=usage.output_tokens if usage else None,
            finish_reason=response.stop_reason,
        )
