"""
Gemini LLM Client Implementation

Uses the Google Gen AI SDK for Gemini models via Vertex AI.
"""

import logging
import os
from typing import Optional

from core.errors import ProviderError

from .base import BaseLLMClient, GenerationConfig, LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class GeminiClient(BaseLLMClient):
    """Gemini client using the Google Gen AI SDK."""

    def __init__(
        self,
        model_id: str = "gemini-2.5-flash",
        project_id: Optional[str] = None,
        region: Optional[str] = None
    ):
        project_id = project_id or os.environ.get('GCP_PROJECT')
        region = region or os.environ.get('GCP_REGION', 'europe-west4')

        super().__init__(model_id, project_id, region)
        self._client = None

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.GEMINI

    def _initialize(self) -> None:
        from google import genai

        logger.info(f"Initializing Gemini: model={self.model_id}, project={self.project_id}, region={self.region}")
        self._client = genai.Client(
            vertexai=True,
            project=self.project_id,
            location=self.region
        )

    def generate(self, prompt: str, config: Optional[GenerationConfig] = None) -> LLMResponse:
        from google.genai import types

        config = config or GenerationConfig()

        try:
            self._ensure_initialized()

            gen_config = types.GenerateContentConfig(
                temperature=config.temperature,
                max_output_tokens=config.max_output_tokens,
                top_p=config.top_p,
            )

            response = self._client.models.generate_content(
                model=self.model_id,
                contents=prompt,
                config=gen_config
            )
        except Exception as e:
            logger.error(f"Gemini generation failed: {e}")
            raise ProviderError(f"Gemini generation failed: {e}", provider=self.provider.value) from e

        text = response.text
        finish_reason = None
        if response.candidates:
            finish_reason = getattr(response.candidates[0], 'finish_reason', None)

        if not text or not text.strip():
            raise ProviderError(
                f"Empty response from Gemini. Finish reason: {finish_reason}",
                provider=self.provider.value
            )

        usage = getattr(response, 'usage_metadata', None)
        return LLMResponse(
            text=text,
            model=self.model_id,
            provider=self.provider,
            input_tokens=getattr(usage, 'prompt_token_count', None) if usage else None,
            output_tokens=getattr(usage, 'candidates_token_count', None) if usage else None,
            finish_reason=str(finish_reason) if finish_reason else None,
        )
