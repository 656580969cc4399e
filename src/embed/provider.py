"""
Embedding Provider boundary.

The engine never computes embeddings itself. GeminiEmbeddingProvider uses
gemini-embedding-001 on Vertex AI with 768 output dimensions so query
vectors match stored document vectors.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional

from core.errors import ProviderError

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Turns text into a fixed-dimension vector."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Embed one piece of text.

        Raises:
            ProviderError: If the service is unreachable or the output is malformed
        """


class GeminiEmbeddingProvider(EmbeddingProvider):
    """
    Embeddings from gemini-embedding-001 via the Google Gen AI SDK.

    The client is created lazily on first use. No retries: failures are
    raised as ProviderError immediately.

    Args:
        model_id: Embedding model ID
        dimensions: Requested output dimensionality (model default is 3072)
        project_id: GCP project ID (uses GCP_PROJECT env var if None)
        region: GCP region (uses GCP_REGION env var if None)
    """

    def __init__(
        self,
        model_id: str = "gemini-embedding-001",
        dimensions: int = 768,
        project_id: Optional[str] = None,
        region: Optional[str] = None
    ):
        self.model_id = model_id
        self.dimensions = dimensions
        self.project_id = project_id or os.environ.get('GCP_PROJECT')
        self.region = region or os.environ.get('GCP_REGION', 'europe-west4')
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google import genai

            logger.info(f"Initializing embedding client: model={self.model_id}, project={self.project_id}, region={self.region}")
            self._client = genai.Client(
                vertexai=True,
                project=self.project_id,
                location=self.region
            )
        return self._client

    def embed(self, text: str) -> List[float]:
        from google.genai import types

        try:
            client = self._get_client()
            response = client.models.embed_content(
                model=self.model_id,
                contents=[text],
                config=types.EmbedContentConfig(output_dimensionality=self.dimensions)
            )
        except Exception as e:
            logger.error(f"Embedding generation failed: {e}")
            raise ProviderError(f"Embedding generation failed: {e}", provider="gemini") from e

        embeddings = getattr(response, 'embeddings', None)
        if not embeddings or not getattr(embeddings[0], 'values', None):
            raise ProviderError("Empty embedding response", provider="gemini")

        values = list(embeddings[0].values)
        if len(values) != self.dimensions:
            raise ProviderError(
                f"Expected {self.dimensions} dimensions, got {len(values)}",
                provider="gemini"
            )

        logger.debug(f"Generated embedding with {len(values)} dimensions")
        return values

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_id}, dimensions={self.dimensions})"
