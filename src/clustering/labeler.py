"""
Human-readable cluster labels.

Only sampled member titles and the distinct content kinds are sent to the
Label Generator. If it fails or returns nothing, the label falls back to
"<primary kind> Cluster".
"""

import logging
from abc import ABC, abstractmethod
from typing import Hashable, List, Mapping, Optional, Sequence

from core.errors import ProviderError
from core.models import Cluster, ContentItem

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 5
GENERIC_KIND = "Mixed"

LABEL_PROMPT = """Based on these block titles and types, create a short 2-3 word label that captures the specific theme or topic of this cluster. Be specific and unique rather than generic.

Titles: {titles}
Types: {kinds}

Examples of good labels: "startup culture", "design systems", "punk music", "machine learning", "typography research", "urban planning"
Examples of bad labels: "mixed content", "various topics", "general cluster", "creative work"

Respond with only the label, no explanation."""


class LabelGenerator(ABC):
    """Produces a short descriptive label from sample titles and kinds."""

    @abstractmethod
    def summarize(self, sample_titles: List[str], kinds: List[str]) -> str:
        """
        Raises:
            ProviderError: If the labeling service fails
        """


class LLMLabelGenerator(LabelGenerator):
    """
    Label Generator backed by an llm client (Gemini or Claude).

    Args:
        client: LLM client; created from model (or the default model) when None
        model: Model name or alias passed to llm.get_client
    """

    def __init__(self, client=None, model: Optional[str] = None):
        self._client = client
        self.model = model

    @property
    def client(self):
        if self._client is None:
            from llm import get_client

            self._client = get_client(self.model)
        return self._client

    def summarize(self, sample_titles: List[str], kinds: List[str]) -> str:
        from llm import GenerationConfig

        prompt = LABEL_PROMPT.format(titles=', '.join(sample_titles), kinds=', '.join(kinds))
        try:
            client = self.client
        except ValueError as e:
            raise ProviderError(f"Label model unavailable: {e}") from e
        response = client.generate(prompt, GenerationConfig(temperature=0.3, max_output_tokens=20))
        return clean_label(response.text)


def clean_label(text: Optional[str]) -> str:
    """Strip whitespace, wrapping quotes and trailing periods from a label."""
    if not text or not text.strip():
        return ""
    label = text.strip().splitlines()[0].strip().strip('"\'`').strip()
    return label.rstrip('.').strip()


class ClusterLabeler:
    """
    Labels clusters from a sample of their members.

    Args:
        generator: Label Generator (None means always use the fallback)
        sample_size: Maximum number of titles sent to the generator
    """

    def __init__(self, generator: Optional[LabelGenerator] = None, sample_size: int = DEFAULT_SAMPLE_SIZE):
        self.generator = generator
        self.sample_size = sample_size

    @staticmethod
    def distinct_kinds(members: Sequence[ContentItem]) -> List[str]:
        """Distinct kind tags in first-seen order."""
        kinds = []
        for item in members:
            if item.kind is not None and item.kind.value not in kinds:
                kinds.append(item.kind.value)
        return kinds

    def sample_titles(self, members: Sequence[ContentItem]) -> List[str]:
        titles = [item.title.strip() for item in members if item.title and item.title.strip()]
        return titles[:self.sample_size]

    @staticmethod
    def fallback_label(kinds: Sequence[str]) -> str:
        primary = kinds[0] if kinds else GENERIC_KIND
        return f"{primary} Cluster"

    def label(self, cluster: Cluster, items: Mapping[Hashable, ContentItem]) -> str:
        """
        Label one cluster.

        Never raises for generator failures; the fallback label is used instead.

        Args:
            cluster: Cluster to label
            items: Batch items by id
        """
        members = [items[item_id] for item_id in cluster.member_ids if item_id in items]
        titles = self.sample_titles(members)
        kinds = self.distinct_kinds(members)

        if self.generator is not None:
            try:
                label = self.generator.summarize(titles, kinds)
                if label and label.strip():
                    logger.info(f"  Cluster {cluster.id}: {label.strip()}")
                    return label.strip()
                logger.warning(f"Empty label for cluster {cluster.id}, using fallback")
            except Exception as e:
                logger.warning(f"Failed to generate label for cluster {cluster.id}: {e}")

        return self.fallback_label(kinds)

    def label_all(self, clusters: Sequence[Cluster], items: Sequence[ContentItem]) -> List[Cluster]:
        """Set the label of every cluster in place and return them."""
        by_id = {item.id: item for item in items}
        for cluster in clusters:
            cluster.label = self.label(cluster, by_id)
        return list(clusters)
