"""
Data model for content items, clusters and ranked search results.

Store payloads are loosely typed (embeddings may be lists, numpy arrays or
pgvector strings, timestamps may be ISO strings). They are mapped into the
strict shapes below at the boundary via ContentItem.from_record().
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Hashable, List, Mapping, Optional, Union

import numpy as np

from .errors import InputError

logger = logging.getLogger(__name__)

# Embedding vectors are read-only 1-D float64 arrays (see to_vector)
EmbeddingVector = np.ndarray


class ContentKind(str, Enum):
    """Known content tags."""
    TEXT = "Text"
    IMAGE = "Image"
    LINK = "Link"
    MEDIA = "Media"
    ATTACHMENT = "Attachment"
    CHANNEL = "Channel"

    @classmethod
    def parse(cls, value: Any) -> Optional['ContentKind']:
        """Parse a tag case-insensitively. Unknown tags return None."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for kind in cls:
            if kind.value.lower() == text:
                return kind
        return None


def to_vector(values: Any) -> EmbeddingVector:
    """
    Convert raw embedding data into an immutable embedding vector.

    Accepts numeric sequences, numpy arrays and pgvector-style strings
    such as "[0.1, 0.2, 0.3]".

    Raises:
        InputError: If the data is empty, not one-dimensional, not numeric
            or contains non-finite values
    """
    if isinstance(values, str):
        cleaned = values.strip()
        if cleaned.startswith('[') and cleaned.endswith(']'):
            cleaned = cleaned[1:-1]
        if not cleaned.strip():
            raise InputError("Embedding string is empty")
        try:
            values = [float(part.strip()) for part in cleaned.split(',')]
        except ValueError as e:
            raise InputError(f"Invalid embedding string: {values[:50]!r}") from e

    try:
        vector = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InputError(f"Embedding is not numeric: {e}") from e

    if vector.ndim != 1:
        raise InputError(f"Embedding must be 1D, got shape {vector.shape}")
    if vector.size == 0:
        raise InputError("Embedding is empty")
    if not np.all(np.isfinite(vector)):
        raise InputError("Embedding contains non-finite values")

    vector.flags.writeable = False
    return vector


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None


@dataclass(frozen=True, eq=False)
class ContentItem:
    """
    A single piece of content in a batch.

    Items without an embedding are excluded from similarity and clustering
    but still take part in lexical matching.
    """
    id: Hashable
    title: str = ""
    snippet: str = ""
    kind: Optional[ContentKind] = None
    embedding: Optional[EmbeddingVector] = None
    created_at: Optional[datetime] = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    @property
    def dimensions(self) -> Optional[int]:
        return None if self.embedding is None else int(self.embedding.shape[0])

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'ContentItem':
        """
        Map a loosely typed store record into a ContentItem.

        Recognised keys: id, title, snippet (or content/description),
        kind (or block_type), embedding, created_at.

        Raises:
            InputError: If the record is not a mapping or has no id
        """
        if not isinstance(record, Mapping):
            raise InputError(f"Content record must be a mapping, got {type(record).__name__}")

        item_id = record.get('id')
        if item_id is None:
            raise InputError("Content record is missing an 'id'")

        embedding = None
        raw_embedding = record.get('embedding')
        if raw_embedding is not None:
            try:
                embedding = to_vector(raw_embedding)
            except InputError as e:
                logger.warning(f"Item {item_id}: dropping malformed embedding ({e})")

        snippet = record.get('snippet') or record.get('content') or record.get('description') or ''
        raw_kind = record.get('kind', record.get('block_type'))
        kind = ContentKind.parse(raw_kind)
        if raw_kind is not None and kind is None:
            logger.debug(f"Item {item_id}: unknown kind {raw_kind!r}")

        return cls(
            id=item_id,
            title=record.get('title') or '',
            snippet=snippet,
            kind=kind,
            embedding=embedding,
            created_at=_parse_timestamp(record.get('created_at')),
        )


@dataclass
class Cluster:
    """A group of items produced by one clustering run."""
    id: int
    member_ids: List[Hashable]
    centroid: EmbeddingVector
    label: str = ""

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass
class KMeansResult:
    """
    Outcome of a k-means run.

    Attributes:
        assignment: item id -> cluster index (0..k-1)
        centroids: k centroid vectors, indexed by cluster index
        iterations: Number of assignment steps performed
        converged: True if the last assignment step changed nothing
    """
    assignment: Dict[Hashable, int] = field(default_factory=dict)
    centroids: List[EmbeddingVector] = field(default_factory=list)
    iterations: int = 0
    converged: bool = False

    @property
    def cluster_count(self) -> int:
        """Number of non-empty clusters."""
        return len(set(self.assignment.values()))

    def members(self, cluster_index: int) -> List[Hashable]:
        return [item_id for item_id, index in self.assignment.items() if index == cluster_index]


@dataclass
class RankedResult:
    """
    One search hit.

    semantic_score is None when the item (or the query) has no embedding.
    is_fallback marks recency results returned when nothing qualified.
    """
    item: ContentItem
    lexical_score: float
    semantic_score: Optional[float]
    composite_score: float
    is_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.item.id,
            'title': self.item.title,
            'kind': self.item.kind.value if self.item.kind else None,
            'lexical_score': self.lexical_score,
            'semantic_score': self.semantic_score,
            'composite_score': self.composite_score,
            'fallback': self.is_fallback,
        }


def recency_key(item: ContentItem) -> float:
    """Sort key for newest-first ordering; undated items sort last."""
    if item.created_at is None:
        return float('-inf')
    created = item.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


def load_batch(path: Union[str, Path]) -> List[ContentItem]:
    """
    Read a JSON list of content records into ContentItems.

    Raises:
        OSError: If the file cannot be read
        json.JSONDecodeError: If the file is not valid JSON
        InputError: If the file is not a list or a record is malformed
    """
    with open(path) as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise InputError(f"{path} must contain a JSON list of records")
    items = [ContentItem.from_record(record) for record in records]
    logger.info(f"Loaded {len(items)} items from {path}")
    return items
