"""
Engine configuration.

Defaults are overridden by an optional YAML file, then by environment
variables.

Environment Variables:
    SEMANTIC_ENGINE_CONFIG: Path to a YAML config file
    EMBEDDING_CACHE_TTL: Query embedding cache TTL in seconds (default: 300)
    EMBEDDING_CACHE_SIZE: Maximum cached query embeddings (default: 100)
    SEARCH_SIMILARITY_THRESHOLD: Minimum semantic score (default: 0.3)
    SEARCH_LIMIT: Default number of search results (default: 10)
    CLUSTER_RANDOM_SEED: Pin k-means initialisation (default: unset)
    EMBEDDING_MODEL: Embedding model ID (default: gemini-embedding-001)
    LABEL_MODEL: LLM model name or alias for cluster labels
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml

from .errors import InputError

logger = logging.getLogger(__name__)


@dataclass
class CacheSettings:
    ttl_seconds: float = 300.0
    max_entries: int = 100


@dataclass
class ClusteringSettings:
    min_clusters: int = 3
    max_clusters: int = 7
    items_per_cluster: int = 7
    max_iterations: int = 50
    max_items: int = 50
    label_samples: int = 5
    random_seed: Optional[int] = None


@dataclass
class SearchSettings:
    similarity_threshold: float = 0.3
    limit: int = 10
    lexical_weight: float = 0.3
    semantic_weight: float = 0.7


@dataclass
class EngineConfig:
    cache: CacheSettings = field(default_factory=CacheSettings)
    clustering: ClusteringSettings = field(default_factory=ClusteringSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    embedding_model: str = "gemini-embedding-001"
    embedding_dimensions: int = 768
    label_model: Optional[str] = None

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            InputError: If any setting is out of range
        """
        if self.cache.ttl_seconds <= 0:
            raise InputError(f"cache.ttl_seconds must be positive, got {self.cache.ttl_seconds}")
        if self.cache.max_entries < 1:
            raise InputError(f"cache.max_entries must be >= 1, got {self.cache.max_entries}")
        c = self.clustering
        if not 1 <= c.min_clusters <= c.max_clusters:
            raise InputError(
                f"clustering needs 1 <= min_clusters <= max_clusters, "
                f"got {c.min_clusters}..{c.max_clusters}"
            )
        if c.items_per_cluster < 1 or c.max_iterations < 1 or c.max_items < 1 or c.label_samples < 1:
            raise InputError("clustering sizes and iteration counts must be >= 1")
        if self.search.limit < 0:
            raise InputError(f"search.limit must be >= 0, got {self.search.limit}")
        if self.embedding_dimensions < 1:
            raise InputError(f"embedding_dimensions must be >= 1, got {self.embedding_dimensions}")


# env var -> (section or None, attribute, parser)
_ENV_OVERRIDES: Dict[str, tuple] = {
    'EMBEDDING_CACHE_TTL': ('cache', 'ttl_seconds', float),
    'EMBEDDING_CACHE_SIZE': ('cache', 'max_entries', int),
    'SEARCH_SIMILARITY_THRESHOLD': ('search', 'similarity_threshold', float),
    'SEARCH_LIMIT': ('search', 'limit', int),
    'CLUSTER_RANDOM_SEED': ('clustering', 'random_seed', int),
    'EMBEDDING_MODEL': (None, 'embedding_model', str),
    'LABEL_MODEL': (None, 'label_model', str),
}


def _apply_section(target: Any, values: Dict[str, Any], prefix: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {prefix}{key}")
            continue
        current = getattr(target, key)
        if isinstance(value, dict) and hasattr(current, '__dataclass_fields__'):
            _apply_section(current, value, f"{prefix}{key}.")
        else:
            setattr(target, key, value)


def _set_override(config: EngineConfig, section: Optional[str], attr: str,
                  parser: Callable[[str], Any], raw: str, env_name: str) -> None:
    try:
        value = parser(raw)
    except ValueError as e:
        raise InputError(f"Invalid value for {env_name}: {raw!r}") from e
    target = getattr(config, section) if section else config
    setattr(target, attr, value)
    logger.info(f"Config override from {env_name}: {attr}={value}")


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        path: YAML file (falls back to SEMANTIC_ENGINE_CONFIG env var)

    Returns:
        Validated EngineConfig

    Raises:
        InputError: If the file is not a mapping or a value is invalid
        FileNotFoundError: If an explicit path does not exist
    """
    config = EngineConfig()

    path = path or os.environ.get('SEMANTIC_ENGINE_CONFIG')
    if path:
        config_path = Path(path).expanduser()
        with open(config_path) as f:
            file_cfg = yaml.safe_load(f) or {}
        if not isinstance(file_cfg, dict):
            raise InputError(f"Config file {config_path} must contain a mapping")
        _apply_section(config, file_cfg, "")
        logger.info(f"Loaded config from {config_path}")

    for env_name, (section, attr, parser) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw:
            _set_override(config, section, attr, parser, raw, env_name)

    config.validate()
    return config
