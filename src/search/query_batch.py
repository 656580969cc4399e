"""
Run a hybrid search over a JSON content batch and print ranked results.

Usage:
    python3 -m search "query text" batch.json [--threshold T] [--limit N]
                                              [--config PATH]

Environment Variables:
    SEMANTIC_ENGINE_CONFIG: Engine YAML config (see core.config)
    GCP_PROJECT / GCP_REGION: Vertex AI project and region for embeddings
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from core.config import load_config
from core.errors import SemanticEngineError
from core.models import load_batch
from embed.cache import VectorCache
from embed.provider import GeminiEmbeddingProvider

from .service import SemanticSearch

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    """Main entry point for batch search."""
    parser = argparse.ArgumentParser(description='Hybrid search over a content batch')
    parser.add_argument('query', help='Search query')
    parser.add_argument('batch', type=Path, help='JSON file with a list of content records')
    parser.add_argument('--threshold', type=float, default=None, help='Minimum semantic score')
    parser.add_argument('--limit', type=int, default=None, help='Maximum number of results')
    parser.add_argument('--config', type=Path, default=None, help='Engine YAML config')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        provider = GeminiEmbeddingProvider(
            model_id=config.embedding_model,
            dimensions=config.embedding_dimensions,
        )
        cache = VectorCache(
            provider=provider,
            ttl_seconds=config.cache.ttl_seconds,
            max_entries=config.cache.max_entries,
        )
        service = SemanticSearch(cache, config.search)

        corpus = load_batch(args.batch)
        results = service.search(args.query, corpus, threshold=args.threshold, limit=args.limit)
    except (OSError, json.JSONDecodeError, SemanticEngineError) as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        return 1

    payload = {
        'query': args.query,
        'fallback': bool(results) and results[0].is_fallback,
        'results': [result.to_dict() for result in results],
    }
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write('\n')
    return 0


if __name__ == '__main__':
    sys.exit(main())
