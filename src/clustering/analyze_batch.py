"""
Cluster a content batch from a JSON file and print the analysis.

Usage:
    python3 -m clustering batch.json [--k K] [--no-labels] [--seed S]
                                     [--config PATH] [--model NAME]

The batch file holds a JSON list of records with id, title, snippet,
kind, embedding and created_at fields.

Environment Variables:
    SEMANTIC_ENGINE_CONFIG: Engine YAML config (see core.config)
    LLM_MODEL: Label model when --model is not given
    GCP_PROJECT / GCP_REGION: Vertex AI project and region for labels
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from core.config import load_config
from core.errors import SemanticEngineError
from core.models import load_batch

from .analyzer import ClusterAnalyzer
from .kmeans import ClusterEngine
from .labeler import ClusterLabeler, LLMLabelGenerator

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    """Main entry point for batch cluster analysis."""
    parser = argparse.ArgumentParser(description='Cluster a content batch by embedding similarity')
    parser.add_argument('batch', type=Path, help='JSON file with a list of content records')
    parser.add_argument('--k', type=int, default=None, help='Number of clusters (default: count policy)')
    parser.add_argument('--no-labels', action='store_true', help='Skip LLM labels, use fallback labels')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for centroid initialisation')
    parser.add_argument('--config', type=Path, default=None, help='Engine YAML config')
    parser.add_argument('--model', default=None, help='LLM model name or alias for labels')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        settings = config.clustering
        seed = args.seed if args.seed is not None else settings.random_seed

        generator = None if args.no_labels else LLMLabelGenerator(model=args.model or config.label_model)
        analyzer = ClusterAnalyzer(
            engine=ClusterEngine(random_state=seed),
            labeler=ClusterLabeler(generator=generator, sample_size=settings.label_samples),
            settings=settings,
        )

        items = load_batch(args.batch)
        analysis = analyzer.analyze(items, k=args.k, with_labels=not args.no_labels)
    except (OSError, json.JSONDecodeError, SemanticEngineError) as e:
        logger.error(f"Cluster analysis failed: {e}", exc_info=True)
        return 1

    json.dump(analysis.to_dict(), sys.stdout, indent=2, default=str)
    sys.stdout.write('\n')
    return 0


if __name__ == '__main__':
    sys.exit(main())
