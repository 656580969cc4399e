"""
Tests for the content data model and boundary mapping of store records.
"""

import json
import os
import sys
import tempfile
import unittest
from datetime import datetime, timezone

import numpy as np

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.errors import InputError, ProviderError, SemanticEngineError
from core.models import ContentItem, ContentKind, RankedResult, load_batch, recency_key, to_vector


class TestToVector(unittest.TestCase):

    def test_list(self):
        vector = to_vector([1, 2, 3])
        self.assertEqual(vector.dtype, np.float64)
        np.testing.assert_array_equal(vector, [1.0, 2.0, 3.0])

    def test_pgvector_string(self):
        np.testing.assert_allclose(to_vector("[0.1, 0.2,0.3]"), [0.1, 0.2, 0.3])

    def test_read_only(self):
        vector = to_vector([1.0, 2.0])
        with self.assertRaises(ValueError):
            vector[0] = 5.0

    def test_invalid(self):
        for bad in ([], "[]", "[a, b]", [[1.0, 2.0]], [1.0, float('nan')], ["x"]):
            with self.subTest(bad=bad):
                with self.assertRaises(InputError):
                    to_vector(bad)


class TestContentKind(unittest.TestCase):

    def test_parse(self):
        self.assertEqual(ContentKind.parse("image"), ContentKind.IMAGE)
        self.assertEqual(ContentKind.parse("Link"), ContentKind.LINK)
        self.assertEqual(ContentKind.parse(ContentKind.TEXT), ContentKind.TEXT)
        self.assertIsNone(ContentKind.parse("Hologram"))
        self.assertIsNone(ContentKind.parse(None))


class TestFromRecord(unittest.TestCase):

    def test_full_record(self):
        item = ContentItem.from_record({
            'id': 42,
            'title': 'Helvetica',
            'content': 'A sans-serif typeface',
            'block_type': 'Image',
            'embedding': '[1.0, 0.0, 0.0]',
            'created_at': '2025-02-01T10:00:00Z',
        })

        self.assertEqual(item.id, 42)
        self.assertEqual(item.snippet, 'A sans-serif typeface')
        self.assertEqual(item.kind, ContentKind.IMAGE)
        self.assertEqual(item.dimensions, 3)
        self.assertEqual(item.created_at, datetime(2025, 2, 1, 10, 0, tzinfo=timezone.utc))

    def test_minimal_record(self):
        item = ContentItem.from_record({'id': 'x'})

        self.assertEqual(item.title, '')
        self.assertIsNone(item.kind)
        self.assertFalse(item.has_embedding)
        self.assertIsNone(item.dimensions)
        self.assertIsNone(item.created_at)

    def test_missing_id(self):
        with self.assertRaises(InputError):
            ContentItem.from_record({'title': 'No id'})

    def test_non_mapping_record(self):
        for bad in (["id", 1], "id", 7, None):
            with self.subTest(bad=bad):
                with self.assertRaises(InputError):
                    ContentItem.from_record(bad)

    def test_malformed_embedding_dropped(self):
        with self.assertLogs('core.models', level='WARNING'):
            item = ContentItem.from_record({'id': 1, 'embedding': '[nope]'})
        self.assertIsNone(item.embedding)

    def test_bad_timestamp_ignored(self):
        item = ContentItem.from_record({'id': 1, 'created_at': 'yesterday'})
        self.assertIsNone(item.created_at)


class TestLoadBatch(unittest.TestCase):

    def write_json(self, payload):
        handle = tempfile.NamedTemporaryFile('w', suffix='.json', delete=False)
        json.dump(payload, handle)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_loads_records(self):
        path = self.write_json([
            {'id': 'a', 'title': 'Alpha', 'embedding': [1.0, 0.0]},
            {'id': 'b', 'title': 'Beta'},
        ])
        items = load_batch(path)

        self.assertEqual([item.id for item in items], ['a', 'b'])
        self.assertTrue(items[0].has_embedding)
        self.assertFalse(items[1].has_embedding)

    def test_not_a_list(self):
        path = self.write_json({'id': 'a'})
        with self.assertRaises(InputError):
            load_batch(path)

    def test_list_of_lists(self):
        path = self.write_json([["id", 1], ["title", "x"]])
        with self.assertRaises(InputError):
            load_batch(path)


class TestRecencyAndResults(unittest.TestCase):

    def test_recency_key_orders_naive_and_aware(self):
        naive = ContentItem(id=1, created_at=datetime(2025, 1, 1, 12, 0))
        aware = ContentItem(id=2, created_at=datetime(2025, 1, 1, 13, 0, tzinfo=timezone.utc))
        undated = ContentItem(id=3)

        ordered = sorted([undated, naive, aware], key=recency_key, reverse=True)
        self.assertEqual([item.id for item in ordered], [2, 1, 3])

    def test_ranked_result_to_dict(self):
        item = ContentItem(id="a", title="Alpha", kind=ContentKind.TEXT)
        payload = RankedResult(item, 1.0, None, 0.3, is_fallback=False).to_dict()

        self.assertEqual(payload['kind'], 'Text')
        self.assertIsNone(payload['semantic_score'])
        self.assertFalse(payload['fallback'])


class TestErrors(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(InputError, SemanticEngineError))
        self.assertTrue(issubclass(InputError, ValueError))
        self.assertTrue(issubclass(ProviderError, SemanticEngineError))

    def test_provider_in_message(self):
        error = ProviderError("timeout", provider="gemini")
        self.assertEqual(error.provider, "gemini")
        self.assertIn("gemini", str(error))


if __name__ == '__main__':
    unittest.main()
