import tempfile
import unittest
from pathlib import Path
from unittest import mock

from logseqsearch.db import PageStore
from logseqsearch.errors import EmptyTagsError, StorageError


class PageSearchTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self.temp_dir.name) / "pages.db")
        patcher = mock.patch("logseqsearch.db.get_db_path", return_value=self.db_path)
        self.addCleanup(patcher.stop)
        patcher.start()
        self.store = PageStore()
        self.store.build(
            [
                {
                    "id": 1,
                    "created_at": 1,
                    "updated_at": 2,
                    "uuid": "uuid-alpha",
                    "journal": False,
                    "original_name": "Project Alpha",
                    "properties": {"tags": ["work", "urgent"]},
                },
                {
                    "id": 2,
                    "created_at": 3,
                    "updated_at": 4,
                    "uuid": "uuid-shopping",
                    "journal": False,
                    "original_name": "Shopping List",
                    "properties": {},
                },
                {
                    "id": 3,
                    "created_at": 5,
                    "updated_at": 6,
                    "uuid": "uuid-beta",
                    "journal": False,
                    "original_name": "Project Beta",
                    "properties": {"tags": ["work", "later", "Work_Stream"]},
                },
            ]
        )

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_search_pages_matches_display_name(self):
        pages = self.store.search_pages("Alpha")

        self.assertEqual([p["id"] for p in pages], [1])
        self.assertEqual(pages[0]["tags"], "work urgent")
        self.assertEqual(pages[0]["original_name"], "Project Alpha")

    def test_search_pages_without_tags_has_empty_tag_string(self):
        pages = self.store.search_pages("Shopping")

        self.assertEqual([p["id"] for p in pages], [2])
        self.assertEqual(pages[0]["tags"], "")

    def test_search_pages_matches_name_substrings(self):
        self.assertCountEqual([p["id"] for p in self.store.search_pages("ojec")], [1, 3])
        self.assertEqual([p["id"] for p in self.store.search_pages("pha")], [1])

    def test_search_pages_passes_fts_syntax_through(self):
        self.assertEqual([p["id"] for p in self.store.search_pages("Project NOT Beta")], [1])

    def test_search_pages_is_deterministic(self):
        first = self.store.search_pages("Project")
        second = self.store.search_pages("Project")

        self.assertEqual(first, second)
        self.assertEqual({p["id"] for p in first}, {1, 3})

    def test_search_pages_reports_bad_match_syntax(self):
        with self.assertRaises(StorageError):
            self.store.search_pages('"unterminated')

    def test_filter_by_single_tag(self):
        pages = self.store.filter_pages_by_tags(["urgent"])

        self.assertEqual([p["id"] for p in pages], [1])

    def test_filter_by_tag_conjunction(self):
        self.assertEqual([p["id"] for p in self.store.filter_pages_by_tags(["work"])], [1, 3])
        self.assertEqual([p["id"] for p in self.store.filter_pages_by_tags(["work", "urgent"])], [1])
        self.assertEqual([p["id"] for p in self.store.filter_pages_by_tags(["work", "later"])], [3])
        self.assertEqual(self.store.filter_pages_by_tags(["urgent", "later"]), [])

    def test_filter_by_unknown_tag_returns_nothing(self):
        self.assertEqual(self.store.filter_pages_by_tags(["missing"]), [])

    def test_filter_counts_requested_tags_as_given(self):
        self.assertEqual(self.store.filter_pages_by_tags(["work", "work"]), [])

    def test_filter_accepts_single_tag_string(self):
        self.assertEqual([p["id"] for p in self.store.filter_pages_by_tags("urgent")], [1])

    def test_filter_requires_tags(self):
        with mock.patch.object(self.store, "_fetch") as fetch:
            with self.assertRaises(EmptyTagsError):
                self.store.filter_pages_by_tags([])
        fetch.assert_not_called()

    def test_list_tags_sorted_and_distinct(self):
        self.assertEqual(self.store.list_tags(), ["Work_Stream", "later", "urgent", "work"])

    def test_list_tags_substring_filter(self):
        self.assertEqual(self.store.list_tags("ur"), ["urgent"])
        self.assertEqual(self.store.list_tags("WORK"), ["Work_Stream", "work"])
        self.assertEqual(self.store.list_tags("k_"), ["Work_Stream"])
        self.assertEqual(self.store.list_tags("%"), [])
        self.assertEqual(self.store.list_tags(""), self.store.list_tags())


class AlphaShoppingScenarioTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = PageStore(db_path=str(Path(self.temp_dir.name) / "pages.db"))
        self.store.build(
            [
                {
                    "id": 1,
                    "uuid": "u1",
                    "original_name": "Project Alpha",
                    "properties": {"tags": ["work", "urgent"]},
                },
                {"id": 2, "uuid": "u2", "original_name": "Shopping List", "properties": {}},
            ]
        )

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_alpha_and_shopping_list(self):
        self.assertEqual([p["id"] for p in self.store.filter_pages_by_tags(["work"])], [1])
        self.assertEqual([p["id"] for p in self.store.filter_pages_by_tags(["work", "urgent"])], [1])
        self.assertEqual(self.store.filter_pages_by_tags(["missing"]), [])
        self.assertEqual(self.store.list_tags(), ["urgent", "work"])

        pages = self.store.search_pages("Alpha")
        self.assertEqual([p["id"] for p in pages], [1])
        self.assertEqual(pages[0]["tags"], "work urgent")


if __name__ == "__main__":
    unittest.main()
