from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from lazynav.search.fuzzy import (
    clear_project_files_cache,
    collect_project_files,
    fuzzy_score,
    label_relevance,
    rank_project_files,
    to_project_relative,
)


class FuzzyRankingTests(unittest.TestCase):
    def setUp(self) -> None:
        clear_project_files_cache()

    def tearDown(self) -> None:
        clear_project_files_cache()

    def test_collect_project_files_hides_hidden_when_disabled(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "a.txt").write_text("a", encoding="utf-8")
            (root / ".dotfile").write_text("hidden", encoding="utf-8")
            (root / "src").mkdir()
            (root / "src" / "b.cwl").write_text("b", encoding="utf-8")
            (root / ".git").mkdir()
            (root / ".git" / "config").write_text("cfg", encoding="utf-8")

            hidden_off = [to_project_relative(p, root.resolve()) for p in collect_project_files(root, False)]
            hidden_on = [to_project_relative(p, root.resolve()) for p in collect_project_files(root, True)]

            self.assertEqual(hidden_off, ["a.txt", "src/b.cwl"])
            self.assertIn(".git/config", hidden_on)
            self.assertIn(".dotfile", hidden_on)

    def test_fuzzy_score_rejects_out_of_order_characters(self) -> None:
        self.assertIsNone(fuzzy_score("wba", "bwa.cwl"))
        self.assertIsNotNone(fuzzy_score("bwa", "b_w_a.txt"))

    def test_label_relevance_tiers_name_over_path_over_fuzzy(self) -> None:
        name_hit = label_relevance("bwa", "tools/bwa.cwl")
        path_hit = label_relevance("bwa", "bwa/readme.md")
        fuzzy_hit = label_relevance("bwa", "b_w_a.txt")

        self.assertGreater(name_hit, 3.0)
        self.assertLess(name_hit, 4.0)
        self.assertGreater(path_hit, 2.0)
        self.assertLess(path_hit, 3.0)
        self.assertGreater(fuzzy_hit, 1.0)
        self.assertLess(fuzzy_hit, 2.0)
        self.assertIsNone(label_relevance("bwa", "other.txt"))

    def test_rank_project_files_orders_best_first(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "tools").mkdir()
            (root / "bwa").mkdir()
            for rel in ("bwa.cwl", "tools/bwa-mem.cwl", "bwa/readme.md", "b_w_a.txt", "other.txt"):
                (root / rel).write_text("x", encoding="utf-8")

            ranked = rank_project_files("bwa", [root], show_hidden=False)
            labels = [to_project_relative(path, root.resolve()) for path, _relevance in ranked]

            self.assertEqual(labels, ["bwa.cwl", "tools/bwa-mem.cwl", "bwa/readme.md", "b_w_a.txt"])
            self.assertEqual(rank_project_files("", [root], show_hidden=False), [])


if __name__ == "__main__":
    unittest.main()
