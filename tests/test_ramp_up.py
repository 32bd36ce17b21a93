"""Tests for the ramp-up scorer (metrics/ramp_up.py)."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from netscore.metrics.ramp_up import (
    comment_ratio_score,
    count_comment_lines,
    install_instructions_score,
    ramp_up_time,
    readme_score,
)


class TestReadme:
    @pytest.mark.parametrize("name", ["README", "README.md", "readme.txt", "Readme.MD"])
    def test_readme_variants(self, make_tree, name):
        root = make_tree({name: "Hello world."})
        assert readme_score(root) == pytest.approx(0.1)

    def test_other_readme_extensions_do_not_count(self, make_tree):
        root = make_tree({"README.rst": "npm install"})
        assert readme_score(root) == 0.0
        assert install_instructions_score(root) == 0.0

    def test_nested_readme_does_not_count(self, make_tree):
        root = make_tree({"docs/README.md": "npm install"})
        assert readme_score(root) == 0.0

    def test_install_keywords(self, make_tree):
        root = make_tree({"README.md": "## Setup\n\nnpm INSTALL widgets"})
        assert install_instructions_score(root) == pytest.approx(0.4)

    def test_readme_without_keywords(self, make_tree):
        root = make_tree({"README.md": "Hello world."})
        assert install_instructions_score(root) == 0.0

    def test_unreadable_readme_scores_no_instructions(self, make_tree):
        root = make_tree({"README.md": "npm install"})
        with patch.object(Path, "read_text", side_effect=PermissionError(13, "Permission denied")):
            assert install_instructions_score(root) == 0.0
        assert readme_score(root) == pytest.approx(0.1)


class TestCommentLines:
    def test_c_style(self):
        lines = ["/* a", "b", "*/", "int x;", "// c", "/* d */"]
        assert count_comment_lines(lines, ".c") == 5

    def test_python_docstrings_and_hashes(self):
        lines = ['"""Doc."""', "x = 1", '"""', "block", '"""', "y = 2", "# c"]
        assert count_comment_lines(lines, ".py") == 5

    def test_python_single_quoted_block(self):
        lines = ["'''", "text", "'''", "z = 3"]
        assert count_comment_lines(lines, ".py") == 3

    def test_ruby_block(self):
        lines = ["=begin", "doc", "=end", "x = 1", "# note"]
        assert count_comment_lines(lines, ".rb") == 4

    def test_no_comments(self):
        assert count_comment_lines(["let a = 1;", "let b = 2;"], ".js") == 0


class TestCommentRatio:
    def test_one_comment_per_eight_lines_is_full(self, make_tree):
        code = "\n".join(["// header"] + ["x();"] * 7)
        root = make_tree({"src/app.js": code})
        assert comment_ratio_score(root) == pytest.approx(0.5)

    def test_ratio_scales_below_target(self, make_tree):
        code = "\n".join(["// header"] + ["x();"] * 15)
        root = make_tree({"src/app.js": code})
        assert comment_ratio_score(root) == pytest.approx(0.25)

    def test_non_code_files_are_ignored(self, make_tree):
        root = make_tree({"notes.txt": "// not code", "data.json": "{}"})
        assert comment_ratio_score(root) == 0.0


class TestRampUpTime:
    def test_no_readme_contributes_nothing_from_readme_terms(self, make_tree, make_details):
        code = "\n".join(["// header"] + ["x();"] * 7)
        root = make_tree({"INSTALL.md": "install and run", "src/app.js": code})
        assert ramp_up_time(make_details(), root) == pytest.approx(0.5)

    def test_readme_with_instructions_and_no_code(self, make_tree, make_details):
        root = make_tree({"README.md": "Run `npm install` then `npm test`."})
        assert ramp_up_time(make_details(), root) == pytest.approx(0.5)

    def test_empty_clone_scores_zero(self, tmp_path, make_details):
        assert ramp_up_time(make_details(), tmp_path) == 0.0

    def test_symlink_loops_are_skipped(self, make_tree, make_details):
        root = make_tree({"README.md": "Hello world.", "src/app.py": "# hi\nx = 1"})
        os.symlink(root, root / "src" / "loop")
        score = ramp_up_time(make_details(), root)
        assert 0.0 < score <= 1.0
