import pytest

from smart_reviewer.core.config import DEFAULT_PATH_FILTERS
from smart_reviewer.services.review.path_filter import PathFilter


class TestPathFilter:
    """Tests for path include/exclude rules."""

    def test_no_rules_allows_everything(self) -> None:
        path_filter = PathFilter([])

        assert path_filter.check("anything/at/all.txt") is True

    def test_blank_rules_are_ignored(self) -> None:
        path_filter = PathFilter(["", "   "])

        assert path_filter.rules == []
        assert path_filter.check("main.py") is True

    def test_exclusion_only(self) -> None:
        path_filter = PathFilter(["!**/*.lock"])

        assert path_filter.check("poetry.lock") is False
        assert path_filter.check("deps/yarn.lock") is False
        assert path_filter.check("src/main.py") is True

    def test_inclusion_only(self) -> None:
        path_filter = PathFilter(["src/**"])

        assert path_filter.check("src/main.py") is True
        assert path_filter.check("docs/index.md") is False

    def test_exclusion_wins_over_inclusion(self) -> None:
        path_filter = PathFilter(["src/**", "!src/generated/**"])

        assert path_filter.check("src/app.py") is True
        assert path_filter.check("src/generated/client.py") is False

    def test_double_star_matches_zero_directories(self) -> None:
        path_filter = PathFilter(["!**/*.min.js"])

        assert path_filter.check("bundle.min.js") is False
        assert path_filter.check("static/js/bundle.min.js") is False

    @pytest.mark.parametrize(
        "path",
        [
            "dist/index.js",
            "assets/logo.png",
            "package-lock.json",
            "vendor/lib/client.go",
            "src/generated/client.py",
        ],
    )
    def test_default_filters_exclude_generated_files(self, path: str) -> None:
        assert PathFilter(DEFAULT_PATH_FILTERS).check(path) is False

    @pytest.mark.parametrize("path", ["src/main.ts", "smart_reviewer/cli.py", "README.md"])
    def test_default_filters_keep_source_files(self, path: str) -> None:
        assert PathFilter(DEFAULT_PATH_FILTERS).check(path) is True
