"""Tests for path eligibility filtering."""

from diffguard_core.filters import (
    REASON_BLOCKED,
    REASON_EXTENSION,
    REASON_IGNORED,
    FileFilter,
    is_blocked_file,
    matches_ignore_pattern,
    normalize_path,
    parse_ignore_lines,
)


class TestFileFilter:
    def test_default_rules_scenario(self):
        result = FileFilter().filter(["a.env", "b.ts", "c.min.js", "d.md"])

        assert result.accepted == ("b.ts", "d.md")
        rejected = {s.path: s.reason for s in result.rejected}
        assert rejected == {"a.env": REASON_BLOCKED, "c.min.js": REASON_BLOCKED}
        assert result.by_reason == {REASON_BLOCKED: 2}

    def test_partition_is_complete_and_disjoint(self):
        paths = ["src/a.py", "node_modules/x/index.js", "image.png", ".env.local", "README.md"]
        result = FileFilter().filter(paths)

        rejected = {s.path for s in result.rejected}
        assert set(result.accepted) | rejected == set(paths)
        assert not set(result.accepted) & rejected

    def test_output_is_sorted_regardless_of_input_order(self):
        a = FileFilter().filter(["z.py", "a.py", "m.png"])
        b = FileFilter().filter(["m.png", "a.py", "z.py"])
        assert a == b
        assert a.accepted == ("a.py", "z.py")

    def test_duplicates_and_blank_paths_collapse(self):
        result = FileFilter().filter(["a.py", "./a.py", "", "  "])
        assert result.accepted == ("a.py",)
        assert result.rejected == ()

    def test_always_ignored_directories(self):
        result = FileFilter().filter(["node_modules/lib/index.js", "dist/app.js", "src/app.js"])
        assert result.accepted == ("src/app.js",)
        assert all(s.reason == REASON_IGNORED for s in result.rejected)

    def test_ignore_patterns_take_precedence_over_blocklist(self):
        result = FileFilter(ignore_patterns=["*.env"]).filter(["a.env"])
        assert result.rejected[0].reason == REASON_IGNORED

    def test_config_excludes_and_vendor_dirs_share_plain_ignored_reason(self):
        result = FileFilter(ignore_patterns=["migrations/"]).filter(["migrations/0001.py", "vendor/lib.py"])
        assert result.accepted == ()
        assert {s.reason for s in result.rejected} == {"ignored"}

    def test_extension_not_in_allowlist(self):
        result = FileFilter().filter(["assets/logo.png"])
        assert result.rejected[0].reason == REASON_EXTENSION

    def test_extra_blocked_patterns(self):
        result = FileFilter(extra_blocked_patterns=["*_generated.py"]).filter(["api_generated.py", "api.py"])
        assert result.accepted == ("api.py",)
        assert result.rejected[0].reason == REASON_BLOCKED


class TestIsIgnored:
    def test_negation_reincludes_path(self):
        f = FileFilter(ignore_patterns=["generated/", "!generated/keep.py"])
        assert f.is_ignored("generated/other.py") is True
        assert f.is_ignored("generated/keep.py") is False

    def test_last_matching_rule_wins(self):
        f = FileFilter(ignore_patterns=["*.py", "!keep.py", "keep*"])
        assert f.is_ignored("keep.py") is True

    def test_negation_without_prior_match_is_noop(self):
        f = FileFilter(ignore_patterns=["!src/a.py"])
        assert f.is_ignored("src/a.py") is False


class TestFromRepo:
    def test_reads_ignore_files_and_config_exclude(self, tmp_path):
        (tmp_path / ".gitignore").write_text("# build output\nout/\n\n")
        (tmp_path / ".diffguardignore").write_text("legacy/*.js\n")

        f = FileFilter.from_repo(tmp_path, {"exclude": ["scripts/"], "extra_extensions": ["avsc"]})

        assert f.ignore_patterns == ["out/", "legacy/*.js", "scripts/"]
        result = f.filter(["out/a.py", "legacy/old.js", "scripts/run.sh", "schema.avsc", "src/main.py"])
        assert result.accepted == ("schema.avsc", "src/main.py")

    def test_missing_ignore_files(self, tmp_path):
        f = FileFilter.from_repo(tmp_path)
        assert f.ignore_patterns == []


class TestMatchesIgnorePattern:
    def test_full_path_glob(self):
        assert matches_ignore_pattern("src/generated/api.py", "src/generated/*.py") is True

    def test_basename_glob(self):
        assert matches_ignore_pattern("path/to/debug.log", "*.log") is True

    def test_directory_prefix_anywhere(self):
        assert matches_ignore_pattern("app/migrations/0001.py", "migrations/") is True
        assert matches_ignore_pattern("app/migrations.py", "migrations/") is False

    def test_anchored_pattern(self):
        assert matches_ignore_pattern("build.py", "/build.py") is True
        assert matches_ignore_pattern("src/build.py", "/build.py") is False

    def test_directory_segment_glob(self):
        assert matches_ignore_pattern("pkg/tmp-cache/x.py", "tmp-*") is True


class TestHelpers:
    def test_is_blocked_file_case_insensitive(self):
        assert is_blocked_file("config/PROD.ENV") is True
        assert is_blocked_file("keys/server.PEM") is True
        assert is_blocked_file("src/env.py") is False

    def test_lockfiles_are_blocked(self):
        assert is_blocked_file("web/package-lock.json") is True
        assert is_blocked_file("poetry.lock") is True

    def test_normalize_path(self):
        assert normalize_path("./src\\app.py ") == "src/app.py"

    def test_parse_ignore_lines(self):
        assert parse_ignore_lines("# comment\n\n*.log\n  dist/  \n") == ["*.log", "dist/"]
