"""Tests for the CLI entry point."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from diffguard_cli.cli import _build_store, main
from diffguard_core.models import CommitInfo
from diffguard_core.providers.base import BaseProvider
from diffguard_store.directory import DirectoryStore
from diffguard_store.noop import NoOpStore
from diffguard_store.sqlite import SQLiteStore

STRIPE_KEY = "sk_live_" + "abcdef0123456789abcdef01"
CLEAN_DIFF = "@@ -1,1 +1,2 @@\n import os\n+print(os.getcwd())\n"
SECRET_DIFF = f'@@ -0,0 +1,1 @@\n+STRIPE = "{STRIPE_KEY}"\n'


class _FakeGit:
    def __init__(self, diffs, is_repo=True, commits=()):
        self.diffs = diffs
        self.is_repo = is_repo
        self.commits = list(commits)

    def is_git_repository(self):
        return self.is_repo

    def list_changed_paths(self, target):
        return list(self.diffs)

    def get_file_diff(self, target, path, context_lines=3):
        return self.diffs.get(path, "")

    def list_commits(self, target):
        return self.commits


class _StubProvider(BaseProvider):
    NAME = "anthropic"
    DEFAULT_MODEL = "stub"

    def __init__(self, reply):
        super().__init__(api_key="key")
        self.reply = reply
        self.calls = 0

    async def _call_api(self, system_prompt, user_prompt):
        self.calls += 1
        return self.reply


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "DIFFGUARD_AI",
        "DIFFGUARD_PROVIDER",
        "DIFFGUARD_MODEL",
        "DIFFGUARD_TOKEN_LIMIT",
        "DIFFGUARD_CONFIG",
        "GITHUB_REPOSITORY",
        "GITHUB_REF",
    ):
        monkeypatch.delenv(name, raising=False)


def _patch_git(mocker, diffs=None, is_repo=True, commits=()):
    git = _FakeGit({"src/app.py": CLEAN_DIFF} if diffs is None else diffs, is_repo=is_repo, commits=commits)
    mocker.patch("diffguard_cli.commands.review.GitRepository", return_value=git)
    return git


def _patch_provider(mocker, reply='{"status": "PASS", "issues": []}'):
    provider = _StubProvider(reply)
    mocker.patch("diffguard_core.pipeline.build_providers", return_value=(provider, []))
    mocker.patch("diffguard_cli.cli._build_store", return_value=NoOpStore())
    return provider


class TestReviewValidation:
    def test_conflicting_selectors_exit_2(self, mocker):
        _patch_git(mocker)
        result = CliRunner().invoke(main, ["review", "--staged", "--commit", "abc"])
        assert result.exit_code == 2
        assert "only one target selector" in result.output

    def test_positional_files_conflict_with_range(self, mocker):
        _patch_git(mocker)
        result = CliRunner().invoke(main, ["review", "--range", "a..b", "src/app.py"])
        assert result.exit_code == 2

    def test_outside_git_repository(self, mocker):
        _patch_git(mocker, is_repo=False)
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--no-ai"])
        assert result.exit_code == 2
        assert "Not inside a git repository" in result.output

    def test_invalid_config_file(self, mocker):
        _patch_git(mocker)
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path(".diffguard.yml").write_text("provider: llama\n")
            result = runner.invoke(main, ["review", "--no-ai"])
        assert result.exit_code == 2
        assert "provider" in result.output

    def test_missing_api_key_is_configuration_error(self, mocker, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        _patch_git(mocker)
        mocker.patch("diffguard_cli.cli._build_store", return_value=NoOpStore())
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--ai"])
        assert result.exit_code == 2
        assert "ANTHROPIC_API_KEY" in result.output


class TestReviewRun:
    def test_clean_change_without_ai_passes(self, mocker):
        _patch_git(mocker)
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--no-ai", "--format", "json", "--output", "report.json"])
            report = json.loads(Path("report.json").read_text())
        assert result.exit_code == 0
        assert report["status"] == "PASS"
        assert report["ai_enabled"] is False
        assert report["results"][0]["result"]["message"] == "AI disabled"

    def test_secret_without_ai_fails(self, mocker):
        _patch_git(mocker, {"src/settings.py": SECRET_DIFF, "prod.env": "+X=1\n"})
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--no-ai", "--format", "json", "--output", "report.json"])
            report = json.loads(Path("report.json").read_text())
        assert result.exit_code == 1
        assert report["summary"]["critical_issues"] == 1
        assert report["skipped"] == [{"path": "prod.env", "reason": "blocked (sensitive file)"}]
        assert STRIPE_KEY not in json.dumps(report)

    def test_ai_review_uses_provider(self, mocker):
        _patch_git(mocker)
        provider = _patch_provider(
            mocker, '{"status": "FAIL", "issues": [{"line": 2, "severity": "INFO", "message": "Debug print"}]}'
        )
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--ai", "--format", "markdown"])
        assert result.exit_code == 1
        assert provider.calls == 1
        assert "# diffguard Review Report" in result.output
        assert "Debug print" in result.output

    def test_commit_message_checked_for_commit_target(self, mocker):
        _patch_git(mocker, commits=[CommitInfo(sha="abc1234def", message="stuff")])
        provider = _patch_provider(mocker, '{"status": "FAIL", "message": "Missing type", "suggestion": "fix: stuff"}')
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--commit", "abc1234def", "--ai", "--format", "markdown"])
        assert result.exit_code == 1
        assert provider.calls == 2
        assert "## Commit Messages" in result.output
        assert "`abc1234` stuff: Missing type" in result.output

    def test_skip_commit(self, mocker):
        _patch_git(mocker, commits=[CommitInfo(sha="abc1234def", message="stuff")])
        provider = _patch_provider(mocker)
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(
                main,
                ["review", "--commit", "abc1234def", "--ai", "--skip-commit", "--format", "json", "--output", "r.json"],
            )
            report = json.loads(Path("r.json").read_text())
        assert result.exit_code == 0
        assert provider.calls == 1
        assert report["commits"] == []

    def test_console_format(self, mocker):
        _patch_git(mocker)
        _patch_provider(mocker)
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--files", "src/app.py"])
        assert result.exit_code == 0
        assert "Status: PASS" in result.output

    def test_budget_exceeded_exit_2_without_calls(self, mocker, monkeypatch):
        monkeypatch.setenv("DIFFGUARD_TOKEN_LIMIT", "1")
        _patch_git(mocker)
        provider = _patch_provider(mocker)
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--ai"])
        assert result.exit_code == 2
        assert "Budget exceeded" in result.output
        assert provider.calls == 0

    def test_dry_run_shows_preview_and_never_calls(self, mocker, monkeypatch):
        monkeypatch.setenv("DIFFGUARD_TOKEN_LIMIT", "1")
        _patch_git(mocker)
        build = mocker.patch("diffguard_core.pipeline.build_providers")
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--dry-run"])
        assert result.exit_code == 0
        assert "Payload preview" in result.output
        build.assert_not_called()

    def test_staged_defaults_to_ai_off(self, mocker):
        _patch_git(mocker)
        build = mocker.patch("diffguard_core.pipeline.build_providers")
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--staged"])
        assert result.exit_code == 0
        build.assert_not_called()

    def test_concurrency_must_be_positive(self, mocker):
        _patch_git(mocker)
        result = CliRunner().invoke(main, ["review", "--concurrency", "0"])
        assert result.exit_code == 2


class TestReviewPublish:
    def test_missing_pr_context_only_warns(self, mocker):
        _patch_git(mocker)
        publish = mocker.patch("diffguard_cli.commands.review.publish_review")
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--no-ai", "--publish"])
        assert result.exit_code == 0
        assert "no pull request context" in result.output
        publish.assert_not_called()

    def test_publishes_with_explicit_context(self, mocker):
        _patch_git(mocker, {"src/settings.py": SECRET_DIFF})
        mocker.patch("diffguard_cli.auth.resolve_github_token", return_value="tok")
        publish = mocker.patch("diffguard_cli.commands.review.publish_review", return_value=1)
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--no-ai", "--publish", "--repo", "owner/repo", "--pr", "5"])
        assert result.exit_code == 1
        kwargs = publish.call_args.kwargs
        assert kwargs["repo_name"] == "owner/repo"
        assert kwargs["pr_number"] == 5
        assert kwargs["token"] == "tok"
        assert "Posted review to owner/repo#5" in result.output

    def test_github_failure_does_not_change_exit_code(self, mocker):
        from github import GithubException

        _patch_git(mocker)
        mocker.patch("diffguard_cli.auth.resolve_github_token", return_value="tok")
        mocker.patch(
            "diffguard_cli.commands.review.publish_review",
            side_effect=GithubException(403, {"message": "Resource not accessible"}, None),
        )
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["review", "--no-ai", "--publish", "--repo", "o/r", "--pr", "1"])
        assert result.exit_code == 0
        assert "could not post review" in result.output


class TestInit:
    def test_writes_config_and_ignore_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init", "--provider", "openai", "--store", "sqlite", "--no-workflow"])
            config_text = Path(".diffguard.yml").read_text()
            assert Path(".diffguardignore").exists()
            assert not Path(".github").exists()
        assert result.exit_code == 0
        assert "provider: openai" in config_text
        assert "store: sqlite" in config_text

    def test_refuses_to_overwrite_without_force(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path(".diffguard.yml").write_text("provider: gemini\n")
            result = runner.invoke(main, ["init", "--provider", "openai", "--store", "none", "--no-workflow"])
            assert Path(".diffguard.yml").read_text() == "provider: gemini\n"
            forced = runner.invoke(
                main, ["init", "--provider", "openai", "--store", "none", "--no-workflow", "--force"]
            )
            assert "provider: openai" in Path(".diffguard.yml").read_text()
        assert result.exit_code == 2
        assert forced.exit_code == 0

    def test_prompts_and_writes_workflow(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init"], input="gemini\ndirectory\ny\n")
            workflow = Path(".github/workflows/diffguard.yml").read_text()
        assert result.exit_code == 0
        assert "GEMINI_API_KEY" in workflow
        assert "diffguard[gemini]" in workflow


class TestCacheCommands:
    def test_stats_and_clear_directory_store(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            store = DirectoryStore(".diffguard-cache")
            store.put("a" * 64, '{"status": "PASS", "issues": []}')
            store.put("b" * 64, '{"status": "PASS", "issues": []}')

            stats = runner.invoke(main, ["cache", "stats"])
            cleared = runner.invoke(main, ["cache", "clear", "--yes"])
            remaining = DirectoryStore(".diffguard-cache").entries()
        assert stats.exit_code == 0
        assert "Entries:    2" in stats.output
        assert cleared.exit_code == 0
        assert "Removed 2 cached result(s)" in cleared.output
        assert remaining == []

    def test_clear_asks_for_confirmation(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            DirectoryStore(".diffguard-cache").put("k", "{}")
            result = runner.invoke(main, ["cache", "clear"], input="n\n")
            assert len(DirectoryStore(".diffguard-cache").entries()) == 1
        assert "Aborted" in result.output

    def test_stats_on_empty_cache(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["cache", "stats"])
        assert result.exit_code == 0
        assert "cache is empty" in result.output


class TestBuildStore:
    def test_disabled_cache_is_noop(self):
        assert isinstance(_build_store({"cache_enabled": False, "store": "sqlite"}), NoOpStore)

    def test_store_none(self):
        assert isinstance(_build_store({"store": "none"}), NoOpStore)

    def test_sqlite(self, tmp_path):
        store = _build_store({"store": "sqlite", "store_path": str(tmp_path / "c.db")})
        assert isinstance(store, SQLiteStore)
        store.close()

    def test_directory_is_default(self, tmp_path):
        store = _build_store({"store_path": str(tmp_path / "cache")})
        assert isinstance(store, DirectoryStore)
        assert store.cache_dir == tmp_path / "cache"


def test_version_option():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "diffguard" in result.output


def test_verbose_enables_debug_logging(mocker):
    setup = mocker.patch("diffguard_cli.cli.setup_logging")
    runner = CliRunner()
    with runner.isolated_filesystem():
        runner.invoke(main, ["-v", "cache", "stats"])
    setup.assert_called_once_with(True)
