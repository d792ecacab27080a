"""Smoke tests for all CLI commands using typer CliRunner."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

import issue2md.settings as settings_module
from issue2md.github.errors import FetchError, ResourceNotFoundError, RetryExhaustedError, StatusError
from issue2md.main import (
    EXIT_AUTH,
    EXIT_INVALID_ARGUMENTS,
    EXIT_NOT_FOUND,
    EXIT_PARTIAL_SUCCESS,
    EXIT_RATE_LIMITED,
    EXIT_RUNTIME,
    app,
    default_filename,
    exit_code_for,
)
from issue2md.models import (
    CommentNode,
    FetchOptions,
    IssueData,
    Metadata,
    ResourceKind,
    ResourceRef,
)
from issue2md.parser import parse_url

runner = CliRunner()

ISSUE_URL = "https://github.com/octo/hello/issues/1"
PR_URL = "https://github.com/octo/hello/pull/7"
DISCUSSION_URL = "https://github.com/octo/hello/discussions/3"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    settings_module._load_toml.cache_clear()
    monkeypatch.setattr(settings_module, "CONFIG_PATH", tmp_path / "config.toml")
    for name in ("ISSUE2MD_PROFILE", "ISSUE2MD_GITHUB_TOKEN", "GITHUB_TOKEN", "ISSUE2MD_INCLUDE_COMMENTS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    settings_module._load_toml.cache_clear()


def _data(ref: ResourceRef) -> IssueData:
    meta = Metadata(kind=ref.kind, title=f"Title {ref.number}", number=ref.number, state="open", author="alice")
    return IssueData(meta=meta, description="body")


def _mock_fetcher(**kwargs) -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch.side_effect = kwargs.get("side_effect", lambda ref, opts: _data(ref))
    return fetcher


def _wrapped(cause: BaseException) -> FetchError:
    return FetchError("fetch issue", RetryExhaustedError(FetchError("get issue", cause)))


class TestFetch:
    def test_single_url_prints_json(self) -> None:
        fetcher = _mock_fetcher()
        with patch("issue2md.main.get_fetcher", return_value=fetcher):
            result = runner.invoke(app, ["fetch", ISSUE_URL])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["meta"]["kind"] == "issue"
        assert payload["meta"]["title"] == "Title 1"
        ref, opts = fetcher.fetch.call_args.args
        assert ref == parse_url(ISSUE_URL)
        assert opts == FetchOptions(include_comments=True)
        fetcher.close.assert_called_once()

    def test_no_comments_flag(self) -> None:
        fetcher = _mock_fetcher()
        with patch("issue2md.main.get_fetcher", return_value=fetcher):
            result = runner.invoke(app, ["fetch", ISSUE_URL, "--no-comments"])

        assert result.exit_code == 0, result.output
        assert fetcher.fetch.call_args.args[1] == FetchOptions(include_comments=False)

    def test_writes_to_file(self, tmp_path: Path) -> None:
        out = tmp_path / "issue.json"
        with patch("issue2md.main.get_fetcher", return_value=_mock_fetcher()):
            result = runner.invoke(app, ["fetch", PR_URL, "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["meta"]["kind"] == "pull_request"

    def test_invalid_url(self) -> None:
        fetcher = _mock_fetcher()
        with patch("issue2md.main.get_fetcher", return_value=fetcher):
            result = runner.invoke(app, ["fetch", "https://gitlab.com/octo/hello/issues/1"])

        assert result.exit_code == EXIT_INVALID_ARGUMENTS
        fetcher.fetch.assert_not_called()
        fetcher.close.assert_called_once()

    @pytest.mark.parametrize(
        ("cause", "code"),
        [
            (ResourceNotFoundError("discussion node missing"), EXIT_NOT_FOUND),
            (StatusError(401, "Bad credentials"), EXIT_AUTH),
            (StatusError(429, "slow down"), EXIT_RATE_LIMITED),
            (StatusError(500, "boom"), EXIT_RUNTIME),
        ],
    )
    def test_failure_exit_codes(self, cause: BaseException, code: int) -> None:
        with patch("issue2md.main.get_fetcher", return_value=_mock_fetcher(side_effect=_wrapped(cause))):
            result = runner.invoke(app, ["fetch", ISSUE_URL])

        assert result.exit_code == code
        assert "fetch issue" in result.output

    def test_batch_writes_one_file_per_url(self, tmp_path: Path) -> None:
        out_dir = tmp_path / "out"
        with patch("issue2md.main.get_fetcher", return_value=_mock_fetcher()):
            result = runner.invoke(app, ["fetch", ISSUE_URL, PR_URL, "-o", str(out_dir)])

        assert result.exit_code == 0, result.output
        assert (out_dir / "octo-hello-issue-1.json").exists()
        assert (out_dir / "octo-hello-pull_request-7.json").exists()
        assert "2 succeeded, 0 failed" in result.output

    def test_batch_partial_failure(self, tmp_path: Path) -> None:
        def fetch(ref: ResourceRef, opts: FetchOptions) -> IssueData:
            if ref.kind == ResourceKind.PULL_REQUEST:
                raise _wrapped(StatusError(500, "boom"))
            return _data(ref)

        with patch("issue2md.main.get_fetcher", return_value=_mock_fetcher(side_effect=fetch)):
            result = runner.invoke(app, ["fetch", ISSUE_URL, PR_URL, "not-a-url", "-o", str(tmp_path)])

        assert result.exit_code == EXIT_PARTIAL_SUCCESS
        assert "FAILED" in result.output
        assert "1 succeeded, 2 failed" in result.output
        assert (tmp_path / "octo-hello-issue-1.json").exists()

    def test_unknown_profile(self) -> None:
        result = runner.invoke(app, ["fetch", ISSUE_URL, "--profile", "nope"])
        assert result.exit_code == EXIT_INVALID_ARGUMENTS

    @pytest.mark.parametrize("variable", ["ISSUE2MD_MAX_RETRIES", "ISSUE2MD_INITIAL_BACKOFF"])
    def test_negative_retry_settings(self, variable: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(variable, "-1")
        result = runner.invoke(app, ["fetch", ISSUE_URL])

        assert result.exit_code == EXIT_INVALID_ARGUMENTS
        assert "Invalid configuration" in result.output

    def test_missing_gh_cli(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ISSUE2MD_GITHUB_AUTH", "gh-cli")
        with patch.object(settings_module.subprocess, "run", side_effect=FileNotFoundError("gh")):
            result = runner.invoke(app, ["fetch", ISSUE_URL])

        assert result.exit_code == EXIT_INVALID_ARGUMENTS
        assert "gh CLI not found" in result.output


class TestShow:
    def test_issue(self) -> None:
        with patch("issue2md.main.get_fetcher", return_value=_mock_fetcher()):
            result = runner.invoke(app, ["show", ISSUE_URL])

        assert result.exit_code == 0, result.output
        assert "Title 1" in result.output
        assert "Timeline events" in result.output

    def test_discussion_shows_accepted_answer(self) -> None:
        meta = Metadata(
            kind=ResourceKind.DISCUSSION,
            number=3,
            title="Question",
            is_answered=True,
            accepted_answer_id="d2",
        )
        thread = [CommentNode(id="d1", author="bob"), CommentNode(id="d2", author="carol", body="Use [x]")]
        data = IssueData(meta=meta, thread=thread)
        with patch("issue2md.main.get_fetcher", return_value=_mock_fetcher(side_effect=lambda r, o: data)):
            result = runner.invoke(app, ["show", DISCUSSION_URL])

        assert result.exit_code == 0, result.output
        assert "carol: Use [x]" in result.output

    def test_not_found(self) -> None:
        fetcher = _mock_fetcher(side_effect=_wrapped(ResourceNotFoundError()))
        with patch("issue2md.main.get_fetcher", return_value=fetcher):
            result = runner.invoke(app, ["show", ISSUE_URL])

        assert result.exit_code == EXIT_NOT_FOUND
        fetcher.close.assert_called_once()


    def test_settings_decide_comments(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ISSUE2MD_INCLUDE_COMMENTS", "false")
        fetcher = _mock_fetcher()
        with patch("issue2md.main.get_fetcher", return_value=fetcher):
            result = runner.invoke(app, ["show", ISSUE_URL])

        assert result.exit_code == 0, result.output
        assert fetcher.fetch.call_args.args[1] == FetchOptions(include_comments=False)
        assert "omitted" in result.output

    def test_comments_flag_beats_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ISSUE2MD_INCLUDE_COMMENTS", "false")
        fetcher = _mock_fetcher()
        with patch("issue2md.main.get_fetcher", return_value=fetcher):
            result = runner.invoke(app, ["show", ISSUE_URL, "--comments"])

        assert result.exit_code == 0, result.output
        assert fetcher.fetch.call_args.args[1] == FetchOptions(include_comments=True)


class TestConfigShow:
    def test_masks_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_abcdefghijklmnop")
        result = runner.invoke(app, ["config-show"])

        assert result.exit_code == 0, result.output
        assert "ghp_abcdefghijklmnop" not in result.output
        assert "ghp_" in result.output


class TestHelpers:
    def test_default_filename(self) -> None:
        assert default_filename(parse_url(DISCUSSION_URL)) == "octo-hello-discussion-3.json"

    def test_exit_code_for_config_errors(self) -> None:
        assert exit_code_for(settings_module.ConfigError("bad")) == EXIT_INVALID_ARGUMENTS
        assert exit_code_for(RuntimeError("other")) == EXIT_RUNTIME
