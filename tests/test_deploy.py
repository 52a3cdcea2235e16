"""Tests for push matching, the pull command and deploy reports."""

import dataclasses
import stat
from unittest.mock import AsyncMock

import pytest

from gitdeploy.errors import CommandExecutionError, PayloadParseError
from gitdeploy.models import CommandResult
from gitdeploy.services.deploy import (
    build_result,
    execute_push,
    matches,
    parse_push,
    pull_command,
    run_pull,
)
from gitdeploy.services.messages import MESSAGE_BODY, MESSAGE_BODY_FAILED, message

from conftest import FakeRunner


def _script(tmp_path, body):
    path = tmp_path / "fake-git"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return str(path)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

class TestMatches:
    def test_exact_match(self, config, push_payload):
        assert matches(parse_push(push_payload), config) is True

    def test_other_branch(self, config, push_payload):
        push_payload["ref"] = "refs/heads/dev"
        assert matches(parse_push(push_payload), config) is False

    def test_tag_with_branch_name(self, config, push_payload):
        push_payload["ref"] = "refs/tags/main"
        assert matches(parse_push(push_payload), config) is False

    def test_other_repo(self, config, push_payload):
        push_payload["repository"]["url"] = "https://github.com/acme/other"
        assert matches(parse_push(push_payload), config) is False

    def test_trailing_slash_is_not_normalised(self, config, push_payload):
        push_payload["repository"]["url"] += "/"
        assert matches(parse_push(push_payload), config) is False

    def test_custom_host(self, config, push_payload):
        cfg = dataclasses.replace(config, repo_host="git.example.com")
        push_payload["repository"]["url"] = "https://git.example.com/acme/site"
        assert matches(parse_push(push_payload), cfg) is True


class TestParsePush:
    def test_missing_ref(self, push_payload):
        del push_payload["ref"]
        with pytest.raises(PayloadParseError, match="Malformed push payload"):
            parse_push(push_payload)

    def test_not_an_object(self):
        with pytest.raises(PayloadParseError):
            parse_push(["ref"])

    def test_optional_fields_default(self):
        push = parse_push({"ref": "refs/heads/main", "repository": {"url": "u"}})
        assert push.pusher.name == ""
        assert push.commits == []


# ---------------------------------------------------------------------------
# execute_push
# ---------------------------------------------------------------------------

class TestExecutePush:
    async def test_non_matching_push_is_silent(self, config, push_payload):
        push_payload["ref"] = "refs/heads/feature"
        runner = FakeRunner()
        notify = AsyncMock()
        result = await execute_push(
            push_payload, config, current_site="https://site.test/", runner=runner, notify=notify
        )
        assert result is None
        assert runner.calls == []
        notify.assert_not_awaited()

    async def test_matching_push_pulls_once_and_notifies(self, config, push_payload):
        runner = FakeRunner()
        notify = AsyncMock()
        result = await execute_push(
            push_payload, config, current_site="https://site.test/", runner=runner, notify=notify
        )
        assert runner.calls == [config]
        assert result.matched and result.succeeded
        notify.assert_awaited_once()
        sent = notify.await_args.args[0]
        assert sent.template == message(MESSAGE_BODY)
        assert sent.data["pusherName"] == "alice"
        assert sent.data["currentSite"] == "https://site.test/"
        assert "Already up to date." in sent.data["gitOutput"]
        assert sent.unresolved() == []

    async def test_notifications_disabled(self, config, push_payload):
        cfg = dataclasses.replace(config, send_notifications=False)
        runner = FakeRunner()
        notify = AsyncMock()
        result = await execute_push(
            push_payload, cfg, current_site="s", runner=runner, notify=notify
        )
        assert len(runner.calls) == 1
        assert result is not None
        notify.assert_not_awaited()

    async def test_non_zero_exit_reported_as_failure(self, config, push_payload):
        runner = FakeRunner(CommandResult(1, "fatal: not a git repository\n"))
        notify = AsyncMock()
        result = await execute_push(
            push_payload, config, current_site="s", runner=runner, notify=notify
        )
        assert result.succeeded is False
        assert result.output.endswith("Exit code: 1")
        assert notify.await_args.args[0].template == message(MESSAGE_BODY_FAILED)

    async def test_runner_errors_propagate(self, config, push_payload):
        runner = FakeRunner(exc=CommandExecutionError("timed out"))
        with pytest.raises(CommandExecutionError):
            await execute_push(push_payload, config, current_site="s", runner=runner)


class TestBuildResult:
    def test_fields(self, push_payload):
        push = parse_push(push_payload)
        result = build_result(push, CommandResult(0, "line1\nline2\n"), "https://site.test/")
        assert result.pusher_name == "alice"
        assert result.repo_url == "https://github.com/acme/site"
        assert result.git_output == "line1<br>\nline2<br>\nExit code: 0"
        assert result.commits_html.count("<li>") == 2


# ---------------------------------------------------------------------------
# run_pull
# ---------------------------------------------------------------------------

class TestRunPull:
    def test_argument_vector(self, config):
        cfg = dataclasses.replace(config, git="/usr/bin/git", remote="up; rm -rf /", branch="main")
        assert pull_command(cfg) == ["/usr/bin/git", "pull", "up; rm -rf /", "main"]

    async def test_captures_output_and_status(self, config, tmp_path):
        git = _script(tmp_path, 'echo "args: $@"\necho "oops" >&2\nexit 3')
        cfg = dataclasses.replace(config, git=git, work_tree=str(tmp_path))
        result = await run_pull(cfg)
        assert result.returncode == 3
        assert "args: pull origin main" in result.output
        assert "oops" in result.output
        assert result.text.endswith("Exit code: 3")

    async def test_runs_in_work_tree(self, config, tmp_path):
        git = _script(tmp_path, "pwd")
        cfg = dataclasses.replace(config, git=git, work_tree=str(tmp_path))
        result = await run_pull(cfg)
        assert result.succeeded
        assert result.output.strip().endswith(tmp_path.name)

    async def test_missing_executable(self, config, tmp_path):
        cfg = dataclasses.replace(config, git=str(tmp_path / "nope"))
        with pytest.raises(CommandExecutionError, match="Cannot run"):
            await run_pull(cfg)

    async def test_timeout(self, config, tmp_path):
        git = _script(tmp_path, "exec sleep 5")
        cfg = dataclasses.replace(config, git=git, command_timeout=0.2)
        with pytest.raises(CommandExecutionError, match="timed out"):
            await run_pull(cfg)
