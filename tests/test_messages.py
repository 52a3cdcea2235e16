"""Tests for notification messages and templates."""

import dataclasses

import pytest

from gitdeploy.models import CommandResult, DeployResult, NotificationMessage
from gitdeploy.schemas import Commit
from gitdeploy.services.messages import (
    MESSAGE_BODY,
    MESSAGE_BODY_COMMITS_LINE,
    MESSAGES,
    message,
    render_commits_html,
)


class TestNotificationMessage:
    def test_substitutes_known_keys(self):
        msg = NotificationMessage("Hi {name}, {count} new", {"name": "bob", "count": 3})
        assert msg.render() == "Hi bob, 3 new"
        assert msg.unresolved() == []

    def test_unresolved_left_verbatim(self):
        msg = NotificationMessage("Hi {name} from {place}", {"name": "bob"})
        assert msg.render() == "Hi bob from {place}"
        assert msg.unresolved() == ["place"]

    def test_values_are_not_substituted_again(self):
        msg = NotificationMessage("{a} {b}", {"a": "{b}", "b": "x"})
        assert msg.render() == "{b} x"

    def test_extra_keys_ignored(self):
        assert NotificationMessage("plain", {"unused": 1}).render() == "plain"

    def test_immutable(self):
        msg = NotificationMessage("{a}", {"a": 1})
        with pytest.raises(dataclasses.FrozenInstanceError):
            msg.template = "x"
        with pytest.raises(TypeError):
            msg.data["a"] = 2

    def test_caller_dict_changes_do_not_leak(self):
        data = {"a": "1"}
        msg = NotificationMessage("{a}", data)
        data["a"] = "2"
        assert msg.render() == "1"


class TestCatalogue:
    def test_known_key(self):
        assert message(MESSAGE_BODY) == MESSAGES[MESSAGE_BODY]

    def test_unknown_key_returned_as_is(self):
        assert message("NO_SUCH_KEY") == "NO_SUCH_KEY"

    def test_deploy_body_placeholders_covered_by_result(self):
        data = DeployResult(matched=True).message_data()
        assert NotificationMessage(message(MESSAGE_BODY), data).unresolved() == []


class TestCommitsHtml:
    def test_lines_and_counts(self):
        commits = [
            Commit(
                message="Fix <b>bug</b>\n\nbody",
                url="https://github.com/acme/site/commit/1",
                added=["a", "b"],
                modified=["c"],
                removed=[],
            ),
            Commit(message="Second", url="https://github.com/acme/site/commit/2"),
        ]
        html = render_commits_html(commits)
        assert html.startswith("<ul>") and html.endswith("</ul>")
        assert html.count("<li>") == 2
        assert "added: 2, modified: 1, removed: 0" in html
        assert "href='https://github.com/acme/site/commit/1'" in html
        assert "Fix &lt;b&gt;bug&lt;/b&gt;" in html
        assert "body" not in html

    def test_placeholder_text_in_commit_message_is_inert(self):
        html = render_commits_html([Commit(message="see {commitUrl}", url="u")])
        assert "see {commitUrl}" in html

    def test_empty(self):
        assert render_commits_html([]) == "<ul></ul>"

    def test_line_template_has_all_placeholders(self):
        line = message(MESSAGE_BODY_COMMITS_LINE)
        for key in ("commitMessage", "commitAdded", "commitModified", "commitRemoved", "commitUrl"):
            assert "{" + key + "}" in line


class TestCommandResult:
    def test_text_appends_exit_code(self):
        assert CommandResult(0, "Updating a..b\n").text == "Updating a..b\nExit code: 0"

    def test_text_without_output(self):
        assert CommandResult(1, "").text == "Exit code: 1"

    def test_succeeded(self):
        assert CommandResult(0, "").succeeded
        assert not CommandResult(128, "").succeeded


def test_deploy_result_escapes_values():
    data = DeployResult(matched=True, pusher_name="<eve>").message_data()
    assert data["pusherName"] == "&lt;eve&gt;"
