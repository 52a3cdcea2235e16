"""Message templates, keyed like the strings of a language file."""

from __future__ import annotations

from html import escape
from textwrap import dedent
from typing import Any, Mapping, Sequence

from gitdeploy.models import NotificationMessage

MESSAGE_BODY = "GITDEPLOY_MESSAGE_BODY"
MESSAGE_BODY_FAILED = "GITDEPLOY_MESSAGE_BODY_FAILED"
MESSAGE_BODY_COMMITS_LINE = "GITDEPLOY_MESSAGE_BODY_COMMITS_LINE"
MESSAGE_PING = "GITDEPLOY_MESSAGE_PING"
MESSAGE_PUSH_ERROR = "GITDEPLOY_MESSAGE_PUSH_ERROR"

MESSAGES: dict[str, str] = {
    MESSAGE_BODY: dedent(
        """
        <p><strong>{pusherName}</strong> pushed to
        <a href='{repoUrl}' title='{repoUrl}'>{repoUrl}</a></p>
        <p>Deployed on <strong>{currentSite}</strong></p>
        {commitsHtml}
        <p><strong>Output</strong></p>
        <pre>{gitOutput}</pre>
        """
    ).strip(),
    MESSAGE_BODY_FAILED: dedent(
        """
        <p><strong>Deployment failed</strong> on <strong>{currentSite}</strong></p>
        <p><strong>{pusherName}</strong> pushed to
        <a href='{repoUrl}' title='{repoUrl}'>{repoUrl}</a></p>
        {commitsHtml}
        <p><strong>Output</strong></p>
        <pre>{gitOutput}</pre>
        """
    ).strip(),
    MESSAGE_BODY_COMMITS_LINE: (
        "<li><a href='{commitUrl}' title='{commitMessage}'>{commitMessage}</a>"
        " <small>(added: {commitAdded}, modified: {commitModified},"
        " removed: {commitRemoved})</small></li>"
    ),
    MESSAGE_PING: "<p><strong>GitHub ping</strong></p><pre>{payload}</pre>",
    MESSAGE_PUSH_ERROR: "<p><strong>Push handling failed</strong></p><p>{error}</p>",
}


def message(key: str) -> str:
    """Template for ``key``; unknown keys come back unchanged."""
    return MESSAGES.get(key, key)


def _first_line(text: str | None) -> str:
    if not text:
        return ""
    return text.splitlines()[0]


def render_commits_html(commits: Sequence[Any]) -> str:
    """``<ul>`` of commit lines: first line of the message plus path counts."""
    line = message(MESSAGE_BODY_COMMITS_LINE)
    items = []
    for commit in commits:
        values: Mapping[str, str] = {
            "commitMessage": escape(_first_line(commit.message), quote=True),
            "commitAdded": str(len(commit.added)),
            "commitModified": str(len(commit.modified)),
            "commitRemoved": str(len(commit.removed)),
            "commitUrl": escape(commit.url, quote=True),
        }
        items.append(NotificationMessage(line, values).render())
    return "<ul>" + "".join(items) + "</ul>"
