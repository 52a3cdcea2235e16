"""In-memory models; nothing here outlives a single request."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html import escape
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def _freeze(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class WebhookRequest:
    """Snapshot of the inbound request data the pipeline needs."""

    body: bytes
    content_type: Optional[str] = None
    event_type: Optional[str] = None
    signature: Optional[str] = None
    form: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "form", _freeze(self.form))


@dataclass(frozen=True)
class PingEvent:
    payload: Any


@dataclass(frozen=True)
class PushEvent:
    payload: Any


@dataclass(frozen=True)
class UnrecognizedEvent:
    event_type: str
    payload: Any


Event = Union[PingEvent, PushEvent, UnrecognizedEvent]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of the pull command: merged stdout/stderr and the exit status."""

    returncode: int
    output: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        """Output with the exit status appended on its own line."""
        body = self.output.rstrip("\n")
        status = f"Exit code: {self.returncode}"
        return f"{body}\n{status}" if body else status


@dataclass(frozen=True)
class NotificationMessage:
    """
    A message template plus the values for its ``{name}`` placeholders.

    Placeholders without a value are left verbatim by :meth:`render` and
    reported by :meth:`unresolved`.
    """

    template: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _freeze(self.data))

    def render(self) -> str:
        def _sub(match: re.Match[str]) -> str:
            key = match.group(1)
            if key in self.data:
                return str(self.data[key])
            return match.group(0)

        return PLACEHOLDER_RE.sub(_sub, self.template)

    def unresolved(self) -> list[str]:
        return [key for key in PLACEHOLDER_RE.findall(self.template) if key not in self.data]


@dataclass(frozen=True)
class DeployResult:
    """What happened for a push that matched the configured repo and branch."""

    matched: bool
    output: str = ""
    succeeded: bool = True
    pusher_name: str = ""
    repo_url: str = ""
    current_site: str = ""
    commits_html: str = ""
    git_output: str = ""

    def message_data(self) -> dict[str, str]:
        """Substitution values; ``commits_html`` and ``git_output`` are already HTML."""
        return {
            "pusherName": escape(self.pusher_name, quote=True),
            "repoUrl": escape(self.repo_url, quote=True),
            "currentSite": escape(self.current_site, quote=True),
            "commitsHtml": self.commits_html,
            "gitOutput": self.git_output,
        }


@dataclass(frozen=True)
class EventOutcome:
    """HTTP answer for a handled event; an empty body means a silent success."""

    status_code: int = 200
    body: str = ""
    deploy: Optional[DeployResult] = None
