"""Shared fixtures."""

import copy
import hashlib
import hmac

import pytest

from gitdeploy.config import DeployConfig
from gitdeploy.models import CommandResult, NotificationMessage

SECRET = "s3cret"

PUSH_PAYLOAD = {
    "ref": "refs/heads/main",
    "repository": {
        "url": "https://github.com/acme/site",
        "full_name": "acme/site",
    },
    "pusher": {"name": "alice", "email": "alice@example.com"},
    "commits": [
        {
            "id": "abc1234",
            "message": "Fix header <b>layout</b>\n\nLonger description",
            "url": "https://github.com/acme/site/commit/abc1234",
            "added": ["a.txt"],
            "modified": ["b.txt", "c.txt"],
            "removed": [],
        },
        {
            "id": "def5678",
            "message": "Bump version",
            "url": "https://github.com/acme/site/commit/def5678",
            "added": [],
            "modified": ["VERSION"],
            "removed": ["old.txt"],
        },
    ],
}


def sign(body: bytes, secret: str = SECRET, algo: str = "sha256") -> str:
    return f"{algo}=" + hmac.new(secret.encode(), body, getattr(hashlib, algo)).hexdigest()


class RecordingNotifier:
    """Stands in for :class:`gitdeploy.services.notify.Notifier`."""

    def __init__(self):
        self.sent: list[NotificationMessage] = []

    async def send(self, msg):
        self.sent.append(msg)
        return []


class FakeRunner:
    def __init__(self, result=None, exc=None):
        self.result = result or CommandResult(0, "Already up to date.\n")
        self.exc = exc
        self.calls = []

    async def __call__(self, config):
        self.calls.append(config)
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def config():
    return DeployConfig(
        hook_secret=SECRET,
        repo="acme/site",
        branch="main",
        remote="origin",
        send_notifications=True,
        notification_providers=("slack",),
        slack_webhook="https://hooks.slack.test/T000",
        public_base_url="https://site.test/",
    )


@pytest.fixture
def push_payload():
    return copy.deepcopy(PUSH_PAYLOAD)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def runner():
    return FakeRunner()
