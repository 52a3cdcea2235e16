"""Tests for log redaction."""

from gitdeploy.logging import _filter_sensitive


def _filter(**event):
    return _filter_sensitive(None, "info", dict(event))


def test_masks_telegram_token_in_url():
    out = _filter(event="notification_failed", error="POST https://api.telegram.org/bot123:AbC-d_e/sendMessage")
    assert "123:AbC-d_e" not in out["error"]
    assert "/bot***REDACTED***/sendMessage" in out["error"]


def test_masks_key_value_secrets():
    out = _filter(event="config", detail="HOOK_SECRET=s3cret")
    assert "s3cret" not in out["detail"]


def test_leaves_other_values_alone():
    out = _filter(event="push_ignored", ref="refs/heads/main", attempts=2)
    assert out == {"event": "push_ignored", "ref": "refs/heads/main", "attempts": 2}
