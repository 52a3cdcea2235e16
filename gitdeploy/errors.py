"""Errors raised while handling a webhook delivery."""

from __future__ import annotations


class GitDeployError(Exception):
    """Base class; ``status_code`` is what the HTTP layer answers with."""

    status_code = 500


class AuthenticationError(GitDeployError):
    """Missing or invalid signature, unsupported algorithm, or secret mismatch."""


class MissingHeaderError(GitDeployError):
    """The ``Content-Type`` or ``X-Github-Event`` header is absent."""


class UnsupportedContentTypeError(GitDeployError):
    def __init__(self, content_type: str) -> None:
        super().__init__(f"Unsupported content type: {content_type}")
        self.content_type = content_type


class PayloadParseError(GitDeployError):
    """The payload is not valid JSON or lacks required fields."""


class CommandExecutionError(GitDeployError):
    """The pull command could not be started or did not finish in time."""


class NotificationDeliveryError(GitDeployError):
    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
