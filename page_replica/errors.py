"""Exception types raised by the capture pipeline."""

from __future__ import annotations


class CaptureError(Exception):
    """Base class for errors that abort or degrade a capture."""


class InvalidURL(CaptureError):
    """The target URL is malformed or uses an unsupported scheme."""

    def __init__(self, url: str, reason: str = "") -> None:
        message = f"Invalid URL: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.url = url


class RenderFailure(CaptureError):
    """The rendering engine failed to launch, navigate, or extract markup."""


class AssetFetchFailure(CaptureError):
    """A single asset could not be fetched. Never fatal to a capture."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Error downloading {url}: {reason}")
        self.url = url
        self.reason = reason


class CaptureCancelled(CaptureError):
    """The capture was cancelled through its cancel token."""
