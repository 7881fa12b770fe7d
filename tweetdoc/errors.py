from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration or secrets are missing or invalid."""


class UpstreamError(RuntimeError):
    """Base class for failures reported by the Twitter API collaborator."""


class UpstreamAuthError(UpstreamError):
    """Raised when the bearer token is rejected (HTTP 401/403)."""


class UpstreamNotFound(UpstreamError):
    """Raised when a handle or post does not exist upstream."""


class UpstreamTransportError(UpstreamError):
    """Raised when the API cannot be reached or returns an unusable response."""


class MalformedEntityError(ValueError):
    """An entity offset falls outside its post text. Recovered by dropping the entity."""


class IncompleteMediaError(ValueError):
    """A photo lacks url, width or height. Recovered by omitting the media item."""


class ExportError(RuntimeError):
    """Raised when writing an HTML or PDF export fails."""
