"""Error types raised by the project mirror."""

from typing import Optional


class MirrorError(Exception):
    """Base class for all project mirror failures."""
    pass


class AuthError(MirrorError):
    """Raised when GitLab rejects the personal access token."""
    pass


class TransportError(MirrorError):
    """Raised on network failures or unexpected HTTP statuses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(MirrorError):
    """Raised when a response body does not have the expected shape."""
    pass


class ProtocolError(MirrorError):
    """Raised when pagination metadata is malformed."""
    pass


class StorageError(MirrorError):
    """Raised when the local SQLite mirror cannot be read or written."""
    pass


class ConfigError(MirrorError):
    """Raised when local configuration (e.g. the token file) is unusable."""
    pass


class FetchCancelled(MirrorError):
    """Raised when a fetch is stopped between pages."""
    pass
