# jewel_tryon/errors.py


class TryOnError(Exception):
    """Base class for every error raised by the try-on engine."""


class CapabilityError(TryOnError):
    """Camera, GPU or landmark model unavailable. Fatal for the session."""


class ConfigError(TryOnError):
    """Configuration file could not be read or has the wrong shape."""


class ShareCancelled(TryOnError):
    """User dismissed the native share sheet."""


class ShareUnavailable(TryOnError):
    """The share channel does not exist on this platform."""


class ShareFailed(TryOnError):
    """The share channel exists but the share did not go through."""
