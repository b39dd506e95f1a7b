class FifoPlayerError(Exception):
    """Base exception for fifoplayer setup errors."""

    pass


class ConfigError(FifoPlayerError):
    """Raised when required configuration is missing or malformed."""

    pass


class AuthorizationError(FifoPlayerError):
    """Raised when the Spotify authorization flow cannot produce a token."""

    pass
