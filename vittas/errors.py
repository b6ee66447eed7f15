"""
Error taxonomy shared by every Vittas component.

All request handlers catch these at the outermost layer and turn them into
an ``{"error": message}`` response, so the message text is what callers see.
"""


class VittasError(Exception):
    """Base exception for all Vittas errors."""
    pass


class AuthenticationError(VittasError):
    """Missing or invalid bearer credential, or an unresolvable user."""
    pass


class ValidationError(VittasError):
    """Request input that cannot be acted on (unknown plan, bad body, ...)."""
    pass


class DependencyError(VittasError):
    """A database query or an external HTTP call failed."""
    pass


class ConfigurationError(VittasError):
    """Required credentials or settings are missing."""
    pass
