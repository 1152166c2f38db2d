"""Exception types raised by the denoising core.

All of them derive from :class:`ValueError` so callers that already
guard against bad input values keep working.
"""


class DenoiseError(ValueError):
    """Base class for denoising precondition failures."""


class DimensionMismatch(DenoiseError):
    """Raised when the color and guide buffers do not share width and height."""


class InvalidParameter(DenoiseError):
    """Raised when a filter parameter is out of range."""


class UnknownBackend(DenoiseError):
    """Raised when a denoising method is unsupported or not available."""
