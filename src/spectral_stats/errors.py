"""
Error types raised by spectral_stats
"""


class SpectralStatsError(ValueError):
    """Base class for all hard failures raised by the package."""


class InvalidShapeError(SpectralStatsError):
    """The cube has degenerate dimensions or no usable wavelength table."""


class InsufficientDataError(SpectralStatsError):
    """The cube holds too few samples for the requested analysis."""


class UnsupportedSampleEncodingError(SpectralStatsError):
    """The sample dtype has no supported storage mapping."""
