"""
Exceptions raised while setting up a sampling run.
"""


class ConfigurationError(ValueError):
    """
    A run cannot start because its inputs are unusable.

    Raised for missing or malformed metadata and slope files, metadata
    files whose line count does not match the number of frames, and pixel
    stores that cannot be allocated or hold the wrong element type. Always
    raised before any sampling work begins.
    """
