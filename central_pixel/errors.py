"""
Exception taxonomy for the benchmark.

Every fatal condition raises a subclass of CentralPixelError. A test galaxy
whose cluster key is unknown is not an error: it gets the fallback vector.
"""


class CentralPixelError(Exception):
    """Base exception for the benchmark."""


class ImageDecodeError(CentralPixelError):
    """Image file missing or not decodable."""


class PatchBoundsError(CentralPixelError):
    """Image too small to hold the central sampling window."""


class LabelParseError(CentralPixelError):
    """Solutions file unreadable, non-numeric or badly shaped."""


class DataIntegrityError(CentralPixelError):
    """Structural mismatch between inputs (lengths, identifiers, clusters)."""


class ArtifactError(CentralPixelError):
    """Missing or invalid saved model artifacts."""


class InputPathError(CentralPixelError):
    """Input directory missing or not a directory."""


class ConfigurationError(CentralPixelError):
    """Invalid benchmark parameter (hash factor, fractions)."""
