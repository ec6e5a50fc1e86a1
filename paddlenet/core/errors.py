"""Error taxonomy shared by the codec, store, network and controller."""

from __future__ import annotations


class PaddleNetError(Exception):
    """Base class for PaddleNet failures."""


class DimensionMismatch(PaddleNetError, ValueError):
    """Raised when a vector length disagrees with the network or frame geometry."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        super().__init__(f"{what}: expected length {expected}, got {actual}")
        self.what = what
        self.expected = expected
        self.actual = actual


class InconsistentDuplicate(PaddleNetError):
    """Identical occupancy arrays observed with materially different far-line targets."""

    def __init__(self, content_hash: str, stored: float, incoming: float) -> None:
        super().__init__(
            f"Example {content_hash[:12]} already stored with far_line={stored:.2f}, "
            f"refusing far_line={incoming:.2f}"
        )
        self.content_hash = content_hash
        self.stored = stored
        self.incoming = incoming


class MalformedExample(PaddleNetError, ValueError):
    """Raised for incomplete examples or unparseable training-set records."""


__all__ = [
    "PaddleNetError",
    "DimensionMismatch",
    "InconsistentDuplicate",
    "MalformedExample",
]
