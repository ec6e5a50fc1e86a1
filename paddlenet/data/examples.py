"""Training example data model and its content hash."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

import numpy as np

from ..core.types import Array

FRAMES_PER_EXAMPLE = 3


@dataclass(frozen=True)
class FrameGeometry:
    """Lengths of the two occupancy arrays captured per frame."""

    width: int = 75
    height: int = 131

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Frame geometry must be positive, got {self.width}x{self.height}")

    @property
    def frame_length(self) -> int:
        return self.width + self.height

    @property
    def vector_length(self) -> int:
        return FRAMES_PER_EXAMPLE * self.frame_length


@dataclass(frozen=True, eq=False)
class Frame:
    """Horizontal and vertical presence of the tracked object in one snapshot."""

    horizontal: Array
    vertical: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "horizontal", _binary(self.horizontal))
        object.__setattr__(self, "vertical", _binary(self.vertical))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return np.array_equal(self.horizontal, other.horizontal) and np.array_equal(
            self.vertical, other.vertical
        )

    __hash__ = None  # type: ignore[assignment]


def _binary(values) -> Array:
    arr = np.asarray(values).reshape(-1)
    return (arr != 0).astype(np.uint8)


FrameSlots = Tuple[Optional[Frame], Optional[Frame], Optional[Frame]]


@dataclass
class TrainingExample:
    """One observed contact-and-return cycle.

    ``far_line`` is the arrival position to be learned, ``near_line`` the
    position where contact occurred. ``last_prediction`` and ``last_expected``
    are bookkeeping for display and are ignored by equality, hashing and
    persistence.
    """

    epoch: int = 0
    round: int = 0
    frame: int = 0
    near_line: float = 0.0
    far_line: float = 0.0
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    frames: FrameSlots = (None, None, None)
    last_prediction: Optional[float] = field(default=None, compare=False)
    last_expected: Optional[float] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        frames = tuple(self.frames)
        if len(frames) != FRAMES_PER_EXAMPLE:
            raise ValueError(
                f"An example holds exactly {FRAMES_PER_EXAMPLE} frame slots, got {len(frames)}"
            )
        self.frames = frames  # type: ignore[assignment]

    def has_frames(self) -> bool:
        return any(frame is not None for frame in self.frames)

    def binary_arrays(self) -> Iterator[Array]:
        """Yield the six occupancy arrays; a missing frame yields two empty arrays."""

        empty = np.zeros(0, dtype=np.uint8)
        for frame in self.frames:
            if frame is None:
                yield empty
                yield empty
            else:
                yield frame.horizontal
                yield frame.vertical

    def content_hash(self) -> str:
        return content_hash(self)


def content_hash(example: TrainingExample) -> str:
    """SHA-256 over the six occupancy arrays; scalar fields do not participate."""

    canonical = "|".join(
        "".join("1" if bit else "0" for bit in arr) for arr in example.binary_arrays()
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


__all__ = [
    "FRAMES_PER_EXAMPLE",
    "Frame",
    "FrameGeometry",
    "TrainingExample",
    "content_hash",
]
