"""Feature vector encoding and the training-set text record format.

A record is a single line::

    epoch,round,frame,far_line,near_line,velocity_x,velocity_y,[h1],[v1],[h2],[v2],[h3],[v3]

Positions and velocities are written rounded to two decimals. Each bracketed
list holds ``0``/``1`` tokens; a frame that was never captured is written as
two empty lists. Parsing is permissive: any token other than ``1`` reads as
``0``. Records without the ``frame`` counter (six scalars) are accepted too.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..core.errors import DimensionMismatch, MalformedExample
from ..core.types import Array
from .examples import FRAMES_PER_EXAMPLE, Frame, FrameGeometry, TrainingExample

TRAINING_SET_HEADER = (
    "epoch,round,frame,far_line,near_line,velocity_x,velocity_y,"
    "frame1h,frame1v,frame2h,frame2v,frame3h,frame3v"
)

_SCALARS_WITH_FRAME = 7
_SCALARS_LEGACY = 6


def empty_frame(geometry: FrameGeometry) -> Array:
    return np.zeros(geometry.frame_length, dtype=np.float64)


def encode(frames: Sequence[Optional[Frame]], geometry: FrameGeometry) -> Array:
    """Concatenate horizontal then vertical occupancy for frames 1, 2 and 3."""

    if len(frames) != FRAMES_PER_EXAMPLE:
        raise DimensionMismatch("frame slots", FRAMES_PER_EXAMPLE, len(frames))
    blocks: List[Array] = []
    for frame in frames:
        if frame is None:
            blocks.append(empty_frame(geometry))
            continue
        check_frame(frame, geometry)
        blocks.append(frame.horizontal.astype(np.float64))
        blocks.append(frame.vertical.astype(np.float64))
    vector = np.concatenate(blocks)
    if vector.shape[0] != geometry.vector_length:  # pragma: no cover - guardrail
        raise DimensionMismatch("feature vector", geometry.vector_length, vector.shape[0])
    return vector


def encode_example(example: TrainingExample, geometry: FrameGeometry) -> Array:
    return encode(example.frames, geometry)


def check_frame(frame: Frame, geometry: FrameGeometry) -> None:
    if frame.horizontal.shape[0] != geometry.width:
        raise DimensionMismatch("horizontal occupancy", geometry.width, frame.horizontal.shape[0])
    if frame.vertical.shape[0] != geometry.height:
        raise DimensionMismatch("vertical occupancy", geometry.height, frame.vertical.shape[0])


def occupancy_from_image(image: Array) -> Frame:
    """Collapse a ``(height, width)`` snapshot into per-axis presence arrays.

    Any non-zero pixel marks the object as present in its column (horizontal
    array) and in its row (vertical array).
    """

    pixels = np.asarray(image)
    if pixels.ndim == 3:
        pixels = pixels[..., 0]
    if pixels.ndim != 2:
        raise ValueError(f"Expected a 2-D snapshot, got shape {pixels.shape}")
    present = pixels != 0
    return Frame(horizontal=present.any(axis=0), vertical=present.any(axis=1))


def _fmt(value: float) -> str:
    return repr(round(float(value), 2))


def _bits(arr: Array) -> str:
    return "[" + ",".join("1" if bit else "0" for bit in arr) + "]"


def serialize_example(example: TrainingExample) -> str:
    scalars = [
        str(int(example.epoch)),
        str(int(example.round)),
        str(int(example.frame)),
        _fmt(example.far_line),
        _fmt(example.near_line),
        _fmt(example.velocity_x),
        _fmt(example.velocity_y),
    ]
    arrays = [_bits(arr) for arr in example.binary_arrays()]
    return ",".join(scalars + arrays)


def _parse_bits(text: str) -> Array:
    if text == "":
        return np.zeros(0, dtype=np.uint8)
    # Only a literal "1" sets a bit; everything else stays 0.
    return np.array([1 if token == "1" else 0 for token in text.split(",")], dtype=np.uint8)


def _parse_frame(horizontal: str, vertical: str) -> Optional[Frame]:
    h = _parse_bits(horizontal)
    v = _parse_bits(vertical)
    if h.size == 0 and v.size == 0:
        return None
    if h.size == 0 or v.size == 0:
        raise MalformedExample("Frame has only one of its two occupancy arrays")
    return Frame(horizontal=h, vertical=v)


def deserialize_example(line: str) -> TrainingExample:
    parts = line.strip().replace(",[", "|").replace("]", "").split("|")
    if len(parts) != 1 + 2 * FRAMES_PER_EXAMPLE:
        raise MalformedExample(
            f"Expected {1 + 2 * FRAMES_PER_EXAMPLE} sections, got {len(parts)}"
        )
    tokens = parts[0].split(",")
    try:
        if len(tokens) == _SCALARS_WITH_FRAME:
            epoch, rnd, frame = int(tokens[0]), int(tokens[1]), int(tokens[2])
            values = [float(token) for token in tokens[3:]]
        elif len(tokens) == _SCALARS_LEGACY:
            epoch, rnd, frame = int(tokens[0]), int(tokens[1]), 0
            values = [float(token) for token in tokens[2:]]
        else:
            raise MalformedExample(f"Expected 6 or 7 scalar fields, got {len(tokens)}")
    except ValueError as exc:
        if isinstance(exc, MalformedExample):
            raise
        raise MalformedExample(f"Unparseable scalar field: {exc}") from exc

    far_line, near_line, velocity_x, velocity_y = values
    frames = tuple(
        _parse_frame(parts[1 + 2 * idx], parts[2 + 2 * idx]) for idx in range(FRAMES_PER_EXAMPLE)
    )
    return TrainingExample(
        epoch=epoch,
        round=rnd,
        frame=frame,
        near_line=near_line,
        far_line=far_line,
        velocity_x=velocity_x,
        velocity_y=velocity_y,
        frames=frames,  # type: ignore[arg-type]
    )


def serialize_training_set(examples: Iterable[TrainingExample]) -> str:
    lines = [TRAINING_SET_HEADER]
    lines.extend(serialize_example(example) for example in examples)
    return "\n".join(lines) + "\n"


__all__ = [
    "TRAINING_SET_HEADER",
    "check_frame",
    "deserialize_example",
    "empty_frame",
    "encode",
    "encode_example",
    "occupancy_from_image",
    "serialize_example",
    "serialize_training_set",
]
