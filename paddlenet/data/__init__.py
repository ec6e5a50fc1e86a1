"""Training data: frame encoding, example records and the deduplicating store."""

from .codec import (
    TRAINING_SET_HEADER,
    deserialize_example,
    encode,
    encode_example,
    occupancy_from_image,
    serialize_example,
)
from .examples import Frame, FrameGeometry, TrainingExample, content_hash
from .store import MERGE_THRESHOLD, AddOutcome, TrainingExampleStore

__all__ = [
    "AddOutcome",
    "Frame",
    "FrameGeometry",
    "MERGE_THRESHOLD",
    "TRAINING_SET_HEADER",
    "TrainingExample",
    "TrainingExampleStore",
    "content_hash",
    "deserialize_example",
    "encode",
    "encode_example",
    "occupancy_from_image",
    "serialize_example",
]
