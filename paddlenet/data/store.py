"""Insertion-ordered training example store with content-hash deduplication."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.errors import InconsistentDuplicate, MalformedExample
from .codec import TRAINING_SET_HEADER, check_frame, deserialize_example, serialize_training_set
from .examples import FrameGeometry, TrainingExample, content_hash

MERGE_THRESHOLD = 4.0


class AddOutcome(str, Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    MERGED = "merged"


class TrainingExampleStore:
    """Own every accepted :class:`TrainingExample` in arrival order.

    Examples live in a list; a dictionary maps each content hash to the
    list index of the example carrying it. When a new example hashes to a
    stored one the outcome decides what happens:

    * same near-line and far-line positions (to 2 decimals): discarded;
    * far-line positions closer than ``merge_threshold``: the stored far-line
      becomes the mean of the two. This is a single-step average, so repeated
      merges weigh recent observations more heavily than a running mean would;
    * otherwise :class:`InconsistentDuplicate` is raised and nothing changes.
    """

    def __init__(
        self,
        geometry: Optional[FrameGeometry] = None,
        *,
        merge_threshold: float = MERGE_THRESHOLD,
    ) -> None:
        self.geometry = geometry
        self.merge_threshold = float(merge_threshold)
        self._examples: List[TrainingExample] = []
        self._index: Dict[str, int] = {}
        self.skipped_lines = 0

    def __len__(self) -> int:
        return len(self._examples)

    def __iter__(self) -> Iterator[TrainingExample]:
        return iter(tuple(self._examples))

    def __getitem__(self, index: int) -> TrainingExample:
        return self._examples[index]

    @property
    def count(self) -> int:
        return len(self._examples)

    def all(self) -> Tuple[TrainingExample, ...]:
        return tuple(self._examples)

    def index_of(self, digest: str) -> Optional[int]:
        return self._index.get(digest)

    def add(self, example: TrainingExample) -> AddOutcome:
        if not example.has_frames():
            raise MalformedExample("Example has no captured frames")
        if self.geometry is not None:
            for frame in example.frames:
                if frame is not None:
                    check_frame(frame, self.geometry)

        digest = content_hash(example)
        position = self._index.get(digest)
        if position is None:
            self._index[digest] = len(self._examples)
            self._examples.append(example)
            return AddOutcome.INSERTED

        stored = self._examples[position]
        if round(stored.near_line, 2) == round(example.near_line, 2) and round(
            stored.far_line, 2
        ) == round(example.far_line, 2):
            return AddOutcome.DUPLICATE

        if abs(example.far_line - stored.far_line) < self.merge_threshold:
            stored.far_line = (stored.far_line + example.far_line) / 2
            return AddOutcome.MERGED

        raise InconsistentDuplicate(digest, stored.far_line, example.far_line)

    def next_epoch(self) -> int:
        if not self._examples:
            return 0
        return self._examples[-1].epoch + 1

    def save(self, path: str | Path) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize_training_set(self._examples), encoding="utf-8")
        return str(path)

    def load(self, path: str | Path) -> bool:
        """Add every record in ``path`` to this store.

        Returns ``False`` when the file does not exist. Lines that fail to
        parse are skipped and counted in :attr:`skipped_lines`. A conflicting
        duplicate or a geometry mismatch raises and rolls the store back to
        its state before the call.
        """

        path = Path(path)
        self.skipped_lines = 0
        if not path.exists():
            return False
        text = path.read_text(encoding="utf-8")
        far_lines = [example.far_line for example in self._examples]
        try:
            for line in text.splitlines():
                line = line.strip()
                if not line or line == TRAINING_SET_HEADER:
                    continue
                try:
                    example = deserialize_example(line)
                    self.add(example)
                except MalformedExample:
                    self.skipped_lines += 1
        except Exception:
            self._rollback(far_lines)
            raise
        return True

    def _rollback(self, far_lines: List[float]) -> None:
        kept = len(far_lines)
        del self._examples[kept:]
        for example, far_line in zip(self._examples, far_lines):
            example.far_line = far_line
        self._index = {digest: idx for digest, idx in self._index.items() if idx < kept}
        self.skipped_lines = 0

    @classmethod
    def from_file(
        cls, path: str | Path, geometry: Optional[FrameGeometry] = None
    ) -> "TrainingExampleStore":
        store = cls(geometry)
        store.load(path)
        return store


__all__ = ["AddOutcome", "MERGE_THRESHOLD", "TrainingExampleStore"]
