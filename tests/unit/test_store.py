import numpy as np
import pytest

from paddlenet.core.errors import DimensionMismatch, InconsistentDuplicate, MalformedExample
from paddlenet.data.codec import TRAINING_SET_HEADER, serialize_example
from paddlenet.data.examples import Frame, FrameGeometry, TrainingExample
from paddlenet.data.store import AddOutcome, TrainingExampleStore

GEOMETRY = FrameGeometry(width=4, height=3)


def _frames(seed: int):
    rng = np.random.default_rng(seed)
    return tuple(
        Frame(rng.integers(0, 2, GEOMETRY.width), rng.integers(0, 2, GEOMETRY.height))
        for _ in range(3)
    )


def _example(seed: int = 0, *, far: float = 10.0, near: float = 50.0, epoch: int = 0):
    return TrainingExample(
        epoch=epoch,
        round=1,
        frame=21,
        near_line=near,
        far_line=far,
        velocity_x=-2.5,
        velocity_y=1.25,
        frames=_frames(seed),
    )


def test_insert_keeps_arrival_order():
    store = TrainingExampleStore(GEOMETRY)
    for seed in range(3):
        assert store.add(_example(seed, far=float(seed))) is AddOutcome.INSERTED
    assert len(store) == store.count == 3
    assert [example.far_line for example in store.all()] == [0.0, 1.0, 2.0]
    assert isinstance(store.all(), tuple)
    assert store.index_of(_example(1).content_hash()) == 1


def test_identical_outcome_is_idempotent():
    store = TrainingExampleStore(GEOMETRY)
    store.add(_example(far=10.004, near=50.001))
    assert store.add(_example(far=10.0, near=50.0)) is AddOutcome.DUPLICATE
    assert len(store) == 1
    assert store[0].far_line == 10.004


def test_near_duplicate_merges_to_mean():
    store = TrainingExampleStore(GEOMETRY)
    store.add(_example(far=10.0))
    assert store.add(_example(far=12.0)) is AddOutcome.MERGED
    assert len(store) == 1
    assert store[0].far_line == pytest.approx(11.0)


def test_merge_is_a_single_step_average():
    store = TrainingExampleStore(GEOMETRY)
    store.add(_example(far=10.0))
    store.add(_example(far=12.0))
    store.add(_example(far=13.0))
    assert store[0].far_line == pytest.approx(12.0)


def test_merge_ignores_near_line_differences():
    store = TrainingExampleStore(GEOMETRY)
    store.add(_example(far=10.0, near=50.0))
    assert store.add(_example(far=10.0, near=80.0)) is AddOutcome.MERGED
    assert store[0].near_line == 50.0
    assert store[0].far_line == pytest.approx(10.0)


@pytest.mark.parametrize("incoming", [14.0, 30.0, 5.0])
def test_conflicting_outcome_raises_and_leaves_store_unchanged(incoming):
    store = TrainingExampleStore(GEOMETRY)
    store.add(_example(far=10.0))
    with pytest.raises(InconsistentDuplicate) as excinfo:
        store.add(_example(far=incoming))
    assert excinfo.value.stored == 10.0
    assert excinfo.value.incoming == incoming
    assert len(store) == 1
    assert store[0].far_line == 10.0


def test_scalar_fields_do_not_affect_identity():
    a = _example(0, far=1.0, epoch=1)
    b = _example(0, far=90.0, epoch=7)
    assert a.content_hash() == b.content_hash()
    assert a.content_hash() != _example(1).content_hash()


def test_example_without_frames_is_rejected():
    store = TrainingExampleStore(GEOMETRY)
    with pytest.raises(MalformedExample):
        store.add(TrainingExample(far_line=3.0))
    assert len(store) == 0


def test_geometry_is_enforced():
    store = TrainingExampleStore(GEOMETRY)
    wrong = TrainingExample(frames=(Frame([1, 0], [0, 1, 0]), None, None))
    with pytest.raises(DimensionMismatch):
        store.add(wrong)


def test_next_epoch_follows_last_example():
    store = TrainingExampleStore(GEOMETRY)
    assert store.next_epoch() == 0
    store.add(_example(0, epoch=4))
    store.add(_example(1, epoch=9))
    assert store.next_epoch() == 10


def test_save_then_load_reproduces_examples(tmp_path):
    store = TrainingExampleStore(GEOMETRY)
    for seed in range(3):
        store.add(_example(seed, far=10.25 * (seed + 1), near=3.5 + seed, epoch=seed))
    path = tmp_path / "data" / "training-set.txt"
    store.save(path)
    assert path.read_text().splitlines()[0] == TRAINING_SET_HEADER

    restored = TrainingExampleStore(GEOMETRY)
    assert restored.load(path) is True
    assert len(restored) == 3
    for before, after in zip(store.all(), restored.all()):
        assert after.epoch == before.epoch
        assert after.near_line == round(before.near_line, 2)
        assert after.far_line == round(before.far_line, 2)
        assert after.velocity_x == before.velocity_x
        assert after.velocity_y == before.velocity_y
        for left, right in zip(before.binary_arrays(), after.binary_arrays()):
            assert np.array_equal(left, right)


def test_load_missing_file_is_not_an_error(tmp_path):
    store = TrainingExampleStore(GEOMETRY)
    assert store.load(tmp_path / "absent.txt") is False
    assert len(store) == 0


def test_load_skips_malformed_lines(tmp_path):
    path = tmp_path / "training-set.txt"
    lines = [
        TRAINING_SET_HEADER,
        serialize_example(_example(0, far=20.0)),
        "not a record",
        "",
        serialize_example(_example(1, far=30.0)),
        "1,2,3,4",
    ]
    path.write_text("\n".join(lines))
    store = TrainingExampleStore.from_file(path, GEOMETRY)
    assert len(store) == 2
    assert store.skipped_lines == 2


def test_load_applies_merge_rule(tmp_path):
    path = tmp_path / "training-set.txt"
    path.write_text(
        "\n".join(
            [
                TRAINING_SET_HEADER,
                serialize_example(_example(0, far=20.0)),
                serialize_example(_example(0, far=22.0)),
            ]
        )
    )
    store = TrainingExampleStore.from_file(path, GEOMETRY)
    assert len(store) == 1
    assert store[0].far_line == pytest.approx(21.0)


def test_conflicting_record_rolls_back_whole_load(tmp_path):
    path = tmp_path / "training-set.txt"
    path.write_text(
        "\n".join(
            [
                TRAINING_SET_HEADER,
                serialize_example(_example(0, far=10.0)),
                serialize_example(_example(1, far=20.0)),
                serialize_example(_example(1, far=50.0)),
                serialize_example(_example(0, far=30.0)),
            ]
        )
    )
    store = TrainingExampleStore(GEOMETRY)
    with pytest.raises(InconsistentDuplicate):
        store.load(path)
    assert len(store) == 0
    assert store.index_of(_example(0).content_hash()) is None
    assert store.add(_example(1, far=50.0)) is AddOutcome.INSERTED


def test_failed_load_restores_existing_examples(tmp_path):
    store = TrainingExampleStore(GEOMETRY)
    store.add(_example(0, far=10.0))
    path = tmp_path / "training-set.txt"
    path.write_text(
        "\n".join(
            [
                serialize_example(_example(0, far=12.0)),
                serialize_example(_example(2, far=40.0)),
                serialize_example(_example(2, far=80.0)),
            ]
        )
    )
    with pytest.raises(InconsistentDuplicate):
        store.load(path)
    assert len(store) == 1
    assert store[0].far_line == 10.0
    assert store.index_of(_example(0).content_hash()) == 0
    assert store.index_of(_example(2).content_hash()) is None
