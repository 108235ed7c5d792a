import pytest

from hostprep.deploy.guard import FileMarkerStore
from hostprep.errors import MarkerWriteError


def test_marker_absent_until_marked(tmp_path):
    store = FileMarkerStore(tmp_path / "markers")
    assert store.is_done("partition-expanded") is False
    store.mark_done("partition-expanded")
    assert store.is_done("partition-expanded") is True


def test_marker_survives_a_new_store_instance(tmp_path):
    FileMarkerStore(tmp_path / "markers").mark_done("partition-expanded")
    assert FileMarkerStore(tmp_path / "markers").is_done("partition-expanded")


def test_repeated_mark_is_a_noop(tmp_path):
    store = FileMarkerStore(tmp_path / "markers")
    store.mark_done("partition-expanded")
    marker = tmp_path / "markers" / "partition-expanded"
    first = marker.read_text()
    store.mark_done("partition-expanded")
    assert marker.read_text() == first
    assert store.markers() == ["partition-expanded"]


def test_unwritable_store_raises_marker_write_error(tmp_path):
    blocker = tmp_path / "state"
    blocker.write_text("not a directory")
    store = FileMarkerStore(blocker / "markers")
    with pytest.raises(MarkerWriteError):
        store.mark_done("partition-expanded")
    assert store.is_done("partition-expanded") is False


@pytest.mark.parametrize("key", ["", "../etc", "a/b", ".."])
def test_invalid_keys_are_rejected(tmp_path, key):
    with pytest.raises(ValueError):
        FileMarkerStore(tmp_path).is_done(key)
