"""Tests for file set discovery, ordering and editing."""
import contextlib
import os

import pytest

from videomerger.command_builders import build_merge_command
from videomerger.exceptions import DiscoveryError, FileSetLockedError
from videomerger.fileset import FieldSource, FileSetManager, OutputField
from videomerger.media import MediaItem


@pytest.fixture
def folder(make_segment, tmp_path):
    make_segment("rec_20230101-090000.flv", size=10)
    make_segment("rec_20230101-100000.flv", size=20)
    make_segment("rec_20230101-080000.flv", size=30)
    make_segment("notes.txt", size=5)
    return tmp_path / "segments"


def test_load_orders_by_capture_time(folder):
    fileset = FileSetManager()
    items = fileset.load(folder)
    assert [item.name for item in items] == [
        "rec_20230101-080000.flv",
        "rec_20230101-090000.flv",
        "rec_20230101-100000.flv",
    ]
    assert fileset.predicted_size == 60


def test_load_puts_undated_files_first(make_segment, tmp_path):
    make_segment("20230101-080000.flv")
    make_segment("intro.FLV")
    fileset = FileSetManager()
    fileset.load(tmp_path / "segments")
    assert [item.name for item in fileset] == ["intro.FLV", "20230101-080000.flv"]


def test_load_keeps_listing_order_for_equal_capture_times(make_segment, tmp_path, mocker):
    folder = tmp_path / "segments"
    for name in ("c.flv", "a.flv", "b.flv", "x_20230101-080000.flv",
                 "cam2_20230101-070000.flv", "cam1_20230101-070000.flv"):
        make_segment(name)
    listing = ["c.flv", "x_20230101-080000.flv", "cam2_20230101-070000.flv",
               "a.flv", "cam1_20230101-070000.flv", "b.flv"]
    real_scandir = os.scandir

    def ordered_scandir(path):
        with real_scandir(path) as found:
            entries = {entry.name: entry for entry in found}
        return contextlib.nullcontext([entries[name] for name in listing])

    mocker.patch("videomerger.fileset.os.scandir", side_effect=ordered_scandir)
    fileset = FileSetManager()
    fileset.load(folder)
    assert [item.name for item in fileset] == [
        "c.flv", "a.flv", "b.flv",
        "cam2_20230101-070000.flv", "cam1_20230101-070000.flv",
        "x_20230101-080000.flv",
    ]


def test_load_ignores_directories(folder):
    (folder / "sub.flv").mkdir()
    fileset = FileSetManager()
    fileset.load(folder)
    assert len(fileset) == 3


def test_load_seeds_output_defaults(folder):
    fileset = FileSetManager()
    fileset.load(folder)
    assert fileset.output.directory.value == folder
    assert fileset.output.directory.source is FieldSource.AUTO
    assert fileset.output.name.value == "rec_20230101-080000.flv"
    assert fileset.output.resolve() == folder / "rec_20230101-080000.flv"


def test_load_keeps_user_output_choices(folder, tmp_path):
    fileset = FileSetManager()
    fileset.output.name.set("merged.flv")
    fileset.output.directory.set(tmp_path)
    fileset.load(folder)
    assert fileset.output.resolve() == tmp_path / "merged.flv"


def test_unset_output_directory_is_working_directory(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    fileset = FileSetManager()
    assert fileset.output.resolve() == tmp_path / "output.flv"


def test_output_field_states():
    field = OutputField("a")
    assert field.source is FieldSource.UNSET
    assert field.auto("b")
    assert field.source is FieldSource.AUTO
    field.set("c")
    assert not field.auto("d")
    assert field.value == "c"
    field.reset()
    assert field.value is None and field.source is FieldSource.UNSET


def test_load_failure_empties_set(folder, tmp_path):
    fileset = FileSetManager()
    fileset.load(folder)
    fileset.merged_size = 99
    with pytest.raises(DiscoveryError):
        fileset.load(tmp_path / "missing")
    assert fileset.items == []
    assert fileset.predicted_size is None
    assert fileset.merged_size is None


def test_insert_rejects_duplicate_path(folder):
    fileset = FileSetManager()
    fileset.load(folder)
    assert not fileset.insert(MediaItem.from_path(folder / "rec_20230101-090000.flv"))
    assert len(fileset) == 3


def test_add_path_appends_and_updates_size(folder, make_segment, tmp_path):
    extra = make_segment("20220101-000000.flv", size=7, folder=tmp_path / "other")
    fileset = FileSetManager()
    fileset.load(folder)
    assert fileset.add_path(extra)
    assert fileset.items[-1].path == extra
    assert fileset.predicted_size == 67
    assert not fileset.add_path(folder / "notes.txt")


def test_remove_updates_predicted_size(folder):
    fileset = FileSetManager()
    fileset.load(folder)
    removed = fileset.remove(0)
    assert removed.size == 30
    assert fileset.predicted_size == 30
    assert fileset.remove_path(folder / "rec_20230101-100000.flv")
    assert fileset.predicted_size == 10


def test_reorder_keeps_size_and_changes_command(folder):
    fileset = FileSetManager()
    fileset.load(folder)
    before = fileset.paths()
    fileset.reorder(2, 0)
    assert fileset.predicted_size == 60
    expected = [before[2], before[0], before[1]]
    assert fileset.paths() == expected
    output = folder / "out.flv"
    assert (build_merge_command(fileset.paths(), output).render()
            == build_merge_command(expected, output).render())


def test_reorder_out_of_range(folder):
    fileset = FileSetManager()
    fileset.load(folder)
    with pytest.raises(IndexError):
        fileset.reorder(0, 3)


def test_move_follows_list_drag_semantics(folder, make_segment):
    fileset = FileSetManager()
    fileset.load(folder)
    fileset.add_path(make_segment("rec_20230101-110000.flv"))
    a, b, c, d = fileset.paths()
    fileset.move([0, 1], 4)
    assert fileset.paths() == [c, d, a, b]
    fileset.move([3], 0)
    assert fileset.paths() == [b, c, d, a]


def test_mutation_refused_while_locked(folder):
    locked = {"value": False}
    fileset = FileSetManager(is_locked=lambda: locked["value"])
    fileset.load(folder)
    locked["value"] = True
    with pytest.raises(FileSetLockedError):
        fileset.remove(0)
    with pytest.raises(FileSetLockedError):
        fileset.reorder(0, 1)
    assert len(fileset) == 3


def test_clear(folder):
    fileset = FileSetManager()
    fileset.load(folder)
    fileset.clear()
    assert fileset.folder is None
    assert fileset.paths() == []
