"""Tests for the command-line interface."""
import pytest

from videomerger import __main__ as cli
from videomerger.config import MergeSettings
from videomerger.preferences import PreferenceStore


@pytest.fixture
def store(tmp_path):
    return PreferenceStore(tmp_path / "config" / "preferences.json")


@pytest.fixture(autouse=True)
def isolated(mocker, store):
    mocker.patch("videomerger.__main__.configure_logging", return_value=None)
    mocker.patch("videomerger.__main__.register_shutdown_hook")
    mocker.patch("videomerger.__main__.PreferenceStore", return_value=store)


@pytest.fixture
def folder(make_segment, tmp_path):
    make_segment("20230101-090000.flv", size=10)
    make_segment("20230101-080000.flv", size=20)
    return tmp_path / "segments"


def test_parse_move():
    assert cli._parse_move("3:1") == (3, 1)
    with pytest.raises(Exception):
        cli._parse_move("0:1")
    with pytest.raises(Exception):
        cli._parse_move("a")


def test_preview_does_not_merge(folder, mocker):
    popen = mocker.patch("videomerger.command_jobs.subprocess.Popen")
    assert cli.main(["merge", str(folder), "--preview", "--name", "merged.flv"]) == 0
    popen.assert_not_called()
    assert not (folder / "merged.flv").exists()


def test_merge_with_edits(folder, make_tool, make_segment, tmp_path, mocker):
    tool = make_tool("copy")
    mocker.patch("videomerger.__main__.MergeSettings",
                 return_value=MergeSettings(program=str(tool), login_shell=None))
    extra = make_segment("extra.flv", size=5, folder=tmp_path / "more")
    output_dir = tmp_path / "out"
    output_dir.mkdir()

    code = cli.main([
        "merge", str(folder),
        "--output-dir", str(output_dir), "--name", "merged.flv",
        "--add", str(extra), "--move", "3:1", "--no-reveal",
    ])

    assert code == 0
    expected = extra.read_bytes() + (folder / "20230101-080000.flv").read_bytes() \
        + (folder / "20230101-090000.flv").read_bytes()
    assert (output_dir / "merged.flv").read_bytes() == expected


def test_merge_default_name_collides(folder, make_tool, mocker):
    tool = make_tool("copy")
    mocker.patch("videomerger.__main__.MergeSettings",
                 return_value=MergeSettings(program=str(tool), login_shell=None))
    assert cli.main(["merge", str(folder), "--no-reveal"]) == 1


def test_merge_delete_sources(folder, make_tool, store, tmp_path, mocker):
    tool = make_tool("copy")
    mocker.patch("videomerger.__main__.MergeSettings",
                 return_value=MergeSettings(program=str(tool), login_shell=None))
    store.set_retention_parent(tmp_path / "media")

    code = cli.main(["merge", str(folder), "--name", "merged.flv", "--delete-sources", "--no-reveal"])

    assert code == 0
    trash = tmp_path / "media" / ".trash"
    assert sorted(path.name for path in trash.iterdir()) == ["20230101-080000.flv", "20230101-090000.flv"]
    assert sorted(path.name for path in folder.iterdir()) == ["merged.flv"]
    # the override applies to this run only
    assert store.load().delete_sources_after_merge is False


def test_merge_tool_failure(folder, make_tool, mocker):
    tool = make_tool("fail")
    mocker.patch("videomerger.__main__.MergeSettings",
                 return_value=MergeSettings(program=str(tool), login_shell=None))
    assert cli.main(["merge", str(folder), "--name", "merged.flv", "--no-reveal"]) == 1


def test_merge_bad_position(folder):
    assert cli.main(["merge", str(folder), "--remove", "9", "--preview"]) == 1


def test_merge_unreadable_folder_shows_empty_set(tmp_path, mocker):
    popen = mocker.patch("videomerger.command_jobs.subprocess.Popen")
    assert cli.main(["merge", str(tmp_path / "missing"), "--no-reveal"]) == 1
    popen.assert_not_called()


def test_merge_prompts_for_folder(folder, mocker):
    mocker.patch("videomerger.__main__.PromptPicker.choose_folder", return_value=None)
    assert cli.main(["merge"]) == 1


def test_config_updates(store, tmp_path):
    assert cli.main(["config", "--toggle-delete", "--retention-dir", str(tmp_path / "media"),
                     "--threshold-gb", "2000"]) == 0
    prefs = store.load()
    assert prefs.delete_sources_after_merge is True
    assert prefs.retention_root == tmp_path / "media" / ".trash"
    assert prefs.retention_threshold_gb == 1000
    assert cli.main(["config", "--keep-sources"]) == 0
    assert store.load().delete_sources_after_merge is False


def test_reap_clears_over_threshold(store, tmp_path, mocker):
    store.set_retention_parent(tmp_path / "media")
    trash = tmp_path / "media" / ".trash"
    (trash / "old.flv").write_bytes(b"x" * 10)
    mocker.patch("videomerger.retention.RetentionStore.occupied_bytes", return_value=11 * 1024 ** 3)
    assert cli.main(["reap"]) == 0
    assert list(trash.iterdir()) == []


def test_reap_without_folder(store):
    assert cli.main(["reap"]) == 0


def test_merge_missing_tool(folder, tmp_path, mocker):
    mocker.patch("videomerger.__main__.MergeSettings",
                 return_value=MergeSettings(program=str(tmp_path / "no-such-tool"), login_shell=None))
    popen = mocker.patch("videomerger.command_jobs.subprocess.Popen")
    assert cli.main(["merge", str(folder), "--name", "merged.flv", "--no-reveal"]) == 1
    popen.assert_not_called()


def test_merge_pick_adds_prompted_files(folder, make_segment, tmp_path, mocker):
    extra = make_segment("extra.flv", size=5, folder=tmp_path / "more")
    ask = mocker.patch("videomerger.services.Prompt.ask", side_effect=[str(extra), str(extra), ""])
    preview = mocker.patch("videomerger.__main__.print_command")

    assert cli.main(["merge", str(folder), "--pick", "--preview", "--name", "merged.flv"]) == 0

    assert ask.call_count == 3
    line = preview.call_args[0][0]
    assert line.count(str(extra)) == 1
    assert line.index("20230101-090000.flv") < line.index(str(extra))
