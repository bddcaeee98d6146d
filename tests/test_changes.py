"""Tests for cascade_release.changes."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cascade_release.changes import (
    find_change_files,
    iter_change_files,
    load_change_files,
    parse_change_file,
    write_change_file,
)
from cascade_release.errors import InvalidChangeFile
from cascade_release.models import ChangeRequest, ChangeType


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestParseChangeFile:
    def test_changes_object(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "a.json",
            {
                "changes": [
                    {"packageName": "pkg-a", "changeType": "patch", "comment": "x"},
                    {"packageName": "pkg-b", "changeType": "none", "comment": "y"},
                ],
                "email": "dev@example.com",
            },
        )
        change_file = parse_change_file(path)
        assert change_file.path == path
        assert [r.package_name for r in change_file.requests] == ["pkg-a", "pkg-b"]
        assert change_file.requests[1].change_type is ChangeType.NONE

    def test_bare_list(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "a.json", [{"packageName": "pkg-a", "changeType": "major"}]
        )
        assert parse_change_file(path).requests[0].change_type is ChangeType.MAJOR

    def test_single_record(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "a.json", {"packageName": "pkg-a", "changeType": "minor"}
        )
        assert len(parse_change_file(path).requests) == 1

    def test_not_json(self, tmp_path: Path) -> None:
        path = tmp_path / "a.json"
        path.write_text("{not json")
        with pytest.raises(InvalidChangeFile) as exc_info:
            parse_change_file(path)
        assert exc_info.value.path == path

    def test_no_records(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "a.json", {"changes": []})
        with pytest.raises(InvalidChangeFile, match="no change records"):
            parse_change_file(path)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "a.json", "patch")
        with pytest.raises(InvalidChangeFile):
            parse_change_file(path)

    def test_missing_field(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "a.json", {"changes": [{"packageName": "pkg"}]})
        with pytest.raises(InvalidChangeFile, match="changeType"):
            parse_change_file(path)

    def test_unknown_change_type(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "a.json", [{"packageName": "pkg", "changeType": "huge"}]
        )
        with pytest.raises(InvalidChangeFile):
            parse_change_file(path)

    def test_dependency_type_rejected(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "a.json", [{"packageName": "pkg", "changeType": "dependency"}]
        )
        with pytest.raises(InvalidChangeFile, match="dependency"):
            parse_change_file(path)


class TestFindChangeFiles:
    def test_missing_folder(self, tmp_path: Path) -> None:
        assert find_change_files(tmp_path / "nope") == []

    def test_empty_folder(self, tmp_path: Path) -> None:
        assert find_change_files(tmp_path) == []

    def test_only_json_sorted(self, tmp_path: Path) -> None:
        for name in ("b.json", "a.json", "README.md"):
            (tmp_path / name).write_text("{}")
        (tmp_path / "sub.json").mkdir()
        assert [p.name for p in find_change_files(tmp_path)] == ["a.json", "b.json"]


class TestLoadChangeFiles:
    @pytest.fixture
    def folder(self, tmp_path: Path) -> Path:
        for i in range(6):
            _write(
                tmp_path / f"change-{i}.json",
                [{"packageName": f"pkg-{i}", "changeType": "patch"}],
            )
        return tmp_path

    def test_serial(self, folder: Path) -> None:
        files = load_change_files(folder)
        assert [f.path.name for f in files] == [f"change-{i}.json" for i in range(6)]

    def test_parallel_keeps_path_order(self, folder: Path) -> None:
        assert load_change_files(folder, workers=4) == load_change_files(folder)

    def test_any_invalid_file_aborts(self, folder: Path) -> None:
        bad = folder / "change-3.json"
        bad.write_text("[]")
        with pytest.raises(InvalidChangeFile) as exc_info:
            load_change_files(folder, workers=4)
        assert exc_info.value.path == bad

    def test_empty_folder(self, tmp_path: Path) -> None:
        assert load_change_files(tmp_path) == []

    def test_iter_is_lazy(self, folder: Path) -> None:
        (folder / "change-5.json").write_text("broken")
        it = iter_change_files(folder)
        # Files before the broken one parse fine
        assert next(it).path.name == "change-0.json"
        with pytest.raises(InvalidChangeFile):
            list(it)


class TestWriteChangeFile:
    def test_round_trips_through_parser(self, tmp_path: Path) -> None:
        request = ChangeRequest(
            package_name="pkg-a", change_type=ChangeType.MINOR, comment="Add API"
        )
        path = write_change_file(tmp_path / "changes", [request])
        assert path.parent == tmp_path / "changes"
        assert path.name.startswith("pkg-a_")
        assert parse_change_file(path).requests == [request]

    def test_names_are_unique(self, tmp_path: Path) -> None:
        request = ChangeRequest(package_name="pkg-a", change_type=ChangeType.PATCH)
        paths = {write_change_file(tmp_path, [request]) for _ in range(3)}
        assert len(paths) == 3

    def test_requires_a_request(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            write_change_file(tmp_path, [])
