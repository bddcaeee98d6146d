"""Change request store.

Change files are JSON documents in the change folder, one per logical
change. A file holds one or more records:

    {
      "changes": [
        {"packageName": "pkg-b", "changeType": "patch", "comment": "Fix bug"}
      ]
    }

A bare list of records or a single record object is accepted too. Filenames
are opaque; only the content matters.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .errors import InvalidChangeFile
from .models import ChangeFile, ChangeRequest, ChangeType

_REQUESTS = TypeAdapter(list[ChangeRequest])


def find_change_files(folder: Path) -> list[Path]:
    """List the change files in a folder, sorted by name.

    A missing folder has no change files.
    """
    if not folder.is_dir():
        return []
    return sorted(p for p in folder.glob("*.json") if p.is_file())


def _records(data: Any) -> list[Any]:
    if isinstance(data, dict) and "changes" in data:
        data = data["changes"]
    elif isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("expected an object or a list of change records")
    return data


def parse_change_file(path: Path) -> ChangeFile:
    """Read and validate a single change file.

    Raises:
        InvalidChangeFile: If the file cannot be read, is not JSON, holds no
            records, or any record is malformed.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        records = _records(data)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise InvalidChangeFile(path, str(exc)) from exc

    if not records:
        raise InvalidChangeFile(path, "no change records")

    try:
        requests = _REQUESTS.validate_python(records)
    except ValidationError as exc:
        raise InvalidChangeFile(path, str(exc)) from exc

    for request in requests:
        # DEPENDENCY bumps are only ever assigned by propagation
        if request.change_type is ChangeType.DEPENDENCY:
            raise InvalidChangeFile(
                path,
                f"{request.package_name}: changeType 'dependency' "
                "cannot be requested directly",
            )

    return ChangeFile(path=path, requests=requests)


def iter_change_files(folder: Path) -> Iterator[ChangeFile]:
    """Lazily parse the change files in a folder, one ChangeFile per file."""
    for path in find_change_files(folder):
        yield parse_change_file(path)


def load_change_files(folder: Path, workers: int | None = None) -> list[ChangeFile]:
    """Parse every change file in a folder.

    Files may be read concurrently on a thread pool; the result is always in
    sorted path order. The first invalid file aborts the whole load, so
    callers never see a partial request set.

    Args:
        folder: The change folder.
        workers: Thread count. None or 1 reads serially.
    """
    paths = find_change_files(folder)
    if not workers or workers <= 1 or len(paths) <= 1:
        return [parse_change_file(p) for p in paths]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        # map() yields in input order and re-raises the first failure
        return list(pool.map(parse_change_file, paths))


def write_change_file(folder: Path, requests: Iterable[ChangeRequest]) -> Path:
    """Write a new change file and return its path.

    The file is named after the first package and the current UTC time; a
    numeric suffix keeps the name unique within the folder.
    """
    requests = list(requests)
    if not requests:
        raise ValueError("A change file needs at least one change request")

    folder.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S")
    stem = f"{requests[0].package_name}_{stamp}"
    path = folder / f"{stem}.json"
    n = 1
    while path.exists():
        path = folder / f"{stem}-{n}.json"
        n += 1

    payload = {
        "changes": [r.model_dump(mode="json", by_alias=True) for r in requests]
    }
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path
