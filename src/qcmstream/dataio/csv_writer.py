"""CSV writing helpers for exported and recorded data."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterable, Sequence

from ..core.models import FileOptions
from ..core.timeseries_buffer import DataSnapshot

TIME_HEADER = "time"
ABSOLUTE_TIME_HEADER = "absolute time"


def write_rows(path: Path, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """
    Write a header row and all data rows to a CSV file.

    Directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)
        writer.writerows(rows)


def _select_channels(snapshot: DataSnapshot, names: Sequence[str] | None) -> list[int]:
    if names is None:
        return list(range(snapshot.n_channels))
    indices: list[int] = []
    for name in names:
        try:
            indices.append(snapshot.names.index(name))
        except ValueError:
            raise ValueError(f"unknown channel {name!r}") from None
    return indices


def save_to_csv(snapshot: DataSnapshot, options: FileOptions) -> Path:
    """
    Export ``snapshot`` to ``options.file_path``.

    Columns are ``time``, optionally ``absolute time``, then the selected
    channels in the order requested. Returns the written path.
    """
    if snapshot.n_samples == 0 or snapshot.n_channels == 0:
        raise ValueError("no data to save")
    indices = _select_channels(snapshot, options.names)

    headers = [TIME_HEADER]
    if options.save_absolute_time:
        headers.append(ABSOLUTE_TIME_HEADER)
    for idx in indices:
        headers.append(snapshot.names[idx] if idx < len(snapshot.names) else f"Column {idx}")

    columns = [snapshot.time]
    if options.save_absolute_time:
        columns.append(snapshot.absolute_time)
    columns.extend(snapshot.dataset[idx] for idx in indices)
    rows = zip(*(column.tolist() for column in columns))

    path = Path(options.file_path)
    write_rows(path, headers, rows)
    return path
