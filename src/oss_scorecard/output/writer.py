"""NDJSON output writer — one result record per line."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from oss_scorecard.output.models import ResultRecord


def write_records(records: Iterable[ResultRecord], stream: TextIO) -> int:
    """Write each record as its own JSON line; returns the number written."""
    count = 0
    for record in records:
        stream.write(record.to_line())
        stream.write("\n")
        count += 1
    stream.flush()
    return count


def write_all(records: Iterable[ResultRecord], output: str | None = None) -> int:
    """Write records to ``output`` (a file path) or to stdout when None."""
    if output is None:
        return write_records(records, sys.stdout)

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        return write_records(records, f)
