"""CSV export of compact Jira issues."""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from .config import DEFAULT_PAGE_SIZE
from .extract import iter_multi_project_issues
from .jira_api import JiraClient
from .model import CompactIssue, to_export_record

log = logging.getLogger(__name__)

FILE_SUFFIX = "jira-issues.csv"
# Zeilen pro append, entspricht der Standard-Seitengröße
FLUSH_ROWS = DEFAULT_PAGE_SIZE


def output_path_for(outdir: str | Path, project_ids: Sequence[str]) -> Path:
    return Path(outdir) / f"{'-'.join(project_ids)}-{FILE_SUFFIX}"


def delete_if_exists(path: Path) -> None:
    # "not found" ist ok, alles andere (Rechte, Verzeichnis, ...) bricht ab
    path.unlink(missing_ok=True)


def append_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8", newline="") as fh:
        fh.write(text)


class _CsvEncoder:
    """Incremental CSV encoder: header from the first row, later rows must match."""

    def __init__(self) -> None:
        self._buf = io.StringIO()
        self._writer: Optional[csv.DictWriter] = None
        self.rows = 0
        self.pending = 0  # Zeilen im Puffer, noch nicht abgeholt

    def write(self, record: Mapping[str, str]) -> None:
        if self._writer is None:
            self._writer = csv.DictWriter(self._buf, fieldnames=list(record), lineterminator="\n")
            self._writer.writeheader()
        elif set(record) != set(self._writer.fieldnames):
            raise ValueError(
                f"CSV row columns {sorted(record)} do not match header {list(self._writer.fieldnames)}"
            )
        self._writer.writerow(record)
        self.rows += 1
        self.pending += 1

    def drain(self) -> str:
        """Returns the buffered lines (each ending in a newline) and empties the buffer."""
        text = self._buf.getvalue()
        self._buf.seek(0)
        self._buf.truncate()
        self.pending = 0
        return text


def encode_csv(records: Iterable[Mapping[str, str]]) -> str:
    """Header + rows, joined by newlines, without a trailing newline ("" for no records)."""
    encoder = _CsvEncoder()
    for record in records:
        encoder.write(record)
    return encoder.drain().removesuffix("\n")


def write_issues_csv(
    issues: Iterable[CompactIssue],
    output_path: str | Path,
    custom_field_names: Mapping[str, str],
    *,
    remove_description: bool = True,
    flush_rows: int = FLUSH_ROWS,
) -> Path:
    """
    Schreibt die Issues als CSV nach ``output_path`` und liefert den Pfad zurück.

    The old file is removed before the first issue is pulled from ``issues``.
    Rows are appended to the file every ``flush_rows`` rows (the header goes
    out with the first batch). If pulling the next issue fails, the rows
    encoded so far are still appended before the error propagates; there is
    no cleanup of a partial file. With no issues nothing is written, not even
    a header.
    """
    path = Path(output_path)
    delete_if_exists(path)

    encoder = _CsvEncoder()
    try:
        for issue in issues:
            encoder.write(to_export_record(issue, custom_field_names, remove_description))
            if encoder.pending >= flush_rows:
                append_text(path, encoder.drain())
    finally:
        if encoder.pending:
            append_text(path, encoder.drain())
    log.info("Jira issues written", extra={"path": str(path), "count": encoder.rows})
    return path


def write_multi_project_issues(
    client: JiraClient,
    project_ids: Sequence[str],
    custom_field_names: Mapping[str, str],
    outdir: str | Path,
    *,
    remove_description: bool = True,
    page_size: Optional[int] = None,
    issue_type: Optional[str] = None,
) -> Path:
    issues = iter_multi_project_issues(
        client,
        project_ids,
        custom_field_names,
        page_size=page_size,
        issue_type=issue_type,
    )
    return write_issues_csv(
        issues,
        output_path_for(outdir, project_ids),
        custom_field_names,
        remove_description=remove_description,
    )
