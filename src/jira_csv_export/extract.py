# src/jira_csv_export/extract.py
from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Mapping, Optional

from .jira_api import JiraClient, PaginationState
from .model import BASIC_FIELDS, CompactIssue, new_issue_compact

log = logging.getLogger(__name__)


def request_fields(custom_field_names: Mapping[str, str]) -> List[str]:
    return [*BASIC_FIELDS, *custom_field_names.keys()]


def iter_project_issues(
    client: JiraClient,
    project_id: str,
    custom_field_names: Mapping[str, str],
    *,
    start: Optional[PaginationState] = None,
    page_size: Optional[int] = None,
    issue_type: Optional[str] = None,
) -> Iterator[CompactIssue]:
    """
    Streamt alle Issues eines Projekts, Seite für Seite, als CompactIssue.

    Each request depends on the offset reached by the previous one, so pages
    are fetched strictly one after the other. A 400 from Jira ends the
    project quietly; any other failure propagates.

    Start state: ``start`` when given (its ``max_results`` is the page size
    and ``page_size`` is ignored), otherwise offset 0 with ``page_size``,
    falling back to ``client.settings.page_size`` (1000 by default).
    """
    state = start or PaginationState(max_results=page_size or client.settings.page_size)
    fields = request_fields(custom_field_names)

    while True:
        page = client.fetch_page(project_id, fields, state, issue_type=issue_type)
        if page is None:
            return

        for raw in page.issues:
            yield new_issue_compact(raw, custom_field_names)

        state = page.state
        if state.exhausted:
            log.info(f">>>>> Reading of issues completed for project {project_id}", extra={"project": project_id})
            return
        if not page.issues:
            # total größer als tatsächlich geliefert -> sonst Endlosschleife
            log.warning(
                "Empty page before reaching total, stopping",
                extra={"project": project_id, "start_at": state.start_at, "total": state.total},
            )
            return


def iter_multi_project_issues(
    client: JiraClient,
    project_ids: Iterable[str],
    custom_field_names: Mapping[str, str],
    **kwargs,
) -> Iterator[CompactIssue]:
    """Concatenates the projects in the given order (no interleaving)."""
    for project_id in project_ids:
        yield from iter_project_issues(client, project_id, custom_field_names, **kwargs)
