from __future__ import annotations
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .config import MYSELF_PATH, SEARCH_PATH, DEFAULT_PAGE_SIZE, Settings

log = logging.getLogger(__name__)

BAD_REQUEST = 400


@dataclass(frozen=True)
class PaginationState:
    start_at: int = 0
    max_results: int = DEFAULT_PAGE_SIZE
    total: Optional[int] = None  # erst nach der ersten Antwort bekannt

    @property
    def exhausted(self) -> bool:
        return self.total is not None and self.start_at >= self.total

    def advance(self, returned: int, total: Optional[int]) -> "PaginationState":
        # Offset wächst um die tatsächlich gelieferten Issues, nicht um maxResults
        return dataclasses.replace(
            self,
            start_at=self.start_at + returned,
            total=self.total if total is None else total,
        )


@dataclass(frozen=True)
class SearchPage:
    issues: list[dict]
    state: PaginationState  # Zustand für die nächste Anfrage


def _quote_jql_str(s: str) -> str:
    # minimal robustes Quoting (Doppelte Anführungszeichen escapen)
    return '"' + s.replace('"', '\\"') + '"'


def build_jql(project_id: str, issue_type: str | None = None) -> str:
    jql = f"project = {_quote_jql_str(project_id)}"
    if issue_type:
        jql += f" AND issuetype = {_quote_jql_str(issue_type)}"
    return jql


def _bad_request_messages(response: httpx.Response) -> list[str]:
    try:
        body: Any = response.json()
    except ValueError:
        return []
    if not isinstance(body, dict):
        return []
    messages = [str(m) for m in body.get("errorMessages") or []]
    errors = body.get("errors") or {}
    if isinstance(errors, dict):
        messages.extend(f"{field}: {msg}" for field, msg in errors.items())
    return messages


class JiraClient:
    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        self.settings = settings
        self._owns_client = client is None
        self.client = client or settings.build_client()

    # lifecycle
    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # API
    def get_myself(self) -> dict:
        r = self.client.get(MYSELF_PATH)
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise httpx.HTTPStatusError(
                f"/myself returned {r.status_code}. Body: {r.text}",
                request=r.request,
                response=r,
            ) from e
        return r.json()

    def fetch_page(
        self,
        project_id: str,
        fields: list[str],
        state: PaginationState,
        *,
        issue_type: str | None = None,
    ) -> SearchPage | None:
        """
        Holt eine Seite Issues eines Projekts über POST /rest/api/2/search.

        Returns the page plus the state for the next request, or ``None`` when
        Jira answered 400 (bad JQL, unknown field, ...): the project is skipped,
        the run goes on. Every other error status raises ``httpx.HTTPStatusError``.
        """
        payload = {
            "jql": build_jql(project_id, issue_type),
            "startAt": state.start_at,
            "maxResults": state.max_results,
            "fields": fields,
        }
        r = self.client.post(SEARCH_PATH, json=payload)

        if r.status_code == BAD_REQUEST:
            messages = _bad_request_messages(r)
            if messages:
                log.warning("\n".join(messages), extra={"project": project_id})
            else:
                log.warning(f"Status 400 received from Jira server for project {project_id}")
            return None
        if r.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"Jira /search returned {r.status_code}. Body: {r.text}",
                request=r.request,
                response=r,
            )

        data = r.json()
        issues = data.get("issues", []) or []
        next_state = state.advance(len(issues), data.get("total"))
        log.info(
            f">>>>> read {next_state.start_at} of {next_state.total} total issues for project {project_id}",
            extra={"project": project_id, "start_at": next_state.start_at, "total": next_state.total},
        )
        return SearchPage(issues=issues, state=next_state)


__all__ = [
    "JiraClient",
    "PaginationState",
    "SearchPage",
    "build_jql",
    "MYSELF_PATH",
    "SEARCH_PATH",
]
