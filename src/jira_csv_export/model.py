# src/jira_csv_export/model.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .plaintext import strip_markdown

PLACEHOLDER = "-"
MULTI_VALUE_SEPARATOR = " - "
LABEL_SEPARATOR = ","

# Felder, die für jedes Issue immer angefragt werden (plus die Custom-Field-IDs)
BASIC_FIELDS = [
    "summary",
    "description",
    "created",
    "updated",
    "creator",
    "reporter",
    "priority",
    "labels",
    "status",
    "assignee",
    "issuetype",
    "project",
]

# Anzeige-Felder, von denen nur das verschachtelte .name übernommen wird
NAMED_FIELDS = ("status", "assignee", "issuetype", "project", "creator", "reporter", "priority")


@dataclass(frozen=True)
class CustomFieldValue:
    id: str
    name: str
    value: str


@dataclass(frozen=True)
class CompactIssue:
    id: int
    key: str
    description: str
    status: str
    assignee: str
    issuetype: str
    project: str
    created: Optional[str]   # String belassen, wie von Jira geliefert
    updated: Optional[str]
    creator: str
    reporter: str
    priority: str
    labels: List[str]
    custom_fields: Dict[str, CustomFieldValue]


def _name_of(fields: Mapping[str, Any], field: str) -> str:
    obj = fields.get(field)
    if not isinstance(obj, dict):
        return PLACEHOLDER
    return obj.get("name") or PLACEHOLDER


def _option_value(item: Any) -> str:
    if isinstance(item, dict):
        value = item.get("value")
        return "" if value is None else str(value)
    return str(item)


def _option_id(item: Any) -> str:
    if isinstance(item, dict) and item.get("id") is not None:
        return str(item["id"])
    return ""


def custom_field_value(raw_value: Any, name: str) -> CustomFieldValue:
    """Resolves one custom field payload (option, option list or scalar)."""
    if raw_value is None:
        return CustomFieldValue(id="", name=name, value="")
    if isinstance(raw_value, list):
        return CustomFieldValue(
            id=MULTI_VALUE_SEPARATOR.join(i for i in (_option_id(it) for it in raw_value) if i),
            name=name,
            value=MULTI_VALUE_SEPARATOR.join(_option_value(it) for it in raw_value),
        )
    return CustomFieldValue(id=_option_id(raw_value), name=name, value=_option_value(raw_value))


def new_issue_compact(raw: Mapping[str, Any], custom_field_names: Mapping[str, str]) -> CompactIssue:
    """Map one raw Jira issue to a :class:`CompactIssue`.

    ``custom_field_names`` maps the Jira id (``customfield_XXXXX``) to the name
    used in the output. Fields missing from the payload become ``"-"``
    (custom fields: empty id and value).
    """
    f = raw.get("fields", {}) or {}

    custom_fields = {
        name: custom_field_value(f.get(field_id), name)
        for field_id, name in custom_field_names.items()
    }
    description = f.get("description")

    return CompactIssue(
        id=int(raw["id"]),
        key=str(raw.get("key") or ""),
        description=PLACEHOLDER if description is None else description,
        status=_name_of(f, "status"),
        assignee=_name_of(f, "assignee"),
        issuetype=_name_of(f, "issuetype"),
        project=_name_of(f, "project"),
        created=f.get("created"),
        updated=f.get("updated"),
        creator=_name_of(f, "creator"),
        reporter=_name_of(f, "reporter"),
        priority=_name_of(f, "priority"),
        labels=list(f.get("labels") or []),
        custom_fields=custom_fields,
    )


def to_export_record(
    issue: CompactIssue,
    custom_field_names: Mapping[str, str],
    remove_description: bool = True,
) -> Dict[str, str]:
    """Flacht ein CompactIssue zu einer CSV-Zeile ab.

    Custom fields landen als eigene Spalten auf oberster Ebene. Die description
    ist lang und voller Zeilenumbrüche, daher standardmäßig entfernt; sonst als
    Klartext ohne Markdown.
    """
    record: Dict[str, str] = {
        "id": str(issue.id),
        "key": issue.key,
        "status": issue.status,
        "assignee": issue.assignee,
        "issuetype": issue.issuetype,
        "project": issue.project,
        "created": issue.created or "",
        "updated": issue.updated or "",
        "creator": issue.creator,
        "reporter": issue.reporter,
        "priority": issue.priority,
        "labels": LABEL_SEPARATOR.join(issue.labels),
    }
    if not remove_description:
        record["description"] = strip_markdown(issue.description)
    for name in custom_field_names.values():
        if name not in issue.custom_fields:
            raise KeyError(f"Custom field {name!r} was not mapped for issue {issue.key}")
        record[name] = issue.custom_fields[name].value
    return record
