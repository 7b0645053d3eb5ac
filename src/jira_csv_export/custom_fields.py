"""Custom field mapping: Jira custom field id -> column name in the CSV."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml


def load_custom_field_names(path: str | Path) -> Dict[str, str]:
    """Liest das Mapping aus einer JSON- oder YAML-Datei (JSON ist gültiges YAML)."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: custom field mapping must be an object, got {type(data).__name__}")
    return {str(k): str(v) for k, v in data.items()}


def parse_custom_field_args(entries: Iterable[str]) -> Dict[str, str]:
    """Parses entries like ``"customfield_11520: line_of_business"``."""
    mapping: Dict[str, str] = {}
    for entry in entries:
        field_id, sep, name = entry.partition(":")
        field_id, name = field_id.strip(), name.strip()
        if not sep or not field_id or not name:
            raise ValueError(f"Invalid custom field entry {entry!r}, expected 'customfield_XXXXX: name'")
        mapping[field_id] = name
    return mapping


def resolve_custom_field_names(json_path: Optional[str | Path] = None, entries: Optional[Iterable[str]] = None) -> Dict[str, str]:
    if json_path:
        return load_custom_field_names(json_path)
    return parse_custom_field_args(entries or [])
