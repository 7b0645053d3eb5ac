# src/jira_csv_export/main.py
from __future__ import annotations

import argparse
import logging
import shutil
from itertools import islice
from textwrap import shorten

from .config import Settings
from .custom_fields import resolve_custom_field_names
from .export import write_multi_project_issues
from .extract import iter_multi_project_issues
from .jira_api import JiraClient
from .logging_setup import setup_logging_from_env

log = logging.getLogger(__name__)


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        base_url=args.jira_url,
        username=args.username,
        password=args.password,
        page_size=args.page_size,
        outdir=getattr(args, "outdir", None),
    )


def cmd_write_issues(args: argparse.Namespace) -> int:
    settings = _settings(args)
    custom_field_names = resolve_custom_field_names(args.custom_field_names_json, args.custom_field_names)
    with JiraClient(settings) as client:
        path = write_multi_project_issues(
            client,
            args.project_ids,
            custom_field_names,
            settings.outdir,
            remove_description=not args.include_description,
            issue_type=args.issue_type,
        )
    print(f"Jira issues written in file {path}")
    return 0


def print_table(issues) -> None:
    term_w = shutil.get_terminal_size((120, 20)).columns
    def fmt(issue):
        return [
            issue.key,
            issue.issuetype,
            issue.status,
            shorten(issue.assignee, width=max(20, term_w - 80), placeholder="…"),
            (issue.updated or "-").replace("T", " ")[:19],
        ]
    headers = ["Key", "Type", "Status", "Assignee", "Updated"]
    data = [headers] + [fmt(i) for i in issues]
    widths = [max(len(c[i]) for c in data) for i in range(len(headers))]
    print("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
    print("  ".join("-" * w for w in widths))
    for d in data[1:]:
        print("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(d)))


def cmd_preview(args: argparse.Namespace) -> int:
    settings = _settings(args)
    custom_field_names = resolve_custom_field_names(args.custom_field_names_json, args.custom_field_names)
    with JiraClient(settings) as client:
        me = client.get_myself()
        print(f"Auth OK as: {me.get('displayName') or me.get('name')}")
        # kleine Seiten reichen für die Vorschau
        issues = list(islice(
            iter_multi_project_issues(
                client,
                args.project_ids,
                custom_field_names,
                page_size=max(1, min(args.limit, settings.page_size)),
                issue_type=args.issue_type,
            ),
            args.limit,
        ))
    print_table(issues)
    print(f"\nPreview rows: {len(issues)}")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--jira-url", help="Jira host, e.g. support.my_company.com (env: JIRA_URL)")
    p.add_argument("--username", help="env: JIRA_USERNAME")
    p.add_argument("--password", help="env: JIRA_PASSWORD")
    p.add_argument("--project-ids", nargs="*", default=[], metavar="ID",
                   help="space separated project ids, e.g. --project-ids ABC XYZ")
    p.add_argument("--custom-field-names-json", metavar="PATH",
                   help="JSON/YAML file mapping custom field ids to column names")
    p.add_argument("--custom-field-names", nargs="*", default=[], metavar="ENTRY",
                   help='e.g. "customfield_11520: line_of_business" (ignored with --custom-field-names-json)')
    p.add_argument("--page-size", type=int, help="maxResults per request (default 1000)")
    p.add_argument("--issue-type", help="only issues of this type, e.g. Story")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="jira-csv-export")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_write = sub.add_parser("write-issues", help="Issues aller Projekte lesen und als CSV schreiben")
    _add_common(p_write)
    p_write.add_argument("--outdir", help="output directory (default: current directory, env: JIRA_OUTDIR)")
    p_write.add_argument("--include-description", action="store_true",
                         help="description als Klartext (ohne Markdown) mit ausgeben")
    p_write.set_defaults(func=cmd_write_issues)

    p_prev = sub.add_parser("preview", help="Auth prüfen und die ersten Issues als Tabelle zeigen")
    _add_common(p_prev)
    p_prev.add_argument("--limit", type=int, default=25)
    p_prev.set_defaults(func=cmd_preview)

    args = parser.parse_args(argv)
    setup_logging_from_env()
    log.info("Launching %s", args.cmd)
    try:
        return args.func(args)
    except Exception:
        log.exception("Run failed")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
