# src/jira_csv_export/plaintext.py
from __future__ import annotations

import re
from typing import Optional

_FENCE = re.compile(r"^[ \t]*(```|~~~).*$", re.MULTILINE)
_INLINE_CODE = re.compile(r"`([^`]*)`")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_REF_LINK = re.compile(r"\[([^\]]+)\]\[[^\]]*\]")
_REF_DEF = re.compile(r"^[ \t]*\[[^\]]+\]:[ \t]+\S+.*$", re.MULTILINE)
_HEADING = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]*", re.MULTILINE)
_SETEXT = re.compile(r"^[ \t]*(={2,}|-{2,})[ \t]*$", re.MULTILINE)
_HRULE = re.compile(r"^[ \t]*([*_-])([ \t]*\1){2,}[ \t]*$", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^[ \t]*>+[ \t]?", re.MULTILINE)
_BULLET = re.compile(r"^([ \t]*)[*+-][ \t]+", re.MULTILINE)
_NUMBERED = re.compile(r"^([ \t]*)\d+[.)][ \t]+", re.MULTILINE)
_STRONG = re.compile(r"(\*\*|__)(.+?)\1")
_EMPHASIS = re.compile(r"(?<![\w*])([*_])(?!\s)(.+?)(?<!\s)\1(?![\w*])")
_STRIKE = re.compile(r"~~(.+?)~~")
_HTML_TAG = re.compile(r"</?[A-Za-z][^>]*>")
_BLANK_LINES = re.compile(r"\n[ \t]*(\n[ \t]*)+")


def strip_markdown(text: Optional[str]) -> str:
    """Reduziert Markdown auf Klartext (für die description-Spalte im CSV)."""
    if not text:
        return ""
    out = text.replace("\r\n", "\n")
    out = _FENCE.sub("", out)
    out = _INLINE_CODE.sub(r"\1", out)
    out = _IMAGE.sub(r"\1", out)
    out = _LINK.sub(r"\1", out)
    out = _REF_LINK.sub(r"\1", out)
    out = _REF_DEF.sub("", out)
    # horizontal rules vor den Bullets, sonst wird aus "- - -" ein Listeneintrag
    out = _HRULE.sub("", out)
    out = _SETEXT.sub("", out)
    out = _HEADING.sub("", out)
    out = _BLOCKQUOTE.sub("", out)
    out = _BULLET.sub(r"\1", out)
    out = _NUMBERED.sub(r"\1", out)
    out = _STRONG.sub(r"\2", out)
    out = _EMPHASIS.sub(r"\2", out)
    out = _STRIKE.sub(r"\1", out)
    out = _HTML_TAG.sub("", out)
    out = _BLANK_LINES.sub("\n\n", out)
    return out.strip()
