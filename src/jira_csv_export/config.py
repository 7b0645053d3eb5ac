# src/jira_csv_export/config.py
from __future__ import annotations
import os
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
import httpx
from dotenv import load_dotenv, find_dotenv

MYSELF_PATH = "/rest/api/2/myself"
SEARCH_PATH = "/rest/api/2/search"

DEFAULT_PAGE_SIZE = 1000


def normalize_base_url(url: str) -> str:
    """Jira host ohne Schema (z.B. support.my_company.com) -> https://<host>."""
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    return url.rstrip("/")


def _load_env(env_path: Optional[str | Path]) -> list[Path]:
    tried: list[Path] = []
    if env_path:
        p = Path(env_path)
        tried.append(p)
        if p.is_file():
            load_dotenv(p, override=False)
            return tried
    p = Path.cwd() / ".env"
    tried.append(p)
    if p.is_file():
        load_dotenv(p, override=False)
        return tried
    repo_root = Path(__file__).resolve().parents[2]
    p = repo_root / ".env"
    tried.append(p)
    if p.is_file():
        load_dotenv(p, override=False)
        return tried
    found = find_dotenv(usecwd=True)
    if found:
        load_dotenv(found, override=False)
    return tried


@dataclass(frozen=True)
class Settings:
    base_url: str
    username: str
    password: str
    ca_bundle: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    timeout_s: float = 30.0
    outdir: str = "."

    @classmethod
    def from_env(cls, env_path: Optional[str | Path] = None, **overrides: Any) -> "Settings":
        # CLI-Werte (overrides) gewinnen gegen .env / Umgebung
        tried = _load_env(env_path)

        values = {
            "base_url": os.getenv("JIRA_URL") or os.getenv("JIRA_BASE_URL"),
            "username": os.getenv("JIRA_USERNAME"),
            "password": os.getenv("JIRA_PASSWORD"),
            "ca_bundle": os.getenv("JIRA_CA_BUNDLE"),
            "page_size": int(os.getenv("JIRA_PAGE_SIZE") or DEFAULT_PAGE_SIZE),
            "timeout_s": float(os.getenv("JIRA_TIMEOUT_S") or 30.0),
            "outdir": os.getenv("JIRA_OUTDIR") or ".",
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        missing = []
        if not values["base_url"]:
            missing.append("JIRA_URL")
        if not values["username"]:
            missing.append("JIRA_USERNAME")
        if not values["password"]:
            missing.append("JIRA_PASSWORD")
        if missing:
            tried_str = ", ".join(str(t) for t in tried)
            raise RuntimeError(f"Missing required setting(s): {', '.join(missing)} (tried: {tried_str or 'n/a'})")
        if int(values["page_size"]) <= 0:
            raise ValueError(f"page_size must be positive, got {values['page_size']}")

        values["base_url"] = normalize_base_url(values["base_url"])
        return cls(**values)

    def build_client(self, transport: httpx.BaseTransport | None = None) -> httpx.Client:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        timeout = httpx.Timeout(self.timeout_s)
        verify: ssl.SSLContext | bool = True
        if self.ca_bundle:
            verify = ssl.create_default_context(cafile=self.ca_bundle)
        return httpx.Client(
            base_url=self.base_url,
            auth=httpx.BasicAuth(self.username, self.password),
            headers=headers,
            timeout=timeout,
            verify=verify,
            transport=transport,
        )
