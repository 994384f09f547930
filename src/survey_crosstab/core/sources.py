from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Type

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from survey_crosstab.config import APP_NAME, APP_VERSION
from survey_crosstab.core.errors import SurveyCrosstabError

logger = logging.getLogger(__name__)


def _build_retry_session() -> requests.Session:
    """
    Session used for remote schema and response exports.
    Each document is fetched once per build, so retries stay short.
    """
    session = requests.Session()
    session.headers["User-Agent"] = f"{APP_NAME.replace(' ', '-').lower()}/{APP_VERSION}"

    retry = Retry(
        total=3,
        connect=3,
        read=2,
        status=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=2, pool_maxsize=2)
    for prefix in ("https://", "http://"):
        session.mount(prefix, adapter)
    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def is_url(source: str) -> bool:
    return str(source).strip().startswith(("http://", "https://"))


def read_source_text(
    source: str,
    *,
    error_cls: Type[SurveyCrosstabError] = SurveyCrosstabError,
    timeout_seconds: int = 60,
) -> str:
    """
    Return the text of a local path or an http(s) URL, decoded as UTF-8
    (a leading BOM is dropped). Failures are raised as `error_cls`.
    """
    source = str(source).strip()
    if not source:
        raise error_cls("No source given.")

    if is_url(source):
        try:
            resp = _get_session().get(source, timeout=timeout_seconds)
        except Exception as exc:
            raise error_cls(f"HTTP error while fetching {source}: {exc}") from exc

        if resp.status_code != 200:
            preview = (resp.text or "")[:200]
            raise error_cls(f"Fetching {source} failed (status={resp.status_code}). Preview: {preview}")

        try:
            return resp.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise error_cls(f"{source} did not return UTF-8 text: {exc}") from exc

    path = Path(source)
    logger.debug("Reading local source %s", path)
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise error_cls(f"{path} is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise error_cls(f"Could not read {path}: {exc}") from exc
