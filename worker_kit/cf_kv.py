"""
cf_kv
-----

Workers KV 네임스페이스 조회/생성 및 bulk write/delete API 래퍼.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .cf_api import api_url, ensure_success, result_info, result_of
from .config import ApiSettings
from .logging_utils import get_logger


logger = get_logger(__name__)

NAMESPACES_PER_PAGE = 100
KEYS_PER_PAGE = 1000


def _namespaces_url(settings: ApiSettings, account_id: str, *parts: str) -> str:
    return api_url(settings, "accounts", account_id, "storage/kv/namespaces", *parts)


def list_namespaces(session: Any, settings: ApiSettings, account_id: str) -> List[Dict[str, Any]]:
    url = _namespaces_url(settings, account_id)
    namespaces: List[Dict[str, Any]] = []
    page = 1
    while True:
        resp = session.get(
            url,
            params={"page": page, "per_page": NAMESPACES_PER_PAGE},
            timeout=settings.timeout,
        )
        namespaces.extend(result_of(resp, url) or [])
        total_pages = int(result_info(resp).get("total_pages") or 1)
        if page >= total_pages:
            return namespaces
        page += 1


def create_namespace(session: Any, settings: ApiSettings, account_id: str, title: str) -> Dict[str, Any]:
    url = _namespaces_url(settings, account_id)
    resp = session.post(url, json={"title": title}, timeout=settings.timeout)
    created = result_of(resp, url)
    logger.info("KV 네임스페이스를 생성했습니다: %s (id=%s)", title, created.get("id"))
    return created


def get_or_create_namespace(
    session: Any,
    settings: ApiSettings,
    account_id: str,
    title: str,
) -> Dict[str, Any]:
    """
    title 이 같은 네임스페이스가 있으면 그것을, 없으면 새로 만들어 돌려준다.
    """
    for ns in list_namespaces(session, settings, account_id):
        if ns.get("title") == title:
            logger.info("기존 KV 네임스페이스를 사용합니다: %s (id=%s)", title, ns.get("id"))
            return ns
    return create_namespace(session, settings, account_id, title)


def list_keys(session: Any, settings: ApiSettings, account_id: str, namespace_id: str) -> List[str]:
    url = _namespaces_url(settings, account_id, namespace_id, "keys")
    keys: List[str] = []
    cursor: Optional[str] = None
    while True:
        params: Dict[str, Any] = {"limit": KEYS_PER_PAGE}
        if cursor:
            params["cursor"] = cursor
        resp = session.get(url, params=params, timeout=settings.timeout)
        keys.extend(item["name"] for item in result_of(resp, url) or [])
        cursor = result_info(resp).get("cursor")
        if not cursor:
            return keys


def write_bulk(
    session: Any,
    settings: ApiSettings,
    account_id: str,
    namespace_id: str,
    pairs: List[Dict[str, Any]],
) -> None:
    url = _namespaces_url(settings, account_id, namespace_id, "bulk")
    resp = session.put(url, json=pairs, timeout=settings.timeout)
    ensure_success(resp, url)


def delete_bulk(
    session: Any,
    settings: ApiSettings,
    account_id: str,
    namespace_id: str,
    keys: Iterable[str],
) -> None:
    url = _namespaces_url(settings, account_id, namespace_id, "bulk")
    resp = session.delete(url, json=list(keys), timeout=settings.timeout)
    ensure_success(resp, url)
