"""
cf_api
------

Cloudflare API v4 호출에 필요한 공통 유틸.

인증된 requests.Session 은 전역 상태로 두지 않고, 여기서 만든 뒤
각 컴포넌트에 인자로 넘긴다. (테스트에서는 가짜 session 으로 대체)
"""

from __future__ import annotations

from textwrap import shorten
from typing import Any

import requests

from . import __version__
from .config import ApiSettings, GlobalUser
from .errors import RemoteError
from .logging_utils import get_logger


logger = get_logger(__name__)


def auth_session(user: GlobalUser) -> requests.Session:
    """
    사용자 인증 정보로 헤더가 채워진 Session 을 만든다.
    """
    session = requests.Session()
    session.headers["User-Agent"] = f"worker-kit/{__version__}"
    if user.api_token:
        session.headers["Authorization"] = f"Bearer {user.api_token}"
    else:
        session.headers["X-Auth-Email"] = user.email or ""
        session.headers["X-Auth-Key"] = user.api_key or ""
    return session


def api_url(settings: ApiSettings, *parts: str) -> str:
    return "/".join([settings.base_url.rstrip("/"), *(p.strip("/") for p in parts)])


def _body_text(resp: Any) -> str:
    text = getattr(resp, "text", "")
    return text if isinstance(text, str) else str(text)


def is_success(resp: Any) -> bool:
    return 200 <= int(resp.status_code) < 300


def ensure_success(resp: Any, url: str) -> None:
    """
    2xx 가 아니면 status 와 body 를 그대로 담아 RemoteError 를 raise 한다.
    """
    if is_success(resp):
        logger.debug("응답 %s: %s", resp.status_code, shorten(_body_text(resp), width=500))
        return
    body = _body_text(resp)
    logger.debug("요청 실패 %s (status=%s): %s", url, resp.status_code, shorten(body, width=2000))
    raise RemoteError(int(resp.status_code), body, url=url)


def error_codes(resp: Any) -> list[int]:
    """
    v4 응답 envelope 의 errors[].code 목록. 본문이 JSON 이 아니면 빈 리스트.
    """
    try:
        payload = resp.json()
    except ValueError:
        return []
    if not isinstance(payload, dict):
        return []
    codes: list[int] = []
    for err in payload.get("errors") or []:
        if isinstance(err, dict) and "code" in err:
            codes.append(int(err["code"]))
    return codes


def result_of(resp: Any, url: str) -> Any:
    """
    성공 여부를 확인한 뒤 envelope 의 result 값을 돌려준다.
    """
    ensure_success(resp, url)
    payload = resp.json()
    if isinstance(payload, dict) and "result" in payload:
        return payload["result"]
    return payload


def result_info(resp: Any) -> dict:
    payload = resp.json()
    if isinstance(payload, dict):
        return payload.get("result_info") or {}
    return {}
