"""
cf_subdomain
------------

계정의 workers.dev 서브도메인 조회 및 스크립트 서브도메인 노출 설정.
"""

from __future__ import annotations

import json
from typing import Any

from .cf_api import api_url, ensure_success, error_codes, is_success, result_of
from .config import ApiSettings
from .errors import PreconditionError
from .logging_utils import get_logger


logger = get_logger(__name__)

# "서브도메인이 등록되지 않음" API 에러 코드
NO_SUBDOMAIN_ERROR_CODE = 10007

_NO_SUBDOMAIN_MESSAGE = (
    "workers.dev 서브도메인이 등록되어 있지 않습니다. "
    "대시보드에서 서브도메인을 먼저 등록한 뒤 다시 시도하세요."
)


def get_subdomain(session: Any, settings: ApiSettings, account_id: str) -> str:
    url = api_url(settings, "accounts", account_id, "workers/subdomain")
    resp = session.get(url, timeout=settings.timeout)

    if not is_success(resp) and NO_SUBDOMAIN_ERROR_CODE in error_codes(resp):
        raise PreconditionError(_NO_SUBDOMAIN_MESSAGE)

    result = result_of(resp, url) or {}
    subdomain = result.get("subdomain")
    if not subdomain:
        raise PreconditionError(_NO_SUBDOMAIN_MESSAGE)
    return subdomain


def build_subdomain_request() -> str:
    return json.dumps({"enabled": True})


def enable_script_subdomain(session: Any, settings: ApiSettings, account_id: str, script_name: str) -> None:
    url = api_url(settings, "accounts", account_id, "workers/scripts", script_name, "subdomain")
    logger.info("서브도메인 노출을 활성화합니다: %s", script_name)
    resp = session.post(
        url,
        data=build_subdomain_request(),
        headers={"Content-type": "application/json"},
        timeout=settings.timeout,
    )
    ensure_success(resp, url)
