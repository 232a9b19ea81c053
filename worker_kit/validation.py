"""
validation
----------

네트워크/파일시스템 작업 전에 배포 대상 설정을 검증하는 모듈.
"""

from __future__ import annotations

import re
from typing import List

from .config import DeployTarget
from .errors import MissingFieldsError, ValidationError
from .logging_utils import get_logger


logger = get_logger(__name__)

ROUTE_DESTINATION = "a route"
SUBDOMAIN_DESTINATION = "your subdomain"

_WORKER_NAME_RE = re.compile(r"^[a-zA-Z0-9_][a-zA-Z0-9-_]*$")


def missing_fields(target: DeployTarget) -> List[str]:
    """
    누락된 필수 필드 이름을 순서대로 모두 모아 돌려준다.
    """
    missing: List[str] = []

    if not target.account_id:
        missing.append("account_id")
    if not target.name:
        missing.append("name")

    for kv in target.kv_namespaces:
        if not kv.binding:
            missing.append("kv-namespace binding")
        if not kv.id:
            missing.append("kv-namespace id")

    # route 배포일 때만 zone_id/route 가 필요하다
    if not target.workers_dev:
        if not target.zone_id:
            missing.append("zone_id")
        if not target.route:
            missing.append("route")

    return missing


def destination_of(target: DeployTarget) -> str:
    return SUBDOMAIN_DESTINATION if target.workers_dev else ROUTE_DESTINATION


def validate_target_required_fields_present(target: DeployTarget) -> None:
    missing = missing_fields(target)
    if missing:
        raise MissingFieldsError(missing, destination_of(target))


def validate_worker_name(name: str) -> None:
    if not _WORKER_NAME_RE.fullmatch(name):
        raise ValidationError(
            f"워커 이름이 올바르지 않습니다: {name!r} "
            "(영문자, 숫자, '-', '_' 만 사용할 수 있고 '-' 로 시작할 수 없습니다)"
        )


def validate_target(target: DeployTarget) -> None:
    """
    필수 필드 누락을 한 번에 보고한 뒤, 워커 이름 형식을 확인한다.
    부수효과 없음.
    """
    logger.info("workers_dev = %s", target.workers_dev)
    validate_target_required_fields_present(target)
    validate_worker_name(target.name)
