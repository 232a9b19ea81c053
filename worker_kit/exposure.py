"""
exposure
--------

업로드된 스크립트를 외부에 노출하는 방식(route / workers.dev 서브도메인)을
결정하고 등록한다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from . import cf_route, cf_subdomain
from .config import ApiSettings, DeployTarget
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RouteExposure:
    zone_id: str
    pattern: str


@dataclass(frozen=True)
class SubdomainExposure:
    pass


Exposure = Union[RouteExposure, SubdomainExposure]


def exposure_for(target: DeployTarget) -> Exposure:
    """
    검증을 통과한 target 으로부터 노출 방식을 만든다.
    서브도메인 모드에서는 zone_id/route 값이 있어도 무시된다.
    """
    if target.workers_dev:
        return SubdomainExposure()
    return RouteExposure(zone_id=target.zone_id or "", pattern=target.route or "")


def subdomain_url(script_name: str, subdomain: str) -> str:
    return f"https://{script_name}.{subdomain}.workers.dev"


def resolve_exposure(session: Any, settings: ApiSettings, target: DeployTarget) -> str:
    """
    노출 방식에 맞는 등록 호출을 수행하고, 최종 접근 주소(pattern)를 돌려준다.
    """
    exposure = exposure_for(target)

    if isinstance(exposure, RouteExposure):
        logger.info("route 로 배포합니다: %s", exposure.pattern)
        route = cf_route.Route(pattern=exposure.pattern, script=target.name)
        cf_route.publish_route(session, settings, exposure.zone_id, route)
        return exposure.pattern

    logger.info("서브도메인 등록 여부를 확인합니다.")
    subdomain = cf_subdomain.get_subdomain(session, settings, target.account_id)
    cf_subdomain.enable_script_subdomain(session, settings, target.account_id, target.name)
    return subdomain_url(target.name, subdomain)
