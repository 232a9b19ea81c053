"""
cf_route
--------

zone 의 Workers route 등록을 담당하는 모듈.
이미 같은 pattern/script 로 등록되어 있으면 아무것도 하지 않는다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .cf_api import api_url, result_of
from .config import ApiSettings
from .errors import PreconditionError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class Route:
    pattern: str
    script: str
    id: Optional[str] = None


def list_routes(session: Any, settings: ApiSettings, zone_id: str) -> List[Route]:
    url = api_url(settings, "zones", zone_id, "workers/routes")
    resp = session.get(url, timeout=settings.timeout)
    routes: List[Route] = []
    for item in result_of(resp, url) or []:
        routes.append(
            Route(pattern=item["pattern"], script=item.get("script") or "", id=item.get("id"))
        )
    return routes


def publish_route(session: Any, settings: ApiSettings, zone_id: str, route: Route) -> Route:
    """
    route 를 등록한다. (upsert)

    - 같은 pattern + 같은 script: 그대로 둔다
    - 같은 pattern + 다른 script: 해당 route 를 이 script 로 갱신
      (목록에 id 가 없으면 갱신할 수 없으므로 PreconditionError)
    - 없음: 새로 생성
    """
    existing = next((r for r in list_routes(session, settings, zone_id) if r.pattern == route.pattern), None)
    body: Dict[str, str] = {"pattern": route.pattern, "script": route.script}

    if existing is not None and existing.script == route.script:
        logger.info("이미 등록된 route 입니다: %s", route.pattern)
        return existing

    if existing is not None:
        if not existing.id:
            raise PreconditionError(
                f"route {route.pattern} 는 이미 {existing.script} 에 연결되어 있지만 id 를 알 수 없어 갱신할 수 없습니다."
            )
        url = api_url(settings, "zones", zone_id, "workers/routes", existing.id)
        logger.info("route 를 갱신합니다: %s (%s -> %s)", route.pattern, existing.script, route.script)
        resp = session.put(url, json=body, timeout=settings.timeout)
    else:
        url = api_url(settings, "zones", zone_id, "workers/routes")
        logger.info("route 를 생성합니다: %s", route.pattern)
        resp = session.post(url, json=body, timeout=settings.timeout)

    created = result_of(resp, url) or {}
    return Route(pattern=route.pattern, script=route.script, id=created.get("id", existing.id if existing else None))
