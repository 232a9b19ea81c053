"""
site
----

Workers Sites 정적 자산용 KV 네임스페이스를 준비하고
배포 대상에 binding 을 추가하는 모듈.
"""

from __future__ import annotations

from typing import Any

from . import cf_kv
from .config import ApiSettings, DeployTarget, KvNamespace, Site
from .logging_utils import get_logger


logger = get_logger(__name__)

# 정적 자산 KV 에 예약된 binding 이름
STATIC_CONTENT_BINDING = "__STATIC_CONTENT"


def site_namespace_title(script_name: str, preview: bool = False) -> str:
    title = f"__{script_name}-workers_sites_assets"
    if preview:
        title += "_preview"
    return title


def bind_static_site_contents(
    session: Any,
    settings: ApiSettings,
    target: DeployTarget,
    site: Site,
    preview: bool = False,
) -> KvNamespace:
    """
    정적 자산 네임스페이스를 조회/생성하고 target 에 binding 을 추가한다.

    같은 binding 이 이미 있으면 교체되므로 여러 번 호출해도 binding 은 하나만 남는다.
    """
    title = site_namespace_title(target.name, preview)
    logger.info("정적 사이트 네임스페이스 확인: %s", title)

    namespace = cf_kv.get_or_create_namespace(session, settings, target.account_id, title)

    binding = KvNamespace(
        binding=STATIC_CONTENT_BINDING,
        id=namespace["id"],
        bucket=site.bucket,
    )
    target.add_kv_namespace(binding)
    return binding
