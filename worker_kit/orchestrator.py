from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, List, Tuple

from .config import ApiSettings, DeployTarget
from .errors import PublishError
from .logging_utils import get_logger
from . import (
    bucket,
    cf_api,
    exposure,
    site,
    upload_form,
    validation,
)


logger = get_logger(__name__)

# CLI 등에서 사용할 수 있도록 단계 이름을 상수로 노출
ALL_STAGES: List[str] = [
    "validate",
    "site",
    "buckets",
    "script",
    "exposure",
]


@dataclass
class PublishResult:
    script_name: str
    pattern: str
    bindings: List[str] = field(default_factory=list)
    synced: List[Tuple[str, bucket.SyncStats]] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully published your script to {self.pattern}"

    def summary(self) -> str:
        lines: List[str] = []
        lines.append("# Publish summary")
        lines.append(f"- script: {self.script_name}")
        lines.append("")

        lines.append("## Bindings")
        if self.bindings:
            for b in self.bindings:
                lines.append(f"- {b}")
        else:
            lines.append("- (none)")

        lines.append("")
        lines.append("## Synced buckets")
        if self.synced:
            for binding, stats in self.synced:
                lines.append(
                    f"- {binding}: uploaded={stats.uploaded} deleted={stats.deleted}"
                )
        else:
            lines.append("- (none)")

        lines.append("")
        lines.append(self.message)
        return "\n".join(lines)


def _stage_enabled(name: str, target: DeployTarget) -> bool:
    if name == "site":
        return target.site is not None
    if name == "buckets":
        return target.site is not None or any(ns.bucket is not None for ns in target.kv_namespaces)
    return True


def upload_script(session: Any, settings: ApiSettings, target: DeployTarget) -> None:
    """
    스크립트와 binding metadata 를 multipart 로 업로드한다.
    """
    url = cf_api.api_url(settings, "accounts", target.account_id, "workers/scripts", target.name)
    form = upload_form.build_script_and_upload_form(target)

    logger.info("스크립트 업로드: %s (%d bytes)", target.name, len(form.script))
    resp = session.put(url, files=form.as_files(), timeout=settings.timeout)
    cf_api.ensure_success(resp, url)


def publish(session: Any, settings: ApiSettings, target: DeployTarget) -> PublishResult:
    """
    validate → (site 가 있으면) KV binding 준비 → 버킷 동기화 → 스크립트 업로드 → 노출 등록.

    어느 단계든 실패하면 예외가 그대로 전파되고 이후 단계는 실행되지 않는다.
    이미 끝난 단계는 되돌리지 않는다. (스크립트 업로드 후 노출 등록이 실패하면
    스크립트는 올라간 상태로 남는다)
    """
    validation.validate_target(target)

    if target.site is not None:
        site.bind_static_site_contents(session, settings, target, target.site, preview=False)

    synced = bucket.upload_buckets(session, settings, target)

    upload_script(session, settings, target)

    try:
        pattern = exposure.resolve_exposure(session, settings, target)
    except PublishError:
        logger.warning("스크립트는 업로드되었지만 노출 설정에 실패했습니다: %s", target.name)
        raise

    logger.info("%s", pattern)
    return PublishResult(
        script_name=target.name,
        pattern=pattern,
        bindings=[ns.binding for ns in target.kv_namespaces],
        synced=synced,
    )


def plan_publish(target: DeployTarget) -> str:
    """
    현재 설정으로 publish 시 어떤 단계가 실행되는지 요약 텍스트를 리턴한다.
    실제 API 호출이나 파일 접근은 하지 않는다.
    """
    lines: List[str] = []
    lines.append("# Publish plan")
    lines.append(f"- account: {target.account_id or '(not set)'}")
    lines.append(f"- script: {target.name or '(not set)'}")
    lines.append("")

    lines.append("## Config summary")
    lines.append(f"- script_path: {target.script_path}")
    lines.append(f"- workers_dev: {target.workers_dev}")
    if not target.workers_dev:
        lines.append(f"- zone_id: {target.zone_id or '(not set)'}")
        lines.append(f"- route: {target.route or '(not set)'}")
    lines.append(f"- site_bucket: {target.site.bucket if target.site else '(not set)'}")
    if target.kv_namespaces:
        for ns in target.kv_namespaces:
            suffix = f" bucket={ns.bucket}" if ns.bucket is not None else ""
            lines.append(f"- kv_namespace: {ns.binding or '(empty)'}={ns.id or '(empty)'}{suffix}")
    else:
        lines.append("- kv_namespaces: (none)")
    lines.append("")

    lines.append("## Stages")
    for name in ALL_STAGES:
        status = "ENABLED" if _stage_enabled(name, target) else "SKIPPED"
        lines.append(f"- {name}: {status}")

    lines.append("")
    destination = validation.destination_of(target)
    if isinstance(exposure.exposure_for(target), exposure.SubdomainExposure):
        lines.append(f"- 노출 대상: {destination} (https://{target.name}.<subdomain>.workers.dev)")
    else:
        lines.append(f"- 노출 대상: {destination} ({target.route or '(not set)'})")

    return "\n".join(lines)


def check_publish(target: DeployTarget) -> tuple[str, bool]:
    """
    네트워크 호출 없이 로컬에서 확인 가능한 항목을 점검한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        has_issues: 하나라도 문제가 있는지 여부
    """
    lines: List[str] = []
    issues: List[str] = []

    lines.append("# Publish pre-check")
    lines.append(f"- script: {target.name or '(not set)'}")
    lines.append("")

    # 1) 설정값
    lines.append("## Config")
    try:
        validation.validate_target(target)
        lines.append("- 필수 설정: OK")
    except PublishError as e:
        lines.append(f"- 필수 설정: {e}")
        issues.append(str(e))

    lines.append("")

    # 2) 스크립트 파일
    lines.append("## Script")
    if os.path.isfile(target.script_path):
        lines.append(f"- 스크립트 파일 존재함 ({target.script_path})")
    else:
        msg = f"스크립트 파일 없음 ({target.script_path})"
        lines.append(f"- {msg}")
        issues.append(msg)

    lines.append("")

    # 3) 버킷 디렉토리
    lines.append("## Buckets")
    buckets = [(ns.binding, ns.bucket) for ns in target.kv_namespaces if ns.bucket is not None]
    if target.site is not None:
        buckets.append((site.STATIC_CONTENT_BINDING, target.site.bucket))
    if not buckets:
        lines.append("- (none)")
    for binding, path in buckets:
        try:
            bucket.check_bucket_path(path)
            lines.append(f"- {binding}: 디렉토리 존재함 ({path})")
        except PublishError as e:
            lines.append(f"- {binding}: {e}")
            issues.append(str(e))

    lines.append("")
    lines.append("## Summary")
    if issues:
        lines.append("- 상태: 이슈가 있습니다. publish 전에 반드시 해결해야 합니다.")
    else:
        lines.append("- 상태: 주요 이슈 없음 (publish 가능 상태로 보입니다)")

    return "\n".join(lines), bool(issues)
