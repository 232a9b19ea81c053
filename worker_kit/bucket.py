"""
bucket
------

로컬 버킷 디렉토리의 파일들을 KV 네임스페이스로 동기화하는 모듈.

키는 디렉토리 기준 상대 경로(POSIX 구분자) 그대로다. (예: ``css/site.css``)
워커 스크립트는 요청 경로로 바로 KV 키를 찾는다.
"""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple

from . import cf_kv
from .config import ApiSettings, DeployTarget
from .errors import FilesystemError
from .logging_utils import get_logger


logger = get_logger(__name__)

IGNORED_DIRS = {"node_modules"}

# bulk API 한 번에 보낼 수 있는 양
MAX_PAIRS_PER_BATCH = 10_000
MAX_BYTES_PER_BATCH = 50 * 1024 * 1024
# {"key": ..., "value": ..., "base64": true}, 에 해당하는 JSON 바이트
PAIR_OVERHEAD_BYTES = 40


@dataclass(frozen=True)
class SyncStats:
    uploaded: int
    deleted: int


def check_bucket_path(bucket: str) -> str:
    """
    버킷 경로를 순서대로 확인한다: 빈 값 → 존재 여부 → 디렉토리 여부.
    """
    if not bucket:
        raise FilesystemError("버킷 디렉토리를 지정해야 합니다. (KV_NAMESPACES / SITE_BUCKET)", path=bucket)
    if not os.path.exists(bucket):
        raise FilesystemError(f'bucket 디렉토리 "{bucket}" 가 존재하지 않습니다.', path=bucket)
    if not os.path.isdir(bucket):
        raise FilesystemError(f'bucket "{bucket}" 은(는) 디렉토리가 아닙니다.', path=bucket)
    return bucket


def iter_files(directory: str) -> Iterator[str]:
    """
    디렉토리 하위 파일 경로를 정렬된 순서로 돌려준다.
    숨김 파일/디렉토리와 node_modules 는 제외한다.
    """
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if not d.startswith(".") and d not in IGNORED_DIRS)
        for name in sorted(files):
            if name.startswith("."):
                continue
            yield os.path.join(root, name)


def key_for(directory: str, path: str) -> str:
    return os.path.relpath(path, directory).replace(os.sep, "/")


def directory_to_pairs(directory: str) -> Dict[str, bytes]:
    pairs: Dict[str, bytes] = {}
    for path in iter_files(directory):
        with open(path, "rb") as f:
            content = f.read()
        pairs[key_for(directory, path)] = content
    return pairs


def _batches(pairs: Dict[str, bytes]) -> Iterator[List[Dict[str, Any]]]:
    batch: List[Dict[str, Any]] = []
    size = 0
    for key, content in pairs.items():
        value = base64.b64encode(content).decode("ascii")
        pair_size = len(key.encode("utf-8")) + len(value) + PAIR_OVERHEAD_BYTES
        if batch and (len(batch) >= MAX_PAIRS_PER_BATCH or size + pair_size > MAX_BYTES_PER_BATCH):
            yield batch
            batch, size = [], 0
        batch.append({"key": key, "value": value, "base64": True})
        size += pair_size
    if batch:
        yield batch


def _chunks(keys: List[str], size: int) -> Iterator[List[str]]:
    for i in range(0, len(keys), size):
        yield keys[i:i + size]


def sync(
    session: Any,
    settings: ApiSettings,
    account_id: str,
    namespace_id: str,
    directory: str,
    preview: bool = False,
) -> SyncStats:
    """
    네임스페이스의 키가 디렉토리 내용과 같아지도록 업로드/삭제한다.

    API 실패는 재시도 없이 그대로 전달된다.
    """
    logger.info(
        "버킷 동기화: %s -> namespace=%s%s",
        directory,
        namespace_id,
        " (preview)" if preview else "",
    )
    local = directory_to_pairs(directory)
    remote = set(cf_kv.list_keys(session, settings, account_id, namespace_id))

    # 같은 키라도 내용이 바뀌었을 수 있으므로 로컬 파일은 모두 다시 쓴다
    to_upload = local
    to_delete = sorted(remote - set(local))

    for batch in _batches(to_upload):
        logger.debug("KV bulk write: %d 개", len(batch))
        cf_kv.write_bulk(session, settings, account_id, namespace_id, batch)

    for chunk in _chunks(to_delete, MAX_PAIRS_PER_BATCH):
        logger.debug("KV bulk delete: %d 개", len(chunk))
        cf_kv.delete_bulk(session, settings, account_id, namespace_id, chunk)

    stats = SyncStats(
        uploaded=len(to_upload),
        deleted=len(to_delete),
    )
    logger.info(
        "버킷 동기화 완료: 업로드 %d, 삭제 %d",
        stats.uploaded,
        stats.deleted,
    )
    return stats


def upload_buckets(session: Any, settings: ApiSettings, target: DeployTarget) -> List[Tuple[str, SyncStats]]:
    """
    bucket 이 지정된 모든 KV binding 에 대해 경로를 확인하고 동기화한다.
    """
    results: List[Tuple[str, SyncStats]] = []
    for namespace in target.kv_namespaces:
        if namespace.bucket is None:
            continue
        path = check_bucket_path(namespace.bucket)
        stats = sync(session, settings, target.account_id, namespace.id, path, preview=False)
        results.append((namespace.binding, stats))
    return results
