from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, List

from dotenv import load_dotenv


ENV_FILES_DEFAULT_ORDER = [".env", ".env.worker", ".env.secrets"]

DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"
DEFAULT_SCRIPT_PATH = os.path.join("worker", "script.js")


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y"}


def _get_optional(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip()


@dataclass
class KvNamespace:
    binding: str
    id: str
    bucket: Optional[str] = None


@dataclass(frozen=True)
class Site:
    bucket: str


def parse_kv_namespaces(raw: Optional[str]) -> List[KvNamespace]:
    """
    KV_NAMESPACES 값을 파싱한다.

    형식: ``BINDING=NAMESPACE_ID[@BUCKET_DIR]`` 을 쉼표로 구분.
    빈 binding/id 도 그대로 남겨서 검증 단계에서 누락 필드로 보고되도록 한다.
    """
    namespaces: List[KvNamespace] = []
    if not raw or not raw.strip():
        return namespaces

    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        binding, _, rest = entry.partition("=")
        ns_id, sep, bucket = rest.partition("@")
        namespaces.append(
            KvNamespace(
                binding=binding.strip(),
                id=ns_id.strip(),
                bucket=bucket.strip() if sep else None,
            )
        )
    return namespaces


@dataclass
class DeployTarget:
    # 필수 (검증은 validation.validate_target 에서 한 번에 수행)
    account_id: str
    name: str

    # 노출 방식: workers_dev=True 이면 서브도메인, False 이면 route
    workers_dev: bool = False
    zone_id: Optional[str] = None
    route: Optional[str] = None

    kv_namespaces: List[KvNamespace] = field(default_factory=list)
    site: Optional[Site] = None

    script_path: str = DEFAULT_SCRIPT_PATH

    @classmethod
    def from_env(cls) -> "DeployTarget":
        # 누락된 값이 있어도 여기서는 raise 하지 않는다.
        site_bucket = _get_optional("SITE_BUCKET")
        return cls(
            account_id=(os.getenv("CF_ACCOUNT_ID") or "").strip(),
            name=(os.getenv("WORKER_NAME") or "").strip(),
            workers_dev=_get_bool("WORKERS_DEV", False),
            zone_id=_get_optional("CF_ZONE_ID"),
            route=_get_optional("WORKER_ROUTE"),
            kv_namespaces=parse_kv_namespaces(os.getenv("KV_NAMESPACES")),
            site=Site(bucket=site_bucket) if site_bucket else None,
            script_path=os.getenv("WORKER_SCRIPT_PATH") or DEFAULT_SCRIPT_PATH,
        )

    def add_kv_namespace(self, namespace: KvNamespace) -> None:
        """
        binding 이름 기준 upsert.
        같은 binding 이 이미 있으면 교체하고, 없으면 뒤에 추가한다.
        """
        for idx, existing in enumerate(self.kv_namespaces):
            if existing.binding == namespace.binding:
                self.kv_namespaces[idx] = namespace
                return
        self.kv_namespaces.append(namespace)


@dataclass(frozen=True)
class GlobalUser:
    api_token: Optional[str] = None
    email: Optional[str] = None
    api_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "GlobalUser":
        token = os.getenv("CF_API_TOKEN")
        if token:
            return cls(api_token=token)

        # 토큰이 없으면 email + global api key 조합이 필요
        missing: List[str] = []
        def req(name: str) -> str:
            val = os.getenv(name)
            if not val:
                missing.append(name)
            return val or ""

        email = req("CF_EMAIL")
        api_key = req("CF_API_KEY")

        if missing:
            raise ValueError(
                "인증 정보가 없습니다. CF_API_TOKEN 또는 다음 환경변수가 필요합니다: "
                + ", ".join(sorted(set(missing)))
            )

        return cls(email=email, api_key=api_key)


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = DEFAULT_API_BASE
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ApiSettings":
        raw_timeout = os.getenv("CF_HTTP_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else 30.0
        except ValueError as e:
            raise ValueError(
                f"CF_HTTP_TIMEOUT 값이 숫자가 아닙니다: {raw_timeout!r}"
            ) from e
        return cls(
            base_url=(os.getenv("CF_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            timeout=timeout,
        )
