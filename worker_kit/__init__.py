"""
worker_kit
----------

Cloudflare Workers 용 배포 CLI 패키지.
빌드된 워커 스크립트를 업로드하고, Workers Sites 정적 자산을 KV 로 동기화한 뒤
zone route 또는 workers.dev 서브도메인으로 노출하는 것을 환경변수 기반 설정으로 한 번에 처리한다.
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "orchestrator",
]
