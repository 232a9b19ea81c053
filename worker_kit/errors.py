"""
errors
------

배포(publish) 파이프라인에서 사용하는 예외 계층.

각 단계는 실패 시 아래 예외를 raise 하고, 오케스트레이터는 이를 잡지 않고
그대로 호출자(CLI)에게 전달한다.
"""

from __future__ import annotations

import json
from typing import List, Optional, Sequence


class PublishError(RuntimeError):
    """publish 과정에서 발생하는 모든 오류의 베이스."""


class ValidationError(PublishError, ValueError):
    """설정값 검증 실패."""


class MissingFieldsError(ValidationError):
    """
    필수 필드 누락.

    첫 번째 누락에서 멈추지 않고, 누락된 필드를 모두 모아 한 번에 보고한다.
    """

    def __init__(self, fields: Sequence[str], destination: str) -> None:
        self.fields: List[str] = list(fields)
        self.destination = destination
        if len(self.fields) >= 2:
            noun, verb = "fields", "are"
        else:
            noun, verb = "field", "is"
        super().__init__(
            f"Your worker config is missing the {noun} {json.dumps(self.fields)} "
            f"which {verb} required to publish to {destination}!"
        )


class FilesystemError(PublishError):
    """로컬 경로(버킷 디렉토리, 스크립트 파일) 관련 오류."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class RemoteError(PublishError):
    """플랫폼 API 가 2xx 가 아닌 응답을 돌려준 경우."""

    def __init__(self, status: int, body: str, url: Optional[str] = None) -> None:
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"요청이 실패했습니다! Status: {status}, Details: {body}")


class PreconditionError(PublishError):
    """배포 전에 사용자가 직접 준비해야 하는 리소스가 없는 경우."""
