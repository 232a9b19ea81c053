"""
upload_form
-----------

스크립트 업로드용 multipart 요청 본문(script + metadata)을 만든다.
네트워크 호출은 하지 않는다.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List

from .config import DeployTarget
from .errors import FilesystemError
from .logging_utils import get_logger


logger = get_logger(__name__)

SCRIPT_PART = "script"


@dataclass(frozen=True)
class UploadForm:
    script_name: str
    script: bytes
    metadata: Dict[str, Any]

    def as_files(self) -> Dict[str, tuple]:
        """requests 의 ``files=`` 인자로 넘길 multipart 매핑."""
        return {
            "metadata": (None, json.dumps(self.metadata), "application/json"),
            SCRIPT_PART: (self.script_name, self.script, "application/javascript"),
        }


def kv_bindings(target: DeployTarget) -> List[Dict[str, str]]:
    return [
        {"type": "kv_namespace", "name": ns.binding, "namespace_id": ns.id}
        for ns in target.kv_namespaces
    ]


def build_script_and_upload_form(target: DeployTarget) -> UploadForm:
    path = target.script_path
    if not os.path.isfile(path):
        raise FilesystemError(
            f'업로드할 스크립트 파일 "{path}" 이(가) 없습니다. 먼저 빌드했는지 확인하세요.',
            path=path,
        )

    with open(path, "rb") as f:
        script = f.read()

    metadata = {
        "body_part": SCRIPT_PART,
        "bindings": kv_bindings(target),
    }
    logger.debug("업로드 metadata: %s", metadata)

    return UploadForm(
        script_name=os.path.basename(path),
        script=script,
        metadata=metadata,
    )
