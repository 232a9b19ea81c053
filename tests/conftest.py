"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 worker_kit 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.

HTTP 는 실제로 호출하지 않고, 아래 FakeSession 으로 요청을 기록/응답한다.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Callable, List, Optional, Tuple

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    """
    (method, url 끝부분) 으로 등록한 응답을 돌려주고, 모든 호출을 기록한다.
    같은 경로에 여러 번 등록하면 나중 것이 우선한다.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, dict]] = []
        self._handlers: List[Tuple[str, str, Callable[[dict], FakeResponse]]] = []
        self.closed = False

    def on(
        self,
        method: str,
        suffix: str,
        *,
        status: int = 200,
        result: Any = None,
        result_info: Optional[dict] = None,
        errors: Optional[list] = None,
        text: Optional[str] = None,
        responder: Optional[Callable[[dict], FakeResponse]] = None,
    ) -> None:
        if responder is None:
            response = self.make_response(
                status, result=result, result_info=result_info, errors=errors, text=text
            )

            def responder(_kwargs: dict, _resp: FakeResponse = response) -> FakeResponse:
                return _resp

        self._handlers.insert(0, (method.upper(), suffix, responder))

    @staticmethod
    def make_response(
        status: int = 200,
        *,
        result: Any = None,
        result_info: Optional[dict] = None,
        errors: Optional[list] = None,
        text: Optional[str] = None,
    ) -> FakeResponse:
        """v4 envelope 형태의 응답을 만든다."""
        payload = {
            "success": 200 <= status < 300,
            "errors": errors or [],
            "messages": [],
            "result": result,
        }
        if result_info is not None:
            payload["result_info"] = result_info
        return FakeResponse(status, payload, text=text)

    def calls_to(self, method: str, suffix: str) -> List[dict]:
        return [kw for m, url, kw in self.calls if m == method.upper() and url.endswith(suffix)]

    def _dispatch(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        for m, suffix, responder in self._handlers:
            if m == method and url.endswith(suffix):
                return responder(kwargs)
        raise AssertionError(f"예상하지 못한 요청: {method} {url}")

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("DELETE", url, **kwargs)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings():
    from worker_kit.config import ApiSettings

    return ApiSettings(base_url="https://api.test/client/v4", timeout=5.0)


@pytest.fixture
def script_file(tmp_path) -> str:
    path = tmp_path / "worker" / "script.js"
    path.parent.mkdir()
    path.write_text("addEventListener('fetch', e => e.respondWith(new Response('hi')))\n")
    return str(path)
