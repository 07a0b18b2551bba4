"""Shared fixture that replaces urllib's urlopen with scripted responses."""

import io
import json
import urllib.error
import urllib.request
from typing import Any

import pytest


class _Response:
    def __init__(self, payload: Any) -> None:
        if isinstance(payload, bytes):
            self._raw = payload
        else:
            self._raw = b"" if payload is None else json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_Response":
        return self

    def __exit__(self, *args: object) -> None:
        return None


class ScriptedHttp:
    """Answers urlopen() calls from a queue of payloads or exceptions.

    Mutation Tracking:
    -----------------
    - requests: urllib Request objects in call order
    """

    def __init__(self) -> None:
        self._responses: list[Any] = []
        self.requests: list[urllib.request.Request] = []

    def respond(self, *responses: Any) -> None:
        self._responses.extend(responses)

    def urlopen(self, request: urllib.request.Request, timeout: float) -> _Response:
        self.requests.append(request)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return _Response(response)

    @staticmethod
    def error(url: str, code: int, detail: str = "") -> urllib.error.HTTPError:
        headers: Any = {}
        body = io.BytesIO(detail.encode("utf-8"))
        return urllib.error.HTTPError(url, code, "error", headers, body)

    def body(self, index: int) -> Any:
        data = self.requests[index].data
        assert isinstance(data, bytes)
        return json.loads(data)


@pytest.fixture
def http(monkeypatch: pytest.MonkeyPatch) -> ScriptedHttp:
    scripted = ScriptedHttp()
    monkeypatch.setattr(urllib.request, "urlopen", scripted.urlopen)
    return scripted
