"""Shared fakes: a scripted ``requests`` session and canned responses."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from payos.core.client import PayOSClient
from payos.core.config import PayOSConfig

CLIENT_ID = "client-id"
API_KEY = "api-key"
CHECKSUM_KEY = "checksum-key-for-tests"
BASE_URL = "https://api.test"


def make_response(
    status: int = 200,
    payload: Any = None,
    *,
    headers: Optional[Dict[str, str]] = None,
    content: Optional[bytes] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if content is None:
        content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    response._content = content
    response._content_consumed = True
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    response.url = BASE_URL
    return response


def envelope(data: Any, *, code: str = "00", desc: str = "success", signature: Optional[str] = None):
    body = {"code": code, "desc": desc, "data": data}
    if signature is not None:
        body["signature"] = signature
    return body


class FakeSession:
    """
    Replays scripted outcomes in order. An outcome is a response, an exception
    to raise, or a zero-argument callable producing either.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[SimpleNamespace] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append(SimpleNamespace(method=method, url=url, **kwargs))
        if not self.outcomes:
            raise AssertionError(f"unexpected request {method} {url}")
        outcome = self.outcomes.pop(0)
        if callable(outcome):
            outcome = outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def config() -> PayOSConfig:
    return PayOSConfig(
        client_id=CLIENT_ID,
        api_key=API_KEY,
        checksum_key=CHECKSUM_KEY,
        base_url=BASE_URL,
    )


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_client(config, sleeps):
    def factory(*outcomes: Any, **config_changes: Any) -> PayOSClient:
        cfg = config
        if config_changes:
            from dataclasses import replace

            cfg = replace(config, **config_changes)
        return PayOSClient(cfg, session=FakeSession(*outcomes), sleep=sleeps.append)

    return factory
