"""Shared fixtures: a scripted HTTP executor and a fixed clock."""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections import deque
from dataclasses import replace
from datetime import datetime, timezone

import pytest
from multidict import CIMultiDict

from aury.oss import OssClient
from aury.oss.core import ClientContext, Credential
from aury.oss.toolkit.http import HttpError, HttpResponse

ACCESS_KEY_ID = "test-ak"
ACCESS_KEY_SECRET = "test-secret"
REGION_HOST = "oss-cn-hangzhou.aliyuncs.com"
FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
FIXED_DATE = "Tue, 02 Jan 2024 03:04:05 GMT"


def fixed_clock() -> datetime:
    return FIXED_NOW


def hmac_sha1(secret: str, message: str) -> str:
    digest = hmac.new(secret.encode(), message.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


def xml(body: str) -> bytes:
    return ('<?xml version="1.0" encoding="UTF-8"?>' + body).encode()


def error_xml(code: str, message: str = "error", request_id: str = "req-1") -> bytes:
    return xml(
        f"<Error><Code>{code}</Code><Message>{message}</Message>"
        f"<RequestId>{request_id}</RequestId><HostId>bucket.{REGION_HOST}</HostId>"
        f"<EC>0003-00000001</EC></Error>"
    )


class FakeExecutor:
    """Records every SignedRequest and replays scripted responses in order."""

    def __init__(self) -> None:
        self.requests = []
        self._script: deque = deque()

    def respond(self, status: int = 200, *, headers: dict[str, str] | None = None, content: bytes = b"") -> None:
        self._script.append(HttpResponse(status_code=status, url="", headers=CIMultiDict(headers or {}), content=content))

    def fail(self, error: HttpError) -> None:
        self._script.append(error)

    async def execute(self, request) -> HttpResponse:
        self.requests.append(request)
        if not self._script:
            return HttpResponse(status_code=200, url=request.url)
        item = self._script.popleft()
        if isinstance(item, Exception):
            raise item
        return replace(item, url=request.url)

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def credential() -> Credential:
    return Credential(ACCESS_KEY_ID, ACCESS_KEY_SECRET)


@pytest.fixture
def context(credential, executor) -> ClientContext:
    return ClientContext(
        credential=credential,
        endpoint=REGION_HOST,
        executor=executor,
        clock=fixed_clock,
    )


@pytest.fixture
def client(executor) -> OssClient:
    return OssClient(ACCESS_KEY_ID, ACCESS_KEY_SECRET, REGION_HOST, executor=executor, clock=fixed_clock)
