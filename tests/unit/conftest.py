"""Shared fixtures: an in-memory multipart upload API and object store."""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, quote, urlparse

import aiohttp
import pytest

from liveupload.config_manager.upload_config import UploadConfig
from liveupload.const import (
    COMPLETE_ENDPOINT,
    CREATE_VIDEO_ENDPOINT,
    INITIATE_ENDPOINT,
    PRESIGN_PART_ENDPOINT,
)
from liveupload.event_emitter import Emitter

BASE_URL = "http://fake"


@dataclass
class ResponseAction:
    status: int
    headers: dict[str, str] | None = None
    body: str = ""
    drop: bool = False


@dataclass
class PutCall:
    upload_id: str
    part_number: int
    size: int
    md5: str


@dataclass
class MultipartUpload:
    video_id: str
    content_type: str
    parts: dict[int, bytes] = field(default_factory=dict)
    completed: bytes | None = None


class FakeResponse:
    def __init__(
        self, status: int, headers: dict[str, str] | None = None, body: str = ""
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self._body = body

    async def text(self) -> str:
        return self._body

    async def json(self) -> Any:
        return json.loads(self._body)

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


def _action_response(action: ResponseAction) -> FakeResponse:
    if action.drop:
        raise aiohttp.ClientConnectionError("Dropped connection")
    return FakeResponse(action.status, headers=action.headers, body=action.body)


class FakeUploadBackend:
    """Stands in for both the upload API and the presigned-URL object store.

    Passed wherever an ``aiohttp.ClientSession`` is expected.
    """

    def __init__(self) -> None:
        self.uploads: dict[str, MultipartUpload] = {}
        self.request_log: list[tuple[str, str, dict[str, Any] | None]] = []
        self.presign_calls: list[dict[str, Any]] = []
        self.put_calls: list[PutCall] = []
        self.complete_calls: list[dict[str, Any]] = []
        self.headers_seen: list[dict[str, str]] = []
        self.pre_request: Callable[[str, dict | None], ResponseAction | None] | None = (
            None
        )
        self.pre_put: Callable[[PutCall, int], ResponseAction | None] | None = None
        self.post_put: Callable[[PutCall], None] | None = None
        self.complete_body: str | None = None
        self._upload_count = 0

    @property
    def api_paths(self) -> list[str]:
        return [path for _, path, _ in self.request_log]

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        **_: Any,
    ) -> FakeResponse:
        path = urlparse(url).path
        self.request_log.append((method, path, json))
        self.headers_seen.append(dict(headers or {}))

        if self.pre_request is not None:
            action = self.pre_request(path, json)
            if action is not None:
                return _action_response(action)

        if path == CREATE_VIDEO_ENDPOINT:
            video_id = (params or {}).get("videoId", "video-new")
            return self._json(200, {"id": video_id})
        if path == INITIATE_ENDPOINT:
            return self._initiate(json or {})
        if path == PRESIGN_PART_ENDPOINT:
            return self._presign(json or {})
        if path == COMPLETE_ENDPOINT:
            return self._complete(json or {})
        return FakeResponse(404, body="not found")

    def put(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
        **_: Any,
    ) -> FakeResponse:
        parsed = urlparse(url)
        _, _, upload_id, part = parsed.path.split("/")
        signed_md5 = parse_qs(parsed.query)["md5"][0]
        data = data or b""
        call = PutCall(
            upload_id=upload_id,
            part_number=int(part),
            size=len(data),
            md5=(headers or {}).get("Content-MD5", ""),
        )
        attempt = sum(
            1
            for c in self.put_calls
            if c.upload_id == upload_id and c.part_number == call.part_number
        )
        self.put_calls.append(call)

        if self.pre_put is not None:
            action = self.pre_put(call, attempt)
            if action is not None:
                return _action_response(action)

        actual_md5 = base64.b64encode(hashlib.md5(data).digest()).decode()
        if call.md5 != signed_md5 or call.md5 != actual_md5:
            return FakeResponse(400, body="BadDigest")

        self.uploads[upload_id].parts[call.part_number] = data
        etag = hashlib.md5(data).hexdigest()
        if self.post_put is not None:
            self.post_put(call)
        return FakeResponse(200, headers={"ETag": f'"{etag}"'})

    def _json(self, status: int, payload: Any) -> FakeResponse:
        return FakeResponse(status, body=json.dumps(payload))

    def _initiate(self, body: dict[str, Any]) -> FakeResponse:
        self._upload_count += 1
        upload_id = f"upload-{self._upload_count}"
        self.uploads[upload_id] = MultipartUpload(
            video_id=body["videoId"], content_type=body["contentType"]
        )
        return self._json(200, {"uploadId": upload_id})

    def _presign(self, body: dict[str, Any]) -> FakeResponse:
        self.presign_calls.append(body)
        url = (
            f"{BASE_URL}/s3/{body['uploadId']}/{body['partNumber']}"
            f"?md5={quote(body['md5Sum'], safe='')}"
        )
        return self._json(200, {"presignedUrl": url})

    def _complete(self, body: dict[str, Any]) -> FakeResponse:
        self.complete_calls.append(body)
        upload = self.uploads[body["uploadId"]]
        for part in body["parts"]:
            data = upload.parts[part["partNumber"]]
            if part["etag"] != hashlib.md5(data).hexdigest():
                return FakeResponse(400, body="InvalidPart")
        upload.completed = b"".join(
            upload.parts[part["partNumber"]] for part in body["parts"]
        )
        if self.complete_body is not None:
            return FakeResponse(200, body=self.complete_body)
        return self._json(200, {"location": f"{BASE_URL}/videos/{body['videoId']}"})


@pytest.fixture
def backend() -> FakeUploadBackend:
    return FakeUploadBackend()


@pytest.fixture
def config() -> UploadConfig:
    return UploadConfig(
        server_url=BASE_URL,
        auth_token="test-token",
        chunk_size=1024,
        put_retry_delay=0,
        metadata_retry_delay=0,
        poll_interval=0,
    )


@pytest.fixture
def emitter() -> Emitter:
    return Emitter()


@pytest.fixture
def response_action() -> type[ResponseAction]:
    return ResponseAction
