"""
Hot 계층 스토리지 클라이언트 (Supabase Storage)

활성 원고와 영상의 저지연 읽기/쓰기 및 서명 URL 발급을 담당합니다.
Supabase Storage REST API를 aiohttp로 직접 호출합니다.
"""

import base64
import json
from typing import Any, List, Optional, Union
from urllib.parse import quote

import aiohttp

from app.core.error_handling import error_for_status
from app.core.http_client import ManagedSession
from app.core.result import Ok, Result
from app.storage.base import ByteRange, StorageTierClient
from app.storage.models import FileMetadata, UploadedObject
from app.storage.signing import SignedAccessIssuer
from config.constants import (
    DEFAULT_CONTENT_TYPE,
    HOT_MAX_SIGNED_READ_TTL,
    HOT_MAX_SIGNED_WRITE_TTL,
    AccessDirection,
    StorageTier,
)
from config.settings import HotStorageConfig


class HotStorageClient(ManagedSession, StorageTierClient):
    """Supabase Storage 버킷 클라이언트"""

    tier = StorageTier.HOT

    def __init__(
        self,
        config: HotStorageConfig,
        session: Optional[aiohttp.ClientSession] = None,
        issuer: Optional[SignedAccessIssuer] = None,
    ):
        # 필수 설정 누락은 생성 시점에 ConfigurationError
        self.config = config.validate()
        StorageTierClient.__init__(self, issuer)
        ManagedSession.__init__(self, session, config.timeout)
        self.bucket = config.bucket_name
        self.base_url = f"{config.url.rstrip('/')}/storage/v1"

        self.logger.info(f"Hot 스토리지 클라이언트 초기화 (버킷: {self.bucket})")

    @property
    def _auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.service_key}",
            "apikey": self.config.service_key,
        }

    def _object_url(self, kind: str, path: str) -> str:
        return f"{self.base_url}/{kind}/{self.bucket}/{quote(path, safe='/')}"

    def public_url(self, path: str) -> str:
        """공개 URL (공개 버킷에서만 유효)"""
        return self._object_url("object/public", path)

    async def _check(self, response: aiohttp.ClientResponse, path: str = "") -> None:
        """오류 응답을 프로젝트 오류로 변환

        Supabase는 중복/없음 오류를 400과 본문 statusCode로 돌려주는 경우가 있어
        본문의 statusCode를 우선합니다.
        """
        if response.status < 400:
            return

        status = response.status
        try:
            payload: Any = await response.json(content_type=None)
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            body_status = str(payload.get("statusCode", ""))
            if body_status.isdigit():
                status = int(body_status)
            message = payload.get("message") or payload.get("error") or f"HTTP {status}"
        else:
            message = (await response.text()).strip() or f"HTTP {status}"

        raise error_for_status(status, str(message), url=str(response.url), path=path)

    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: Optional[FileMetadata] = None,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> Result[UploadedObject]:
        """Hot 스토리지 업로드 (활성 원고의 1차 저장소)"""
        headers = dict(self._auth_headers)
        headers["Content-Type"] = (
            content_type or (metadata.mime_type if metadata else None) or DEFAULT_CONTENT_TYPE
        )
        headers["x-upsert"] = "true" if upsert else "false"
        if metadata:
            encoded = json.dumps(metadata.to_object_metadata()).encode("utf-8")
            headers["x-metadata"] = base64.b64encode(encoded).decode("ascii")

        try:
            async with self.session.post(
                self._object_url("object", path),
                data=data,
                headers=headers,
                timeout=self.request_timeout,
            ) as response:
                await self._check(response, path)
        except Exception as e:
            return self._failure("업로드", path, e)

        self.logger.debug(f"Hot 스토리지 업로드 완료: {path} ({len(data):,} bytes)")
        return Ok(UploadedObject(path=path, url=self.public_url(path)))

    async def download(
        self, path: str, byte_range: Optional[ByteRange] = None
    ) -> Result[bytes]:
        """Hot 스토리지 다운로드"""
        headers = dict(self._auth_headers)
        if byte_range is not None:
            start, end = byte_range
            headers["Range"] = f"bytes={start}-{'' if end is None else end}"

        try:
            async with self.session.get(
                self._object_url("object/authenticated", path),
                headers=headers,
                timeout=self.request_timeout,
            ) as response:
                await self._check(response, path)
                data = await response.read()
        except Exception as e:
            return self._failure("다운로드", path, e)

        return Ok(data)

    async def delete(self, paths: Union[str, List[str]]) -> Result[int]:
        """단일/일괄 삭제 (prefixes 한 번 호출)"""
        path_list = self._normalize_paths(paths)
        if not path_list:
            return Ok(0)

        try:
            async with self.session.delete(
                f"{self.base_url}/object/{self.bucket}",
                json={"prefixes": path_list},
                headers=self._auth_headers,
                timeout=self.request_timeout,
            ) as response:
                await self._check(response, ",".join(path_list))
                removed = await response.json(content_type=None)
        except Exception as e:
            return self._failure("삭제", ",".join(path_list), e)

        deleted_count = len(removed) if isinstance(removed, list) else len(path_list)
        self.logger.info(f"Hot 스토리지 삭제: 요청 {len(path_list)}개, 삭제 {deleted_count}개")
        return Ok(deleted_count)

    async def _transfer(self, operation: str, source_path: str, destination_path: str) -> Result[str]:
        payload = {
            "bucketId": self.bucket,
            "sourceKey": source_path,
            "destinationKey": destination_path,
        }
        try:
            async with self.session.post(
                f"{self.base_url}/object/{operation}",
                json=payload,
                headers=self._auth_headers,
                timeout=self.request_timeout,
            ) as response:
                await self._check(response, source_path)
        except Exception as e:
            return self._failure(operation, source_path, e)

        return Ok(destination_path)

    async def copy(self, source_path: str, destination_path: str) -> Result[str]:
        """버킷 내부 복사"""
        return await self._transfer("copy", source_path, destination_path)

    async def move(self, source_path: str, destination_path: str) -> Result[str]:
        """버킷 내부 이동 (서버 측 원자적 이동)"""
        return await self._transfer("move", source_path, destination_path)

    def max_signed_ttl(self, direction: AccessDirection) -> int:
        if direction == AccessDirection.WRITE:
            return HOT_MAX_SIGNED_WRITE_TTL
        return HOT_MAX_SIGNED_READ_TTL

    async def presign(
        self,
        path: str,
        ttl_seconds: int,
        direction: AccessDirection,
        content_type: Optional[str] = None,
    ) -> str:
        if direction == AccessDirection.WRITE:
            # 업로드 서명 토큰의 유효 시간은 서버가 고정, 발급기가 상한을 보장
            url = self._object_url("object/upload/sign", path)
            body: dict = {}
            key = "url"
        else:
            url = self._object_url("object/sign", path)
            body = {"expiresIn": ttl_seconds}
            key = "signedURL"

        async with self.session.post(
            url, json=body, headers=self._auth_headers, timeout=self.request_timeout
        ) as response:
            await self._check(response, path)
            payload = await response.json(content_type=None)

        signed_path = payload.get(key) or payload.get("signedUrl")
        if not signed_path:
            raise ValueError(f"서명 응답에 URL이 없습니다: {payload}")
        return f"{self.base_url}{signed_path}"
