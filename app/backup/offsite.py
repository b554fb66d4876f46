"""
오프사이트 백업 업로더 (Google Drive)

서비스 계정으로 Drive v3 REST API를 호출하여 백업 파일을 지정 폴더에
업로드/조회/삭제합니다. 업로드는 resumable 세션을 열고 파일을 청크 단위로
스트리밍하므로 전체 파일을 메모리에 올리지 않습니다.
"""

import asyncio
import logging
import os
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional, Protocol

import aiofiles
import aiohttp
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from app.backup.models import RemoteBackup, UploadedBackup
from app.core.error_handling import ConfigurationError, ErrorKind
from app.core.http_client import ManagedSession, raise_for_response
from app.core.result import Err, Ok, Result
from config.constants import (
    DEFAULT_CONTENT_TYPE,
    DRIVE_API_BASE_URL,
    DRIVE_LIST_PAGE_SIZE,
    DRIVE_SCOPE_FILE,
    DRIVE_SCOPE_READONLY,
    DRIVE_UPLOAD_BASE_URL,
    DRIVE_UPLOAD_CHUNK_SIZE,
)
from config.settings import DriveConfig

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    """범위별 OAuth2 액세스 토큰 제공"""

    async def get_token(self, scope: str) -> str:
        ...


class ServiceAccountTokenProvider:
    """서비스 계정 JWT 기반 토큰 제공자 (범위별 캐시, 만료 시 갱신)"""

    def __init__(self, config: DriveConfig):
        self.config = config
        self._credentials: Dict[str, service_account.Credentials] = {}

    def _build_credentials(self, scope: str) -> service_account.Credentials:
        info = {
            "client_email": self.config.client_email,
            "private_key": self.config.normalized_private_key,
            "token_uri": self.config.token_uri,
        }
        try:
            return service_account.Credentials.from_service_account_info(
                info, scopes=[scope]
            )
        except (ValueError, KeyError) as e:
            raise ConfigurationError(
                f"서비스 계정 키를 읽을 수 없습니다: {e}",
                config_key="GDRIVE_PRIVATE_KEY",
                cause=e,
            )

    async def get_token(self, scope: str) -> str:
        credentials = self._credentials.get(scope)
        if credentials is None:
            credentials = self._build_credentials(scope)
            self._credentials[scope] = credentials

        if not credentials.valid:
            # google-auth 갱신은 블로킹 HTTP 호출
            await asyncio.to_thread(credentials.refresh, Request())
            logger.debug(f"Drive 액세스 토큰 갱신: {scope}")

        return credentials.token


def _parse_drive_time(value: str) -> datetime:
    """RFC 3339 시각 (예: 2024-01-01T00:00:00.000Z)"""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def _read_chunks(file_path: str, chunk_size: int) -> AsyncIterator[bytes]:
    async with aiofiles.open(file_path, "rb") as f:
        while True:
            chunk = await f.read(chunk_size)
            if not chunk:
                break
            yield chunk


class DriveBackupClient(ManagedSession):
    """Google Drive 백업 폴더 클라이언트"""

    def __init__(
        self,
        config: DriveConfig,
        session: Optional[aiohttp.ClientSession] = None,
        token_provider: Optional[TokenProvider] = None,
        api_base_url: str = DRIVE_API_BASE_URL,
        upload_base_url: str = DRIVE_UPLOAD_BASE_URL,
        chunk_size: int = DRIVE_UPLOAD_CHUNK_SIZE,
    ):
        self.config = config.validate()
        super().__init__(session, config.timeout)
        self.folder_id = config.folder_id
        self.token_provider = token_provider or ServiceAccountTokenProvider(config)
        self.api_base_url = api_base_url.rstrip("/")
        self.upload_base_url = upload_base_url.rstrip("/")
        self.chunk_size = chunk_size

    async def _auth_headers(self, scope: str) -> Dict[str, str]:
        token = await self.token_provider.get_token(scope)
        return {"Authorization": f"Bearer {token}"}

    @property
    def _stream_timeout(self) -> aiohttp.ClientTimeout:
        """본문 스트리밍용 제한 시간 (전체 시간 대신 연결/읽기 단위로 제한)"""
        return aiohttp.ClientTimeout(
            total=None, sock_connect=self._timeout, sock_read=self._timeout
        )

    async def upload(self, file_path: str) -> Result[UploadedBackup]:
        """백업 파일 업로드 (resumable 세션 + 스트리밍 본문)"""
        file_name = os.path.basename(file_path)
        try:
            file_size = os.path.getsize(file_path)
            headers = await self._auth_headers(DRIVE_SCOPE_FILE)

            # 1. 업로드 세션 생성
            async with self.session.post(
                f"{self.upload_base_url}/files",
                params={"uploadType": "resumable", "fields": "id,webViewLink,name"},
                json={"name": file_name, "parents": [self.folder_id]},
                headers={
                    **headers,
                    "X-Upload-Content-Type": DEFAULT_CONTENT_TYPE,
                    "X-Upload-Content-Length": str(file_size),
                },
                timeout=self.request_timeout,
            ) as response:
                await raise_for_response(response, file_name)
                session_url = response.headers.get("Location")

            if not session_url:
                return Err(ErrorKind.REJECTED, "Drive 업로드 세션 URL을 받지 못했습니다")

            # 2. 파일 본문 스트리밍
            async with self.session.put(
                session_url,
                data=_read_chunks(file_path, self.chunk_size),
                headers={
                    **headers,
                    "Content-Type": DEFAULT_CONTENT_TYPE,
                    "Content-Length": str(file_size),
                },
                timeout=self._stream_timeout,
            ) as response:
                await raise_for_response(response, file_name)
                payload = await response.json(content_type=None)
        except Exception as e:
            err = Err.from_exception(e, path=file_path)
            logger.error(f"Drive 업로드 실패: {file_name}, 오류: {err.message}")
            return err

        file_id = payload.get("id") if isinstance(payload, dict) else None
        if not file_id:
            return Err(ErrorKind.REJECTED, "Failed to get file ID from Google Drive")

        logger.info(f"Drive 업로드 완료: {file_name} ({file_size:,} bytes) → {file_id}")
        return Ok(
            UploadedBackup(
                file_id=file_id,
                name=payload.get("name") or file_name,
                web_view_link=payload.get("webViewLink"),
            )
        )

    async def list_backups(self) -> Result[List[RemoteBackup]]:
        """백업 폴더 파일 목록 (최신순, 모든 페이지)"""
        params = {
            "q": f"'{self.folder_id}' in parents and trashed=false",
            "orderBy": "createdTime desc",
            "fields": "nextPageToken,files(id,name,createdTime,size)",
            "pageSize": str(DRIVE_LIST_PAGE_SIZE),
        }
        backups: List[RemoteBackup] = []

        try:
            headers = await self._auth_headers(DRIVE_SCOPE_READONLY)
            while True:
                async with self.session.get(
                    f"{self.api_base_url}/files",
                    params=params,
                    headers=headers,
                    timeout=self.request_timeout,
                ) as response:
                    await raise_for_response(response, self.folder_id)
                    payload = await response.json(content_type=None)

                for item in payload.get("files", []):
                    size = item.get("size")
                    backups.append(
                        RemoteBackup(
                            file_id=item["id"],
                            name=item.get("name", ""),
                            created_time=_parse_drive_time(item["createdTime"]),
                            size=int(size) if size is not None else None,
                        )
                    )

                page_token = payload.get("nextPageToken")
                if not page_token:
                    break
                params["pageToken"] = page_token
        except Exception as e:
            err = Err.from_exception(e, path=self.folder_id)
            logger.error(f"Drive 백업 목록 조회 실패: {err.message}")
            return err

        logger.debug(f"Drive 백업 목록: {len(backups)}개")
        return Ok(backups)

    async def delete(self, file_id: str) -> Result[str]:
        """파일 삭제 (휴지통을 거치지 않음)"""
        try:
            headers = await self._auth_headers(DRIVE_SCOPE_FILE)
            async with self.session.delete(
                f"{self.api_base_url}/files/{file_id}",
                headers=headers,
                timeout=self.request_timeout,
            ) as response:
                await raise_for_response(response, file_id)
        except Exception as e:
            err = Err.from_exception(e, path=file_id)
            logger.error(f"Drive 파일 삭제 실패: {file_id}, 오류: {err.message}")
            return err

        return Ok(file_id)
