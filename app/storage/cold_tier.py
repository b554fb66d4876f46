"""
Cold 계층 스토리지 클라이언트 (Cloudflare R2)

S3 호환 API로 장기 보관, 대용량 직접 업로드, 서명 URL 발급을 담당합니다.
boto3 호출은 블로킹이므로 asyncio.to_thread로 실행합니다.
"""

import asyncio
from contextlib import closing
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import boto3
from botocore.config import Config

from app.core.error_handling import ErrorKind
from app.core.result import Err, Ok, Result
from app.storage.base import ByteRange, StorageTierClient
from app.storage.models import FileMetadata, StoredObject, UploadedObject
from app.storage.signing import SignedAccessIssuer
from config.constants import (
    COLD_MAX_SIGNED_TTL,
    COLD_REGION,
    DEFAULT_CONTENT_TYPE,
    S3_DELETE_BATCH_SIZE,
    AccessDirection,
    StorageTier,
)
from config.settings import ColdStorageConfig


def create_s3_client(config: ColdStorageConfig):
    """R2 엔드포인트용 S3 클라이언트 생성 (내부 재시도 없음)"""
    return boto3.client(
        "s3",
        endpoint_url=config.endpoint,
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        region_name=COLD_REGION,
        config=Config(
            signature_version="s3v4",
            connect_timeout=config.timeout,
            read_timeout=config.timeout,
            retries={"total_max_attempts": 1, "mode": "standard"},
            s3={"addressing_style": "path"},
        ),
    )


class ColdStorageClient(StorageTierClient):
    """R2 버킷 클라이언트"""

    tier = StorageTier.COLD

    def __init__(
        self,
        config: ColdStorageConfig,
        s3_client: Any = None,
        issuer: Optional[SignedAccessIssuer] = None,
    ):
        self.config = config.validate()
        super().__init__(issuer)
        self.bucket = config.bucket_name
        self.s3_client = s3_client or create_s3_client(config)

        self.logger.info(f"Cold 스토리지 클라이언트 초기화 (버킷: {self.bucket})")

    def object_url(self, path: str) -> str:
        """비공개 버킷 객체 주소 (접근에는 서명 URL 필요)"""
        return f"{self.config.endpoint}/{self.bucket}/{quote(path, safe='/')}"

    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: Optional[FileMetadata] = None,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> Result[UploadedObject]:
        """R2 업로드 (upsert=False면 조건부 쓰기로 기존 객체 보호)"""
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": path,
            "Body": data,
            "ContentType": content_type
            or (metadata.mime_type if metadata else None)
            or DEFAULT_CONTENT_TYPE,
        }
        if metadata:
            params["Metadata"] = metadata.to_object_metadata()
        if not upsert:
            params["IfNoneMatch"] = "*"

        try:
            await asyncio.to_thread(self.s3_client.put_object, **params)
        except Exception as e:
            return self._failure("업로드", path, e)

        self.logger.debug(f"R2 업로드 완료: {path} ({len(data):,} bytes)")
        return Ok(UploadedObject(path=path, url=self.object_url(path)))

    async def download(
        self, path: str, byte_range: Optional[ByteRange] = None
    ) -> Result[bytes]:
        """R2 다운로드"""
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": path}
        if byte_range is not None:
            start, end = byte_range
            params["Range"] = f"bytes={start}-{'' if end is None else end}"

        def _read() -> bytes:
            response = self.s3_client.get_object(**params)
            with closing(response["Body"]) as body:
                return body.read()

        try:
            data = await asyncio.to_thread(_read)
        except Exception as e:
            return self._failure("다운로드", path, e)

        return Ok(data)

    async def head(self, path: str) -> Result[StoredObject]:
        """객체 존재/크기 확인 (직접 업로드 완료 확인용)"""
        try:
            response = await asyncio.to_thread(
                self.s3_client.head_object, Bucket=self.bucket, Key=path
            )
        except Exception as e:
            return self._failure("조회", path, e)

        return Ok(
            StoredObject(
                path=path,
                tier=self.tier,
                content_type=response.get("ContentType", DEFAULT_CONTENT_TYPE),
                size=response.get("ContentLength", 0),
                metadata=dict(response.get("Metadata", {})),
                last_modified=response.get("LastModified"),
            )
        )

    async def delete(self, paths: Union[str, List[str]]) -> Result[int]:
        """단일/일괄 삭제 (DeleteObjects 최대 1000개씩)"""
        path_list = self._normalize_paths(paths)
        if not path_list:
            return Ok(0)

        if len(path_list) == 1:
            try:
                await asyncio.to_thread(
                    self.s3_client.delete_object, Bucket=self.bucket, Key=path_list[0]
                )
            except Exception as e:
                return self._failure("삭제", path_list[0], e)
            return Ok(1)

        deleted_count = 0
        errors: List[str] = []
        for i in range(0, len(path_list), S3_DELETE_BATCH_SIZE):
            batch = path_list[i : i + S3_DELETE_BATCH_SIZE]
            try:
                response = await asyncio.to_thread(
                    self.s3_client.delete_objects,
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch]},
                )
            except Exception as e:
                return self._failure("일괄 삭제", ",".join(batch), e)

            deleted_count += len(response.get("Deleted", []))
            errors.extend(
                f"{error.get('Key')}: {error.get('Message') or error.get('Code')}"
                for error in response.get("Errors", [])
            )

        self.logger.info(f"R2 일괄 삭제: 요청 {len(path_list)}개, 삭제 {deleted_count}개")
        if errors:
            self.logger.error(f"R2 일괄 삭제 일부 실패: {errors}")
            return Err(
                ErrorKind.PARTIAL_FAILURE,
                f"{len(errors)}개 객체 삭제 실패: {'; '.join(errors)}",
            )
        return Ok(deleted_count)

    async def copy(self, source_path: str, destination_path: str) -> Result[str]:
        """버킷 내부 복사 (원본 유지)"""
        try:
            await asyncio.to_thread(
                self.s3_client.copy_object,
                Bucket=self.bucket,
                Key=destination_path,
                CopySource={"Bucket": self.bucket, "Key": source_path},
            )
        except Exception as e:
            return self._failure("복사", source_path, e)

        return Ok(destination_path)

    async def move(self, source_path: str, destination_path: str) -> Result[str]:
        """복사 확인 후 원본 삭제"""
        copied = await self.copy(source_path, destination_path)
        if not copied.ok:
            return copied

        deleted = await self.delete(source_path)
        if not deleted.ok:
            return Err(
                ErrorKind.PARTIAL_FAILURE,
                f"{destination_path} 복사 완료, 원본 {source_path} 삭제 실패: {deleted.message}",
            )
        return Ok(destination_path)

    def max_signed_ttl(self, direction: AccessDirection) -> int:
        return COLD_MAX_SIGNED_TTL

    async def presign(
        self,
        path: str,
        ttl_seconds: int,
        direction: AccessDirection,
        content_type: Optional[str] = None,
    ) -> str:
        # SigV4 사전 서명은 로컬 계산이라 네트워크 호출이 없음
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": path}
        if direction == AccessDirection.WRITE:
            operation = "put_object"
            if content_type:
                params["ContentType"] = content_type
        else:
            operation = "get_object"

        return self.s3_client.generate_presigned_url(
            operation, Params=params, ExpiresIn=ttl_seconds
        )
