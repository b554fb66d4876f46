"""
스토리지 계층 클라이언트 공통 계약

Hot/Cold 계층은 자격 증명과 엔드포인트만 다르고 같은 형태의 연산을 제공합니다.
모든 연산은 예상 가능한 실패(설정 누락, 객체 없음, 전송 오류)를 Err로 돌려주며
예외를 던지지 않습니다.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union

from app.core.result import Err, Result
from app.storage.models import FileMetadata, SignedAccessGrant, UploadedObject
from app.storage.signing import SignedAccessIssuer
from config.constants import DEFAULT_SIGNED_URL_TTL, AccessDirection, StorageTier

ByteRange = Tuple[int, Optional[int]]


class StorageTierClient(ABC):
    """스토리지 계층 클라이언트 기본 클래스"""

    tier: StorageTier

    def __init__(self, issuer: Optional[SignedAccessIssuer] = None):
        self.issuer = issuer or SignedAccessIssuer()
        self.logger = logging.getLogger(f"{__name__}.{self.tier.value}")

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: Optional[FileMetadata] = None,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> Result[UploadedObject]:
        """객체 업로드. 기존 경로 덮어쓰기는 upsert=True일 때만 허용"""

    @abstractmethod
    async def download(
        self, path: str, byte_range: Optional[ByteRange] = None
    ) -> Result[bytes]:
        """객체 다운로드 (byte_range는 양 끝 포함)"""

    @abstractmethod
    async def delete(self, paths: Union[str, List[str]]) -> Result[int]:
        """단일 또는 일괄 삭제, 삭제 요청한 객체 수 반환"""

    @abstractmethod
    async def copy(self, source_path: str, destination_path: str) -> Result[str]:
        """계층 내부 복사 (원본은 유지)"""

    @abstractmethod
    async def move(self, source_path: str, destination_path: str) -> Result[str]:
        """계층 내부 이동 (대상 쓰기가 확인된 뒤에만 원본 삭제)"""

    @abstractmethod
    def max_signed_ttl(self, direction: AccessDirection) -> int:
        """방향별 서명 URL 최대 유효 시간"""

    @abstractmethod
    async def presign(
        self,
        path: str,
        ttl_seconds: int,
        direction: AccessDirection,
        content_type: Optional[str] = None,
    ) -> str:
        """백엔드 서명 URL 생성 (실패 시 예외, 발급기가 결과로 변환)"""

    async def signed_url(
        self,
        path: str,
        ttl_seconds: int = DEFAULT_SIGNED_URL_TTL,
        direction: AccessDirection = AccessDirection.READ,
        content_type: Optional[str] = None,
    ) -> Result[SignedAccessGrant]:
        """시간 제한 URL 발급 (기본 1시간, 더 긴 유효 시간은 명시적으로 전달)"""
        return await self.issuer.issue(
            self, path, ttl_seconds, direction, content_type=content_type
        )

    @staticmethod
    def _normalize_paths(paths: Union[str, List[str]]) -> List[str]:
        return [paths] if isinstance(paths, str) else list(paths)

    def _failure(self, operation: str, path: str, e: BaseException) -> Err:
        """예외를 분류하고 로깅한 뒤 실패 결과 반환"""
        err = Err.from_exception(e, path=path)
        self.logger.error(f"[{self.tier.value}] {operation} 실패: {path}, 오류: {err.message}")
        return err
