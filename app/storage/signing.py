"""
서명 접근 발급기

(계층 자격 증명, 경로, 유효 시간, 방향)으로부터 시간 제한 URL을 발급합니다.
상태를 갖지 않으며 폐기 목록도 없습니다. 폐기의 기준은 백엔드 저장소입니다.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from app.core.error_handling import ErrorKind
from app.core.result import Err, Ok, Result
from app.storage.models import SignedAccessGrant, utc_now
from config.constants import AccessDirection, StorageTier

logger = logging.getLogger(__name__)


class UrlSigner(Protocol):
    """계층별 URL 서명 구현"""

    tier: StorageTier

    def max_signed_ttl(self, direction: AccessDirection) -> int:
        ...

    async def presign(
        self,
        path: str,
        ttl_seconds: int,
        direction: AccessDirection,
        content_type: Optional[str] = None,
    ) -> str:
        ...


class SignedAccessIssuer:
    """서명 URL 발급기

    발급 시각을 먼저 고정한 뒤 서명을 요청하므로 expires_at은 항상
    issued_at + ttl_seconds 이고, 백엔드가 실제로 허용하는 만료보다 늦지 않습니다.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    async def issue(
        self,
        signer: UrlSigner,
        path: str,
        ttl_seconds: int,
        direction: AccessDirection = AccessDirection.READ,
        content_type: Optional[str] = None,
    ) -> Result[SignedAccessGrant]:
        if not path:
            return Err(ErrorKind.VALIDATION, "서명할 경로가 비어 있습니다")
        if ttl_seconds <= 0:
            return Err(ErrorKind.VALIDATION, f"유효 시간은 양수여야 합니다: {ttl_seconds}")

        max_ttl = signer.max_signed_ttl(direction)
        if ttl_seconds > max_ttl:
            return Err(
                ErrorKind.VALIDATION,
                f"{signer.tier.value} 계층 {direction.value} URL 최대 유효 시간({max_ttl}초) 초과: {ttl_seconds}",
            )

        issued_at = self.clock()
        try:
            url = await signer.presign(path, ttl_seconds, direction, content_type)
        except Exception as e:
            logger.error(f"[{signer.tier.value}] 서명 URL 발급 실패: {path}, 오류: {e}")
            return Err.from_exception(e, path=path)

        return Ok(
            SignedAccessGrant(
                url=url,
                path=path,
                tier=signer.tier,
                direction=direction,
                issued_at=issued_at,
                expires_at=issued_at + timedelta(seconds=ttl_seconds),
            )
        )
