"""
HTTP 세션 관리

스토리지/드라이브 클라이언트가 공유하는 aiohttp 세션 생성과 응답 검사를 담당합니다.
모든 원격 호출은 제한 시간을 가지며, 시간 초과는 전송 오류로 분류됩니다.
"""

import logging
from typing import Any, Dict, Optional

import aiohttp

from app.core.error_handling import error_for_status
from config.constants import DEFAULT_HTTP_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


def create_http_session(
    timeout: int = DEFAULT_HTTP_TIMEOUT, headers: Optional[Dict[str, str]] = None
) -> aiohttp.ClientSession:
    """제한 시간이 걸린 aiohttp 세션 생성"""
    base_headers = {"User-Agent": USER_AGENT}
    if headers:
        base_headers.update(headers)
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers=base_headers,
    )


async def read_error_message(response: aiohttp.ClientResponse) -> str:
    """오류 응답 본문에서 메시지 추출"""
    try:
        payload: Any = await response.json(content_type=None)
    except (ValueError, aiohttp.ContentTypeError):
        text = await response.text()
        return text.strip() or response.reason or f"HTTP {response.status}"

    if isinstance(payload, dict):
        for key in ("message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
    return f"HTTP {response.status}"


async def raise_for_response(response: aiohttp.ClientResponse, path: str = "") -> None:
    """2xx가 아니면 상태 코드에 맞는 프로젝트 오류를 던짐"""
    if response.status < 400:
        return
    message = await read_error_message(response)
    logger.debug(f"HTTP 오류 응답: {response.status} {response.url} - {message}")
    raise error_for_status(response.status, message, url=str(response.url), path=path)


class ManagedSession:
    """주입받은 세션 또는 직접 생성한 세션을 관리하는 믹스인"""

    def __init__(self, session: Optional[aiohttp.ClientSession], timeout: int):
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_http_session(self._timeout)
            self._owns_session = True
        return self._session

    @property
    def request_timeout(self) -> aiohttp.ClientTimeout:
        """주입받은 세션에도 적용되는 요청별 제한 시간"""
        return aiohttp.ClientTimeout(total=self._timeout)

    async def close(self) -> None:
        """직접 생성한 세션만 종료"""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()
