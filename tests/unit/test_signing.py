"""
서명 URL 발급기 단위 테스트
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.error_handling import ErrorKind, TransportError
from app.storage.signing import SignedAccessIssuer
from config.constants import AccessDirection, StorageTier

ISSUED_AT = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class StubSigner:
    tier = StorageTier.COLD

    def __init__(self, max_ttl: int = 604800, error: Exception = None):
        self.max_ttl = max_ttl
        self.error = error
        self.calls = []

    def max_signed_ttl(self, direction):
        return self.max_ttl

    async def presign(self, path, ttl_seconds, direction, content_type=None):
        self.calls.append((path, ttl_seconds, direction, content_type))
        if self.error:
            raise self.error
        return f"https://signed.example/{path}?ttl={ttl_seconds}"


class TestSignedAccessIssuer:
    """서명 URL 발급기 테스트"""

    @pytest.fixture
    def issuer(self):
        return SignedAccessIssuer(clock=lambda: ISSUED_AT)

    @pytest.mark.asyncio
    async def test_expiry_is_issue_time_plus_ttl(self, issuer):
        """유효 시간 3600초면 만료는 발급 시각 + 1시간"""
        result = await issuer.issue(StubSigner(), "papers/p1/raw/1_a.pdf", 3600)

        assert result.ok
        grant = result.value
        assert grant.issued_at == ISSUED_AT
        assert grant.expires_at == ISSUED_AT + timedelta(hours=1)
        assert grant.ttl_seconds == 3600
        assert grant.direction == AccessDirection.READ
        assert grant.tier == StorageTier.COLD

    @pytest.mark.asyncio
    async def test_two_issues_are_independent(self, issuer):
        signer = StubSigner()
        first = await issuer.issue(signer, "a.pdf", 60)
        second = await issuer.issue(signer, "a.pdf", 60)

        assert first.value == second.value
        assert len(signer.calls) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [0, -1])
    async def test_non_positive_ttl_rejected(self, issuer, ttl):
        signer = StubSigner()
        result = await issuer.issue(signer, "a.pdf", ttl)

        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION
        assert signer.calls == []

    @pytest.mark.asyncio
    async def test_ttl_above_tier_maximum_rejected(self, issuer):
        """백엔드 최대 유효 시간을 넘는 권한은 발급하지 않음"""
        result = await issuer.issue(StubSigner(max_ttl=7200), "a.pdf", 7201, AccessDirection.WRITE)

        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION
        assert "7200" in result.message

    @pytest.mark.asyncio
    async def test_empty_path_rejected(self, issuer):
        result = await issuer.issue(StubSigner(), "", 60)

        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_signer_failure_becomes_err(self, issuer):
        signer = StubSigner(error=TransportError("connection reset"))
        result = await issuer.issue(signer, "a.pdf", 60)

        assert not result.ok
        assert result.kind == ErrorKind.TRANSPORT
        assert "connection reset" in result.message
