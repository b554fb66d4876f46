"""
Cold 계층(R2) 클라이언트 단위 테스트

boto3 클라이언트는 botocore Stubber로 응답을 고정합니다.
"""

import io
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
from botocore.response import StreamingBody

from app.core.error_handling import ConfigurationError, ErrorKind
from app.storage.cold_tier import ColdStorageClient
from app.storage.models import FileMetadata
from config.constants import COLD_MAX_SIGNED_TTL, AccessDirection
from config.settings import ColdStorageConfig

BUCKET = "ictirc"


def _body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


class TestColdStorageClient:
    """Cold 스토리지 클라이언트 테스트"""

    def test_missing_configuration_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ColdStorageClient(ColdStorageConfig(account_id="", access_key_id="", secret_access_key=""))

        assert "R2_ACCOUNT_ID" in str(exc_info.value)

    def test_account_endpoint(self, cold_config):
        assert cold_config.endpoint == "https://acct123.r2.cloudflarestorage.com"

    @pytest.mark.asyncio
    async def test_upload_is_conditional_without_upsert(self, cold_client, s3_stubber):
        metadata = FileMetadata(
            paper_id="paper-1",
            original_name="final.pdf",
            uploaded_by="editor",
            uploaded_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
            mime_type="application/pdf",
        )
        s3_stubber.add_response(
            "put_object",
            {"ETag": '"etag-1"'},
            {
                "Bucket": BUCKET,
                "Key": "papers/2026/paper-1/final.pdf",
                "Body": b"pdf-bytes",
                "ContentType": "application/pdf",
                "Metadata": {
                    "paperId": "paper-1",
                    "originalName": "final.pdf",
                    "uploadedBy": "editor",
                    "uploadedAt": "2026-03-01T00:00:00+00:00",
                },
                "IfNoneMatch": "*",
            },
        )

        result = await cold_client.upload(b"pdf-bytes", "papers/2026/paper-1/final.pdf", metadata)

        assert result.ok
        assert result.value.url == (
            "https://acct123.r2.cloudflarestorage.com/ictirc/papers/2026/paper-1/final.pdf"
        )

    @pytest.mark.asyncio
    async def test_upload_existing_path_conflicts(self, cold_client, s3_stubber):
        s3_stubber.add_client_error(
            "put_object",
            service_error_code="PreconditionFailed",
            service_message="At least one of the pre-conditions you specified did not hold",
            http_status_code=412,
        )

        result = await cold_client.upload(b"v2", "a.pdf")

        assert not result.ok
        assert result.kind == ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_upsert_skips_condition(self, cold_client, s3_stubber):
        s3_stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": BUCKET,
                "Key": "a.pdf",
                "Body": b"v2",
                "ContentType": "application/octet-stream",
            },
        )

        result = await cold_client.upload(b"v2", "a.pdf", upsert=True)

        assert result.ok

    @pytest.mark.asyncio
    async def test_download_range(self, cold_client, s3_stubber):
        s3_stubber.add_response(
            "get_object",
            {"Body": _body(b"2345"), "ContentLength": 4},
            {"Bucket": BUCKET, "Key": "a.bin", "Range": "bytes=2-5"},
        )

        result = await cold_client.download("a.bin", byte_range=(2, 5))

        assert result.ok
        assert result.value == b"2345"

    @pytest.mark.asyncio
    async def test_download_missing_is_not_found(self, cold_client, s3_stubber):
        s3_stubber.add_client_error(
            "get_object", service_error_code="NoSuchKey", http_status_code=404
        )

        result = await cold_client.download("missing.pdf")

        assert not result.ok
        assert result.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_server_error_is_transport(self, cold_client, s3_stubber):
        s3_stubber.add_client_error(
            "get_object", service_error_code="InternalError", http_status_code=500
        )

        result = await cold_client.download("a.pdf")

        assert not result.ok
        assert result.kind == ErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_head(self, cold_client, s3_stubber):
        modified = datetime(2026, 3, 1, tzinfo=timezone.utc)
        s3_stubber.add_response(
            "head_object",
            {
                "ContentLength": 1048576,
                "ContentType": "video/mp4",
                "Metadata": {},
                "LastModified": modified,
            },
            {"Bucket": BUCKET, "Key": "videos/teaser/1_a.mp4"},
        )

        result = await cold_client.head("videos/teaser/1_a.mp4")

        assert result.ok
        assert result.value.size == 1048576
        assert result.value.content_type == "video/mp4"
        assert result.value.last_modified == modified

    @pytest.mark.asyncio
    async def test_delete_single(self, cold_client, s3_stubber):
        s3_stubber.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": "a.pdf"})

        result = await cold_client.delete("a.pdf")

        assert result.ok
        assert result.value == 1

    @pytest.mark.asyncio
    async def test_delete_batches_of_thousand(self, cold_client, s3_stubber):
        keys = [f"logs/{i}.json" for i in range(1500)]
        for batch in (keys[:1000], keys[1000:]):
            s3_stubber.add_response(
                "delete_objects",
                {"Deleted": [{"Key": key} for key in batch]},
                {"Bucket": BUCKET, "Delete": {"Objects": [{"Key": key} for key in batch]}},
            )

        result = await cold_client.delete(keys)

        assert result.ok
        assert result.value == 1500

    @pytest.mark.asyncio
    async def test_delete_reports_per_key_errors(self, cold_client, s3_stubber):
        s3_stubber.add_response(
            "delete_objects",
            {
                "Deleted": [{"Key": "a.pdf"}],
                "Errors": [{"Key": "b.pdf", "Code": "AccessDenied", "Message": "Access Denied"}],
            },
            {
                "Bucket": BUCKET,
                "Delete": {"Objects": [{"Key": "a.pdf"}, {"Key": "b.pdf"}]},
            },
        )

        result = await cold_client.delete(["a.pdf", "b.pdf"])

        assert not result.ok
        assert result.kind == ErrorKind.PARTIAL_FAILURE
        assert "b.pdf: Access Denied" in result.message

    @pytest.mark.asyncio
    async def test_move_copies_then_deletes(self, cold_client, s3_stubber):
        s3_stubber.add_response(
            "copy_object",
            {"CopyObjectResult": {"ETag": '"etag"'}},
            {"Bucket": BUCKET, "Key": "b.pdf", "CopySource": {"Bucket": BUCKET, "Key": "a.pdf"}},
        )
        s3_stubber.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": "a.pdf"})

        result = await cold_client.move("a.pdf", "b.pdf")

        assert result.ok
        assert result.value == "b.pdf"

    @pytest.mark.asyncio
    async def test_move_keeps_source_when_copy_fails(self, cold_client, s3_stubber):
        """복사가 확인되지 않으면 원본 삭제 요청을 보내지 않음"""
        s3_stubber.add_client_error(
            "copy_object", service_error_code="NoSuchKey", http_status_code=404
        )

        result = await cold_client.move("missing.pdf", "b.pdf")

        assert not result.ok
        assert result.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_presigned_read_and_write(self, cold_client):
        read = await cold_client.signed_url("videos/teaser/1_a.mp4", 86400)
        write = await cold_client.signed_url(
            "videos/teaser/2_b.mp4", 3600, AccessDirection.WRITE, content_type="video/mp4"
        )

        assert read.ok and write.ok
        read_query = parse_qs(urlsplit(read.value.url).query)
        assert read_query["X-Amz-Expires"] == ["86400"]
        assert "X-Amz-Signature" in read_query
        assert urlsplit(write.value.url).path == "/ictirc/videos/teaser/2_b.mp4"
        assert write.value.direction == AccessDirection.WRITE

    @pytest.mark.asyncio
    async def test_presign_beyond_seven_days_rejected(self, cold_client):
        result = await cold_client.signed_url("a.pdf", COLD_MAX_SIGNED_TTL + 1)

        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION
