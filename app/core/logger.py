"""
로깅 설정 모듈

CLI와 배치 작업 진입점에서 configure_logging()을 한 번 호출해 루트 로거를 구성합니다.
모든 핸들러에는 DB 접속 정보와 서명 URL을 가리는 필터가 붙습니다.
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional

from app.core.error_handling import redact_text
from config.settings import LoggingConfig, get_logging_config


class SecretRedactingFilter(logging.Filter):
    """로그 메시지의 인증 정보 마스킹"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_text(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _rotating_file_handler(
    path: Path, config: LoggingConfig, level: int
) -> logging.handlers.RotatingFileHandler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """루트 로거 구성: 콘솔, 일별 로그 파일, 에러 전용 파일"""
    config = config or get_logging_config()
    level = getattr(logging, config.level.upper(), logging.INFO)
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")

    console = logging.StreamHandler()
    console.setLevel(level)
    handlers = [
        console,
        _rotating_file_handler(log_dir / f"{config.file_prefix}_{today}.log", config, level),
        _rotating_file_handler(
            log_dir / f"{config.file_prefix}_error_{today}.log", config, logging.ERROR
        ),
    ]

    formatter = logging.Formatter(config.format)
    redactor = SecretRedactingFilter()
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        existing.close()
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        root_logger.addHandler(handler)

    # boto3/google 클라이언트의 요청 단위 DEBUG 로그 억제
    for noisy in ("botocore", "boto3", "urllib3", "google.auth"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))


class JobLogger:
    """배치 작업 수명 주기 로그 (job.<작업명> 로거)"""

    def __init__(self, namespace: str = "job"):
        self.namespace = namespace

    def _for(self, job_name: str) -> logging.Logger:
        return logging.getLogger(f"{self.namespace}.{job_name}")

    def log_job_start(self, job_name: str, job_type: str) -> None:
        self._for(job_name).info(f"[{job_type}] {job_name} 시작")

    def log_job_complete(self, job_name: str, processed_records: int, duration: float) -> None:
        self._for(job_name).info(
            f"{job_name} 완료: 처리 {processed_records}건, {duration:.2f}초"
        )

    def log_job_failure(self, job_name: str, error_message: str, duration: float) -> None:
        self._for(job_name).error(f"{job_name} 실패 ({duration:.2f}초): {error_message}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
