"""
배치 작업 기본 클래스

외부 스케줄러(cron, 플랫폼 스케줄러)가 호출하는 배치 작업의 공통 수명 주기를 정의합니다.
작업 본문은 코루틴으로 작성하고, run()이 이벤트 루프와 제한 시간을 관리합니다.
"""

import asyncio
import contextlib
import logging
import signal
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.logger import JobLogger
from config.constants import JobStatus, JobType

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def cancel_on_sigterm():
    """SIGTERM을 받으면 현재 태스크를 취소 (Ctrl+C와 같은 취소 경로)

    이벤트 루프 안에서만 사용합니다.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    previous = signal.getsignal(signal.SIGTERM)
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except (NotImplementedError, RuntimeError) as e:
        # Windows 또는 메인 스레드가 아닌 루프
        logger.debug(f"SIGTERM 핸들러를 등록하지 않음: {e}")
        yield
        return

    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGTERM)
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


@dataclass
class JobConfig:
    """배치 작업 설정"""

    job_name: str
    job_type: JobType
    timeout_minutes: int = 60
    enabled: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class JobResult:
    """작업 실행 결과"""

    job_name: str
    job_type: JobType
    status: JobStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    processed_records: int = 0
    error_message: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        if self.end_time and self.start_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def is_success(self) -> bool:
        return self.status == JobStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_name": self.job_name,
            "job_type": self.job_type.value,
            "status": self.status.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": round(self.duration_seconds, 2),
            "processed_records": self.processed_records,
            "error_message": self.error_message,
            "warnings": self.warnings,
            "metadata": self.metadata,
        }


class BaseJob(ABC):
    """배치 작업 기본 클래스

    수명 주기: pre_execute → execute (제한 시간 적용) → post_execute,
    예외가 나면 on_failure. 작업은 예외를 던지거나 status=FAILED 결과를
    돌려주어 실패를 알리고, 부분 실패는 warnings에 남깁니다.
    """

    def __init__(self, config: JobConfig):
        self.config = config
        self.logger = logging.getLogger(f"{__name__}.{config.job_name}")
        self.job_logger = JobLogger()
        self._result: Optional[JobResult] = None

    def new_result(self, status: JobStatus = JobStatus.PENDING) -> JobResult:
        return JobResult(
            job_name=self.config.job_name,
            job_type=self.config.job_type,
            status=status,
            start_time=datetime.now(),
        )

    @abstractmethod
    async def execute(self) -> JobResult:
        """작업 본문"""

    def pre_execute(self) -> bool:
        """실행 전 검증. False면 작업을 건너뜀"""
        return self.config.enabled

    def post_execute(self, result: JobResult) -> None:
        for warning in result.warnings:
            self.logger.warning(f"작업 경고: {self.config.job_name}, {warning}")

    def on_failure(self, error: Exception) -> None:
        self.logger.error(f"작업 실패 처리: {self.config.job_name}, 오류: {error}")

    async def _execute_with_timeout(self) -> JobResult:
        timeout = self.config.timeout_minutes * 60 if self.config.timeout_minutes else None
        with cancel_on_sigterm():
            return await asyncio.wait_for(self.execute(), timeout=timeout)

    def _fail(self, result: JobResult, message: str, error: BaseException) -> None:
        result.status = JobStatus.FAILED
        result.end_time = datetime.now()
        result.error_message = message
        self.job_logger.log_job_failure(self.config.job_name, message, result.duration_seconds)
        self.on_failure(error)

    def run(self) -> JobResult:
        """작업 실행 (동기 진입점)"""
        result = self.new_result()

        try:
            if not self.pre_execute():
                result.status = JobStatus.SKIPPED
                result.end_time = datetime.now()
                self.logger.info(f"작업 건너뜀: {self.config.job_name}")
                self._result = result
                return result

            self.job_logger.log_job_start(self.config.job_name, self.config.job_type.value)
            started_at = result.start_time
            result = asyncio.run(self._execute_with_timeout())
            result.start_time = started_at
            result.end_time = datetime.now()

            if result.status == JobStatus.FAILED:
                self.job_logger.log_job_failure(
                    self.config.job_name, result.error_message or "", result.duration_seconds
                )
            else:
                result.status = JobStatus.COMPLETED
                self.job_logger.log_job_complete(
                    self.config.job_name, result.processed_records, result.duration_seconds
                )
            self.post_execute(result)

        except asyncio.TimeoutError as e:
            self._fail(result, f"작업 제한 시간 초과 ({self.config.timeout_minutes}분)", e)
        except asyncio.CancelledError as e:
            self._fail(result, "종료 신호로 작업 중단", e)
        except Exception as e:
            self._fail(result, str(e), e)

        self._result = result
        return result

    @property
    def last_result(self) -> Optional[JobResult]:
        return self._result

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name='{self.config.job_name}', "
            f"type={self.config.job_type.value}, enabled={self.config.enabled})"
        )
