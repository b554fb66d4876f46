"""
작업 결과 타입

성공 시에만 존재하는 필드를 실수로 읽지 않도록 성공/실패를 Ok/Err 두 타입으로
나눕니다. 호출자는 `result.ok` 또는 isinstance 검사로 분기합니다.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar, Union

from app.core.error_handling import ErrorKind, IctircError, classify_exception

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """성공 결과"""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        return {"success": True, "value": value}


@dataclass(frozen=True)
class Err:
    """실패 결과"""

    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        error = IctircError(f"[{self.kind.value}] {self.message}")
        error.kind = self.kind
        raise error

    @classmethod
    def from_exception(cls, e: BaseException, path: str = "") -> "Err":
        """예외를 분류하여 실패 결과 생성"""
        error = classify_exception(e, path=path)
        return cls(kind=error.kind, message=error.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "kind": self.kind.value, "error": self.message}


Result = Union[Ok[T], Err]
