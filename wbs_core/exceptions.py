"""
WBS 엔진 커스텀 예외 계층입니다.
구조 변경(삽입/이동/삭제) 검증 실패 시 구조화된 에러 코드와 메시지를 제공합니다.
"""

from typing import Optional, Any


class WBSCoreError(Exception):
    """WBS 엔진 기본 예외 클래스."""

    def __init__(
        self,
        message: str,
        error_code: str = "ERR_UNKNOWN",
        details: Optional[Any] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(WBSCoreError):
    """존재하지 않는 작업 항목 ID."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_NOTFOUND_001", details=details)


class CycleDetectedError(WBSCoreError):
    """이동 결과 항목이 자기 자신의 조상이 되는 경우."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_CYCLE_001", details=details)


class DepthExceededError(WBSCoreError):
    """항목 또는 하위 항목의 레벨이 최대 깊이를 넘는 경우."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_DEPTH_001", details=details)


class InvalidStatusError(WBSCoreError):
    """알 수 없는 상태 토큰 (엄격 모드에서만 발생)."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_STATUS_001", details=details)


class ProjectMismatchError(WBSCoreError):
    """다른 프로젝트의 항목 아래로 옮기려는 경우."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_PROJECT_001", details=details)


class DuplicateItemError(WBSCoreError):
    """이미 존재하는 ID로 항목을 추가하려는 경우."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_DUPLICATE_001", details=details)
