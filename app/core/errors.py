from typing import Optional, Dict, Any, List
from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


class ValidationError(BaseModel):
    """검증 에러 세부사항"""
    field: str
    message: str
    value: Optional[Any] = None


class ValidationErrorResponse(BaseModel):
    """검증 에러 응답 모델"""
    error: str = "validation_error"
    message: str
    validation_errors: List[ValidationError]
    status_code: int


# =============================================================================
# 커스텀 예외 클래스들
# =============================================================================

class BaseCustomException(HTTPException):
    """기본 커스텀 예외 클래스"""
    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(status_code=status_code, detail=self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """예외를 딕셔너리로 변환"""
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }

    def __str__(self) -> str:
        return self.message


class BadRequestException(BaseCustomException):
    """잘못된 입력 예외 (자기 자신 대상, 알 수 없는 액션 등)"""
    def __init__(
        self,
        message: str = "Bad request",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message=message,
            details=details
        )


class AuthenticationException(BaseCustomException):
    """인증 실패 예외"""
    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="authentication_error",
            message=message,
            details=details
        )


class AuthorizationException(BaseCustomException):
    """권한 부족 예외"""
    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error="authorization_error",
            message=message,
            details=details
        )


class ResourceNotFoundException(BaseCustomException):
    """리소스를 찾을 수 없음 예외"""
    def __init__(
        self,
        resource: str = "Resource",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if message is None:
            message = f"{resource} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error="resource_not_found",
            message=message,
            details=details or {"resource": resource}
        )


class ConflictException(BaseCustomException):
    """리소스 충돌 예외"""
    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error="resource_conflict",
            message=message,
            details=details
        )


class InternalServerException(BaseCustomException):
    """저장소/내부 처리 실패 예외"""
    def __init__(
        self,
        message: str = "Internal server error",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="internal_error",
            message=message,
            details=details
        )


# =============================================================================
# 에러 헬퍼 함수들
# =============================================================================

def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """표준 에러 응답 생성"""
    return ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        details=details
    )


def create_validation_error_response(
    message: str,
    validation_errors: List[ValidationError],
    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY
) -> ValidationErrorResponse:
    """검증 에러 응답 생성"""
    return ValidationErrorResponse(
        message=message,
        validation_errors=validation_errors,
        status_code=status_code
    )


# =============================================================================
# 자주 사용되는 에러 팩토리 함수들
# =============================================================================

def user_not_found_error(user_id: Optional[int] = None):
    """사용자를 찾을 수 없음 에러"""
    details = {"user_id": user_id} if user_id else None
    return ResourceNotFoundException("User", details=details)


def invalid_token_error():
    """잘못된 토큰 에러"""
    return AuthenticationException("Invalid or expired token")


def friendship_not_found_error(message: str = "Request not found"):
    """친구 관계를 찾을 수 없음 에러"""
    return ResourceNotFoundException("Friendship", message=message)


def notification_not_found_error():
    """알림을 찾을 수 없음 에러"""
    return ResourceNotFoundException("Notification")
