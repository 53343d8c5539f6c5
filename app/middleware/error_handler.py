import logging
import traceback
from typing import Callable
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import (
    BaseCustomException,
    ValidationError,
    create_error_response,
    create_validation_error_response
)
from app.core.config import settings

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    통합 에러 처리 미들웨어

    라우터에서 처리되지 않은 저장소/예상치 못한 예외를 표준화된 에러 응답으로 변환합니다.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except BaseCustomException as e:
            return JSONResponse(
                status_code=e.status_code,
                content=e.to_dict()
            )

        except IntegrityError as e:
            # 데이터베이스 무결성 제약 조건 위반 (동시 생성된 관계 쌍 등)
            error_detail = str(e.orig) if hasattr(e, 'orig') else str(e)
            logger.warning(f"Integrity error: {error_detail}")

            error_response = create_error_response(
                "duplicate_entry",
                "Duplicate entry detected",
                status.HTTP_409_CONFLICT,
                {"detail": error_detail if settings.debug else None}
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except SQLAlchemyError as e:
            logger.error(f"Database error: {type(e).__name__}: {e}")

            error_response = create_error_response(
                "internal_error",
                "Database operation failed",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                {"detail": str(e) if settings.debug else None}
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except Exception as e:
            # 예상하지 못한 모든 에러들
            error_detail = None
            if settings.debug:
                error_detail = {
                    "exception": str(e),
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc()
                }

            logger.exception(f"Unhandled exception: {type(e).__name__}: {e}")

            error_response = create_error_response(
                "internal_error",
                "An unexpected error occurred",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_detail
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTPException을 표준 형식으로 변환"""

    # 우리의 커스텀 예외인 경우 그대로 반환
    if isinstance(exc, BaseCustomException):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers
        )

    error_response = create_error_response(
        "http_error",
        exc.detail if isinstance(exc.detail, str) else "HTTP error occurred",
        exc.status_code,
        {"detail": exc.detail} if not isinstance(exc.detail, str) else None
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 검증 에러를 표준 형식으로 변환"""
    validation_errors = [
        ValidationError(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input")
        )
        for error in exc.errors()
    ]

    error_response = create_validation_error_response(
        "Request validation failed",
        validation_errors
    )

    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.model_dump(mode="json")
    )


def register_error_handlers(app: FastAPI):
    """에러 핸들러 등록"""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(ErrorHandlerMiddleware)
