from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationException, invalid_token_error, user_not_found_error
from app.core.logging import user_id_var
from app.database.postgres import get_async_session
from app.models.users import User
from app.schemas.user import TokenData
from app.services import user_service
from app.utils.auth import decode_access_token

# 토큰 발급은 인증 서비스 담당 (이 서비스는 검증만 수행)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_current_user(
        request: Request,
        token: str = Depends(oauth2_scheme),
        db: AsyncSession = Depends(get_async_session)
) -> User:
    """
    현재 인증된 사용자 조회

    토큰의 sub(사용자 ID)로 활성 사용자를 찾습니다.
    """
    if not token:
        raise AuthenticationException("Not authenticated")

    # 토큰 검증
    payload = decode_access_token(token)
    if not payload:
        raise invalid_token_error()

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise invalid_token_error()

    token_data = TokenData(user_id=int(user_id))

    user = await user_service.find_active_user_by_id(db, token_data.user_id)
    if not user:
        raise user_not_found_error(token_data.user_id)

    # 로깅 미들웨어/포매터에서 사용
    request.state.user_id = user.id
    user_id_var.set(user.id)

    return user
