# company_guide/core/security.py
# 負責密碼雜湊與 JWT 權杖的產生與驗證，以及「目前登入者」的 Dependency
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from company_guide.core.config import settings
from company_guide.core.database import get_db
from company_guide.core.exceptions import LoginRequired
from company_guide.schemas.user_schema import TokenData
from company_guide.repositories.user_repo import UserRepository
from company_guide.models.user import User

# 1. 密碼雜湊設定 (Bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 2. Token 可以從 Authorization Header 來 (API 用戶端)，
#    網頁則放在 HTTP-only cookie 裡
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)
ACCESS_TOKEN_COOKIE = "access_token"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """驗證明文密碼是否與雜湊值相符"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """產生密碼的雜湊值"""
    return pwd_context.hash(password)

def create_access_token(data: dict) -> str:
    """
    根據傳入的 data (e.g., user_id) 產生 JWT access token
    """
    to_encode = data.copy() # 避免修改原始資料
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt

def verify_access_token(token: str) -> TokenData | None:
    """
    驗證 JWT，回傳 TokenData (Pydantic Model) 或 None
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        user_id = payload.get("user_id")
        if user_id is None:
            return None

        return TokenData(user_id=user_id)

    except JWTError:
        return None

async def get_optional_user(
    request: Request,
    bearer_token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User | None:
    """
    FastAPI 依賴項：回傳目前登入的 User，未登入則回傳 None (公開頁面用)
    """
    token = bearer_token or request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return None

    token_data = verify_access_token(token)
    if token_data is None:
        return None

    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(user_id=token_data.user_id)

    if user is None or not user.is_active:
        return None

    return user

async def get_current_user(
    user: User | None = Depends(get_optional_user)
) -> User:
    """
    FastAPI 依賴項：必須登入，否則導向登入頁 (由 LoginRequired handler 處理)
    """
    if user is None:
        raise LoginRequired()
    return user
