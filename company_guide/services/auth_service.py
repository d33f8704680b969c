import logging
from sqlalchemy.ext.asyncio import AsyncSession
from company_guide.repositories.user_repo import UserRepository
from company_guide.core.security import verify_password, create_access_token
from company_guide.models.user import User

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """
        驗證使用者帳號密碼。
        成功回傳 User 物件，失敗回傳 None。
        """
        user = await self.user_repo.get_user_by_email(email)

        # 1. 檢查使用者是否存在
        if not user:
            logger.info(f"Login failed, unknown email: {email}")
            return None

        # 2. 檢查是否被停權
        if not user.is_active:
            logger.info(f"Login failed, inactive user: {user.user_id}")
            return None

        # 3. 檢查密碼是否正確
        if not verify_password(plain_password=password, hashed_password=user.password_hash):
            logger.info(f"Login failed, wrong password: {user.user_id}")
            return None

        return user

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.user_id),
            }
        )
