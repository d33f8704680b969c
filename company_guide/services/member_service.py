# company_guide/services/member_service.py
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from company_guide.core.security import get_password_hash
from company_guide.models.user import User
from company_guide.repositories.user_repo import UserRepository
from company_guide.schemas.user_schema import MemberUpdate

logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(ValueError):
    pass


class MemberService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def update_member(self, user: User, update_data: MemberUpdate) -> User:
        """
        更新自己的帳號資料。
        密碼留空則不變更，有填寫才重新雜湊。
        """
        existing = await self.user_repo.get_user_by_email(update_data.email)
        if existing and existing.user_id != user.user_id:
            raise EmailAlreadyRegistered(update_data.email)

        user.name = update_data.name
        user.email = update_data.email
        if update_data.password:
            user.password_hash = get_password_hash(update_data.password)

        updated = await self.user_repo.update_user(user)
        logger.info(f"Member updated: {user.user_id}")
        return updated
