# company_guide/repositories/user_repo.py
# 負責與使用者相關的資料庫操作
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from company_guide.models.user import User

logger = logging.getLogger(__name__)

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        """
        透過 email 查詢使用者
        """
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_by_id(self, user_id: str) -> User | None:
        """
        透過 user_id 查詢使用者
        """
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def update_user(self, user: User) -> User:
        """
        儲存已修改的使用者欄位
        """
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"更新使用者失敗: {e}", exc_info=True)
            raise
        await self.db.refresh(user)
        return user
