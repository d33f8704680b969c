# company_guide/repositories/profile_repo.py
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import List, Optional
from sqlalchemy import func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from company_guide.models.profile import Profile, ProfileMember
from company_guide.schemas.profile_schema import ProfileFilter

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """分頁結果 (名錄卡片頁使用)"""
    items: List[Profile]
    total: int
    page: int
    per_page: int
    # 分頁連結要保留的篩選參數
    query_params: dict = field(default_factory=dict)

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page

    def __iter__(self):
        return iter(self.items)


class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # --- 查詢 ---
    async def get_profile_by_slug(self, slug: str) -> Profile | None:
        stmt = select(Profile).where(Profile.slug == slug)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def slug_exists(self, slug: str) -> bool:
        stmt = select(func.count()).select_from(Profile).where(Profile.slug == slug)
        result = await self.db.execute(stmt)
        return result.scalar_one() > 0

    async def list_profiles_by_user(self, user_id: str) -> List[Profile]:
        """某位使用者擁有的所有 Profile (主要 Profile 排最前面)"""
        stmt = (
            select(Profile)
            .join(ProfileMember, ProfileMember.profile_id == Profile.profile_id)
            .where(ProfileMember.user_id == user_id)
            .order_by(ProfileMember.primary.desc(), Profile.name.asc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_profiles_by_user(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(ProfileMember).where(ProfileMember.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def is_owner(self, user_id: str, profile_id: str) -> bool:
        stmt = select(func.count()).select_from(ProfileMember).where(
            ProfileMember.user_id == user_id,
            ProfileMember.profile_id == profile_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one() > 0

    # --- 名錄篩選 / 排序 / 分頁 ---
    def _filtered_statement(self, filters: ProfileFilter):
        stmt = select(Profile)

        # 1. 關鍵字 (名稱或介紹，不分大小寫)
        if filters.q:
            pattern = f"%{filters.q.lower()}%"
            stmt = stmt.where(or_(
                func.lower(Profile.name).like(pattern),
                func.lower(Profile.description).like(pattern)
            ))

        # 2. 城市 (精確，不分大小寫)
        if filters.city:
            stmt = stmt.where(func.lower(Profile.city) == filters.city.lower())

        # 3. 時薪區間
        if filters.min_rate is not None:
            stmt = stmt.where(Profile.hourly_rate >= filters.min_rate)
        if filters.max_rate is not None:
            stmt = stmt.where(Profile.hourly_rate <= filters.max_rate)

        return stmt

    def _sorted(self, stmt, filters: ProfileFilter):
        column = getattr(Profile, filters.sort)
        ordering = column.desc() if filters.direction == "desc" else column.asc()
        # 同值時依名稱、ID 排序，分頁結果才會穩定
        return stmt.order_by(ordering, Profile.name.asc(), Profile.profile_id.asc())

    async def list_filtered(self, filters: ProfileFilter) -> List[Profile]:
        stmt = self._sorted(self._filtered_statement(filters), filters)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def paginate_filtered(self, filters: ProfileFilter, page: int, per_page: int) -> Page:
        base = self._filtered_statement(filters)

        count_stmt = select(func.count()).select_from(base.subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()

        last_page = max(1, math.ceil(total / per_page))
        page = min(max(1, page), last_page)

        stmt = self._sorted(base, filters).offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(stmt)

        return Page(
            items=result.scalars().all(),
            total=total,
            page=page,
            per_page=per_page,
            query_params=filters.query_params()
        )

    # --- 寫入 ---
    async def create_profile_for_user(self, user_id: str, profile_data: dict) -> Profile:
        """建立 Profile 並同時寫入 使用者-Profile 關聯表"""
        new_profile = Profile(
            **profile_data,
            profile_id=str(uuid.uuid4())
        )
        membership = ProfileMember(
            profile_user_id=str(uuid.uuid4()),
            user_id=user_id,
            profile_id=new_profile.profile_id,
            primary=False
        )
        try:
            self.db.add(new_profile)
            await self.db.flush()
            self.db.add(membership)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"建立 Profile 失敗: {e}", exc_info=True)
            raise
        await self.db.refresh(new_profile)
        return new_profile

    async def mark_primary(self, user_id: str, profile_id: str) -> None:
        stmt = (
            update(ProfileMember)
            .where(ProfileMember.user_id == user_id, ProfileMember.profile_id == profile_id)
            .values(primary=True)
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def update_profile(self, profile: Profile, update_data: dict) -> Profile:
        for key, value in update_data.items():
            setattr(profile, key, value)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"更新 Profile 失敗: {e}", exc_info=True)
            raise
        await self.db.refresh(profile)
        return profile

    async def delete_profile(self, profile: Profile) -> None:
        try:
            await self.db.delete(profile)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"刪除 Profile 失敗: {e}", exc_info=True)
            raise
