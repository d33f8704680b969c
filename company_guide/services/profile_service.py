# company_guide/services/profile_service.py
import logging
from typing import List, Optional, Tuple, Union
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from company_guide.core.config import settings
from company_guide.core.exceptions import ProfileAccessDenied
from company_guide.models.profile import Profile
from company_guide.models.user import User
from company_guide.repositories.profile_repo import Page, ProfileRepository
from company_guide.schemas.profile_schema import ProfileFilter, ProfileForm, ViewMode
from company_guide.services.logo_service import LogoService, LogoUploadResult, delete_logo, logo_exists
from company_guide.utils.parsing import parse_founded_year, parse_hourly_rate, slugify

logger = logging.getLogger(__name__)

# 與 /profile/... 固定路由衝突的 slug
RESERVED_SLUGS = {"mine", "create", "edit", "update"}

class ProfileService:
    def __init__(self, db: AsyncSession, logo_service: Optional[LogoService] = None):
        self.db = db
        self.repo = ProfileRepository(db)
        self.logo_service = logo_service or LogoService()

    # --- 公開查詢 ---
    async def list_profiles(
        self, mode: ViewMode, filters: ProfileFilter, page: int = 1
    ) -> Union[Page, List[Profile]]:
        """
        名錄列表。卡片模式分頁，地圖 / 表格模式回傳全部符合條件的 Profile
        """
        if mode.paginated:
            return await self.repo.paginate_filtered(filters, page, settings.GUIDE_PER_PAGE)
        return await self.repo.list_filtered(filters)

    async def get_profile(self, slug: str) -> Profile:
        profile = await self.repo.get_profile_by_slug(slug)
        if not profile:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Profile 不存在")
        return profile

    async def get_my_profiles(self, user: User) -> List[Profile]:
        return await self.repo.list_profiles_by_user(user.user_id)

    async def ensure_owner(self, user: User, profile: Profile) -> None:
        """不是擁有者就拋出 ProfileAccessDenied (由 handler 轉成 flash + redirect)"""
        if not await self.repo.is_owner(user.user_id, profile.profile_id):
            raise ProfileAccessDenied(profile.profile_id)

    # --- 建立 / 更新 ---
    async def create_profile(
        self, user: User, form: ProfileForm, logo: Optional[UploadFile] = None
    ) -> Tuple[Profile, LogoUploadResult]:
        """
        建立 Profile，擁有者為目前使用者。
        使用者的第一個 Profile 會被標記為主要 Profile。
        """
        upload = await self.logo_service.upload_logo(logo)

        profile_data = self._merge_derived_fields(form, upload)
        profile_data["slug"] = await self._unique_slug(form.name)

        try:
            profile = await self.repo.create_profile_for_user(user.user_id, profile_data)
        except Exception:
            self.logo_service.discard(upload)
            raise

        if await self.repo.count_profiles_by_user(user.user_id) == 1:
            await self.repo.mark_primary(user.user_id, profile.profile_id)

        logger.info(f"Profile created: {profile.profile_id} ({profile.slug}) by user {user.user_id}")
        return profile, upload

    async def update_profile(
        self, user: User, profile: Profile, form: ProfileForm, logo: Optional[UploadFile] = None
    ) -> Tuple[Profile, LogoUploadResult]:
        await self.ensure_owner(user, profile)

        upload = await self.logo_service.upload_logo(logo, profile.logo)

        try:
            profile = await self.repo.update_profile(profile, self._merge_derived_fields(form, upload))
        except Exception:
            self.logo_service.discard(upload)
            raise

        # 新檔名已寫入，舊檔案才可以刪除
        self.logo_service.commit(upload)
        logger.info(f"Profile updated: {profile.profile_id} by user {user.user_id}")
        return profile, upload

    async def remove_logo(self, user: User, profile: Profile) -> bool:
        """刪除 logo 檔案並清空欄位；沒有 logo 時不做任何事，回傳 False"""
        await self.ensure_owner(user, profile)

        if not profile.logo or not logo_exists(profile.logo):
            return False

        delete_logo(profile.logo)
        await self.repo.update_profile(profile, {"logo": None})
        return True

    async def delete_profile(self, user: User, profile: Profile) -> None:
        await self.ensure_owner(user, profile)

        # TODO: 刪除 Profile 時一併刪除 logo 檔案 (目前檔案會留在 uploads/logos)
        if profile.logo:
            logger.warning(f"Profile {profile.profile_id} deleted, logo file left on disk: {profile.logo}")

        await self.repo.delete_profile(profile)
        logger.info(f"Profile deleted: {profile.profile_id} by user {user.user_id}")

    # --- 內部工具 ---
    def _merge_derived_fields(self, form: ProfileForm, upload: LogoUploadResult) -> dict:
        data = form.get_valid_input()
        data.update(
            logo=upload.filename,
            founded_at=parse_founded_year(form.founded_at),
            hourly_rate=parse_hourly_rate(form.hourly_rate),
        )
        return data

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name) or "profile"
        slug = base
        suffix = 2
        while slug in RESERVED_SLUGS or await self.repo.slug_exists(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug
