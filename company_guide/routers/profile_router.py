# company_guide/routers/profile_router.py
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import FormData, UploadFile
from company_guide.core.config import settings
from company_guide.core.database import get_db
from company_guide.core.exceptions import FormValidationError
from company_guide.core.flash import flash
from company_guide.core.security import get_current_user
from company_guide.core.templates import templates
from company_guide.models.profile import Profile
from company_guide.models.user import User
from company_guide.schemas.profile_schema import ProfileFilter, ProfileForm, ViewMode
from company_guide.services.logo_service import LogoUploadResult
from company_guide.services.profile_service import ProfileService

import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profiles"])


# --- Dependencies / 工具 ---
async def get_bound_profile(
    profile: str,
    db: AsyncSession = Depends(get_db)
) -> Profile:
    """依網址上的 slug 取得 Profile，找不到回 404"""
    return await ProfileService(db).get_profile(profile)

def _redirect(request: Request, name: str, **path_params) -> RedirectResponse:
    return RedirectResponse(
        request.app.url_path_for(name, **path_params),
        status_code=status.HTTP_303_SEE_OTHER
    )

def _validate_profile_form(form: FormData, fallback_url: str) -> ProfileForm:
    try:
        return ProfileForm.model_validate(dict(form))
    except ValidationError as e:
        raise FormValidationError.from_validation_error(e, fallback_url)

def _uploaded_logo(form: FormData) -> UploadFile | None:
    logo = form.get("logo")
    # 沒選檔案時瀏覽器仍會送出一個空檔名的欄位
    if isinstance(logo, UploadFile) and logo.filename:
        return logo
    return None

def _report_upload(request: Request, upload: LogoUploadResult) -> None:
    if upload.failed and settings.NOTIFY_LOGO_UPLOAD_FAILURE:
        flash(request, "Logo 上傳失敗，已保留原本的 logo", "warning")

def _resolve_filters(request: Request) -> ProfileFilter:
    try:
        return ProfileFilter.model_validate(dict(request.query_params))
    except ValidationError:
        logger.info(f"Ignoring invalid guide filters: {request.query_params}")
        return ProfileFilter()

def _resolve_page(request: Request) -> int:
    try:
        return max(1, int(request.query_params.get("page", 1)))
    except ValueError:
        return 1


# --- 名錄 (公開) ---
async def _render_index(request: Request, db: AsyncSession, mode: ViewMode):
    filters = _resolve_filters(request)
    service = ProfileService(db)
    profiles = await service.list_profiles(mode, filters, page=_resolve_page(request))
    return templates.TemplateResponse(request, mode.template, {
        "profiles": profiles,
        "filters": filters,
        "mode": mode,
    })

@router.get("/guide", name="guide")
async def guide_cards(request: Request, db: AsyncSession = Depends(get_db)):
    """
    名錄卡片頁 (分頁)
    """
    return await _render_index(request, db, ViewMode.CARDS)

@router.get("/guide/map", name="guide.map")
async def guide_map(request: Request, db: AsyncSession = Depends(get_db)):
    """
    名錄地圖頁 (全部符合條件的 Profile)
    """
    return await _render_index(request, db, ViewMode.MAP)

@router.get("/guide/list", name="guide.list")
async def guide_table(request: Request, db: AsyncSession = Depends(get_db)):
    """
    名錄表格頁 (全部符合條件的 Profile)
    """
    return await _render_index(request, db, ViewMode.TABLE)


# --- 我的 Profile ---
@router.get("/profile/mine", name="profile.list")
async def my_profiles(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    目前登入者擁有的 Profile (不分頁)
    """
    profiles = await ProfileService(db).get_my_profiles(current_user)
    return templates.TemplateResponse(request, "profiles/table.html", {
        "profiles": profiles,
        "mode": ViewMode.TABLE,
        "manage": True,
    })

@router.get("/profile/create", name="profile.create")
async def create_profile_form(
    request: Request,
    current_user: User = Depends(get_current_user)
):
    return templates.TemplateResponse(request, "profiles/manage/create.html", {"profile": None})

@router.post("/profile", name="profile.store")
async def store_profile(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    建立新的 Profile (含 logo 上傳)
    """
    form = await request.form()
    profile_form = _validate_profile_form(form, request.app.url_path_for("profile.create"))

    service = ProfileService(db)
    profile, upload = await service.create_profile(current_user, profile_form, _uploaded_logo(form))

    _report_upload(request, upload)
    flash(request, "Profile 已新增", "success")
    return _redirect(request, "profile.list")


# --- 單一 Profile ---
@router.get("/profile/{profile}", name="profile.show")
async def show_profile(
    request: Request,
    profile: Profile = Depends(get_bound_profile)
):
    """
    公開的 Profile 頁面 (不需登入)
    """
    return templates.TemplateResponse(request, "profiles/show.html", {"profile": profile})

@router.get("/profile/{profile}/edit", name="profile.edit")
async def edit_profile(
    request: Request,
    current_user: User = Depends(get_current_user),
    profile: Profile = Depends(get_bound_profile),
    db: AsyncSession = Depends(get_db)
):
    await ProfileService(db).ensure_owner(current_user, profile)
    return templates.TemplateResponse(request, "profiles/manage/edit.html", {"profile": profile})

@router.put("/profile/{profile}", name="profile.update")
async def update_profile(
    request: Request,
    current_user: User = Depends(get_current_user),
    profile: Profile = Depends(get_bound_profile),
    db: AsyncSession = Depends(get_db)
):
    """
    更新 Profile；有上傳新 logo 時會取代 (並刪除) 舊檔
    """
    service = ProfileService(db)
    await service.ensure_owner(current_user, profile)

    form = await request.form()
    profile_form = _validate_profile_form(
        form, request.app.url_path_for("profile.edit", profile=profile.slug)
    )

    profile, upload = await service.update_profile(current_user, profile, profile_form, _uploaded_logo(form))

    _report_upload(request, upload)
    flash(request, "Profile 已更新", "success")
    return _redirect(request, "profile.list")

@router.post("/profile/{profile}/logo/remove", name="profile.logo.remove")
async def remove_logo(
    request: Request,
    current_user: User = Depends(get_current_user),
    profile: Profile = Depends(get_bound_profile),
    db: AsyncSession = Depends(get_db)
):
    """
    刪除 Profile 的 logo，完成後回到編輯頁
    """
    if await ProfileService(db).remove_logo(current_user, profile):
        flash(request, "Logo 已刪除", "success")
    return _redirect(request, "profile.edit", profile=profile.slug)

@router.delete("/profile/{profile}", name="profile.destroy")
async def destroy_profile(
    request: Request,
    current_user: User = Depends(get_current_user),
    profile: Profile = Depends(get_bound_profile),
    db: AsyncSession = Depends(get_db)
):
    await ProfileService(db).delete_profile(current_user, profile)
    flash(request, "Profile 已刪除", "success")
    return _redirect(request, "profile.list")
