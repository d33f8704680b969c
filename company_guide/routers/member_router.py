# company_guide/routers/member_router.py
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from company_guide.core.database import get_db
from company_guide.core.exceptions import FormValidationError
from company_guide.core.flash import flash
from company_guide.core.security import get_current_user
from company_guide.core.templates import templates
from company_guide.models.user import User
from company_guide.schemas.user_schema import MemberUpdate
from company_guide.services.member_service import EmailAlreadyRegistered, MemberService

router = APIRouter(
    prefix="/profile",
    tags=["Members"],
    dependencies=[Depends(get_current_user)] # 整個路由都需要登入
)

@router.get("/edit", name="user.edit")
async def edit_member(
    request: Request,
    current_user: User = Depends(get_current_user)
):
    """
    編輯自己的帳號資料
    """
    return templates.TemplateResponse(request, "members/manage/edit.html", {"user": current_user})

@router.api_route("/update", methods=["POST", "PUT"], name="user.update")
async def update_member(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    更新自己的帳號資料 (密碼留空則不變更)
    """
    edit_url = request.app.url_path_for("user.edit")
    form = await request.form()
    try:
        update_data = MemberUpdate.model_validate(dict(form))
    except ValidationError as e:
        raise FormValidationError.from_validation_error(e, edit_url)

    service = MemberService(db)
    try:
        await service.update_member(current_user, update_data)
    except EmailAlreadyRegistered:
        raise FormValidationError(["email: 此 Email 已經被使用"], edit_url)

    flash(request, "你的帳號資料已更新", "success")
    return RedirectResponse(edit_url, status_code=status.HTTP_303_SEE_OTHER)
