import logging
from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from company_guide.core.config import settings
from company_guide.core.database import get_db
from company_guide.core.flash import flash
from company_guide.core.security import ACCESS_TOKEN_COOKIE
from company_guide.core.templates import templates
from company_guide.services.auth_service import AuthService
from company_guide.schemas.user_schema import Token


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


def _safe_next(next_url: str | None) -> str | None:
    """只允許站內路徑，避免 open redirect"""
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return None


@router.get("/login", name="login")
async def login_form(request: Request, next: str | None = None):
    """
    登入頁
    """
    return templates.TemplateResponse(request, "auth/login.html", {"next": _safe_next(next) or ""})


@router.post("/login", name="login.submit")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next_url: str = Form("", alias="next"),
    db: AsyncSession = Depends(get_db)
):
    """
    網頁登入：驗證成功後把 token 放進 HTTP-only cookie
    """
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(email=email, password=password)

    if not user:
        flash(request, "不正確的帳號或密碼", "error")
        return RedirectResponse(request.app.url_path_for("login"), status_code=status.HTTP_303_SEE_OTHER)

    logger.info(f"User logged in: {user.user_id}")

    target = _safe_next(next_url) or request.app.url_path_for("profile.list")
    response = RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        auth_service.create_login_token(user),
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout", name="logout")
async def logout(request: Request):
    request.session.clear()
    response = RedirectResponse(request.app.url_path_for("guide"), status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@router.post("/auth/token", response_model=Token)
async def login_for_access_token(
    # 使用 OAuth2PasswordRequestForm 會強制 API 只接受 form-data
    # 格式為 username=...&password=...
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """
    提供帳號 (username 欄位傳 email) 和密碼以取得 Access Token
    """
    auth_service = AuthService(db)

    # form_data.username 欄位就是我們的 email
    user = await auth_service.authenticate_user(
        email=form_data.username,
        password=form_data.password
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="不正確的帳號或密碼",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User logged in: {user.user_id}")

    access_token = auth_service.create_login_token(user)

    return {"access_token": access_token, "token_type": "bearer"}
