# company_guide/core/exceptions.py
# 應用程式自訂例外，以及對應的 FastAPI exception handler
# (網頁流程一律以 flash 訊息 + 303 redirect 回應，而不是 JSON 錯誤)
import logging
from typing import List
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from company_guide.core.flash import flash

logger = logging.getLogger(__name__)


class LoginRequired(Exception):
    """尚未登入 (或 token 無效) 時由 get_current_user 拋出"""


class ProfileAccessDenied(Exception):
    """目前使用者不是該 Profile 的擁有者"""

    def __init__(self, profile_id: str | None = None):
        super().__init__(profile_id)
        self.profile_id = profile_id


class FormValidationError(Exception):
    """表單驗證失敗，導回上一頁並顯示錯誤訊息"""

    def __init__(self, messages: List[str], fallback_url: str):
        super().__init__("; ".join(messages))
        self.messages = messages
        self.fallback_url = fallback_url

    @classmethod
    def from_validation_error(cls, exc: ValidationError, fallback_url: str) -> "FormValidationError":
        messages = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            message = error["msg"]
            messages.append(f"{field}: {message}" if field else message)
        return cls(messages, fallback_url)


def register_exception_handlers(app: FastAPI) -> None:
    """註冊所有網頁流程用的 exception handler"""

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        login_url = request.app.url_path_for("login")
        query = urlencode({"next": request.url.path})
        return RedirectResponse(f"{login_url}?{query}", status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(ProfileAccessDenied)
    async def access_denied_handler(request: Request, exc: ProfileAccessDenied):
        logger.warning(f"Profile access denied: profile={exc.profile_id} path={request.url.path}")
        flash(request, "你沒有權限存取此 Profile", "error")
        return RedirectResponse(
            request.app.url_path_for("profile.list"),
            status_code=status.HTTP_303_SEE_OTHER
        )

    @app.exception_handler(FormValidationError)
    async def form_validation_handler(request: Request, exc: FormValidationError):
        logger.info(f"Form validation failed on {request.url.path}: {exc.messages}")
        for message in exc.messages:
            flash(request, message, "error")
        target = request.headers.get("referer") or exc.fallback_url
        return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
