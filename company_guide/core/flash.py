# company_guide/core/flash.py
# 一次性的提示訊息 (存在 session，下一次渲染頁面時取出)
from typing import Dict, List
from starlette.requests import Request

FLASH_SESSION_KEY = "_flash"


def flash(request: Request, message: str, level: str = "success") -> None:
    """加入一則提示訊息 (level: success / error / warning / info)"""
    messages = request.session.get(FLASH_SESSION_KEY, [])
    messages.append({"message": message, "level": level})
    request.session[FLASH_SESSION_KEY] = messages


def get_flashed_messages(request: Request) -> List[Dict[str, str]]:
    """取出並清除目前所有提示訊息"""
    return request.session.pop(FLASH_SESSION_KEY, [])
