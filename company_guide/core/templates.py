# company_guide/core/templates.py
from pathlib import Path
from fastapi.templating import Jinja2Templates

from company_guide.core.flash import get_flashed_messages

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

# logo 靜態檔案的網址前綴 (對應 main.py 的 /storage 掛載點)
LOGO_URL_PREFIX = "/storage/logos/"


def logo_url(filename: str | None) -> str | None:
    if not filename:
        return None
    return f"{LOGO_URL_PREFIX}{filename}"


templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.globals["get_flashed_messages"] = get_flashed_messages
templates.env.globals["logo_url"] = logo_url
