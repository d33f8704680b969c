# company_guide/services/logo_service.py
# Profile logo 上傳：驗證圖片、縮放、存檔，並清除被取代的舊檔
import enum
import logging
import secrets
import string
import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

import aiofiles
from PIL import Image
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from company_guide.core.config import settings

logger = logging.getLogger(__name__)

# 副檔名 -> Pillow 輸出格式
IMAGE_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
}
RANDOM_ALPHABET = string.ascii_letters + string.digits


class LogoUploadStatus(str, enum.Enum):
    STORED = "stored"        # 新檔案已存好
    UNCHANGED = "unchanged"  # 沒有上傳檔案
    FAILED = "failed"        # 處理失敗，沿用舊檔名


@dataclass
class LogoUploadResult:
    status: LogoUploadStatus
    # 應該寫回 Profile.logo 的檔名 (失敗或未上傳時為舊檔名)
    filename: Optional[str]
    reason: Optional[str] = None
    # 被新檔取代的舊檔名，資料寫入成功後才刪除
    replaced: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is LogoUploadStatus.FAILED


def logo_dir() -> Path:
    return Path(settings.UPLOAD_DIR) / "logos"

def logo_path(filename: str) -> Path:
    # 只取檔名部分，避免 "../" 之類的路徑
    return logo_dir() / Path(filename).name

def logo_exists(filename: Optional[str]) -> bool:
    return bool(filename) and logo_path(filename).is_file()

def delete_logo(filename: Optional[str]) -> bool:
    """刪除 logo 檔案，檔案不存在時回傳 False"""
    if not logo_exists(filename):
        return False
    logo_path(filename).unlink()
    logger.info(f"Logo 檔案已刪除: {filename}")
    return True

def generate_logo_filename(extension: str) -> str:
    """<unix 時間戳><10 個隨機英數字>.<原副檔名>"""
    random_part = "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(10))
    return f"{int(time.time())}{random_part}.{extension}"

def resize_image(content: bytes, image_format: str, size: int) -> bytes:
    """將圖片縮放成 size x size，回傳編碼後的 bytes"""
    with Image.open(BytesIO(content)) as image:
        image.load()
        resized = image.resize((size, size))
    if image_format == "JPEG" and resized.mode not in ("RGB", "L"):
        resized = resized.convert("RGB")
    buffer = BytesIO()
    resized.save(buffer, format=image_format)
    return buffer.getvalue()


class LogoService:
    def __init__(self, size: Optional[int] = None):
        self.size = size or settings.LOGO_SIZE

    async def upload_logo(self, file: Optional[UploadFile], old: Optional[str] = None) -> LogoUploadResult:
        """
        處理上傳的 logo。
        - 沒有檔案: UNCHANGED，沿用 old
        - 處理失敗: FAILED，沿用 old，舊檔案不動
        - 成功: STORED，舊檔名放在 replaced，由呼叫端在寫入資料庫後刪除
        """
        if file is None or not file.filename:
            return LogoUploadResult(LogoUploadStatus.UNCHANGED, old)

        extension = Path(file.filename).suffix.lstrip(".")
        image_format = IMAGE_FORMATS.get(extension.lower())
        if image_format is None:
            return self._failed(old, f"不支援的檔案類型: {file.filename}")

        filename = generate_logo_filename(extension)
        path = logo_path(filename)

        try:
            content = await file.read()
            resized = await run_in_threadpool(resize_image, content, image_format, self.size)

            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(resized)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            # 寫到一半的檔案要清掉
            if path.exists():
                path.unlink()
            return self._failed(old, f"圖片處理失敗: {e}")

        logger.info(f"Logo 已儲存: {filename}")
        return LogoUploadResult(LogoUploadStatus.STORED, filename, replaced=old)

    def discard(self, upload: LogoUploadResult) -> None:
        """資料寫入失敗時，刪除這次新存的檔案"""
        if upload.status is LogoUploadStatus.STORED:
            delete_logo(upload.filename)

    def commit(self, upload: LogoUploadResult) -> None:
        """資料寫入成功後，刪除被取代的舊檔案"""
        if upload.status is LogoUploadStatus.STORED and upload.replaced:
            delete_logo(upload.replaced)

    def _failed(self, old: Optional[str], reason: str) -> LogoUploadResult:
        logger.warning(f"Logo 上傳失敗，保留原本的 logo ({old}): {reason}")
        return LogoUploadResult(LogoUploadStatus.FAILED, old, reason)
