# company_guide/core/config.py
# 應用程式設定 (資料庫連線字串、JWT 秘鑰、上傳目錄等)
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 資料庫設定
    DATABASE_URL: str
    # 是否在 console 印出 SQL 語句
    DATABASE_ECHO: bool = False
    # 啟動時自動建立資料表
    CREATE_TABLES: bool = True

    # JWT 設定
    JWT_SECRET_KEY: str
    # JWT 演算法
    JWT_ALGORITHM: str = "HS256"
    # 存取令牌過期時間（分鐘）
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Session (flash 訊息) 簽章用的秘鑰
    SESSION_SECRET_KEY: str

    # 上傳檔案根目錄，logo 會放在 <UPLOAD_DIR>/logos/
    UPLOAD_DIR: str = "storage"
    # logo 縮放尺寸 (寬 = 高)
    LOGO_SIZE: int = 400
    # logo 上傳失敗時是否顯示提示 (預設靜默保留舊 logo)
    NOTIFY_LOGO_UPLOAD_FAILURE: bool = False

    # 名錄卡片頁每頁筆數
    GUIDE_PER_PAGE: int = 9

    LOG_LEVEL: str = "INFO"

    # 環境變數檔案
    class Config:
        env_file = ".env"

# 建立設定實例
settings = Settings()
