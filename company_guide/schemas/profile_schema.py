# company_guide/schemas/profile_schema.py
from datetime import date
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
import enum


class ViewMode(str, enum.Enum):
    """名錄的三種呈現方式"""
    CARDS = "cards"
    MAP = "map"
    TABLE = "table"

    @property
    def template(self) -> str:
        return f"profiles/{self.value}.html"

    @property
    def paginated(self) -> bool:
        return self is ViewMode.CARDS


# --- Profile 表單 (建立 / 更新共用) ---
class ProfileForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    website: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    # 只接受西元年，例如 "1999"
    founded_at: Optional[str] = Field(None, pattern=r"^\d{4}$")
    # 接受 "1 234,56" 或 "75.50" 之類的格式，整數部分 (含空白) 最多 12 個字元
    hourly_rate: Optional[str] = Field(None, pattern=r"^\d[\d ]{0,11}([.,]\d{1,2})?$")

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("founded_at")
    @classmethod
    def founded_year_in_range(cls, v):
        if v is not None and not 1 <= int(v) <= date.today().year:
            raise ValueError("成立年份不正確")
        return v

    def get_valid_input(self) -> dict:
        """
        回傳可以直接寫入 Profile 的欄位。
        founded_at / hourly_rate 需要另外轉換，不包含在內。
        """
        return self.model_dump(exclude={"founded_at", "hourly_rate"})


# --- 名錄篩選條件 (query string) ---
SORTABLE_FIELDS = ("name", "founded_at", "hourly_rate", "created_at")

class ProfileFilter(BaseModel):
    q: Optional[str] = None
    city: Optional[str] = None
    min_rate: Optional[float] = Field(None, ge=0)
    max_rate: Optional[float] = Field(None, ge=0)
    sort: str = "name"
    direction: str = "asc"

    @field_validator("q", "city", "min_rate", "max_rate", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("sort", mode="before")
    @classmethod
    def known_sort(cls, v):
        # 未知的排序欄位一律退回預設值
        return v if v in SORTABLE_FIELDS else "name"

    @field_validator("direction", mode="before")
    @classmethod
    def known_direction(cls, v):
        return v if v in ("asc", "desc") else "asc"

    def query_params(self) -> dict:
        """分頁連結要保留的篩選參數 (不含預設值)"""
        return {
            key: value
            for key, value in self.model_dump(exclude_none=True).items()
            if type(self).model_fields[key].default != value
        }
