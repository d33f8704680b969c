# company_guide/schemas/user_schema.py
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional

# Token 回應的格式
class Token(BaseModel):
    access_token: str
    token_type: str

# Token 內的資料
class TokenData(BaseModel):
    user_id: str


# 會員資料更新表單 (GET /profile/edit 的表單送出)
class MemberUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    # 留空代表不變更密碼
    password: Optional[str] = Field(None, min_length=8)
    password_confirmation: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password", "password_confirmation", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # HTML 表單的空欄位會送出空字串
        if isinstance(v, str) and v == "":
            return None
        return v

    @model_validator(mode="after")
    def check_password_confirmation(self):
        if self.password and self.password != self.password_confirmation:
            raise ValueError("兩次輸入的密碼不一致")
        return self
