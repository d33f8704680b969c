# company_guide/models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, CHAR, func
from sqlalchemy.orm import relationship
from company_guide.core.database import Base

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(CHAR(36), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # 關聯設定
    # 使用者擁有的 Profile (透過 profile_users 關聯表，含 primary 旗標)
    profile_links = relationship(
        "ProfileMember",
        back_populates="user",
        cascade="all, delete-orphan"
    )
