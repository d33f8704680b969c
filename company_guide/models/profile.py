# company_guide/models/profile.py
from sqlalchemy import (
    Column, String, TEXT, ForeignKey, Boolean, Date, DateTime, Float,
    CHAR, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from company_guide.core.database import Base

class Profile(Base):
    __tablename__ = "profiles"
    profile_id = Column(CHAR(36), primary_key=True)
    name = Column(String(255), nullable=False)
    # 網址用的識別字串 (建立時由名稱產生，之後不再變動)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(TEXT)
    # 只存檔名，檔案本身在 <UPLOAD_DIR>/logos/
    logo = Column(String(255))
    website = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(String(255))
    city = Column(String(100), index=True)
    latitude = Column(Float)
    longitude = Column(Float)
    founded_at = Column(Date)
    hourly_rate = Column(Float)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # 關聯到 ProfileMember (多)
    members = relationship(
        "ProfileMember",
        back_populates="profile",
        cascade="all, delete-orphan"
    )

class ProfileMember(Base):
    """使用者 <-> Profile 的擁有關係"""
    __tablename__ = "profile_users"
    __table_args__ = (
        UniqueConstraint("user_id", "profile_id", name="uq_profile_users_user_profile"),
    )

    profile_user_id = Column(CHAR(36), primary_key=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    profile_id = Column(CHAR(36), ForeignKey("profiles.profile_id", ondelete="CASCADE"), nullable=False, index=True)
    # 使用者的主要 Profile (第一個建立的)
    primary = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="profile_links")
    profile = relationship("Profile", back_populates="members")
