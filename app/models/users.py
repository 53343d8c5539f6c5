import enum
from sqlalchemy import Column, Integer, String, DateTime, Enum
from app.database.postgres import Base
from app.utils.time_utils import utcnow


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BANNED = "BANNED"
    DEACTIVATED = "DEACTIVATED"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=True)
    avatar = Column(String(500), nullable=True)
    level = Column(Integer, nullable=False, default=1)
    status = Column(Enum(UserStatus, name="user_status"), nullable=False, default=UserStatus.ACTIVE)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, status={self.status})>"
