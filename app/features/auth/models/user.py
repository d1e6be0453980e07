import enum

from sqlalchemy import Column, DateTime, Enum, String

from app.platform.db.base import BaseModel


class UserRole(str, enum.Enum):
    USER = "user"
    OWNER = "owner"


class User(BaseModel):
    __tablename__ = "users"
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)

    # Owners approve withdrawals and read programme-wide analytics
    role = Column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e], name="user_role"),
        default=UserRole.USER,
        nullable=False,
    )

    last_login = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
