from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User, UserRole
from app.features.auth.schemas.auth import LoginRequest, SignupRequest, TokenResponse, UserResponse
from app.features.auth.utils.security import create_access_token, hash_password, verify_password
from app.platform.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, request: SignupRequest, role: UserRole = UserRole.USER) -> TokenResponse:
        email = request.email.lower()
        username = request.username.lower()

        result = await self.db.execute(
            select(User).where(or_(User.email == email, User.username == username))
        )
        clash = result.scalars().first()
        if clash is not None:
            detail = "Email already registered" if clash.email == email else "Username already taken"
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

        user = User(
            email=email,
            username=username,
            password_hash=hash_password(request.password),
            role=role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email or username
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Email or username already exists"
            )

        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return self._token_response(user)

    async def login_user(self, request: LoginRequest) -> TokenResponse:
        result = await self.db.execute(select(User).where(User.email == request.email.lower()))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(request.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user.last_login = datetime.now(timezone.utc)
        await self.db.commit()
        return self._token_response(user)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def ensure_owner(self, email: str, username: str, password: str) -> User:
        """
        Make sure an owner account exists for `email`.

        Creates it on first start; an existing account with that email is
        promoted to owner but keeps its password.
        """
        email = email.lower()
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                email=email,
                username=username.lower(),
                password_hash=hash_password(password),
                role=UserRole.OWNER,
            )
            self.db.add(user)
            logger.info(f"Created owner account {email}")
        elif user.role != UserRole.OWNER:
            user.role = UserRole.OWNER
            logger.info(f"Promoted {email} to owner")

        await self.db.commit()
        return user

    @staticmethod
    def _token_response(user: User) -> TokenResponse:
        role = UserRole(user.role).value
        access_token = create_access_token(data={"sub": str(user.id), "email": user.email, "role": role})
        return TokenResponse(
            access_token=access_token,
            user=UserResponse(
                id=str(user.id),
                email=user.email,
                username=user.username,
                role=role,
                created_at=user.created_at,
            ),
        )
