from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.auth import create_user_token
from app.models.models import User
from app.schemas.user_schemas import (
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from app.utils.errors import Conflict, Forbidden, Unauthenticated
from app.utils.logger_config import setup_logger

logger = setup_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.lower())
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, user_data: UserCreate) -> UserResponse:
    """
    Create a user account.

    Args:
        db: Database session
        user_data: Name, email, password and role

    Returns:
        The created user
    """
    if await get_user_by_email(db, user_data.email):
        raise Conflict("Email already registered")

    user = User(
        name=user_data.name,
        email=user_data.email,
        password=hash_password(user_data.password),
        role=user_data.role,
    )
    db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Email already registered")

    await db.refresh(user)

    logger.info(f"User {user.email} registered as {user.role.value}")

    return UserResponse.model_validate(user)


async def login_user(db: AsyncSession, login_data: UserLogin) -> TokenResponse:
    """
    Args:
            db: Database session
            login_data: Login credentials

    Returns:
            Access token and the authenticated user
    """
    user = await get_user_by_email(db, login_data.email)

    if not user or not verify_password(login_data.password, user.password):
        logger.warning(f"Failed login attempt for {login_data.email}")
        raise Unauthenticated("Invalid credentials")

    if not user.active:
        raise Forbidden("Your account is inactive. Contact an administrator")

    return TokenResponse(
        token=create_user_token(user), user=UserResponse.model_validate(user)
    )
