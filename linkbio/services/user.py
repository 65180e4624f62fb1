"""User service for database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkbio.core.exceptions import ConflictError
from linkbio.models.user import User
from linkbio.schemas.user import UserCreate, UserUpdate


async def get_user_by_id(session: AsyncSession, user_id: UUID) -> User | None:
    """Get a user by their ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Get a user by their email address."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_provider(
    session: AsyncSession,
    provider: str,
    provider_id: str,
) -> User | None:
    """Get a user by their OAuth provider and provider ID."""
    result = await session.execute(
        select(User).where(
            User.provider == provider,
            User.provider_id == provider_id,
        )
    )
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, user_data: UserCreate) -> User:
    """Create a new user; a taken email surfaces as ConflictError."""
    user = User(**user_data.model_dump())
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(f"Email {user_data.email} is already registered") from e
    return user


async def update_user(
    session: AsyncSession,
    user: User,
    user_data: UserUpdate,
) -> User:
    """Update profile fields of an existing user."""
    update_data = user_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(user, field, value)
    await session.flush()
    return user


async def get_or_create_user_from_oauth(
    session: AsyncSession,
    provider: str,
    provider_id: str,
    email: str,
    name: str | None = None,
    avatar_url: str | None = None,
) -> tuple[User, bool]:
    """Get existing user or create new one from OAuth data.

    Returns:
        Tuple of (user, created) where created is True if new user was created

    Raises:
        ConflictError: the email is already registered with another provider
    """
    user = await get_user_by_provider(session, provider, provider_id)
    if user:
        if user.name != name or user.avatar_url != avatar_url:
            user.name = name
            user.avatar_url = avatar_url
            await session.flush()
        return user, False

    existing_user = await get_user_by_email(session, email)
    if existing_user:
        # No account linking across providers
        raise ConflictError(
            f"Email {email} is already registered with {existing_user.provider}"
        )

    user = await create_user(
        session,
        UserCreate(
            email=email,
            name=name,
            avatar_url=avatar_url,
            provider=provider,
            provider_id=provider_id,
        ),
    )
    return user, True
