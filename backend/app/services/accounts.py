"""Account registration and login.

Accounts give uploads an owner and let callers obtain a bearer
credential.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from app.models.user import User
from app.services.errors import AccountError, AuthError, InternalError
from app.services.hashing import PasswordHasher
from app.services.tokens import IssuedToken, TokenService

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        hasher: PasswordHasher,
        tokens: TokenService,
        clock,
    ):
        self._sessions = sessions
        self._hasher = hasher
        self._tokens = tokens
        self._clock = clock

    async def register(self, username: str, email: str, password: str) -> User:
        email = email.strip().lower()
        username = username.strip()
        password_hash = await run_in_threadpool(self._hasher.hash, password)
        try:
            async with self._sessions() as db:
                existing = await db.execute(
                    select(User.id).where(or_(User.email == email, User.username == username))
                )
                if existing.first() is not None:
                    raise AccountError(AccountError.DUPLICATE_ACCOUNT, "Username or email already registered")
                user = User(username=username, email=email, password_hash=password_hash)
                db.add(user)
                try:
                    await db.commit()
                except IntegrityError:
                    # Lost a race with a concurrent registration
                    raise AccountError(AccountError.DUPLICATE_ACCOUNT, "Username or email already registered")
                await db.refresh(user)
        except SQLAlchemyError:
            logger.exception(f"Failed to register account {username!r}")
            raise InternalError()
        logger.info(f"Registered account {user.id} ({username})")
        return user

    async def login(self, email: str, password: str) -> IssuedToken:
        email = email.strip().lower()
        try:
            async with self._sessions() as db:
                result = await db.execute(select(User).where(User.email == email))
                user = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Failed to look up account for login")
            raise InternalError()

        if user is None or not await run_in_threadpool(self._hasher.check, password, user.password_hash):
            raise AuthError(AuthError.INVALID_LOGIN, "Invalid email or password")
        return self._tokens.issue(str(user.id), self._clock.now())
