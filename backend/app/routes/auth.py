"""Account API routes."""
from fastapi import APIRouter, Depends

from app.dependencies import get_accounts
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from app.services.accounts import AccountService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse)
async def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_accounts),
):
    """Create an account that can own uploads."""
    return await accounts.register(body.username, body.email, body.password)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_accounts),
):
    """Exchange email and password for a bearer access token."""
    issued = await accounts.login(body.email, body.password)
    return TokenResponse(access_token=issued.token, expires_at=issued.expires_at)
