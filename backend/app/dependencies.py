"""FastAPI dependencies that hand out the per-app services built in create_app."""
from fastapi import Request

from app.services.access_engine import AccessEngine
from app.services.accounts import AccountService


def get_engine(request: Request) -> AccessEngine:
    return request.app.state.engine


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts
