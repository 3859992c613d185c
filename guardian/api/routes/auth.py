"""
Account endpoints.

Signup stores a bcrypt hash of the password; login checks it. Neither
issues a token: a successful login only confirms the credentials.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...core.accounts import (
    InvalidCredentialsError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from ..dependencies import AccountServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()

SERVER_ERROR_MSG = "Something went wrong on the server"


class Credentials(BaseModel):
    email: str = Field(min_length=1, description="Account email")
    password: str = Field(min_length=1, description="Plain-text password")


class AuthResponse(BaseModel):
    success: bool
    msg: str


def _reply(status_code: int, success: bool, msg: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": success, "msg": msg},
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    responses={400: {"model": AuthResponse}, 500: {"model": AuthResponse}},
)
async def signup(credentials: Credentials, accounts: AccountServiceDep):
    try:
        await accounts.signup(credentials.email, credentials.password)
    except UserAlreadyExistsError as e:
        return _reply(status.HTTP_400_BAD_REQUEST, False, str(e))
    except ValueError as e:
        return _reply(status.HTTP_400_BAD_REQUEST, False, str(e))
    except Exception as e:
        logger.error("Signup failed", extra={"error": str(e)}, exc_info=e)
        return _reply(status.HTTP_500_INTERNAL_SERVER_ERROR, False, SERVER_ERROR_MSG)

    return AuthResponse(success=True, msg="User created successfully")


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Check account credentials",
    responses={
        401: {"model": AuthResponse},
        404: {"model": AuthResponse},
        500: {"model": AuthResponse},
    },
)
async def login(credentials: Credentials, accounts: AccountServiceDep):
    try:
        await accounts.login(credentials.email, credentials.password)
    except UserNotFoundError as e:
        return _reply(status.HTTP_404_NOT_FOUND, False, str(e))
    except InvalidCredentialsError as e:
        return _reply(status.HTTP_401_UNAUTHORIZED, False, str(e))
    except Exception as e:
        logger.error("Login failed", extra={"error": str(e)}, exc_info=e)
        return _reply(status.HTTP_500_INTERNAL_SERVER_ERROR, False, SERVER_ERROR_MSG)

    return AuthResponse(success=True, msg="Login successful")
