"""Routes for the identity gateway."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from ...deps import (
    AccessTokenDependency,
    CurrentSessionDependency,
    DatabaseSessionDependency,
    SettingsDependency,
)
from ...models import Profile, User
from ...schemas import (
    AuthResponse,
    AuthTokens,
    ProfileRead,
    RefreshRequest,
    SessionRead,
    SignupRequest,
    UserPublic,
)
from ...services import AuthService, TokenPair

router = APIRouter(prefix="/auth", tags=["auth"])

PasswordForm = Annotated[OAuth2PasswordRequestForm, Depends()]


def _build_tokens(token_pair: TokenPair) -> AuthTokens:
    return AuthTokens(
        access_token=token_pair.access.token,
        refresh_token=token_pair.refresh.token,
        expires_in=token_pair.access.expires_in(),
        refresh_expires_in=token_pair.refresh.expires_in(),
    )


def _auth_response(user: User, token_pair: TokenPair, profile: Profile | None = None) -> AuthResponse:
    return AuthResponse(
        user=UserPublic.model_validate(user),
        profile=ProfileRead.model_validate(profile) if profile is not None else None,
        tokens=_build_tokens(token_pair),
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an account and its profile",
)
async def signup(
    payload: SignupRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    user, profile, token_pair = await AuthService(session, settings).sign_up(
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
    )
    return _auth_response(user, token_pair, profile)


@router.post("/login", response_model=AuthResponse, summary="Sign in with email and password")
async def login(
    form_data: PasswordForm,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    user, token_pair = await AuthService(session, settings).sign_in(
        email=form_data.username,
        password=form_data.password,
    )
    return _auth_response(user, token_pair)


@router.post("/refresh", response_model=AuthResponse, summary="Rotate tokens")
async def refresh_tokens(
    payload: RefreshRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    user, token_pair = await AuthService(session, settings).refresh(payload.refresh_token)
    return _auth_response(user, token_pair)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke the presented access token",
)
async def logout(
    token: AccessTokenDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> Response:
    await AuthService(session, settings).sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/session", response_model=SessionRead, summary="Read the current session")
async def read_session(state: CurrentSessionDependency) -> SessionRead:
    return SessionRead(
        user=UserPublic.model_validate(state.user),
        profile=ProfileRead.model_validate(state.profile) if state.profile is not None else None,
        expires_at=state.claims.exp,
    )
