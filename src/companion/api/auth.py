"""Auth API — signup, signin, token verification and refresh.

Learn: Routes for the credential lifecycle:
- POST /auth/signup (alias /register) → create a user account
- POST /auth/signin (alias /login) → email or username + password → tokens
- POST /auth/verify-token → run the request gate, report the subject
- POST /auth/refresh → refresh token → new token pair
- POST /auth/logout → nothing to revoke server-side; the client drops its tokens

Tokens are stateless, so logout cannot invalidate them; they simply
expire.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.dependencies import CurrentIdentity, get_current_user
from companion.auth.tokens import TokenCodec, TokenPair, get_token_codec
from companion.db.engine import get_db
from companion.db.models import User
from companion.schemas.auth import (
    RefreshRequest,
    SigninRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    VerifyTokenResponse,
)
from companion.services.credential_service import CredentialService

router = APIRouter(prefix="/auth")


def _credentials(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> CredentialService:
    return CredentialService(db, codec)


def _token_response(user: User, pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in,
    )


# ─── Signup ──────────────────────────────────────────────


@router.post("/signup", response_model=SignupResponse, status_code=201)
@router.post("/register", response_model=SignupResponse, status_code=201)
async def signup(body: SignupRequest, svc: CredentialService = Depends(_credentials)):
    """Create a new user account (role=user, status=active)."""
    user = await svc.register(
        username=body.username,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
    )
    return SignupResponse(id=user.id, username=user.username, email=user.email)


# ─── Signin ──────────────────────────────────────────────


@router.post("/signin", response_model=TokenResponse)
@router.post("/login", response_model=TokenResponse)
async def signin(body: SigninRequest, svc: CredentialService = Depends(_credentials)):
    user, pair = await svc.authenticate(
        body.password, email=body.email, username=body.username
    )
    return _token_response(user, pair)


# ─── Tokens ─────────────────────────────────────────────


@router.post("/verify-token", response_model=VerifyTokenResponse)
async def verify_token(identity: CurrentIdentity = Depends(get_current_user)):
    return VerifyTokenResponse(user_id=identity.user_id)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, svc: CredentialService = Depends(_credentials)):
    """Exchange a refresh token for a new access + refresh pair."""
    user, pair = await svc.refresh(body.refresh_token)
    return _token_response(user, pair)


@router.post("/logout")
async def logout():
    return {"message": "Logged out. Discard your tokens."}
