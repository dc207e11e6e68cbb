"""HTTP route definitions for the identity admin service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from ..domain.account import (
    EMAIL_MAX_LENGTH,
    INITIALS_MAX_LENGTH,
    NAME_MAX_LENGTH,
    AccountView,
)
from ..domain.contracts import CreateAccountInput, UpdateAccountInput
from ..domain.errors import (
    AccountError,
    AuthError,
    Conflict,
    DenialReason,
    Forbidden,
    NotFound,
    StoreUnavailable,
    ValidationError,
)
from ..domain.service import AccountService
from ..security.passwords import MAX_PASSWORD_BYTES
from ..security.rate_limiter import RateLimiter, login_key
from ..security.tokens import Identity, TokenConfig, validate_bearer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


class AccountResponse(BaseModel):
    """Serialised representation of an account. Never includes a password or hash."""

    id: int
    name: str
    initials: str
    is_admin: bool
    is_active: bool
    email: str | None = None

    @classmethod
    def from_view(cls, view: AccountView) -> "AccountResponse":
        """Build a response model from the caller-facing account projection."""
        return cls(
            id=view.account_id,
            name=view.display_name,
            initials=view.initials,
            is_admin=view.is_admin,
            is_active=view.is_active,
            email=view.email,
        )


class CreateAccountRequest(BaseModel):
    """Payload accepted when an administrator creates an account."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    initials: str = Field(..., min_length=1, max_length=INITIALS_MAX_LENGTH)
    is_admin: bool
    is_active: bool
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_BYTES)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LENGTH)


class UpdateAccountRequest(BaseModel):
    """Partial update; omitted or null text fields keep their stored values."""

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    initials: str | None = Field(default=None, min_length=1, max_length=INITIALS_MAX_LENGTH)
    is_admin: bool
    is_active: bool
    password: str | None = Field(default=None, min_length=1, max_length=MAX_PASSWORD_BYTES)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LENGTH)


class TokenRequest(BaseModel):
    """Credentials exchanged for a bearer token."""

    initials: str = Field(..., min_length=1, max_length=INITIALS_MAX_LENGTH)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Token issuance response containing the bearer token and metadata."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account: AccountResponse


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_rate_limiter(request: Request) -> RateLimiter:
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


def get_identity(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Identity:
    """Resolve the caller identity from the bearer token; anonymous when absent or invalid."""
    config: TokenConfig = request.app.state.token_config
    return validate_bearer(authorization, config)


@router.get("/accounts", response_model=list[AccountResponse])
def list_accounts(
    identity: Identity = Depends(get_identity),
    service: AccountService = Depends(get_service),
) -> list[AccountResponse]:
    """List every account. Requires the Admin role."""
    try:
        views = service.list_accounts(identity)
    except AccountError as exc:
        raise _http_error(exc) from exc
    return [AccountResponse.from_view(view) for view in views]


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    identity: Identity = Depends(get_identity),
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    """Retrieve a single account for any authenticated caller."""
    try:
        view = service.get_account(identity, account_id)
    except AccountError as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_view(view)


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: CreateAccountRequest,
    identity: Identity = Depends(get_identity),
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    """Create an account. Requires the Admin role; initials must be unused."""
    try:
        view = service.create_account(
            identity,
            CreateAccountInput(
                name=payload.name,
                initials=payload.initials,
                password=payload.password,
                is_admin=payload.is_admin,
                is_active=payload.is_active,
                email=payload.email,
            ),
        )
    except AccountError as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_view(view)


@router.put("/accounts/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    payload: UpdateAccountRequest,
    identity: Identity = Depends(get_identity),
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    """Partially update an account. Requires the Admin role."""
    try:
        view = service.update_account(
            identity,
            account_id,
            UpdateAccountInput(
                is_admin=payload.is_admin,
                is_active=payload.is_active,
                name=payload.name,
                initials=payload.initials,
                password=payload.password,
                email=payload.email,
            ),
        )
    except AccountError as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_view(view)


@router.post("/token", response_model=TokenResponse)
def issue_token(
    request: Request,
    payload: TokenRequest,
    service: AccountService = Depends(get_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> TokenResponse:
    """Exchange initials and password for a signed access token."""
    if not rate_limiter.allow(login_key(payload.initials)):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="rate limited")
    try:
        bundle = service.issue_token(
            payload.initials,
            payload.password,
            request.app.state.token_config,
            request.app.state.token_ttl_seconds,
        )
    except AccountError as exc:
        raise _http_error(exc) from exc
    return TokenResponse(
        access_token=bundle.access_token,
        expires_in=bundle.expires_in,
        account=AccountResponse.from_view(bundle.account),
    )


def _http_error(exc: AccountError) -> HTTPException:
    """Map a domain error onto an HTTP status carrying only its safe message."""
    headers = None
    if isinstance(exc, AuthError):
        if exc.reason is DenialReason.UNAUTHENTICATED:
            status_code = status.HTTP_401_UNAUTHORIZED
            headers = {"WWW-Authenticate": "Bearer"}
        else:
            status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, Forbidden):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, NotFound):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, Conflict):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, StoreUnavailable):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        logger.error("unmapped account error %s: %s", type(exc).__name__, exc.message)
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=status_code, detail=exc.message, headers=headers)
