"""
Auth collaborator backed by Supabase.

Pages receive an AuthContext explicitly instead of reading ambient global
state, so they can be exercised with a fake client.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from supabase import Client, create_client

from . import config
from .errors import AuthError

logger = logging.getLogger("auth")

ALLOW = "allow"
REDIRECT = "redirect"
LOADING = "loading"


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


def _to_user(user) -> Optional[AuthUser]:
    if user is None:
        return None
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


class AuthContext:
    def __init__(self, client):
        self.client = client
        self.current_user: Optional[AuthUser] = None
        self.access_token: Optional[str] = None
        self.is_loading = True

    def _call(self, fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.info("Auth provider rejected request: %s", message)
            raise AuthError(message) from e

    def _apply(self, response):
        session = getattr(response, "session", None)
        self.current_user = _to_user(getattr(response, "user", None))
        self.access_token = session.access_token if session else None
        self.is_loading = False

    def refresh(self, access_token: Optional[str] = None):
        """Resolve the signed-in user; until this runs the context is loading."""
        if access_token:
            response = self._call(self.client.auth.get_user, access_token)
            self.current_user = _to_user(getattr(response, "user", None)) if response else None
            self.access_token = access_token if self.current_user else None
        else:
            session = self._call(self.client.auth.get_session)
            self.current_user = _to_user(session.user) if session else None
            self.access_token = session.access_token if session else None
        self.is_loading = False
        return self.current_user

    def sign_in(self, email: str, password: str) -> AuthUser:
        response = self._call(self.client.auth.sign_in_with_password, {"email": email, "password": password})
        self._apply(response)
        return self.current_user

    def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        response = self._call(self.client.auth.sign_up, {"email": email, "password": password})
        self._apply(response)
        return self.current_user

    def sign_out(self, access_token: Optional[str] = None):
        """
        Revoke a session. A given access token is revoked on the auth server;
        without one the client signs out its own session.
        """
        if access_token:
            self._call(self.client.auth.admin.sign_out, access_token)
        else:
            self._call(self.client.auth.sign_out)
        self.current_user = None
        self.access_token = None


def gate(auth: AuthContext) -> str:
    """Never redirect while the session is still resolving."""
    if auth.is_loading:
        return LOADING
    return ALLOW if auth.current_user else REDIRECT


def get_supabase_client() -> Optional[Client]:
    if not config.SUPABASE_URL or not config.SUPABASE_ANON_KEY:
        logger.warning("SUPABASE_URL or SUPABASE_ANON_KEY not set; auth is disabled")
        return None
    return create_client(config.SUPABASE_URL, config.SUPABASE_ANON_KEY)


def get_auth() -> AuthContext:
    client = get_supabase_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Auth backend is not configured")
    return AuthContext(client)


# --- HTTP ---

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class Credentials(BaseModel):
    email: str
    password: str


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


@router.post("/sign-in")
def sign_in(creds: Credentials, auth: AuthContext = Depends(get_auth)):
    try:
        user = auth.sign_in(creds.email, creds.password)
    except AuthError as e:
        return JSONResponse({"error": e.message}, status_code=401)
    return {"user": user, "access_token": auth.access_token}


@router.post("/sign-up")
def sign_up(creds: Credentials, auth: AuthContext = Depends(get_auth)):
    try:
        user = auth.sign_up(creds.email, creds.password)
    except AuthError as e:
        return JSONResponse({"error": e.message}, status_code=401)
    return {"user": user, "access_token": auth.access_token}


@router.post("/sign-out")
def sign_out(authorization: Optional[str] = Header(None), auth: AuthContext = Depends(get_auth)):
    token = _bearer(authorization)
    if not token:
        return JSONResponse({"error": "Bearer token required"}, status_code=401)
    try:
        auth.sign_out(token)
    except AuthError as e:
        return JSONResponse({"error": e.message}, status_code=401)
    return {"status": "ok"}


@router.get("/session")
def session(authorization: Optional[str] = Header(None), auth: AuthContext = Depends(get_auth)):
    token = _bearer(authorization)
    if token:
        try:
            auth.refresh(token)
        except AuthError:
            auth.current_user = None
            auth.is_loading = False
    else:
        auth.is_loading = False
    return {"status": gate(auth), "user": auth.current_user}
