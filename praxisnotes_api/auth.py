"""
Auth0 Authentication and RBAC for the report API

Roles are not stored locally: they are derived from the permissions Auth0
puts in the access token.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from typing import Dict, List, Optional
from enum import Enum
import os
import httpx
import logging

logger = logging.getLogger(__name__)

# Auth0 Configuration
AUTH0_DOMAIN = os.getenv("AUTH0_DOMAIN")
AUTH0_API_AUDIENCE = os.getenv("AUTH0_API_AUDIENCE")
AUTH0_ALGORITHMS = ["RS256"]

security = HTTPBearer()


class Role(str, Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    RBT = "rbt"
    VIEWER = "viewer"


class Permission(str, Enum):
    CREATE_REPORT = "create:reports"
    READ_REPORTS = "read:reports"
    REVIEW_REPORTS = "review:reports"
    MANAGE_USERS = "manage:users"
    VIEW_AUDIT_LOGS = "view:audit_logs"


# Permission that grants each role, highest role first
ROLE_GRANTS = [
    (Permission.MANAGE_USERS, Role.ADMIN),
    (Permission.REVIEW_REPORTS, Role.SUPERVISOR),
    (Permission.CREATE_REPORT, Role.RBT),
]


class TokenPayload(BaseModel):
    """JWT Token payload"""
    sub: str
    exp: int
    iat: int
    aud: str | List[str]
    email: Optional[str] = None
    name: Optional[str] = None
    permissions: Optional[List[str]] = []


def roles_from_permissions(permissions: List[str]) -> List[Role]:
    roles = [role for permission, role in ROLE_GRANTS if permission.value in permissions]
    return roles or [Role.VIEWER]


class User(BaseModel):
    """Authenticated caller"""
    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    roles: List[Role] = []
    permissions: List[str] = []

    @classmethod
    def from_token(cls, payload: TokenPayload) -> "User":
        permissions = payload.permissions or []
        return cls(
            sub=payload.sub,
            email=payload.email,
            name=payload.name,
            permissions=permissions,
            roles=roles_from_permissions(permissions),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.sub


# Cache for JWKS
_jwks_cache: Optional[Dict] = None


async def get_jwks() -> Dict:
    """Fetch (once) the JSON Web Key Set from Auth0"""
    global _jwks_cache

    if _jwks_cache:
        return _jwks_cache

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.get(f"https://{AUTH0_DOMAIN}/.well-known/jwks.json")
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch JWKS: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to verify token"
        )

    _jwks_cache = response.json()
    return _jwks_cache


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


def decode_token(token: str, jwks: Dict) -> TokenPayload:
    """Check the signature, audience and issuer of an access token"""
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        logger.error(f"Error reading token header: {e}")
        raise _unauthorized("Invalid token")

    signing_key = next((key for key in jwks.get("keys", []) if key.get("kid") == kid), None)
    if signing_key is None:
        raise _unauthorized("Unable to find appropriate key")

    try:
        claims = jwt.decode(
            token,
            signing_key,
            algorithms=AUTH0_ALGORITHMS,
            audience=AUTH0_API_AUDIENCE,
            issuer=f"https://{AUTH0_DOMAIN}/"
        )
    except JWTError as e:
        logger.error(f"JWT verification failed: {e}")
        raise _unauthorized("Invalid token")

    return TokenPayload(**claims)


async def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> TokenPayload:
    jwks = await get_jwks()
    return decode_token(credentials.credentials, jwks)


async def get_current_user(token_payload: TokenPayload = Depends(verify_token)) -> User:
    return User.from_token(token_payload)


def has_role(user: User, role: Role) -> bool:
    return role in user.roles


def can_see_all_reports(user: User) -> bool:
    """Supervisors and admins may read every clinician's reports"""
    return has_role(user, Role.ADMIN) or has_role(user, Role.SUPERVISOR)


def require_role(allowed_roles: List[Role]):
    """
    Dependency to require specific roles
    Usage: current_user: User = Depends(require_role([Role.RBT, Role.SUPERVISOR]))
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if not any(has_role(current_user, role) for role in allowed_roles):
            logger.warning(
                f"User {current_user.sub} with roles {current_user.roles} "
                f"attempted to access endpoint requiring {allowed_roles}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user

    return role_checker
