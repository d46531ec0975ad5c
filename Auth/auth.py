from typing import Callable, Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from Auth.models import Role, TokenClaims
from Auth.security import TokenError, decode_token

# ---------------------------------------------------------------------------
# 1. Bearer-token uit de Authorization-header; zelf afhandelen i.p.v. auto_error
# ---------------------------------------------------------------------------
bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# 2. Claims bepalen op basis van JWT
# ---------------------------------------------------------------------------
def get_current_claims(
    creds: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> TokenClaims:
    """
    Decodes the bearer token and returns its claims.
    401 when no token is sent, 403 when the token does not verify.
    The role is taken from the token as issued, the user table is not consulted.
    """
    if creds is None or not creds.credentials:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_token(creds.credentials)
    except TokenError:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Invalid token")

    return TokenClaims(username=payload["sub"], role=payload["role"])


# ---------------------------------------------------------------------------
# 3. Role-based dependency-factory
# ---------------------------------------------------------------------------
def role_required(*allowed_roles: Role) -> Callable:
    """
    Use as Depends(role_required(Role.admin)).
    Returns the claims when the role is allowed, 403 otherwise.
    """
    needed = ", ".join(r.value for r in allowed_roles)

    def _wrapper(
        claims: Annotated[TokenClaims, Depends(get_current_claims)],
    ) -> TokenClaims:
        if claims.role not in allowed_roles:
            raise HTTPException(
                status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient role: {needed} required",
            )
        return claims

    return _wrapper


require_admin = role_required(Role.admin)
