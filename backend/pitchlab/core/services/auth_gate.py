from __future__ import annotations
import logging
from typing import Optional

from jose import JWTError, jwt

from pitchlab.core.entities import CallerIdentity
from pitchlab.core.errors import Forbidden, Unauthorized

log = logging.getLogger("pitchlab.auth")


class AuthGate:
    """
    Resolves the caller from a signed bearer token. Signature, expiry and
    subject are all mandatory; a token that merely parses is not enough.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def resolve(self, authorization: Optional[str], require_role: Optional[str] = None) -> CallerIdentity:
        if not authorization or not authorization.startswith("Bearer "):
            raise Unauthorized()
        token = authorization[len("Bearer "):].strip()

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_sub": True},
            )
        except JWTError as e:
            log.info("Rejected bearer token: %s", e)
            raise Unauthorized() from e

        identity = CallerIdentity(
            uid=str(claims["sub"]),
            role=str(claims.get("role") or "user"),
            session_id=str(claims.get("sid") or claims["sub"]),
        )
        if require_role and identity.role != require_role:
            # same answer as a bad token, so roles cannot be discovered
            log.info("Caller %s lacks role %s", identity.uid, require_role)
            raise Forbidden()
        return identity
