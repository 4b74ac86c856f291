from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from ...application.ports.token_issuer import TokenIssuer


class JwtTokenIssuer(TokenIssuer):
    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 24 * 60) -> None:
        if not secret_key:
            raise ValueError("SECRET_KEY not properly configured")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    def issue_access_token(self, subject: str, claims: Dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        to_encode = dict(claims)
        to_encode.update({
            "sub": subject,
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
            "type": "access",
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            return None
