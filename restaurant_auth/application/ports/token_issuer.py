from typing import Any, Dict, Protocol


class TokenIssuer(Protocol):
    def issue_access_token(self, subject: str, claims: Dict[str, Any]) -> str:
        ...
