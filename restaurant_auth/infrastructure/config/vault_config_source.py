from typing import Any, Dict, Optional

import httpx

from ...application.ports.config_source import ConfigSourceError, OtpConfigSource



class VaultOtpConfigSource(OtpConfigSource):
    """Reads `secret/otp` from a Vault KV v2 mount over HTTP."""

    name = "vault"

    def __init__(self, addr: str, token: str, path: str = "secret/otp", timeout: float = 3.0,
                 client: Optional[httpx.Client] = None) -> None:
        self.addr = addr.rstrip("/")
        self.token = token
        mount, _, secret_path = path.partition("/")
        self.url = f"{self.addr}/v1/{mount}/data/{secret_path}"
        self.timeout = timeout
        self.client = client

    def fetch(self) -> Dict[str, Any]:
        if not self.token:
            raise ConfigSourceError("VAULT_TOKEN not set")
        headers = {"X-Vault-Token": self.token}
        try:
            if self.client is not None:
                resp = self.client.get(self.url, headers=headers, timeout=self.timeout)
            else:
                resp = httpx.get(self.url, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ConfigSourceError(f"Vault request failed: {e}") from e
        try:
            return dict(body["data"]["data"])
        except (KeyError, TypeError) as e:
            raise ConfigSourceError(f"Unexpected Vault response shape: {e}") from e
