from dataclasses import dataclass
from typing import Dict, Iterable, Optional


@dataclass(frozen=True)
class DemoIdentity:
    phone: str
    code: str
    role: str
    restaurant_name: Optional[str] = None
    requires_role_selection: bool = False


# Showcase accounts used on staging and in sales demos.
DEFAULT_DEMO_IDENTITIES = (
    DemoIdentity("+919876543210", "123456", "business_admin", "Demo Restaurant", False),
    DemoIdentity("+919876543211", "654321", "employee", "Demo Restaurant", False),
    DemoIdentity("+14155552222", "111111", "business_admin", None, False),
)


class DemoPolicy:
    def __init__(self, identities: Iterable[DemoIdentity] = DEFAULT_DEMO_IDENTITIES, enabled: bool = True) -> None:
        self.enabled = enabled
        self._identities: Dict[str, DemoIdentity] = {identity.phone: identity for identity in identities}

    def lookup(self, phone: str) -> Optional[DemoIdentity]:
        if not self.enabled:
            return None
        return self._identities.get(phone)
