from enum import Enum
from functools import lru_cache
from typing import Iterable

from app.config import settings
from app.utils.token import Identity


class Role(str, Enum):
    CUSTOMER = "customer"
    MASTER_VENDOR = "master_vendor"


class AccessPolicy:
    """Maps an identity to its role. Privileged emails come from config."""

    def __init__(self, master_vendor_emails: Iterable[str]):
        self.master_vendor_emails = frozenset(e.strip().lower() for e in master_vendor_emails)

    def is_privileged(self, identity: Identity) -> Role:
        email = (identity.email or "").strip().lower()
        if email and email in self.master_vendor_emails:
            return Role.MASTER_VENDOR
        return Role.CUSTOMER


@lru_cache()
def get_access_policy() -> AccessPolicy:
    return AccessPolicy(settings.master_vendor_emails)
