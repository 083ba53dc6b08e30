from fastapi import Depends, HTTPException
from app.services.access_policy import AccessPolicy, Role, get_access_policy
from app.utils.token import Identity, get_current_identity

def require_master_vendor(
    identity: Identity = Depends(get_current_identity),
    policy: AccessPolicy = Depends(get_access_policy),
) -> Identity:
    if policy.is_privileged(identity) != Role.MASTER_VENDOR:
        raise HTTPException(status_code=401, detail="Not authorized")
    return identity
