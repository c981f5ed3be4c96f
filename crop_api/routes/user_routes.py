from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from crop_api.auth.dependencies import get_current_identity
from crop_api.auth.tokens import Identity
from crop_api.core.errors import NotFound
from crop_api.database import get_db
from crop_api.stores.credentials import CredentialStore, public_user

router = APIRouter(tags=['users'])


class UpdateProfileRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    avatar: str | None = None
    password: str | None = None


@router.get('/me')
def get_me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    user = CredentialStore(db).find_by_id(identity.user_id)
    if user is None:
        raise NotFound('User not found')
    return public_user(user)


@router.put('/me')
def update_me(
    data: UpdateProfileRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return CredentialStore(db).update_profile(identity.user_id, **data.model_dump(exclude_none=True))
