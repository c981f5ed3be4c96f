import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from crop_api.auth.dependencies import get_current_identity, get_token_service
from crop_api.auth.tokens import Identity, TokenService
from crop_api.core.errors import NotFound, ValidationError
from crop_api.database import get_db
from crop_api.stores.credentials import CredentialStore, public_user

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    user = CredentialStore(db).register(data.username, data.email, data.password)
    return {'token': tokens.issue(user['id'], user['role'])}


@router.post('/login')
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    if not data.email.strip() or not data.password:
        raise ValidationError('Please provide both email and password')

    user = CredentialStore(db).authenticate(data.email, data.password)
    if user is None:
        logger.info('Failed login for %s', data.email.strip().lower())
        raise ValidationError(INVALID_CREDENTIALS)

    return {'token': tokens.issue(user.id, user.role), 'user': public_user(user)}


@router.get('/user')
def current_user(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    user = CredentialStore(db).find_by_id(identity.user_id)
    if user is None:
        raise NotFound('User not found')
    return public_user(user)
