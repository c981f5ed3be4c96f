import pytest

from crop_api.core.errors import DuplicateIdentity, NotFound, ValidationError
from crop_api.models.user import User
from crop_api.stores.credentials import CredentialStore


def test_register_stores_hash_and_returns_public_view(db) -> None:
    user = CredentialStore(db).register(' alice ', ' A@X.com ', 'secret123')

    assert user['username'] == 'alice'
    assert user['email'] == 'a@x.com'
    assert user['role'] == 'user'
    assert 'password_hash' not in user
    assert 'password' not in user

    stored = db.query(User).filter(User.id == user['id']).one()
    assert stored.password_hash != 'secret123'
    assert 'secret123' not in stored.password_hash


@pytest.mark.parametrize(
    ('username', 'email'),
    [
        ('alice', 'other@x.com'),
        ('bob', 'a@x.com'),
        ('ALICE', 'third@x.com'),
    ],
)
def test_register_rejects_colliding_username_or_email(db, username: str, email: str) -> None:
    store = CredentialStore(db)
    store.register('alice', 'a@x.com', 'secret123')

    with pytest.raises(DuplicateIdentity):
        store.register(username, email, 'secret123')

    assert db.query(User).count() == 1


@pytest.mark.parametrize(
    ('username', 'email', 'password', 'message'),
    [
        ('   ', 'a@x.com', 'secret123', 'Username is required.'),
        ('alice', 'not-an-email', 'secret123', 'Please provide a valid email.'),
        ('alice', 'a@x.com', '123', 'Password must be at least 6 characters.'),
        ('a' * 51, 'a@x.com', 'secret123', 'Username must be 50 characters or fewer.'),
    ],
)
def test_register_rejects_invalid_fields(db, username: str, email: str, password: str, message: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        CredentialStore(db).register(username, email, password)

    assert exception_info.value.message == message
    assert db.query(User).count() == 0


def test_verify_password_and_authenticate(db) -> None:
    store = CredentialStore(db)
    store.register('alice', 'a@x.com', 'secret123')
    user = store.find_by_email('A@X.COM')

    assert user is not None
    assert store.verify_password(user, 'secret123') is True
    assert store.verify_password(user, 'wrong-password') is False
    assert store.authenticate('a@x.com', 'secret123').id == user.id
    assert store.authenticate('a@x.com', 'wrong-password') is None
    assert store.authenticate('nobody@x.com', 'secret123') is None


def test_find_by_id_returns_none_when_missing(db) -> None:
    assert CredentialStore(db).find_by_id(999) is None


def test_update_profile_changes_only_given_fields(db) -> None:
    store = CredentialStore(db)
    user = store.register('alice', 'a@x.com', 'secret123')

    updated = store.update_profile(user['id'], avatar='/uploads/image-1.png', password='newsecret')

    assert updated['username'] == 'alice'
    assert updated['email'] == 'a@x.com'
    assert updated['avatar'] == '/uploads/image-1.png'
    assert store.authenticate('a@x.com', 'newsecret') is not None
    assert store.authenticate('a@x.com', 'secret123') is None


def test_update_profile_rejects_email_of_other_user(db) -> None:
    store = CredentialStore(db)
    store.register('alice', 'a@x.com', 'secret123')
    bob = store.register('bob', 'b@x.com', 'secret123')

    with pytest.raises(DuplicateIdentity):
        store.update_profile(bob['id'], email='a@x.com')

    assert store.find_by_id(bob['id']).email == 'b@x.com'


def test_update_profile_allows_keeping_own_username(db) -> None:
    store = CredentialStore(db)
    user = store.register('alice', 'a@x.com', 'secret123')

    updated = store.update_profile(user['id'], username='alice', email='a@x.com')

    assert updated['username'] == 'alice'


def test_update_profile_raises_not_found_for_missing_user(db) -> None:
    with pytest.raises(NotFound):
        CredentialStore(db).update_profile(999, username='ghost')
