from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.tokens import RefreshToken

from opschat.realtime.exceptions import AuthenticationFailed
from opschat.realtime.identity import JWTIdentityVerifier

User = get_user_model()

pytestmark = pytest.mark.django_db(transaction=True)


def verify(credential):
    return async_to_sync(JWTIdentityVerifier().verify)(credential)


def make_user(username="eve", *, is_active=True):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="TestPass123!",  # noqa: S106
        is_active=is_active,
    )


def test_access_token_resolves_account():
    user = make_user()
    assert verify(str(AccessToken.for_user(user))) == user.id


def test_expired_token_is_rejected():
    user = make_user()
    token = AccessToken.for_user(user)
    token.set_exp(lifetime=-timedelta(minutes=1))
    with pytest.raises(AuthenticationFailed):
        verify(str(token))


def test_refresh_token_is_not_an_access_credential():
    user = make_user()
    with pytest.raises(AuthenticationFailed):
        verify(str(RefreshToken.for_user(user)))


def test_inactive_user_is_rejected():
    user = make_user(is_active=False)
    with pytest.raises(AuthenticationFailed):
        verify(str(AccessToken.for_user(user)))


@pytest.mark.parametrize("credential", ["", None, 42, "not-a-jwt"])
def test_malformed_credentials_are_rejected(credential):
    with pytest.raises(AuthenticationFailed):
        verify(credential)
