import pytest
from django.contrib.auth import get_user_model

from opschat.enterprises.models import Enterprise

User = get_user_model()
TEST_PASSWORD = "password"  # noqa: S105


@pytest.mark.django_db
class TestUser:
    def setup_method(self):
        self.acme = Enterprise.objects.create(
            name="Acme",
            contact_email="ops@acme.test",
            domains=["@acme.test"],
        )

    def test_enterprise_assigned_from_email_domain(self):
        user = User.objects.create_user(
            username="joy",
            email="joy@acme.test",
            password=TEST_PASSWORD,
        )
        assert user.enterprise == self.acme

    def test_unknown_domain_stays_unassigned(self):
        user = User.objects.create_user(
            username="joy",
            email="joy@elsewhere.test",
            password=TEST_PASSWORD,
        )
        assert user.enterprise is None

    def test_explicit_enterprise_is_kept(self):
        globex = Enterprise.objects.create(name="Globex", contact_email="ops@gx.test")
        user = User.objects.create_user(
            username="joy",
            email="joy@acme.test",
            password=TEST_PASSWORD,
            enterprise=globex,
        )
        assert user.enterprise == globex

    def test_display_name(self):
        user = User.objects.create_user(
            username="joy",
            email="joy@acme.test",
            password=TEST_PASSWORD,
            first_name="Joy",
            last_name="Nurse",
        )
        assert user.name == "Joy Nurse"
        assert user.display_name == "Joy Nurse"
        bare = User.objects.create_user(
            username="rn2",
            email="rn2@acme.test",
            password=TEST_PASSWORD,
        )
        assert bare.display_name == "rn2"
