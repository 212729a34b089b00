import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from opschat.enterprises.models import Department
from opschat.enterprises.models import Enterprise
from opschat.enterprises.models import email_domain
from opschat.enterprises.models import normalize_domain
from opschat.enterprises.models import validate_domains


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("acme.test", "@acme.test"),
        ("  @ACME.test ", "@acme.test"),
        ("", ""),
    ],
)
def test_normalize_domain(value, expected):
    assert normalize_domain(value) == expected


def test_email_domain():
    assert email_domain("Nurse.Joy@Acme.Test") == "@acme.test"
    assert email_domain("no-at-sign") == ""


def test_validate_domains():
    validate_domains(["@acme.test", "@ward.acme.test"])
    with pytest.raises(ValidationError):
        validate_domains(["acme"])
    with pytest.raises(ValidationError):
        validate_domains("@acme.test")


@pytest.mark.django_db
class TestEnterprise:
    def test_save_normalizes_domains(self):
        acme = Enterprise.objects.create(
            name="Acme",
            contact_email="ops@acme.test",
            domains=["ACME.test", "@acme.test", "ward.acme.test"],
        )
        acme.refresh_from_db()
        assert acme.domains == ["@acme.test", "@ward.acme.test"]

    def test_for_email_matches_active_enterprises_only(self):
        acme = Enterprise.objects.create(
            name="Acme",
            contact_email="ops@acme.test",
            domains=["@acme.test"],
        )
        Enterprise.objects.create(
            name="Old Acme",
            contact_email="ops@old.test",
            domains=["@old.test"],
            status=Enterprise.Status.ARCHIVED,
        )
        assert Enterprise.objects.for_email("joy@ACME.test") == acme
        assert Enterprise.objects.for_email("joy@old.test") is None
        assert Enterprise.objects.for_email("joy@elsewhere.test") is None

    def test_department_code_unique_per_enterprise(self):
        acme = Enterprise.objects.create(name="Acme", contact_email="ops@acme.test")
        globex = Enterprise.objects.create(name="Globex", contact_email="ops@gx.test")
        Department.objects.create(enterprise=acme, name="ICU", code="ICU")
        Department.objects.create(enterprise=globex, name="ICU", code="ICU")
        with pytest.raises(IntegrityError):
            Department.objects.create(enterprise=acme, name="Intensive", code="ICU")
