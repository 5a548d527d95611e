import datetime

import pytest

from database.models import Enquiry
from services import contact_service as cts
from services.validators import FormValidationError


def test_add_contact_requires_company(in_memory_db):
    with pytest.raises(FormValidationError) as exc_info:
        cts.add_contact(name="Jane Doe", designation="Buyer")

    assert exc_info.value.errors == {"company_id": "Please select a company first"}


def test_add_contact_validates_channels(in_memory_db, make_company):
    company = make_company()

    with pytest.raises(FormValidationError) as exc_info:
        cts.add_contact(
            company_id=company.id,
            name="Jane Doe",
            designation="Buyer",
            email="jane@",
            phone="123",
        )

    assert set(exc_info.value.errors) == {"email", "phone"}


def test_add_contact_accepts_company_instance(in_memory_db, make_company):
    company = make_company()

    contact = cts.add_contact(
        company=company,
        name="Jane Doe",
        designation="Buyer",
        email="jane@acme.io",
        phone="+1 555 123 4567",
    )

    assert contact.company_id == company.id
    assert contact.is_primary is False


def test_contacts_by_company_newest_first(in_memory_db, make_company, make_contact):
    company = make_company()
    base = datetime.datetime(2026, 1, 1)
    make_contact(company=company, name="Old", created_at=base)
    make_contact(company=company, name="New", created_at=base + datetime.timedelta(hours=1))
    make_contact(name="Elsewhere")

    names = [c.name for c in cts.get_contacts_by_company_id(company.id)]

    assert names == ["New", "Old"]


def test_update_contact_partial(in_memory_db, make_contact):
    contact = make_contact(name="Jane Doe", designation="Buyer")

    updated = cts.update_contact(contact.id, designation="Head of Purchasing")

    assert updated.name == "Jane Doe"
    assert updated.designation == "Head of Purchasing"


def test_delete_contact_keeps_enquiries(in_memory_db, make_company, make_contact, make_enquiry):
    company = make_company()
    contact = make_contact(company=company)
    enquiry = make_enquiry(company=company, contact=contact)

    cts.delete_contact(contact.id)

    assert cts.get_contact_by_id(contact.id) is None
    refreshed = Enquiry.get_by_id(enquiry.id)
    assert refreshed.contact_id is None
