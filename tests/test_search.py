import datetime

import pytest

from services.enquiries import enquiry_service as es
from services.enquiries.dto import CompanyInfo, ContactInfo, EnquiryFilter, EnquiryRowDTO
from services.enquiries.search import apply_search, filter_and_search


def _row(id_, company=None, contact=None, product="Widgets"):
    now = datetime.datetime(2026, 1, 1)
    return EnquiryRowDTO(
        id=id_,
        company_id=1,
        contact_id=None,
        enquiry_date=now.date(),
        status="new",
        product_interest=product,
        estimated_value=None,
        notes=None,
        next_follow_up=None,
        owner="current_user",
        created_at=now,
        updated_at=now,
        company=CompanyInfo(id=1, name=company) if company else None,
        contact=ContactInfo(id=1, name=contact) if contact else None,
    )


ROWS = [
    _row(1, company="Acme Corp", contact="Jane Doe", product="Sensors"),
    _row(2, company="Globex", contact=None, product="Acme-compatible pumps"),
    _row(3, company=None, contact="John ACME", product="Valves"),
    _row(4, company=None, contact=None, product="Cables"),
]


@pytest.mark.parametrize("term", ["", "   ", None])
def test_empty_term_returns_rows_unchanged(term):
    assert apply_search(ROWS, term) == ROWS


def test_search_matches_any_field_case_insensitive():
    result = apply_search(ROWS, "acme")

    assert [r.id for r in result] == [1, 2, 3]


@pytest.mark.parametrize("term", ["acme", "jane", "VALVES", "zzz", "o"])
def test_search_result_is_subset(term):
    result = apply_search(ROWS, term)

    assert all(r in ROWS for r in result)
    assert len(result) <= len(ROWS)


def test_missing_company_and_contact_do_not_crash():
    assert [r.id for r in apply_search(ROWS, "cables")] == [4]


def test_filter_and_search_is_subset_of_filtered(in_memory_db, make_company, make_enquiry):
    acme = make_company(name="Acme Corp")
    globex = make_company(name="Globex")
    make_enquiry(company=acme, status="won", product_interest="Sensors")
    make_enquiry(company=globex, status="won", product_interest="Pumps")
    make_enquiry(company=acme, status="lost", product_interest="Sensors")

    filters = EnquiryFilter(status=["won"], search_term="acme")
    filtered = es.get_enquiries(filters)
    searched = filter_and_search(filters)

    assert {r.id for r in searched} <= {r.id for r in filtered}
    assert [r.company_name for r in searched] == ["Acme Corp"]


def test_filter_and_search_without_term_equals_filtered(in_memory_db, make_enquiry):
    make_enquiry(status="won")
    make_enquiry(status="new")

    filters = EnquiryFilter(status=["won"])

    assert [r.id for r in filter_and_search(filters)] == [
        r.id for r in es.get_enquiries(filters)
    ]
