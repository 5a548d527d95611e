import csv
import datetime

import pytest

from database.models import EmailDraft
from services.enquiries import EnquiryAppService, EnquiryFilter, EnquiryNotFoundError


class StubShareGateway:
    def __init__(self):
        self.shared = []

    def is_available(self):
        return True

    def share(self, path):
        self.shared.append(path)


@pytest.fixture
def service():
    return EnquiryAppService(share_gateway=StubShareGateway())


def test_get_detail_collects_reminders_and_drafts(in_memory_db, service, make_reminder):
    later = datetime.datetime.now() + datetime.timedelta(days=3)
    sooner = datetime.datetime.now() + datetime.timedelta(days=1)
    reminder = make_reminder(reminder_date=later, title="Second")
    make_reminder(enquiry=reminder.enquiry, reminder_date=sooner, title="First")
    EmailDraft.create(
        enquiry=reminder.enquiry,
        template_type="initial_response",
        subject="Hello",
        body="Body",
    )

    detail = service.get_detail(reminder.enquiry_id)

    assert detail.enquiry.id == reminder.enquiry_id
    assert [r.title for r in detail.reminders] == ["First", "Second"]
    assert [d.subject for d in detail.email_drafts] == ["Hello"]


def test_get_detail_missing_raises(in_memory_db, service):
    with pytest.raises(EnquiryNotFoundError):
        service.get_detail(999)


def test_create_and_change_status_return_rows(in_memory_db, service, make_company):
    company = make_company()

    row = service.create(company_id=company.id, product_interest="Robots")
    changed = service.change_status(row.id, "in_progress")

    assert row.status == "new"
    assert row.company_name == "Acme Corp"
    assert changed.status == "in_progress"
    assert changed.product_interest == "Robots"


def test_update_missing_raises(in_memory_db, service):
    with pytest.raises(EnquiryNotFoundError):
        service.update(42, notes="x")


def test_delete(in_memory_db, service, make_enquiry):
    enquiry = make_enquiry()

    service.delete(enquiry.id)

    assert service.list() == []


def test_export_only_won_enquiries(in_memory_db, service, make_enquiry, tmp_path):
    for status in ("won", "won", "lost", "won", "new"):
        make_enquiry(status=status)

    path = service.export(
        EnquiryFilter(status=["won"]), "csv", "won.csv", export_dir=str(tmp_path)
    )

    with open(path, encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))
    assert len(rows) == 4
    assert {r[4] for r in rows[1:]} == {"won"}
    assert service._share_gateway.shared == [path]


def test_export_without_share(in_memory_db, make_enquiry, tmp_path):
    make_enquiry()
    gateway = StubShareGateway()
    service = EnquiryAppService(share_gateway=gateway)

    service.export(fmt="csv", export_dir=str(tmp_path), share=False)

    assert gateway.shared == []
