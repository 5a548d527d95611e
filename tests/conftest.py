import datetime
from decimal import Decimal
from types import SimpleNamespace

import openai
import pytest

from config import Settings
from database.models import Company, Contact, Enquiry, Reminder


@pytest.fixture
def make_company():
    def _make_company(name: str = "Acme Corp", industry: str = "Manufacturing", **kwargs):
        params = {"owner": "current_user", **kwargs}
        return Company.create(name=name, industry=industry, **params)

    return _make_company


@pytest.fixture
def make_contact(make_company):
    def _make_contact(
        company: Company | None = None,
        name: str = "Jane Doe",
        designation: str = "Buyer",
        **kwargs,
    ):
        if company is None:
            company = make_company()
        return Contact.create(
            company=company, name=name, designation=designation, **kwargs
        )

    return _make_contact


@pytest.fixture
def make_enquiry(make_company):
    def _make_enquiry(
        company: Company | None = None,
        contact: Contact | None = None,
        product_interest: str = "Industrial sensors",
        status: str = "new",
        enquiry_date: datetime.date | None = None,
        estimated_value: Decimal | None = None,
        **kwargs,
    ):
        if company is None:
            company = make_company()
        params = {"owner": "current_user", **kwargs}
        return Enquiry.create(
            company=company,
            contact=contact,
            product_interest=product_interest,
            status=status,
            enquiry_date=enquiry_date or datetime.date.today(),
            estimated_value=estimated_value,
            **params,
        )

    return _make_enquiry


@pytest.fixture
def make_reminder(make_enquiry):
    def _make_reminder(
        enquiry: Enquiry | None = None,
        reminder_date: datetime.datetime | None = None,
        title: str = "Call back",
        **kwargs,
    ):
        if enquiry is None:
            enquiry = make_enquiry()
        if reminder_date is None:
            reminder_date = datetime.datetime.now() + datetime.timedelta(days=1)
        return Reminder.create(
            enquiry=enquiry, reminder_date=reminder_date, title=title, **kwargs
        )

    return _make_reminder


class FakeNotificationGateway:
    """Шлюз уведомлений, запоминающий все вызовы."""

    def __init__(self, *, granted: bool = True, fail_for: set[str] | None = None):
        self.granted = granted
        self.fail_for = set(fail_for or ())
        self.started = False
        self.scheduled: dict[str, dict] = {}
        self.cancelled: list[str] = []
        self.cancel_all_calls = 0
        self._counter = 0

    def request_permissions(self) -> bool:
        return self.granted

    def start(self) -> None:
        self.started = True

    def schedule(self, title, body, data, fire_at):
        if body in self.fail_for:
            raise RuntimeError("gateway failure")
        self._counter += 1
        handle = f"n{self._counter}"
        self.scheduled[handle] = {
            "title": title,
            "body": body,
            "data": data,
            "fire_at": fire_at,
        }
        return handle

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.scheduled.pop(handle, None)

    def cancel_all(self):
        self.cancel_all_calls += 1
        self.scheduled.clear()

    def get_scheduled(self):
        return list(self.scheduled.values())


@pytest.fixture
def fake_gateway():
    return FakeNotificationGateway()


@pytest.fixture
def fake_gateway_factory():
    return FakeNotificationGateway


def _dummy_client(replies, captured):
    def create(**kwargs):
        captured.append(kwargs)
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
        )

    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=create))
    )


@pytest.fixture
def fake_openai(monkeypatch):
    """Подменить ``openai.OpenAI``; ответы задаются списком ``replies``."""

    state = SimpleNamespace(replies=[], calls=[], clients=[])

    def factory(*args, **kwargs):
        state.clients.append(kwargs)
        return _dummy_client(state.replies, state.calls)

    monkeypatch.setattr(openai, "OpenAI", factory)
    return state


@pytest.fixture
def ai_settings(tmp_path):
    return Settings(
        openai_api_key="key",
        openai_model="gpt-4o-mini",
        export_dir=str(tmp_path / "exports"),
        log_dir=str(tmp_path / "logs"),
    )
