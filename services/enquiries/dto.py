"""DTO для представления обращений, фильтров и строк экспорта."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from peewee import DoesNotExist

from database.models import Company, Contact, EmailDraft, Enquiry, Reminder

__all__ = [
    "CompanyInfo",
    "ContactInfo",
    "DashboardSummary",
    "EnquiryDetailDTO",
    "EnquiryFilter",
    "EnquiryRowDTO",
    "ExportRow",
]


@dataclass(frozen=True)
class EnquiryFilter:
    """Набор условий списка обращений; пустые поля ничего не ограничивают."""

    status: Sequence[str] | str | None = None
    owner: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    product_interest: str | None = None
    company_id: int | None = None
    search_term: str = ""

    def is_empty(self) -> bool:
        return not any(
            (
                self.status,
                self.owner,
                self.date_from,
                self.date_to,
                self.product_interest,
                self.company_id,
                self.search_term.strip(),
            )
        )


@dataclass(slots=True)
class CompanyInfo:
    id: int
    name: str
    industry: str = ""

    @classmethod
    def from_model(cls, company: Company) -> "CompanyInfo":
        return cls(id=company.id, name=company.name, industry=company.industry)


@dataclass(slots=True)
class ContactInfo:
    id: int
    name: str
    email: str | None = None
    phone: str | None = None
    designation: str = ""

    @classmethod
    def from_model(cls, contact: Contact) -> "ContactInfo":
        return cls(
            id=contact.id,
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            designation=contact.designation,
        )


@dataclass
class EnquiryRowDTO:
    """Обращение вместе с компанией и контактом (если они есть)."""

    id: int
    company_id: int
    contact_id: Optional[int]
    enquiry_date: date
    status: str
    product_interest: str
    estimated_value: Optional[Decimal]
    notes: Optional[str]
    next_follow_up: Optional[date]
    owner: str
    created_at: datetime
    updated_at: datetime
    company: Optional[CompanyInfo] = None
    contact: Optional[ContactInfo] = None

    @classmethod
    def from_model(cls, enquiry: Enquiry) -> "EnquiryRowDTO":
        # связанные объекты уже выбраны JOIN'ом; при их отсутствии peewee
        # вернёт пустой экземпляр без id
        company = _related(enquiry, "company")
        contact = _related(enquiry, "contact")
        return cls(
            id=enquiry.id,
            company_id=enquiry.company_id,
            contact_id=enquiry.contact_id,
            enquiry_date=enquiry.enquiry_date,
            status=enquiry.status,
            product_interest=enquiry.product_interest,
            estimated_value=enquiry.estimated_value,
            notes=enquiry.notes,
            next_follow_up=enquiry.next_follow_up,
            owner=enquiry.owner,
            created_at=enquiry.created_at,
            updated_at=enquiry.updated_at,
            company=CompanyInfo.from_model(company) if company else None,
            contact=ContactInfo.from_model(contact) if contact else None,
        )

    @property
    def company_name(self) -> str:
        return self.company.name if self.company else ""

    @property
    def contact_name(self) -> str:
        return self.contact.name if self.contact else ""


def _related(enquiry: Enquiry, name: str):
    if getattr(enquiry, f"{name}_id") is None:
        return None
    try:
        obj = getattr(enquiry, name)
    except DoesNotExist:
        # запись удалена между выборками
        return None
    if obj is None or obj.id is None:
        return None
    return obj


@dataclass
class ExportRow:
    """Плоская строка выгрузки: обращение + данные компании и контакта."""

    company_name: str
    status: str
    product_interest: str
    enquiry_date: date
    owner: str
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    estimated_value: Decimal | None = None
    next_follow_up: date | None = None
    notes: str | None = None

    @classmethod
    def from_row(cls, row: EnquiryRowDTO) -> "ExportRow":
        contact = row.contact
        return cls(
            company_name=row.company_name,
            contact_name=contact.name if contact else None,
            contact_email=contact.email if contact else None,
            contact_phone=contact.phone if contact else None,
            status=row.status,
            product_interest=row.product_interest,
            estimated_value=row.estimated_value,
            enquiry_date=row.enquiry_date,
            next_follow_up=row.next_follow_up,
            notes=row.notes,
            owner=row.owner,
        )


@dataclass
class DashboardSummary:
    total_enquiries: int = 0
    new_count: int = 0
    in_progress_count: int = 0
    quoted_count: int = 0
    won_count: int = 0
    lost_count: int = 0
    on_hold_count: int = 0
    upcoming_followups: int = 0
    total_estimated_value: Decimal = Decimal("0")


@dataclass
class EnquiryDetailDTO:
    enquiry: EnquiryRowDTO
    reminders: list[Reminder] = field(default_factory=list)
    email_drafts: list[EmailDraft] = field(default_factory=list)
