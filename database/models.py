from datetime import date, datetime
from enum import Enum

from peewee import (
    Model,
    BooleanField,
    CharField,
    DateField,
    DateTimeField,
    DecimalField,
    ForeignKeyField,
    TextField,
)

from database.db import db


class EnquiryStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    QUOTED = "quoted"
    WON = "won"
    LOST = "lost"
    ON_HOLD = "on_hold"


STATUS_LABELS = {
    EnquiryStatus.NEW.value: "New Enquiry",
    EnquiryStatus.IN_PROGRESS.value: "In Progress",
    EnquiryStatus.QUOTED.value: "Quoted",
    EnquiryStatus.WON.value: "Won Deal",
    EnquiryStatus.LOST.value: "Lost",
    EnquiryStatus.ON_HOLD.value: "On Hold",
}


class EmailTemplateType(str, Enum):
    INITIAL_RESPONSE = "initial_response"
    QUOTATION_FOLLOWUP = "quotation_followup"
    REMINDER_EMAIL = "reminder_email"
    DEAL_CLOSING = "deal_closing"
    RE_ENGAGEMENT = "re_engagement"


class BaseModel(Model):
    class Meta:
        database = db


class Company(BaseModel):
    name = CharField(index=True)
    industry = CharField()
    address = CharField(default="")
    website = CharField(null=True)
    notes = TextField(null=True)
    owner = CharField()
    created_at = DateTimeField(default=datetime.now)
    updated_at = DateTimeField(default=datetime.now)

    def __str__(self) -> str:
        return self.name


class Contact(BaseModel):
    company = ForeignKeyField(Company, backref="contacts", on_delete="CASCADE")
    name = CharField()
    designation = CharField()
    phone = CharField(null=True)
    email = CharField(null=True)
    is_primary = BooleanField(default=False)
    notes = TextField(null=True)
    created_at = DateTimeField(default=datetime.now)

    def __str__(self) -> str:
        return self.name


class Enquiry(BaseModel):
    company = ForeignKeyField(Company, backref="enquiries", on_delete="CASCADE")
    contact = ForeignKeyField(
        Contact, backref="enquiries", null=True, on_delete="SET NULL"
    )
    enquiry_date = DateField(default=date.today, index=True)
    status = CharField(default=EnquiryStatus.NEW.value, index=True)
    product_interest = CharField()
    estimated_value = DecimalField(max_digits=12, decimal_places=2, null=True)
    notes = TextField(null=True)
    next_follow_up = DateField(null=True)
    owner = CharField()
    created_at = DateTimeField(default=datetime.now)
    updated_at = DateTimeField(default=datetime.now)

    def __str__(self) -> str:
        company = self.company.name if self.company_id else ""
        return f"{company} — {self.product_interest}"


class EmailDraft(BaseModel):
    enquiry = ForeignKeyField(Enquiry, backref="email_drafts", on_delete="CASCADE")
    template_type = CharField()
    subject = CharField()
    body = TextField()
    created_at = DateTimeField(default=datetime.now)


class Reminder(BaseModel):
    enquiry = ForeignKeyField(Enquiry, backref="reminders", on_delete="CASCADE")
    reminder_date = DateTimeField(index=True)
    title = CharField()
    description = TextField(default="")
    is_completed = BooleanField(default=False)
    created_at = DateTimeField(default=datetime.now)
