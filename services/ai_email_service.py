"""Генерация деловых писем по обращениям через OpenAI-совместимый API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

import openai

from config import Settings, get_settings
from database.models import EmailTemplateType

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 50
MAX_CONTENT_LENGTH = 5000

_PLACEHOLDER_PATTERNS = (
    re.compile(r"\[.*?\]"),
    re.compile(r"\{.*?\}"),
    re.compile(r"\{\{.*?\}\}"),
)
_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


class GeneratedContentError(ValueError):
    """Ответ модели не прошёл структурную проверку."""


@dataclass
class EmailGenerationContext:
    template_type: EmailTemplateType | str
    company_name: str
    enquiry_status: str
    product_interest: str
    contact_name: str | None = None
    estimated_value: Decimal | float | None = None
    days_since: int | None = None


@dataclass(frozen=True)
class ContentValidation:
    is_valid: bool
    message: str


@dataclass(frozen=True)
class GeneratedEmail:
    subject: str
    body: str


# ─────────────────────────── Шаблоны промптов ───────────────────────────


def _contact_suffix(ctx: EmailGenerationContext, prefix: str = "") -> str:
    return f"({prefix}{ctx.contact_name})" if ctx.contact_name else ""


def _initial_response_prompt(ctx: EmailGenerationContext) -> str:
    return (
        "You are a professional B2B sales representative for a technology company.\n"
        f"Generate a professional initial response email to {ctx.company_name} "
        f"{_contact_suffix(ctx, 'Contact: ')}.\n"
        f"Subject: Response to your enquiry about {ctx.product_interest}\n"
        "The email should:\n"
        "- Thank them for their interest\n"
        f"- Briefly acknowledge their enquiry about {ctx.product_interest}\n"
        "- Highlight 2-3 key benefits relevant to their needs\n"
        "- Propose a meeting/call\n"
        "- Be concise (200-250 words)\n"
        "- Use professional but friendly tone\n"
        "Generate only the email body, not the subject line."
    )


def _quotation_followup_prompt(ctx: EmailGenerationContext) -> str:
    value = f"${ctx.estimated_value}" if ctx.estimated_value else "TBD"
    return (
        "You are a professional B2B sales representative.\n"
        f"Generate a professional quotation follow-up email to {ctx.company_name} "
        f"{_contact_suffix(ctx)}.\n"
        "Subject: Your Quotation Details - Next Steps\n"
        f"Details: Estimated value: {value}\n"
        "The email should:\n"
        "- Reference the quotation provided\n"
        "- Highlight value proposition\n"
        "- Address potential questions\n"
        "- Include next steps\n"
        "- Create urgency without pressure\n"
        "- Be concise (180-220 words)\n"
        "Generate only the email body."
    )


def _reminder_prompt(ctx: EmailGenerationContext) -> str:
    return (
        "You are a professional B2B sales representative.\n"
        f"Generate a professional reminder email to {ctx.company_name} "
        f"{_contact_suffix(ctx)}.\n"
        f"Subject: Following Up - {ctx.company_name}\n"
        f"Timeline: Last contact was {ctx.days_since or 7} days ago.\n"
        "The email should:\n"
        "- Gently remind about previous discussion\n"
        "- Add new value/information if possible\n"
        "- Ask for decision timeline\n"
        "- Offer assistance\n"
        "- Maintain professional relationship\n"
        "- Be concise (150-200 words)\n"
        "Generate only the email body."
    )


def _deal_closing_prompt(ctx: EmailGenerationContext) -> str:
    return (
        "You are a professional B2B sales representative.\n"
        f"Generate a professional deal closing email to {ctx.company_name} "
        f"{_contact_suffix(ctx)}.\n"
        f"Subject: Let's Finalize - {ctx.product_interest}\n"
        "The email should:\n"
        "- Summarize agreed terms\n"
        "- Thank them for choosing us\n"
        "- Outline next implementation steps\n"
        "- Provide contact information for support\n"
        "- Express excitement about partnership\n"
        "- Be concise (150-180 words)\n"
        "Generate only the email body."
    )


def _re_engagement_prompt(ctx: EmailGenerationContext) -> str:
    return (
        "You are a professional B2B sales representative.\n"
        f"Generate a professional re-engagement email to {ctx.company_name} "
        f"{_contact_suffix(ctx)}.\n"
        f"Subject: We Miss You - {ctx.company_name}\n"
        f"Timeline: It's been {ctx.days_since or 30} days without contact.\n"
        "The email should:\n"
        "- Acknowledge the absence\n"
        "- Introduce new features/offerings\n"
        "- Provide relevance to their business\n"
        "- Remove previous price barriers if any\n"
        "- Invite to brief conversation\n"
        "- Be genuine and concise (150-200 words)\n"
        "Generate only the email body."
    )


@dataclass(frozen=True)
class EmailTemplate:
    id: EmailTemplateType
    title: str
    description: str
    prompt: Callable[[EmailGenerationContext], str]


EMAIL_TEMPLATES: dict[EmailTemplateType, EmailTemplate] = {
    EmailTemplateType.INITIAL_RESPONSE: EmailTemplate(
        EmailTemplateType.INITIAL_RESPONSE,
        "Initial Enquiry Response",
        "Professional response to a new enquiry",
        _initial_response_prompt,
    ),
    EmailTemplateType.QUOTATION_FOLLOWUP: EmailTemplate(
        EmailTemplateType.QUOTATION_FOLLOWUP,
        "Quotation Follow-up",
        "Follow-up after sending a quotation",
        _quotation_followup_prompt,
    ),
    EmailTemplateType.REMINDER_EMAIL: EmailTemplate(
        EmailTemplateType.REMINDER_EMAIL,
        "Reminder Email",
        "Polite reminder about a pending enquiry",
        _reminder_prompt,
    ),
    EmailTemplateType.DEAL_CLOSING: EmailTemplate(
        EmailTemplateType.DEAL_CLOSING,
        "Deal Closing Email",
        "Email to finalize a won deal",
        _deal_closing_prompt,
    ),
    EmailTemplateType.RE_ENGAGEMENT: EmailTemplate(
        EmailTemplateType.RE_ENGAGEMENT,
        "Re-engagement Email",
        "Email to re-engage inactive leads",
        _re_engagement_prompt,
    ),
}

SUBJECT_PROMPTS: dict[EmailTemplateType, str] = {
    EmailTemplateType.INITIAL_RESPONSE: (
        "Generate a professional, concise email subject line for an initial "
        "response to an enquiry from {company}. Only respond with the subject "
        "line, no quotes needed."
    ),
    EmailTemplateType.QUOTATION_FOLLOWUP: (
        "Generate a professional email subject for a quotation follow-up to "
        "{company}. Only respond with the subject line."
    ),
    EmailTemplateType.REMINDER_EMAIL: (
        "Generate a professional email subject for a reminder email to "
        "{company}. Only respond with the subject line."
    ),
    EmailTemplateType.DEAL_CLOSING: (
        "Generate a professional email subject for a deal closing email to "
        "{company}. Only respond with the subject line."
    ),
    EmailTemplateType.RE_ENGAGEMENT: (
        "Generate a professional email subject for a re-engagement email to "
        "{company}. Only respond with the subject line."
    ),
}


def resolve_template_type(value: EmailTemplateType | str) -> EmailTemplateType:
    try:
        return EmailTemplateType(value)
    except ValueError:
        raise ValueError(f"Unknown email template: {value}") from None


def build_body_prompt(context: EmailGenerationContext) -> str:
    template = EMAIL_TEMPLATES[resolve_template_type(context.template_type)]
    return template.prompt(context)


def build_subject_prompt(context: EmailGenerationContext) -> str:
    kind = resolve_template_type(context.template_type)
    return SUBJECT_PROMPTS[kind].format(company=context.company_name)


def strip_quotes(text: str) -> str:
    """Убрать одну пару кавычек по краям строки."""
    return _SURROUNDING_QUOTES.sub("", text.strip())


def validate_generated_content(content: str | None) -> ContentValidation:
    """Структурная проверка сгенерированного текста письма."""
    if not content or not content.strip():
        return ContentValidation(False, "Generated content is empty")
    if len(content.strip()) < MIN_CONTENT_LENGTH:
        return ContentValidation(False, "Generated content is too short")
    if len(content) > MAX_CONTENT_LENGTH:
        return ContentValidation(False, "Generated content is too long")
    for pattern in _PLACEHOLDER_PATTERNS:
        if pattern.search(content):
            return ContentValidation(
                False, "Generated content contains unresolved placeholders"
            )
    return ContentValidation(True, "Content validation passed")


class AIEmailService:
    """Черновики писем по шаблонам через chat completions."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def _client(self) -> "openai.OpenAI":
        api_key = self.settings.require_openai()
        return openai.OpenAI(api_key=api_key, base_url=self.settings.openai_base_url)

    def _complete(self, client: "openai.OpenAI", prompt: str) -> str:
        resp = client.chat.completions.create(
            model=self.settings.openai_model,
            messages=[{"role": "user", "content": prompt}],
        )
        return (resp.choices[0].message.content or "").strip()

    def generate_email(self, context: EmailGenerationContext) -> GeneratedEmail:
        """Сгенерировать тело, затем тему письма (два последовательных запроса)."""
        body_prompt = build_body_prompt(context)
        subject_prompt = build_subject_prompt(context)
        client = self._client()
        try:
            body = self._complete(client, body_prompt)
            subject = strip_quotes(self._complete(client, subject_prompt))
        except Exception as exc:
            logger.error("Ошибка генерации письма: %s", exc)
            raise RuntimeError(f"Failed to generate email: {exc}") from exc

        check = validate_generated_content(body)
        if not check.is_valid:
            logger.warning("⚠️ Сгенерированное письмо отклонено: %s", check.message)
            raise GeneratedContentError(check.message)
        logger.info(
            "✉️ Сгенерировано письмо «%s» для %s", subject, context.company_name
        )
        return GeneratedEmail(subject=subject, body=body)

    def generate_email_subject(self, context: EmailGenerationContext) -> str:
        prompt = build_subject_prompt(context)
        client = self._client()
        try:
            return strip_quotes(self._complete(client, prompt))
        except Exception as exc:
            logger.error("Ошибка генерации темы письма: %s", exc)
            raise RuntimeError(f"Failed to generate subject: {exc}") from exc

    def generate_email_body(self, context: EmailGenerationContext) -> str:
        prompt = build_body_prompt(context)
        client = self._client()
        try:
            return self._complete(client, prompt)
        except Exception as exc:
            logger.error("Ошибка генерации текста письма: %s", exc)
            raise RuntimeError(f"Failed to generate body: {exc}") from exc

    @staticmethod
    def get_available_templates() -> list[dict[str, str]]:
        return [
            {"id": t.id.value, "title": t.title, "description": t.description}
            for t in EMAIL_TEMPLATES.values()
        ]


def compose_email_for_enquiry(
    service: AIEmailService,
    enquiry_id: int,
    template_type: EmailTemplateType | str,
) -> GeneratedEmail:
    """Собрать контекст из сохранённых записей и сгенерировать письмо."""
    from services.email_draft_service import build_generation_context

    context = build_generation_context(enquiry_id, template_type)
    return service.generate_email(context)
