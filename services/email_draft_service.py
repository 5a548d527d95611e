"""Черновики писем, сохранённые для обращений."""

import logging

from database.db import db
from database.models import EmailDraft, EmailTemplateType
from services.ai_email_service import EmailGenerationContext, resolve_template_type
from services.enquiries.enquiry_service import get_enquiry_by_id
from services.validators import DRAFT_RULES, ensure_valid

logger = logging.getLogger(__name__)

DRAFT_ALLOWED_FIELDS = {"template_type", "subject", "body"}


def add_email_draft(
    enquiry_id: int,
    template_type: EmailTemplateType | str,
    subject: str,
    body: str,
) -> EmailDraft:
    kind = resolve_template_type(template_type)
    ensure_valid({"subject": subject, "body": body}, DRAFT_RULES)
    try:
        with db.atomic():
            draft = EmailDraft.create(
                enquiry=enquiry_id,
                template_type=kind.value,
                subject=subject.strip(),
                body=body.strip(),
            )
    except Exception:
        logger.error("❌ Ошибка сохранения черновика письма", exc_info=True)
        raise
    logger.info("📝 Сохранён черновик #%s для обращения #%s", draft.id, enquiry_id)
    return draft


def get_email_drafts_by_enquiry_id(enquiry_id: int) -> list[EmailDraft]:
    """Черновики обращения, последние сверху."""
    try:
        query = (
            EmailDraft.select()
            .where(EmailDraft.enquiry == enquiry_id)
            .order_by(EmailDraft.created_at.desc(), EmailDraft.id.desc())
        )
        return list(query)
    except Exception:
        logger.error("❌ Ошибка загрузки черновиков обращения #%s", enquiry_id, exc_info=True)
        raise


def update_email_draft(draft_id: int, **updates) -> EmailDraft:
    clean = {k: v for k, v in updates.items() if k in DRAFT_ALLOWED_FIELDS}
    if "template_type" in clean:
        clean["template_type"] = resolve_template_type(clean["template_type"]).value
    ensure_valid(clean, {k: v for k, v in DRAFT_RULES.items() if k in clean})
    try:
        with db.atomic():
            draft = EmailDraft.get_by_id(draft_id)
            for key, value in clean.items():
                setattr(draft, key, value)
            draft.save()
    except Exception:
        logger.error("❌ Ошибка обновления черновика #%s", draft_id, exc_info=True)
        raise
    return draft


def delete_email_draft(draft_id: int) -> None:
    try:
        with db.atomic():
            EmailDraft.delete().where(EmailDraft.id == draft_id).execute()
    except Exception:
        logger.error("❌ Ошибка удаления черновика #%s", draft_id, exc_info=True)
        raise
    logger.info("🗑 Удалён черновик #%s", draft_id)


def build_generation_context(
    enquiry_id: int,
    template_type: EmailTemplateType | str = EmailTemplateType.INITIAL_RESPONSE,
) -> EmailGenerationContext:
    """Контекст генерации письма по сохранённому обращению."""
    row = get_enquiry_by_id(enquiry_id)
    if row is None:
        raise LookupError(f"Enquiry {enquiry_id} not found")
    return EmailGenerationContext(
        template_type=resolve_template_type(template_type),
        company_name=row.company_name,
        enquiry_status=row.status,
        product_interest=row.product_interest,
        contact_name=row.contact_name or None,
        estimated_value=row.estimated_value,
    )


def format_email_text(subject: str, body: str) -> str:
    """Текст письма для копирования или отправки."""
    return f"Subject: {subject}\n\n{body}"
