from decimal import Decimal

import pytest

from config import ConfigurationError, Settings
from database.models import EmailTemplateType
from services.ai_email_service import (
    AIEmailService,
    EmailGenerationContext,
    GeneratedContentError,
    build_body_prompt,
    build_subject_prompt,
    compose_email_for_enquiry,
    validate_generated_content,
)

GOOD_BODY = (
    "Dear Jane,\n\nThank you for your interest in our industrial sensors. "
    "We would be glad to arrange a short call next week to discuss your needs."
)


def _context(kind=EmailTemplateType.INITIAL_RESPONSE, **overrides):
    data = dict(
        template_type=kind,
        company_name="Acme Corp",
        enquiry_status="new",
        product_interest="Industrial sensors",
        contact_name="Jane Doe",
    )
    data.update(overrides)
    return EmailGenerationContext(**data)


@pytest.mark.parametrize(
    "content, message",
    [
        ("", "Generated content is empty"),
        ("   ", "Generated content is empty"),
        (None, "Generated content is empty"),
        ("Too short to be an email.", "Generated content is too short"),
        ("x" * 5001, "Generated content is too long"),
        (GOOD_BODY + " Regards, [Your Name]", "Generated content contains unresolved placeholders"),
        (GOOD_BODY + " Call {phone}", "Generated content contains unresolved placeholders"),
        (GOOD_BODY + " See {{link}}", "Generated content contains unresolved placeholders"),
        (GOOD_BODY, "Content validation passed"),
    ],
)
def test_validate_generated_content(content, message):
    result = validate_generated_content(content)

    assert result.message == message
    assert result.is_valid is (message == "Content validation passed")


def test_prompts_include_context():
    body = build_body_prompt(_context())
    assert "Acme Corp" in body
    assert "(Contact: Jane Doe)" in body
    assert "Industrial sensors" in body

    quote = build_body_prompt(
        _context(EmailTemplateType.QUOTATION_FOLLOWUP, estimated_value=Decimal("1500"))
    )
    assert "Estimated value: $1500" in quote
    assert "Estimated value: TBD" in build_body_prompt(
        _context(EmailTemplateType.QUOTATION_FOLLOWUP)
    )


def test_day_defaults_in_prompts():
    assert "Last contact was 7 days ago" in build_body_prompt(
        _context(EmailTemplateType.REMINDER_EMAIL)
    )
    assert "It's been 30 days without contact" in build_body_prompt(
        _context(EmailTemplateType.RE_ENGAGEMENT)
    )
    assert "Last contact was 12 days ago" in build_body_prompt(
        _context(EmailTemplateType.REMINDER_EMAIL, days_since=12)
    )


def test_unknown_template_raises():
    with pytest.raises(ValueError):
        build_subject_prompt(_context("cold_call"))


def test_generate_email_two_calls(fake_openai, ai_settings):
    fake_openai.replies.extend([f"  {GOOD_BODY}  ", '"Your enquiry about sensors"'])

    email = AIEmailService(ai_settings).generate_email(_context())

    assert email.body == GOOD_BODY
    assert email.subject == "Your enquiry about sensors"
    assert len(fake_openai.calls) == 2
    assert fake_openai.calls[0]["model"] == "gpt-4o-mini"
    assert "initial response email" in fake_openai.calls[0]["messages"][0]["content"]
    assert "subject line" in fake_openai.calls[1]["messages"][0]["content"]


def test_generate_email_rejects_invalid_body(fake_openai, ai_settings):
    fake_openai.replies.extend(["Hi [Name]", "Subject"])

    with pytest.raises(GeneratedContentError, match="too short"):
        AIEmailService(ai_settings).generate_email(_context())


def test_generate_email_wraps_api_errors(fake_openai, ai_settings):
    fake_openai.replies.append(RuntimeError("quota exceeded"))

    with pytest.raises(RuntimeError, match="Failed to generate email: quota exceeded"):
        AIEmailService(ai_settings).generate_email(_context())


def test_missing_api_key_is_configuration_error(fake_openai, tmp_path):
    service = AIEmailService(Settings(openai_api_key=None, log_dir=str(tmp_path)))

    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        service.generate_email(_context())
    assert fake_openai.calls == []


def test_subject_and_body_only(fake_openai, ai_settings):
    fake_openai.replies.extend(["'Closing our deal'", GOOD_BODY])
    service = AIEmailService(ai_settings)

    assert service.generate_email_subject(_context(EmailTemplateType.DEAL_CLOSING)) == "Closing our deal"
    assert service.generate_email_body(_context(EmailTemplateType.DEAL_CLOSING)) == GOOD_BODY


def test_available_templates():
    templates = AIEmailService(Settings()).get_available_templates()

    assert [t["id"] for t in templates] == [
        "initial_response",
        "quotation_followup",
        "reminder_email",
        "deal_closing",
        "re_engagement",
    ]
    assert templates[0]["title"] == "Initial Enquiry Response"


def test_compose_email_for_enquiry(in_memory_db, fake_openai, ai_settings, make_enquiry):
    enquiry = make_enquiry(product_interest="Conveyor belts")
    fake_openai.replies.extend([GOOD_BODY, "Conveyor belts enquiry"])

    email = compose_email_for_enquiry(
        AIEmailService(ai_settings), enquiry.id, "initial_response"
    )

    assert email.subject == "Conveyor belts enquiry"
    assert "Conveyor belts" in fake_openai.calls[0]["messages"][0]["content"]
