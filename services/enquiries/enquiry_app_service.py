"""Фасад для работы с обращениями без раскрытия Peewee наружу."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from database.models import EnquiryStatus
from services import email_draft_service, reminder_service
from services import export_service
from services.container import get_share_gateway

from . import enquiry_service
from .dto import EnquiryDetailDTO, EnquiryFilter, EnquiryRowDTO
from .search import filter_and_search

if TYPE_CHECKING:
    from infrastructure.share_gateway import ShareGateway

__all__ = ["EnquiryAppService", "EnquiryNotFoundError", "enquiry_app_service"]


class EnquiryNotFoundError(LookupError):
    """Обращение с указанным идентификатором не найдено."""


class EnquiryAppService:
    """Фасад, возвращающий DTO вместо моделей Peewee."""

    def __init__(self, *, share_gateway: "ShareGateway | None" = None) -> None:
        self._share_gateway = share_gateway

    # ------------------------------------------------------------------
    # Чтение данных
    # ------------------------------------------------------------------
    def list(
        self,
        filters: EnquiryFilter | None = None,
        limit: int | None = enquiry_service.DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[EnquiryRowDTO]:
        return filter_and_search(filters, limit=limit, offset=offset)

    def get_detail(self, enquiry_id: int) -> EnquiryDetailDTO:
        row = enquiry_service.get_enquiry_by_id(enquiry_id)
        if row is None:
            raise EnquiryNotFoundError(f"Enquiry {enquiry_id} not found")
        return EnquiryDetailDTO(
            enquiry=row,
            reminders=reminder_service.get_reminders_by_enquiry_id(enquiry_id),
            email_drafts=email_draft_service.get_email_drafts_by_enquiry_id(
                enquiry_id
            ),
        )

    # ------------------------------------------------------------------
    # Изменение данных
    # ------------------------------------------------------------------
    def create(self, **data: Any) -> EnquiryRowDTO:
        enquiry = enquiry_service.add_enquiry(**data)
        return self._row(enquiry.id)

    def update(self, enquiry_id: int, **updates: Any) -> EnquiryRowDTO:
        self._row(enquiry_id)
        enquiry_service.update_enquiry(enquiry_id, **updates)
        return self._row(enquiry_id)

    def change_status(
        self, enquiry_id: int, status: EnquiryStatus | str
    ) -> EnquiryRowDTO:
        self._row(enquiry_id)
        enquiry_service.change_status(enquiry_id, status)
        return self._row(enquiry_id)

    def delete(self, enquiry_id: int) -> None:
        enquiry_service.delete_enquiry(enquiry_id)

    def export(
        self,
        filters: EnquiryFilter | None = None,
        fmt: str = "csv",
        filename: str | None = None,
        *,
        export_dir: str | None = None,
        share: bool = True,
    ) -> Path:
        """Выгрузить обращения, подходящие под фильтры, и поделиться файлом."""
        rows = enquiry_service.get_enquiries_for_export(filters)
        gateway = None
        if share:
            gateway = self._share_gateway or get_share_gateway()
        return export_service.export_enquiries(
            rows,
            fmt,
            filename,
            export_dir=export_dir,
            share_gateway=gateway,
            share=share,
        )

    def _row(self, enquiry_id: int) -> EnquiryRowDTO:
        row = enquiry_service.get_enquiry_by_id(enquiry_id)
        if row is None:
            raise EnquiryNotFoundError(f"Enquiry {enquiry_id} not found")
        return row


enquiry_app_service = EnquiryAppService()
