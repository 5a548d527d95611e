"""Подмодуль сервисов, связанных с обращениями."""

from .dto import (
    CompanyInfo,
    ContactInfo,
    DashboardSummary,
    EnquiryDetailDTO,
    EnquiryFilter,
    EnquiryRowDTO,
    ExportRow,
)
from .enquiry_app_service import (
    EnquiryAppService,
    EnquiryNotFoundError,
    enquiry_app_service,
)
from .search import apply_search, filter_and_search

__all__ = [
    "CompanyInfo",
    "ContactInfo",
    "DashboardSummary",
    "EnquiryAppService",
    "EnquiryDetailDTO",
    "EnquiryFilter",
    "EnquiryNotFoundError",
    "EnquiryRowDTO",
    "ExportRow",
    "apply_search",
    "enquiry_app_service",
    "filter_and_search",
]
