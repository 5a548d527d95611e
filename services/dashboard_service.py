"""Функции для получения сводной информации на дашборд."""

from datetime import date, timedelta

from peewee import Case, fn

from database.models import Enquiry, EnquiryStatus
from services.enquiries.dto import DashboardSummary, EnquiryRowDTO
from services.enquiries.enquiry_service import get_enquiries
from services.query_utils import sum_column

UPCOMING_DAYS = 7


def _status_case(status: EnquiryStatus) -> Case:
    return Case(None, ((Enquiry.status == status.value, 1),), 0)


def get_dashboard_summary(today: date | None = None) -> DashboardSummary:
    """Вернуть счётчики обращений по статусам и сумму оценок."""
    today = today or date.today()
    horizon = today + timedelta(days=UPCOMING_DAYS)
    followup_case = Case(
        None,
        (
            (
                (Enquiry.next_follow_up.is_null(False))
                & (Enquiry.next_follow_up.between(today, horizon)),
                1,
            ),
        ),
        0,
    )

    query = Enquiry.select(
        fn.COUNT(Enquiry.id).alias("total"),
        fn.COALESCE(fn.SUM(_status_case(EnquiryStatus.NEW)), 0).alias("new"),
        fn.COALESCE(fn.SUM(_status_case(EnquiryStatus.IN_PROGRESS)), 0).alias(
            "in_progress"
        ),
        fn.COALESCE(fn.SUM(_status_case(EnquiryStatus.QUOTED)), 0).alias("quoted"),
        fn.COALESCE(fn.SUM(_status_case(EnquiryStatus.WON)), 0).alias("won"),
        fn.COALESCE(fn.SUM(_status_case(EnquiryStatus.LOST)), 0).alias("lost"),
        fn.COALESCE(fn.SUM(_status_case(EnquiryStatus.ON_HOLD)), 0).alias("on_hold"),
        fn.COALESCE(fn.SUM(followup_case), 0).alias("followups"),
    )
    totals = query.dicts().get()

    return DashboardSummary(
        total_enquiries=int(totals["total"] or 0),
        new_count=int(totals["new"]),
        in_progress_count=int(totals["in_progress"]),
        quoted_count=int(totals["quoted"]),
        won_count=int(totals["won"]),
        lost_count=int(totals["lost"]),
        on_hold_count=int(totals["on_hold"]),
        upcoming_followups=int(totals["followups"]),
        total_estimated_value=sum_column(Enquiry.select(), Enquiry.estimated_value),
    )


def get_recent_enquiries(limit: int = 5) -> list[EnquiryRowDTO]:
    """Последние обращения для блока «Недавние»."""
    return get_enquiries(limit=limit)
