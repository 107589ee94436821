"""Reports package: formatting, shareable text, profiles and chart data."""

from pagapues.reports.charts import ChartData, build_balance_chart, build_paid_chart
from pagapues.reports.formatting import (
    describe_involvement,
    format_currency,
    format_signed_currency,
)
from pagapues.reports.profiles import Badge, ParticipantProfile, build_profiles
from pagapues.reports.share import generate_report_text, whatsapp_share_url

__all__ = [
    "Badge",
    "ChartData",
    "ParticipantProfile",
    "build_balance_chart",
    "build_paid_chart",
    "build_profiles",
    "describe_involvement",
    "format_currency",
    "format_signed_currency",
    "generate_report_text",
    "whatsapp_share_url",
]
