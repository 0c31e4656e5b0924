"""Reporting package — trend/recommendation views, organization roll-up, exports."""

from .aggregator import Recommendation, ReportAggregator, SubjectReport, TrendEntry
from .csv_export import export_report_csv
from .json_export import export_organization_json, export_report_json
from .organization import DepartmentSummary, OrganizationAggregator, OrganizationSummary

__all__ = [
    "ReportAggregator",
    "Recommendation",
    "SubjectReport",
    "TrendEntry",
    "OrganizationAggregator",
    "OrganizationSummary",
    "DepartmentSummary",
    "export_report_json",
    "export_organization_json",
    "export_report_csv",
]
