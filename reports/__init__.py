"""
Reports — tables and summaries built from schedules and projections.
"""

from .summary import LoanSummary, ProjectionSummary, loan_summary, projection_summary
from .tables import annual_schedule_summary, breakdown_to_frame, projection_to_frame, schedule_to_frame

__all__ = [
    "LoanSummary",
    "ProjectionSummary",
    "loan_summary",
    "projection_summary",
    "annual_schedule_summary",
    "breakdown_to_frame",
    "projection_to_frame",
    "schedule_to_frame",
]
