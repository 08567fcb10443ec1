"""Cell-level parsers shared by the row normalizer."""

from .dates import parse_sales_date, translate_month_names
from .numeric import parse_numeric_value
from .week import extract_week, reconcile_week_year

__all__ = [
    "extract_week",
    "parse_numeric_value",
    "parse_sales_date",
    "reconcile_week_year",
    "translate_month_names",
]
