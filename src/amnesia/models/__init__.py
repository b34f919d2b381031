"""Core data models for the AMNESIA commission engine."""

from amnesia.models.commission import (
    CommissionError,
    CommissionSummary,
    EmployeeBreakdown,
    EmployeeEntry,
    EntryNotFoundError,
    FigureField,
    FlatRecord,
    InvalidFieldError,
    InvalidInputError,
    InvalidRecordsError,
    MonthlyBreakdown,
    MonthlyFigures,
)

__all__ = [
    "CommissionError",
    "CommissionSummary",
    "EmployeeBreakdown",
    "EmployeeEntry",
    "EntryNotFoundError",
    "FigureField",
    "FlatRecord",
    "InvalidFieldError",
    "InvalidInputError",
    "InvalidRecordsError",
    "MonthlyBreakdown",
    "MonthlyFigures",
]
