from .formats import CustomFormat
from .matcher import CustomFormatCalculator, format_matches, group_matches, match
from .specifications import (
    ProperSpecification,
    QualitySpecification,
    ReleaseGroupSpecification,
    ReleaseTitleSpecification,
    SizeSpecification,
    Specification,
)

__all__ = [
    "CustomFormat",
    "CustomFormatCalculator",
    "ProperSpecification",
    "QualitySpecification",
    "ReleaseGroupSpecification",
    "ReleaseTitleSpecification",
    "SizeSpecification",
    "Specification",
    "format_matches",
    "group_matches",
    "match",
]
