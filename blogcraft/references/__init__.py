"""Reference management module for citations."""

from .reference_agent import (
    Reference,
    ReferenceList,
    ReferenceManagementAgent,
    ReferenceSummary,
    ReferenceValidation,
)

__all__ = [
    "Reference",
    "ReferenceList",
    "ReferenceManagementAgent",
    "ReferenceSummary",
    "ReferenceValidation",
]
