"""MTB case file intake.

This package validates uploaded molecular tumor board case files, classifies
their data quality issues and routes them into local holding storage or to
the downstream query service.
"""

from .bootstrap import build_intake_service
from .config import (
    ForwarderConfig,
    IntakeConfig,
    IntakeConfigLoader,
    IntakeSettings,
    StorageConfig,
)
from .harmonization import GeneCatalog, GeneHarmonizer, GeneRecord, InMemoryGeneCatalog
from .models import (
    CaseFile,
    CNVType,
    CopyNumberVariant,
    Diagnosis,
    Gender,
    GeneCoding,
    Patient,
    SimpleVariant,
    SomaticNGSReport,
)
from .quality import (
    DataQualityReport,
    Issue,
    IssueLocation,
    Severity,
    SeverityClass,
    classify,
)
from .schema import CaseFileFormatError, CaseFileSchema
from .service import (
    Delete,
    Deleted,
    Imported,
    IntakeService,
    IssuesDetected,
    Outcome,
    Rejected,
    UnspecificError,
    Upload,
)
from .validation import DataValidator, DefaultDataValidator, Invalid, Valid
from .views import CaseFileView, NotAvailable, PatientDataInfo, PatientFilter

__all__ = [
    "CaseFile",
    "CNVType",
    "CopyNumberVariant",
    "Diagnosis",
    "Gender",
    "GeneCoding",
    "Patient",
    "SimpleVariant",
    "SomaticNGSReport",
    "DataQualityReport",
    "Issue",
    "IssueLocation",
    "Severity",
    "SeverityClass",
    "classify",
    "GeneCatalog",
    "GeneHarmonizer",
    "GeneRecord",
    "InMemoryGeneCatalog",
    "DataValidator",
    "DefaultDataValidator",
    "Valid",
    "Invalid",
    "CaseFileFormatError",
    "CaseFileSchema",
    "IntakeConfig",
    "IntakeConfigLoader",
    "IntakeSettings",
    "StorageConfig",
    "ForwarderConfig",
    "IntakeService",
    "Upload",
    "Delete",
    "Outcome",
    "Imported",
    "IssuesDetected",
    "Deleted",
    "Rejected",
    "UnspecificError",
    "CaseFileView",
    "NotAvailable",
    "PatientDataInfo",
    "PatientFilter",
    "build_intake_service",
]
