"""Data quality reports and severity classification for uploaded case files."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class Severity(str, Enum):
    """Issue severity, from most to least severe."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Ordinal where a higher value means more severe."""

        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.FATAL: 3,
    Severity.ERROR: 2,
    Severity.WARNING: 1,
    Severity.INFO: 0,
}


@dataclass(frozen=True)
class IssueLocation:
    """Where in the case file an issue was found."""

    entry_type: str
    entry_id: str
    attribute: str

    def to_dict(self) -> dict[str, Any]:
        return {"entryType": self.entry_type, "id": self.entry_id, "attribute": self.attribute}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "IssueLocation":
        return cls(
            entry_type=str(payload["entryType"]),
            entry_id=str(payload.get("id", "")),
            attribute=str(payload.get("attribute", "")),
        )


@dataclass(frozen=True)
class Issue:
    severity: Severity
    message: str
    location: IssueLocation

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "location": self.location.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Issue":
        return cls(
            severity=Severity(payload["severity"]),
            message=str(payload["message"]),
            location=IssueLocation.from_dict(payload["location"]),
        )


@dataclass(frozen=True)
class DataQualityReport:
    """Issues detected for one patient's case file, keyed by patient id."""

    patient: str
    issues: tuple[Issue, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def count(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity is severity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "patient": self.patient,
            "createdAt": self.created_at.isoformat(),
            "issues": [issue.to_dict() for issue in self.issues],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DataQualityReport":
        return cls(
            patient=str(payload["patient"]),
            issues=tuple(Issue.from_dict(item) for item in payload.get("issues", [])),
            created_at=datetime.fromisoformat(payload["createdAt"]),
        )


class SeverityClass(str, Enum):
    """Handling class of a quality report, in decreasing priority."""

    FATAL_PRESENT = "fatal_present"
    ERROR_PRESENT = "error_present"
    AT_MOST_WARNINGS = "at_most_warnings"
    ONLY_INFOS = "only_infos"


def _has(severity: Severity) -> Callable[[list[Severity]], bool]:
    return lambda severities: severity in severities


def _all_within(*allowed: Severity) -> Callable[[list[Severity]], bool]:
    return lambda severities: all(severity in allowed for severity in severities)


# Evaluated in order, first match wins. ONLY_INFOS can never match: a set
# holding only infos already satisfies AT_MOST_WARNINGS. The entry stays to
# keep the priority order explicit; see test_quality for the pinned behavior.
_CLASSIFICATION_CHAIN: tuple[tuple[SeverityClass, Callable[[list[Severity]], bool]], ...] = (
    (SeverityClass.FATAL_PRESENT, _has(Severity.FATAL)),
    (SeverityClass.ERROR_PRESENT, _has(Severity.ERROR)),
    (SeverityClass.AT_MOST_WARNINGS, _all_within(Severity.WARNING, Severity.INFO)),
    (SeverityClass.ONLY_INFOS, _all_within(Severity.INFO)),
)


def classify(issues: Iterable[Issue]) -> SeverityClass:
    """Map an issue set to the handling class of its most severe tier."""

    severities = [issue.severity for issue in issues]
    for severity_class, matches in _CLASSIFICATION_CHAIN:
        if matches(severities):
            return severity_class

    # Unreachable while Severity has exactly four members.
    return SeverityClass.ONLY_INFOS


def classify_report(report: DataQualityReport) -> SeverityClass:
    return classify(report.issues)
