"""Read models over locally held case files, patients and quality reports."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum

import pandas as pd

from mtbintake.models import CaseFile, Diagnosis, Gender, GeneCoding, Patient, SomaticNGSReport
from mtbintake.quality import DataQualityReport, Severity


class NotAvailable(str, Enum):
    """Marker for a value that was not supplied."""

    MARKER = "not-available"


@dataclass(frozen=True)
class PatientDataInfo:
    """One row of the "patients with incomplete data" overview."""

    patient_id: str
    gender: str
    birth_date: date | NotAvailable
    errors: int
    warnings: int
    infos: int

    @classmethod
    def of(cls, patient: Patient, report: DataQualityReport) -> "PatientDataInfo":
        return cls(
            patient_id=patient.id,
            gender=patient.gender.display,
            birth_date=patient.birth_date if patient.birth_date is not None else NotAvailable.MARKER,
            errors=report.count(Severity.ERROR),
            warnings=report.count(Severity.WARNING),
            infos=report.count(Severity.INFO),
        )

    def to_row(self) -> dict[str, object]:
        row = asdict(self)
        row["birth_date"] = (
            self.birth_date.value
            if isinstance(self.birth_date, NotAvailable)
            else self.birth_date.isoformat()
        )
        return row


def _or_marker(value: object) -> str:
    if value is None:
        return NotAvailable.MARKER.value
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _gene_label(coding: GeneCoding) -> str:
    return coding.symbol or coding.hgnc_id or NotAvailable.MARKER.value


@dataclass(frozen=True)
class DiagnosisView:
    id: str
    icd10: str
    recorded_on: str

    @classmethod
    def of(cls, diagnosis: Diagnosis) -> "DiagnosisView":
        return cls(
            id=diagnosis.id,
            icd10=_or_marker(diagnosis.icd10),
            recorded_on=_or_marker(diagnosis.recorded_on),
        )


@dataclass(frozen=True)
class NGSReportView:
    """Summary of a somatic NGS report; genes are listed once, in report order."""

    id: str
    specimen: str
    issued_on: str
    tumor_cell_content: str
    simple_variants: int
    copy_number_variants: int
    genes: tuple[str, ...]

    @classmethod
    def of(cls, report: SomaticNGSReport) -> "NGSReportView":
        codings = [snv.gene for snv in report.simple_variants if snv.gene is not None]
        for cnv in report.copy_number_variants:
            codings.extend(cnv.reported_affected_genes)
            codings.extend(cnv.cn_neutral_loh)
        genes = tuple(dict.fromkeys(_gene_label(coding) for coding in codings))
        return cls(
            id=report.id,
            specimen=_or_marker(report.specimen),
            issued_on=_or_marker(report.issued_on),
            tumor_cell_content=_or_marker(report.tumor_cell_content),
            simple_variants=len(report.simple_variants),
            copy_number_variants=len(report.copy_number_variants),
            genes=genes,
        )


@dataclass(frozen=True)
class CaseFileView:
    """Display form of a locally held case file; missing values show the marker."""

    patient_id: str
    gender: str
    birth_date: str
    date_of_death: str
    managing_site: str
    diagnoses: tuple[DiagnosisView, ...]
    ngs_reports: tuple[NGSReportView, ...]

    @classmethod
    def of(cls, case_file: CaseFile) -> "CaseFileView":
        patient = case_file.patient
        return cls(
            patient_id=patient.id,
            gender=patient.gender.display,
            birth_date=_or_marker(patient.birth_date),
            date_of_death=_or_marker(patient.date_of_death),
            managing_site=_or_marker(patient.managing_site),
            diagnoses=tuple(DiagnosisView.of(diagnosis) for diagnosis in case_file.diagnoses),
            ngs_reports=tuple(NGSReportView.of(report) for report in case_file.ngs_reports),
        )

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["diagnoses"] = [asdict(diagnosis) for diagnosis in self.diagnoses]
        payload["ngs_reports"] = [
            {**asdict(report), "genes": list(report.genes)} for report in self.ngs_reports
        ]
        return payload


@dataclass(frozen=True)
class PatientFilter:
    """Optional criteria; string criteria are substring matches over issues."""

    genders: frozenset[Gender] | None = None
    issue_message: str | None = None
    entry_type: str | None = None
    attribute: str | None = None

    def matches(self, patient: Patient, report: DataQualityReport) -> bool:
        if self.genders is not None and patient.gender not in self.genders:
            return False
        if self.issue_message is not None and not any(
            self.issue_message in issue.message for issue in report.issues
        ):
            return False
        if self.entry_type is not None and not any(
            self.entry_type in issue.location.entry_type for issue in report.issues
        ):
            return False
        if self.attribute is not None and not any(
            self.attribute in issue.location.attribute for issue in report.issues
        ):
            return False
        return True


def patient_data_infos_frame(infos: Iterable[PatientDataInfo]) -> pd.DataFrame:
    """Tabulate infos for reporting; columns follow ``PatientDataInfo`` fields."""

    columns = ["patient_id", "gender", "birth_date", "errors", "warnings", "infos"]
    return pd.DataFrame([info.to_row() for info in infos], columns=columns)
