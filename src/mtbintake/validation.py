"""Case file validation producing data quality reports."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from mtbintake.harmonization import GeneCatalog
from mtbintake.models import CaseFile, Gender, GeneCoding
from mtbintake.quality import DataQualityReport, Issue, IssueLocation, Severity

_ICD10_RE = re.compile(r"^[A-Z][0-9]{2}(\.[0-9]{1,2})?$")


@dataclass(frozen=True)
class Valid:
    case_file: CaseFile


@dataclass(frozen=True)
class Invalid:
    report: DataQualityReport


Validation = Valid | Invalid


class DataValidator(ABC):
    """Checks a case file and reports its data quality issues."""

    @abstractmethod
    async def check(self, case_file: CaseFile) -> Validation:
        """Return ``Valid`` or ``Invalid`` carrying the quality report."""


class DefaultDataValidator(DataValidator):
    """Rule-based validator for the parts of a case file intake understands.

    When a ``catalog`` is given, gene codings that the catalog cannot
    complete are reported as warnings.
    """

    def __init__(self, catalog: GeneCatalog | None = None) -> None:
        self.catalog = catalog

    async def check(self, case_file: CaseFile) -> Validation:
        issues = self.issues_of(case_file)
        if not issues:
            return Valid(case_file)
        return Invalid(DataQualityReport(patient=case_file.patient_id, issues=tuple(issues)))

    def issues_of(self, case_file: CaseFile) -> list[Issue]:
        issues: list[Issue] = []
        issues.extend(self._check_patient(case_file))
        issues.extend(self._check_diagnoses(case_file))
        issues.extend(self._check_ngs_reports(case_file))
        return issues

    def _check_patient(self, case_file: CaseFile) -> list[Issue]:
        patient = case_file.patient
        issues: list[Issue] = []

        if not patient.id.strip():
            issues.append(_issue(Severity.FATAL, "Missing patient ID", "Patient", patient.id, "id"))
            return issues

        if patient.birth_date is None:
            issues.append(
                _issue(Severity.ERROR, "Missing birth date", "Patient", patient.id, "birthDate")
            )
        elif patient.date_of_death is not None and patient.date_of_death < patient.birth_date:
            issues.append(
                _issue(
                    Severity.ERROR,
                    f"Date of death {patient.date_of_death} precedes birth date {patient.birth_date}",
                    "Patient",
                    patient.id,
                    "dateOfDeath",
                )
            )

        if patient.gender is Gender.UNKNOWN:
            issues.append(_issue(Severity.WARNING, "Gender unknown", "Patient", patient.id, "gender"))

        return issues

    def _check_diagnoses(self, case_file: CaseFile) -> list[Issue]:
        patient_id = case_file.patient_id
        if not case_file.diagnoses:
            return [_issue(Severity.WARNING, "Missing diagnoses", "MTBFile", patient_id, "diagnoses")]

        issues: list[Issue] = []
        for diagnosis in case_file.diagnoses:
            if diagnosis.patient != patient_id:
                issues.append(
                    _issue(
                        Severity.FATAL,
                        f"Diagnosis refers to a different patient ({diagnosis.patient})",
                        "Diagnosis",
                        diagnosis.id,
                        "patient",
                    )
                )
            if not diagnosis.icd10:
                issues.append(
                    _issue(Severity.ERROR, "Missing ICD-10 code", "Diagnosis", diagnosis.id, "icd10")
                )
            elif not _ICD10_RE.match(diagnosis.icd10):
                issues.append(
                    _issue(
                        Severity.WARNING,
                        f"Invalid ICD-10 code {diagnosis.icd10}",
                        "Diagnosis",
                        diagnosis.id,
                        "icd10",
                    )
                )
        return issues

    def _check_ngs_reports(self, case_file: CaseFile) -> list[Issue]:
        patient_id = case_file.patient_id
        if not case_file.ngs_reports:
            return [_issue(Severity.INFO, "No NGS reports", "MTBFile", patient_id, "ngsReports")]

        issues: list[Issue] = []
        for report in case_file.ngs_reports:
            if report.patient != patient_id:
                issues.append(
                    _issue(
                        Severity.FATAL,
                        f"NGS report refers to a different patient ({report.patient})",
                        "SomaticNGSReport",
                        report.id,
                        "patient",
                    )
                )
            if report.tumor_cell_content is not None and not 0.0 <= report.tumor_cell_content <= 1.0:
                issues.append(
                    _issue(
                        Severity.ERROR,
                        f"Tumor cell content {report.tumor_cell_content} not in [0, 1]",
                        "SomaticNGSReport",
                        report.id,
                        "tumorCellContent",
                    )
                )

            for snv in report.simple_variants:
                if snv.allelic_frequency is not None and not 0.0 <= snv.allelic_frequency <= 1.0:
                    issues.append(
                        _issue(
                            Severity.ERROR,
                            f"Allelic frequency {snv.allelic_frequency} not in [0, 1]",
                            "SimpleVariant",
                            snv.id,
                            "allelicFrequency",
                        )
                    )
                if snv.gene is None:
                    issues.append(
                        _issue(Severity.WARNING, "Missing gene", "SimpleVariant", snv.id, "gene")
                    )
                else:
                    issues.extend(self._check_gene(snv.gene, "SimpleVariant", snv.id, "gene"))

            for cnv in report.copy_number_variants:
                for gene in cnv.reported_affected_genes:
                    issues.extend(
                        self._check_gene(gene, "CNV", cnv.id, "reportedAffectedGenes")
                    )
                for gene in cnv.cn_neutral_loh:
                    issues.extend(
                        self._check_gene(gene, "CNV", cnv.id, "copyNumberNeutralLoH")
                    )

        return issues

    def _check_gene(
        self,
        coding: GeneCoding,
        entry_type: str,
        entry_id: str,
        attribute: str,
    ) -> list[Issue]:
        if self.catalog is None:
            return []
        if self.catalog.complete(coding) is not None:
            return []
        label = coding.symbol or coding.hgnc_id or "<empty>"
        return [
            _issue(Severity.WARNING, f"Unknown gene {label}", entry_type, entry_id, attribute)
        ]


def _issue(severity: Severity, message: str, entry_type: str, entry_id: str, attribute: str) -> Issue:
    return Issue(
        severity=severity,
        message=message,
        location=IssueLocation(entry_type=entry_type, entry_id=entry_id, attribute=attribute),
    )
