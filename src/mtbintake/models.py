"""Case file data model handled by the intake core.

Only the parts of an MTB file that intake reasons about are typed here. Any
further record sections travel through ``CaseFile.other`` untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Mapping


def _parse_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


class Gender(str, Enum):
    """Administrative gender of a patient."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @property
    def display(self) -> str:
        return _GENDER_DISPLAY[self]


_GENDER_DISPLAY = {
    Gender.MALE: "Male",
    Gender.FEMALE: "Female",
    Gender.OTHER: "Other",
    Gender.UNKNOWN: "Unknown",
}


@dataclass(frozen=True)
class GeneCoding:
    """HGNC gene identification; either part may be missing on upload."""

    hgnc_id: str | None = None
    symbol: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.hgnc_id) and bool(self.symbol)

    def to_dict(self) -> dict[str, Any]:
        return {"hgncId": self.hgnc_id, "symbol": self.symbol}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GeneCoding":
        return cls(hgnc_id=payload.get("hgncId"), symbol=payload.get("symbol"))


@dataclass(frozen=True)
class Patient:
    """Patient projection stored alongside each case file."""

    id: str
    gender: Gender = Gender.UNKNOWN
    birth_date: date | None = None
    date_of_death: date | None = None
    managing_site: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "gender": self.gender.value,
            "birthDate": _format_date(self.birth_date),
            "dateOfDeath": _format_date(self.date_of_death),
            "managingSite": self.managing_site,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Patient":
        return cls(
            id=str(payload["id"]),
            gender=Gender(payload.get("gender", Gender.UNKNOWN.value)),
            birth_date=_parse_date(payload.get("birthDate")),
            date_of_death=_parse_date(payload.get("dateOfDeath")),
            managing_site=payload.get("managingSite"),
        )


@dataclass(frozen=True)
class Diagnosis:
    id: str
    patient: str
    icd10: str | None = None
    recorded_on: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "patient": self.patient,
            "icd10": self.icd10,
            "recordedOn": _format_date(self.recorded_on),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Diagnosis":
        return cls(
            id=str(payload["id"]),
            patient=str(payload["patient"]),
            icd10=payload.get("icd10"),
            recorded_on=_parse_date(payload.get("recordedOn")),
        )


@dataclass(frozen=True)
class SimpleVariant:
    id: str
    chromosome: str | None = None
    gene: GeneCoding | None = None
    dna_change: str | None = None
    amino_acid_change: str | None = None
    allelic_frequency: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chromosome": self.chromosome,
            "gene": self.gene.to_dict() if self.gene is not None else None,
            "dnaChange": self.dna_change,
            "aminoAcidChange": self.amino_acid_change,
            "allelicFrequency": self.allelic_frequency,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SimpleVariant":
        gene = payload.get("gene")
        return cls(
            id=str(payload["id"]),
            chromosome=payload.get("chromosome"),
            gene=GeneCoding.from_dict(gene) if gene else None,
            dna_change=payload.get("dnaChange"),
            amino_acid_change=payload.get("aminoAcidChange"),
            allelic_frequency=_parse_float(payload.get("allelicFrequency")),
        )


class CNVType(str, Enum):
    HIGH_LEVEL_GAIN = "high-level-gain"
    LOW_LEVEL_GAIN = "low-level-gain"
    LOSS = "loss"


@dataclass(frozen=True)
class CopyNumberVariant:
    """Copy number variant with its two independently coded gene lists."""

    id: str
    type: CNVType
    reported_affected_genes: tuple[GeneCoding, ...] = ()
    cn_neutral_loh: tuple[GeneCoding, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "reportedAffectedGenes": [gene.to_dict() for gene in self.reported_affected_genes],
            "copyNumberNeutralLoH": [gene.to_dict() for gene in self.cn_neutral_loh],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CopyNumberVariant":
        return cls(
            id=str(payload["id"]),
            type=CNVType(payload["type"]),
            reported_affected_genes=tuple(
                GeneCoding.from_dict(gene) for gene in payload.get("reportedAffectedGenes", [])
            ),
            cn_neutral_loh=tuple(
                GeneCoding.from_dict(gene) for gene in payload.get("copyNumberNeutralLoH", [])
            ),
        )


@dataclass(frozen=True)
class SomaticNGSReport:
    id: str
    patient: str
    specimen: str | None = None
    issued_on: date | None = None
    tumor_cell_content: float | None = None
    simple_variants: tuple[SimpleVariant, ...] = ()
    copy_number_variants: tuple[CopyNumberVariant, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "patient": self.patient,
            "specimen": self.specimen,
            "issuedOn": _format_date(self.issued_on),
            "tumorCellContent": self.tumor_cell_content,
            "simpleVariants": [snv.to_dict() for snv in self.simple_variants],
            "copyNumberVariants": [cnv.to_dict() for cnv in self.copy_number_variants],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SomaticNGSReport":
        return cls(
            id=str(payload["id"]),
            patient=str(payload["patient"]),
            specimen=payload.get("specimen"),
            issued_on=_parse_date(payload.get("issuedOn")),
            tumor_cell_content=_parse_float(payload.get("tumorCellContent")),
            simple_variants=tuple(
                SimpleVariant.from_dict(snv) for snv in payload.get("simpleVariants", [])
            ),
            copy_number_variants=tuple(
                CopyNumberVariant.from_dict(cnv) for cnv in payload.get("copyNumberVariants", [])
            ),
        )


_CASE_FILE_SECTIONS = {"patient", "diagnoses", "ngsReports"}


@dataclass(frozen=True)
class CaseFile:
    """Aggregate clinical record ("MTB file") for one patient.

    ``other`` carries record sections the intake core does not interpret
    (care plans, therapies, specimens, ...) so they survive storage and
    forwarding unchanged.
    """

    patient: Patient
    diagnoses: tuple[Diagnosis, ...] = ()
    ngs_reports: tuple[SomaticNGSReport, ...] = ()
    other: Mapping[str, Any] = field(default_factory=dict)

    @property
    def patient_id(self) -> str:
        return self.patient.id

    def with_managing_site(self, site: str) -> "CaseFile":
        """Return a copy whose patient is managed by ``site``."""

        return replace(self, patient=replace(self.patient, managing_site=site))

    def to_dict(self) -> dict[str, Any]:
        payload = dict(self.other)
        payload.update(
            {
                "patient": self.patient.to_dict(),
                "diagnoses": [diagnosis.to_dict() for diagnosis in self.diagnoses],
                "ngsReports": [report.to_dict() for report in self.ngs_reports],
            }
        )
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CaseFile":
        return cls(
            patient=Patient.from_dict(payload["patient"]),
            diagnoses=tuple(Diagnosis.from_dict(item) for item in payload.get("diagnoses", [])),
            ngs_reports=tuple(
                SomaticNGSReport.from_dict(item) for item in payload.get("ngsReports", [])
            ),
            other={key: value for key, value in payload.items() if key not in _CASE_FILE_SECTIONS},
        )
