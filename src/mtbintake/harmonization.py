"""Gene nomenclature catalog and harmonization of NGS report gene codings."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path

import pandas as pd

from mtbintake.models import CaseFile, CopyNumberVariant, GeneCoding, SimpleVariant, SomaticNGSReport

logger = logging.getLogger(__name__)


def normalize_hgnc_id(value: str) -> str:
    """Return the ``HGNC:<n>`` form of an HGNC identifier."""

    cleaned = str(value).strip().upper()
    if cleaned.startswith("HGNC:"):
        cleaned = cleaned[len("HGNC:"):]
    return f"HGNC:{cleaned}"


class GeneCatalog(ABC):
    """Nomenclature catalog able to complete partial gene codings."""

    @abstractmethod
    def complete(self, partial: GeneCoding) -> GeneCoding | None:
        """Return the canonical coding for ``partial`` or ``None`` on a miss."""


@dataclass(frozen=True)
class GeneRecord:
    """One approved gene entry of the catalog."""

    hgnc_id: str
    symbol: str
    previous_symbols: tuple[str, ...] = ()
    alias_symbols: tuple[str, ...] = ()

    def coding(self) -> GeneCoding:
        return GeneCoding(hgnc_id=self.hgnc_id, symbol=self.symbol)


class InMemoryGeneCatalog(GeneCatalog):
    """Catalog backed by in-memory lookup tables.

    Codings carrying an HGNC id are resolved by id only. Symbol-only codings
    are matched case-insensitively against approved, then previous, then
    alias symbols.
    """

    def __init__(self, records: Iterable[GeneRecord]) -> None:
        self._by_id: dict[str, GeneRecord] = {}
        self._by_symbol: dict[str, GeneRecord] = {}
        self._by_previous: dict[str, GeneRecord] = {}
        self._by_alias: dict[str, GeneRecord] = {}

        for record in records:
            self._by_id[normalize_hgnc_id(record.hgnc_id)] = record
            self._by_symbol[record.symbol.upper()] = record
            for previous in record.previous_symbols:
                self._by_previous.setdefault(previous.upper(), record)
            for alias in record.alias_symbols:
                self._by_alias.setdefault(alias.upper(), record)

    def __len__(self) -> int:
        return len(self._by_id)

    def complete(self, partial: GeneCoding) -> GeneCoding | None:
        if partial.hgnc_id:
            record = self._by_id.get(normalize_hgnc_id(partial.hgnc_id))
            return record.coding() if record is not None else None

        if partial.symbol:
            key = partial.symbol.strip().upper()
            for table in (self._by_symbol, self._by_previous, self._by_alias):
                record = table.get(key)
                if record is not None:
                    return record.coding()

        return None

    @classmethod
    def from_json(cls, json_path: str | Path) -> "InMemoryGeneCatalog":
        """Build a catalog from a JSON list.

        Expected format:
        ``[{"hgnc_id": "HGNC:1100", "symbol": "BRCA1", "previous_symbols": [], "alias_symbols": []}]``.
        """

        payload = json.loads(Path(json_path).read_text())
        return cls(
            GeneRecord(
                hgnc_id=normalize_hgnc_id(item["hgnc_id"]),
                symbol=str(item["symbol"]).strip(),
                previous_symbols=tuple(item.get("previous_symbols", ())),
                alias_symbols=tuple(item.get("alias_symbols", ())),
            )
            for item in payload
        )

    @classmethod
    def from_hgnc_tsv(cls, tsv_path: str | Path) -> "InMemoryGeneCatalog":
        """Build a catalog from an HGNC complete-set TSV export.

        Uses the ``hgnc_id``, ``symbol``, ``prev_symbol`` and ``alias_symbol``
        columns; multi-valued cells are ``|``-separated.
        """

        frame = pd.read_csv(
            tsv_path,
            sep="\t",
            dtype=str,
            usecols=lambda column: column in {"hgnc_id", "symbol", "prev_symbol", "alias_symbol"},
        )
        frame = frame.dropna(subset=["hgnc_id", "symbol"])

        records = []
        for row in frame.to_dict(orient="records"):
            records.append(
                GeneRecord(
                    hgnc_id=normalize_hgnc_id(row["hgnc_id"]),
                    symbol=row["symbol"].strip(),
                    previous_symbols=_split_multi(row.get("prev_symbol")),
                    alias_symbols=_split_multi(row.get("alias_symbol")),
                )
            )
        return cls(records)

    @classmethod
    def from_path(cls, path: str | Path) -> "InMemoryGeneCatalog":
        """Load from ``.json`` or HGNC ``.tsv``/``.txt`` based on the suffix."""

        resolved = Path(path)
        if not resolved.exists():
            raise FileNotFoundError(f"Gene catalog not found: {resolved}")
        if resolved.suffix.lower() == ".json":
            return cls.from_json(resolved)
        return cls.from_hgnc_tsv(resolved)


def _split_multi(value: object) -> tuple[str, ...]:
    if value is None or pd.isna(value):
        return ()
    return tuple(item.strip() for item in str(value).split("|") if item.strip())


@dataclass(frozen=True)
class HarmonizationEvent:
    """Diagnostic emitted when a coding could not be completed."""

    report_id: str
    entry_id: str
    attribute: str
    coding: GeneCoding
    message: str


@dataclass(frozen=True)
class HarmonizationResult:
    case_file: CaseFile
    events: tuple[HarmonizationEvent, ...] = ()


class GeneHarmonizer:
    """Complete gene codings of a case file's NGS reports against a catalog.

    Harmonization is best effort: a catalog miss leaves the coding as
    uploaded and records a ``HarmonizationEvent``. It never raises and is
    idempotent for codings the catalog already knows.
    """

    def __init__(self, catalog: GeneCatalog) -> None:
        self.catalog = catalog

    def harmonize(self, case_file: CaseFile) -> HarmonizationResult:
        if not case_file.ngs_reports:
            return HarmonizationResult(case_file=case_file)

        events: list[HarmonizationEvent] = []
        reports = tuple(self._harmonize_report(report, events) for report in case_file.ngs_reports)
        return HarmonizationResult(
            case_file=replace(case_file, ngs_reports=reports),
            events=tuple(events),
        )

    def _harmonize_report(
        self,
        report: SomaticNGSReport,
        events: list[HarmonizationEvent],
    ) -> SomaticNGSReport:
        logger.info("Harmonizing gene IDs/symbols in NGS report %s", report.id)

        simple_variants = tuple(
            self._harmonize_simple_variant(report.id, snv, events) for snv in report.simple_variants
        )
        copy_number_variants = tuple(
            self._harmonize_copy_number_variant(report.id, cnv, events)
            for cnv in report.copy_number_variants
        )
        return replace(
            report,
            simple_variants=simple_variants,
            copy_number_variants=copy_number_variants,
        )

    def _harmonize_simple_variant(
        self,
        report_id: str,
        snv: SimpleVariant,
        events: list[HarmonizationEvent],
    ) -> SimpleVariant:
        if snv.gene is None:
            return snv
        coding = self._complete(report_id, snv.id, "gene", snv.gene, events)
        return snv if coding == snv.gene else replace(snv, gene=coding)

    def _harmonize_copy_number_variant(
        self,
        report_id: str,
        cnv: CopyNumberVariant,
        events: list[HarmonizationEvent],
    ) -> CopyNumberVariant:
        # Two independent passes: misses in one list do not affect the other.
        affected = tuple(
            self._complete(report_id, cnv.id, "reportedAffectedGenes", gene, events)
            for gene in cnv.reported_affected_genes
        )
        neutral_loh = tuple(
            self._complete(report_id, cnv.id, "copyNumberNeutralLoH", gene, events)
            for gene in cnv.cn_neutral_loh
        )
        return replace(cnv, reported_affected_genes=affected, cn_neutral_loh=neutral_loh)

    def _complete(
        self,
        report_id: str,
        entry_id: str,
        attribute: str,
        coding: GeneCoding,
        events: list[HarmonizationEvent],
    ) -> GeneCoding:
        try:
            resolved = self.catalog.complete(coding)
        except Exception as exc:  # catalog failures degrade to a miss
            resolved = None
            message = f"Gene catalog lookup failed: {exc}"
        else:
            message = "No catalog match for gene coding"

        if resolved is not None:
            return resolved

        logger.warning(
            "%s in NGS report %s, %s.%s: hgnc_id=%s symbol=%s",
            message,
            report_id,
            entry_id,
            attribute,
            coding.hgnc_id,
            coding.symbol,
        )
        events.append(
            HarmonizationEvent(
                report_id=report_id,
                entry_id=entry_id,
                attribute=attribute,
                coding=coding,
                message=message,
            )
        )
        return coding
