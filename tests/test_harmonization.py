import json
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from mtbintake.harmonization import (  # noqa: E402
    GeneCatalog,
    GeneHarmonizer,
    GeneRecord,
    InMemoryGeneCatalog,
    normalize_hgnc_id,
)
from mtbintake.models import (  # noqa: E402
    CaseFile,
    CNVType,
    CopyNumberVariant,
    GeneCoding,
    Patient,
    SimpleVariant,
    SomaticNGSReport,
)


def _catalog() -> InMemoryGeneCatalog:
    return InMemoryGeneCatalog(
        [
            GeneRecord(hgnc_id="HGNC:1100", symbol="BRCA1"),
            GeneRecord(
                hgnc_id="HGNC:3430",
                symbol="ERBB2",
                previous_symbols=("NGL",),
                alias_symbols=("HER2", "NEU"),
            ),
            GeneRecord(hgnc_id="HGNC:1787", symbol="CDKN2A"),
        ]
    )


def _case_file(*reports: SomaticNGSReport) -> CaseFile:
    return CaseFile(patient=Patient(id="P1"), ngs_reports=reports)


class _ExplodingCatalog(GeneCatalog):
    def complete(self, partial):
        raise ConnectionError("catalog offline")


def test_catalog_completes_from_id_or_symbol() -> None:
    catalog = _catalog()

    assert catalog.complete(GeneCoding(hgnc_id="1100")) == GeneCoding("HGNC:1100", "BRCA1")
    assert catalog.complete(GeneCoding(symbol="brca1")) == GeneCoding("HGNC:1100", "BRCA1")
    assert catalog.complete(GeneCoding(symbol="HER2")) == GeneCoding("HGNC:3430", "ERBB2")
    assert catalog.complete(GeneCoding(symbol="NGL")) == GeneCoding("HGNC:3430", "ERBB2")
    assert catalog.complete(GeneCoding(symbol="NOPE")) is None
    assert catalog.complete(GeneCoding()) is None


def test_catalog_resolves_by_id_only_when_id_present() -> None:
    # A wrong id is a miss even if the symbol would match.
    assert _catalog().complete(GeneCoding(hgnc_id="HGNC:99999", symbol="BRCA1")) is None


def test_normalize_hgnc_id() -> None:
    assert normalize_hgnc_id("1100") == "HGNC:1100"
    assert normalize_hgnc_id(" hgnc:1100 ") == "HGNC:1100"


def test_harmonizes_simple_variants_and_both_cnv_gene_lists() -> None:
    report = SomaticNGSReport(
        id="R1",
        patient="P1",
        simple_variants=(
            SimpleVariant(id="SNV1", gene=GeneCoding(symbol="Her2")),
            SimpleVariant(id="SNV2"),
        ),
        copy_number_variants=(
            CopyNumberVariant(
                id="CNV1",
                type=CNVType.HIGH_LEVEL_GAIN,
                reported_affected_genes=(GeneCoding(hgnc_id="HGNC:1787"), GeneCoding(symbol="UNKNOWN1")),
                cn_neutral_loh=(GeneCoding(symbol="brca1"),),
            ),
        ),
    )

    result = GeneHarmonizer(_catalog()).harmonize(_case_file(report))
    harmonized = result.case_file.ngs_reports[0]

    assert harmonized.simple_variants[0].gene == GeneCoding("HGNC:3430", "ERBB2")
    assert harmonized.simple_variants[1].gene is None
    cnv = harmonized.copy_number_variants[0]
    assert cnv.reported_affected_genes == (
        GeneCoding("HGNC:1787", "CDKN2A"),
        GeneCoding(symbol="UNKNOWN1"),
    )
    # The miss in the affected genes list does not block the LOH list.
    assert cnv.cn_neutral_loh == (GeneCoding("HGNC:1100", "BRCA1"),)

    assert len(result.events) == 1
    event = result.events[0]
    assert (event.report_id, event.entry_id, event.attribute) == ("R1", "CNV1", "reportedAffectedGenes")


def test_harmonization_miss_keeps_coding_and_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    report = SomaticNGSReport(
        id="R1",
        patient="P1",
        simple_variants=(SimpleVariant(id="SNV1", gene=GeneCoding(symbol="FOO")),),
    )

    with caplog.at_level(logging.WARNING, logger="mtbintake.harmonization"):
        result = GeneHarmonizer(_catalog()).harmonize(_case_file(report))

    assert result.case_file.ngs_reports[0].simple_variants[0].gene == GeneCoding(symbol="FOO")
    assert "No catalog match" in caplog.text


def test_harmonization_is_idempotent() -> None:
    harmonizer = GeneHarmonizer(_catalog())
    codings = [
        GeneCoding(symbol="her2"),
        GeneCoding(hgnc_id="HGNC:1100"),
        GeneCoding("HGNC:1787", "CDKN2A"),
        GeneCoding(symbol="MISSING"),
    ]
    report = SomaticNGSReport(
        id="R1",
        patient="P1",
        simple_variants=tuple(SimpleVariant(id=f"SNV{i}", gene=coding) for i, coding in enumerate(codings)),
    )

    once = harmonizer.harmonize(_case_file(report)).case_file
    twice = harmonizer.harmonize(once).case_file

    assert once == twice


def test_catalog_failures_degrade_to_misses() -> None:
    report = SomaticNGSReport(
        id="R1",
        patient="P1",
        simple_variants=(SimpleVariant(id="SNV1", gene=GeneCoding(symbol="BRCA1")),),
    )

    result = GeneHarmonizer(_ExplodingCatalog()).harmonize(_case_file(report))

    assert result.case_file.ngs_reports[0].simple_variants[0].gene == GeneCoding(symbol="BRCA1")
    assert "catalog offline" in result.events[0].message


def test_case_file_without_reports_is_returned_as_is() -> None:
    case_file = _case_file()
    result = GeneHarmonizer(_catalog()).harmonize(case_file)

    assert result.case_file is case_file
    assert result.events == ()


def test_catalog_loads_from_json(tmp_path: Path) -> None:
    path = tmp_path / "genes.json"
    path.write_text(
        json.dumps([{"hgnc_id": "11998", "symbol": "TP53", "alias_symbols": ["P53", "LFS1"]}])
    )

    catalog = InMemoryGeneCatalog.from_path(path)

    assert len(catalog) == 1
    assert catalog.complete(GeneCoding(symbol="lfs1")) == GeneCoding("HGNC:11998", "TP53")


def test_catalog_loads_from_hgnc_tsv(tmp_path: Path) -> None:
    path = tmp_path / "hgnc_complete_set.txt"
    path.write_text(
        "hgnc_id\tsymbol\tname\talias_symbol\tprev_symbol\n"
        "HGNC:3236\tEGFR\tepidermal growth factor receptor\tERBB1|HER1\tERBB\n"
        "HGNC:1097\tBRAF\tB-Raf proto-oncogene\t\t\n"
    )

    catalog = InMemoryGeneCatalog.from_path(path)

    assert len(catalog) == 2
    assert catalog.complete(GeneCoding(symbol="HER1")) == GeneCoding("HGNC:3236", "EGFR")
    assert catalog.complete(GeneCoding(symbol="ERBB")) == GeneCoding("HGNC:3236", "EGFR")
    assert catalog.complete(GeneCoding(hgnc_id="HGNC:1097")) == GeneCoding("HGNC:1097", "BRAF")


def test_missing_catalog_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        InMemoryGeneCatalog.from_path(tmp_path / "absent.json")
