"""Local holding storage composed of the three per-patient keyed stores."""

from __future__ import annotations

from pathlib import Path

from mtbintake.concurrency import join_all
from mtbintake.models import CaseFile, Patient
from mtbintake.quality import DataQualityReport
from mtbintake.storage.base import KeyedStore, Predicate
from mtbintake.storage.duckdb_store import DuckDBDatabase, DuckDBKeyedStore
from mtbintake.storage.memory import InMemoryKeyedStore


class LocalDataFacade:
    """Coordinate case file, patient and quality report stores by patient id.

    Multi-store writes are concurrent but not atomic: if one store fails the
    others keep their write.
    """

    def __init__(
        self,
        *,
        case_files: KeyedStore[CaseFile],
        patients: KeyedStore[Patient],
        reports: KeyedStore[DataQualityReport],
        database: DuckDBDatabase | None = None,
    ) -> None:
        self.case_files = case_files
        self.patients_store = patients
        self.reports = reports
        self.database = database

    @classmethod
    def in_memory(cls) -> "LocalDataFacade":
        return cls(
            case_files=InMemoryKeyedStore(lambda case_file: case_file.patient_id),
            patients=InMemoryKeyedStore(lambda patient: patient.id),
            reports=InMemoryKeyedStore(lambda report: report.patient),
        )

    @classmethod
    def duckdb(cls, db_path: str | Path) -> "LocalDataFacade":
        database = DuckDBDatabase(db_path)
        return cls(
            case_files=DuckDBKeyedStore(
                database=database,
                table_name="case_files",
                key_of=lambda case_file: case_file.patient_id,
                to_payload=CaseFile.to_dict,
                from_payload=CaseFile.from_dict,
            ),
            patients=DuckDBKeyedStore(
                database=database,
                table_name="patients",
                key_of=lambda patient: patient.id,
                to_payload=Patient.to_dict,
                from_payload=Patient.from_dict,
            ),
            reports=DuckDBKeyedStore(
                database=database,
                table_name="data_quality_reports",
                key_of=lambda report: report.patient,
                to_payload=DataQualityReport.to_dict,
                from_payload=DataQualityReport.from_dict,
            ),
            database=database,
        )

    def close(self) -> None:
        if self.database is not None:
            self.database.close()

    async def save(self, case_file: CaseFile) -> CaseFile:
        await join_all(
            self.case_files.save(case_file),
            self.patients_store.save(case_file.patient),
        )
        return case_file

    async def save_report(self, report: DataQualityReport) -> DataQualityReport:
        return await self.reports.save(report)

    async def delete_all(self, patient_id: str) -> CaseFile | None:
        """Delete every local record of ``patient_id``; return the prior case file."""

        deleted, _, _ = await join_all(
            self.case_files.delete(patient_id),
            self.patients_store.delete(patient_id),
            self.reports.delete(patient_id),
        )
        return deleted

    async def case_file(self, patient_id: str) -> CaseFile | None:
        return await self.case_files.get(patient_id)

    async def quality_report(self, patient_id: str) -> DataQualityReport | None:
        return await self.reports.get(patient_id)

    async def patients(self, predicate: Predicate[Patient] = lambda _: True) -> list[Patient]:
        return await self.patients_store.query(predicate)

    async def quality_reports(
        self,
        predicate: Predicate[DataQualityReport] = lambda _: True,
    ) -> list[DataQualityReport]:
        return await self.reports.query(predicate)
