"""Intake command processor.

``IntakeService.process`` turns an ``Upload`` or ``Delete`` command into a
typed outcome. Uploads are validated, classified by their most severe issue
tier and then rejected, held locally, forwarded downstream, or both:

================  ==========================  ==================
class             side effects                outcome
================  ==========================  ==================
fatal present     none                        ``Rejected``
error present     store locally               ``IssuesDetected``
at most warnings  forward, then store         ``IssuesDetected``
valid             forward, then purge local   ``Imported``
================  ==========================  ==================

Stores and the forwarder are not coordinated transactionally. A failure
part way through leaves earlier writes applied and yields
``UnspecificError``; resubmitting the same upload is the recovery path.
Commands for the same patient are not serialized against each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mtbintake.concurrency import join_all
from mtbintake.config import IntakeSettings
from mtbintake.forwarding import DeleteMessage, Forwarder, UploadMessage
from mtbintake.harmonization import GeneHarmonizer
from mtbintake.models import CaseFile
from mtbintake.quality import DataQualityReport, SeverityClass, classify_report
from mtbintake.storage import LocalDataFacade
from mtbintake.validation import DataValidator, Invalid
from mtbintake.views import CaseFileView, PatientDataInfo, PatientFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Upload:
    case_file: CaseFile


@dataclass(frozen=True)
class Delete:
    patient_id: str


Command = Upload | Delete


class Outcome:
    """Base of all command outcomes."""

    is_error = False


class Response(Outcome):
    """Expected, successful handling of a command."""


class Failure(Outcome):
    """Command refused or failed."""

    is_error = True


@dataclass(frozen=True)
class Imported(Response):
    case_file: CaseFile


@dataclass(frozen=True)
class IssuesDetected(Response):
    report: DataQualityReport


@dataclass(frozen=True)
class Deleted(Response):
    patient_id: str


@dataclass(frozen=True)
class Rejected(Failure):
    report: DataQualityReport


@dataclass(frozen=True)
class UnspecificError(Failure):
    message: str


class IntakeService:
    """Route uploaded case files by data quality and answer read-model queries."""

    def __init__(
        self,
        *,
        settings: IntakeSettings,
        validator: DataValidator,
        harmonizer: GeneHarmonizer,
        local_data: LocalDataFacade,
        forwarder: Forwarder,
    ) -> None:
        self.settings = settings
        self.validator = validator
        self.harmonizer = harmonizer
        self.local_data = local_data
        self.forwarder = forwarder

    async def process(self, command: Command) -> Outcome:
        if isinstance(command, Upload):
            return await self._upload(command.case_file)
        if isinstance(command, Delete):
            return await self._delete(command.patient_id)
        raise TypeError(f"Unsupported intake command: {type(command).__name__}")

    async def _upload(self, uploaded: CaseFile) -> Outcome:
        logger.info("Handling case file upload for patient %s", uploaded.patient_id)
        case_file = uploaded.with_managing_site(self.settings.site)

        try:
            validation = await self.validator.check(case_file)

            if not isinstance(validation, Invalid):
                logger.info("No issues detected, forwarding data downstream")
                return await self._import(case_file)

            report = validation.report
            severity_class = classify_report(report)

            if severity_class is SeverityClass.FATAL_PRESENT:
                logger.error("FATAL issues detected, refusing upload for patient %s", case_file.patient_id)
                return Rejected(report)

            if severity_class is SeverityClass.ERROR_PRESENT:
                logger.warning("ERROR-level issues detected, storing case file and quality report locally")
                harmonized = self._harmonize(case_file)
                await join_all(
                    self.local_data.save(harmonized),
                    self.local_data.save_report(report),
                )
                return IssuesDetected(report)

            # AT_MOST_WARNINGS; ONLY_INFOS never gets here on its own (see quality).
            logger.info("At most WARNING-level issues detected, forwarding data and storing quality report")
            harmonized = self._harmonize(case_file)
            await self.forwarder.send(UploadMessage(harmonized))
            await join_all(
                self.local_data.save(harmonized),
                self.local_data.save_report(report),
            )
            return IssuesDetected(report)

        except Exception as exc:
            logger.exception("Upload for patient %s failed", uploaded.patient_id)
            return UnspecificError(_describe(exc))

    async def _import(self, case_file: CaseFile) -> Outcome:
        harmonized = self._harmonize(case_file)
        await self.forwarder.send(UploadMessage(harmonized))
        # The downstream copy is authoritative from here on.
        await self.local_data.delete_all(harmonized.patient_id)
        return Imported(harmonized)

    def _harmonize(self, case_file: CaseFile) -> CaseFile:
        result = self.harmonizer.harmonize(case_file)
        if result.events:
            logger.warning(
                "%d gene coding(s) of patient %s could not be harmonized",
                len(result.events),
                case_file.patient_id,
            )
        return result.case_file

    async def _delete(self, patient_id: str) -> Outcome:
        logger.info("Handling delete request for data of patient %s", patient_id)
        try:
            await join_all(
                self.local_data.delete_all(patient_id),
                self.forwarder.send(DeleteMessage(patient_id)),
            )
        except Exception as exc:
            logger.exception("Delete for patient %s failed", patient_id)
            return UnspecificError(_describe(exc))
        return Deleted(patient_id)

    async def case_file(self, patient_id: str) -> CaseFile | None:
        logger.info("Handling request for case file of patient %s", patient_id)
        return await self.local_data.case_file(patient_id)

    async def case_file_view(self, patient_id: str) -> CaseFileView | None:
        case_file = await self.case_file(patient_id)
        return CaseFileView.of(case_file) if case_file is not None else None

    async def quality_report(self, patient_id: str) -> DataQualityReport | None:
        logger.info("Handling request for quality report of patient %s", patient_id)
        return await self.local_data.quality_report(patient_id)

    async def patients_with_incomplete_data(
        self,
        criteria: PatientFilter | None = None,
    ) -> list[PatientDataInfo]:
        """List locally held patients whose report matches ``criteria``.

        Patients without a stored quality report are left out.
        """

        logger.info("Handling request for patients with data quality issues")
        criteria = criteria or PatientFilter()

        patients, reports = await join_all(
            self.local_data.patients(),
            self.local_data.quality_reports(),
        )
        reports_by_patient = {report.patient: report for report in reports}

        infos: list[PatientDataInfo] = []
        for patient in sorted(patients, key=lambda item: item.id):
            report = reports_by_patient.get(patient.id)
            if report is None or not criteria.matches(patient, report):
                continue
            infos.append(PatientDataInfo.of(patient, report))
        return infos

    def close(self) -> None:
        """Release local storage resources."""

        self.local_data.close()


def _describe(exc: Exception) -> str:
    message = str(exc)
    return message or type(exc).__name__
