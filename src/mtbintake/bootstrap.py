"""Assemble an ``IntakeService`` from an ``IntakeConfig``."""

from __future__ import annotations

from mtbintake.config import ForwarderConfig, IntakeConfig, StorageConfig
from mtbintake.forwarding import Forwarder, OutboxForwarder, RecordingForwarder
from mtbintake.harmonization import GeneCatalog, GeneHarmonizer, InMemoryGeneCatalog
from mtbintake.service import IntakeService
from mtbintake.storage import LocalDataFacade
from mtbintake.validation import DefaultDataValidator


def build_local_data(config: StorageConfig) -> LocalDataFacade:
    if config.type == "memory":
        return LocalDataFacade.in_memory()
    if config.type == "duckdb":
        if "db_path" not in config.params:
            raise ValueError("duckdb storage requires a 'db_path' param")
        return LocalDataFacade.duckdb(config.params["db_path"])
    raise ValueError(f"Unknown storage type: {config.type}")


def build_forwarder(config: ForwarderConfig) -> Forwarder:
    if config.type == "outbox":
        return OutboxForwarder(**config.params)
    if config.type == "recording":
        return RecordingForwarder(**config.params)
    raise ValueError(f"Unknown forwarder type: {config.type}")


def build_catalog(config: IntakeConfig) -> GeneCatalog:
    if config.catalog_path is None:
        return InMemoryGeneCatalog([])
    return InMemoryGeneCatalog.from_path(config.catalog_path)


def build_intake_service(config: IntakeConfig) -> IntakeService:
    catalog = build_catalog(config)
    validator = DefaultDataValidator(catalog if config.catalog_path is not None else None)
    return IntakeService(
        settings=config.settings,
        validator=validator,
        harmonizer=GeneHarmonizer(catalog),
        local_data=build_local_data(config.storage),
        forwarder=build_forwarder(config.forwarder),
    )
