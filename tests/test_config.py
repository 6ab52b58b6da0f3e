import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from mtbintake import IntakeConfigLoader, IntakeSettings, build_intake_service  # noqa: E402
from mtbintake.forwarding import OutboxForwarder, RecordingForwarder  # noqa: E402
from mtbintake.storage import DuckDBKeyedStore, InMemoryKeyedStore  # noqa: E402


def test_loader_resolves_relative_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "intake.json"
    config_path.write_text(
        json.dumps(
            {
                "site": "Tuebingen",
                "storage": {"type": "duckdb", "params": {"db_path": "data/local.duckdb"}},
                "forwarder": {"type": "outbox", "params": {"outbox_dir": "outbox"}},
                "catalog_path": "genes.json",
            }
        )
    )

    config = IntakeConfigLoader().load(config_path)

    assert config.settings == IntakeSettings(site="Tuebingen")
    assert config.storage.params["db_path"] == tmp_path / "data" / "local.duckdb"
    assert config.forwarder.params["outbox_dir"] == tmp_path / "outbox"
    assert config.catalog_path == tmp_path / "genes.json"


def test_loader_defaults_to_ephemeral_collaborators() -> None:
    config = IntakeConfigLoader().parse({"site": "Freiburg"})

    assert config.storage.type == "memory"
    assert config.forwarder.type == "recording"
    assert config.catalog_path is None


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"site": "  "},
        {"site": "X", "storage": {"type": "postgres"}},
        {"site": "X", "forwarder": {"type": "kafka"}},
        {"site": "X", "storage": {"type": "duckdb", "params": []}},
    ],
)
def test_loader_rejects_invalid_config(payload) -> None:
    with pytest.raises(ValueError):
        IntakeConfigLoader().parse(payload)


def test_loader_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        IntakeConfigLoader().load(tmp_path / "missing.json")


def test_settings_require_a_site() -> None:
    with pytest.raises(ValueError):
        IntakeSettings(site="")


def test_build_intake_service_wires_configured_collaborators(tmp_path: Path) -> None:
    (tmp_path / "genes.json").write_text(json.dumps([{"hgnc_id": "HGNC:1100", "symbol": "BRCA1"}]))
    duckdb_config = IntakeConfigLoader().parse(
        {
            "site": "Tuebingen",
            "storage": {"type": "duckdb", "params": {"db_path": "local.duckdb"}},
            "forwarder": {"type": "outbox", "params": {"outbox_dir": "outbox"}},
            "catalog_path": "genes.json",
        },
        base_dir=tmp_path,
    )
    service = build_intake_service(duckdb_config)

    assert service.settings.site == "Tuebingen"
    assert isinstance(service.local_data.case_files, DuckDBKeyedStore)
    assert isinstance(service.forwarder, OutboxForwarder)
    assert service.validator.catalog is not None

    memory_service = build_intake_service(IntakeConfigLoader().parse({"site": "Freiburg"}))
    assert isinstance(memory_service.local_data.case_files, InMemoryKeyedStore)
    assert isinstance(memory_service.forwarder, RecordingForwarder)
    assert memory_service.validator.catalog is None
