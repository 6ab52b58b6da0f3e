import json
import subprocess
import sys
from pathlib import Path


def _write_case_file(
    path: Path,
    patient_id: str,
    *,
    diagnosis_patient: str | None = None,
    **patient_fields,
) -> Path:
    patient = {"id": patient_id, "gender": "female", "birthDate": "1968-11-30"}
    patient.update(patient_fields)
    diagnosis_patient = diagnosis_patient or patient_id
    path.write_text(
        json.dumps(
            {
                "patient": patient,
                "diagnoses": [{"id": f"{patient_id}-D1", "patient": diagnosis_patient, "icd10": "C50.9"}],
                "ngsReports": [
                    {
                        "id": f"{patient_id}-R1",
                        "patient": patient_id,
                        "tumorCellContent": 0.7,
                        "simpleVariants": [{"id": "SNV1", "gene": {"symbol": "brca1"}}],
                    }
                ],
            }
        )
    )
    return path


def _write_config(tmp_path: Path) -> Path:
    (tmp_path / "genes.json").write_text(json.dumps([{"hgnc_id": "HGNC:1100", "symbol": "BRCA1"}]))
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
    return config_path


def _run(repo_root: Path, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, *args],
        cwd=repo_root,
        text=True,
        capture_output=True,
        check=False,
    )


def test_run_intake_routes_uploads_and_lists_held_patients(tmp_path: Path) -> None:
    repo_root = Path(__file__).resolve().parents[1]
    config_path = _write_config(tmp_path)

    accepted = _write_case_file(tmp_path / "accepted.json", "P1")
    held = _write_case_file(tmp_path / "held.json", "P2", birthDate=None)
    rejected = _write_case_file(tmp_path / "rejected.json", "P3", diagnosis_patient="P9")

    upload = _run(
        repo_root,
        "scripts/run_intake.py",
        "--config",
        str(config_path),
        "upload",
        str(accepted),
        str(held),
        str(rejected),
    )

    assert upload.returncode == 1, upload.stderr
    summary = json.loads(upload.stdout)
    assert summary["failed"] == 1
    assert [result["outcome"] for result in summary["results"]] == [
        "Imported",
        "IssuesDetected",
        "Rejected",
    ]

    envelopes = [json.loads(path.read_text()) for path in (tmp_path / "outbox").glob("*.json")]
    assert [envelope["patient"] for envelope in envelopes] == ["P1"]
    forwarded_gene = envelopes[0]["payload"]["ngsReports"][0]["simpleVariants"][0]["gene"]
    assert forwarded_gene == {"hgncId": "HGNC:1100", "symbol": "BRCA1"}
    assert envelopes[0]["payload"]["patient"]["managingSite"] == "Tuebingen"

    listing = _run(
        repo_root,
        "scripts/list_incomplete_patients.py",
        "--config",
        str(config_path),
        "--format",
        "json",
    )
    assert listing.returncode == 0, listing.stderr
    rows = json.loads(listing.stdout)
    assert [row["patient_id"] for row in rows] == ["P2"]
    assert rows[0]["birth_date"] == "not-available"
    assert rows[0]["errors"] == 1

    delete = _run(repo_root, "scripts/run_intake.py", "--config", str(config_path), "delete", "P2")
    assert delete.returncode == 0, delete.stderr
    assert json.loads(delete.stdout)["results"][0]["outcome"] == "Deleted"

    after = _run(
        repo_root,
        "scripts/list_incomplete_patients.py",
        "--config",
        str(config_path),
    )
    assert after.returncode == 0, after.stderr
    assert "No patients with data quality issues." in after.stdout
