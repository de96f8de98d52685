import asyncio
import json

import pytest
from typer.testing import CliRunner

import auditflow.persistence as persistence
from auditflow.cli import app
from auditflow.contracts import JobStatus
from auditflow.models import AutomationArtifact
from auditflow.persistence import InMemoryJobRepository, SQLiteJobRepository

from tests.fixtures.fakes import make_job, plan_dict, sample_workflow

runner = CliRunner()


@pytest.fixture
def repo(monkeypatch):
    repository = InMemoryJobRepository()
    monkeypatch.setattr(persistence, "_repository_instance", repository)
    return repository


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def test_validate_plan_accepts_and_rejects(tmp_path):
    good = _write(tmp_path, "good.json", plan_dict())
    result = runner.invoke(app, ["validate", "plan", str(good)])
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == {"valid": True, "errors": []}

    data = plan_dict()
    data["connections"].append({"from": "notify", "to": "stepY"})
    bad = _write(tmp_path, "bad.json", data)
    result = runner.invoke(app, ["validate", "plan", str(bad)])
    assert result.exit_code == 1
    assert "stepY" in result.stdout


def test_validate_workflow_strict_types(tmp_path):
    workflow = sample_workflow().to_wire()
    workflow["nodes"][1]["type"] = "n8n-nodes-base.teleport"
    path = _write(tmp_path, "workflow.json", workflow)

    strict = runner.invoke(app, ["validate", "workflow", str(path)])
    assert strict.exit_code == 1
    assert "teleport" in strict.stdout

    relaxed = runner.invoke(app, ["validate", "workflow", str(path), "--no-strict-types"])
    assert relaxed.exit_code == 0, relaxed.stdout


def test_unreadable_inputs_exit_with_error(tmp_path):
    missing = runner.invoke(app, ["validate", "plan", str(tmp_path / "nope.json")])
    assert missing.exit_code == 1
    assert "File not found" in missing.stdout

    broken = tmp_path / "broken.json"
    broken.write_text("{")
    result = runner.invoke(app, ["validate", "workflow", str(broken)])
    assert result.exit_code == 1
    assert "not valid JSON" in result.stdout

    listed = _write(tmp_path, "list.json", [1, 2])
    result = runner.invoke(app, ["validate", "plan", str(listed)])
    assert result.exit_code == 1
    assert "must contain a JSON object" in result.stdout


def test_analyze_prints_score_and_advice(tmp_path):
    path = _write(tmp_path, "plan.json", plan_dict())

    result = runner.invoke(app, ["analyze", str(path), "--industry", "insurance"])

    assert result.exit_code == 0, result.stdout
    assert "Complexity: complex" in result.stdout
    assert "- High-compliance industry: insurance" in result.stdout
    assert "## Best practices" in result.stdout


def test_job_list_and_show(repo):
    asyncio.run(repo.create_job(make_job(job_id="a")))
    asyncio.run(repo.create_job(make_job(job_id="b")))
    asyncio.run(repo.update_progress("b", 30, JobStatus.failed, "plan rejected"))

    listed = runner.invoke(app, ["job", "list"])
    assert listed.exit_code == 0, listed.stdout
    assert "a\tqueued\t0%" in listed.stdout
    assert "b\tfailed\t30%" in listed.stdout

    failed = runner.invoke(app, ["job", "list", "--status", "failed"])
    assert "a\t" not in failed.stdout

    shown = runner.invoke(app, ["job", "show", "b"])
    assert shown.exit_code == 0, shown.stdout
    assert "Job b: failed (30%)" in shown.stdout
    assert "Error: plan rejected" in shown.stdout

    missing = runner.invoke(app, ["job", "show", "zzz"])
    assert missing.exit_code == 1
    assert "Job not found" in missing.stdout


def test_job_list_empty(repo):
    result = runner.invoke(app, ["job", "list"])
    assert result.exit_code == 0
    assert "No jobs found" in result.stdout


def test_job_artifact_export(repo, tmp_path):
    workflow = sample_workflow().to_wire()
    asyncio.run(repo.create_job(make_job()))
    asyncio.run(
        repo.save_artifact(
            "job-1",
            AutomationArtifact(name="Ticket Triage", workflow_json=workflow, instructions="# Setup"),
        )
    )

    printed = runner.invoke(app, ["job", "artifact", "job-1"])
    assert printed.exit_code == 0, printed.stdout
    assert json.loads(printed.stdout)["name"] == "Ticket Triage"

    target = tmp_path / "out.json"
    written = runner.invoke(app, ["job", "artifact", "job-1", "--output", str(target)])
    assert written.exit_code == 0
    assert json.loads(target.read_text()) == workflow

    guide = runner.invoke(app, ["job", "artifact", "job-1", "--instructions"])
    assert guide.stdout.strip() == "# Setup"

    missing = runner.invoke(app, ["job", "artifact", "zzz"])
    assert missing.exit_code == 1
    assert "Artifact not found" in missing.stdout


def test_job_submit_registers_job(tmp_path, monkeypatch):
    db_path = tmp_path / "jobs.db"
    monkeypatch.setattr(persistence, "_repository_instance", None)
    monkeypatch.setenv("AUDITFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("AUDITFLOW_DATABASE_URL", f"sqlite://{db_path}")
    monkeypatch.delenv("AUDITFLOW_TRANSPORT", raising=False)
    request = _write(
        tmp_path,
        "request.json",
        {
            "id": "job-77",
            "processData": {"processDescription": "Route supplier invoices"},
            "automationOpportunities": [],
        },
    )

    result = runner.invoke(app, ["job", "submit", str(request)])

    assert result.exit_code == 0, result.stdout
    assert result.stdout.strip() == "job-77\tqueued"
    persistence._repository_instance.close()
    repository = SQLiteJobRepository(db_path)
    stored = asyncio.run(repository.get_job("job-77"))
    repository.close()
    assert stored.process_data.process_description == "Route supplier invoices"


def test_job_submit_rejects_invalid_request(tmp_path):
    request = _write(tmp_path, "request.json", {"automationOpportunities": "none"})
    result = runner.invoke(app, ["job", "submit", str(request)])
    assert result.exit_code == 1
    assert "Invalid job request" in result.stdout
