"""Command line interface for the automation-generation pipeline."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError

from auditflow import (
    AutomationJob,
    ComplexityAssessor,
    JobDispatcher,
    JobRequest,
    JobStatus,
    JobWorker,
    OrchestrationPlan,
    PatternAnalyzer,
    ProcessData,
    ValidationResult,
    create_processor,
    get_repository,
    get_transport,
    load_config,
    load_corpus,
    render_advice,
    summarize,
    validate_plan,
    validate_workflow,
)
from auditflow.registry import REGISTRY

app = typer.Typer(help="CLI for auditflow automation generation")

# Command groups
worker_app = typer.Typer(help="Commands for running queue workers")
job_app = typer.Typer(help="Commands for submitting and inspecting jobs")
validate_app = typer.Typer(help="Structural checks for plans and workflows")

app.add_typer(worker_app, name="worker")
app.add_typer(job_app, name="job")
app.add_typer(validate_app, name="validate")


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        typer.secho(f"File not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        typer.secho(f"{path} is not valid JSON: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not isinstance(data, dict):
        typer.secho(f"{path} must contain a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return data


@app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", help="Python logging level"),
) -> None:
    """auditflow CLI entry point."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@worker_app.command("run")
def worker_run(
    lifespan: Optional[float] = typer.Option(
        None, help="Worker timeout in seconds (default: run indefinitely)"
    ),
    topic: Optional[str] = typer.Option(None, help="Queue topic to consume"),
) -> None:
    """
    Run a worker that turns queued jobs into n8n workflows.

    The worker connects to the configured transport and repository and
    processes one job at a time.

    Example:
        auditflow worker run --lifespan 300
    """
    config = load_config()
    transport = get_transport(config=config)
    repository = get_repository(config=config)
    worker = JobWorker(
        transport,
        create_processor(config, repository=repository),
        topic=topic or config.transport.topic,
        max_deliveries=config.worker.max_deliveries,
    )
    typer.echo(f"Starting worker on topic: {worker.topic}")
    asyncio.run(worker.start(lifespan=lifespan))


@job_app.command("submit")
def job_submit(request_file: Path) -> None:
    """
    Enqueue a job from an intake request file.

    Example:
        auditflow job submit request.json
        # Output: 3f1c...  queued
    """
    data = _read_json(request_file)
    try:
        request = JobRequest.model_validate(data)
    except ValidationError as e:
        typer.secho(f"Invalid job request: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = load_config()
    dispatcher = JobDispatcher(
        get_transport(config=config), get_repository(config=config), topic=config.transport.topic
    )
    job_id = asyncio.run(dispatcher.submit(request))
    typer.echo(f"{job_id}\t{JobStatus.queued.value}")


@job_app.command("list")
def job_list(
    status: Optional[JobStatus] = typer.Option(None, help="Only show jobs in this state"),
) -> None:
    """List jobs with their status and progress."""
    repo = get_repository()
    jobs = asyncio.run(repo.list_jobs(status))
    if not jobs:
        typer.echo("No jobs found")
        return
    for job in jobs:
        typer.echo(f"{job.id}\t{job.status.value}\t{job.progress}%")


@job_app.command("show")
def job_show(job_id: str) -> None:
    """
    Show status, progress and error details for a job.

    Example:
        auditflow job show 3f1c...
        # Output: Job 3f1c...: failed (30%)
        #         Error: Workflow generation failed after trying [...]
    """
    repo = get_repository()
    job = asyncio.run(repo.get_job(job_id))
    if job is None:
        typer.echo("Job not found")
        raise typer.Exit(code=1)
    typer.echo(f"Job {job.id}: {job.status.value} ({job.progress}%)")
    typer.echo(f"Process: {job.process_data.process_description}")
    typer.echo(f"Opportunities: {len(job.automation_opportunities)}")
    if job.error_message:
        typer.echo(f"Error: {job.error_message}")
    if job.workflow:
        typer.echo(f"Workflow: {job.workflow.get('name')} ({len(job.workflow.get('nodes', []))} nodes)")


@job_app.command("artifact")
def job_artifact(
    job_id: str,
    output: Optional[Path] = typer.Option(None, help="Write the workflow JSON to this file"),
    instructions: bool = typer.Option(False, help="Print the setup instructions instead"),
) -> None:
    """Print or export the generated workflow for a completed job."""
    repo = get_repository()
    artifact = asyncio.run(repo.get_artifact(job_id))
    if artifact is None:
        typer.echo("Artifact not found")
        raise typer.Exit(code=1)
    if instructions:
        typer.echo(artifact.instructions)
        return
    payload = json.dumps(artifact.workflow_json, indent=2)
    if output is not None:
        output.write_text(payload)
        typer.echo(f"Wrote {artifact.name} to {output}")
    else:
        typer.echo(payload)


def _report(result: ValidationResult) -> None:
    summary = json.dumps(summarize(result), indent=2)
    if result.valid:
        typer.secho(summary, fg=typer.colors.GREEN)
        return
    typer.secho(summary, fg=typer.colors.RED)
    raise typer.Exit(code=1)


@validate_app.command("plan")
def validate_plan_command(plan_file: Path) -> None:
    """Check an orchestration plan JSON file."""
    result = validate_plan(_read_json(plan_file))
    _report(result)


@validate_app.command("workflow")
def validate_workflow_command(
    workflow_file: Path,
    strict_types: bool = typer.Option(
        True, help="Reject node types missing from the node type registry"
    ),
) -> None:
    """Check an n8n workflow JSON file."""
    result = validate_workflow(_read_json(workflow_file), REGISTRY if strict_types else None)
    _report(result)


@app.command("analyze")
def analyze(
    plan_file: Path,
    industry: Optional[str] = typer.Option(None, help="Business industry for scoring"),
    volume: Optional[str] = typer.Option(None, help="Expected volume, e.g. '200+ per day'"),
) -> None:
    """
    Score a plan's complexity and print knowledge-base advice for it.

    Example:
        auditflow analyze plan.json --industry insurance
    """
    data = _read_json(plan_file)
    result = validate_plan(data)
    if not result.valid:
        _report(result)
    plan = OrchestrationPlan.model_validate(data)

    job = AutomationJob(
        process_data=ProcessData(
            process_description=plan.description,
            industry=industry,
            expected_volume=volume,
        )
    )
    assessment = ComplexityAssessor(REGISTRY).assess(job, plan)
    typer.echo(
        f"Complexity: {assessment.complexity} (score {assessment.score}, "
        f"tier {assessment.recommended_tier}, "
        f"{assessment.budget.input_tokens}/{assessment.budget.output_tokens} tokens)"
    )
    for reason in assessment.reasons:
        typer.echo(f"- {reason}")

    analyzer = PatternAnalyzer(load_corpus(), REGISTRY)
    typer.echo("")
    typer.echo(render_advice(analyzer.advise(plan)))


if __name__ == "__main__":
    app()
