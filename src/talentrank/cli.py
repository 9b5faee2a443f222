"""Typer CLI entrypoint for the matching pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml

from .container import create_container
from .core import evaluate_watchdog
from .errors import GuardrailValidationError
from .logging import bind_tenant, clear_context, configure_logging
from .pipeline import AuditLogger, RunLoader
from .policy import GuardrailPolicy, YamlGuardrailStore
from .schemas import parse_guardrails
from .schemas.config import AppConfig, load_config

app = typer.Typer(help="Candidate match scoring and shortlist CLI.")


def _read_document(path: Path, *, param_hint: str) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise typer.BadParameter(f"Cannot parse {path}: {exc}", param_hint=param_hint) from exc


def _load_app_config(path: Optional[Path]) -> AppConfig:
    if path is None:
        return AppConfig()
    loaded = _read_document(path, param_hint="--config")
    if loaded is not None and not isinstance(loaded, dict):
        raise typer.BadParameter("Config file must be a YAML object", param_hint="--config")
    return load_config(loaded)


def _parse_tradeoffs(values: List[str]) -> dict[str, str] | None:
    if not values:
        return None
    parsed: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip() or not value.strip():
            raise typer.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint="--tradeoff")
        parsed[key.strip()] = value.strip()
    return parsed


@app.command()
def rank(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job requisition JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    tenant: Optional[str] = typer.Option(None, help="Tenant whose guardrails apply."),
    mode: Optional[str] = typer.Option(None, help="Operating mode: pilot, production, sandbox or fire_drill."),
    tradeoff: List[str] = typer.Option(
        [], "--tradeoff", help="Tradeoff override as KEY=VALUE, e.g. speedQuality=speed. Repeatable."
    ),
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM or ISO) for recency signals."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Score a candidate pool against a job and write the ranked shortlist."""
    app_config = _load_app_config(config)
    overrides = _parse_tradeoffs(tradeoff)

    configure_logging(log_level)

    tenant_id = tenant or app_config.guardrails.tenant_id
    container = create_container(settings=app_config.to_settings())
    pipeline = container.pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None

    bind_tenant(tenant_id)
    try:
        payload = pipeline.run(
            candidates_path=candidates,
            job_path=job,
            output_path=output,
            tenant_id=tenant_id,
            mode=mode or app_config.guardrails.mode,
            tradeoffs=overrides,
            as_of=as_of,
            audit_logger=audit_logger,
        )
    finally:
        clear_context()
    shortlist = payload["shortlist"]
    typer.echo(
        f"Scored {len(payload['candidates'])} candidates; shortlisted "
        f"{len(shortlist['shortlisted'])} ({shortlist['strategy']}). Results saved to {output}."
    )


@app.command()
def watchdog(
    runs: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Agent runs JSONL path."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write the report JSON here."),
    window_size: Optional[int] = typer.Option(None, min=1, help="Trailing window size."),
    min_window: Optional[int] = typer.Option(None, min=0, help="Minimum sample size before alerting."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Evaluate recent agent runs; exits with code 1 when any alert fires."""
    app_config = _load_app_config(config)
    configure_logging(log_level)

    container = create_container(settings=app_config.to_settings())
    settings = container.watchdog_config()
    updates = {
        key: value
        for key, value in {"window_size": window_size, "min_window": min_window}.items()
        if value is not None
    }
    if updates:
        settings = settings.model_validate({**settings.model_dump(), **updates})

    snapshots, errors = RunLoader().load(runs)
    for error in errors:
        typer.echo(f"Skipped {error}", err=True)

    report = evaluate_watchdog(snapshots, settings)
    rendered = json.dumps(report.to_dict(), ensure_ascii=False, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
    typer.echo(rendered)
    if report.alerts:
        raise typer.Exit(code=1)


@app.command()
def guardrails(
    file: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Guardrail YAML/JSON document."),
    tenant: Optional[str] = typer.Option(None, help="Save the validated document for this tenant."),
    store_dir: Optional[Path] = typer.Option(None, file_okay=False, help="Directory of per-tenant guardrail files."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Validate a guardrail document and optionally save it for a tenant."""
    configure_logging(log_level)
    document = _read_document(file, param_hint="--file")

    try:
        if tenant:
            if store_dir is None:
                raise typer.BadParameter("--store-dir is required with --tenant", param_hint="--store-dir")
            result = GuardrailPolicy(YamlGuardrailStore(store_dir)).save(tenant, document)
            config = result.config
            action = "Created" if result.created else "Updated"
            typer.echo(f"{action} guardrails for tenant {tenant}.", err=True)
        else:
            config = parse_guardrails(document)
    except GuardrailValidationError as exc:
        for field, message in exc.errors:
            typer.echo(f"{field}: {message}", err=True)
        raise typer.Exit(code=2) from exc

    typer.echo(yaml.safe_dump(config.to_document(), sort_keys=True, allow_unicode=True))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
