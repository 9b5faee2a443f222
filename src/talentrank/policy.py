"""Tenant-scoped guardrail policy with safe load and validated save."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Protocol, runtime_checkable

import structlog

from .config import ConfigManager
from .core.modes import FIRE_DRILL_NOTE, ModeProfile, OperatingMode, apply_fire_drill_thresholds, mode_profile
from .errors import GuardrailStoreUnavailableError, GuardrailValidationError
from .schemas import DEFAULT_GUARDRAILS, GUARDRAIL_PRESETS, GuardrailConfig, parse_guardrails

logger = structlog.get_logger(__name__)

GuardrailSource = Literal["tenant", "mode_preset", "fire_drill"]


@runtime_checkable
class GuardrailStore(Protocol):
    """Key-value access to stored guardrail documents."""

    def get(self, tenant_id: str) -> Mapping[str, Any] | None:
        """Return the stored document, or ``None`` when the tenant has none."""

    def put(self, tenant_id: str, document: Mapping[str, Any]) -> None:
        """Persist ``document`` for ``tenant_id``, replacing any prior record."""


class InMemoryGuardrailStore:
    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None):
        self._records: dict[str, dict[str, Any]] = {
            tenant_id: copy.deepcopy(dict(document)) for tenant_id, document in (records or {}).items()
        }

    def get(self, tenant_id: str) -> Mapping[str, Any] | None:
        record = self._records.get(tenant_id)
        return copy.deepcopy(record) if record is not None else None

    def put(self, tenant_id: str, document: Mapping[str, Any]) -> None:
        self._records[tenant_id] = copy.deepcopy(dict(document))

    def __contains__(self, tenant_id: object) -> bool:
        return tenant_id in self._records


class YamlGuardrailStore:
    """One ``<tenant_id>.yaml`` document per tenant under a directory."""

    def __init__(self, directory: str | Path):
        self._files = ConfigManager(directory)

    @property
    def directory(self) -> Path:
        return self._files.base_path

    def get(self, tenant_id: str) -> Mapping[str, Any] | None:
        try:
            return self._files.load(tenant_id)
        except (OSError, ValueError) as exc:
            raise GuardrailStoreUnavailableError(f"cannot read guardrails for {tenant_id!r}: {exc}") from exc

    def put(self, tenant_id: str, document: Mapping[str, Any]) -> None:
        try:
            self._files.save(tenant_id, dict(document))
        except OSError as exc:
            raise GuardrailStoreUnavailableError(f"cannot write guardrails for {tenant_id!r}: {exc}") from exc

    def __contains__(self, tenant_id: object) -> bool:
        return isinstance(tenant_id, str) and self._files.exists(tenant_id)


@dataclass(slots=True, frozen=True)
class SaveResult:
    saved: bool
    created: bool
    config: GuardrailConfig


@dataclass(slots=True)
class EffectiveGuardrails:
    """Guardrails in force for a tenant under a given operating mode."""

    tenant_id: str
    mode: OperatingMode
    profile: ModeProfile
    config: GuardrailConfig
    source: GuardrailSource
    notes: list[str] = field(default_factory=list)


class GuardrailPolicy:
    """Loads, validates and persists per-tenant guardrails.

    ``load`` never raises: an unreachable store, a missing record or a
    stored record that no longer validates all degrade to ``defaults``.
    ``save`` validates first and lets storage errors propagate.
    """

    def __init__(
        self,
        store: GuardrailStore | None = None,
        *,
        defaults: GuardrailConfig = DEFAULT_GUARDRAILS,
    ):
        self._store: GuardrailStore = store if store is not None else InMemoryGuardrailStore()
        self._defaults = defaults

    @property
    def defaults(self) -> GuardrailConfig:
        return self._defaults

    def _fetch(self, tenant_id: str) -> GuardrailConfig | None:
        try:
            record = self._store.get(tenant_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "guardrails.load_fallback",
                tenant_id=tenant_id,
                reason="store_unavailable",
                error=str(exc),
            )
            return None
        if record is None:
            return None
        try:
            return parse_guardrails(record, base=self._defaults)
        except GuardrailValidationError as exc:
            logger.warning(
                "guardrails.load_fallback",
                tenant_id=tenant_id,
                reason="invalid_record",
                errors=exc.errors,
            )
            return None

    def load(self, tenant_id: str) -> GuardrailConfig:
        config = self._fetch(tenant_id)
        return config if config is not None else self._defaults

    def save(self, tenant_id: str, payload: Mapping[str, Any] | GuardrailConfig) -> SaveResult:
        """Validate and persist ``payload``; returns whether a record was created."""
        if isinstance(payload, GuardrailConfig):
            payload = payload.to_document()
        config = parse_guardrails(payload, base=self._defaults)
        created = self._store.get(tenant_id) is None
        self._store.put(tenant_id, config.to_document())
        logger.info("guardrails.saved", tenant_id=tenant_id, created=created, preset=config.preset)
        return SaveResult(saved=True, created=created, config=config)

    def ensure(self, tenant_id: str) -> GuardrailConfig:
        """Return the tenant's guardrails, storing the defaults on first access."""
        existing = self._fetch(tenant_id)
        if existing is not None:
            return existing
        try:
            if self._store.get(tenant_id) is None:
                self._store.put(tenant_id, self._defaults.to_document())
                logger.info("guardrails.created_default", tenant_id=tenant_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("guardrails.ensure_failed", tenant_id=tenant_id, error=str(exc))
        return self._defaults

    def resolve(self, tenant_id: str, mode: OperatingMode | str | None = None) -> EffectiveGuardrails:
        """Guardrails in force for ``tenant_id`` under ``mode``.

        Fire drill always yields the conservative preset with the strict
        shortlist strategy, whatever the tenant stored.
        """
        profile = mode_profile(mode)
        tenant_config = self._fetch(tenant_id)

        if profile.forces_preset:
            base = tenant_config if tenant_config is not None else GUARDRAIL_PRESETS[profile.preset]
            effective = EffectiveGuardrails(
                tenant_id=tenant_id,
                mode=profile.mode,
                profile=profile,
                config=apply_fire_drill_thresholds(base),
                source="fire_drill",
                notes=[FIRE_DRILL_NOTE],
            )
        elif tenant_config is not None:
            effective = EffectiveGuardrails(
                tenant_id=tenant_id,
                mode=profile.mode,
                profile=profile,
                config=tenant_config,
                source="tenant",
            )
        else:
            effective = EffectiveGuardrails(
                tenant_id=tenant_id,
                mode=profile.mode,
                profile=profile,
                config=GUARDRAIL_PRESETS[profile.preset],
                source="mode_preset",
            )

        logger.debug(
            "guardrails.resolved",
            tenant_id=tenant_id,
            mode=profile.mode.value,
            source=effective.source,
            preset=effective.config.preset,
        )
        return effective


__all__ = [
    "GuardrailStore",
    "InMemoryGuardrailStore",
    "YamlGuardrailStore",
    "SaveResult",
    "EffectiveGuardrails",
    "GuardrailPolicy",
]
