"""Dependency injection container for the matching system."""

from __future__ import annotations

from dependency_injector import containers, providers

from .core import MatchScorer, ScoringConfig
from .core.watchdog import WatchdogConfig
from .pipeline import MatchingPipeline
from .policy import GuardrailPolicy, InMemoryGuardrailStore, YamlGuardrailStore
from .schemas import DEFAULT_GUARDRAILS


class MatchingContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    scoring_config = providers.Singleton(ScoringConfig)
    watchdog_config = providers.Singleton(WatchdogConfig)

    guardrail_store = providers.Singleton(InMemoryGuardrailStore)
    default_guardrails = providers.Object(DEFAULT_GUARDRAILS)

    guardrail_policy = providers.Singleton(
        GuardrailPolicy,
        store=guardrail_store,
        defaults=default_guardrails,
    )

    match_scorer = providers.Singleton(MatchScorer, config=scoring_config)
    max_workers = providers.Object(None)

    pipeline = providers.Factory(
        MatchingPipeline,
        scorer=match_scorer,
        policy=guardrail_policy,
        max_workers=max_workers,
    )


def create_container(*, settings: dict | None = None) -> MatchingContainer:
    """Instantiate container with optional overrides."""

    container = MatchingContainer()

    if not settings:
        return container

    pipeline_settings = settings.get("pipeline", {}) if isinstance(settings, dict) else {}
    if pipeline_settings.get("max_workers"):
        container.max_workers.override(providers.Object(int(pipeline_settings["max_workers"])))

    scoring_settings = settings.get("scoring", {}) if isinstance(settings, dict) else {}
    if scoring_settings:
        scoring_config = ScoringConfig.model_validate(scoring_settings)
        container.scoring_config.override(providers.Object(scoring_config))

    watchdog_settings = settings.get("watchdog", {}) if isinstance(settings, dict) else {}
    if watchdog_settings:
        watchdog_config = WatchdogConfig.model_validate(watchdog_settings)
        container.watchdog_config.override(providers.Object(watchdog_config))

    guardrail_settings = settings.get("guardrails", {}) if isinstance(settings, dict) else {}
    if guardrail_settings.get("store_dir"):
        container.guardrail_store.override(
            providers.Singleton(YamlGuardrailStore, guardrail_settings["store_dir"])
        )

    return container
