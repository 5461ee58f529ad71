"""
Startup Coverage Checks

DESIGN DECISION: Pattern tables are data files edited by hand, so a
locale can silently fall behind the intent enum. The check runs once at
startup (and in tests) and reports every gap at once instead of
stopping at the first.

Like the rest of the pipeline, the check never patches the data: it
reports, and in strict mode refuses to start.
"""

from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, Field

from finchat.config.settings import SUPPORTED_LOCALES
from finchat.intents.registry import RegistryError, load_registry
from finchat.models.intent import IntentKind


logger = structlog.get_logger(__name__)


class CoverageReport(BaseModel):
    """Intents without patterns, per locale."""

    missing: dict[str, list[IntentKind]] = Field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return not any(self.missing.values())

    def summary(self) -> str:
        gaps = [
            f"{locale}: {', '.join(intent.value for intent in intents)}"
            for locale, intents in self.missing.items()
            if intents
        ]
        return "; ".join(gaps) or "all intents covered"


def check_registry_coverage(
    locales: Iterable[str] = SUPPORTED_LOCALES,
    data_dir: Optional[str] = None,
    strict: bool = True,
) -> CoverageReport:
    """
    Verify every routable intent has patterns in every locale.

    Args:
        locales: Locales to check
        data_dir: Override directory for pattern tables
        strict: Raise instead of returning an incomplete report

    Returns:
        The coverage report

    Raises:
        RegistryError: If a table cannot be loaded, or (strict) if any
            locale is missing intents
    """
    report = CoverageReport()
    for locale in locales:
        registry = load_registry(locale, data_dir)
        report.missing[locale] = registry.missing_intents()

    if not report.is_complete:
        logger.error("pattern_coverage_incomplete", summary=report.summary())
        if strict:
            raise RegistryError(f"Pattern tables are incomplete: {report.summary()}")
    else:
        logger.info("pattern_coverage_complete", locales=list(report.missing))
    return report
