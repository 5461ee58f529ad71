"""Startup checks on packaged data."""

from finchat.validation.coverage import CoverageReport, check_registry_coverage

__all__ = [
    "CoverageReport",
    "check_registry_coverage",
]
