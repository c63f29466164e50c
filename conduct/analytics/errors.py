"""
Structured halt errors for the analytics engine.

Every hard failure carries the reason, the offending fields and the steps an
operator takes to fix the input. Soft failures (unparseable dates, missing
group values, zero denominators) never raise; they surface as nulls.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AnalyticsError(Exception):
    """Base halt error. Aborts the call; no partial output is returned."""
    reason: str
    missing_or_invalid_fields: list[str] = field(default_factory=list)
    operator_fix_steps: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [
            "═" * 60,
            f"CONDUCT ANALYTICS HALT ({type(self).__name__})",
            "═" * 60,
            f"Reason          : {self.reason}",
        ]
        if self.missing_or_invalid_fields:
            lines.append(f"Missing/Invalid : {', '.join(self.missing_or_invalid_fields)}")
        if self.operator_fix_steps:
            lines.append("Fix Steps:")
            for i, step in enumerate(self.operator_fix_steps, 1):
                lines.append(f"  {i}. {step}")
        lines.append("═" * 60)
        return "\n".join(lines)


class MissingColumns(AnalyticsError):
    """Required columns are absent from the input table."""


class NoFindingColumns(AnalyticsError):
    """No finding slot could be resolved against the input table."""


class InputLengthMismatch(AnalyticsError):
    """Parallel inputs to the calendar adjuster differ in length."""


class UnknownOutputFormat(AnalyticsError):
    """Output format is neither display nor raw."""


class InvalidDate(AnalyticsError):
    """A null or non-date value reached the academic-year resolver."""


class InvalidAcademicYear(AnalyticsError):
    """An academic-year label does not match the AYxxyy pattern."""


class KeyMaterialError(AnalyticsError):
    """Anonymization key material is missing, empty or the wrong length."""
