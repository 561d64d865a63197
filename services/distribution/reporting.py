"""Formatting helpers for presenting distribution results."""

from __future__ import annotations

from typing import Any

from services.distribution.models import CopyStatus, DecisionKind, PairOutcome, RunResult


_DECISION_LABELS = {
    DecisionKind.PROCEED: "update",
    DecisionKind.SKIPPED_NOT_INSTALLED: "skipped, not installed",
    DecisionKind.SKIPPED_NAME_MISMATCH: "skipped, plugin name mismatch",
    DecisionKind.SKIPPED_SAME_VERSION: "skipped, same version",
    DecisionKind.SKIPPED_OLDER_UPDATE: "skipped, installed version is newer",
    DecisionKind.SKIPPED_ERROR: "failed",
}


def describe_outcome(outcome: PairOutcome) -> str:
    """Summarise ``outcome`` as a single line."""

    head = f"{outcome.plugin.name} -> {outcome.server}"
    if outcome.copy_status is CopyStatus.COPIED:
        return f"{head}: copied to {outcome.destination}"
    if outcome.copy_status is CopyStatus.SIMULATED:
        return f"{head}: would copy {outcome.plugin} to {outcome.destination}"
    if outcome.copy_status is CopyStatus.FAILED:
        return f"{head}: copy failed ({outcome.error})"

    label = _DECISION_LABELS[outcome.decision.kind]
    if outcome.decision.reason:
        return f"{head}: {label} ({outcome.decision.reason})"
    return f"{head}: {label}"


def format_run_report(result: RunResult) -> str:
    lines = ["Servers:"]
    lines.extend(f"  {server}" for server in result.servers)
    lines.append("Plugins:")
    lines.extend(f"  {plugin}" for plugin in result.plugins)
    lines.append("Simulated results:" if result.simulate else "Results:")
    lines.extend(f"  {describe_outcome(outcome)}" for outcome in result.outcomes)
    summary = (
        f"{len(result.planned_copies)} would be copied"
        if result.simulate
        else f"{len(result.copied)} copied"
    )
    lines.append(
        f"Update done: {summary}, {len(result.skipped)} skipped, {len(result.failures)} failed"
    )
    return "\n".join(lines)


def run_result_to_dict(result: RunResult) -> dict[str, Any]:
    """Return a JSON-serialisable representation of ``result``."""

    return {
        "simulate": result.simulate,
        "servers": [str(server) for server in result.servers],
        "plugins": [str(plugin) for plugin in result.plugins],
        "outcomes": [
            {
                "server": str(outcome.server),
                "plugin": str(outcome.plugin),
                "decision": outcome.decision.kind.value,
                "reason": outcome.decision.reason,
                "copy": outcome.copy_status.value,
                "destination": str(outcome.destination) if outcome.destination else None,
                "error": outcome.error,
            }
            for outcome in result.outcomes
        ],
    }


__all__ = ["describe_outcome", "format_run_report", "run_result_to_dict"]
