from __future__ import annotations

import json
from pathlib import Path

from services.distribution import (
    CopyStatus,
    DecisionKind,
    PairOutcome,
    RunResult,
    UpdateDecision,
    format_run_report,
    run_result_to_dict,
)
from services.distribution.reporting import describe_outcome


def _result(simulate: bool = False) -> RunResult:
    server = Path("servers/lobby")
    copied = PairOutcome(
        server=server,
        plugin=Path("incoming/Alpha.jar"),
        decision=UpdateDecision.proceed("1.0.0 -> 2.0.0"),
        copy_status=CopyStatus.SIMULATED if simulate else CopyStatus.COPIED,
        destination=server / "plugins" / "update" / "Alpha.jar",
    )
    skipped = PairOutcome(
        server=server,
        plugin=Path("incoming/Beta.jar"),
        decision=UpdateDecision.skipped(DecisionKind.SKIPPED_SAME_VERSION, "already at 1.0.0"),
    )
    failed = PairOutcome(
        server=server,
        plugin=Path("incoming/Gamma.jar"),
        decision=UpdateDecision.error("not a readable plugin archive"),
    )
    return RunResult(
        servers=(server,),
        plugins=(copied.plugin, skipped.plugin, failed.plugin),
        outcomes=(copied, skipped, failed),
        simulate=simulate,
    )


def test_describe_outcome_mentions_reason() -> None:
    outcome = _result().outcomes[1]

    description = describe_outcome(outcome)

    assert description == (
        f"Beta.jar -> {Path('servers/lobby')}: skipped, same version (already at 1.0.0)"
    )


def test_format_run_report_summarises_counts() -> None:
    report = format_run_report(_result())

    assert report.splitlines()[0] == "Servers:"
    assert "Alpha.jar" in report and "copied to" in report
    assert report.splitlines()[-1] == "Update done: 1 copied, 1 skipped, 1 failed"


def test_format_run_report_for_simulation_lists_planned_copies() -> None:
    report = format_run_report(_result(simulate=True))

    assert "Simulated results:" in report
    assert "would copy" in report
    assert report.splitlines()[-1] == "Update done: 1 would be copied, 1 skipped, 1 failed"


def test_run_result_to_dict_is_json_serialisable() -> None:
    payload = run_result_to_dict(_result())

    decoded = json.loads(json.dumps(payload))
    assert [entry["decision"] for entry in decoded["outcomes"]] == [
        "proceed",
        "skipped_same_version",
        "skipped_error",
    ]
    assert decoded["outcomes"][0]["copy"] == "copied"
    assert decoded["outcomes"][1]["destination"] is None
