"""End-to-end distribution runs against a realistic server tree."""

from __future__ import annotations

from pathlib import Path

import pytest

from services.distribution import (
    CopyStatus,
    DecisionKind,
    DistributionEngine,
    RunConfiguration,
)
from tests.unit.distribution_test_utils import build_plugin_jar, make_server, write_corrupt_jar


@pytest.fixture
def network(tmp_path: Path) -> dict[str, Path]:
    servers = tmp_path / "servers"
    paths = {
        "servers": servers,
        "lobby": make_server(
            servers,
            "lobby",
            {"ExamplePlugin.jar": ("ExamplePlugin", "1.0.0"), "Chat.jar": ("Chat", "3.1.0")},
        ),
        "survival": make_server(
            servers,
            "survival",
            {"ExamplePlugin.jar": ("ExamplePlugin", "1.0.0"), "Chat.jar": ("Chat", "3.2.0")},
        ),
        "creative": make_server(servers, "creative", {"Chat.jar": ("Chat", "3.1.0")}),
        "incoming": tmp_path / "incoming",
    }
    (servers / "world-backups").mkdir()
    (servers / "notes.txt").write_text("maintenance friday", encoding="utf-8")
    build_plugin_jar(paths["incoming"] / "ExamplePlugin.jar", "ExamplePlugin", "2.0.0")
    build_plugin_jar(paths["incoming"] / "Chat.jar", "Chat", "3.2.0")
    (paths["incoming"] / "changelog.md").write_text("- fixes", encoding="utf-8")
    return paths


def _decisions(result) -> dict[tuple[str, str], DecisionKind]:
    return {(o.server.name, o.plugin.name): o.decision.kind for o in result.outcomes}


def test_full_network_update(network: dict[str, Path]) -> None:
    engine = DistributionEngine(max_workers=4)

    result = engine.run(
        RunConfiguration(
            server_directory=network["servers"], plugin_directory=network["incoming"]
        )
    )

    assert [s.name for s in result.servers] == ["creative", "lobby", "survival"]
    assert [p.name for p in result.plugins] == ["Chat.jar", "ExamplePlugin.jar"]
    assert _decisions(result) == {
        ("creative", "Chat.jar"): DecisionKind.PROCEED,
        ("lobby", "Chat.jar"): DecisionKind.PROCEED,
        ("survival", "Chat.jar"): DecisionKind.SKIPPED_SAME_VERSION,
        ("creative", "ExamplePlugin.jar"): DecisionKind.SKIPPED_NOT_INSTALLED,
        ("lobby", "ExamplePlugin.jar"): DecisionKind.PROCEED,
        ("survival", "ExamplePlugin.jar"): DecisionKind.PROCEED,
    }
    source = network["incoming"] / "ExamplePlugin.jar"
    for name in ("lobby", "survival"):
        staged = network[name] / "plugins" / "update" / "ExamplePlugin.jar"
        assert staged.read_bytes() == source.read_bytes()
    assert not (network["creative"] / "plugins" / "update" / "ExamplePlugin.jar").exists()
    assert not (network["survival"] / "plugins" / "update" / "Chat.jar").exists()
    assert result.failures == ()


def test_simulation_reports_same_pairs_without_changes(network: dict[str, Path]) -> None:
    engine = DistributionEngine(max_workers=4)
    config = RunConfiguration(
        server_directory=network["servers"],
        plugin_directory=network["incoming"],
        simulate=True,
    )
    before = sorted(p for p in network["servers"].rglob("*"))

    result = engine.run(config)

    assert sorted(p for p in network["servers"].rglob("*")) == before
    assert set(result.planned_copies) == {
        (network["incoming"] / "Chat.jar", network["creative"] / "plugins" / "update" / "Chat.jar"),
        (network["incoming"] / "Chat.jar", network["lobby"] / "plugins" / "update" / "Chat.jar"),
        (
            network["incoming"] / "ExamplePlugin.jar",
            network["lobby"] / "plugins" / "update" / "ExamplePlugin.jar",
        ),
        (
            network["incoming"] / "ExamplePlugin.jar",
            network["survival"] / "plugins" / "update" / "ExamplePlugin.jar",
        ),
    }


def test_existing_staged_file_is_overwritten(network: dict[str, Path]) -> None:
    update_dir = network["lobby"] / "plugins" / "update"
    update_dir.mkdir()
    (update_dir / "ExamplePlugin.jar").write_bytes(b"stale")
    source = network["incoming"] / "ExamplePlugin.jar"

    result = DistributionEngine().run(
        RunConfiguration(server_path=network["lobby"], plugin_path=source)
    )

    (outcome,) = result.outcomes
    assert outcome.copy_status is CopyStatus.COPIED
    assert (update_dir / "ExamplePlugin.jar").read_bytes() == source.read_bytes()


def test_corrupt_installed_plugin_only_affects_its_server(network: dict[str, Path]) -> None:
    write_corrupt_jar(network["survival"] / "plugins" / "ExamplePlugin.jar")

    result = DistributionEngine(max_workers=2).run(
        RunConfiguration(
            server_directory=network["servers"],
            plugin_path=network["incoming"] / "ExamplePlugin.jar",
        )
    )

    decisions = _decisions(result)
    assert decisions[("survival", "ExamplePlugin.jar")] is DecisionKind.SKIPPED_ERROR
    assert decisions[("lobby", "ExamplePlugin.jar")] is DecisionKind.PROCEED
    assert (network["lobby"] / "plugins" / "update" / "ExamplePlugin.jar").exists()
