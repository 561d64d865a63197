from __future__ import annotations

from pathlib import Path

import pytest

from services.distribution import (
    DecisionKind,
    MetadataMissingError,
    PluginDescriptor,
    check_eligibility,
    is_plugin_installed,
)
from tests.unit.distribution_test_utils import (
    build_plugin_jar,
    build_unextractable_jar,
    make_server,
    write_corrupt_jar,
)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "incoming"
    directory.mkdir()
    return directory


def test_is_plugin_installed_matches_exact_basename(tmp_path: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})

    assert is_plugin_installed(server, "Example.jar")
    assert is_plugin_installed(server, "Example")
    assert not is_plugin_installed(server, "Example-2.0.jar")


def test_not_installed_plugin_is_skipped(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Other.jar": ("Other", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "2.0.0")

    decision = check_eligibility(server, source)

    assert decision.kind is DecisionKind.SKIPPED_NOT_INSTALLED
    assert not decision.should_copy


def test_same_version_is_skipped(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "1.0.0")

    assert check_eligibility(server, source).kind is DecisionKind.SKIPPED_SAME_VERSION


def test_newer_source_proceeds(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "1.1.0")

    decision = check_eligibility(server, source)

    assert decision.kind is DecisionKind.PROCEED
    assert decision.should_copy
    assert decision.reason == "1.0.0 -> 1.1.0"


def test_older_source_is_skipped(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "2.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "1.9.9")

    assert check_eligibility(server, source).kind is DecisionKind.SKIPPED_OLDER_UPDATE


def test_names_are_compared_case_insensitively(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("exampleplugin", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "ExamplePlugin", "2.0.0")

    assert check_eligibility(server, source).kind is DecisionKind.PROCEED


def test_name_mismatch_is_skipped(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("SomethingElse", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "2.0.0")

    decision = check_eligibility(server, source)

    assert decision.kind is DecisionKind.SKIPPED_NAME_MISMATCH
    assert "SomethingElse" in (decision.reason or "")


def test_corrupt_source_is_reported_as_error(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})
    source = write_corrupt_jar(source_dir / "Example.jar")

    decision = check_eligibility(server, source)

    assert decision.kind is DecisionKind.SKIPPED_ERROR
    assert decision.reason


@pytest.mark.parametrize("options", [{"encrypted": True}, {"compress_type": 99}])
def test_unextractable_source_is_reported_as_error(
    tmp_path: Path, source_dir: Path, options: dict
) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})
    source = build_unextractable_jar(source_dir / "Example.jar", "Example", "2.0.0", **options)

    decision = check_eligibility(server, source)

    assert decision.kind is DecisionKind.SKIPPED_ERROR
    assert "cannot be extracted" in (decision.reason or "")


def test_malformed_version_is_reported_as_error(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "1.2")

    decision = check_eligibility(server, source)

    assert decision.kind is DecisionKind.SKIPPED_ERROR
    assert "1.2" in (decision.reason or "")


def test_skip_checks_never_reads_metadata(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby")
    source = write_corrupt_jar(source_dir / "Example.jar")

    def failing_reader(path: Path) -> PluginDescriptor:  # pragma: no cover - must not run
        raise AssertionError(f"descriptor read for {path}")

    decision = check_eligibility(server, source, skip_checks=True, descriptor_reader=failing_reader)

    assert decision.kind is DecisionKind.PROCEED


def test_reader_errors_are_isolated(tmp_path: Path, source_dir: Path) -> None:
    server = make_server(tmp_path, "lobby", {"Example.jar": ("Example", "1.0.0")})
    source = build_plugin_jar(source_dir / "Example.jar", "Example", "2.0.0")

    def missing_reader(path: Path) -> PluginDescriptor:
        raise MetadataMissingError(f"no plugin.yml in {path}")

    decision = check_eligibility(server, source, descriptor_reader=missing_reader)

    assert decision.kind is DecisionKind.SKIPPED_ERROR
    assert "no plugin.yml" in (decision.reason or "")
