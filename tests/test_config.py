from __future__ import annotations

from pathlib import Path

import pytest

from goquarantine.domain import QuarantineTarget
from goquarantine.errors import ConfigError
from pipeline.config import (
    ENV_BUILD_FLAGS,
    ENV_GO_BIN,
    ENV_LOG_LEVEL,
    ENV_MAX_WORKERS,
    EngineSettings,
    QuarantineBatch,
    dump_batch_yaml,
    load_batch_yaml,
    load_settings,
    split_build_flags,
)
from pipeline.engine import DEFAULT_MAX_WORKERS


def test_defaults_from_empty_env() -> None:
    settings = load_settings(env={})

    assert settings == EngineSettings()
    assert settings.max_workers == DEFAULT_MAX_WORKERS


def test_env_values_are_parsed() -> None:
    settings = load_settings(
        env={
            ENV_GO_BIN: "/opt/go/bin/go",
            ENV_BUILD_FLAGS: '-tags "integration e2e" -mod=vendor',
            ENV_MAX_WORKERS: "8",
            ENV_LOG_LEVEL: "debug",
        }
    )

    assert settings.go_bin == "/opt/go/bin/go"
    assert settings.build_flags == ["-tags", "integration e2e", "-mod=vendor"]
    assert settings.max_workers == 8
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {ENV_MAX_WORKERS: "many"},
        {ENV_MAX_WORKERS: "0"},
        {ENV_LOG_LEVEL: "LOUD"},
        {ENV_BUILD_FLAGS: '-tags "unterminated'},
    ],
)
def test_bad_env_values_raise_config_error(env) -> None:
    with pytest.raises(ConfigError):
        load_settings(env=env)


def test_dotenv_file_fills_missing_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also removes what load_dotenv puts into os.environ.
    monkeypatch.setenv(ENV_GO_BIN, "placeholder")
    monkeypatch.delenv(ENV_GO_BIN)
    monkeypatch.setenv(ENV_MAX_WORKERS, "2")
    env_file = tmp_path / ".env"
    env_file.write_text(f"{ENV_GO_BIN}=/from/dotenv/go\n{ENV_MAX_WORKERS}=9\n", encoding="utf-8")

    settings = load_settings(dotenv_path=env_file)

    assert settings.go_bin == "/from/dotenv/go"
    # The real environment wins over .env.
    assert settings.max_workers == 2


def test_engine_options_prefers_explicit_flags() -> None:
    settings = EngineSettings(build_flags=["-tags", "a"], max_workers=3)

    assert settings.engine_options().build_flags == ("-tags", "a")
    assert settings.engine_options(["-race"]).build_flags == ("-race",)
    assert settings.engine_options([]).build_flags == ()
    assert settings.engine_options().max_workers == 3


def test_split_build_flags_empty() -> None:
    assert split_build_flags(None) == []
    assert split_build_flags("") == []


def test_batch_yaml_round_trip(tmp_path: Path) -> None:
    batch = QuarantineBatch(
        targets=[QuarantineTarget("example.com/m/pkg", ["TestA", "TestB/case_1"])],
        reason="PROJ-5",
        build_flags=["-tags", "integration"],
    )

    path = dump_batch_yaml(tmp_path / "batch.yaml", batch)

    assert load_batch_yaml(path) == batch
    assert path.read_text(encoding="utf-8").startswith("reason: PROJ-5\n")


def test_batch_yaml_accepts_string_flags_and_scalar_tests(tmp_path: Path) -> None:
    path = tmp_path / "batch.yaml"
    path.write_text(
        "build_flags: -tags integration\n"
        "targets:\n"
        "  - package: example.com/m/pkg\n"
        "    tests: TestOnly\n",
        encoding="utf-8",
    )

    batch = load_batch_yaml(path)

    assert batch.build_flags == ["-tags", "integration"]
    assert batch.targets == [QuarantineTarget("example.com/m/pkg", ["TestOnly"])]
    assert batch.reason == ""


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "targets: {package: x}\n",
        "targets:\n  - tests: [TestA]\n",
        "targets: []\nbuild_flags: 3\n",
        "targets: [\n",
    ],
)
def test_invalid_batch_yaml(tmp_path: Path, content: str) -> None:
    path = tmp_path / "batch.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_batch_yaml(path)


def test_missing_batch_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_batch_yaml(tmp_path / "nope.yaml")
