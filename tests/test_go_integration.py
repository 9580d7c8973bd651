"""End-to-end runs against a real ``go`` toolchain.

Skipped when ``go`` is not on PATH.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from goquarantine.domain import QuarantineTarget
from goquarantine.io import write_results
from pipeline.engine import REASON_TEST_NOT_FOUND, quarantine_tests, unquarantine_tests
from tools.core_cmd import CmdResult, run_cmd
from tools.golang import go_version, load_packages

pytestmark = pytest.mark.skipif(shutil.which("go") is None, reason="go toolchain not installed")

FIXTURE_ROOT = Path(__file__).resolve().parent / "fixtures" / "example_project"
PKG = "example.com/example_project"


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    dst = tmp_path / "example_project"
    shutil.copytree(FIXTURE_ROOT, dst)
    return dst.resolve()


def test_go_version() -> None:
    assert go_version("go").startswith("go version")


def test_load_packages_covers_all_modules(repo: Path) -> None:
    pkgs = load_packages(repo)

    assert {PKG, f"{PKG}/oddly_named", "example.com/nested", "example.com/nested/inner"} <= set(pkgs.packages)
    root_files = [Path(f).name for f in pkgs.get(PKG).test_files()]
    assert "external_test.go" in root_files
    assert "integration_test.go" not in root_files
    assert pkgs.get(f"{PKG}/oddly_named").name == "odd"


def test_build_tags_change_the_file_set(repo: Path) -> None:
    pkgs = load_packages(repo, ["-tags", "integration"])

    assert "integration_test.go" in [Path(f).name for f in pkgs.get(PKG).test_files()]


def test_quarantine_across_modules(repo: Path) -> None:
    targets = [
        QuarantineTarget(PKG, ["TestStandardFlaky", "TestExternalPackage"]),
        QuarantineTarget(f"{PKG}/oddly_named", ["TestOddlyNamedPackage"]),
        QuarantineTarget("example.com/nested/inner", ["TestInner/first"]),
    ]

    results = quarantine_tests(repo, targets, reason="PROJ-2")

    assert results.failures() == []
    assert len(results.successes()) == 4
    write_results(results)
    assert "Ticket PROJ-2" in (repo / "nested" / "inner" / "inner_test.go").read_text(encoding="utf-8")

    again = quarantine_tests(repo, targets, reason="PROJ-2")
    assert again.changed_files() == []


def test_tagged_test_needs_build_flags(repo: Path) -> None:
    target = [QuarantineTarget(PKG, ["TestIntegrationOnly"])]

    without = unquarantine_tests(repo, target)
    with_tags = unquarantine_tests(repo, target, build_flags=["-tags", "integration"])

    assert without.failures()[0][1].reason == REASON_TEST_NOT_FOUND
    assert with_tags.failures() == []


def _go(repo: Path, *args: str) -> CmdResult:
    res = run_cmd(["go", *args], cwd=repo, timeout_seconds=300, env={"GOWORK": "off", "GOFLAGS": "-count=1"})
    assert res.ok, f"{res.command_str} failed:\n{res.stdout}\n{res.stderr}"
    return res


def test_quarantined_subtest_is_skipped_by_go_test(repo: Path) -> None:
    results = quarantine_tests(repo, [QuarantineTarget(PKG, ["TestTableSubtests/case_1"])], reason="PROJ-3")
    assert results.failures() == []
    write_results(results)

    out = _go(repo, "test", "-v", "-run", "^TestTableSubtests$", ".").stdout

    assert "--- SKIP: TestTableSubtests/case_1" in out
    assert "--- PASS: TestTableSubtests/case_2" in out
    assert "Ticket PROJ-3" in out


LEGACY_TEST = """package example_project

import (
	"os"
	"testing"
)

func TestLegacyQuarantined(t *testing.T) {
	if os.Getenv("RUN_QUARANTINED_TESTS") != "true" {
		t.Skip("Flaky test quarantined. Ticket PROJ-4. Done automatically by goquarantine")
	} else {
		t.Logf("Running quarantined test")
	}
	helper(t)
}
"""


def test_legacy_guard_removal_still_vets(repo: Path) -> None:
    (repo / "legacy_test.go").write_text(LEGACY_TEST, encoding="utf-8")

    results = unquarantine_tests(repo, [QuarantineTarget(PKG, ["TestLegacyQuarantined"])])
    assert results.failures() == []
    write_results(results)

    text = (repo / "legacy_test.go").read_text(encoding="utf-8")
    assert '"os"' not in text
    _go(repo, "vet", ".")
    assert "--- PASS: TestLegacyQuarantined" in _go(repo, "test", "-v", "-run", "^TestLegacyQuarantined$", ".").stdout
