from __future__ import annotations

from typing import Sequence

import pytest

from pipeline.extractor import unquarantine_source
from pipeline.gosyntax import parse_go
from pipeline.injector import quarantine_source
from pipeline.matcher import match_declarations


def _run(fn, source: str, names: Sequence[str], **kwargs):
    src = parse_go(source.encode("utf-8"))
    match = match_declarations(src, list(names))
    return fn(src, match.found, **kwargs)


def quarantine(source: str, names: Sequence[str]) -> str:
    return _run(quarantine_source, source, names, reason="PROJ-7").data.decode()


def unquarantine(source: str, names: Sequence[str]):
    return _run(unquarantine_source, source, names)


SOURCES = {
    "whole": (
        """package pkg

import "testing"

func TestFlaky(t *testing.T) {
	t.Parallel()

	doWork(t)
}
""",
        ["TestFlaky"],
    ),
    "one_line_callback": (
        """package pkg

import "testing"

func TestOneLine(t *testing.T) {
	t.Run("fast", func(t *testing.T) { doWork(t) })
	t.Run("slow", func(t *testing.T) { doWork(t) })
}
""",
        ["TestOneLine/fast"],
    ),
    "one_line_function": (
        'package pkg\n\nimport "testing"\n\nfunc TestOneLine(t *testing.T) { doWork(t) }\n',
        ["TestOneLine"],
    ),
    "table": (
        """package pkg

import (
	"fmt"
	"testing"
)

func TestTable(t *testing.T) {
	for i := 0; i < 3; i++ {
		// each case is independent
		t.Run(fmt.Sprintf("case %d", i), func(t *testing.T) {
			doWork(t)
		})
	}
}
""",
        ["TestTable/case_1", "TestTable/case_2"],
    ),
    "comment_first": (
        """package pkg

import "testing"

func TestCommented(t *testing.T) {
	// leading comment stays put
	doWork(t)
}
""",
        ["TestCommented"],
    ),
    "empty_body": (
        'package pkg\n\nimport "testing"\n\nfunc TestEmpty(t *testing.T) {}\n',
        ["TestEmpty"],
    ),
}


@pytest.mark.parametrize("case", sorted(SOURCES))
def test_quarantine_then_unquarantine_restores_bytes(case: str) -> None:
    source, names = SOURCES[case]

    quarantined = quarantine(source, names)
    assert quarantined != source

    restored = unquarantine(quarantined, names)
    assert restored.data.decode() == source
    assert all(o.changed for o in restored.outcomes.values())


def test_unquarantine_without_guard_is_noop_success() -> None:
    source, names = SOURCES["whole"]

    out = unquarantine(source, names)

    assert out.data.decode() == source
    assert out.outcomes["TestFlaky"].changed is False
    assert out.outcomes["TestFlaky"].ok


def test_unquarantine_removes_only_requested_subtest_names() -> None:
    source, names = SOURCES["table"]
    quarantined = quarantine(source, names)

    out = unquarantine(quarantined, ["TestTable/case_1"]).data.decode()

    assert 'if t.Name() == "TestTable/case_2" {' in out
    assert "TestTable/case_1" not in out


def test_unquarantine_whole_function_keeps_subtest_guards() -> None:
    source, _ = SOURCES["one_line_callback"]
    quarantined = quarantine(source, ["TestOneLine", "TestOneLine/fast"])

    out = unquarantine(quarantined, ["TestOneLine"]).data.decode()

    assert out == quarantine(source, ["TestOneLine/fast"])


LEGACY = """package pkg

import (
	"os"
	"testing"
)

func TestLegacy(t *testing.T) {
	if os.Getenv("RUN_QUARANTINED_TESTS") != "true" {
		t.Skip("Flaky test quarantined. Ticket PROJ-9. Done automatically by goquarantine")
	} else {
		t.Logf("Running quarantined test")
	}
	doWork(t)
}
"""


def test_legacy_guard_removed_with_unused_os_import() -> None:
    out = unquarantine(LEGACY, ["TestLegacy"])

    assert out.data.decode() == """package pkg

import (
	"testing"
)

func TestLegacy(t *testing.T) {
	doWork(t)
}
"""
    assert out.outcomes["TestLegacy"].changed is True


def test_legacy_guard_keeps_os_import_still_in_use() -> None:
    source = LEGACY.replace("\tdoWork(t)\n", '\tdoWork(t, os.Getenv("HOME"))\n')

    out = unquarantine(source, ["TestLegacy"]).data.decode()

    assert '\t"os"\n' in out
    assert "RUN_QUARANTINED_TESTS" not in out


def test_legacy_guard_single_os_import_declaration_is_dropped() -> None:
    source = """package pkg

import "os"

import "testing"

func TestLegacy(t *testing.T) {
	if os.Getenv("RUN_QUARANTINED_TESTS") != "true" {
		t.Skip("Flaky test quarantined. Done automatically by goquarantine")
	} else {
		t.Logf("Running quarantined test")
	}
}
"""

    out = unquarantine(source, ["TestLegacy"]).data.decode()

    assert out == 'package pkg\n\nimport "testing"\n\nfunc TestLegacy(t *testing.T) {}\n'


def test_foreign_skip_is_not_removed() -> None:
    source = 'package pkg\n\nimport "testing"\n\nfunc TestManual(t *testing.T) {\n\tt.Skip("broken, see #12")\n}\n'

    out = unquarantine(source, ["TestManual"])

    assert out.data.decode() == source
    assert out.outcomes["TestManual"].changed is False


def test_two_line_empty_body_comes_back_as_one_line() -> None:
    one_line = 'package pkg\n\nimport "testing"\n\nfunc TestEmpty(t *testing.T) {}\n'
    two_lines = one_line.replace("{}", "{\n}")

    quarantined = quarantine(two_lines, ["TestEmpty"])

    assert quarantined == quarantine(one_line, ["TestEmpty"])
    assert unquarantine(quarantined, ["TestEmpty"]).data.decode() == one_line
