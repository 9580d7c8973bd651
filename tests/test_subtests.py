from __future__ import annotations

import pytest

from pipeline.gosyntax import parse_go, testing_package_names, top_level_functions
from pipeline.subtests import component_matches, find_subtest_callbacks

SOURCE = b"""package pkg

import "testing"

func TestMix(t *testing.T) {
	for _, name := range names {
		t.Run(name, func(t *testing.T) {
			t.Run("leaf/x", func(t *testing.T) {})
		})
	}
}
"""


def _callbacks():
    src = parse_go(SOURCE)
    decl = top_level_functions(src)[0]
    return find_subtest_callbacks(src, decl.child_by_field_name("body"), testing_package_names(src))


def test_component_matches_dedup_suffix() -> None:
    assert component_matches("case 1", "case_1")
    assert component_matches("case 1", "case_1#01")
    assert not component_matches("case 1", "case_1x")


@pytest.mark.parametrize(
    "parts, outer, leaf",
    [
        (["a"], True, False),
        (["a", "b"], True, False),
        (["a", "leaf", "x"], True, True),
        (["a", "b", "leaf", "x"], True, True),
        (["a", "leaf"], True, False),
        (["a", "leaf", "y"], True, False),
    ],
)
def test_levels_consume_slash_separated_parts(parts, outer, leaf) -> None:
    computed, static = _callbacks()

    assert computed.depth == 1 and static.depth == 2
    assert computed.matches(parts) is outer
    assert static.matches(parts) is leaf
