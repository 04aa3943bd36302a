"""
Scenario tests for overlay merging.

Test data is in: test_data/scenarios/<scenario_name>/
Each directory contains:
  - generated.py: The baseline module
  - custom.py: The overlay module
  - expectations.json: Expected outcomes and fragments of the merged module
"""

from __future__ import annotations

import ast
import json
from pathlib import Path

import pytest

from overlay_merge.merger import PythonOverlayMerger


def discover_scenarios():
    """Discover all merge scenarios."""
    scenarios_dir = Path(__file__).parent / "test_data" / "scenarios"
    scenarios = []

    for scenario_dir in sorted(scenarios_dir.iterdir()):
        if not scenario_dir.is_dir():
            continue
        with open(scenario_dir / "expectations.json") as f:
            expectations = json.load(f)
        scenarios.append(
            {
                "name": scenario_dir.name,
                "generated": (scenario_dir / "generated.py").read_text(encoding="utf-8"),
                "custom": (scenario_dir / "custom.py").read_text(encoding="utf-8"),
                "expectations": expectations,
            }
        )

    return scenarios


def get_test_ids():
    """Get test IDs for pytest parametrization."""
    return [scenario["name"] for scenario in discover_scenarios()]


def function_names(code: str) -> list[str]:
    return [node.name for node in ast.parse(code).body if isinstance(node, ast.FunctionDef)]


def class_member_names(code: str, class_name: str) -> list[str]:
    """Names of the properties and methods of a class, in order."""
    tree = ast.parse(code)
    class_def = next(n for n in tree.body if isinstance(n, ast.ClassDef) and n.name == class_name)
    names = []
    for member in class_def.body:
        if isinstance(member, ast.FunctionDef):
            names.append(member.name)
        elif isinstance(member, ast.AnnAssign) and isinstance(member.target, ast.Name):
            names.append(member.target.id)
        elif isinstance(member, ast.Assign) and isinstance(member.targets[0], ast.Name):
            names.append(member.targets[0].id)
    return names


class TestScenarios:
    """Tests merging each scenario's overlay into its baseline."""

    @pytest.mark.parametrize("scenario", discover_scenarios(), ids=get_test_ids())
    def test_merged_code(self, scenario):
        result = PythonOverlayMerger().merge(scenario["custom"], scenario["generated"])
        expectations = scenario["expectations"]

        # Merged code must always be valid Python
        ast.parse(result.code)

        for expected in expectations["expected_contains"]:
            assert expected in result.code, f"Expected '{expected}' not found in merged code:\n{result.code}"
        for not_expected in expectations["expected_not_contains"]:
            assert not_expected not in result.code, f"Unwanted '{not_expected}' found in merged code:\n{result.code}"

        if "function_order" in expectations:
            assert function_names(result.code) == expectations["function_order"]
        for class_name, members in expectations.get("class_members", {}).items():
            assert class_member_names(result.code, class_name) == members

    @pytest.mark.parametrize("scenario", discover_scenarios(), ids=get_test_ids())
    def test_outcomes(self, scenario):
        result = PythonOverlayMerger().merge(scenario["custom"], scenario["generated"])

        for qualified_name, outcome in scenario["expectations"]["outcomes"].items():
            container, _, name = qualified_name.rpartition(".")
            recorded = result.outcome_of(name, container or None)
            assert recorded is not None and recorded.value == outcome, f"{qualified_name}: {recorded}"

    @pytest.mark.parametrize("scenario", discover_scenarios(), ids=get_test_ids())
    def test_merge_is_deterministic(self, scenario):
        merger = PythonOverlayMerger()
        first = merger.merge(scenario["custom"], scenario["generated"])
        second = merger.merge(scenario["custom"], scenario["generated"])
        assert first.code == second.code
        assert first.records == second.records


if __name__ == "__main__":
    pytest.main([__file__])
