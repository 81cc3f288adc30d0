"""Unit tests for findings, reports and the finding aggregator."""

import random
import unittest

from testwarden.domain.aggregator import FindingAggregator
from testwarden.domain.findings import (
    Diagnostic,
    Evidence,
    FailOn,
    Finding,
    Report,
    Severity,
)


def make_finding(
    rule_id: str = "FAST",
    severity: Severity = Severity.WARN,
    path: str = "tests/test_a.py",
    unit: str = "test_a",
    unit_line: int = 1,
    line: int = 2,
    message: str = "msg",
    detail: str = "",
) -> Finding:
    return Finding(rule_id, severity, path, unit, unit_line, message, Evidence(line, line, detail))


class TestSeverityAndFailOn(unittest.TestCase):
    def test_rank_orders_error_above_warn_above_info(self) -> None:
        self.assertGreater(Severity.ERROR.rank, Severity.WARN.rank)
        self.assertGreater(Severity.WARN.rank, Severity.INFO.rank)

    def test_fail_on_none_has_no_threshold(self) -> None:
        self.assertIsNone(FailOn.NONE.threshold)
        self.assertIs(FailOn.WARN.threshold, Severity.WARN)


class TestReport(unittest.TestCase):
    def setUp(self) -> None:
        self.aggregator = FindingAggregator()

    def test_exit_code_is_one_when_error_present_and_fail_on_error(self) -> None:
        report = self.aggregator.aggregate([make_finding(severity=Severity.ERROR)])
        self.assertEqual(report.exit_code(FailOn.ERROR), 1)

    def test_exit_code_is_zero_when_only_warnings_and_fail_on_error(self) -> None:
        report = self.aggregator.aggregate([make_finding(severity=Severity.WARN)])
        self.assertEqual(report.exit_code(FailOn.ERROR), 0)
        self.assertEqual(report.exit_code(FailOn.WARN), 1)

    def test_exit_code_is_zero_for_fail_on_none(self) -> None:
        report = self.aggregator.aggregate([make_finding(severity=Severity.ERROR)])
        self.assertEqual(report.exit_code(FailOn.NONE), 0)

    def test_diagnostics_force_exit_code_two(self) -> None:
        report = self.aggregator.aggregate([], [Diagnostic("bad.py", "ParseError", "bad.py:1: invalid syntax")])
        self.assertEqual(report.exit_code(FailOn.NONE), 2)

    def test_summary_counts_by_severity(self) -> None:
        report = self.aggregator.aggregate(
            [
                make_finding(severity=Severity.ERROR, line=2),
                make_finding(severity=Severity.WARN, line=3),
                make_finding(severity=Severity.INFO, line=4),
            ],
            files_analyzed=1,
        )
        self.assertEqual(
            report.summary(),
            {"files_analyzed": 1, "findings": 3, "errors": 1, "warnings": 1, "infos": 1, "diagnostics": 0},
        )

    def test_empty_report_serializes_with_empty_lists(self) -> None:
        self.assertEqual(Report().to_dict()["files"], [])


class TestFindingAggregator(unittest.TestCase):
    def setUp(self) -> None:
        self.aggregator = FindingAggregator()

    def test_identical_findings_are_deduplicated(self) -> None:
        report = self.aggregator.aggregate([make_finding(), make_finding()])
        self.assertEqual(len(report.findings()), 1)

    def test_units_ordered_by_line_and_findings_by_severity_then_rule(self) -> None:
        findings = [
            make_finding(rule_id="GIVEN_WHEN_THEN", severity=Severity.WARN, unit="test_b", unit_line=10, line=11),
            make_finding(rule_id="REPEATABLE", severity=Severity.ERROR, unit="test_b", unit_line=10, line=12),
            make_finding(rule_id="FAST", severity=Severity.WARN, unit="test_b", unit_line=10, line=13),
            make_finding(rule_id="FAST", severity=Severity.WARN, unit="test_a", unit_line=1, line=2),
        ]
        report = self.aggregator.aggregate(findings)
        units = report.files[0].units
        self.assertEqual([u.name for u in units], ["test_a", "test_b"])
        self.assertEqual(
            [f.rule_id for f in units[1].findings], ["REPEATABLE", "FAST", "GIVEN_WHEN_THEN"])

    def test_files_sorted_by_path(self) -> None:
        report = self.aggregator.aggregate(
            [make_finding(path="tests/test_z.py"), make_finding(path="tests/test_a.py")])
        self.assertEqual([f.path for f in report.files], ["tests/test_a.py", "tests/test_z.py"])

    def test_input_order_does_not_change_report(self) -> None:
        findings = [
            make_finding(rule_id=rule, severity=severity, unit=unit, unit_line=line, line=line + 1)
            for rule, severity in (("FAST", Severity.WARN), ("INDEPENDENT", Severity.ERROR))
            for unit, line in (("test_a", 1), ("test_b", 5), ("test_c", 9))
        ]
        shuffled = list(findings)
        random.Random(7).shuffle(shuffled)
        self.assertEqual(self.aggregator.aggregate(findings), self.aggregator.aggregate(shuffled))
