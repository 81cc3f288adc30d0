"""Report emitters: text, JSON and SARIF renderings of a Report, plus JSON parsing back."""

import json
from typing import TYPE_CHECKING

from testwarden import __version__
from testwarden.domain.findings import (
    Diagnostic,
    Evidence,
    FileReport,
    Finding,
    Report,
    Severity,
    UnitReport,
)
from testwarden.domain.protocols import ReportEmitterProtocol

if TYPE_CHECKING:
    from testwarden.domain.protocols import RuleCatalogProtocol

TOOL_NAME = "testwarden"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
SARIF_VERSION = "2.1.0"
_SARIF_LEVELS = {Severity.ERROR: "error", Severity.WARN: "warning", Severity.INFO: "note"}


class ReportEmitter(ReportEmitterProtocol):
    """Deterministic serializer: equal reports always render to identical text."""

    FORMATS = ("text", "json", "sarif")

    def __init__(self, catalog: "RuleCatalogProtocol | None" = None) -> None:
        self._catalog = catalog

    def emit(self, report: Report, fmt: str) -> str:
        if fmt == "text":
            return self._emit_text(report)
        if fmt == "json":
            return self._emit_json(report)
        if fmt == "sarif":
            return self._emit_sarif(report)
        raise ValueError(f"unknown report format '{fmt}' (expected one of: {', '.join(self.FORMATS)})")

    # ------------------------------------------------------------------- text

    def _emit_text(self, report: Report) -> str:
        lines = [
            f"{f.path}:{f.unit}:{f.rule_id}:{f.severity.value}:{f.message}"
            for f in report.findings()
        ]
        lines.extend(f"{d.path}:-:{d.kind}:ERROR:{d.message}" for d in report.diagnostics)
        return "\n".join(lines) + "\n" if lines else ""

    # ------------------------------------------------------------------- json

    def _emit_json(self, report: Report) -> str:
        payload = {"tool": {"name": TOOL_NAME, "version": __version__}, **report.to_dict()}
        return json.dumps(payload, indent=2) + "\n"

    def parse(self, text: str) -> Report:
        """Rebuild a Report from emitted JSON. Raises ValueError on malformed input."""
        try:
            data = json.loads(text)
            files = tuple(
                FileReport(
                    path=file_data["path"],
                    units=tuple(
                        UnitReport(
                            name=unit_data["name"],
                            line=int(unit_data["line"]),
                            findings=tuple(
                                self._finding(file_data["path"], unit_data, finding_data)
                                for finding_data in unit_data["findings"]
                            ),
                        )
                        for unit_data in file_data["units"]
                    ),
                )
                for file_data in data["files"]
            )
            diagnostics = tuple(
                Diagnostic(path=d["path"], kind=d["kind"], message=d["message"])
                for d in data.get("diagnostics", [])
            )
            files_analyzed = int(data.get("summary", {}).get("files_analyzed", len(files)))
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"malformed testwarden JSON report: missing or invalid {exc}") from exc
        return Report(files=files, diagnostics=diagnostics, files_analyzed=files_analyzed)

    def _finding(self, path: str, unit_data: dict, finding_data: dict) -> Finding:
        evidence = finding_data["evidence"]
        return Finding(
            rule_id=finding_data["rule_id"],
            severity=Severity(finding_data["severity"]),
            path=path,
            unit=unit_data["name"],
            unit_line=int(unit_data["line"]),
            message=finding_data["message"],
            evidence=Evidence(
                start_line=int(evidence["start_line"]),
                end_line=int(evidence["end_line"]),
                detail=evidence.get("detail", ""),
            ),
        )

    # ------------------------------------------------------------------ sarif

    def _emit_sarif(self, report: Report) -> str:
        findings = report.findings()
        rule_ids = sorted({f.rule_id for f in findings})
        results = [
            {
                "ruleId": f.rule_id,
                "ruleIndex": rule_ids.index(f.rule_id),
                "level": _SARIF_LEVELS[f.severity],
                "message": {"text": f"{f.unit}: {f.message}"},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": f.path},
                            "region": {
                                "startLine": max(f.evidence.start_line, 1),
                                "endLine": max(f.evidence.end_line, f.evidence.start_line, 1),
                            },
                        },
                        "logicalLocations": [{"fullyQualifiedName": f.unit, "kind": "function"}],
                    }
                ],
            }
            for f in findings
        ]
        notifications = [
            {
                "level": "error",
                "message": {"text": f"{d.kind}: {d.message}"},
                "locations": [{"physicalLocation": {"artifactLocation": {"uri": d.path}}}],
            }
            for d in report.diagnostics
        ]
        run: dict[str, object] = {
            "tool": {
                "driver": {
                    "name": TOOL_NAME,
                    "version": __version__,
                    "rules": [self._sarif_rule(rule_id) for rule_id in rule_ids],
                }
            },
            "results": results,
        }
        if notifications:
            run["invocations"] = [
                {"executionSuccessful": False, "toolExecutionNotifications": notifications}
            ]
        payload = {"$schema": SARIF_SCHEMA, "version": SARIF_VERSION, "runs": [run]}
        return json.dumps(payload, indent=2) + "\n"

    def _sarif_rule(self, rule_id: str) -> dict[str, object]:
        descriptor: dict[str, object] = {"id": rule_id}
        entry = self._catalog.get_entry(rule_id) if self._catalog else None
        if entry:
            descriptor["name"] = self._catalog.get_title(rule_id)
            descriptor["shortDescription"] = {"text": str(entry.get("short_description", ""))}
            descriptor["help"] = {"text": self._catalog.get_guidance(rule_id)}
            severity = entry.get("default_severity")
            if severity in Severity.__members__:
                descriptor["defaultConfiguration"] = {"level": _SARIF_LEVELS[Severity(severity)]}
        return descriptor
