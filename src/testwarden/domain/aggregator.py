"""Finding aggregation: a pure reduction from raw findings to a Report."""

from collections.abc import Iterable

from testwarden.domain.findings import Diagnostic, FileReport, Finding, Report, UnitReport


class FindingAggregator:
    """Deduplicates, ranks and groups findings per file and per test unit."""

    def aggregate(
        self,
        findings: Iterable[Finding],
        diagnostics: Iterable[Diagnostic] = (),
        files_analyzed: int = 0,
    ) -> Report:
        unique: dict[tuple[object, ...], Finding] = {}
        for finding in findings:
            unique.setdefault(finding.dedupe_key, finding)

        by_file: dict[str, dict[tuple[int, str], list[Finding]]] = {}
        for finding in unique.values():
            units = by_file.setdefault(finding.path, {})
            units.setdefault((finding.unit_line, finding.unit), []).append(finding)

        files = tuple(
            FileReport(
                path=path,
                units=tuple(
                    UnitReport(
                        name=name,
                        line=line,
                        findings=tuple(sorted(group, key=lambda f: f.sort_key)),
                    )
                    for (line, name), group in sorted(by_file[path].items())
                ),
            )
            for path in sorted(by_file)
        )
        ordered_diagnostics = tuple(
            sorted(set(diagnostics), key=lambda d: (d.path, d.kind, d.message)))
        return Report(files=files, diagnostics=ordered_diagnostics, files_analyzed=files_analyzed)
