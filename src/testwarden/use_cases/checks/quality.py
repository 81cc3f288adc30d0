"""Test quality checks for pylint (W9701-W9712, W9799)."""

from collections.abc import Mapping
from fnmatch import fnmatch
from pathlib import PurePath
from typing import TYPE_CHECKING

import astroid

if TYPE_CHECKING:
    from pylint.lint import PyLinter

from pylint.checkers import BaseChecker

from testwarden.domain.protocols import SourceModelBuilderProtocol
from testwarden.domain.registry_types import RuleRegistryEntry
from testwarden.domain.rule_msgs import RuleMsgBuilder
from testwarden.use_cases.rule_engine import RuleEngine


class TestQualityChecker(BaseChecker):
    """W9701-W9712, W9799: one message per finding. Thin: delegates to the RuleEngine."""

    __test__ = False

    name: str = "testwarden"

    def __init__(
        self,
        linter: "PyLinter",
        model_builder: SourceModelBuilderProtocol,
        engine: RuleEngine,
        registry: Mapping[str, RuleRegistryEntry],
        test_file_patterns: tuple[str, ...],
    ) -> None:
        self.msgs = RuleMsgBuilder.build_msgs(registry)  # type: ignore[assignment]
        super().__init__(linter)
        self._model_builder = model_builder
        self._engine = engine
        self._codes = RuleMsgBuilder.code_map(registry)
        self._patterns = test_file_patterns

    def is_test_module(self, node: astroid.nodes.Module) -> bool:
        if not node.file:
            return False
        filename = PurePath(node.file).name
        return any(fnmatch(filename, pattern) for pattern in self._patterns)

    def visit_module(self, node: astroid.nodes.Module) -> None:
        """Model the test module, run every selected rule and report each finding."""
        if not self.is_test_module(node):
            return
        test_file = self._model_builder.build_from_module(node, node.file)
        for finding in self._engine.evaluate(test_file):
            code = self._codes.get(finding.rule_id)
            if code is None:
                continue
            self.add_message(
                code,
                line=finding.evidence.start_line,
                end_lineno=finding.evidence.end_line,
                node=node,
                args=(f"{finding.unit}: {finding.message}",),
            )
