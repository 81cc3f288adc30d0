"""
Pylint plugin entry point - composition root for the checker plugin.
Lives in infrastructure as it creates the container and wires dependencies.

Enable with ``pylint --load-plugins=testwarden.infrastructure.checker tests/``.
"""

from pylint.lint import PyLinter

from testwarden.infrastructure.di.container import TestwardenContainer
from testwarden.use_cases.checks.quality import TestQualityChecker
from testwarden.use_cases.rule_engine import RuleEngine


def register(linter: PyLinter) -> None:
    """Register checkers."""
    container = TestwardenContainer.get_instance()
    config_loader = container.get_config_loader()
    catalog = container.get_rule_catalog()
    registry = container.get_rule_registry().select(
        config_loader.rules, config_loader.exclude_rules, defaults=catalog.default_rule_ids())

    linter.register_checker(
        TestQualityChecker(
            linter,
            model_builder=container.get_model_builder(),
            engine=RuleEngine(registry),
            registry=catalog.get_registry(),
            test_file_patterns=config_loader.test_file_patterns,
        )
    )
