"""Source Model Builder: turns an astroid module into the immutable TestFile model.

Recognises pytest test functions and classes, unittest.TestCase subclasses,
lifecycle hooks (setUp/setUpClass/setup_method/... and pytest fixtures), field
declarations, resolved call sites, control flow and exception expectations.
The builder itself holds no per-file state and is safe to share between threads;
each build gets its own _ModuleModeler.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from astroid import nodes

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.constants import (
    ASSERTION_ARITY,
    BOOLEAN_ASSERTIONS,
    CLOCK_TARGETS,
    ENVIRONMENT_PATCH_CALLS,
    EXPECTATION_FUNCTIONS,
    EXPECTATION_METHODS,
    FAIL_FUNCTIONS,
    FIXTURE_DECORATORS,
    FREEZE_CALLS,
    IMMUTABLE_FACTORIES,
    MUTATING_METHODS,
    ONCE_SETUP_HOOKS,
    ONCE_TEARDOWN_HOOKS,
    PATCH_OBJECT_CALLS,
    PATCH_TARGET_CALLS,
    PER_TEST_SETUP_HOOKS,
    PER_TEST_TEARDOWN_HOOKS,
    SEED_CALLS,
    SUBSTITUTING_CALLS,
    SUBSTITUTING_DECORATORS,
    SUBSTITUTING_FIXTURES,
    TESTCASE_BASE_SUFFIX,
)
from testwarden.domain.model import (
    AccessKind,
    Action,
    ActionKind,
    CallSite,
    ExpectationStyle,
    FieldAccess,
    FieldIndex,
    FieldOrigin,
    FixtureField,
    HookKind,
    LifecycleHook,
    Span,
    TestFile,
    TestUnit,
)
from testwarden.domain.protocols import AstroidProtocol
from testwarden.infrastructure.gateways.astroid_gateway import ImportResolver

logger = logging.getLogger(__name__)

_TEXT_LIMIT = 100
_SHARED_ORIGINS = (FieldOrigin.MODULE, FieldOrigin.CLASS, FieldOrigin.ONCE_HOOK)


class SourceModelBuilder:
    """Builds TestFile models from source text or parsed astroid modules."""

    def __init__(self, astroid_gateway: AstroidProtocol, config: ConfigurationLoader) -> None:
        self._astroid = astroid_gateway
        self._config = config

    def build(self, source: str, path: str) -> TestFile:
        """Parse and model one test file. Raises ParseError on malformed input."""
        module = self._astroid.parse_source(source, path)
        return self.build_from_module(module, path)

    def build_from_module(self, module: nodes.Module, path: str) -> TestFile:
        test_file = _ModuleModeler(module, path, self._config).model()
        logger.debug(
            "Modeled %s: %d test unit(s) in %d scope(s)",
            path, len(test_file.all_units()), len(list(test_file.iter_scopes())))
        return test_file


class _Nodes:
    """Small astroid traversal helpers."""

    @staticmethod
    def walk(node: nodes.NodeNG) -> Iterator[nodes.NodeNG]:
        yield node
        for child in node.get_children():
            yield from _Nodes.walk(child)

    @staticmethod
    def walk_body(body: list[nodes.NodeNG]) -> Iterator[nodes.NodeNG]:
        for statement in body:
            yield from _Nodes.walk(statement)

    @staticmethod
    def span(node: nodes.NodeNG) -> Span:
        start = node.lineno or 0
        end = getattr(node, "end_lineno", None) or getattr(node, "tolineno", None) or start
        return Span(start, end)

    @staticmethod
    def header_span(node: nodes.NodeNG) -> Span:
        start = node.lineno or 0
        return Span(start, start)

    @staticmethod
    def text(node: nodes.NodeNG) -> str:
        lines = node.as_string().splitlines()
        first = lines[0].strip() if lines else ""
        return first if len(first) <= _TEXT_LIMIT else first[: _TEXT_LIMIT - 3] + "..."

    @staticmethod
    def decorators(node: nodes.FunctionDef | nodes.ClassDef) -> list[nodes.NodeNG]:
        return list(node.decorators.nodes) if node.decorators else []

    @staticmethod
    def parameters(fn: nodes.FunctionDef) -> list[str]:
        args = fn.args
        names = [a.name for a in (args.posonlyargs or []) + (args.args or []) + (args.kwonlyargs or [])]
        return [name for name in names if name not in ("self", "cls")]

    @staticmethod
    def assigned_names(target: nodes.NodeNG) -> list[nodes.AssignName]:
        if isinstance(target, nodes.AssignName):
            return [target]
        if isinstance(target, (nodes.Tuple, nodes.List)):
            return [n for elt in target.elts for n in _Nodes.assigned_names(elt)]
        return []

    @staticmethod
    def assigned_value(node: nodes.NodeNG) -> nodes.NodeNG | None:
        """Right-hand side of the assignment that binds node, if plain."""
        parent = node.parent
        if isinstance(parent, (nodes.Assign, nodes.AnnAssign)):
            return parent.value
        return None

    @staticmethod
    def is_store_subscript(sub: nodes.Subscript) -> bool:
        parent = sub.parent
        if isinstance(parent, nodes.Assign):
            return any(target is sub for target in parent.targets)
        if isinstance(parent, (nodes.AugAssign, nodes.AnnAssign)):
            return parent.target is sub
        return isinstance(parent, nodes.Delete)

    @staticmethod
    def is_mutation_receiver(node: nodes.NodeNG) -> bool:
        """node is mutated in place: x.append(...), x[k] = v, x.attr = v, del x[k]."""
        parent = node.parent
        if isinstance(parent, nodes.Attribute) and parent.expr is node:
            call = parent.parent
            return (
                parent.attrname in MUTATING_METHODS
                and isinstance(call, nodes.Call)
                and call.func is parent
            )
        if isinstance(parent, (nodes.AssignAttr, nodes.DelAttr)) and parent.expr is node:
            return True
        if isinstance(parent, nodes.Subscript) and parent.value is node:
            return _Nodes.is_store_subscript(parent)
        return False


@dataclass(eq=False)
class _Scope:
    name: str
    node: nodes.Module | nodes.ClassDef
    class_name: str = ""
    is_testcase: bool = False
    parent: _Scope | None = field(default=None, repr=False)
    tests: list[nodes.FunctionDef] = field(default_factory=list)
    hooks: list[LifecycleHook] = field(default_factory=list)
    fixtures: dict[str, LifecycleHook] = field(default_factory=dict)
    fields: dict[str, FixtureField] = field(default_factory=dict)
    markers: tuple[str, ...] = ()
    decorator_substitutions: tuple[str, ...] = ()
    assertion_helpers: set[str] = field(default_factory=set)
    children: list[_Scope] = field(default_factory=list)

    def chain(self) -> Iterator[_Scope]:
        scope: _Scope | None = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def shared_field_names(self) -> set[str]:
        return {name for name, f in self.fields.items() if f.origin in _SHARED_ORIGINS}

    def fixture_field_names(self) -> set[str]:
        return {name for name in self.fixtures if name in self.fields}

    def plain_field_names(self) -> set[str]:
        return self.shared_field_names() - self.fixture_field_names()


class _ModuleModeler:
    """Per-build state: import resolution, scopes and the field access index."""

    def __init__(self, module: nodes.Module, path: str, config: ConfigurationLoader) -> None:
        self._module = module
        self._path = path
        self._resolver = ImportResolver(module)
        self._test_prefix = config.test_function_prefix
        self._class_prefix = config.test_class_prefix
        self._assertion_functions = frozenset(config.assertion_functions)

    # ------------------------------------------------------------------ model

    def model(self) -> TestFile:
        root = self._module_scope()
        ordered = self._execution_order(root)
        orders = {id(fn): position for position, (_scope, fn) in enumerate(ordered)}

        module_accesses: list[FieldAccess] = []
        class_accesses: dict[int, list[FieldAccess]] = {}
        unit_accesses: dict[int, list[FieldAccess]] = {}
        for scope, fn in ordered:
            unit_name = self._unit_name(scope, fn)
            order = orders[id(fn)]
            from_module = self._module_accesses(fn, unit_name, order, root)
            from_class: list[FieldAccess] = []
            if scope is not root:
                from_class = self._class_accesses(fn, unit_name, order, scope)
            module_accesses.extend(from_module)
            class_accesses.setdefault(id(scope), []).extend(from_class)
            unit_accesses[id(fn)] = from_module + from_class

        return self._scope_file(root, root, orders, module_accesses, class_accesses, unit_accesses)

    def _scope_file(
        self,
        scope: _Scope,
        root: _Scope,
        orders: dict[int, int],
        module_accesses: list[FieldAccess],
        class_accesses: dict[int, list[FieldAccess]],
        unit_accesses: dict[int, list[FieldAccess]],
    ) -> TestFile:
        units = tuple(
            sorted(
                (self._unit(scope, fn, orders[id(fn)], unit_accesses[id(fn)]) for fn in scope.tests),
                key=lambda u: u.span.start,
            )
        )
        fields = dict(scope.fields)
        if scope is not root:
            for name, inherited in root.fields.items():
                fields.setdefault(name, inherited)
        index = FieldIndex(tuple(class_accesses.get(id(scope), [])) + tuple(module_accesses))
        children = tuple(
            self._scope_file(child, root, orders, module_accesses, class_accesses, unit_accesses)
            for child in scope.children
        )
        return TestFile(
            path=self._path,
            scope=scope.name,
            units=units,
            hooks=tuple(scope.hooks),
            fields=tuple(fields.values()),
            field_index=index,
            children=children,
        )

    def _unit_name(self, scope: _Scope, fn: nodes.FunctionDef) -> str:
        return f"{scope.name}.{fn.name}" if scope.name else fn.name

    def _unit(
        self,
        scope: _Scope,
        fn: nodes.FunctionDef,
        order: int,
        accesses: list[FieldAccess],
    ) -> TestUnit:
        markers: list[str] = [self._decorator_name(d) for d in _Nodes.decorators(fn)]
        substitutions: list[str] = list(self._function_substitutions(fn))
        parameters = _Nodes.parameters(fn)
        for enclosing in scope.chain():
            markers.extend(enclosing.markers)
            substitutions.extend(enclosing.decorator_substitutions)
            for hook in enclosing.hooks:
                if hook.runs_for_every_test:
                    substitutions.extend(hook.substitutions)
            for parameter in parameters:
                requested = enclosing.fixtures.get(parameter)
                if requested is not None:
                    substitutions.extend(requested.substitutions)
        return TestUnit(
            name=self._unit_name(scope, fn),
            span=_Nodes.span(fn),
            order=order,
            actions=self._actions(fn.body, scope),
            markers=tuple(dict.fromkeys(markers)),
            parameters=tuple(parameters),
            substitutions=tuple(dict.fromkeys(substitutions)),
            accesses=tuple(accesses),
        )

    # ----------------------------------------------------------------- scopes

    def _module_scope(self) -> _Scope:
        scope = _Scope(name="", node=self._module)
        for statement in self._module.body:
            if isinstance(statement, (nodes.Assign, nodes.AnnAssign)):
                self._declare_assignment(scope, statement, FieldOrigin.MODULE)
        for statement in self._module.body:
            if isinstance(statement, nodes.FunctionDef):
                self._declare_function(scope, statement)
            elif isinstance(statement, nodes.ClassDef) and self._is_test_class(statement):
                scope.children.append(self._class_scope(statement, scope))
        self._declare_test_created_fields(scope)
        return scope

    def _class_scope(self, cls: nodes.ClassDef, parent: _Scope) -> _Scope:
        scope = _Scope(
            name=f"{parent.name}.{cls.name}" if parent.name else cls.name,
            node=cls,
            class_name=cls.name,
            is_testcase=self._is_testcase(cls),
            parent=parent,
            markers=tuple(self._decorator_name(d) for d in _Nodes.decorators(cls)),
            decorator_substitutions=tuple(
                s for d in _Nodes.decorators(cls) for s in self._decorator_substitutions(d)),
        )
        for statement in cls.body:
            if isinstance(statement, (nodes.Assign, nodes.AnnAssign)):
                self._declare_assignment(scope, statement, FieldOrigin.CLASS)
        for statement in cls.body:
            if isinstance(statement, nodes.FunctionDef):
                self._declare_function(scope, statement)
            elif isinstance(statement, nodes.ClassDef) and self._is_test_class(statement):
                scope.children.append(self._class_scope(statement, scope))
        self._declare_test_created_fields(scope)
        return scope

    def _is_testcase(self, cls: nodes.ClassDef) -> bool:
        return any(base.as_string().endswith(TESTCASE_BASE_SUFFIX) for base in cls.bases)

    def _is_test_class(self, cls: nodes.ClassDef) -> bool:
        return cls.name.startswith(self._class_prefix) or self._is_testcase(cls)

    def _declare_assignment(
        self, scope: _Scope, statement: nodes.Assign | nodes.AnnAssign, origin: FieldOrigin
    ) -> None:
        if statement.value is None:
            return
        targets = statement.targets if isinstance(statement, nodes.Assign) else [statement.target]
        for target in targets:
            for name_node in _Nodes.assigned_names(target):
                name = name_node.name
                if name == "pytestmark" or (name.startswith("__") and name.endswith("__")):
                    continue
                scope.fields[name] = FixtureField(
                    name=name,
                    origin=origin,
                    span=_Nodes.span(statement),
                    scope=scope.name,
                    mutable=self._is_mutable(statement.value),
                )

    def _declare_test_created_fields(self, scope: _Scope) -> None:
        """Class attributes and globals that a test binds without any earlier declaration."""
        root = next(s for s in scope.chain() if s.parent is None)
        class_receivers = {"cls", scope.class_name} if scope.class_name else set()
        for fn in scope.tests:
            declared_global = {n for g in _Nodes.walk_body(fn.body) if isinstance(g, nodes.Global) for n in g.names}
            for node in _Nodes.walk_body(fn.body):
                if isinstance(node, nodes.AssignAttr) and class_receivers:
                    if node.attrname in scope.fields or not self._is_class_reference(node.expr, class_receivers):
                        continue
                    target, owner, origin = node.attrname, scope, FieldOrigin.CLASS
                elif isinstance(node, nodes.AssignName) and node.name in declared_global:
                    if node.name in root.fields:
                        continue
                    target, owner, origin = node.name, root, FieldOrigin.MODULE
                else:
                    continue
                value = _Nodes.assigned_value(node)
                owner.fields[target] = FixtureField(
                    name=target,
                    origin=origin,
                    span=_Nodes.span(node.parent),
                    scope=owner.name,
                    mutable=value is not None and self._is_mutable(value),
                )

    def _declare_function(self, scope: _Scope, fn: nodes.FunctionDef) -> None:
        fixture = self._fixture_info(fn)
        if fixture is not None:
            fixture_scope, autouse = fixture
            hook = LifecycleHook(
                name=fn.name,
                kind=HookKind.FIXTURE,
                span=_Nodes.span(fn),
                scope=fixture_scope,
                autouse=autouse,
                substitutions=tuple(self._function_substitutions(fn)),
            )
            scope.hooks.append(hook)
            scope.fixtures[fn.name] = hook
            if hook.once_only:
                scope.fields[fn.name] = FixtureField(
                    name=fn.name,
                    origin=FieldOrigin.ONCE_HOOK,
                    span=hook.span,
                    scope=scope.name,
                    mutable=self._fixture_value_mutable(fn),
                    hook=fn.name,
                )
            elif scope.class_name:
                self._declare_hook_attributes(scope, fn, once=False)
            return
        if fn.name.startswith(self._test_prefix):
            scope.tests.append(fn)
            return
        kind = self._hook_kind(fn.name)
        if kind is not None:
            scope.hooks.append(
                LifecycleHook(
                    name=fn.name,
                    kind=kind,
                    span=_Nodes.span(fn),
                    scope="function" if kind in (HookKind.PER_TEST_SETUP, HookKind.PER_TEST_TEARDOWN)
                    else ("class" if scope.class_name else "module"),
                    substitutions=tuple(self._function_substitutions(fn)),
                )
            )
            if kind is HookKind.ONCE_SETUP:
                self._declare_hook_attributes(scope, fn, once=True)
            elif kind is HookKind.PER_TEST_SETUP and scope.class_name:
                self._declare_hook_attributes(scope, fn, once=False)
            return
        if self._contains_assertion(fn):
            scope.assertion_helpers.add(fn.name)

    def _declare_hook_attributes(self, scope: _Scope, fn: nodes.FunctionDef, once: bool) -> None:
        """Fields assigned by a hook: cls.x / self.x in classes, globals in setup_module."""
        if not scope.class_name:
            declared = {n for g in _Nodes.walk_body(fn.body) if isinstance(g, nodes.Global) for n in g.names}
            for node in _Nodes.walk_body(fn.body):
                if isinstance(node, nodes.AssignName) and node.name in declared:
                    value = _Nodes.assigned_value(node)
                    scope.fields[node.name] = FixtureField(
                        name=node.name,
                        origin=FieldOrigin.ONCE_HOOK,
                        span=_Nodes.span(node.parent),
                        scope=scope.name,
                        mutable=value is not None and self._is_mutable(value),
                        hook=fn.name,
                    )
            return
        receivers = {"cls", "self", scope.class_name} if once else {"self"}
        for node in _Nodes.walk_body(fn.body):
            if not isinstance(node, nodes.AssignAttr):
                continue
            if not (isinstance(node.expr, nodes.Name) and node.expr.name in receivers):
                continue
            existing = scope.fields.get(node.attrname)
            if once and existing is not None and existing.origin is FieldOrigin.PER_TEST_HOOK:
                # setUp rebinds it before every test.
                continue
            value = _Nodes.assigned_value(node)
            scope.fields[node.attrname] = FixtureField(
                name=node.attrname,
                origin=FieldOrigin.ONCE_HOOK if once else FieldOrigin.PER_TEST_HOOK,
                span=_Nodes.span(node.parent),
                scope=scope.name,
                mutable=value is not None and self._is_mutable(value),
                hook=fn.name,
            )

    def _hook_kind(self, name: str) -> HookKind | None:
        if name in PER_TEST_SETUP_HOOKS:
            return HookKind.PER_TEST_SETUP
        if name in PER_TEST_TEARDOWN_HOOKS:
            return HookKind.PER_TEST_TEARDOWN
        if name in ONCE_SETUP_HOOKS:
            return HookKind.ONCE_SETUP
        if name in ONCE_TEARDOWN_HOOKS:
            return HookKind.ONCE_TEARDOWN
        return None

    def _fixture_info(self, fn: nodes.FunctionDef) -> tuple[str, bool] | None:
        for decorator in _Nodes.decorators(fn):
            target = decorator.func if isinstance(decorator, nodes.Call) else decorator
            if self._resolver.qualify(target) not in FIXTURE_DECORATORS:
                continue
            fixture_scope, autouse = "function", False
            if isinstance(decorator, nodes.Call):
                for keyword in decorator.keywords or []:
                    if not isinstance(keyword.value, nodes.Const):
                        continue
                    if keyword.arg == "scope":
                        fixture_scope = str(keyword.value.value)
                    elif keyword.arg == "autouse":
                        autouse = bool(keyword.value.value)
            return fixture_scope, autouse
        return None

    def _fixture_value_mutable(self, fn: nodes.FunctionDef) -> bool:
        for node in _Nodes.walk_body(fn.body):
            if isinstance(node, (nodes.Return, nodes.Yield)) and node.value is not None:
                value = node.value
                if isinstance(value, nodes.Name):
                    bound = self._local_value(fn, value.name)
                    return bound is None or self._is_mutable(bound)
                return self._is_mutable(value)
        return False

    def _local_value(self, fn: nodes.FunctionDef, name: str) -> nodes.NodeNG | None:
        for node in _Nodes.walk_body(fn.body):
            if isinstance(node, nodes.AssignName) and node.name == name:
                return _Nodes.assigned_value(node)
        return None

    def _is_mutable(self, value: nodes.NodeNG) -> bool:
        if isinstance(value, (nodes.List, nodes.Dict, nodes.Set, nodes.ListComp, nodes.DictComp, nodes.SetComp)):
            return True
        if isinstance(value, nodes.Call):
            short = self._resolver.qualify(value.func).rsplit(".", 1)[-1]
            return short not in IMMUTABLE_FACTORIES
        return False

    def _execution_order(self, scope: _Scope) -> list[tuple[_Scope, nodes.FunctionDef]]:
        """pytest runs tests in source order; unittest.TestCase runs methods alphabetically."""
        ordered: list[tuple[_Scope, nodes.FunctionDef]] = []
        if scope.is_testcase:
            ordered.extend((scope, fn) for fn in sorted(scope.tests, key=lambda fn: fn.name))
            for child in scope.children:
                ordered.extend(self._execution_order(child))
            return ordered
        children = {id(child.node): child for child in scope.children}
        for statement in scope.node.body:
            if isinstance(statement, nodes.FunctionDef) and statement in scope.tests:
                ordered.append((scope, statement))
            elif id(statement) in children:
                ordered.extend(self._execution_order(children[id(statement)]))
        return ordered

    # ---------------------------------------------------------------- actions

    def _actions(self, body: list[nodes.NodeNG], scope: _Scope) -> tuple[Action, ...]:
        actions: list[Action] = []
        for statement in body:
            actions.extend(self._statement_actions(statement, scope))
        return tuple(actions)

    def _statement_actions(self, statement: nodes.NodeNG, scope: _Scope) -> list[Action]:
        if isinstance(statement, nodes.Assert):
            return [self._assert_action(statement)]
        if isinstance(statement, nodes.Expr):
            value = statement.value
            if isinstance(value, nodes.Await):
                value = value.value
            if isinstance(value, nodes.Const):
                return []
            if isinstance(value, nodes.Call):
                return [self._call_action(statement, value, scope)]
            return self._plain_action(ActionKind.CALL, statement, statement)
        if isinstance(statement, (nodes.Assign, nodes.AnnAssign, nodes.AugAssign)):
            targets = statement.targets if isinstance(statement, nodes.Assign) else [statement.target]
            return [
                Action(
                    kind=ActionKind.ASSIGNMENT,
                    span=_Nodes.span(statement),
                    text=_Nodes.text(statement),
                    target=", ".join(t.as_string() for t in targets),
                    calls=self._calls_in(statement.value) if statement.value is not None else (),
                )
            ]
        if isinstance(statement, (nodes.For, nodes.AsyncFor)):
            return [self._compound(ActionKind.LOOP, "for loop", statement, statement.iter,
                                   statement.body + statement.orelse, scope)]
        if isinstance(statement, nodes.While):
            return [self._compound(ActionKind.LOOP, "while loop", statement, statement.test,
                                   statement.body + statement.orelse, scope)]
        if isinstance(statement, nodes.If):
            return [self._compound(ActionKind.CONDITIONAL, "if statement", statement, statement.test,
                                   statement.body + statement.orelse, scope)]
        if isinstance(statement, nodes.Match):
            body = [s for case in statement.cases for s in case.body]
            return [self._compound(ActionKind.CONDITIONAL, "match statement", statement,
                                   statement.subject, body, scope)]
        if isinstance(statement, (nodes.With, nodes.AsyncWith)):
            return self._with_actions(statement, scope)
        if isinstance(statement, (nodes.Try, nodes.TryStar)):
            return self._try_actions(statement, scope)
        if isinstance(statement, nodes.Raise):
            if self._raises_assertion_error(statement):
                return [Action(ActionKind.ASSERTION, _Nodes.span(statement), _Nodes.text(statement),
                               target="raise", has_message=True)]
            return self._plain_action(ActionKind.CALL, statement, statement)
        if isinstance(statement, nodes.Return) and statement.value is not None:
            return self._plain_action(ActionKind.CALL, statement, statement.value)
        return []

    def _plain_action(self, kind: ActionKind, statement: nodes.NodeNG, expression: nodes.NodeNG) -> list[Action]:
        calls = self._calls_in(expression)
        if not calls:
            return []
        return [Action(kind, _Nodes.span(statement), _Nodes.text(statement), target=calls[0].name, calls=calls)]

    def _compound(
        self,
        kind: ActionKind,
        label: str,
        statement: nodes.NodeNG,
        header: nodes.NodeNG,
        body: list[nodes.NodeNG],
        scope: _Scope,
    ) -> Action:
        return Action(
            kind=kind,
            span=_Nodes.span(statement),
            text=_Nodes.text(statement),
            target=label,
            calls=self._calls_in(header),
            children=self._actions(body, scope),
        )

    def _assert_action(self, statement: nodes.Assert) -> Action:
        boolean = not isinstance(statement.test, nodes.Compare)
        return Action(
            kind=ActionKind.ASSERTION,
            span=_Nodes.span(statement),
            text=_Nodes.text(statement),
            target="boolean" if boolean else "comparison",
            calls=self._calls_in(statement.test),
            has_message=statement.fail is not None,
        )

    def _call_action(self, statement: nodes.Expr, call: nodes.Call, scope: _Scope) -> Action:
        name = self._resolver.qualify(call.func)
        short = name.rsplit(".", 1)[-1]
        calls = self._calls_in(call)
        span = _Nodes.span(statement)
        text = _Nodes.text(statement)
        if self._is_expectation_name(name) and len(call.args) >= 2:
            return Action(
                kind=ActionKind.EXPECTATION,
                span=span,
                text=text,
                target=call.args[0].as_string(),
                calls=calls,
                style=ExpectationStyle.DECLARATIVE,
            )
        if any(self._is_assertion_name(c.name.replace("()", ""), scope) for c in calls):
            return Action(
                kind=ActionKind.ASSERTION,
                span=span,
                text=text,
                target="boolean" if short in BOOLEAN_ASSERTIONS else short,
                calls=calls,
                has_message=self._assertion_has_message(call, short),
            )
        return Action(kind=ActionKind.CALL, span=span, text=text, target=name, calls=calls)

    def _with_actions(self, statement: nodes.With | nodes.AsyncWith, scope: _Scope) -> list[Action]:
        expectation: nodes.Call | None = None
        header_calls: list[CallSite] = []
        for context, _alias in statement.items:
            if (
                expectation is None
                and isinstance(context, nodes.Call)
                and self._is_expectation_name(self._resolver.qualify(context.func))
            ):
                expectation = context
            header_calls.extend(self._calls_in(context))
        body = self._actions(statement.body, scope)
        if expectation is not None:
            target = expectation.args[0].as_string() if expectation.args else self._resolver.qualify(expectation.func)
            return [
                Action(
                    kind=ActionKind.EXPECTATION,
                    span=_Nodes.span(statement),
                    text=_Nodes.text(statement),
                    target=target,
                    calls=tuple(header_calls),
                    children=body,
                    style=ExpectationStyle.DECLARATIVE,
                )
            ]
        header: list[Action] = []
        if header_calls:
            header.append(
                Action(
                    kind=ActionKind.CALL,
                    span=_Nodes.header_span(statement),
                    text=_Nodes.text(statement),
                    target=header_calls[0].name,
                    calls=tuple(header_calls),
                )
            )
        return header + list(body)

    def _try_actions(self, statement: nodes.Try | nodes.TryStar, scope: _Scope) -> list[Action]:
        body = self._actions(statement.body, scope)
        handled = tuple(a for handler in statement.handlers for a in self._actions(handler.body, scope))
        rest = self._actions(statement.orelse, scope) + self._actions(statement.finalbody, scope)
        # A handler that only fails asserts the exception does not happen.
        expecting = [
            handler for handler in statement.handlers
            if not self._body_fails(handler.body)
            and any(action.contains_verification() for action in self._actions(handler.body, scope))
        ]
        manual = bool(statement.handlers) and (bool(expecting) or self._body_fails(statement.body))
        if not manual:
            return list(body + handled + rest)
        caught = [h.type.as_string() for h in statement.handlers if h.type is not None]
        return [
            Action(
                kind=ActionKind.EXPECTATION,
                span=_Nodes.span(statement),
                text=_Nodes.text(statement),
                target=", ".join(caught) or "an exception",
                children=body + handled + rest,
                style=ExpectationStyle.MANUAL,
            )
        ]

    def _body_fails(self, body: list[nodes.NodeNG]) -> bool:
        for statement in body:
            if isinstance(statement, nodes.Assert) and isinstance(statement.test, nodes.Const):
                if not statement.test.value:
                    return True
            if isinstance(statement, nodes.Raise) and self._raises_assertion_error(statement):
                return True
            if (
                isinstance(statement, nodes.Expr)
                and isinstance(statement.value, nodes.Call)
                and self._resolver.qualify(statement.value.func) in FAIL_FUNCTIONS
            ):
                return True
        return False

    def _raises_assertion_error(self, statement: nodes.Raise) -> bool:
        exc = statement.exc
        if isinstance(exc, nodes.Call):
            exc = exc.func
        return exc is not None and self._resolver.qualify(exc) == "AssertionError"

    # ------------------------------------------------------ calls & assertions

    def _calls_in(self, node: nodes.NodeNG) -> tuple[CallSite, ...]:
        found = [n for n in _Nodes.walk(node) if isinstance(n, nodes.Call)]
        found.sort(key=lambda n: (n.lineno or 0, n.col_offset or 0))
        return tuple(
            CallSite(
                name=self._resolver.qualify(call.func),
                span=_Nodes.span(call),
                arguments=tuple(arg.as_string() for arg in call.args)
                + tuple(kw.value.as_string() for kw in call.keywords or []),
            )
            for call in found
        )

    def _is_expectation_name(self, name: str) -> bool:
        return name in EXPECTATION_FUNCTIONS or name.rsplit(".", 1)[-1] in EXPECTATION_METHODS

    def _is_assertion_name(self, name: str, scope: _Scope | None) -> bool:
        short = name.rsplit(".", 1)[-1]
        if short in EXPECTATION_METHODS:
            return False
        if short.startswith("assert") or name in self._assertion_functions:
            return True
        if scope is None:
            return False
        for enclosing in scope.chain():
            if not enclosing.assertion_helpers:
                continue
            if enclosing.class_name and name == f"self.{short}" and short in enclosing.assertion_helpers:
                return True
            if not enclosing.class_name and name in enclosing.assertion_helpers:
                return True
        return False

    def _assertion_has_message(self, call: nodes.Call, short: str) -> bool:
        if short not in ASSERTION_ARITY:
            return True
        if any(keyword.arg == "msg" for keyword in call.keywords or []):
            return True
        return len(call.args) > ASSERTION_ARITY[short]

    def _contains_assertion(self, fn: nodes.FunctionDef) -> bool:
        for node in _Nodes.walk_body(fn.body):
            if isinstance(node, nodes.Assert):
                return True
            if isinstance(node, nodes.Call) and self._is_assertion_name(self._resolver.qualify(node.func), None):
                return True
        return False

    # ----------------------------------------------------------- substitutions

    def _decorator_name(self, decorator: nodes.NodeNG) -> str:
        target = decorator.func if isinstance(decorator, nodes.Call) else decorator
        return self._resolver.qualify(target)

    def _function_substitutions(self, fn: nodes.FunctionDef) -> list[str]:
        """Targets a test, hook or fixture replaces: decorators, patch calls, double fixtures."""
        found: list[str] = []
        for decorator in _Nodes.decorators(fn):
            found.extend(self._decorator_substitutions(decorator))
        for node in _Nodes.walk_body(fn.body):
            if isinstance(node, nodes.Call):
                found.extend(self._call_substitutions(node))
        for parameter in _Nodes.parameters(fn):
            found.extend(SUBSTITUTING_FIXTURES.get(parameter, ()))
        return found

    def _decorator_substitutions(self, decorator: nodes.NodeNG) -> list[str]:
        if isinstance(decorator, nodes.Call):
            return self._call_substitutions(decorator)
        return list(SUBSTITUTING_DECORATORS.get(self._resolver.qualify(decorator), ()))

    def _call_substitutions(self, call: nodes.Call) -> list[str]:
        name = self._resolver.qualify(call.func)
        args = call.args
        if name in PATCH_TARGET_CALLS:
            if args and isinstance(args[0], nodes.Const) and isinstance(args[0].value, str):
                return [args[0].value]
            if len(args) >= 2 and isinstance(args[1], nodes.Const) and isinstance(args[1].value, str):
                return [f"{self._resolver.qualify(args[0])}.{args[1].value}"]
            if args:
                return [self._resolver.qualify(args[0])]
            return []
        if name in PATCH_OBJECT_CALLS:
            if len(args) >= 2 and isinstance(args[1], nodes.Const) and isinstance(args[1].value, str):
                return [f"{self._resolver.qualify(args[0])}.{args[1].value}"]
            return []
        if name in ENVIRONMENT_PATCH_CALLS:
            return ["os.environ", "os.getenv"]
        if name in FREEZE_CALLS:
            return list(CLOCK_TARGETS)
        if name in SEED_CALLS:
            return list(SEED_CALLS[name]) if (args or call.keywords) else []
        if name in SUBSTITUTING_CALLS:
            return list(SUBSTITUTING_CALLS[name])
        return []

    # ---------------------------------------------------------- field accesses

    def _module_accesses(
        self, fn: nodes.FunctionDef, unit: str, order: int, root: _Scope
    ) -> list[FieldAccess]:
        """Reads and writes of module globals and module-level scoped fixtures."""
        plain = root.plain_field_names()
        fixtures = root.fixture_field_names()
        if not plain and not fixtures:
            return []
        parameters = set(_Nodes.parameters(fn))
        declared_global = {n for g in _Nodes.walk(fn) if isinstance(g, nodes.Global) for n in g.names}
        local = {n.name for n in _Nodes.walk(fn) if isinstance(n, nodes.AssignName)} - declared_global

        accesses: list[FieldAccess] = []
        for node in _Nodes.walk_body(fn.body):
            if isinstance(node, nodes.Name):
                is_global = node.name in plain and node.name not in local
                is_fixture = node.name in fixtures and node.name in parameters
                if not (is_global or is_fixture):
                    continue
                kind = AccessKind.WRITE if _Nodes.is_mutation_receiver(node) else AccessKind.READ
                accesses.append(FieldAccess(node.name, unit, order, kind, _Nodes.span(node)))
            elif isinstance(node, nodes.AssignName) and node.name in declared_global and node.name in plain:
                accesses.append(FieldAccess(node.name, unit, order, AccessKind.WRITE, _Nodes.span(node)))
                if isinstance(node.parent, nodes.AugAssign):
                    accesses.append(FieldAccess(node.name, unit, order, AccessKind.READ, _Nodes.span(node)))
        return accesses

    def _class_accesses(
        self, fn: nodes.FunctionDef, unit: str, order: int, scope: _Scope
    ) -> list[FieldAccess]:
        """Reads and writes of class attributes, once-hook attributes and class fixtures."""
        shared = scope.plain_field_names()
        receivers = {"self", "cls", scope.class_name}
        accesses: list[FieldAccess] = []
        for node in _Nodes.walk_body(fn.body):
            if not isinstance(node, (nodes.Attribute, nodes.AssignAttr)) or node.attrname not in shared:
                continue
            if not self._is_class_reference(node.expr, receivers):
                continue
            span = _Nodes.span(node)
            if isinstance(node, nodes.AssignAttr):
                if isinstance(node.expr, nodes.Name) and node.expr.name == "self":
                    # Rebinding through self creates an instance attribute.
                    continue
                accesses.append(FieldAccess(node.attrname, unit, order, AccessKind.WRITE, span))
                if isinstance(node.parent, nodes.AugAssign):
                    accesses.append(FieldAccess(node.attrname, unit, order, AccessKind.READ, span))
                continue
            kind = AccessKind.WRITE if _Nodes.is_mutation_receiver(node) else AccessKind.READ
            accesses.append(FieldAccess(node.attrname, unit, order, kind, span))
        accesses.extend(self._fixture_param_accesses(fn, unit, order, scope.fixture_field_names()))
        return accesses

    def _fixture_param_accesses(
        self, fn: nodes.FunctionDef, unit: str, order: int, fixtures: set[str]
    ) -> list[FieldAccess]:
        requested = fixtures & set(_Nodes.parameters(fn))
        accesses: list[FieldAccess] = []
        for node in _Nodes.walk_body(fn.body):
            if isinstance(node, nodes.Name) and node.name in requested:
                kind = AccessKind.WRITE if _Nodes.is_mutation_receiver(node) else AccessKind.READ
                accesses.append(FieldAccess(node.name, unit, order, kind, _Nodes.span(node)))
        return accesses

    def _is_class_reference(self, expr: nodes.NodeNG, receivers: set[str]) -> bool:
        if isinstance(expr, nodes.Name):
            return expr.name in receivers
        if isinstance(expr, nodes.Call):
            # type(self).attr
            return (
                isinstance(expr.func, nodes.Name)
                and expr.func.name == "type"
                and len(expr.args) == 1
                and isinstance(expr.args[0], nodes.Name)
                and expr.args[0].name == "self"
            )
        if isinstance(expr, nodes.Attribute):
            # self.__class__.attr
            return expr.attrname == "__class__" and isinstance(expr.expr, nodes.Name) and expr.expr.name == "self"
        return False
