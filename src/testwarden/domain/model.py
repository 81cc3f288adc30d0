"""Structural model of a test source file.

A TestFile is built once per parse pass and never mutated afterwards. Rules
only ever see these value objects, never the underlying syntax tree.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Span:
    """Inclusive line range in a source file."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            object.__setattr__(self, "end", self.start)


class ActionKind(str, Enum):
    ASSIGNMENT = "assignment"
    CALL = "call"
    ASSERTION = "assertion"
    CONDITIONAL = "conditional"
    LOOP = "loop"
    EXPECTATION = "expectation"


class ExpectationStyle(str, Enum):
    DECLARATIVE = "declarative"
    MANUAL = "manual"


@dataclass(frozen=True)
class CallSite:
    """A call made by a statement, with its callee resolved through imports."""

    name: str
    span: Span
    arguments: tuple[str, ...] = ()

    @property
    def short_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def receiver(self) -> str:
        return self.name.rsplit(".", 1)[0] if "." in self.name else ""

    @property
    def is_chained(self) -> bool:
        """Called on the result of another call; the inner call is its own CallSite."""
        return "()" in self.name

    @property
    def is_constructor(self) -> bool:
        short = self.short_name
        return bool(short) and short[0].isupper()

    def mentions(self, names: frozenset[str] | set[str]) -> bool:
        """True when any argument expression references one of the given names."""
        return any(name in argument for argument in self.arguments for name in names)


@dataclass(frozen=True)
class Action:
    """One statement of a test body, abstracted."""

    kind: ActionKind
    span: Span
    text: str = ""
    target: str = ""
    calls: tuple[CallSite, ...] = ()
    children: tuple["Action", ...] = ()
    style: ExpectationStyle | None = None
    has_message: bool = False

    @property
    def is_verification(self) -> bool:
        return self.kind in (ActionKind.ASSERTION, ActionKind.EXPECTATION)

    @property
    def is_control_flow(self) -> bool:
        return self.kind in (ActionKind.LOOP, ActionKind.CONDITIONAL)

    def walk(self) -> Iterator["Action"]:
        """Pre-order traversal including self."""
        yield self
        for child in self.children:
            yield from child.walk()

    def contains_verification(self) -> bool:
        return any(action.is_verification for action in self.walk())

    def contains_calls(self) -> bool:
        return any(action.calls for action in self.walk())


class AccessKind(str, Enum):
    READ = "read"
    WRITE = "write"


class FieldOrigin(str, Enum):
    MODULE = "module"
    CLASS = "class"
    ONCE_HOOK = "once_hook"
    PER_TEST_HOOK = "per_test_hook"


@dataclass(frozen=True)
class FixtureField:
    """A piece of fixture state visible to several test units."""

    name: str
    origin: FieldOrigin
    span: Span
    scope: str = ""
    mutable: bool = False
    hook: str | None = None

    @property
    def shared(self) -> bool:
        return self.origin is not FieldOrigin.PER_TEST_HOOK


@dataclass(frozen=True)
class FieldAccess:
    field: str
    unit: str
    unit_order: int
    kind: AccessKind
    span: Span


@dataclass(frozen=True)
class FieldIndex:
    """Read/write index of shared fields across the units that can see them."""

    accesses: tuple[FieldAccess, ...] = ()

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(sorted({access.field for access in self.accesses}))

    def reads(self, name: str) -> tuple[FieldAccess, ...]:
        return tuple(a for a in self.accesses if a.field == name and a.kind is AccessKind.READ)

    def writes(self, name: str) -> tuple[FieldAccess, ...]:
        return tuple(a for a in self.accesses if a.field == name and a.kind is AccessKind.WRITE)

    def referencing_units(self, name: str) -> tuple[str, ...]:
        return tuple(sorted({a.unit for a in self.accesses if a.field == name}))


class HookKind(str, Enum):
    PER_TEST_SETUP = "per_test_setup"
    PER_TEST_TEARDOWN = "per_test_teardown"
    ONCE_SETUP = "once_setup"
    ONCE_TEARDOWN = "once_teardown"
    FIXTURE = "fixture"


@dataclass(frozen=True)
class LifecycleHook:
    """setUp/tearDown style hooks and pytest fixtures."""

    name: str
    kind: HookKind
    span: Span
    scope: str = "function"
    autouse: bool = False
    substitutions: tuple[str, ...] = ()

    @property
    def once_only(self) -> bool:
        if self.kind is HookKind.FIXTURE:
            return self.scope != "function"
        return self.kind in (HookKind.ONCE_SETUP, HookKind.ONCE_TEARDOWN)

    @property
    def runs_for_every_test(self) -> bool:
        """Whether the hook applies to each test without being requested."""
        if self.kind is HookKind.FIXTURE:
            return self.autouse
        return self.kind in (HookKind.PER_TEST_SETUP, HookKind.ONCE_SETUP)


@dataclass(frozen=True)
class TestUnit:
    """One discovered test function or method."""

    __test__ = False

    name: str
    span: Span
    order: int = 0
    actions: tuple[Action, ...] = ()
    markers: tuple[str, ...] = ()
    parameters: tuple[str, ...] = ()
    substitutions: tuple[str, ...] = ()
    accesses: tuple[FieldAccess, ...] = ()

    @property
    def short_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def walk(self) -> Iterator[Action]:
        for action in self.actions:
            yield from action.walk()

    def call_sites(self) -> Iterator[tuple[Action, CallSite]]:
        for action in self.walk():
            for call in action.calls:
                yield action, call

    def verifications(self) -> list[Action]:
        return [action for action in self.walk() if action.is_verification]


@dataclass(frozen=True)
class TestFile:
    """A test module, or a test class inside one, with its shared fixture declarations."""

    __test__ = False

    path: str
    scope: str = ""
    units: tuple[TestUnit, ...] = ()
    hooks: tuple[LifecycleHook, ...] = ()
    fields: tuple[FixtureField, ...] = ()
    field_index: FieldIndex = field(default_factory=FieldIndex)
    children: tuple["TestFile", ...] = ()

    @property
    def shared_candidates(self) -> tuple[str, ...]:
        """Fields referenced by more than one unit."""
        return tuple(
            name for name in self.field_index.fields
            if len(self.field_index.referencing_units(name)) > 1
        )

    def get_field(self, name: str) -> FixtureField | None:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None

    def iter_scopes(self) -> Iterator["TestFile"]:
        """This scope followed by every nested test class, depth first."""
        yield self
        for child in self.children:
            yield from child.iter_scopes()

    def all_units(self) -> list[TestUnit]:
        return [unit for scope in self.iter_scopes() for unit in scope.units]
