from typing import TypedDict


class RuleRegistryEntry(TypedDict, total=False):
    title: str
    practice: str
    short_description: str
    default_severity: str
    default_enabled: bool
    guidance: str
    references: list[str]
    pylint_code: str
    symbol: str
