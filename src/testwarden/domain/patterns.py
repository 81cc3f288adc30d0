"""Dotted-name pattern matching shared by the rules."""

from collections.abc import Iterable
from fnmatch import fnmatchcase


class DottedNameMatcher:
    """Glob matching over dotted names, plus substitution lookups."""

    @staticmethod
    def matches_any(name: str, patterns: Iterable[str]) -> bool:
        return any(fnmatchcase(name, pattern) for pattern in patterns)

    @staticmethod
    def is_substituted(name: str, substitutions: Iterable[str]) -> bool:
        """True when name is, lives under, or is the tail of a substituted target.

        ``patch("payments.gateway.requests")`` substitutes ``requests.post`` as used
        inside the module under test, so tails match on dotted boundaries too.
        """
        for target in substitutions:
            if not target:
                continue
            if name == target or name.startswith(target + "."):
                return True
            if target.endswith("." + name):
                return True
            head = name.split(".", 1)[0]
            if "." in name and (target.endswith("." + head) or target == head):
                return True
        return False
