"""astroid access: parsing source text and resolving dotted names through imports."""

from pathlib import PurePath

import astroid
from astroid import nodes
from astroid.exceptions import AstroidSyntaxError

from testwarden.domain.errors import ParseError


class AstroidGateway:
    """Parses test sources into astroid modules."""

    def parse_source(self, source: str, path: str) -> nodes.Module:
        """Parse source text; malformed input becomes a ParseError naming the file."""
        module_name = PurePath(path).stem if path else ""
        try:
            return astroid.parse(source, module_name=module_name, path=path or None)
        except AstroidSyntaxError as exc:
            error = getattr(exc, "error", None)
            line = getattr(error, "lineno", None)
            reason = getattr(error, "msg", None) or str(exc)
            raise ParseError(path, f"invalid syntax: {reason}", line) from exc
        except (ValueError, RecursionError) as exc:
            raise ParseError(path, f"cannot build syntax tree: {exc}") from exc


class ImportResolver:
    """Resolves local names to dotted import paths for one module.

    ``from datetime import datetime`` makes ``datetime.now`` resolve to
    ``datetime.datetime.now``; ``import numpy as np`` makes ``np.random`` resolve
    to ``numpy.random``. Unimported names (``self``, fixtures, locals) stay as written.
    """

    def __init__(self, module: nodes.Module) -> None:
        self._aliases: dict[str, str] = {}
        for node in module.nodes_of_class((nodes.Import, nodes.ImportFrom)):
            if isinstance(node, nodes.Import):
                for name, alias in node.names:
                    if alias:
                        self._aliases[alias] = name
                    else:
                        head = name.split(".", 1)[0]
                        self._aliases.setdefault(head, head)
            else:
                base = node.modname or ""
                for name, alias in node.names:
                    if name == "*":
                        continue
                    self._aliases[alias or name] = f"{base}.{name}" if base else name

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def qualify(self, node: nodes.NodeNG) -> str:
        """Dotted name of an expression; calls in the chain render as ``name()``."""
        if isinstance(node, nodes.Name):
            return self._aliases.get(node.name, node.name)
        if isinstance(node, (nodes.Attribute, nodes.AssignAttr, nodes.DelAttr)):
            return f"{self.qualify(node.expr)}.{node.attrname}"
        if isinstance(node, nodes.Call):
            return f"{self.qualify(node.func)}()"
        if isinstance(node, nodes.Subscript):
            return f"{self.qualify(node.value)}[]"
        return node.as_string()
