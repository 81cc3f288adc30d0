"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

import logging
from fnmatch import fnmatch
from pathlib import Path

from testwarden.domain.constants import DEFAULT_EXCLUDED_DIRS
from testwarden.domain.errors import ParseError, SourceReadError
from testwarden.domain.protocols import FileSystemProtocol

logger = logging.getLogger(__name__)


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def discover_test_files(
        self,
        paths: list[str],
        patterns: tuple[str, ...],
        exclude: tuple[str, ...] = (),
    ) -> tuple[list[str], list[tuple[str, str]]]:
        """Expand files and directories into a sorted, de-duplicated list of test files.

        Files named explicitly are always analyzed; directories are searched
        recursively for names matching patterns, skipping hidden and excluded dirs.
        """
        found: set[str] = set()
        missing: list[tuple[str, str]] = []
        for raw in paths:
            path_obj = Path(raw)
            if path_obj.is_file():
                found.add(str(path_obj))
            elif path_obj.is_dir():
                found.update(self._walk(path_obj, patterns, exclude))
            else:
                missing.append((raw, "no such file or directory"))
        logger.debug("Discovered %d test file(s) under %d input path(s)", len(found), len(paths))
        return sorted(found), missing

    def _walk(self, root: Path, patterns: tuple[str, ...], exclude: tuple[str, ...]) -> list[str]:
        files: list[str] = []
        for candidate in root.rglob("*.py"):
            relative = candidate.relative_to(root)
            if any(self._skipped_dir(part, exclude) for part in relative.parts[:-1]):
                continue
            if any(fnmatch(str(candidate), pattern) for pattern in exclude):
                continue
            if any(fnmatch(candidate.name, pattern) for pattern in patterns):
                files.append(str(candidate))
        return files

    def _skipped_dir(self, name: str, exclude: tuple[str, ...]) -> bool:
        if name.startswith(".") or name in DEFAULT_EXCLUDED_DIRS:
            return True
        return any(fnmatch(name, pattern) for pattern in exclude)

    def read_text(self, path: str) -> str:
        """Read a whole file as UTF-8 text."""
        try:
            return Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(path, f"not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise SourceReadError(path, exc.strerror or str(exc)) from exc
