"""
Go Stub Emitter
================

Writes a Go source file with one exported no-op function per hijack
candidate.  Built with ``go build -buildmode=c-shared`` it yields a DLL
exposing the same names as the original, ready for the operator to fill
one of them in with their own code.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

_INVALID_IDENT_CHARS = re.compile(r"[^A-Za-z0-9_]")

GO_KEYWORDS: frozenset[str] = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer",
    "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
    "interface", "map", "package", "range", "return", "select", "struct",
    "switch", "type", "var",
})

# Keywords, the footer's main, package init, the cgo import and the blank identifier.
RESERVED_IDENTIFIERS: frozenset[str] = GO_KEYWORDS | {"main", "init", "C", "_"}

_HEADER = """\
package {package}

import "C"
"""

_STUB = """
//export {ident}
func {ident}() {{
    // stub function, does nothing
}}
"""

_FOOTER = """
func main() {}
"""


def sanitize_identifier(name: str) -> str:
    """Turn an export name into a valid Go identifier.

    Characters outside ``[A-Za-z0-9_]`` become ``_`` and a leading digit
    gets an ``F`` prefix.
    """
    ident = _INVALID_IDENT_CHARS.sub("_", name)
    if not ident or ident[0].isdigit():
        ident = "F" + ident
    return ident


class GoStubEmitter:
    """Render and write cgo stub sources.

    Usage::

        emitter = GoStubEmitter()
        emitter.write(["CreateFileW", "GetVersion"], "stub_hijack.go")
    """

    def __init__(self, package: str = "main") -> None:
        self._package = package

    def identifiers(self, names: Iterable[str]) -> list[tuple[str, str]]:
        """Pair each name with a unique Go identifier, in input order.

        Identifiers that collide with an earlier one or with
        :data:`RESERVED_IDENTIFIERS` get a ``_2``, ``_3``, ... suffix.
        """
        seen: set[str] = set(RESERVED_IDENTIFIERS)
        pairs: list[tuple[str, str]] = []
        for name in names:
            base = sanitize_identifier(name)
            ident = base
            suffix = 2
            while ident in seen:
                ident = f"{base}_{suffix}"
                suffix += 1
            seen.add(ident)
            pairs.append((name, ident))
        return pairs

    def render(self, names: Iterable[str]) -> str:
        parts = [_HEADER.format(package=self._package)]
        for _name, ident in self.identifiers(names):
            parts.append(_STUB.format(ident=ident))
        parts.append(_FOOTER)
        return "".join(parts)

    def write(self, names: Iterable[str], path: str | Path) -> Path:
        """Render *names* and write the source to *path*.

        Returns:
            The path written.
        """
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.render(names), encoding="utf-8")
        return out
