"""Path value types for nested parameter locations.

Two views of the same location are needed while generating a command:

* :class:`FieldPath` -- the human-readable path used in required-field lists
  and error messages: ``a.b`` for a structure member, ``a.b[]`` for every
  element of a list, ``a.b{value}`` for every value of a map. These strings
  are also what :func:`shapecli.runtime.validate_required` parses.
* :class:`AccessPath` -- a Python expression into the generated command's
  option dictionary, e.g. ``params["a"]["b"][i0]``, paired with the
  :class:`FieldPath` of the same location.

Both are immutable; every step returns a new path. Generators compose paths
with the methods below and never concatenate path strings themselves.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

ELEMENT = "[]"
MAP_VALUE = "{value}"


@dataclass(frozen=True)
class FieldPath:
    """A dotted/bracketed location inside a parameter tree.

    Example::

        >>> str(FieldPath().member("tags").value().member("icon"))
        'tags{value}.icon'
        >>> str(FieldPath().member("parts").element())
        'parts[]'
    """

    segments: tuple[str, ...] = ()

    def member(self, name: str) -> FieldPath:
        """Step into the structure member (or top-level field) *name*."""
        return FieldPath(self.segments + (name,))

    def element(self) -> FieldPath:
        """Step into every element of a list."""
        return FieldPath(self.segments + (ELEMENT,))

    def value(self) -> FieldPath:
        """Step into every value of a map."""
        return FieldPath(self.segments + (MAP_VALUE,))

    def __str__(self) -> str:
        text = ""
        for segment in self.segments:
            if segment in (ELEMENT, MAP_VALUE):
                text += segment
            elif text:
                text += f".{segment}"
            else:
                text = segment
        return text

    def __bool__(self) -> bool:
        return bool(self.segments)


@dataclass(frozen=True)
class AccessPath:
    """A Python subscript expression rooted at a local variable.

    ``depth`` counts the loops entered so far and is used to name loop
    variables (``i0``, ``k1``, ...) so nested loops never shadow each other.

    Example::

        >>> path = AccessPath("params").key("parts").element()
        >>> path.expression
        'params["parts"][i0]'
        >>> str(path.label)
        'parts[]'
    """

    root: str
    subscripts: tuple[str, ...] = ()
    label: FieldPath = field(default_factory=FieldPath)
    depth: int = 0

    @property
    def expression(self) -> str:
        """The full subscript expression, usable as a load or a store target."""
        return self.root + "".join(f"[{s}]" for s in self.subscripts)

    def key(self, name: str) -> AccessPath:
        """Step into the dictionary key *name* (a structure member)."""
        return AccessPath(
            self.root,
            self.subscripts + (_literal(name),),
            self.label.member(name),
            self.depth,
        )

    def lookup(self, name: str) -> str:
        """Expression reading *name* from this dictionary, ``None`` when absent."""
        return f"{self.expression}.get({_literal(name)})"

    @property
    def loop_var(self) -> str:
        """Loop variable for iterating the list at this path."""
        return f"i{self.depth}"

    @property
    def key_var(self) -> str:
        """Loop variable for iterating the map at this path."""
        return f"k{self.depth}"

    def element(self) -> AccessPath:
        """Step into the list element selected by :attr:`loop_var`."""
        return AccessPath(
            self.root,
            self.subscripts + (self.loop_var,),
            self.label.element(),
            self.depth + 1,
        )

    def map_value(self) -> AccessPath:
        """Step into the map value selected by :attr:`key_var`."""
        return AccessPath(
            self.root,
            self.subscripts + (self.key_var,),
            self.label.value(),
            self.depth + 1,
        )


def _literal(name: str) -> str:
    """Render *name* as a double-quoted Python string literal."""
    return json.dumps(name)
