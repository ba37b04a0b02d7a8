"""
divzero.store
=============

Per-program-point abstract stores and the merge used at control-flow joins.

An :class:`AbstractStore` maps operand identities (opaque hashable keys
supplied by the front end, e.g. Cppcheck ``varId`` values) to
:class:`~divzero.lattice.Sign` facts.  Absent identities read as ``⊤``;
binding ``⊤`` drops the entry, so two stores holding the same information
always compare equal.  The distinguished *unreachable* store is the bottom
of the store lattice and the identity of :func:`merge`.
"""

from __future__ import annotations

from typing import Dict, Hashable, Iterable, Iterator, Optional, Tuple

from divzero.lattice import Lattice, Sign, join, leq


class AbstractStore:
    """Mapping from operand identity to sign fact at one program point.

    Parameters
    ----------
    bindings : mapping, optional
        Initial facts.  ``⊤`` entries are dropped; a ``⊥`` entry makes the
        whole store unreachable.
    """

    __slots__ = ("_facts", "_reachable")

    def __init__(
        self,
        bindings: Optional[Dict[Hashable, Sign]] = None,
    ) -> None:
        self._facts: Dict[Hashable, Sign] = {}
        self._reachable: bool = True
        for key, value in (bindings or {}).items():
            self.bind(key, value)

    @classmethod
    def unreachable(cls) -> "AbstractStore":
        """The bottom store: no execution reaches this point."""
        store = cls()
        store._reachable = False
        return store

    # ----- queries ----------------------------------------------------------

    @property
    def is_reachable(self) -> bool:
        return self._reachable

    def lookup(self, key: Hashable) -> Sign:
        """Fact bound to *key* (``⊤`` when absent, ``⊥`` if unreachable)."""
        if not self._reachable:
            return Sign.BOTTOM
        return self._facts.get(key, Sign.TOP)

    def items(self) -> Iterator[Tuple[Hashable, Sign]]:
        return iter(self._facts.items())

    def keys(self) -> Iterable[Hashable]:
        return self._facts.keys()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._facts

    def __len__(self) -> int:
        return len(self._facts)

    # ----- mutation ---------------------------------------------------------

    def bind(self, key: Hashable, value: Sign) -> "AbstractStore":
        """Bind *key* to *value* in place and return ``self``."""
        if not self._reachable:
            return self
        if value is Sign.BOTTOM:
            self._facts.clear()
            self._reachable = False
        elif value is Sign.TOP:
            self._facts.pop(key, None)
        else:
            self._facts[key] = value
        return self

    def forget(self, key: Hashable) -> "AbstractStore":
        """Drop whatever is known about *key*."""
        self._facts.pop(key, None)
        return self

    def copy(self) -> "AbstractStore":
        clone = AbstractStore()
        clone._facts = dict(self._facts)
        clone._reachable = self._reachable
        return clone

    # ----- lattice structure ------------------------------------------------

    def join(self, other: "AbstractStore") -> "AbstractStore":
        """Pointwise least upper bound."""
        if not self._reachable:
            return other.copy()
        if not other._reachable:
            return self.copy()
        result = AbstractStore()
        for key, value in self._facts.items():
            if key in other._facts:
                result.bind(key, join(value, other._facts[key]))
        return result

    def leq(self, other: "AbstractStore") -> bool:
        """``self ⊑ other`` pointwise."""
        if not self._reachable:
            return True
        if not other._reachable:
            return False
        return all(
            leq(self.lookup(key), value)
            for key, value in other._facts.items()
        )

    def __eq__(self, other) -> bool:
        if isinstance(other, AbstractStore):
            return (
                self._reachable == other._reachable
                and self._facts == other._facts
            )
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if not self._reachable:
            return "AbstractStore(⊥)"
        body = ", ".join(f"{k!r}: {v}" for k, v in sorted(
            self._facts.items(), key=lambda kv: repr(kv[0])))
        return f"AbstractStore({{{body}}})"


def merge(stores: Iterable[AbstractStore]) -> AbstractStore:
    """Join the stores of every predecessor of a control-flow join.

    Identities that some reachable predecessor does not bind read as ``⊤``
    there, so they drop out of the result.  Unreachable predecessors do
    not contribute.
    """
    result = AbstractStore.unreachable()
    for store in stores:
        result = result.join(store)
    return result


class StoreLattice(Lattice[AbstractStore]):
    """Lattice of abstract stores for the fixpoint engine."""

    def bottom(self) -> AbstractStore:
        return AbstractStore.unreachable()

    def top(self) -> AbstractStore:
        return AbstractStore()

    def join(self, a: AbstractStore, b: AbstractStore) -> AbstractStore:
        return a.join(b)

    def leq(self, a: AbstractStore, b: AbstractStore) -> bool:
        return a.leq(b)

    def eq(self, a: AbstractStore, b: AbstractStore) -> bool:
        return a == b

    def copy_value(self, v: AbstractStore) -> AbstractStore:
        return v.copy()


__all__ = [
    "AbstractStore",
    "merge",
    "StoreLattice",
]
