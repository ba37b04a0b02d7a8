"""
divzero.lattice
===============

The six-point sign lattice used by the division-by-zero analysis, together
with the generic :class:`Lattice` protocol the fixpoint engine is written
against.

Lattice
-------
::

                 ⊤
               /   \\
          NonZero   \\
           /   \\     \\
          -     +     0
           \\    |    /
                ⊥

``⊥`` is an unreachable (contradictory) fact, ``⊤`` is "sign unknown".
``-`` and ``+`` sit below ``NonZero``; ``0`` sits directly below ``⊤``.
The height above ``⊥`` is three (``⊥ ⊏ - ⊏ NonZero ⊏ ⊤``), which bounds the
number of times any single fact can rise during fixpoint iteration.

Public API
----------
    Lattice         - abstract base for lattice definitions
    Sign            - the six lattice points
    leq, join, meet - order and bound operations on ``Sign``
    negate          - arithmetic sign negation
    SignLattice     - ``Lattice[Sign]`` adapter for the engine
    SIGN_LATTICE    - shared ``SignLattice`` instance
"""

from __future__ import annotations

import abc
import copy
import enum
from typing import Dict, Generic, Iterable, Tuple, TypeVar, Union


L = TypeVar("L")          # Lattice value type


# ===========================================================================
# LATTICE — ABSTRACT BASE
# ===========================================================================

class Lattice(abc.ABC, Generic[L]):
    """Abstract base class for a dataflow lattice.

    A lattice ``(L, ⊑, ⊥, ⊤, ⊔)`` must provide:

    - ``bottom()``  → the least element ⊥.
    - ``top()``     → the greatest element ⊤.
    - ``join(a, b)`` → the least upper bound ``a ⊔ b``.
    - ``leq(a, b)``  → ``True`` iff ``a ⊑ b``.

    Optionally:
    - ``meet(a, b)`` → the greatest lower bound ``a ⊓ b``.
    """

    @abc.abstractmethod
    def bottom(self) -> L:
        """Return the least element ⊥."""
        ...

    @abc.abstractmethod
    def top(self) -> L:
        """Return the greatest element ⊤."""
        ...

    @abc.abstractmethod
    def join(self, a: L, b: L) -> L:
        """Return the least upper bound ``a ⊔ b``."""
        ...

    @abc.abstractmethod
    def leq(self, a: L, b: L) -> bool:
        """Return ``True`` iff ``a ⊑ b``."""
        ...

    def meet(self, a: L, b: L) -> L:
        """Return the greatest lower bound ``a ⊓ b``.

        Default implementation raises ``NotImplementedError``.
        """
        raise NotImplementedError("meet() not implemented for this lattice")

    def eq(self, a: L, b: L) -> bool:
        """Equality: ``a = b`` iff ``a ⊑ b`` and ``b ⊑ a``."""
        return self.leq(a, b) and self.leq(b, a)

    def is_bottom(self, a: L) -> bool:
        """Is ``a`` the bottom element?"""
        return self.eq(a, self.bottom())

    def is_top(self, a: L) -> bool:
        """Is ``a`` the top element?"""
        try:
            return self.eq(a, self.top())
        except NotImplementedError:
            return False

    def join_all(self, values: Iterable[L]) -> L:
        """Join a sequence of values."""
        result = self.bottom()
        for v in values:
            result = self.join(result, v)
        return result

    def copy_value(self, v: L) -> L:
        """Return a deep copy of a lattice value.

        Default uses ``copy.deepcopy``.  Override for performance.
        """
        return copy.deepcopy(v)


# ===========================================================================
# SIGN
# ===========================================================================

class Sign(enum.Enum):
    """Abstract sign of an integer value."""
    BOTTOM  = "⊥"
    NEG     = "-"
    ZERO    = "0"
    POS     = "+"
    NONZERO = "≠0"
    TOP     = "⊤"

    # ----- constructors -----------------------------------------------------

    @classmethod
    def abstract(cls, value: Union[int, float]) -> "Sign":
        """Abstract a single concrete number."""
        if value == 0:
            return cls.ZERO
        if value > 0:
            return cls.POS
        return cls.NEG

    @classmethod
    def abstract_all(cls, values: Iterable[Union[int, float]]) -> "Sign":
        """Abstract a finite collection of numbers (⊥ when empty)."""
        result = cls.BOTTOM
        for v in values:
            result = join(result, cls.abstract(v))
        return result

    def concretizes(self, value: Union[int, float]) -> bool:
        """Is *value* one of the numbers this point stands for?"""
        return leq(Sign.abstract(value), self)

    # ----- lattice operations -----------------------------------------------

    def leq(self, other: "Sign") -> bool:
        return leq(self, other)

    def join(self, other: "Sign") -> "Sign":
        return join(self, other)

    def meet(self, other: "Sign") -> "Sign":
        return meet(self, other)

    def negate(self) -> "Sign":
        return negate(self)

    @property
    def is_bottom(self) -> bool:
        return self is Sign.BOTTOM

    @property
    def is_top(self) -> bool:
        return self is Sign.TOP

    def __str__(self) -> str:
        return self.value


# Strict upper sets: every point strictly above the key.
_ABOVE: Dict[Sign, frozenset] = {
    Sign.BOTTOM:  frozenset({Sign.NEG, Sign.ZERO, Sign.POS,
                             Sign.NONZERO, Sign.TOP}),
    Sign.NEG:     frozenset({Sign.NONZERO, Sign.TOP}),
    Sign.ZERO:    frozenset({Sign.TOP}),
    Sign.POS:     frozenset({Sign.NONZERO, Sign.TOP}),
    Sign.NONZERO: frozenset({Sign.TOP}),
    Sign.TOP:     frozenset(),
}


def leq(a: Sign, b: Sign) -> bool:
    """Return ``True`` iff ``a ⊑ b``."""
    return a is b or b in _ABOVE[a]


def _upper_bounds(a: Sign) -> frozenset:
    return _ABOVE[a] | {a}


def _lower_bounds(a: Sign) -> frozenset:
    return frozenset(s for s in Sign if leq(s, a))


# Pre-computed join / meet tables for the sign lattice
_SIGN_JOIN: Dict[Tuple[Sign, Sign], Sign] = {}
_SIGN_MEET: Dict[Tuple[Sign, Sign], Sign] = {}

def _build_sign_tables():
    for a in Sign:
        for b in Sign:
            common_up = _upper_bounds(a) & _upper_bounds(b)
            common_down = _lower_bounds(a) & _lower_bounds(b)
            # least element of the common upper bounds, greatest of the lower
            _SIGN_JOIN[(a, b)] = next(
                u for u in common_up
                if all(leq(u, other) for other in common_up)
            )
            _SIGN_MEET[(a, b)] = next(
                d for d in common_down
                if all(leq(other, d) for other in common_down)
            )

_build_sign_tables()


def join(a: Sign, b: Sign) -> Sign:
    """Return the least upper bound ``a ⊔ b``."""
    return _SIGN_JOIN[(a, b)]


def meet(a: Sign, b: Sign) -> Sign:
    """Return the greatest lower bound ``a ⊓ b``."""
    return _SIGN_MEET[(a, b)]


_NEGATED: Dict[Sign, Sign] = {
    Sign.BOTTOM:  Sign.BOTTOM,
    Sign.NEG:     Sign.POS,
    Sign.ZERO:    Sign.ZERO,
    Sign.POS:     Sign.NEG,
    Sign.NONZERO: Sign.NONZERO,
    Sign.TOP:     Sign.TOP,
}


def negate(a: Sign) -> Sign:
    """Arithmetic negation: ``-`` and ``+`` swap, everything else is fixed."""
    return _NEGATED[a]


# ===========================================================================
# LATTICE ADAPTER
# ===========================================================================

class SignLattice(Lattice[Sign]):
    """Sign lattice: ``{⊥, -, 0, +, NonZero, ⊤}``."""

    def bottom(self) -> Sign:
        return Sign.BOTTOM

    def top(self) -> Sign:
        return Sign.TOP

    def join(self, a: Sign, b: Sign) -> Sign:
        return join(a, b)

    def leq(self, a: Sign, b: Sign) -> bool:
        return leq(a, b)

    def meet(self, a: Sign, b: Sign) -> Sign:
        return meet(a, b)

    def eq(self, a: Sign, b: Sign) -> bool:
        return a is b

    def copy_value(self, v: Sign) -> Sign:
        return v


SIGN_LATTICE = SignLattice()


__all__ = [
    "Lattice",
    "Sign",
    "leq",
    "join",
    "meet",
    "negate",
    "SignLattice",
    "SIGN_LATTICE",
]
