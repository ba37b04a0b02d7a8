"""
divzero.transfer
================

Arithmetic transfer tables over the sign lattice and the expression
evaluator that dispatches into them.

Every table is indexed directly by lattice point: ``TABLE[left][right]``.
Row and column order in the literals below is
``⊥, -, 0, +, NonZero, ⊤``.

Policies
--------
* ``⊥`` absorbs: any operation with an unreachable operand is unreachable.
* ``a - b`` is ``a + (-b)``; subtraction reuses the addition table.
* ``/`` and ``%`` share one table.  A ``0`` or ``⊤`` divisor still yields
  a value estimate; deciding whether the *divisor* may be zero is left to
  the checker (:func:`divzero.checkers.may_be_zero`).
* The division rows give the sign of the exact quotient.  C integer
  division truncates toward zero, so ``1 / 2`` is ``0`` although
  ``+ / +`` is ``+``, and ``4 % 2`` is ``0`` although ``%`` reads the
  same entry.  A divisor that is itself a quotient or remainder
  (``x / (a / b)``) can therefore be missed when it truncates to zero.
* ``0 × x = 0`` for every reachable ``x``, including ``⊤``.
"""

from __future__ import annotations

import enum
from typing import Dict, List, Union

from divzero.lattice import Sign, negate


class BinaryOperator(enum.Enum):
    """Arithmetic operators tracked by the analysis."""
    PLUS   = "+"
    MINUS  = "-"
    TIMES  = "*"
    DIVIDE = "/"
    MOD    = "%"

    @classmethod
    def from_token_str(cls, s: str) -> "BinaryOperator":
        """Map a token string (``"+"``, ``"/"`` …) to an operator.

        Raises
        ------
        ValueError
            If *s* is not an arithmetic operator.
        """
        return cls(s)

    @classmethod
    def from_compound(cls, s: str) -> "BinaryOperator":
        """Map a compound assignment (``"/="``) to its operator."""
        if len(s) != 2 or s[1] != "=":
            raise ValueError(f"{s!r} is not a compound assignment operator")
        return cls(s[0])

    @property
    def is_division(self) -> bool:
        """Can this operator fail with a zero right operand?"""
        return self in (BinaryOperator.DIVIDE, BinaryOperator.MOD)


class Comparison(enum.Enum):
    """Relational operators that refine facts on branch edges."""
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @classmethod
    def from_token_str(cls, s: str) -> "Comparison":
        """Map a token string (``"<="`` …) to a comparison.

        Raises
        ------
        ValueError
            If *s* is not a comparison operator.
        """
        return cls(s)

    def flip(self) -> "Comparison":
        """``x op y`` holds iff ``y op.flip() x`` holds."""
        return _FLIPPED[self]

    def negate(self) -> "Comparison":
        """``x op y`` holds iff ``x op.negate() y`` does not."""
        return _NEGATED[self]


_FLIPPED: Dict[Comparison, Comparison] = {
    Comparison.EQ: Comparison.EQ,
    Comparison.NE: Comparison.NE,
    Comparison.LT: Comparison.GT,
    Comparison.LE: Comparison.GE,
    Comparison.GT: Comparison.LT,
    Comparison.GE: Comparison.LE,
}

_NEGATED: Dict[Comparison, Comparison] = {
    Comparison.EQ: Comparison.NE,
    Comparison.NE: Comparison.EQ,
    Comparison.LT: Comparison.GE,
    Comparison.LE: Comparison.GT,
    Comparison.GT: Comparison.LE,
    Comparison.GE: Comparison.LT,
}


# ===========================================================================
# TABLES
# ===========================================================================

_ORDER: List[Sign] = [
    Sign.BOTTOM, Sign.NEG, Sign.ZERO, Sign.POS, Sign.NONZERO, Sign.TOP,
]

SignTable = Dict[Sign, Dict[Sign, Sign]]


def _table(rows: List[List[Sign]], keys: List = _ORDER) -> Dict:
    return {
        k: dict(zip(_ORDER, row))
        for k, row in zip(keys, rows)
    }


BOT, NEG, ZER, POS, NZE, TOP = _ORDER

PLUS_TABLE: SignTable = _table([
    #  ⊥    -    0    +    ≠0   ⊤
    [BOT, BOT, BOT, BOT, BOT, BOT],   # ⊥
    [BOT, NEG, NEG, TOP, TOP, TOP],   # -
    [BOT, NEG, ZER, POS, NZE, TOP],   # 0
    [BOT, TOP, POS, POS, TOP, TOP],   # +
    [BOT, TOP, NZE, TOP, TOP, TOP],   # ≠0
    [BOT, TOP, TOP, TOP, TOP, TOP],   # ⊤
])

TIMES_TABLE: SignTable = _table([
    #  ⊥    -    0    +    ≠0   ⊤
    [BOT, BOT, BOT, BOT, BOT, BOT],   # ⊥
    [BOT, POS, ZER, NEG, NZE, TOP],   # -
    [BOT, ZER, ZER, ZER, ZER, ZER],   # 0
    [BOT, NEG, ZER, POS, NZE, TOP],   # +
    [BOT, NZE, ZER, NZE, NZE, TOP],   # ≠0
    [BOT, TOP, ZER, TOP, TOP, TOP],   # ⊤
])

# Shared by DIVIDE and MOD; rows are the dividend, columns the divisor.
DIVIDE_TABLE: SignTable = _table([
    #  ⊥    -    0    +    ≠0   ⊤
    [BOT, BOT, BOT, BOT, BOT, BOT],   # ⊥
    [BOT, POS, TOP, NEG, NZE, TOP],   # -
    [BOT, ZER, TOP, ZER, ZER, TOP],   # 0
    [BOT, NEG, TOP, POS, NZE, TOP],   # +
    [BOT, NZE, TOP, NZE, NZE, TOP],   # ≠0
    [BOT, TOP, TOP, TOP, TOP, TOP],   # ⊤
])

# What "lhs <op> rhs" implies about an arbitrary lhs, per sign of rhs.
REFINEMENT_TABLE: Dict[Comparison, Dict[Sign, Sign]] = _table([
    #  ⊥    -    0    +    ≠0   ⊤
    [BOT, NEG, ZER, POS, NZE, TOP],   # ==
    [BOT, TOP, NZE, TOP, TOP, TOP],   # !=
    [BOT, NEG, NEG, TOP, TOP, TOP],   # <
    [BOT, NEG, TOP, TOP, TOP, TOP],   # <=
    [BOT, TOP, POS, POS, TOP, TOP],   # >
    [BOT, TOP, TOP, POS, TOP, TOP],   # >=
], keys=[Comparison.EQ, Comparison.NE, Comparison.LT,
         Comparison.LE, Comparison.GT, Comparison.GE])

del BOT, NEG, ZER, POS, NZE, TOP


_OPERATOR_TABLES: Dict[BinaryOperator, SignTable] = {
    BinaryOperator.PLUS:   PLUS_TABLE,
    BinaryOperator.TIMES:  TIMES_TABLE,
    BinaryOperator.DIVIDE: DIVIDE_TABLE,
    BinaryOperator.MOD:    DIVIDE_TABLE,
}


# ===========================================================================
# TRANSFER
# ===========================================================================

def arithmetic_transfer(op: BinaryOperator, left: Sign, right: Sign) -> Sign:
    """Sign of ``left op right`` for any concrete operands of those signs."""
    if op is BinaryOperator.MINUS:
        return PLUS_TABLE[left][negate(right)]
    return _OPERATOR_TABLES[op][left][right]


def comparison_constraint(op: Comparison, right: Sign) -> Sign:
    """Sign constraint on a left operand for which ``left op right`` holds."""
    return REFINEMENT_TABLE[op][right]


def evaluate(op: BinaryOperator, left: Sign, right: Sign) -> Sign:
    """Evaluate one arithmetic node from the facts of its two operands.

    Callers only invoke this when both operands carry a sign fact; operands
    of untracked type never reach the evaluator.
    """
    return arithmetic_transfer(op, left, right)


def visit_binary(
    tag: Union[BinaryOperator, Comparison],
    left: Sign,
    right: Sign,
) -> Sign:
    """Single entry point for any binary node.

    Arithmetic tags go through the transfer tables.  A comparison produces
    a truth value (``0`` or ``1``), so its result sign is ``⊤`` unless an
    operand is unreachable.
    """
    if isinstance(tag, BinaryOperator):
        return evaluate(tag, left, right)
    if left is Sign.BOTTOM or right is Sign.BOTTOM:
        return Sign.BOTTOM
    return Sign.TOP


__all__ = [
    "BinaryOperator",
    "Comparison",
    "PLUS_TABLE",
    "TIMES_TABLE",
    "DIVIDE_TABLE",
    "REFINEMENT_TABLE",
    "arithmetic_transfer",
    "comparison_constraint",
    "evaluate",
    "visit_binary",
]
