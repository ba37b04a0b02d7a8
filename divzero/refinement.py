"""
divzero.refinement
==================

Branch refinement: what a comparison teaches us about its operands on the
true and false successors of a conditional branch.

Given ``lhs <op> rhs`` holds, :data:`~divzero.transfer.REFINEMENT_TABLE`
gives the sign any ``lhs`` must have against a right operand of a known
sign; that constraint is met with the prior fact, so refinement only ever
tightens.  The right operand is refined with the flipped comparison
(``x < y`` ⇔ ``y > x``), and the false successor uses the negated
comparison (``¬(x < y)`` ⇔ ``x >= y``).
"""

from __future__ import annotations

from typing import Hashable, NamedTuple, Optional, Tuple

from divzero.lattice import Sign, meet
from divzero.store import AbstractStore
from divzero.transfer import Comparison, comparison_constraint


class BranchRefinement(NamedTuple):
    """Refined operand facts on both successors of ``left <op> right``."""
    true_left: Sign
    true_right: Sign
    false_left: Sign
    false_right: Sign


def refine(op: Comparison, left: Sign, right: Sign) -> Sign:
    """Refine the left operand of ``left op right``, assuming it holds.

    The result is never above *left* in the lattice.
    """
    return meet(left, comparison_constraint(op, right))


def refine_pair(op: Comparison, left: Sign, right: Sign) -> Tuple[Sign, Sign]:
    """Refine both operands of a comparison that holds."""
    return refine(op, left, right), refine(op.flip(), right, left)


def refine_branch(op: Comparison, left: Sign, right: Sign) -> BranchRefinement:
    """Refine both operands for the true and the false successor."""
    true_left, true_right = refine_pair(op, left, right)
    false_left, false_right = refine_pair(op.negate(), left, right)
    return BranchRefinement(true_left, true_right, false_left, false_right)


def _rebind(
    store: AbstractStore,
    left_id: Optional[Hashable],
    left: Sign,
    right_id: Optional[Hashable],
    right: Sign,
) -> AbstractStore:
    out = store.copy()
    if left_id is not None:
        out.bind(left_id, left)
    if right_id is not None:
        out.bind(right_id, right)
    return out


def refine_stores(
    op: Comparison,
    left_id: Optional[Hashable],
    left: Optional[Sign],
    right_id: Optional[Hashable],
    right: Optional[Sign],
    store: AbstractStore,
) -> Tuple[AbstractStore, AbstractStore]:
    """Produce the true- and false-successor stores for a comparison.

    Parameters
    ----------
    op : Comparison
        The comparison at the branch.
    left_id, right_id : hashable or None
        Operand identities; ``None`` for an expression slot that is not
        tracked in the store (its refinement is computed but not bound).
    left, right : Sign or None
        Current facts of the operands.  ``None`` means the operand's type
        carries no sign fact, in which case nothing is refined.
    store : AbstractStore
        The store at the end of the branching block.

    Returns
    -------
    (true_store, false_store)
        Fresh snapshots; *store* is not modified.
    """
    if left is None or right is None or not store.is_reachable:
        return store.copy(), store.copy()
    r = refine_branch(op, left, right)
    true_store = _rebind(store, left_id, r.true_left, right_id, r.true_right)
    false_store = _rebind(store, left_id, r.false_left, right_id, r.false_right)
    # A side that refines to ⊥ has no concrete witness: that edge is dead.
    if Sign.BOTTOM in (r.true_left, r.true_right):
        true_store = AbstractStore.unreachable()
    if Sign.BOTTOM in (r.false_left, r.false_right):
        false_store = AbstractStore.unreachable()
    return true_store, false_store


__all__ = [
    "BranchRefinement",
    "refine",
    "refine_pair",
    "refine_branch",
    "refine_stores",
]
