"""
divzero.dataflow_engine
=======================

A lattice-based forward dataflow engine operating over
:mod:`divzero.ctrlflow_graph` CFGs.

Theory
------
A forward dataflow analysis is defined by:

1.  A **lattice** ``(L, ⊑, ⊥, ⊤, ⊔)`` (:class:`divzero.lattice.Lattice`).
2.  A **transfer function** ``f : Node × L → L`` — transforms the fact
    entering a basic block into the fact leaving it.
3.  An optional **edge transfer** ``g : Edge × L → L`` — refines the fact
    flowing along one edge (branch conditions).
4.  An **initial value** for the entry node.

The input of a node is the join, over its incoming edges, of the edge
transfer applied to the predecessor's output.  The engine iterates until
a **fixpoint** is reached: no node's input changes upon re-application.
Nodes never reached keep ``⊥``.

Termination follows from monotone transfers over a finite-height lattice;
``max_iterations`` is only a safety bound.

Public API
----------
    WorklistStrategy        - iteration order enum
    DataflowResult          - container for analysis results
    IntraproceduralSolver   - single-function fixpoint engine
    run_forward_analysis    - convenience function
    check_monotonicity      - debugging helper
"""

from __future__ import annotations

import enum
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Deque,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    TypeVar,
)

from divzero.lattice import Lattice


L = TypeVar("L")          # Lattice value type

logger = logging.getLogger(__name__)


# ===========================================================================
# WORKLIST STRATEGY
# ===========================================================================

class WorklistStrategy(enum.Enum):
    """Strategy for selecting the next worklist node."""
    FIFO = "fifo"
    LIFO = "lifo"
    RPO  = "rpo"        # Reverse post-order (best for forward)


# ===========================================================================
# DATAFLOW RESULT
# ===========================================================================

@dataclass
class DataflowResult(Generic[L]):
    """Container for dataflow analysis results.

    Attributes
    ----------
    facts_in : dict
        Map from CFG node → incoming (pre-node) dataflow fact.
    facts_out : dict
        Map from CFG node → outgoing (post-node) dataflow fact.
    iterations : int
        Number of node transfers performed.
    converged : bool
        Whether the analysis reached a fixpoint (vs. hitting the limit).
    elapsed_seconds : float
        Wall-clock time.
    """
    facts_in: Dict[Any, L] = field(default_factory=dict)
    facts_out: Dict[Any, L] = field(default_factory=dict)
    iterations: int = 0
    converged: bool = False
    elapsed_seconds: float = 0.0

    def fact_at(self, node, *, before: bool = True) -> L:
        """Return the fact at a node.

        Parameters
        ----------
        node : CFGNode
            The CFG node.
        before : bool
            If ``True``, return the incoming fact (before the node's
            transfer).  If ``False``, return the outgoing fact.
        """
        if before:
            return self.facts_in.get(node)
        return self.facts_out.get(node)


# ===========================================================================
# INTRAPROCEDURAL SOLVER
# ===========================================================================

class IntraproceduralSolver(Generic[L]):
    """Forward fixpoint engine for one function.

    Parameters
    ----------
    cfg : CFG
        The control-flow graph (from :mod:`divzero.ctrlflow_graph`).
    lattice : Lattice[L]
        The dataflow lattice.
    transfer : callable(node, L) → L
        The transfer function.
    edge_transfer : callable(edge, L) → L, optional
        Edge-sensitive refinement (e.g., branch conditions).
    initial_value : L, optional
        Initial fact for the entry node.  Defaults to ``lattice.top()``.
    strategy : WorklistStrategy
        Worklist iteration order.
    max_iterations : int
        Safety bound on node transfers.
    """

    def __init__(
        self,
        cfg,
        lattice: Lattice[L],
        transfer: Callable,
        edge_transfer: Optional[Callable] = None,
        initial_value: Optional[L] = None,
        strategy: WorklistStrategy = WorklistStrategy.RPO,
        max_iterations: int = 100_000,
    ) -> None:
        self.cfg = cfg
        self.lattice = lattice
        self.transfer = transfer
        self.edge_transfer = edge_transfer
        self.initial_value = (
            initial_value if initial_value is not None
            else lattice.top()
        )
        self.strategy = strategy
        self.max_iterations = max_iterations

        self._nodes: List = list(cfg.nodes)
        self._entry = cfg.entry

    def solve(self) -> DataflowResult[L]:
        """Run the analysis to fixpoint.

        Returns
        -------
        DataflowResult[L]
        """
        t0 = time.monotonic()
        lat = self.lattice

        facts_in: Dict[Any, L] = {}
        facts_out: Dict[Any, L] = {}
        for node in self._nodes:
            facts_in[node] = lat.bottom()
            facts_out[node] = lat.bottom()

        worklist = self._build_initial_worklist()
        in_worklist: Set = set(worklist)

        iterations = 0

        while worklist and iterations < self.max_iterations:
            node = self._pop_worklist(worklist, in_worklist)

            merged = self._node_input(node, facts_out)

            # Skip when the input did not change, except on the very first
            # visit of the entry node (its stored ⊥ is a placeholder).
            if lat.eq(merged, facts_in[node]) and not (
                node is self._entry and iterations == 0
            ):
                continue

            iterations += 1
            facts_in[node] = merged
            facts_out[node] = self.transfer(node, merged)

            for succ in self._successors(node):
                if succ not in in_worklist:
                    worklist.append(succ)
                    in_worklist.add(succ)

        converged = not worklist
        if not converged:
            logger.warning(
                "Dataflow did not converge after %d iterations (%r)",
                iterations, self.cfg,
            )

        elapsed = time.monotonic() - t0
        logger.debug(
            "Solved %r in %d iterations (%.2f ms)",
            self.cfg, iterations, elapsed * 1000.0,
        )

        return DataflowResult(
            facts_in=facts_in,
            facts_out=facts_out,
            iterations=iterations,
            converged=converged,
            elapsed_seconds=elapsed,
        )

    def verify_fixpoint(self, result: DataflowResult[L]) -> bool:
        """Re-apply merge and transfer everywhere; ``True`` if nothing moves."""
        lat = self.lattice
        for node in self._nodes:
            merged = self._node_input(node, result.facts_out)
            if not lat.eq(merged, result.facts_in[node]):
                return False
            if lat.is_bottom(merged):
                continue
            if not lat.eq(self.transfer(node, merged), result.facts_out[node]):
                return False
        return True

    # ----- Internal helpers -------------------------------------------------

    def _node_input(self, node, facts_out: Dict) -> L:
        """Merge facts from predecessors, applying edge transfer."""
        lat = self.lattice
        result = lat.bottom()
        if node is self._entry:
            result = lat.copy_value(self.initial_value)
        for edge in node.predecessors:
            fact = facts_out.get(edge.src, lat.bottom())
            if lat.is_bottom(fact):
                continue
            if self.edge_transfer is not None:
                fact = self.edge_transfer(edge, fact)
            result = lat.join(result, fact)
        return result

    @staticmethod
    def _successors(node) -> List:
        return [e.dst for e in node.successors]

    def _build_initial_worklist(self) -> Deque:
        """Build the initial worklist: only the entry is known reachable."""
        if self.strategy == WorklistStrategy.RPO:
            # Seed in RPO so a single sweep covers acyclic graphs.
            return deque(self._reverse_postorder())
        return deque([self._entry])

    def _pop_worklist(self, worklist: Deque, in_worklist: Set):
        """Pop the next node from the worklist."""
        if self.strategy == WorklistStrategy.LIFO:
            node = worklist.pop()
        else:
            node = worklist.popleft()
        in_worklist.discard(node)
        return node

    def _reverse_postorder(self) -> List:
        """Reverse post-order of the nodes reachable from the entry."""
        visited: Set = set()
        order: List = []
        stack: List[Tuple[Any, int]] = [(self._entry, 0)]
        visited.add(self._entry)
        while stack:
            node, idx = stack.pop()
            succs = self._successors(node)
            if idx < len(succs):
                stack.append((node, idx + 1))
                nxt = succs[idx]
                if nxt not in visited:
                    visited.add(nxt)
                    stack.append((nxt, 0))
            else:
                order.append(node)
        order.reverse()
        return order


def run_forward_analysis(
    cfg,
    lattice: Lattice[L],
    transfer: Callable,
    *,
    initial_value: Optional[L] = None,
    edge_transfer: Optional[Callable] = None,
    strategy: WorklistStrategy = WorklistStrategy.RPO,
    max_iterations: int = 100_000,
) -> DataflowResult[L]:
    """Run a forward dataflow analysis on a single CFG.

    Parameters
    ----------
    cfg : CFG
        The control-flow graph.
    lattice : Lattice[L]
        The dataflow lattice.
    transfer : callable(node, L) → L
        The transfer function.
    initial_value : L, optional
        Initial fact for the entry node.
    edge_transfer : callable(edge, L) → L, optional
        Edge-sensitive refinement.
    strategy : WorklistStrategy
        Worklist order.
    max_iterations : int
        Safety bound.

    Returns
    -------
    DataflowResult[L]
    """
    solver = IntraproceduralSolver(
        cfg=cfg,
        lattice=lattice,
        transfer=transfer,
        edge_transfer=edge_transfer,
        initial_value=initial_value,
        strategy=strategy,
        max_iterations=max_iterations,
    )
    return solver.solve()


# ===========================================================================
# MONOTONICITY CHECKER (development / debugging utility)
# ===========================================================================

def check_monotonicity(
    lattice: Lattice[L],
    transfer: Callable,
    node: Any,
    samples: Sequence[L],
) -> bool:
    """Check that ``transfer(node, ·)`` is monotone on the given samples.

    For every pair ``(a, b)`` in *samples* where ``a ⊑ b``, verifies
    that ``transfer(node, a) ⊑ transfer(node, b)``.

    This cannot prove monotonicity in general, only detect violations.
    """
    for a in samples:
        for b in samples:
            if lattice.leq(a, b):
                fa = transfer(node, a)
                fb = transfer(node, b)
                if not lattice.leq(fa, fb):
                    return False
    return True


__all__ = [
    "WorklistStrategy",
    "DataflowResult",
    "IntraproceduralSolver",
    "run_forward_analysis",
    "check_monotonicity",
]
