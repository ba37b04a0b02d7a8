"""
divzero — Sign-based Division-by-Zero Analysis for Cppcheck Dumps
=================================================================

A forward abstract interpretation over the six-point sign lattice
(``⊥, -, 0, +, NonZero, ⊤``) that flags integer ``/`` and ``%`` whose
divisor may be zero.

Core modules
------------
lattice
    The sign lattice and the generic ``Lattice`` protocol.
transfer
    Arithmetic transfer tables and the expression evaluator.
refinement
    Branch refinement of operand facts on true/false edges.
store
    Abstract stores and the control-flow merge.
dataflow_engine
    Worklist fixpoint engine.
ctrlflow_graph
    Control-flow graph construction from ``cppcheckdata`` dumps.
frontend
    Cppcheck token/AST glue: evaluation, block and edge transfer.
checkers
    Diagnostics, suppressions, the checker runner and the CLI.

Quick start
-----------
>>> from divzero import Sign, BinaryOperator, arithmetic_transfer
>>> arithmetic_transfer(BinaryOperator.MINUS, Sign.POS, Sign.NEG)
<Sign.POS: '+'>
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "0.1.0"
__license__ = "MIT"

_log = logging.getLogger(__name__)

from divzero.lattice import (  # noqa: E402
    Lattice,
    Sign,
    SignLattice,
    SIGN_LATTICE,
    join,
    leq,
    meet,
    negate,
)
from divzero.transfer import (  # noqa: E402
    BinaryOperator,
    Comparison,
    arithmetic_transfer,
    comparison_constraint,
    evaluate,
    visit_binary,
)
from divzero.refinement import (  # noqa: E402
    refine,
    refine_branch,
    refine_pair,
    refine_stores,
)
from divzero.store import AbstractStore, StoreLattice, merge  # noqa: E402
from divzero.dataflow_engine import (  # noqa: E402
    DataflowResult,
    IntraproceduralSolver,
    WorklistStrategy,
    run_forward_analysis,
)
from divzero.ctrlflow_graph import CFG, build_all_cfgs, build_cfg  # noqa: E402
from divzero.frontend import (  # noqa: E402
    DivisionSite,
    FunctionAnalysis,
    analyze_configuration,
    analyze_function,
)
from divzero.checkers import (  # noqa: E402
    DivByZeroChecker,
    CheckerRunner,
    may_be_zero,
    run_addon,
)

__all__: List[str] = [
    "Lattice",
    "Sign",
    "SignLattice",
    "SIGN_LATTICE",
    "join",
    "leq",
    "meet",
    "negate",
    "BinaryOperator",
    "Comparison",
    "arithmetic_transfer",
    "comparison_constraint",
    "evaluate",
    "visit_binary",
    "refine",
    "refine_branch",
    "refine_pair",
    "refine_stores",
    "AbstractStore",
    "StoreLattice",
    "merge",
    "DataflowResult",
    "IntraproceduralSolver",
    "WorklistStrategy",
    "run_forward_analysis",
    "CFG",
    "build_all_cfgs",
    "build_cfg",
    "DivisionSite",
    "FunctionAnalysis",
    "analyze_configuration",
    "analyze_function",
    "DivByZeroChecker",
    "CheckerRunner",
    "may_be_zero",
    "run_addon",
]

_log.debug("divzero %s loaded", __version__)
