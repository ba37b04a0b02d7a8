"""
divzero.frontend
================

Glue between Cppcheck dump tokens and the sign analysis.

The engine modules (:mod:`divzero.lattice`, :mod:`divzero.transfer`,
:mod:`divzero.refinement`, :mod:`divzero.store`) know nothing about C.
This module walks the AST that Cppcheck attaches to each token
(``astOperand1`` / ``astOperand2`` / ``astParent``) and maps it onto them:

* :func:`classify` recognises arithmetic and comparison nodes,
* :class:`SignEvaluator` computes the sign of an expression against an
  :class:`~divzero.store.AbstractStore`, binding assignments as it goes
  and reporting every division it passes through,
* :class:`SignTransfer` is the block and edge transfer handed to the
  fixpoint engine,
* :func:`analyze_function` runs everything for one CFG.

Operand identity is the Cppcheck ``varId``.  Expressions without a
``varId`` (``a[i]``, ``s.x``, calls …) are evaluated but never bound.

Values are tracked for arithmetic (integral and floating) types only;
pointers, records and containers carry no sign fact (``None``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Union

from divzero.ctrlflow_graph import CFG, CFGNode, EdgeKind, build_all_cfgs
from divzero.dataflow_engine import (
    DataflowResult,
    IntraproceduralSolver,
    WorklistStrategy,
)
from divzero.lattice import Sign, join, negate
from divzero.refinement import refine_stores
from divzero.store import AbstractStore, StoreLattice
from divzero.transfer import (
    BinaryOperator,
    Comparison,
    visit_binary,
)

logger = logging.getLogger(__name__)

Fact = Optional[Sign]


# ===========================================================================
# TOKEN HELPERS
# ===========================================================================

_INTEGRAL_TYPES = frozenset({
    "bool", "char", "short", "wchar_t", "char16_t", "char32_t",
    "int", "long", "long long", "unknown int",
})
_FLOAT_TYPES = frozenset({"float", "double", "long double"})

# Conversion rank of the integral types (bool lowest).
_RANK = {
    "bool": 0, "char": 1, "short": 2, "wchar_t": 3, "char16_t": 2,
    "char32_t": 3, "int": 3, "unknown int": 3, "long": 4, "long long": 5,
}

_ARITHMETIC_OPS = frozenset(op.value for op in BinaryOperator)
_COMPOUND_OPS = frozenset(op.value + "=" for op in BinaryOperator)
_COMPARISON_OPS = frozenset(c.value for c in Comparison)
_ASSIGNMENT_OPS = frozenset({
    "=", "+=", "-=", "*=", "/=", "%=",
    "&=", "|=", "^=", "<<=", ">>=",
})


def _tok_str(tok: Any) -> str:
    return getattr(tok, "str", "") or ""


def _value_type(tok: Any):
    return getattr(tok, "valueType", None)


def _valueflow_known(tok: Any) -> Optional[Union[int, float]]:
    """A single known ValueFlow value of *tok*, or ``None``."""
    values = getattr(tok, "values", None)
    if not values:
        return None
    known = []
    for v in values:
        if getattr(v, "valueKind", "") != "known":
            continue
        iv = getattr(v, "intvalue", None)
        if iv is not None:
            known.append(int(iv))
            continue
        fv = getattr(v, "floatvalue", None)
        if fv is not None:
            known.append(float(fv))
    if len(known) == 1:
        return known[0]
    return None


_NUL_CHARS = frozenset({"\\0", "\\x0", "\\x00", "\\000"})


def _parse_number(text: str) -> Optional[Union[int, float]]:
    """Parse a C numeric literal (no sign); ``None`` when not possible."""
    stripped = text.rstrip("uUlL")
    if stripped.isdigit():
        # Decimal or octal: the sign is all that matters here.
        return int(stripped, 10)
    try:
        return int(stripped, 0)
    except ValueError:
        pass
    try:
        return float(text.rstrip("fFlL"))
    except ValueError:
        return None


def literal_sign(text: str) -> Sign:
    """Sign of a literal given as text (e.g. a ``case`` label)."""
    text = text.replace(" ", "")
    neg = text.startswith("-")
    if neg:
        text = text[1:]
    if len(text) >= 3 and text[0] == "'" and text[-1] == "'":
        # Non-NUL character constants are non-zero; their sign depends on
        # the signedness of char.
        sign = Sign.ZERO if text[1:-1] in _NUL_CHARS else Sign.NONZERO
    else:
        value = _parse_number(text)
        if value is None:
            return Sign.TOP
        sign = Sign.abstract(value)
    return negate(sign) if neg else sign


def is_integral(tok: Any) -> bool:
    """Is *tok* a non-pointer integral expression?"""
    vt = _value_type(tok)
    if vt is None:
        return bool(getattr(tok, "isInt", False))
    return not getattr(vt, "pointer", 0) and vt.type in _INTEGRAL_TYPES


def is_floating(tok: Any) -> bool:
    vt = _value_type(tok)
    if vt is None:
        return bool(getattr(tok, "isFloat", False))
    return not getattr(vt, "pointer", 0) and vt.type in _FLOAT_TYPES


def has_sign_fact(tok: Any) -> bool:
    """Does the analysis track a sign for values of *tok*'s type?"""
    return is_integral(tok) or is_floating(tok)


def _is_unsigned(tok: Any) -> bool:
    vt = _value_type(tok)
    return vt is not None and getattr(vt, "sign", "") == "unsigned"


def _is_unsigned_promoted(tok: Any) -> bool:
    """Unsigned after integral promotion (small types promote to int)."""
    vt = _value_type(tok)
    return _is_unsigned(tok) and _RANK.get(vt.type, 3) >= _RANK["int"]


def operand_id(tok: Any) -> Optional[Hashable]:
    """Store identity of *tok*: its ``varId`` when it names a variable."""
    vid = getattr(tok, "varId", None)
    return vid if vid else None


def _is_cast(tok: Any) -> bool:
    if _tok_str(tok) != "(":
        return False
    if getattr(tok, "isCast", False):
        return True
    op1 = getattr(tok, "astOperand1", None)
    return (
        op1 is not None
        and getattr(tok, "astOperand2", None) is None
        and op1 is not getattr(tok, "previous", None)
    )


def _has_side_effects(tok: Any) -> bool:
    if tok is None:
        return False
    s = _tok_str(tok)
    if s in _ASSIGNMENT_OPS or s in ("++", "--"):
        return True
    if s == "(" and not _is_cast(tok):
        return True
    return (
        _has_side_effects(getattr(tok, "astOperand1", None))
        or _has_side_effects(getattr(tok, "astOperand2", None))
    )


def convert(sign: Fact, src: Any, dst: Any) -> Fact:
    """Sign of a value of *src*'s type after conversion to *dst*'s type.

    Narrowing and float-to-integer truncation can map a non-zero value to
    zero; conversion to unsigned maps negative values to positive ones.
    """
    if sign is None or sign in (Sign.BOTTOM, Sign.ZERO, Sign.TOP):
        return sign
    dvt, svt = _value_type(dst), _value_type(src)
    if dvt is None or svt is None or not has_sign_fact(dst):
        return sign
    if dvt.type == "bool":
        return Sign.POS
    if is_integral(dst):
        if not is_integral(src):
            return Sign.TOP
        if _RANK.get(dvt.type, 3) < _RANK.get(svt.type, 3):
            return Sign.TOP
        if _is_unsigned(dst) and not _is_unsigned(src):
            return Sign.POS
        if not _is_unsigned(dst) and _is_unsigned(src):
            if _RANK.get(dvt.type, 3) == _RANK.get(svt.type, 3):
                return Sign.NONZERO if sign is Sign.POS else sign
    return sign


def _fit(sign: Fact, tok: Any) -> Fact:
    """Clamp a result to what *tok*'s type can hold."""
    if sign in (Sign.NEG, Sign.NONZERO) and _is_unsigned_promoted(tok):
        return Sign.POS
    return sign


def _narrow(sign: Fact, target: Any) -> Fact:
    """Result of storing an int-promoted value back into *target*.

    Types narrower than ``int`` wrap, so a non-zero result may store zero.
    """
    vt = _value_type(target)
    if (
        vt is not None
        and is_integral(target)
        and _RANK.get(vt.type, 3) < _RANK["int"]
        and sign not in (None, Sign.BOTTOM, Sign.ZERO)
    ):
        return Sign.TOP
    return _fit(sign, target)


# ===========================================================================
# NODE CLASSIFICATION
# ===========================================================================

@dataclass(frozen=True)
class ArithmeticNode:
    """``left op right`` (or ``left op= right`` when *compound*)."""
    operator: BinaryOperator
    left: Any
    right: Any
    compound: bool = False


@dataclass(frozen=True)
class ComparisonNode:
    """``left cmp right``."""
    comparison: Comparison
    left: Any
    right: Any


def classify(tok: Any) -> Optional[Union[ArithmeticNode, ComparisonNode]]:
    """Classify a binary AST node, or return ``None`` for anything else."""
    op1 = getattr(tok, "astOperand1", None)
    op2 = getattr(tok, "astOperand2", None)
    if op1 is None or op2 is None:
        return None
    s = _tok_str(tok)
    if s in _ARITHMETIC_OPS:
        return ArithmeticNode(BinaryOperator.from_token_str(s), op1, op2)
    if s in _COMPOUND_OPS:
        return ArithmeticNode(
            BinaryOperator.from_compound(s), op1, op2, compound=True)
    if s in _COMPARISON_OPS:
        return ComparisonNode(Comparison.from_token_str(s), op1, op2)
    return None


# ===========================================================================
# EXPRESSION EVALUATION
# ===========================================================================

@dataclass(frozen=True)
class DivisionSite:
    """A ``/``, ``%``, ``/=`` or ``%=`` node and the facts at it.

    Attributes
    ----------
    token : cppcheckdata.Token
        The operator token.
    operator : BinaryOperator
        ``DIVIDE`` or ``MOD``.
    dividend, divisor : Sign
        Operand facts (after the usual arithmetic conversions).
    compound : bool
        ``True`` for ``/=`` and ``%=``.
    integral : bool
        Whether the operation is integer division (the only kind that
        traps on a zero divisor).
    """
    token: Any
    operator: BinaryOperator
    dividend: Sign
    divisor: Sign
    compound: bool = False
    integral: bool = True


DivisionObserver = Callable[[DivisionSite], None]


def _join_into(store: AbstractStore, other: AbstractStore) -> None:
    """Widen *store* in place so it also covers *other*."""
    if not other.is_reachable:
        return
    for key in set(store.keys()) | set(other.keys()):
        store.bind(key, join(store.lookup(key), other.lookup(key)))


class SignEvaluator:
    """Evaluates expression ASTs over an :class:`AbstractStore`.

    :meth:`evaluate` updates the store in place for every assignment,
    compound assignment, ``++`` and ``--`` it meets, in evaluation order.

    Parameters
    ----------
    observer : callable(DivisionSite), optional
        Called once for every division node evaluated.
    """

    def __init__(self, observer: Optional[DivisionObserver] = None) -> None:
        self.observer = observer

    # ----- entry points -----------------------------------------------------

    def evaluate_statement(self, root: Any, store: AbstractStore) -> None:
        """Evaluate a statement-level AST root for its effect on *store*."""
        if _tok_str(root) in (";", "{", "}"):
            return
        var = getattr(root, "variable", None)
        if (
            var is not None
            and getattr(var, "nameToken", None) is root
            and getattr(root, "astParent", None) is None
        ):
            # Declaration without initialiser: whatever was known is stale.
            vid = operand_id(root)
            if vid is not None:
                store.forget(vid)
            return
        self.evaluate(root, store)

    def evaluate(self, tok: Any, store: AbstractStore) -> Fact:
        """Sign of the expression rooted at *tok*; ``None`` if untracked."""
        if tok is None:
            return None
        result = self._visit(tok, store)
        known = _valueflow_known(tok)
        if known is not None and has_sign_fact(tok) and store.is_reachable:
            return Sign.abstract(known)
        return result

    def fact_of(self, tok: Any, store: AbstractStore) -> Fact:
        """Side-effect free fact of *tok* against *store*."""
        if _has_side_effects(tok):
            return Sign.TOP if has_sign_fact(tok) else None
        quiet = SignEvaluator()
        return quiet.evaluate(tok, store.copy())

    # ----- dispatch ---------------------------------------------------------

    def _visit(self, tok: Any, store: AbstractStore) -> Fact:
        s = _tok_str(tok)
        op1 = getattr(tok, "astOperand1", None)
        op2 = getattr(tok, "astOperand2", None)

        if op1 is None and op2 is None:
            return self._leaf(tok, store)

        if s == "=" and op2 is not None:
            return self._assign(tok, op1, op2, store)

        node = classify(tok)
        if isinstance(node, ArithmeticNode):
            if node.compound:
                return self._compound(tok, node, store)
            return self._arithmetic(tok, node, store)
        if isinstance(node, ComparisonNode):
            left = self.evaluate(node.left, store)
            right = self.evaluate(node.right, store)
            return visit_binary(
                node.comparison,
                Sign.TOP if left is None else left,
                Sign.TOP if right is None else right,
            )

        if s in ("++", "--"):
            return self._step(tok, op1 or op2, s, store)
        if s in ("&&", "||"):
            return self._short_circuit(tok, op1, op2, store)
        if s == "?":
            return self._conditional(tok, op1, op2, store)
        if s in (".", "::"):
            self.evaluate(op1, store)
            return self._opaque(tok)

        if s == "(" and _is_cast(tok):
            return convert(self.evaluate(op1, store), op1, tok)
        if op2 is None:
            return self._unary(tok, s, op1, store)
        if s == ",":
            self.evaluate(op1, store)
            return self.evaluate(op2, store)

        # Calls, subscripts, bitwise and shift operators, `return`, …
        if s != "(":
            self.evaluate(op1, store)
        self.evaluate(op2, store)
        if s in _ASSIGNMENT_OPS:
            # Bitwise/shift compound assignment: the target is unknown.
            self._bind(op1, Sign.TOP, store)
        return self._opaque(tok)

    # ----- leaves -----------------------------------------------------------

    def _leaf(self, tok: Any, store: AbstractStore) -> Fact:
        if not has_sign_fact(tok):
            return None
        if not store.is_reachable:
            return Sign.BOTTOM
        if getattr(tok, "isNumber", False) or getattr(tok, "isChar", False):
            return literal_sign(_tok_str(tok))
        vid = operand_id(tok)
        if vid is not None:
            return store.lookup(vid)
        return Sign.TOP

    @staticmethod
    def _opaque(tok: Any) -> Fact:
        return Sign.TOP if has_sign_fact(tok) else None

    def _bind(self, target: Any, value: Fact, store: AbstractStore) -> None:
        vid = operand_id(target)
        if vid is None:
            return
        if value is None or not has_sign_fact(target):
            store.forget(vid)
        else:
            store.bind(vid, value)

    # ----- operators --------------------------------------------------------

    def _assign(self, tok, lhs, rhs, store: AbstractStore) -> Fact:
        value = convert(self.evaluate(rhs, store), rhs, lhs)
        if operand_id(lhs) is None:
            # `a[i] = …`, `*p = …`: evaluate the target's subexpressions.
            self.evaluate(lhs, store)
        self._bind(lhs, value, store)
        return value if has_sign_fact(lhs) else None

    def _arithmetic(self, tok, node: ArithmeticNode, store: AbstractStore) -> Fact:
        left = convert(self.evaluate(node.left, store), node.left, tok)
        right = convert(self.evaluate(node.right, store), node.right, tok)
        if left is None or right is None:
            return self._opaque(tok)
        result = visit_binary(node.operator, left, right)
        same = operand_id(node.left)
        if (
            node.operator is BinaryOperator.MINUS
            and same is not None
            and same == operand_id(node.right)
            and is_integral(node.left)
            and result is not Sign.BOTTOM
        ):
            # `v - v` is zero whatever v holds.
            result = Sign.ZERO
        if node.operator.is_division:
            self._notify(DivisionSite(
                token=tok,
                operator=node.operator,
                dividend=left,
                divisor=right,
                compound=False,
                integral=is_integral(node.left) and is_integral(node.right),
            ))
        return _fit(result, tok)

    def _compound(self, tok, node: ArithmeticNode, store: AbstractStore) -> Fact:
        right = self.evaluate(node.right, store)
        left = self.evaluate(node.left, store)
        if left is None or right is None:
            self._bind(node.left, None, store)
            return self._opaque(tok)
        result = visit_binary(node.operator, left, right)
        if node.operator.is_division:
            self._notify(DivisionSite(
                token=tok,
                operator=node.operator,
                dividend=left,
                divisor=right,
                compound=True,
                integral=is_integral(node.right),
            ))
        if is_integral(node.left) and not is_integral(node.right):
            # `i *= 0.5` truncates
            result = Sign.TOP if result is not Sign.ZERO else result
        result = _narrow(result, node.left)
        self._bind(node.left, result, store)
        return result

    def _step(self, tok, operand, s: str, store: AbstractStore) -> Fact:
        old = self.evaluate(operand, store)
        if old is None or not has_sign_fact(operand):
            self._bind(operand, None, store)
            return None
        op = BinaryOperator.PLUS if s == "++" else BinaryOperator.MINUS
        new = _narrow(visit_binary(op, old, Sign.POS), operand)
        self._bind(operand, new, store)
        # Prefix yields the new value, postfix the old one.
        return join(old, new)

    def _unary(self, tok, s: str, operand, store: AbstractStore) -> Fact:
        value = self.evaluate(operand, store)
        if s == "-":
            return None if value is None else _fit(negate(value), tok)
        if s == "+":
            return value
        if s == "&":
            # The address escapes; later writes through it are not tracked.
            vid = operand_id(operand)
            if vid is not None:
                store.forget(vid)
            return None
        if s == "!":
            if value is Sign.BOTTOM:
                return Sign.BOTTOM
            return Sign.TOP
        return self._opaque(tok)

    def _short_circuit(self, tok, op1, op2, store: AbstractStore) -> Fact:
        self.evaluate(op1, store)
        # `a && b` evaluates b only when a held, `a || b` only when it failed.
        branch = self.assume(op1, _tok_str(tok) == "&&", store).copy()
        self.evaluate(op2, branch)
        _join_into(store, branch)
        return Sign.BOTTOM if not store.is_reachable else Sign.TOP

    def _conditional(self, tok, cond, arms, store: AbstractStore) -> Fact:
        self.evaluate(cond, store)
        if _tok_str(arms) != ":":
            self.evaluate(arms, store)
            return self._opaque(tok)
        then_store = self.assume(cond, True, store).copy()
        then_val = self.evaluate(getattr(arms, "astOperand1", None), then_store)
        else_store = self.assume(cond, False, store).copy()
        else_val = self.evaluate(getattr(arms, "astOperand2", None), else_store)
        merged = then_store.join(else_store)
        for key in set(store.keys()) | set(merged.keys()):
            store.bind(key, merged.lookup(key))
        if then_val is None or else_val is None:
            return self._opaque(tok)
        return join(then_val, else_val)

    # ----- conditions -------------------------------------------------------

    def assume(self, cond: Any, truth: bool, store: AbstractStore) -> AbstractStore:
        """Store after learning that *cond* evaluated to *truth*.

        May return *store* itself when nothing can be learned; callers
        that go on to mutate the result must copy it.
        """
        if not store.is_reachable:
            return store
        s = _tok_str(cond)
        op1 = getattr(cond, "astOperand1", None)
        op2 = getattr(cond, "astOperand2", None)

        if s == "!" and op2 is None and op1 is not None:
            return self.assume(op1, not truth, store)
        if s in ("&&", "||") and op1 is not None and op2 is not None:
            both = (s == "&&") == truth
            first = self.assume(op1, truth, store)
            if both:
                return self.assume(op2, truth, first)
            # One side decided the outcome: either op1 did, or op1 went the
            # other way and op2 did.
            second = self.assume(op2, truth, self.assume(op1, not truth, store))
            return first.join(second)

        node = classify(cond)
        if isinstance(node, ComparisonNode):
            op = node.comparison if truth else node.comparison.negate()
            return self._refine(op, node.left, node.right, store)

        if has_sign_fact(cond):
            op = Comparison.NE if truth else Comparison.EQ
            return self.compare_with(op, cond, Sign.ZERO, store)
        return store

    def compare_with(self, op: Comparison, tok, value: Sign, store: AbstractStore) -> AbstractStore:
        """Store after learning that ``tok op value`` holds."""
        fact = self.fact_of(tok, store)
        if fact is None:
            return store
        true_store, _ = refine_stores(op, operand_id(tok), fact, None, value, store)
        return true_store

    def _refine(self, op: Comparison, left, right, store: AbstractStore) -> AbstractStore:
        lf, rf = self.fact_of(left, store), self.fact_of(right, store)
        if lf is None or rf is None:
            return store
        l_unsigned, r_unsigned = _is_unsigned_promoted(left), _is_unsigned_promoted(right)
        if l_unsigned != r_unsigned:
            # Mixed signedness compares in the unsigned domain; only
            # non-negative signed operands keep their meaning there.
            signed_fact = rf if l_unsigned else lf
            if signed_fact not in (Sign.ZERO, Sign.POS):
                return store
        true_store, _ = refine_stores(
            op, operand_id(left), lf, operand_id(right), rf, store)
        return true_store

    def _notify(self, site: DivisionSite) -> None:
        if self.observer is not None:
            self.observer(site)


# ===========================================================================
# BLOCK AND EDGE TRANSFER
# ===========================================================================

def statement_roots(tokens: List[Any]) -> List[Any]:
    """AST roots among *tokens*: those whose parent lies outside the list."""
    members = {id(t) for t in tokens}
    roots = []
    for tok in tokens:
        parent = getattr(tok, "astParent", None)
        if parent is None or id(parent) not in members:
            roots.append(tok)
    return roots


def condition_root(node: CFGNode) -> Optional[Any]:
    """The AST root of the condition held by a condition block."""
    roots = [t for t in statement_roots(node.tokens)
             if _tok_str(t) not in (";", ")")]
    for tok in roots:
        if (getattr(tok, "astOperand1", None) is not None
                or getattr(tok, "astOperand2", None) is not None):
            return tok
    for tok in roots:
        if _tok_str(tok) != "(":
            return tok
    return None


class SignTransfer:
    """Block and edge transfer for :class:`IntraproceduralSolver`.

    Parameters
    ----------
    evaluator : SignEvaluator, optional
        Expression evaluator (pass one with an observer to collect
        division sites).
    """

    def __init__(self, evaluator: Optional[SignEvaluator] = None) -> None:
        self.evaluator = evaluator or SignEvaluator()

    def __call__(self, node: CFGNode, store: AbstractStore) -> AbstractStore:
        out = store.copy()
        if not out.is_reachable:
            return out
        for root in statement_roots(node.tokens):
            self.evaluator.evaluate_statement(root, out)
        return out

    # ----- edges ------------------------------------------------------------

    def edge_transfer(self, edge, store: AbstractStore) -> AbstractStore:
        """Refine *store* along a branch edge of a condition block."""
        if not store.is_reachable:
            return store
        kind = edge.kind
        if kind not in (
            EdgeKind.BRANCH_TRUE, EdgeKind.BRANCH_FALSE,
            EdgeKind.SWITCH_CASE, EdgeKind.SWITCH_DEFAULT,
        ):
            return store
        root = condition_root(edge.src)
        if root is None:
            return store
        if kind is EdgeKind.BRANCH_TRUE:
            return self.evaluator.assume(root, True, store)
        if kind is EdgeKind.BRANCH_FALSE:
            return self.evaluator.assume(root, False, store)
        if kind is EdgeKind.SWITCH_CASE:
            value = _fit(literal_sign(edge.label or ""), root)
            return self.evaluator.compare_with(Comparison.EQ, root, value, store)
        # default: the selector differs from every case constant
        for sibling in edge.src.successors:
            if sibling.kind is EdgeKind.SWITCH_CASE:
                value = literal_sign(sibling.label or "")
                if value is Sign.ZERO:
                    store = self.evaluator.compare_with(
                        Comparison.NE, root, value, store)
        return store


# ===========================================================================
# PER-FUNCTION DRIVER
# ===========================================================================

@dataclass
class FunctionAnalysis:
    """Fixpoint of the sign analysis over one function's CFG."""
    cfg: CFG
    result: DataflowResult
    transfer: SignTransfer = field(default_factory=SignTransfer)

    def store_at(self, node: CFGNode) -> AbstractStore:
        """Store entering *node*."""
        return self.result.facts_in[node]

    def is_reachable(self, node: CFGNode) -> bool:
        return self.store_at(node).is_reachable

    def division_sites(self) -> List[DivisionSite]:
        """Every division in a reachable block, with its fixpoint facts."""
        sites: List[DivisionSite] = []
        replay = SignTransfer(SignEvaluator(observer=sites.append))
        for node in self.cfg.nodes:
            store = self.store_at(node)
            if store.is_reachable:
                replay(node, store)
        return sites


def analyze_function(
    cfg: CFG,
    *,
    strategy: WorklistStrategy = WorklistStrategy.RPO,
    max_iterations: int = 100_000,
) -> FunctionAnalysis:
    """Run the sign analysis on *cfg* from an unconstrained entry store."""
    transfer = SignTransfer()
    solver = IntraproceduralSolver(
        cfg,
        StoreLattice(),
        transfer,
        edge_transfer=transfer.edge_transfer,
        initial_value=AbstractStore(),
        strategy=strategy,
        max_iterations=max_iterations,
    )
    result = solver.solve()
    logger.debug(
        "Analysed %r: %d transfers, converged=%s",
        cfg, result.iterations, result.converged,
    )
    return FunctionAnalysis(cfg=cfg, result=result, transfer=transfer)


def analyze_configuration(cfg_config, **kwargs) -> Dict[Any, FunctionAnalysis]:
    """Analyse every function with a body in a Cppcheck configuration."""
    return {
        func: analyze_function(cfg, **kwargs)
        for func, cfg in build_all_cfgs(cfg_config).items()
    }


__all__ = [
    "ArithmeticNode",
    "ComparisonNode",
    "DivisionSite",
    "FunctionAnalysis",
    "SignEvaluator",
    "SignTransfer",
    "analyze_configuration",
    "analyze_function",
    "classify",
    "condition_root",
    "convert",
    "has_sign_fact",
    "is_integral",
    "literal_sign",
    "operand_id",
    "statement_roots",
]
