"""
divzero.ctrlflow_graph
======================

Builds intraprocedural Control Flow Graphs (CFGs) from Cppcheck dump data.

Each function in a Configuration yields one CFG.  A CFG is a directed graph
whose nodes are *basic blocks* (straight-line sequences of tokens) and whose
edges carry control-flow semantics (fall-through, branch-true, branch-false,
back-edge, switch-case, etc.).

Public API
----------
    EdgeKind         - classification of a CFG edge
    CFGNode          - a single basic block
    CFGEdge          - a directed edge between two CFGNodes
    CFG              - the control flow graph for one function
    build_cfg        - build a CFG from a cppcheckdata.Function + Configuration
    build_all_cfgs   - build CFGs for every function in a Configuration

Typical usage::

    import cppcheckdata
    from divzero.ctrlflow_graph import build_all_cfgs

    data = cppcheckdata.parsedump("foo.c.dump")
    for cfg_config in data.configurations:
        for func, cfg in build_all_cfgs(cfg_config).items():
            print(cfg_summary(cfg))

Implementation notes
--------------------
* We iterate over the *token stream* inside a function scope (from
  ``scope.bodyStart`` to ``scope.bodyEnd``) and partition it into basic
  blocks.  A new block starts at every branch target and at every
  control-flow merge point.
* Condition blocks (``if-cond``, ``loop-cond``, ``switch-dispatch``) hold
  exactly the tokens between the condition's parentheses (or between the
  semicolons of a ``for`` header), so the condition's AST root is the one
  token whose ``astParent`` lies outside the block.
* The AST attached to each token is **not** restructured; we merely
  reference the existing Token objects from cppcheckdata.
* ``goto`` support is best-effort: we resolve labels that appear inside
  the same function scope.
"""

from __future__ import annotations

import enum
import itertools
from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple


# ---------------------------------------------------------------------------
# Edge kinds
# ---------------------------------------------------------------------------


class EdgeKind(enum.Enum):
    """Classification of a CFG edge."""

    FALL_THROUGH = "fall-through"
    BRANCH_TRUE = "branch-true"
    BRANCH_FALSE = "branch-false"
    BACK_EDGE = "back-edge"
    BREAK = "break"
    CONTINUE = "continue"
    RETURN = "return"
    GOTO = "goto"
    SWITCH_CASE = "switch-case"
    SWITCH_DEFAULT = "switch-default"


# ---------------------------------------------------------------------------
# CFGNode  –  a basic block
# ---------------------------------------------------------------------------

_node_ids = itertools.count()


def reset_node_counter() -> None:
    """Reset the global node-id counter (useful for deterministic tests)."""
    global _node_ids
    _node_ids = itertools.count()


class CFGNode:
    """A basic block in the CFG.

    Attributes
    ----------
    id : int
        Unique (per-process) numeric identifier.
    tokens : list
        Ordered list of ``cppcheckdata.Token`` objects that belong to this
        block.  May be empty for synthetic entry/exit nodes.
    scope : object or None
        The ``cppcheckdata.Scope`` that *directly* contains this block.
    kind : str
        Human-readable tag: ``"entry"``, ``"exit"``, ``"if-cond"``,
        ``"loop-cond"``, ``"switch-dispatch"``, ``"body"``, …
    successors : list[CFGEdge]
        Outgoing edges.
    predecessors : list[CFGEdge]
        Incoming edges.
    """

    __slots__ = (
        "id",
        "tokens",
        "scope",
        "kind",
        "successors",
        "predecessors",
    )

    def __init__(
        self,
        tokens: Optional[List] = None,
        scope=None,
        kind: str = "body",
    ) -> None:
        self.id: int = next(_node_ids)
        self.tokens: List = tokens if tokens is not None else []
        self.scope = scope
        self.kind: str = kind
        self.successors: List[CFGEdge] = []
        self.predecessors: List[CFGEdge] = []

    # ----- helpers ----------------------------------------------------------

    def label(self) -> str:
        """Return a compact, human-readable label for this block."""
        if not self.tokens:
            return f"[{self.kind}]"
        s = " ".join(t.str for t in self.tokens[:6])
        if len(self.tokens) > 6:
            s += " …"
        first = self.tokens[0]
        if getattr(first, "file", None) and getattr(first, "linenr", None):
            return f"{first.file}:{first.linenr} {s}"
        return s

    @property
    def is_condition(self) -> bool:
        """Does this block end in a two-way (or switch) branch?"""
        return self.kind in ("if-cond", "loop-cond", "switch-dispatch")

    @property
    def first_token(self):
        """First token in the block, or ``None``."""
        return self.tokens[0] if self.tokens else None

    @property
    def last_token(self):
        """Last token in the block, or ``None``."""
        return self.tokens[-1] if self.tokens else None

    def __repr__(self) -> str:
        return f"CFGNode(id={self.id}, kind={self.kind!r}, ntokens={len(self.tokens)})"

    def __hash__(self) -> int:
        return self.id

    def __eq__(self, other) -> bool:
        if isinstance(other, CFGNode):
            return self.id == other.id
        return NotImplemented


# ---------------------------------------------------------------------------
# CFGEdge
# ---------------------------------------------------------------------------

class CFGEdge:
    """A directed edge in the CFG.

    Attributes
    ----------
    src : CFGNode
    dst : CFGNode
    kind : EdgeKind
    label : str or None
        Optional auxiliary label (e.g. the case constant for SWITCH_CASE).
    """

    __slots__ = ("src", "dst", "kind", "label")

    def __init__(
        self,
        src: CFGNode,
        dst: CFGNode,
        kind: EdgeKind = EdgeKind.FALL_THROUGH,
        label: Optional[str] = None,
    ) -> None:
        self.src = src
        self.dst = dst
        self.kind = kind
        self.label = label

    def __repr__(self) -> str:
        return (
            f"CFGEdge(BB{self.src.id} -> BB{self.dst.id}, "
            f"kind={self.kind.value!r})"
        )

    def __hash__(self) -> int:
        return hash((self.src.id, self.dst.id, self.kind))

    def __eq__(self, other) -> bool:
        if isinstance(other, CFGEdge):
            return (
                self.src.id == other.src.id
                and self.dst.id == other.dst.id
                and self.kind == other.kind
            )
        return NotImplemented


# ---------------------------------------------------------------------------
# CFG
# ---------------------------------------------------------------------------

class CFG:
    """Intraprocedural control flow graph for a single function.

    Attributes
    ----------
    function : cppcheckdata.Function
        The function this CFG represents.
    entry : CFGNode
        Synthetic entry block (no tokens).
    exit : CFGNode
        Synthetic exit block (no tokens).
    nodes : list[CFGNode]
        All basic blocks (including entry and exit).
    edges : list[CFGEdge]
        All edges.
    """

    def __init__(self, function) -> None:
        self.function = function
        self.entry = CFGNode(kind="entry")
        self.exit = CFGNode(kind="exit")
        self.nodes: List[CFGNode] = [self.entry, self.exit]
        self.edges: List[CFGEdge] = []

    # ----- graph mutation ---------------------------------------------------

    def add_node(self, node: CFGNode) -> CFGNode:
        """Register *node* in this CFG and return it."""
        self.nodes.append(node)
        return node

    def add_edge(
        self,
        src: CFGNode,
        dst: CFGNode,
        kind: EdgeKind = EdgeKind.FALL_THROUGH,
        label: Optional[str] = None,
    ) -> CFGEdge:
        """Create an edge, register it, and wire up predecessor/successor lists."""
        e = CFGEdge(src, dst, kind=kind, label=label)
        self.edges.append(e)
        src.successors.append(e)
        dst.predecessors.append(e)
        return e

    # ----- queries ----------------------------------------------------------

    def successors_of(self, node: CFGNode) -> List[CFGNode]:
        return [e.dst for e in node.successors]

    def predecessors_of(self, node: CFGNode) -> List[CFGNode]:
        return [e.src for e in node.predecessors]

    def reachable_from(self, start: CFGNode) -> Set[CFGNode]:
        """Return the set of nodes reachable from *start*."""
        visited: Set[CFGNode] = set()
        worklist = [start]
        while worklist:
            n = worklist.pop()
            if n in visited:
                continue
            visited.add(n)
            for e in n.successors:
                worklist.append(e.dst)
        return visited

    def dominators(self) -> Dict[CFGNode, Set[CFGNode]]:
        """Compute the dominator sets using the iterative algorithm.

        Returns a dict mapping each node to its set of dominators.
        """
        dom: Dict[CFGNode, Set[CFGNode]] = {}
        all_nodes = set(self.nodes)
        dom[self.entry] = {self.entry}
        for n in self.nodes:
            if n is not self.entry:
                dom[n] = set(all_nodes)
        changed = True
        while changed:
            changed = False
            for n in self.nodes:
                if n is self.entry:
                    continue
                preds = self.predecessors_of(n)
                if not preds:
                    new_dom = {n}
                else:
                    new_dom = set.intersection(*(dom[p] for p in preds))
                    new_dom = new_dom | {n}
                if new_dom != dom[n]:
                    dom[n] = new_dom
                    changed = True
        return dom

    def back_edges(self) -> List[CFGEdge]:
        """Return edges whose destination dominates their source (loop back-edges)."""
        dom = self.dominators()
        return [e for e in self.edges if e.dst in dom.get(e.src, set())]

    # ----- export -----------------------------------------------------------

    def to_dot(
        self,
        title: Optional[str] = None,
        annotations: Optional[Dict[CFGNode, str]] = None,
    ) -> str:
        """Return a Graphviz DOT representation of this CFG.

        *annotations* maps nodes to an extra label line (e.g. the abstract
        store entering the block).
        """
        annotations = annotations or {}
        lines = ["digraph CFG {"]
        if title:
            lines.append(f'  label="{title}";')
        lines.append("  node [shape=box, fontname=monospace, fontsize=10];")
        for n in self.nodes:
            lbl = n.label()
            if n in annotations:
                lbl += "\n" + annotations[n]
            lbl = lbl.replace('"', '\\"').replace("\n", "\\n")
            color = ""
            if n.kind == "entry":
                color = ', style=filled, fillcolor="#ccffcc"'
            elif n.kind == "exit":
                color = ', style=filled, fillcolor="#ffcccc"'
            lines.append(f'  BB{n.id} [label="BB{n.id}\\n{lbl}"{color}];')
        for e in self.edges:
            style = ""
            elabel = e.kind.value
            if e.label:
                elabel += f": {e.label}"
            if e.kind == EdgeKind.BRANCH_TRUE:
                style = ', color=green, fontcolor=green'
            elif e.kind == EdgeKind.BRANCH_FALSE:
                style = ', color=red, fontcolor=red'
            elif e.kind == EdgeKind.BACK_EDGE:
                style = ', style=dashed, color=blue, fontcolor=blue'
            elif e.kind in (EdgeKind.BREAK, EdgeKind.CONTINUE):
                style = ', style=dotted'
            lines.append(
                f'  BB{e.src.id} -> BB{e.dst.id} '
                f'[label="{elabel}"{style}];'
            )
        lines.append("}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        fname = getattr(self.function, "name", None) or "<unknown>"
        return (
            f"CFG(function={fname!r}, nodes={len(self.nodes)}, "
            f"edges={len(self.edges)})"
        )


# ===========================================================================
# CFG BUILDER
# ===========================================================================

# Blocks that other paths jump or fall into; a `return` after one of them
# gets its own block so the join keeps its kind.
_JOIN_KINDS = frozenset({
    "if-merge", "while-after", "for-after", "do-while-after",
    "switch-after", "label", "case", "default",
})


def _tok_str(tok) -> str:
    """Safely get the string of a token."""
    if tok is None:
        return ""
    return tok.str if tok.str else ""


def _find_matching_brace(tok):
    """Given a '{' token, return its matching '}' via the .link attribute."""
    if tok and tok.str == "{" and tok.link:
        return tok.link
    return None


def _skip_past_semicolon(tok, limit_tok=None):
    """Advance past the next ';'. Returns the token *after* the ';'."""
    while tok and tok != limit_tok:
        if tok.str == ";":
            return tok.next
        # Skip nested brackets via link
        if tok.str in ("(", "[", "{") and tok.link:
            tok = tok.link
        tok = tok.next
    return None


def _skip_parenthesised(tok):
    """If *tok* is '(', return the token after the matching ')'.
    Otherwise return *tok* unchanged."""
    if tok and tok.str == "(" and tok.link:
        return tok.link.next
    return tok


def _at_statement_start(tok) -> bool:
    """Is *tok* the first token of a statement (so `name :` is a label)?"""
    prev = getattr(tok, "previous", None)
    return prev is None or prev.str in (";", "{", "}", ":")


def _statement_end(tok, limit_tok=None):
    """Return the token just after the statement starting at *tok*."""
    s = _tok_str(tok)
    if s == "{":
        end = _find_matching_brace(tok)
        return end.next if end else None
    if s == "if":
        after = _statement_end(_skip_parenthesised(tok.next), limit_tok)
        if after is not None and _tok_str(after) == "else":
            return _statement_end(after.next, limit_tok)
        return after
    if s in ("while", "for", "switch"):
        return _statement_end(_skip_parenthesised(tok.next), limit_tok)
    if s == "do":
        after = _statement_end(tok.next, limit_tok)
        # 'while' '(' ... ')' ';'
        return _skip_past_semicolon(after, limit_tok)
    return _skip_past_semicolon(tok, limit_tok)


class _CFGBuilder:
    """Internal builder that constructs a CFG for a single function.

    The algorithm is a single forward pass over the token stream inside
    the function body.  We maintain a *current block* and cut it whenever
    we encounter a control-flow keyword, recursing into nested statements.
    """

    def __init__(self, function, scope) -> None:
        self.function = function
        self.scope = scope        # the Function scope
        self.cfg = CFG(function)
        # label -> CFGNode (for goto)
        self._labels: Dict[str, CFGNode] = {}
        # deferred goto -> label name
        self._pending_gotos: List[Tuple[CFGNode, str]] = []

    # ----- helpers ----------------------------------------------------------

    def _new_block(self, kind: str = "body", scope=None) -> CFGNode:
        node = CFGNode(kind=kind, scope=scope or self.scope)
        self.cfg.add_node(node)
        return node

    def _edge(self, src, dst, kind=EdgeKind.FALL_THROUGH, label=None):
        return self.cfg.add_edge(src, dst, kind=kind, label=label)

    @staticmethod
    def _collect_paren(tok, block: CFGNode):
        """Append the tokens strictly inside '(' ... ')' to *block*.

        Returns the token after ')'.
        """
        if not tok or tok.str != "(":
            return tok
        rparen = tok.link
        inner = tok.next
        while inner and inner != rparen:
            block.tokens.append(inner)
            inner = inner.next
        return rparen.next if rparen else None

    # ----- main build -------------------------------------------------------

    def build(self) -> CFG:
        """Build and return the CFG."""
        body_start = self.scope.bodyStart   # the '{' token
        body_end = self.scope.bodyEnd       # the '}' token

        if body_start is None or body_end is None:
            # Forward declaration – trivial CFG
            self._edge(self.cfg.entry, self.cfg.exit)
            return self.cfg

        first_block = self._new_block(kind="body")
        self._edge(self.cfg.entry, first_block)

        after_block = self._process_compound(
            body_start.next,   # first token inside '{'
            body_end,          # limit: the '}'
            first_block,
            break_target=None,
            continue_target=None,
        )

        if after_block is not None:
            self._edge(after_block, self.cfg.exit, EdgeKind.FALL_THROUGH)

        for goto_block, lbl_name in self._pending_gotos:
            target = self._labels.get(lbl_name)
            if target:
                self._edge(goto_block, target, EdgeKind.GOTO)
            else:
                # Unresolved – connect to exit as a safe fallback
                self._edge(goto_block, self.cfg.exit, EdgeKind.GOTO)

        return self.cfg

    def _process_body(
        self,
        tok,
        limit_tok,
        block: CFGNode,
        break_target: Optional[CFGNode],
        continue_target: Optional[CFGNode],
    ):
        """Process the body of an if/else/loop: a braced block or a single
        statement.  Returns ``(next_tok, exit_block_or_None)``."""
        if tok is None:
            return None, block
        end = _statement_end(tok, limit_tok)
        if tok.str == "{":
            inner_end = _find_matching_brace(tok)
            exit_block = self._process_compound(
                tok.next, inner_end, block, break_target, continue_target,
            )
        else:
            exit_block = self._process_compound(
                tok, end, block, break_target, continue_target,
            )
        return end, exit_block

    def _process_compound(
        self,
        tok,
        limit_tok,
        current_block: Optional[CFGNode],
        break_target: Optional[CFGNode],
        continue_target: Optional[CFGNode],
    ) -> Optional[CFGNode]:
        """Process a sequence of statements between *tok* and *limit_tok*.

        Returns the block that is "live" after this compound, or ``None``
        if all paths explicitly left (return/goto/break/continue).
        """
        while tok and tok != limit_tok:
            s = _tok_str(tok)

            # ---- labels (goto targets) ------------------------------------
            if (
                getattr(tok, "isName", False)
                and _at_statement_start(tok)
                and tok.next
                and tok.next.str == ":"
                and not (tok.next.next and tok.next.next.str == ":")  # not ::
                and s not in ("case", "default")
            ):
                label_block = self._new_block(kind="label")
                if current_block is not None:
                    self._edge(current_block, label_block)
                self._labels[s] = label_block
                current_block = label_block
                tok = tok.next.next  # skip "label" ":"
                continue

            # ---- return ----------------------------------------------------
            if s == "return":
                if current_block is None:
                    current_block = self._new_block(kind="unreachable")
                elif current_block.kind in _JOIN_KINDS:
                    ret_block = self._new_block(kind="return")
                    self._edge(current_block, ret_block)
                    current_block = ret_block
                end = _skip_past_semicolon(tok, limit_tok)
                while tok and tok != end and tok != limit_tok:
                    current_block.tokens.append(tok)
                    tok = tok.next
                current_block.kind = "return"
                self._edge(current_block, self.cfg.exit, EdgeKind.RETURN)
                current_block = None  # dead code until next label / merge
                continue

            # ---- break / continue ------------------------------------------
            if s in ("break", "continue"):
                target = break_target if s == "break" else continue_target
                kind = EdgeKind.BREAK if s == "break" else EdgeKind.CONTINUE
                if current_block is not None:
                    current_block.tokens.append(tok)
                    self._edge(current_block, target or self.cfg.exit, kind)
                tok = _skip_past_semicolon(tok.next, limit_tok)
                current_block = None
                continue

            # ---- goto ------------------------------------------------------
            if s == "goto":
                label_tok = tok.next
                if current_block is not None:
                    current_block.tokens.append(tok)
                    self._pending_gotos.append(
                        (current_block, _tok_str(label_tok)))
                tok = _skip_past_semicolon(tok.next, limit_tok)
                current_block = None
                continue

            if s == "if":
                tok, current_block = self._process_if(
                    tok, limit_tok, current_block, break_target, continue_target
                )
                continue

            if s == "while":
                tok, current_block = self._process_while(
                    tok, limit_tok, current_block
                )
                continue

            if s == "for":
                tok, current_block = self._process_for(
                    tok, limit_tok, current_block
                )
                continue

            if s == "do":
                tok, current_block = self._process_do_while(
                    tok, limit_tok, current_block
                )
                continue

            if s == "switch":
                tok, current_block = self._process_switch(
                    tok, limit_tok, current_block, continue_target
                )
                continue

            # ---- nested brace block '{' ... '}' ----------------------------
            if s == "{":
                inner_end = _find_matching_brace(tok)
                if inner_end:
                    current_block = self._process_compound(
                        tok.next, inner_end, current_block,
                        break_target, continue_target,
                    )
                    tok = inner_end.next
                    continue

            # ---- ordinary statement token ----------------------------------
            if current_block is None:
                # Dead code after return/break/etc.
                current_block = self._new_block(kind="unreachable")

            current_block.tokens.append(tok)
            tok = tok.next

        return current_block

    # -----------------------------------------------------------------------
    # if / else
    # -----------------------------------------------------------------------

    def _process_if(self, tok, limit_tok, current_block, break_target, continue_target):
        """Handle ``if (...) stmt [else stmt]``.

        Returns (next_tok, live_block_or_None).
        """
        cond_block = self._new_block(kind="if-cond")
        if current_block is not None:
            self._edge(current_block, cond_block)

        tok = self._collect_paren(tok.next, cond_block)
        if tok is None:
            return None, None

        true_block = self._new_block(kind="if-true")
        self._edge(cond_block, true_block, EdgeKind.BRANCH_TRUE)
        tok, true_exit = self._process_body(
            tok, limit_tok, true_block, break_target, continue_target)

        false_exit: Optional[CFGNode] = None
        has_else = tok is not None and tok != limit_tok and _tok_str(tok) == "else"

        if has_else:
            false_block = self._new_block(kind="if-false")
            self._edge(cond_block, false_block, EdgeKind.BRANCH_FALSE)
            tok, false_exit = self._process_body(
                tok.next, limit_tok, false_block, break_target, continue_target)

        merge = self._new_block(kind="if-merge")
        if not has_else:
            self._edge(cond_block, merge, EdgeKind.BRANCH_FALSE)
            false_exit = merge
        if true_exit is not None:
            self._edge(true_exit, merge)
        if has_else and false_exit is not None:
            self._edge(false_exit, merge)

        if true_exit is None and false_exit is None:
            return tok, None
        return tok, merge

    # -----------------------------------------------------------------------
    # while
    # -----------------------------------------------------------------------

    def _process_while(self, tok, limit_tok, current_block):
        """Handle ``while (...) stmt``."""
        cond_block = self._new_block(kind="loop-cond")
        if current_block is not None:
            self._edge(current_block, cond_block)

        tok = self._collect_paren(tok.next, cond_block)

        after_loop = self._new_block(kind="while-after")
        body_block = self._new_block(kind="loop-body")
        self._edge(cond_block, body_block, EdgeKind.BRANCH_TRUE)
        self._edge(cond_block, after_loop, EdgeKind.BRANCH_FALSE)

        tok, body_exit = self._process_body(
            tok, limit_tok, body_block,
            break_target=after_loop,
            continue_target=cond_block,
        )
        if body_exit is not None:
            self._edge(body_exit, cond_block, EdgeKind.BACK_EDGE)

        return tok, after_loop

    # -----------------------------------------------------------------------
    # for
    # -----------------------------------------------------------------------

    def _process_for(self, tok, limit_tok, current_block):
        """Handle ``for (init; cond; incr) stmt``."""
        tok = tok.next  # skip 'for', now at '('
        if not tok or tok.str != "(":
            return tok, current_block

        rparen = tok.link
        tok = tok.next  # first token inside '('

        init_block = self._new_block(kind="for-init")
        if current_block is not None:
            self._edge(current_block, init_block)
        while tok and tok != rparen and tok.str != ";":
            init_block.tokens.append(tok)
            tok = tok.next
        if tok and tok.str == ";":
            tok = tok.next

        cond_block = self._new_block(kind="loop-cond")
        self._edge(init_block, cond_block)
        while tok and tok != rparen and tok.str != ";":
            cond_block.tokens.append(tok)
            tok = tok.next
        if tok and tok.str == ";":
            tok = tok.next

        incr_block = self._new_block(kind="for-incr")
        while tok and tok != rparen:
            incr_block.tokens.append(tok)
            tok = tok.next
        tok = rparen.next if rparen else None

        after_loop = self._new_block(kind="for-after")
        body_block = self._new_block(kind="loop-body")
        if cond_block.tokens:
            self._edge(cond_block, body_block, EdgeKind.BRANCH_TRUE)
            self._edge(cond_block, after_loop, EdgeKind.BRANCH_FALSE)
        else:
            # for (;;) – no condition, no exit edge from the header
            self._edge(cond_block, body_block)

        tok, body_exit = self._process_body(
            tok, limit_tok, body_block,
            break_target=after_loop,
            continue_target=incr_block,
        )
        if body_exit is not None:
            self._edge(body_exit, incr_block)
        self._edge(incr_block, cond_block, EdgeKind.BACK_EDGE)

        return tok, after_loop

    # -----------------------------------------------------------------------
    # do ... while
    # -----------------------------------------------------------------------

    def _process_do_while(self, tok, limit_tok, current_block):
        """Handle ``do stmt while (...);``."""
        body_block = self._new_block(kind="loop-body")
        if current_block is not None:
            self._edge(current_block, body_block)

        cond_block = self._new_block(kind="loop-cond")
        after_loop = self._new_block(kind="do-while-after")

        tok, body_exit = self._process_body(
            tok.next, limit_tok, body_block,
            break_target=after_loop,
            continue_target=cond_block,
        )
        if body_exit is not None:
            self._edge(body_exit, cond_block)

        # Now expect "while" "(" ... ")" ";"
        if tok and tok.str == "while":
            tok = self._collect_paren(tok.next, cond_block)
            if tok and tok.str == ";":
                tok = tok.next

        self._edge(cond_block, body_block, EdgeKind.BRANCH_TRUE)
        self._edge(cond_block, after_loop, EdgeKind.BRANCH_FALSE)

        return tok, after_loop

    # -----------------------------------------------------------------------
    # switch
    # -----------------------------------------------------------------------

    def _process_switch(self, tok, limit_tok, current_block, continue_target):
        """Handle ``switch (...) { case ...: ... }``."""
        dispatch_block = self._new_block(kind="switch-dispatch")
        if current_block is not None:
            self._edge(current_block, dispatch_block)

        tok = self._collect_paren(tok.next, dispatch_block)
        after_switch = self._new_block(kind="switch-after")

        if not tok or tok.str != "{":
            self._edge(dispatch_block, after_switch, EdgeKind.SWITCH_DEFAULT)
            return _statement_end(tok, limit_tok) if tok else None, after_switch

        switch_body_end = _find_matching_brace(tok)
        tok = tok.next  # first token inside '{'

        case_block: Optional[CFGNode] = None
        has_default = False

        while tok and tok != switch_body_end:
            s = _tok_str(tok)

            if s in ("case", "default"):
                if s == "case":
                    new_case = self._new_block(kind="case")
                    parts = []
                    tok = tok.next
                    while tok and tok.str != ":" and tok != switch_body_end:
                        parts.append(tok.str)
                        tok = tok.next
                    self._edge(dispatch_block, new_case,
                               EdgeKind.SWITCH_CASE, label=" ".join(parts))
                else:
                    new_case = self._new_block(kind="default")
                    self._edge(dispatch_block, new_case, EdgeKind.SWITCH_DEFAULT)
                    has_default = True
                    tok = tok.next
                # Fall-through from previous case
                if case_block is not None:
                    self._edge(case_block, new_case, EdgeKind.FALL_THROUGH)
                case_block = new_case
                if tok and tok.str == ":":
                    tok = tok.next
                continue

            # One statement inside a case
            end = _statement_end(tok, switch_body_end)
            if case_block is None:
                case_block = self._new_block(kind="unreachable")
            case_block = self._process_compound(
                tok, end, case_block,
                break_target=after_switch,
                continue_target=continue_target,
            )
            tok = end

        if case_block is not None:
            self._edge(case_block, after_switch)
        if not has_default:
            self._edge(dispatch_block, after_switch, EdgeKind.SWITCH_DEFAULT)

        tok = switch_body_end.next if switch_body_end else None
        return tok, after_switch


# ===========================================================================
# PUBLIC API
# ===========================================================================

def _function_scope(function, cfg_config):
    for s in getattr(cfg_config, "scopes", []):
        if s.type == "Function" and getattr(s, "function", None) is function:
            return s
    # Fallback: match through the className / functionId
    for s in getattr(cfg_config, "scopes", []):
        if s.type == "Function" and s.className == function.name:
            if getattr(s, "functionId", None) == function.Id:
                return s
    return None


def build_cfg(function, cfg_config) -> Optional[CFG]:
    """Build a :class:`CFG` for a single function.

    Parameters
    ----------
    function : cppcheckdata.Function
        The function object from the dump file.
    cfg_config : cppcheckdata.Configuration
        The configuration that contains *function*.

    Returns
    -------
    CFG or None
        The control flow graph, or ``None`` if the function has no body
        (forward declaration, etc.).
    """
    scope = _function_scope(function, cfg_config)
    if scope is None:
        return None
    if scope.bodyStart is None or scope.bodyEnd is None:
        return None
    return _CFGBuilder(function, scope).build()


def build_all_cfgs(cfg_config) -> OrderedDict:
    """Build CFGs for every function that has a body in *cfg_config*.

    Returns
    -------
    OrderedDict[cppcheckdata.Function, CFG]
        Mapping from function objects to their CFGs, in the order they
        appear in the dump file.
    """
    result: OrderedDict = OrderedDict()
    for func in getattr(cfg_config, "functions", []):
        cfg = build_cfg(func, cfg_config)
        if cfg is not None:
            result[func] = cfg
    return result


def cfg_summary(cfg: CFG) -> str:
    """Return a multi-line human-readable summary of *cfg*."""
    lines = [repr(cfg)]
    for node in cfg.nodes:
        succ_ids = ", ".join(
            f"BB{e.dst.id}({e.kind.value})" for e in node.successors)
        pred_ids = ", ".join(f"BB{e.src.id}" for e in node.predecessors)
        lines.append(
            f"  BB{node.id} [{node.kind}] "
            f"tokens={len(node.tokens)}  "
            f"succ=[{succ_ids}]  "
            f"pred=[{pred_ids}]"
        )
    return "\n".join(lines)


__all__ = [
    "EdgeKind",
    "CFGNode",
    "CFGEdge",
    "CFG",
    "build_cfg",
    "build_all_cfgs",
    "cfg_summary",
    "reset_node_counter",
]
