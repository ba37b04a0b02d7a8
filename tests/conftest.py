# tests/conftest.py
"""
Shared fixtures: mock ``cppcheckdata`` objects and a small C parser.

``parse_c`` turns a C snippet into a ``MockConfiguration`` whose tokens
carry the same attributes the analysis reads from a real dump
(``next``/``previous``/``link``, ``astOperand1``/``astOperand2``/
``astParent``, ``varId``/``variable``, ``valueType``, ``values``,
``file``/``linenr``/``column``), so tests exercise the CFG builder, the
front end and the checkers end to end without Cppcheck installed.

Supported C subset: functions over scalar and pointer types, declarations
with initialisers, ``if``/``else``, ``while``, ``do``/``while``, ``for``,
``switch``/``case``/``default``, ``break``, ``continue``, ``return``,
``goto``/labels, and expressions with the usual precedence (assignment,
``?:``, logical, bitwise, relational, shifts, additive, multiplicative,
unary, casts, postfix ``++``/``--``, calls and subscripts).
"""

from __future__ import annotations

import itertools
import re
from typing import Dict, List, Optional, Tuple

import pytest

from divzero.ctrlflow_graph import build_cfg, reset_node_counter
from divzero.frontend import analyze_function


# ═════════════════════════════════════════════════════════════════════════
#  MOCK cppcheckdata OBJECTS
# ═════════════════════════════════════════════════════════════════════════

_token_ids = itertools.count(1)


class MockValueType:
    """Stand-in for ``cppcheckdata.ValueType``."""

    def __init__(self, type: str, sign: str = "", pointer: int = 0) -> None:
        self.type = type
        self.sign = sign
        self.pointer = pointer
        self.constness = 0

    def __repr__(self) -> str:
        stars = "*" * self.pointer
        return f"MockValueType({self.sign} {self.type}{stars})".replace("( ", "(")


class MockValue:
    """Stand-in for a ValueFlow ``cppcheckdata.Value``."""

    def __init__(self, intvalue=None, floatvalue=None, valueKind: str = "known") -> None:
        self.intvalue = intvalue
        self.floatvalue = floatvalue
        self.valueKind = valueKind


class MockToken:
    """Stand-in for ``cppcheckdata.Token``."""

    def __init__(self, s: str, linenr: int = 1, column: int = 1, file: str = "test.c") -> None:
        self.Id = f"t{next(_token_ids)}"
        self.str = s
        self.next: Optional[MockToken] = None
        self.previous: Optional[MockToken] = None
        self.link: Optional[MockToken] = None
        self.astOperand1: Optional[MockToken] = None
        self.astOperand2: Optional[MockToken] = None
        self.astParent: Optional[MockToken] = None
        self.varId = 0
        self.variable = None
        self.valueType: Optional[MockValueType] = None
        self.values: List[MockValue] = []
        self.isName = bool(re.match(r"[A-Za-z_]", s))
        self.isNumber = False
        self.isInt = False
        self.isFloat = False
        self.isChar = False
        self.isCast = False
        self.file = file
        self.linenr = linenr
        self.column = column
        self.scope = None

    def __repr__(self) -> str:
        return f"MockToken({self.str!r} @{self.linenr}:{self.column})"


class MockVariable:
    """Stand-in for ``cppcheckdata.Variable``."""

    def __init__(self, Id: str, nameToken: MockToken, valueType: MockValueType,
                 isArgument: bool = False) -> None:
        self.Id = Id
        self.nameToken = nameToken
        self.valueType = valueType
        self.isArgument = isArgument
        self.isPointer = valueType.pointer > 0


class MockFunction:
    """Stand-in for ``cppcheckdata.Function``."""

    def __init__(self, name: str, Id: str, tokenDef: MockToken) -> None:
        self.name = name
        self.Id = Id
        self.tokenDef = tokenDef

    def __repr__(self) -> str:
        return f"MockFunction({self.name!r})"


class MockScope:
    """Stand-in for ``cppcheckdata.Scope``."""

    def __init__(self, type: str, className: str = "", function=None,
                 bodyStart=None, bodyEnd=None) -> None:
        self.type = type
        self.className = className
        self.function = function
        self.functionId = function.Id if function is not None else None
        self.bodyStart = bodyStart
        self.bodyEnd = bodyEnd


class MockSuppression:
    def __init__(self, errorId: str, fileName: str = "", lineNumber: int = 0) -> None:
        self.errorId = errorId
        self.fileName = fileName
        self.lineNumber = lineNumber


class MockConfiguration:
    """Stand-in for ``cppcheckdata.Configuration``."""

    def __init__(self, tokenlist, scopes, functions, variables, suppressions=None) -> None:
        self.tokenlist = tokenlist
        self.scopes = scopes
        self.functions = functions
        self.variables = variables
        self.suppressions = suppressions or []

    def function(self, name: str) -> MockFunction:
        for func in self.functions:
            if func.name == name:
                return func
        raise KeyError(name)


class MockDump:
    """Stand-in for ``cppcheckdata.CppcheckData``."""

    def __init__(self, configurations) -> None:
        self.configurations = configurations


# ═════════════════════════════════════════════════════════════════════════
#  TOKENIZER
# ═════════════════════════════════════════════════════════════════════════

_TOKEN_RE = re.compile(r"""
      (?P<ws>[ \t\r]+)
    | (?P<nl>\n)
    | (?P<comment>//[^\n]*)
    | (?P<float>(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?[fFlL]?|\d+[eE][+-]?\d+[fFlL]?)
    | (?P<int>0[xX][0-9a-fA-F]+[uUlL]*|\d+[uUlL]*)
    | (?P<char>'(?:\\.[0-9a-fA-F]*|[^'\\])')
    | (?P<name>[A-Za-z_]\w*)
    | (?P<op><<=|>>=|->|\+\+|--|<<|>>|<=|>=|==|!=|&&|\|\||\+=|-=|\*=|/=|%=|&=|\|=|\^=|::
             |[-+*/%<>=!&|^~?:;,(){}\[\].])
""", re.VERBOSE)

_OPEN = {"(": ")", "[": "]", "{": "}"}


def tokenize(src: str, file: str = "test.c") -> List[MockToken]:
    """Split *src* into linked MockTokens (``next``, ``previous``, ``link``)."""
    tokens: List[MockToken] = []
    pos, line, line_start = 0, 1, 0
    while pos < len(src):
        m = _TOKEN_RE.match(src, pos)
        if m is None:
            raise SyntaxError(f"bad character {src[pos]!r} at line {line}")
        kind = m.lastgroup
        text = m.group(kind)
        if kind == "nl":
            line += 1
            line_start = m.end()
        elif kind not in ("ws", "comment"):
            tok = MockToken(text, linenr=line, column=pos - line_start + 1, file=file)
            if kind in ("int", "float"):
                tok.isNumber = True
                tok.isInt = kind == "int"
                tok.isFloat = kind == "float"
                tok.valueType = _literal_type(text, kind)
            elif kind == "char":
                tok.isChar = True
                tok.valueType = MockValueType("char", "signed")
            tokens.append(tok)
        pos = m.end()

    stack: List[MockToken] = []
    for prev, tok in zip([None] + tokens, tokens):
        tok.previous = prev
        if prev is not None:
            prev.next = tok
        if tok.str in _OPEN:
            stack.append(tok)
        elif tok.str in _OPEN.values():
            opener = stack.pop()
            if _OPEN[opener.str] != tok.str:
                raise SyntaxError(f"unbalanced {tok.str!r} at line {tok.linenr}")
            opener.link, tok.link = tok, opener
    if stack:
        raise SyntaxError(f"unclosed {stack[-1].str!r}")
    return tokens


def _literal_type(text: str, kind: str) -> MockValueType:
    if kind == "float":
        return MockValueType("float" if text[-1] in "fF" else "double")
    suffix = re.search(r"[uUlL]*$", text).group(0).lower()
    sign = "unsigned" if "u" in suffix else "signed"
    longs = suffix.count("l")
    base = {0: "int", 1: "long"}.get(longs, "long long")
    return MockValueType(base, sign)


# ═════════════════════════════════════════════════════════════════════════
#  TYPE RULES
# ═════════════════════════════════════════════════════════════════════════

_BASE_TYPES = {"int", "long", "short", "char", "double", "float", "void", "bool", "_Bool"}
_TYPE_WORDS = _BASE_TYPES | {"unsigned", "signed", "const"}
_FLOATS = ("float", "double", "long double")
_RANK = {"bool": 0, "char": 1, "short": 2, "int": 3, "long": 4, "long long": 5}


def _promote(vt: Optional[MockValueType]) -> Optional[MockValueType]:
    if vt is None or vt.pointer or vt.type in _FLOATS:
        return vt
    if _RANK.get(vt.type, 3) < _RANK["int"]:
        return MockValueType("int", "signed")
    return vt


def _arith_type(a: Optional[MockValueType], b: Optional[MockValueType]) -> Optional[MockValueType]:
    if a is None or b is None:
        return a or b
    if a.pointer:
        return a
    if b.pointer:
        return b
    if a.type in _FLOATS or b.type in _FLOATS:
        fa = _FLOATS.index(a.type) if a.type in _FLOATS else -1
        fb = _FLOATS.index(b.type) if b.type in _FLOATS else -1
        return MockValueType(_FLOATS[max(fa, fb)])
    a, b = _promote(a), _promote(b)
    ra, rb = _RANK.get(a.type, 3), _RANK.get(b.type, 3)
    if ra != rb:
        return a if ra > rb else b
    sign = "unsigned" if "unsigned" in (a.sign, b.sign) else "signed"
    return MockValueType(a.type, sign)


def _deref(vt: Optional[MockValueType]) -> Optional[MockValueType]:
    if vt is None or not vt.pointer:
        return None
    return MockValueType(vt.type, vt.sign, vt.pointer - 1)


def _addr(vt: Optional[MockValueType]) -> Optional[MockValueType]:
    if vt is None:
        return None
    return MockValueType(vt.type, vt.sign, vt.pointer + 1)


# ═════════════════════════════════════════════════════════════════════════
#  PARSER
# ═════════════════════════════════════════════════════════════════════════

_ASSIGN_OPS = {"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>="}
_BINARY_LEVELS = [
    {"||"}, {"&&"}, {"|"}, {"^"}, {"&"},
    {"==", "!="}, {"<", "<=", ">", ">="},
    {"<<", ">>"}, {"+", "-"}, {"*", "/", "%"},
]
_BOOL_OPS = {"||", "&&", "==", "!=", "<", "<=", ">", ">="}


def _link_ast(parent: MockToken, op1: Optional[MockToken], op2: Optional[MockToken]) -> MockToken:
    parent.astOperand1 = op1
    parent.astOperand2 = op2
    if op1 is not None:
        op1.astParent = parent
    if op2 is not None:
        op2.astParent = parent
    return parent


class _MiniParser:
    """Recursive-descent parser attaching Cppcheck-style ASTs to tokens."""

    def __init__(self, tokens: List[MockToken]) -> None:
        self.toks = tokens
        self.i = 0
        self.var_scopes: List[Dict[str, Tuple[int, MockVariable]]] = []
        self.var_ids = itertools.count(1)
        self.variables: List[MockVariable] = []
        self.functions: List[MockFunction] = []
        self.scopes: List[MockScope] = []
        self.return_types: Dict[str, MockValueType] = {}

    # ----- cursor -----------------------------------------------------------

    def peek(self, k: int = 0) -> Optional[MockToken]:
        j = self.i + k
        return self.toks[j] if j < len(self.toks) else None

    def at(self, *strs: str) -> bool:
        tok = self.peek()
        return tok is not None and tok.str in strs

    def advance(self) -> MockToken:
        tok = self.peek()
        if tok is None:
            raise SyntaxError("unexpected end of input")
        self.i += 1
        return tok

    def expect(self, s: str) -> MockToken:
        tok = self.advance()
        if tok.str != s:
            raise SyntaxError(f"expected {s!r}, got {tok.str!r} at line {tok.linenr}")
        return tok

    # ----- declarations -----------------------------------------------------

    def at_type(self, k: int = 0) -> bool:
        tok = self.peek(k)
        return tok is not None and tok.str in _TYPE_WORDS

    def parse_type(self) -> MockValueType:
        sign = ""
        words: List[str] = []
        while self.at_type():
            w = self.advance().str
            if w in ("unsigned", "signed"):
                sign = w
            elif w != "const":
                words.append(w)
        if words.count("long") == 2:
            base = "long long"
        elif "long" in words and "double" in words:
            base = "long double"
        elif "long" in words:
            base = "long"
        elif "short" in words:
            base = "short"
        elif words:
            base = "bool" if words[0] == "_Bool" else words[0]
        else:
            base = "int"
        if base not in _FLOATS and base not in ("void", "bool") and not sign:
            sign = "signed"
        pointer = 0
        while self.at("*"):
            self.advance()
            pointer += 1
        return MockValueType(base, sign, pointer)

    def declare(self, name_tok: MockToken, vt: MockValueType, is_arg: bool = False) -> MockVariable:
        vid = next(self.var_ids)
        var = MockVariable(f"v{vid}", name_tok, vt, isArgument=is_arg)
        name_tok.varId = vid
        name_tok.variable = var
        name_tok.valueType = vt
        self.var_scopes[-1][name_tok.str] = (vid, var)
        self.variables.append(var)
        return var

    def lookup(self, name: str) -> Optional[Tuple[int, MockVariable]]:
        for scope in reversed(self.var_scopes):
            if name in scope:
                return scope[name]
        return None

    def parse_declaration(self) -> Optional[MockToken]:
        base = self.parse_type()
        root = None
        while True:
            pointer = base.pointer
            while self.at("*"):
                self.advance()
                pointer += 1
            vt = MockValueType(base.type, base.sign, pointer)
            name_tok = self.advance()
            self.declare(name_tok, vt)
            root = name_tok
            if self.at("="):
                eq = self.advance()
                rhs = self.parse_assign()
                _link_ast(eq, name_tok, rhs)
                eq.valueType = vt
                root = eq
            if not self.at(","):
                return root
            self.advance()

    # ----- program ----------------------------------------------------------

    def parse_program(self) -> None:
        while self.peek() is not None:
            self.parse_function()

    def parse_function(self) -> None:
        ret = self.parse_type()
        name_tok = self.advance()
        func = MockFunction(name_tok.str, f"f{len(self.functions) + 1}", name_tok)
        self.return_types[name_tok.str] = ret
        self.expect("(")
        self.var_scopes.append({})
        if self.at("void") and self.peek(1) is not None and self.peek(1).str == ")":
            self.advance()
        while not self.at(")"):
            vt = self.parse_type()
            if not self.at(",", ")"):
                self.declare(self.advance(), vt, is_arg=True)
            if self.at(","):
                self.advance()
        self.expect(")")
        self.functions.append(func)
        if self.at(";"):
            self.advance()
            self.var_scopes.pop()
            return
        scope = MockScope("Function", className=func.name, function=func,
                          bodyStart=self.peek())
        scope.bodyEnd = self.parse_block()
        self.scopes.append(scope)
        self.var_scopes.pop()

    # ----- statements -------------------------------------------------------

    def parse_block(self) -> MockToken:
        self.expect("{")
        self.var_scopes.append({})
        while not self.at("}"):
            self.parse_statement()
        self.var_scopes.pop()
        return self.expect("}")

    def parse_statement(self) -> None:
        tok = self.peek()
        s = tok.str
        if s == "{":
            self.parse_block()
        elif s in ("if", "while", "switch"):
            kw = self.advance()
            lparen = self.expect("(")
            cond = self.parse_expr()
            self.expect(")")
            _link_ast(lparen, kw, cond)
            self.parse_statement()
            if s == "if" and self.at("else"):
                self.advance()
                self.parse_statement()
        elif s == "do":
            self.advance()
            self.parse_statement()
            kw = self.expect("while")
            lparen = self.expect("(")
            cond = self.parse_expr()
            self.expect(")")
            self.expect(";")
            _link_ast(lparen, kw, cond)
        elif s == "for":
            self.parse_for()
        elif s == "case":
            self.advance()
            self.parse_ternary()
            self.expect(":")
        elif s == "default":
            self.advance()
            self.expect(":")
        elif s in ("break", "continue"):
            self.advance()
            self.expect(";")
        elif s == "return":
            kw = self.advance()
            if not self.at(";"):
                _link_ast(kw, self.parse_expr(), None)
            self.expect(";")
        elif s == "goto":
            self.advance()
            self.advance()
            self.expect(";")
        elif tok.isName and self.peek(1) is not None and self.peek(1).str == ":":
            self.advance()
            self.advance()
        elif s == ";":
            self.advance()
        elif self.at_type():
            self.parse_declaration()
            self.expect(";")
        else:
            self.parse_expr()
            self.expect(";")

    def parse_for(self) -> None:
        kw = self.advance()
        lparen = self.expect("(")
        self.var_scopes.append({})
        init = None
        if not self.at(";"):
            init = self.parse_declaration() if self.at_type() else self.parse_expr()
        semi1 = self.expect(";")
        cond = None if self.at(";") else self.parse_expr()
        semi2 = self.expect(";")
        incr = None if self.at(")") else self.parse_expr()
        self.expect(")")
        _link_ast(semi2, cond, incr)
        _link_ast(semi1, init, semi2)
        _link_ast(lparen, kw, semi1)
        self.parse_statement()
        self.var_scopes.pop()

    # ----- expressions ------------------------------------------------------

    def parse_expr(self) -> MockToken:
        return self.parse_assign()

    def parse_assign(self) -> MockToken:
        lhs = self.parse_ternary()
        if self.at(*_ASSIGN_OPS):
            op = self.advance()
            rhs = self.parse_assign()
            _link_ast(op, lhs, rhs)
            op.valueType = lhs.valueType
            return op
        return lhs

    def parse_ternary(self) -> MockToken:
        cond = self.parse_binary(0)
        if self.at("?"):
            q = self.advance()
            then = self.parse_assign()
            colon = self.expect(":")
            other = self.parse_ternary()
            _link_ast(colon, then, other)
            _link_ast(q, cond, colon)
            q.valueType = colon.valueType = _arith_type(then.valueType, other.valueType)
            return q
        return cond

    def parse_binary(self, level: int) -> MockToken:
        if level == len(_BINARY_LEVELS):
            return self.parse_unary()
        left = self.parse_binary(level + 1)
        while self.at(*_BINARY_LEVELS[level]):
            op = self.advance()
            right = self.parse_binary(level + 1)
            _link_ast(op, left, right)
            if op.str in _BOOL_OPS:
                op.valueType = MockValueType("bool")
            elif op.str in ("<<", ">>"):
                op.valueType = _promote(left.valueType)
            else:
                op.valueType = _arith_type(left.valueType, right.valueType)
            left = op
        return left

    def parse_unary(self) -> MockToken:
        tok = self.peek()
        if tok.str in ("-", "+", "!", "~", "*", "&"):
            op = self.advance()
            operand = self.parse_unary()
            _link_ast(op, operand, None)
            if op.str == "!":
                op.valueType = MockValueType("bool")
            elif op.str == "*":
                op.valueType = _deref(operand.valueType)
            elif op.str == "&":
                op.valueType = _addr(operand.valueType)
            else:
                op.valueType = _promote(operand.valueType)
            return op
        if tok.str in ("++", "--"):
            op = self.advance()
            operand = self.parse_unary()
            _link_ast(op, operand, None)
            op.valueType = operand.valueType
            return op
        if tok.str == "(" and self.at_type(1):
            lparen = self.advance()
            vt = self.parse_type()
            self.expect(")")
            operand = self.parse_unary()
            _link_ast(lparen, operand, None)
            lparen.valueType = vt
            lparen.isCast = True
            return lparen
        return self.parse_postfix()

    def parse_postfix(self) -> MockToken:
        node = self.parse_primary()
        while True:
            if self.at("++", "--"):
                op = self.advance()
                _link_ast(op, node, None)
                op.valueType = node.valueType
                node = op
            elif self.at("("):
                lparen = self.advance()
                args = None
                if not self.at(")"):
                    args = self.parse_assign()
                    while self.at(","):
                        comma = self.advance()
                        args = _link_ast(comma, args, self.parse_assign())
                self.expect(")")
                _link_ast(lparen, node, args)
                lparen.valueType = self.return_types.get(node.str)
                node = lparen
            elif self.at("["):
                lbracket = self.advance()
                index = self.parse_expr()
                self.expect("]")
                _link_ast(lbracket, node, index)
                lbracket.valueType = _deref(node.valueType)
                node = lbracket
            else:
                return node

    def parse_primary(self) -> MockToken:
        tok = self.advance()
        if tok.str == "(":
            inner = self.parse_expr()
            self.expect(")")
            return inner
        if tok.isNumber or tok.isChar:
            return tok
        if tok.isName:
            found = self.lookup(tok.str)
            if found is not None:
                vid, var = found
                tok.varId = vid
                tok.variable = var
                tok.valueType = var.valueType
            return tok
        raise SyntaxError(f"unexpected {tok.str!r} at line {tok.linenr}")


def parse_c(src: str, file: str = "test.c") -> MockConfiguration:
    """Parse a C snippet into a MockConfiguration."""
    tokens = tokenize(src, file=file)
    parser = _MiniParser(tokens)
    parser.parse_program()
    for tok in tokens:
        tok.scope = parser.scopes[0] if parser.scopes else None
    return MockConfiguration(tokens, parser.scopes, parser.functions, parser.variables)


# ═════════════════════════════════════════════════════════════════════════
#  TOKEN LOOKUP HELPERS
# ═════════════════════════════════════════════════════════════════════════

def find_tokens(cfg: MockConfiguration, s: str) -> List[MockToken]:
    """All tokens whose text is *s*, in source order."""
    return [t for t in cfg.tokenlist if t.str == s]


def find_token(cfg: MockConfiguration, s: str, nth: int = 0) -> MockToken:
    return find_tokens(cfg, s)[nth]


def build_function_cfg(src: str, name: Optional[str] = None):
    """Parse *src* and build the CFG of function *name* (default: first)."""
    config = parse_c(src)
    func = config.function(name) if name else config.functions[0]
    return config, build_cfg(func, config)


def analyze_source(src: str, name: Optional[str] = None):
    """Parse, build the CFG and run the sign analysis."""
    config, cfg = build_function_cfg(src, name)
    return config, analyze_function(cfg)


def sites_by_line(analysis) -> Dict[int, list]:
    out: Dict[int, list] = {}
    for site in analysis.division_sites():
        out.setdefault(site.token.linenr, []).append(site)
    return out


# ═════════════════════════════════════════════════════════════════════════
#  FIXTURES
# ═════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def _fresh_node_ids():
    reset_node_counter()
    yield


@pytest.fixture
def int_type() -> MockValueType:
    return MockValueType("int", "signed")


@pytest.fixture
def make_var(int_type):
    """Factory for a standalone variable token with a varId."""
    ids = itertools.count(100)

    def _make(name: str = "x", vt: Optional[MockValueType] = None) -> MockToken:
        tok = MockToken(name)
        tok.varId = next(ids)
        tok.valueType = vt or int_type
        tok.variable = MockVariable(f"v{tok.varId}", MockToken(name), tok.valueType)
        return tok

    return _make
