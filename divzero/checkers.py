"""
divzero/checkers.py
═══════════════════

Checker framework that turns the sign analysis into cppcheck-addon
diagnostics.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌───────────────────────────────────────────────────┐  │
  │  │               DivByZeroChecker                    │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │              Evidence Collection                  │  │
  │  │  ctrlflow_graph │ dataflow_engine │ frontend      │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  // cppcheck-suppress  │  file-level  │  global   │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │        Diagnostic Formatter (JSON / text)         │  │
  │  └──────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read options
  2. **collect_evidence()** — run analyses, gather suspicious sites
  3. **diagnose()**         — turn evidence into diagnostics
  4. **report()**           — emit Diagnostics (filtered by suppressions)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from fnmatch import fnmatch
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
)

from divzero.frontend import DivisionSite, analyze_configuration
from divzero.lattice import Sign
from divzero.transfer import BinaryOperator

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """cppcheck-compatible severity levels."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    PERFORMANCE = "performance"
    PORTABILITY = "portability"
    INFORMATION = "information"


class Confidence(Enum):
    """
    How certain we are that the diagnostic is a true positive.

    HIGH   — the divisor is zero on every execution reaching the site
    MEDIUM — the analysis cannot rule out a zero divisor
    LOW    — heuristic / pattern-based, may be false positive
    """
    HIGH = auto()
    MEDIUM = auto()
    LOW = auto()


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Designed for direct serialization to cppcheck's JSON addon protocol.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "divByZero")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    confidence   : Confidence level
    cwe          : CWE identifier (0 = none)
    checker_name : Name of the checker that produced this
    addon        : Addon name for cppcheck protocol
    extra        : Additional context string
    evidence     : Machine-readable evidence dict for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    confidence: Confidence = Confidence.MEDIUM
    cwe: int = 0
    checker_name: str = ""
    addon: str = "divzero"
    extra: str = ""
    evidence: Dict[str, Any] = field(default_factory=dict)

    def to_cppcheck_json(self) -> Dict[str, Any]:
        """Serialize to cppcheck's JSON addon output format."""
        result: Dict[str, Any] = {
            "file": self.location.file,
            "linenr": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "addon": self.addon,
            "errorId": self.error_id,
            "extra": self.extra,
        }
        if self.cwe:
            result["cwe"] = self.cwe
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string for cppcheck addon stdout."""
        return json.dumps(self.to_cppcheck_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments:  ``// cppcheck-suppress errorId``
      2. File-level suppressions (passed programmatically)
      3. Global suppressions (command-line or config)

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(cfg)
    >>> sm.add_file_suppression("divByZeroPossible", "legacy/*.c")
    >>> sm.add_global_suppression("divByZeroPossible")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # {(file, line)} → set of error_ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern → set of error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        # globally suppressed error_ids
        self._global: Set[str] = set()

    def load_inline_suppressions(self, cfg: Any) -> None:
        """
        Read the suppressions cppcheck parsed into the dump.

        Entries with a file and line are inline, entries with only a file
        are file-level, and the rest are global.
        """
        for supp in getattr(cfg, "suppressions", None) or []:
            error_id = getattr(supp, "errorId", None)
            file = getattr(supp, "fileName", "") or ""
            line = getattr(supp, "lineNumber", 0) or 0
            if not error_id:
                continue
            if file and line:
                self._inline[(file, int(line))].add(error_id)
            elif file:
                self._file_level[file].add(error_id)
            else:
                self._global.add(error_id)

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        eid = diag.error_id

        if eid in self._global or "*" in self._global:
            return True

        loc = diag.location

        # Inline (exact line match, or line-1 for preceding-line suppress)
        for line_offset in (0, 1):
            key = (loc.file, loc.line - line_offset)
            suppressed_ids = self._inline.get(key, set())
            if eid in suppressed_ids or "*" in suppressed_ids:
                return True

        for pattern, ids in self._file_level.items():
            if eid in ids or "*" in ids:
                if pattern == loc.file or loc.file.endswith(pattern):
                    return True
                if fnmatch(loc.file, pattern):
                    return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers.

    Lifecycle
    ─────────
      1. ``configure(ctx)``        — receive context, read options
      2. ``collect_evidence(ctx)``  — run or consume analyses
      3. ``diagnose(ctx)``          — correlate evidence into diagnostics
      4. ``report(ctx)``            — yield final diagnostics

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING
    cwe_ids: ClassVar[Dict[str, int]] = {}  # error_id → CWE number

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """
        Called before evidence collection.

        Override to read options.  Default implementation does nothing.
        """
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        """Run analyses and gather evidence."""
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """
        Correlate evidence into Diagnostic objects.

        Append diagnostics to ``self._diagnostics``.
        """
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        file: str,
        line: int,
        column: int = 0,
        severity: Optional[DiagnosticSeverity] = None,
        confidence: Confidence = Confidence.MEDIUM,
        extra: str = "",
        evidence: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Helper to create and store a diagnostic."""
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.default_severity,
            location=SourceLocation(file=file, line=line, column=column),
            confidence=confidence,
            cwe=self.cwe_ids.get(error_id, 0),
            checker_name=self.name,
            extra=extra,
            evidence=evidence or {},
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    cfg          : cppcheckdata.Configuration
    suppressions : SuppressionManager
    analyses     : dict of pre-computed analysis results (keyed by name)
    options      : user-provided options dict
    stats        : mutable dict for timing / counting statistics
    """
    cfg: Any  # cppcheckdata.Configuration
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    analyses: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)

    def get_analysis(self, name: str) -> Any:
        """Retrieve a pre-computed analysis result by name."""
        return self.analyses.get(name)

    def set_analysis(self, name: str, result: Any) -> None:
        """Store an analysis result for sharing between checkers."""
        self.analyses[name] = result

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(DivByZeroChecker)
    >>> checkers = registry.get_all()
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}

    def register(self, checker_cls: Type[Checker]) -> None:
        """Register a checker class."""
        self._checkers[checker_cls.name] = checker_cls

    def get_all(self) -> List[Type[Checker]]:
        """Return all registered checker classes."""
        return list(self._checkers.values())

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — UTILITY HELPERS FOR TOKEN TRAVERSAL
# ═════════════════════════════════════════════════════════════════════════

def _tok_file(tok: Any) -> str:
    return getattr(tok, "file", "") or ""


def _tok_line(tok: Any) -> int:
    return getattr(tok, "linenr", 0) or 0


def _tok_col(tok: Any) -> int:
    return getattr(tok, "column", 0) or 0


def _expr_text(tok: Any) -> str:
    """Best-effort source text of the expression rooted at *tok*."""
    if tok is None:
        return ""
    op1 = getattr(tok, "astOperand1", None)
    op2 = getattr(tok, "astOperand2", None)
    s = getattr(tok, "str", "") or ""
    if op1 is None and op2 is None:
        return s
    if op2 is None:
        return f"{s}{_expr_text(op1)}"
    return f"{_expr_text(op1)} {s} {_expr_text(op2)}"


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 — DIVISION BY ZERO CHECKER (CWE-369)
# ═════════════════════════════════════════════════════════════════════════

def may_be_zero(sign: Sign) -> bool:
    """Should a division with a divisor of this sign be reported?

    Only ``0`` and ``⊤`` admit a zero divisor.  ``NonZero``, ``-`` and
    ``+`` exclude it, and ``⊥`` means the site is unreachable.
    """
    return sign in (Sign.ZERO, Sign.TOP)


class DivByZeroChecker(Checker):
    """
    Detects integer division or remainder by zero.

    Runs the sign analysis over every function of the configuration and
    inspects the divisor fact of each integral ``/``, ``%``, ``/=`` and
    ``%=`` that is reachable at the fixpoint.  A divisor known to be ``0``
    is an error; an unknown divisor is a warning.

    Options
    -------
    max_iterations  : solver safety bound per function (default 100000)
    report_possible : emit ``divByZeroPossible`` warnings (default True)

    CWE-369: Divide By Zero
    """

    name: ClassVar[str] = "div-by-zero"
    description: ClassVar[str] = "Division/modulo by zero detection"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({
        "divByZero", "divByZeroPossible",
    })
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.ERROR
    cwe_ids: ClassVar[Dict[str, int]] = {
        "divByZero": 369,
        "divByZeroPossible": 369,
    }

    def __init__(self) -> None:
        super().__init__()
        self._sites: List[DivisionSite] = []
        self._max_iterations: int = 100_000
        self._report_possible: bool = True

    def configure(self, ctx: CheckerContext) -> None:
        self._max_iterations = int(
            ctx.get_option("max_iterations", self._max_iterations))
        self._report_possible = bool(
            ctx.get_option("report_possible", self._report_possible))

    def collect_evidence(self, ctx: CheckerContext) -> None:
        analyses = ctx.get_analysis("sign")
        if analyses is None:
            analyses = analyze_configuration(
                ctx.cfg, max_iterations=self._max_iterations)
            ctx.set_analysis("sign", analyses)

        for func, analysis in analyses.items():
            sites = analysis.division_sites()
            logger.debug(
                "%s: %d division sites",
                getattr(func, "name", "?"), len(sites),
            )
            for site in sites:
                if site.integral and may_be_zero(site.divisor):
                    self._sites.append(site)
        ctx.stats["div-by-zero_sites"] = len(self._sites)

    def diagnose(self, ctx: CheckerContext) -> None:
        seen: Set[Tuple[str, int, int]] = set()
        for site in self._sites:
            tok = site.token
            file, line, column = _tok_file(tok), _tok_line(tok), _tok_col(tok)
            key = (file, line, column)
            if key in seen:
                continue
            seen.add(key)

            definite = site.divisor is Sign.ZERO
            if not definite and not self._report_possible:
                continue
            what = "Division" if site.operator is BinaryOperator.DIVIDE else "Modulo"
            divisor = _expr_text(getattr(tok, "astOperand2", None))
            if definite:
                message = f"{what} by zero: '{divisor}' is zero"
            else:
                message = f"Possible {what.lower()} by zero: '{divisor}' may be zero"
            self._emit(
                error_id="divByZero" if definite else "divByZeroPossible",
                message=message,
                file=file, line=line, column=column,
                severity=(
                    DiagnosticSeverity.ERROR if definite
                    else DiagnosticSeverity.WARNING
                ),
                confidence=Confidence.HIGH if definite else Confidence.MEDIUM,
                evidence={
                    "operator": site.operator.value + ("=" if site.compound else ""),
                    "dividend": str(site.dividend),
                    "divisor": str(site.divisor),
                },
            )


# ═════════════════════════════════════════════════════════════════════════
#  PART 7 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

# Default registry with all built-in checkers
_DEFAULT_REGISTRY = CheckerRegistry()
_DEFAULT_REGISTRY.register(DivByZeroChecker)


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics         : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats               : Timing and counting statistics
    checker_names       : Names of checkers that were run
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def to_gcc_format(self) -> str:
        """Format all diagnostics in GCC-style."""
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checker run complete: {self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against a cppcheck Configuration.

    Usage
    -----
    >>> runner = CheckerRunner()
    >>> results = runner.run(cfg)
    >>> print(results.summary())

    >>> # Output for cppcheck addon protocol:
    >>> for diag in results.diagnostics:
    ...     sys.stdout.write(diag.to_json_str() + '\\n')

    Parameters for constructor
    ─────────────────────────
    registry    : CheckerRegistry — source of checker classes
    suppressions: SuppressionManager — pre-loaded suppression rules
    options     : dict — per-checker configuration
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.registry = registry or _DEFAULT_REGISTRY
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}

    def run(
        self,
        cfg: Any,
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Run checkers against a single Configuration.

        Parameters
        ----------
        cfg      : cppcheckdata.Configuration
        checkers : list of checker names to run (None = all enabled)

        Returns
        -------
        CheckerRunResults
        """
        results = CheckerRunResults()

        self.suppressions.load_inline_suppressions(cfg)

        ctx = CheckerContext(
            cfg=cfg,
            suppressions=self.suppressions,
            options=self.options,
        )

        if checkers is not None:
            checker_classes: List[Type[Checker]] = []
            for name in checkers:
                cls = self.registry.get_by_name(name)
                if cls is not None:
                    checker_classes.append(cls)
                else:
                    logger.warning("Unknown checker %r ignored", name)
        else:
            checker_classes = self.registry.get_all()

        for cls in checker_classes:
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                logger.exception("Checker %r failed", checker_name)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        return results

    def run_all_configurations(
        self,
        data: Any,
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Run checkers across all configurations in a CppcheckData dump.

        Parameters
        ----------
        data     : cppcheckdata.CppcheckData (result of parsedump())
        checkers : list of checker names (None = all enabled)
        """
        combined = CheckerRunResults()
        for cfg in getattr(data, "configurations", []):
            partial = self.run(cfg, checkers=checkers)
            combined.diagnostics.extend(partial.diagnostics)
            for name, diags in partial.diagnostics_by_checker.items():
                combined.diagnostics_by_checker[name].extend(diags)
            for key, val in partial.stats.items():
                if key in combined.stats:
                    combined.stats[key] += val
                else:
                    combined.stats[key] = val
            for name in partial.checker_names:
                if name not in combined.checker_names:
                    combined.checker_names.append(name)
        return combined


# ═════════════════════════════════════════════════════════════════════════
#  PART 8 — CONVENIENCE ENTRY POINT FOR CPPCHECK ADDONS
# ═════════════════════════════════════════════════════════════════════════

def run_addon(
    dump_file: str,
    checkers: Optional[Sequence[str]] = None,
    output: str = "json",
    suppress: Optional[Sequence[str]] = None,
    options: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Run the checker suite as a cppcheck addon entry point.

    Parameters
    ----------
    dump_file : Path to the .dump file from ``cppcheck --dump``
    checkers  : Checker names to run (None = all)
    output    : "json" for cppcheck protocol, "gcc" for GCC-style,
                "summary" for counts
    suppress  : Error IDs to globally suppress
    options   : Checker options (see :class:`DivByZeroChecker`)

    Returns
    -------
    Exit code (0 = no errors, 1 = errors found, 2 = cppcheckdata missing)

    Usage from command line or cppcheck addon config::

        python -m divzero my_file.c.dump
    """
    try:
        from cppcheckdata import parsedump  # type: ignore[import-untyped]
    except ImportError:
        sys.stderr.write("ERROR: cppcheckdata module not found\n")
        return 2

    data = parsedump(dump_file)

    sm = SuppressionManager()
    for eid in suppress or ():
        sm.add_global_suppression(eid)

    runner = CheckerRunner(suppressions=sm, options=options)
    results = runner.run_all_configurations(data, checkers=checkers)

    if output == "json":
        for diag in results.diagnostics:
            sys.stdout.write(diag.to_json_str() + "\n")
    elif output == "gcc":
        for diag in results.diagnostics:
            sys.stdout.write(diag.to_gcc_format() + "\n")
    else:
        sys.stdout.write(results.summary() + "\n")

    return 1 if results.error_count > 0 else 0


# ═════════════════════════════════════════════════════════════════════════
#  PART 9 — MODULE MAIN (addon entry point)
# ═════════════════════════════════════════════════════════════════════════

def _configure_logging(verbose: bool) -> None:
    """Set up the ``divzero`` logger: DEBUG when *verbose*, else WARNING."""
    root = logging.getLogger("divzero")
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)


def _list_checkers(registry: CheckerRegistry) -> None:
    for name in registry.names:
        cls = registry.get_by_name(name)
        if cls is None:
            continue
        ids = ", ".join(sorted(cls.error_ids))
        cwes = ", ".join(f"CWE-{v}" for v in sorted(set(cls.cwe_ids.values())))
        print(f"  {name:25s} {cls.description}")
        print(f"  {'':25s} IDs: {ids}")
        print(f"  {'':25s} CWEs: {cwes}")
        print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sign-based division-by-zero checker for Cppcheck dumps",
        prog="divzero",
    )
    parser.add_argument("dump_file", nargs="?", help="Path to .dump file")
    parser.add_argument(
        "--checkers", nargs="*", default=None,
        help="Checker names to run (default: all)",
    )
    parser.add_argument(
        "--output", choices=["json", "gcc", "summary"],
        default="json", help="Output format",
    )
    parser.add_argument(
        "--suppress", nargs="*", default=None,
        help="Error IDs to suppress",
    )
    parser.add_argument(
        "--no-possible", action="store_true",
        help="Only report divisors known to be zero",
    )
    parser.add_argument(
        "--max-iterations", type=int, default=100_000,
        help="Fixpoint iteration bound per function",
    )
    parser.add_argument(
        "--list-checkers", action="store_true",
        help="List available checkers and exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log analysis progress to stderr",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for ``divzero`` / ``python -m divzero``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.list_checkers:
        _list_checkers(_DEFAULT_REGISTRY)
        return 0
    if not args.dump_file:
        parser.error("the following arguments are required: dump_file")

    return run_addon(
        dump_file=args.dump_file,
        checkers=args.checkers,
        output=args.output,
        suppress=args.suppress,
        options={
            "max_iterations": args.max_iterations,
            "report_possible": not args.no_possible,
        },
    )


# ═════════════════════════════════════════════════════════════════════════
#  PART 10 — PUBLIC API
# ═════════════════════════════════════════════════════════════════════════

__all__ = [
    # Diagnostic model
    "Diagnostic",
    "DiagnosticSeverity",
    "Confidence",
    "SourceLocation",
    # Suppression
    "SuppressionManager",
    # Checker framework
    "Checker",
    "CheckerContext",
    "CheckerRegistry",
    # Production checkers
    "DivByZeroChecker",
    "may_be_zero",
    # Runner
    "CheckerRunner",
    "CheckerRunResults",
    # Entry points
    "run_addon",
    "main",
]
