"""Expression evaluator capability.

Every numeric algorithm in the package sees an equation only through this
module: text is preprocessed, parsed by SymPy, compiled with ``lambdify`` to
a plain-float callable, and memoized by its text. Domain errors raised while
evaluating (division by zero, log of a negative number, complex results,
overflow) collapse to NaN so that callers only ever see a float.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from functools import lru_cache

import sympy as sp

from .config import CACHE_SIZE_COMPILE, VARIABLE_NAME, X
from .logging_config import get_logger
from .parser import parse_expression, parse_preprocessed
from .types import EvaluationError, ParseError, ValidationError

logger = get_logger("evaluator")

# Errors that mean "this text is not a usable expression"
COMPILE_ERRORS = (ParseError, ValidationError)

# Errors a compiled function may raise for an x outside its real domain
_DOMAIN_ERRORS = (ZeroDivisionError, ValueError, OverflowError, TypeError)

# lambdify prints the tree as source; huge integers or deep trees fail there
_COMPILE_FAILURES = (ValueError, OverflowError, RecursionError, SyntaxError)


class CompiledExpression:
    """A parsed and compiled single-variable expression.

    Instances are immutable and hold no per-call state, so one instance can be
    shared between callers.
    """

    __slots__ = ("text", "expr", "_func")

    def __init__(self, text: str, expr: sp.Expr):
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "expr", expr)
        object.__setattr__(self, "_func", sp.lambdify(X, expr, modules="math"))

    def __setattr__(self, name, value):
        raise AttributeError("CompiledExpression is immutable")

    def __call__(self, x: float) -> float:
        try:
            return float(self._func(float(x)))
        except _DOMAIN_ERRORS:
            return math.nan

    def __repr__(self) -> str:
        return f"CompiledExpression({self.text!r})"


@lru_cache(maxsize=CACHE_SIZE_COMPILE)
def compile_expression(text: str) -> CompiledExpression:
    """Compile equation text into a callable ``f(x) -> float``.

    Raises:
        ParseError: If the text does not parse or cannot be compiled
        ValidationError: If the text is empty, too long, or uses disallowed names
    """
    expr = parse_expression(text)
    try:
        compiled = CompiledExpression(text, expr)
    except _COMPILE_FAILURES as e:
        raise ParseError(f"Could not compile '{text}': {e}", "COMPILE_FAILED")
    logger.debug(f"Compiled expression {text!r}")
    return compiled


def evaluate(expression: str, bindings: Mapping[str, float]) -> float:
    """Evaluate ``expression`` with ``x`` bound to ``bindings['x']``.

    Returns NaN for points outside the real domain. Raises the compile errors
    of :func:`compile_expression` when the text itself is unusable.
    """
    try:
        x = bindings[VARIABLE_NAME]
    except KeyError:
        raise EvaluationError(
            f"Missing binding for '{VARIABLE_NAME}'", "MISSING_BINDING"
        )
    return compile_expression(expression)(x)


def symbolic_derivative(expression: str, variable: str = VARIABLE_NAME) -> str:
    """Differentiate equation text symbolically and return the result as text.

    Raises:
        ParseError / ValidationError: If ``expression`` does not compile
        EvaluationError: If SymPy has no closed form for the derivative, or the
            closed form uses functions the evaluator cannot compile
    """
    expr = parse_expression(expression)
    var_sym = X if variable == VARIABLE_NAME else sp.Symbol(variable)
    try:
        derived = sp.diff(expr, var_sym)
        text = str(derived)
    except _COMPILE_FAILURES as e:
        raise EvaluationError(
            f"Could not differentiate '{expression}': {e}", "NOT_DIFFERENTIABLE"
        )
    if derived.has(sp.Derivative):
        raise EvaluationError(
            f"'{expression}' has no closed-form derivative", "NOT_DIFFERENTIABLE"
        )
    try:
        parse_preprocessed(text)
    except COMPILE_ERRORS as e:
        raise EvaluationError(
            f"Derivative of '{expression}' cannot be evaluated: {e}",
            "NOT_DIFFERENTIABLE",
        )
    return text


def safe_function(expression: str) -> Callable[[float], float] | None:
    """Return the compiled function for ``expression`` or None if it does not compile."""
    try:
        return compile_expression(expression)
    except COMPILE_ERRORS as e:
        logger.debug(f"Skipping unparsable expression {expression!r}: {e}")
        return None


def clear_caches() -> None:
    """Drop parse and compile caches. Results are identical before and after."""
    compile_expression.cache_clear()
    parse_preprocessed.cache_clear()


class SympyEvaluator:
    """Evaluator capability backed by SymPy.

    Analysis functions accept any object with the same three methods, which is
    how tests substitute a stub evaluator.
    """

    def compile(self, expression: str) -> Callable[[float], float]:
        return compile_expression(expression)

    def evaluate(self, expression: str, bindings: Mapping[str, float]) -> float:
        return evaluate(expression, bindings)

    def symbolic_derivative(self, expression: str, variable: str = VARIABLE_NAME) -> str:
        return symbolic_derivative(expression, variable)


DEFAULT_EVALUATOR = SympyEvaluator()
