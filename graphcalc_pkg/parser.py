"""Input parsing and preprocessing module.

This module handles:
- Input sanitization and validation
- Expression preprocessing (unicode symbols, exponents, implicit multiplication)
- SymPy expression parsing with security validation
- Number formatting for output
- Balancing checks for parentheses/brackets
"""

from __future__ import annotations

import math
import re
from functools import lru_cache
from tokenize import TokenError
from typing import Any

import sympy as sp
from sympy import parse_expr

from . import config
from .config import (
    ALLOWED_SYMPY_NAMES,
    CACHE_SIZE_PARSE,
    DIGIT_LETTERS_REGEX,
    MAX_EXPONENT,
    MAX_EXPRESSION_DEPTH,
    MAX_EXPRESSION_NODES,
    MAX_INPUT_LENGTH,
    SQRT_UNICODE_REGEX,
    TRANSFORMATIONS,
    X,
)
from .logging_config import get_logger
from .types import ParseError, ValidationError

logger = get_logger("parser")

# Basic denylist to avoid dangerous tokens before SymPy parsing
FORBIDDEN_TOKENS = (
    "__",
    "import",
    "lambda",
    "eval",
    "exec",
    "open",
    "os.",
    "sys.",
    "subprocess",
    "builtins",
    "getattr",
    "setattr",
    "delattr",
    "compile",
    "globals",
    "locals",
)

_SUPERSCRIPT_MAP = {
    "⁰": "0",
    "¹": "1",
    "²": "2",
    "³": "3",
    "⁴": "4",
    "⁵": "5",
    "⁶": "6",
    "⁷": "7",
    "⁸": "8",
    "⁹": "9",
    "⁻": "-",
}
_SUPERSCRIPT_RE = re.compile(f"([{''.join(_SUPERSCRIPT_MAP)}]+)")


def format_number(val: Any, precision: int | None = None) -> str:
    """Format a numeric value with specified precision.

    Args:
        val: Numeric value to format
        precision: Number of significant digits (default: config.OUTPUT_PRECISION)

    Returns:
        Formatted string representation of the number
    """
    if precision is None:
        precision = config.OUTPUT_PRECISION
    try:
        fmt = "{:." + str(int(precision)) + "g}"
        return fmt.format(float(val))
    except (ValueError, TypeError, OverflowError):
        return str(val)


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses/brackets are balanced. Returns (is_balanced, error_position)."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack: list[tuple[str, int]] = []  # (char, position)
    for i, char in enumerate(input_str):
        if char in pairs:
            stack.append((char, i))
        elif char in pairs.values():
            if not stack:
                return False, i
            opening, pos = stack.pop()
            if pairs[opening] != char:
                return False, i
    if stack:
        return False, stack[0][1]  # Return position of first unmatched
    return True, None


_ALLOWED_FUNCTION_NAMES = frozenset(
    name
    for name in (getattr(f, "__name__", None) for f in ALLOWED_SYMPY_NAMES.values())
    if name
)


def _validate_expression_tree(
    expr: Any, depth: int = 0, node_count: list[int] | None = None
) -> None:
    """Validate expression tree structure - reject dangerous or oversized trees."""
    if node_count is None:
        node_count = [0]
    node_count[0] += 1
    if node_count[0] > MAX_EXPRESSION_NODES:
        raise ValidationError(
            f"Expression too complex (>{MAX_EXPRESSION_NODES} nodes)", "TOO_COMPLEX"
        )
    if depth > MAX_EXPRESSION_DEPTH:
        raise ValidationError(
            f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)", "TOO_DEEP"
        )

    if isinstance(expr, (sp.Symbol, sp.Number, sp.NumberSymbol)):
        return
    if expr is sp.S.ComplexInfinity:
        return
    if not isinstance(expr, sp.Basic):
        raise ValidationError(
            f"Expression type '{type(expr).__name__}' not allowed", "FORBIDDEN_TYPE"
        )
    if not isinstance(expr, (sp.Add, sp.Mul, sp.Pow)):
        # parse_expr globals expose all of SymPy, e.g. Integral
        func_name = getattr(expr.func, "__name__", str(expr.func))
        if func_name not in _ALLOWED_FUNCTION_NAMES:
            logger.warning(
                "Blocked forbidden function", extra={"forbidden_function": func_name}
            )
            raise ValidationError(
                f"Function '{func_name}' not allowed", "FORBIDDEN_FUNCTION"
            )
    for arg in expr.args:
        _validate_expression_tree(arg, depth + 1, node_count)
    # Children first, so every constant measured here is already bounded
    if isinstance(expr, sp.Pow):
        _validate_power(expr)


def _constant_log10(value: sp.Expr) -> float:
    """log10 of |value| for a constant subtree; NaN when it has no finite nonzero size."""
    try:
        magnitude = abs(value.evalf())
        if not magnitude.is_Number or magnitude.is_zero or not magnitude.is_finite:
            return math.nan
        return float(sp.log(magnitude, 10).evalf())
    except (TypeError, ValueError, ArithmeticError):
        return math.nan


def _validate_power(expr: sp.Pow) -> None:
    """Reject constant powers too large to evaluate exactly, e.g. 10^10^10."""
    base, exponent = expr.args
    if exponent.free_symbols:
        return
    exponent_log = _constant_log10(exponent)
    # slack absorbs rounding in the logs, so 2^1000 is still accepted
    if exponent_log > math.log10(MAX_EXPONENT) + 1e-9:
        raise ValidationError(
            f"Exponent too large (>{MAX_EXPONENT})", "TOO_LARGE"
        )
    if base.free_symbols:
        return
    digits = abs(_constant_log10(base)) * 10**exponent_log
    if digits > MAX_EXPONENT + 1e-6:
        raise ValidationError(
            f"Power too large (>{MAX_EXPONENT} digits)", "TOO_LARGE"
        )


def preprocess(input_str: str) -> str:
    """Preprocess input string for parsing.

    Applies transformations:
    - Validates input length and forbidden tokens
    - Standardizes mathematical symbols (unicode variants to ASCII)
    - Converts exponents (^ to **, superscripts to **)
    - Converts Unicode square root (√) to sqrt(
    - Inserts implicit multiplication (2x -> 2*x)
    - Validates balanced parentheses/brackets

    Args:
        input_str: Raw equation text, e.g. "x^2 / 10"

    Returns:
        Preprocessed and sanitized string ready for SymPy parsing

    Raises:
        ValidationError: If input is empty, too long, contains forbidden tokens,
                        or has unbalanced parentheses/brackets
    """
    input_str = input_str.strip() if input_str else ""
    if not input_str:
        raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
    if len(input_str) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )

    lowered = input_str.lower()
    for tok in FORBIDDEN_TOKENS:
        if tok in lowered:
            logger.warning(
                "Blocked input containing forbidden token",
                extra={"forbidden_token": tok, "input_length": len(input_str)},
            )
            raise ValidationError(
                f"Input contains forbidden token: {tok}", "FORBIDDEN_TOKEN"
            )

    processed_str = input_str.replace("−", "-").replace("–", "-")
    processed_str = processed_str.replace("π", "pi")
    processed_str = processed_str.replace("×", "*").replace("·", "*")
    processed_str = processed_str.replace("÷", "/")
    processed_str = processed_str.replace("^", "**")
    processed_str = _SUPERSCRIPT_RE.sub(
        lambda m: "**" + "".join(_SUPERSCRIPT_MAP[c] for c in m.group(1)),
        processed_str,
    )
    processed_str = SQRT_UNICODE_REGEX.sub("sqrt(", processed_str)
    processed_str = DIGIT_LETTERS_REGEX.sub(r"\1*\2", processed_str)
    processed_str = re.sub(r"\s+", " ", processed_str).strip()

    balanced, error_pos = is_balanced(processed_str)
    if not balanced:
        raise ValidationError(
            f"Mismatched or unbalanced parentheses/brackets near position {error_pos}",
            "UNBALANCED_PARENS",
        )
    return processed_str


# SymPy evaluates some calls (Mod, floor, Max) while parsing, so arithmetic
# errors can surface here as well as syntax errors
_EVALUATION_ERRORS = (
    ZeroDivisionError,
    ValueError,
    OverflowError,
    RecursionError,
    TypeError,
    AttributeError,
    NotImplementedError,
)


def _check_expression(expr: Any, expr_str: str) -> None:
    if not isinstance(expr, sp.Expr):
        raise ParseError(
            f"'{expr_str}' is not a real-valued expression", "NOT_AN_EXPRESSION"
        )
    _validate_expression_tree(expr)


@lru_cache(maxsize=CACHE_SIZE_PARSE)
def parse_preprocessed(expr_str: str) -> sp.Expr:
    """Parse and validate a preprocessed expression string.

    The text is parsed unevaluated, checked, and only then evaluated, so an
    input like ``10**10**10`` is rejected before SymPy tries to compute it.

    Raises:
        ParseError: If SymPy cannot parse or evaluate the text, or it uses
            unknown symbols
        ValidationError: If the tree contains disallowed functions or is too large
    """
    try:
        expr = parse_expr(
            expr_str,
            local_dict=dict(ALLOWED_SYMPY_NAMES),
            transformations=TRANSFORMATIONS,
            evaluate=False,
        )
    except (SyntaxError, TokenError, TypeError, AttributeError) as e:
        raise ParseError(f"Could not parse '{expr_str}': {e}", "SYNTAX_ERROR")
    except _EVALUATION_ERRORS as e:
        raise ParseError(
            f"Could not evaluate '{expr_str}': {e}", "EVALUATION_FAILED"
        )
    _check_expression(expr, expr_str)

    # Only a validated tree is evaluated, so constant folding stays bounded
    try:
        expr = expr.doit()
    except _EVALUATION_ERRORS as e:
        raise ParseError(
            f"Could not evaluate '{expr_str}': {e}", "EVALUATION_FAILED"
        )
    _check_expression(expr, expr_str)

    unknown = sorted(str(s) for s in expr.free_symbols if s != X)
    if unknown:
        raise ParseError(
            f"Unknown symbol(s) {', '.join(unknown)}; only 'x' may vary",
            "UNKNOWN_SYMBOL",
        )
    return expr


def parse_expression(text: str) -> sp.Expr:
    """Preprocess and parse raw equation text in one step."""
    return parse_preprocessed(preprocess(text))
