"""
Restricted evaluator for custom tolerance formulas.

A formula is a boolean expression over the two names primaryColumnValue and
comparisonColumnValue, e.g. "(primaryColumnValue-comparisonColumnValue) <= 5".
Formulas are checked against a character allow-list, the names are replaced by
literals, and the result is evaluated by a small recursive-descent parser that
knows literals and operators only: no names, no calls, no attribute access.
"""
import json
import math
import re
from typing import List, NamedTuple, Optional, Union

from models import FormulaResult
from utils import format_number, parse_numeric

PRIMARY_VARIABLE = "primaryColumnValue"
COMPARISON_VARIABLE = "comparisonColumnValue"

_VARIABLE_RE = re.compile(f"{PRIMARY_VARIABLE}|{COMPARISON_VARIABLE}")
_DISALLOWED_RE = re.compile(r"[^0-9+\-*/%<>=!&|(),.]")

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<num>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<str>"(?:[^"\\]|\\.)*")
    |(?P<op>===|!==|==|!=|<=|>=|&&|\|\||[-+*/%<>!()])
    """,
    re.VERBOSE,
)

Value = Union[float, str, bool]


class FormulaError(ValueError):
    pass


class FormulaValidationError(FormulaError):
    pass


class FormulaEvaluationError(FormulaError):
    pass


def validate_custom_formula(formula: Optional[str]) -> None:
    """Raise FormulaValidationError unless the formula passes the allow-list."""
    if formula is None or not formula.strip():
        raise FormulaValidationError("Formula is empty")

    compact = re.sub(r"\s+", "", formula)
    residue = _VARIABLE_RE.sub("", compact)
    bad = sorted(set(_DISALLOWED_RE.findall(residue)))
    if bad:
        raise FormulaValidationError(f"Formula contains invalid characters: {' '.join(bad)}")

    if not _VARIABLE_RE.search(compact):
        raise FormulaValidationError(
            f"Formula must reference {PRIMARY_VARIABLE} or {COMPARISON_VARIABLE}"
        )

    depth = 0
    for ch in compact:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        raise FormulaValidationError("Formula has unbalanced parentheses")


def _literal(value: Optional[str]) -> str:
    parsed = parse_numeric(value)
    if parsed.is_numeric and math.isfinite(parsed.num):
        if parsed.num == int(parsed.num) and abs(parsed.num) < 1e15:
            return f"({int(parsed.num)})"
        return f"({parsed.num!r})"
    return json.dumps("" if value is None else str(value))


def substitute_variables(value1: Optional[str], value2: Optional[str], formula: str) -> str:
    literals = {PRIMARY_VARIABLE: _literal(value1), COMPARISON_VARIABLE: _literal(value2)}
    return _VARIABLE_RE.sub(lambda m: literals[m.group(0)], formula)


def evaluate_custom_formula(value1: Optional[str], value2: Optional[str], formula: str) -> FormulaResult:
    validate_custom_formula(formula)
    evaluated = substitute_variables(value1, value2, formula)
    result = evaluate_expression(evaluated)
    return FormulaResult(result=_truthy(result), evaluated_formula=evaluated)


def evaluate_expression(expression: str) -> Value:
    try:
        return _Parser(_tokenize(expression)).parse()
    except RecursionError:
        raise FormulaEvaluationError("Formula is nested too deeply") from None


# --- tokenizer / parser -----------------------------------------------------

class _Token(NamedTuple):
    kind: str
    text: str
    pos: int


def _tokenize(expression: str) -> List[_Token]:
    tokens = []
    pos = 0
    while pos < len(expression):
        m = _TOKEN_RE.match(expression, pos)
        if not m:
            raise FormulaEvaluationError(f"Unexpected character {expression[pos]!r} at position {pos}")
        kind = m.lastgroup
        if kind != "ws":
            tokens.append(_Token(kind, m.group(0), pos))
        pos = m.end()
    return tokens


class _Parser:
    """Operator precedence follows the usual C-family ordering:
    || < && < equality < relational < additive < multiplicative < unary."""

    def __init__(self, tokens: List[_Token]):
        self.tokens = tokens
        self.i = 0

    def parse(self) -> Value:
        if not self.tokens:
            raise FormulaEvaluationError("Formula is empty")
        value = self._or()
        if self.i < len(self.tokens):
            tok = self.tokens[self.i]
            raise FormulaEvaluationError(f"Unexpected token {tok.text!r} at position {tok.pos}")
        return value

    def _peek(self) -> Optional[str]:
        if self.i < len(self.tokens) and self.tokens[self.i].kind == "op":
            return self.tokens[self.i].text
        return None

    def _take(self, *ops: str) -> Optional[str]:
        op = self._peek()
        if op in ops:
            self.i += 1
            return op
        return None

    def _or(self) -> Value:
        left = self._and()
        while self._take("||"):
            right = self._and()
            left = left if _truthy(left) else right
        return left

    def _and(self) -> Value:
        left = self._equality()
        while self._take("&&"):
            right = self._equality()
            left = right if _truthy(left) else left
        return left

    def _equality(self) -> Value:
        left = self._relational()
        while True:
            op = self._take("==", "!=", "===", "!==")
            if op is None:
                return left
            right = self._relational()
            if op in ("===", "!=="):
                equal = type(left) is type(right) and _loose_equal(left, right)
            else:
                equal = _loose_equal(left, right)
            left = equal if op in ("==", "===") else not equal

    def _relational(self) -> Value:
        left = self._additive()
        while True:
            op = self._take("<=", ">=", "<", ">")
            if op is None:
                return left
            left = _compare(op, left, self._additive())

    def _additive(self) -> Value:
        left = self._multiplicative()
        while True:
            op = self._take("+", "-")
            if op is None:
                return left
            right = self._multiplicative()
            if op == "+" and (isinstance(left, str) or isinstance(right, str)):
                left = _to_string(left) + _to_string(right)
            elif op == "+":
                left = _to_number(left) + _to_number(right)
            else:
                left = _to_number(left) - _to_number(right)

    def _multiplicative(self) -> Value:
        left = self._unary()
        while True:
            op = self._take("*", "/", "%")
            if op is None:
                return left
            a, b = _to_number(left), _to_number(self._unary())
            if op == "*":
                left = a * b
            elif op == "/":
                left = _divide(a, b)
            else:
                left = _remainder(a, b)

    def _unary(self) -> Value:
        op = self._take("!", "-", "+")
        if op == "!":
            return not _truthy(self._unary())
        if op == "-":
            return -_to_number(self._unary())
        if op == "+":
            return _to_number(self._unary())
        return self._primary()

    def _primary(self) -> Value:
        if self.i >= len(self.tokens):
            raise FormulaEvaluationError("Unexpected end of formula")
        tok = self.tokens[self.i]
        self.i += 1
        if tok.kind == "num":
            return float(tok.text)
        if tok.kind == "str":
            return json.loads(tok.text)
        if tok.text == "(":
            value = self._or()
            if not self._take(")"):
                raise FormulaEvaluationError(f"Missing ')' for '(' at position {tok.pos}")
            return value
        raise FormulaEvaluationError(f"Unexpected token {tok.text!r} at position {tok.pos}")


# --- value semantics ----------------------------------------------------------

def _to_number(value: Value) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        if value.strip() == "":
            return 0.0
        parsed = parse_numeric(value)
        return parsed.num if parsed.is_numeric else math.nan
    return value


def _to_string(value: Value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return format_number(value)


def _truthy(value: Value) -> bool:
    if isinstance(value, str):
        return value != ""
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _loose_equal(left: Value, right: Value) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return _to_number(left) == _to_number(right)


def _compare(op: str, left: Value, right: Value) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = _to_number(left), _to_number(right)
        if math.isnan(a) or math.isnan(b):
            return False
    if op == "<":
        return a < b
    if op == ">":
        return a > b
    if op == "<=":
        return a <= b
    return a >= b


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _remainder(a: float, b: float) -> float:
    if b == 0 or math.isnan(a) or math.isnan(b) or math.isinf(a):
        return math.nan
    return math.fmod(a, b)
