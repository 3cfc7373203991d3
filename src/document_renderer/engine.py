"""
Template engine for document bodies.

Templates are Jinja2 source rendered in a sandbox. The supported surface is:

* interpolation through dotted paths, e.g. ``{{ host.environment }}``;
  missing paths render as empty text
* conditional blocks, ``{% if ... %}...{% elif ... %}...{% else %}...{% endif %}``
* comparison and logic helpers usable inside conditionals:
  ``eq``, ``ne``, ``gt``, ``lt``, ``gte``, ``lte``, ``and_``, ``or_``, ``not_``
  and ``if_cond(a, "<=", b)``; Jinja's own ``==``, ``and``, ``or``, ``not``
  work as well
* filters ``format_date``, ``format_duration``, ``capitalize``, ``upper``,
  ``lower`` and ``json``
"""

import json
import operator
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from jinja2 import ChainableUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from entity_store.errors import DocgenError
from entity_store.formatting import format_duration, format_long_date


class TemplateCompileError(DocgenError):
    """A template failed to parse or render."""

    status_code = 422
    error = "Template error"


def _numeric_pair(a: Any, b: Any):
    try:
        return float(a), float(b)
    except (TypeError, ValueError):
        return a, b


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def helper(a: Any, b: Any) -> bool:
        left, right = _numeric_pair(a, b)
        try:
            return bool(op(left, right))
        except TypeError:
            return False
    helper.__name__ = op.__name__
    return helper


def eq(a: Any, b: Any) -> bool:
    return a == b


def ne(a: Any, b: Any) -> bool:
    return a != b


def and_(*values: Any) -> bool:
    return all(values)


def or_(*values: Any) -> bool:
    return any(values)


def not_(value: Any) -> bool:
    return not value


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda a, b: a == b,
    "===": lambda a, b: a == b and type(a) is type(b),
    "!=": lambda a, b: a != b,
    "!==": lambda a, b: not (a == b and type(a) is type(b)),
    "<": _compare(operator.lt),
    "<=": _compare(operator.le),
    ">": _compare(operator.gt),
    ">=": _compare(operator.ge),
    "&&": lambda a, b: bool(a and b),
    "||": lambda a, b: bool(a or b),
}


def if_cond(left: Any, op: str, right: Any) -> bool:
    """Binary comparison by operator name; unknown operators are false."""
    func = _OPERATORS.get(op)
    return func(left, right) if func else False


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def format_date(value: Any, fmt: Optional[str] = None) -> str:
    """Format a datetime, ISO string or epoch seconds; strftime ``fmt`` optional."""
    moment = _to_datetime(value)
    if moment is None:
        return "" if value is None else str(value)
    if fmt:
        return moment.strftime(fmt)
    return format_long_date(moment)


def capitalize(value: Any) -> str:
    text = "" if value is None else str(value)
    return text[:1].upper() + text[1:]


def upper(value: Any) -> str:
    return "" if value is None else str(value).upper()


def lower(value: Any) -> str:
    return "" if value is None else str(value).lower()


def to_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


HELPERS: Dict[str, Callable[..., Any]] = {
    "eq": eq,
    "ne": ne,
    "gt": _compare(operator.gt),
    "lt": _compare(operator.lt),
    "gte": _compare(operator.ge),
    "lte": _compare(operator.le),
    "and_": and_,
    "or_": or_,
    "not_": not_,
    "if_cond": if_cond,
}

FILTERS: Dict[str, Callable[..., Any]] = {
    "format_date": format_date,
    "format_duration": format_duration,
    "capitalize": capitalize,
    "upper": upper,
    "lower": lower,
    "json": to_json,
}


class TemplateEngine:
    """Compile and render document templates."""

    def __init__(self):
        self.env = SandboxedEnvironment(
            undefined=ChainableUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self.env.globals.update(HELPERS)
        self.env.filters.update(FILTERS)

    def compile(self, source: str):
        try:
            return self.env.from_string(source)
        except TemplateError as e:
            raise TemplateCompileError(self._describe(e))

    def render(self, source: str, context: Dict[str, Any]) -> str:
        """Render ``source`` against ``context``.

        Raises:
            TemplateCompileError: Syntax errors and failures during rendering.
        """
        template = self.compile(source)
        try:
            return template.render(context)
        except TemplateError as e:
            raise TemplateCompileError(self._describe(e))
        except (TypeError, ValueError, ArithmeticError, LookupError) as e:
            raise TemplateCompileError(f"{type(e).__name__}: {e}")

    @staticmethod
    def _describe(error: TemplateError) -> str:
        lineno = getattr(error, "lineno", None)
        message = error.message or type(error).__name__
        if lineno:
            return f"{message} (line {lineno})"
        return message
