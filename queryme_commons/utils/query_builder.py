import math
from datetime import date
from typing import Optional, Sequence, Union

from queryme_commons.constants.app_constants import AppConstants
from queryme_commons.utils.datetime_utils import to_utc_iso
from queryme_commons.utils.escape_utils import escape_string

"""
================================================================================
QueryMe Expression Builder – Usage Guide
================================================================================
Builds filter predicates and sort specifications as compact, URL-safe strings
for the `f` (filter) and `s` (sort) query-string parameters.

    from queryme_commons.utils.query_builder import QueryBuilder as QM

    f = QM.and_(QM.not_(QM.eq("type", [QM.string("foo"), QM.string("bar")])),
                QM.fts("text", "belgian chocolate"))
    # and(not(eq(type,$foo,$bar)),fts(text,$belgian%20chocolate))

    s = QM.sort(QM.order("rooms", False), QM.order("price"))
    # !roomsprice

Every method returns a plain string token. Literal constructors map None to
`null`; combinators accept either a single list/tuple or separate arguments.
No argument is validated: callers pass literal tokens where values are expected.
================================================================================
"""

Token = str

NULL: Token = AppConstants.NULL


def _collect(items: tuple) -> list:
    # a single list/tuple argument is the same as passing its items separately
    if len(items) == 1 and isinstance(items[0], (list, tuple)):
        return list(items[0])
    return list(items)


def _call(operator: str, *args: str) -> Token:
    return operator + '(' + AppConstants.ARG_SEPARATOR.join(args) + ')'


class QueryBuilder:
    """
    Constructors for predicate, literal and sort tokens.
    """

    null: Token = NULL

    # -------------------------
    # literals
    # -------------------------
    @staticmethod
    def boolean(value: Optional[bool]) -> Token:
        if value is None:
            return NULL
        return AppConstants.TRUE if value else AppConstants.FALSE

    @staticmethod
    def number(value: Optional[Union[int, float]]) -> Token:
        if value is None:
            return NULL
        if isinstance(value, bool):
            return QueryBuilder.boolean(value)
        if isinstance(value, float):
            if math.isnan(value):
                return 'NaN'
            if math.isinf(value):
                return 'Infinity' if value > 0 else '-Infinity'
            # integral floats print without a fraction, e.g. 10.0 -> 10
            if value.is_integer() and abs(value) < 1e21:
                return str(int(value))
            return repr(value)
        return str(value)

    @staticmethod
    def string(value: Optional[str]) -> Token:
        if value is None:
            return NULL
        return AppConstants.STRING_SIGIL + escape_string(value)

    @staticmethod
    def date(value: Optional[date]) -> Token:
        if value is None:
            return NULL
        return to_utc_iso(value)

    # -------------------------
    # predicates
    # -------------------------
    @staticmethod
    def eq(field: str, *values: Union[Token, Sequence[Token]]) -> Token:
        return _call(AppConstants.EQ, escape_string(field), *_collect(values))

    @staticmethod
    def lt(field: str, value: Token) -> Token:
        return _call(AppConstants.LT, escape_string(field), value)

    @staticmethod
    def le(field: str, value: Token) -> Token:
        return _call(AppConstants.LE, escape_string(field), value)

    @staticmethod
    def gt(field: str, value: Token) -> Token:
        return _call(AppConstants.GT, escape_string(field), value)

    @staticmethod
    def ge(field: str, value: Token) -> Token:
        return _call(AppConstants.GE, escape_string(field), value)

    @staticmethod
    def fts(field: str, text: str) -> Token:
        return _call(AppConstants.FTS, escape_string(field), QueryBuilder.string(text))

    @staticmethod
    def not_(predicate: Token) -> Token:
        return _call(AppConstants.NOT, predicate)

    @staticmethod
    def and_(*predicates: Union[Token, Sequence[Token]]) -> Token:
        return _call(AppConstants.AND, *_collect(predicates))

    @staticmethod
    def or_(*predicates: Union[Token, Sequence[Token]]) -> Token:
        return _call(AppConstants.OR, *_collect(predicates))

    # -------------------------
    # sort orders
    # -------------------------
    @staticmethod
    def order(field: str, ascending: bool = True) -> Token:
        field = escape_string(field)
        if ascending is False:
            return AppConstants.DESCENDING + field
        return field

    @staticmethod
    def sort(*orders: Union[Token, Sequence[Token]]) -> Token:
        """Concatenate tokens produced by `order`; they carry no separator."""
        return AppConstants.SORT_SEPARATOR.join(_collect(orders))
