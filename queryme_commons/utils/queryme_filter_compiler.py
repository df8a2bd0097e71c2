import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from queryme_commons.constants.app_constants import AppConstants
from queryme_commons.utils.query_builder import QueryBuilder

"""
================================================================================
QueryMe Filter Compiler – Usage Guide
================================================================================
Purpose:
    This module compiles the JSON-based filter DSL into a QueryMe predicate
    string (the value of the `f` query-string parameter). It ensures:
      - Every value is emitted through the matching literal constructor.
      - Field names and strings are escaped by the expression builder.
      - Malformed DSL is reported with QueryCompilationError.

    Field names are not checked against any schema; the optional `type_hints`
    mapping only decides which literal constructor a value goes through.

-------------------------------------------------------------------------------
1. BASIC USAGE
-------------------------------------------------------------------------------
    from queryme_commons.utils.queryme_filter_compiler import QueryMeFilterCompiler

    compiler = QueryMeFilterCompiler({'price': 'float', 'published_at': 'datetime'})

    dsl = {
        "op": "AND",
        "rules": [
            {"field_name": "category", "operator": "==", "value": "Books"},
            {"field_name": "price", "operator": "<=", "value": 500},
            {"field_name": "itemId", "operator": "in", "value": [42, 77]}
        ]
    }
    print(compiler.compile(dsl))
    # Output: and(eq(category,$Books),le(price,500),eq(itemId,42,77))

-------------------------------------------------------------------------------
2. NESTED AND NEGATED GROUPS
-------------------------------------------------------------------------------
    dsl_nested = {
        "op": "OR",
        "rules": [
            {"op": "NOT", "rules": [
                {"field_name": "type", "operator": "in", "value": ["foo", "bar"]}
            ]},
            {"field_name": "text", "operator": "fts", "value": "belgian chocolate"}
        ]
    }
    print(compiler.compile(dsl_nested))
    # Output: or(not(eq(type,$foo,$bar)),fts(text,$belgian%20chocolate))

-------------------------------------------------------------------------------
3. OPERATORS
-------------------------------------------------------------------------------
    ==, !=                → eq(f,v) / not(eq(f,v))
    in, not in            → eq(f,v1,v2) / not(eq(f,v1,v2))
    <, <=, >, >=          → lt / le / gt / ge
    fts                   → fts(f,$text)     (string values only)
    is null, is not null  → eq(f,null) / not(eq(f,null))

-------------------------------------------------------------------------------
4. DATA TYPES
-------------------------------------------------------------------------------
    int / float  → bare number
    string       → $escaped-text
    datetime     → 2014-05-01T12:00:00.000Z (datetime, date or ISO string)
    boolean      → true / false

    The type comes from the rule's "dtype", then `type_hints`, then the
    Python type of the value.
================================================================================
"""

logger = logging.getLogger(__name__)


class QueryCompilationError(Exception):
    pass


class QueryMeFilterCompiler:
    """
    Compile a JSON DSL into a QueryMe predicate string.
    """

    GROUP_OPS = ('AND', 'OR', 'NOT')

    COMPARISONS = {
        '<': QueryBuilder.lt,
        '<=': QueryBuilder.le,
        '>': QueryBuilder.gt,
        '>=': QueryBuilder.ge,
    }

    MULTI_VALUE_OPERATORS = ('in', 'not in')
    NULL_OPERATORS = ('is null', 'is not null')
    OPERATORS = ('==', '!=', 'fts') + MULTI_VALUE_OPERATORS + NULL_OPERATORS + tuple(COMPARISONS)

    def __init__(self, type_hints: Optional[Dict[str, str]] = None):
        """
        :param type_hints: mapping field_name -> datatype (one of SUPPORTED_DATATYPES)
        """
        type_hints = type_hints or {}
        for prop, dtype in type_hints.items():
            if dtype not in AppConstants.SUPPORTED_DATATYPES:
                raise ValueError(f"Unsupported datatype for property '{prop}': {dtype}")
        self.type_hints = dict(type_hints)

    # -------------------------
    # helpers for formatting
    # -------------------------
    @staticmethod
    def _infer_dtype(raw: Any) -> str:
        # bool is checked before int since it is a subclass
        if isinstance(raw, bool):
            return 'boolean'
        if isinstance(raw, int):
            return 'int'
        if isinstance(raw, float):
            return 'float'
        if isinstance(raw, (datetime, date)):
            return 'datetime'
        return 'string'

    def _resolve_dtype(self, prop: str, rule: Dict[str, Any], raw: Any) -> str:
        dtype = rule.get(AppConstants.DTYPE) or self.type_hints.get(prop)
        if dtype is None:
            sample = raw[0] if isinstance(raw, (list, tuple)) and raw else raw
            return self._infer_dtype(sample)
        if dtype not in AppConstants.SUPPORTED_DATATYPES:
            raise QueryCompilationError(f"Unsupported datatype '{dtype}' for property '{prop}'")
        return dtype

    def _format_value(self, raw: Any, dtype: str) -> str:
        """
        Turn a single raw value into a literal token according to datatype
        """
        if raw is None:
            return QueryBuilder.null

        if dtype in ('int', 'float'):
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                return QueryBuilder.number(raw)
            # allow numeric string
            try:
                number = int(raw) if dtype == 'int' else float(raw)
            except (TypeError, ValueError) as e:
                raise QueryCompilationError(f"Value {raw!r} is not a valid number for type {dtype}") from e
            return QueryBuilder.number(number)
        if dtype == 'boolean':
            if isinstance(raw, bool):
                return QueryBuilder.boolean(raw)
            lr = str(raw).strip().lower()
            if lr in (AppConstants.TRUE, AppConstants.FALSE):
                return QueryBuilder.boolean(lr == AppConstants.TRUE)
            raise QueryCompilationError(f"Value {raw!r} is not a valid boolean")
        if dtype == 'datetime':
            if isinstance(raw, (datetime, date)):
                return QueryBuilder.date(raw)
            if isinstance(raw, str):
                try:
                    parsed = datetime.fromisoformat(raw.strip().replace('Z', '+00:00'))
                except ValueError as e:
                    raise QueryCompilationError(f"Value {raw!r} is not a valid ISO datetime") from e
                return QueryBuilder.date(parsed)
            raise QueryCompilationError(f"Value {raw!r} is not a valid datetime (expected datetime or ISO string)")
        # default 'string'
        return QueryBuilder.string(str(raw))

    def _format_multi_values(self, values: Any, dtype: str) -> List[str]:
        if not isinstance(values, (list, tuple)):
            raise QueryCompilationError('Multi-value operator requires a list/tuple')
        return [self._format_value(v, dtype) for v in values]

    # -------------------------
    # compilation: rule & groups
    # -------------------------
    def compile_rule(self, rule: Dict[str, Any]) -> str:
        """
        Compile a single rule dict into a predicate token.
        Expected rule format:
          { "field_name": "category", "operator": "in", "value": ["A","B"] }
        """
        if AppConstants.FIELD_NAME not in rule or AppConstants.OPERATOR not in rule:
            raise QueryCompilationError("Rule must contain 'field_name' and 'operator'")

        prop = rule[AppConstants.FIELD_NAME]
        op = rule[AppConstants.OPERATOR]

        if op not in self.OPERATORS:
            raise QueryCompilationError(f"Unknown operator '{op}'")

        if op in self.NULL_OPERATORS:
            predicate = QueryBuilder.eq(prop, QueryBuilder.null)
            return predicate if op == 'is null' else QueryBuilder.not_(predicate)

        if AppConstants.VALUE not in rule:
            raise QueryCompilationError(f"Operator '{op}' requires a value")

        val = rule[AppConstants.VALUE]
        dtype = self._resolve_dtype(prop, rule, val)

        if op in self.MULTI_VALUE_OPERATORS:
            if not isinstance(val, (list, tuple)):
                raise QueryCompilationError(f"Operator '{op}' requires a list of values")
            predicate = QueryBuilder.eq(prop, self._format_multi_values(val, dtype))
            return predicate if op == 'in' else QueryBuilder.not_(predicate)

        if isinstance(val, (list, tuple)):
            raise QueryCompilationError(f"Operator '{op}' does not accept list value")

        if op == 'fts':
            if dtype != 'string' or not isinstance(val, str):
                raise QueryCompilationError("Operator 'fts' only valid for string values")
            return QueryBuilder.fts(prop, val)

        literal = self._format_value(val, dtype)
        if op == '==':
            return QueryBuilder.eq(prop, literal)
        if op == '!=':
            return QueryBuilder.not_(QueryBuilder.eq(prop, literal))
        return self.COMPARISONS[op](prop, literal)

    def compile_group(self, group: Dict[str, Any]) -> str:
        """
        Compile a group structure (the DSL root) into a predicate token.

        Expected group format:
        {
          "op": "AND" | "OR" | "NOT",
          "rules": [ <rule> | <group> , ... ]
        }

        Recurses into nested groups.
        """
        if AppConstants.OP not in group or AppConstants.RULES not in group:
            raise QueryCompilationError("Group must contain 'op' and 'rules'")

        op_raw = group[AppConstants.OP]
        if op_raw not in self.GROUP_OPS:
            raise QueryCompilationError("Group 'op' must be 'AND', 'OR' or 'NOT'")

        rules = group[AppConstants.RULES]
        if not isinstance(rules, list):
            raise QueryCompilationError("'rules' must be a list")

        compiled_parts: List[str] = []
        for element in rules:
            if not isinstance(element, dict):
                raise QueryCompilationError("Each rule must be a dict")
            if AppConstants.RULES in element:
                compiled_parts.append(self.compile_group(element))
            else:
                compiled_parts.append(self.compile_rule(element))

        if op_raw == 'OR':
            return QueryBuilder.or_(compiled_parts)
        if op_raw == 'AND':
            return QueryBuilder.and_(compiled_parts)

        if not compiled_parts:
            raise QueryCompilationError("'NOT' group requires at least one rule")
        if len(compiled_parts) == 1:
            return QueryBuilder.not_(compiled_parts[0])
        return QueryBuilder.not_(QueryBuilder.and_(compiled_parts))

    def compile(self, dsl: Union[str, Dict[str, Any]]) -> str:
        """
        Top-level compile function.
        dsl can be a dict (JSON object) or a JSON string
        """
        if isinstance(dsl, str):
            try:
                dsl_obj = json.loads(dsl)
            except json.JSONDecodeError as e:
                raise QueryCompilationError(f"DSL JSON parse error: {e}") from e
        else:
            dsl_obj = dsl

        if not isinstance(dsl_obj, dict):
            raise QueryCompilationError("DSL must be a JSON object")

        try:
            predicate = self.compile_group(dsl_obj)
        except QueryCompilationError as e:
            logger.error(f"Error compiling filter DSL: {e}")
            raise

        logger.debug(f"Compiled filter DSL to: {predicate}")
        return predicate

    def extract_fields(self, dsl_json: Dict[str, Any]) -> Dict[str, str]:
        """
        Extracts field names and their data types from a DSL JSON structure.
        Processes nested rules and groups recursively, in first-seen order.

        Behavior:
        - First dtype encountered for a field wins (no overwrites)
        - dtype comes from the rule, then type hints, then the value's Python type
        - Rules missing 'field_name' and non-dict nodes are skipped

        Raises:
            QueryCompilationError: if the input is not a dict or 'rules' is not a list
        """
        field_types = {}

        def process_node(node: Dict[str, Any]):
            if AppConstants.RULES in node:  # It's a group
                rules = node.get(AppConstants.RULES, [])
                if not isinstance(rules, list):
                    raise QueryCompilationError("Rules must be a list")

                for rule in rules:
                    if isinstance(rule, dict):
                        process_node(rule)
            else:  # It's a rule
                field_name = node.get(AppConstants.FIELD_NAME)
                if not field_name or field_name in field_types:
                    return

                dtype = node.get(AppConstants.DTYPE) or self.type_hints.get(field_name)
                if dtype is None:
                    val = node.get(AppConstants.VALUE)
                    sample = val[0] if isinstance(val, (list, tuple)) and val else val
                    dtype = self._infer_dtype(sample)
                field_types[field_name] = dtype

        if not isinstance(dsl_json, dict):
            raise QueryCompilationError("DSL must be a dictionary")
        process_node(dsl_json)

        return field_types
