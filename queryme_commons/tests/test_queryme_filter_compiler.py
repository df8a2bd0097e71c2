import json
from datetime import datetime, timezone

import pytest

from queryme_commons.constants.app_constants import AppConstants
from queryme_commons.utils.queryme_filter_compiler import QueryMeFilterCompiler, QueryCompilationError


@pytest.fixture
def type_hints():
    return {
        'category': 'string',
        'brand': 'string',
        'price': 'float',
        'rating': 'float',
        'published_at': 'datetime',
        'is_available': 'boolean',
        'itemId': 'int'
    }

@pytest.fixture
def compiler(type_hints):
    return QueryMeFilterCompiler(type_hints)

# ----------------------------
# Positive Test Cases
# ----------------------------

def test_basic_and_filter(compiler):
    dsl = {
        "op": "AND",
        "rules": [
            {AppConstants.FIELD_NAME: "category", "operator": "==", "value": "Books"},
            {AppConstants.FIELD_NAME: "price", "operator": "<=", "value": 500},
            {AppConstants.FIELD_NAME: "itemId", "operator": "in", "value": [42, 77]}
        ]
    }
    expected = "and(eq(category,$Books),le(price,500),eq(itemId,42,77))"
    assert compiler.compile(dsl) == expected

def test_nested_groups(compiler):
    dsl = {
        "op": "OR",
        "rules": [
            {
                "op": "AND",
                "rules": [
                    {AppConstants.FIELD_NAME: "category", "operator": "==", "value": "Books"},
                    {AppConstants.FIELD_NAME: "price", "operator": "<", "value": 200}
                ]
            },
            {AppConstants.FIELD_NAME: "is_available", "operator": "==", "value": True}
        ]
    }
    expected = "or(and(eq(category,$Books),lt(price,200)),eq(is_available,true))"
    assert compiler.compile(dsl) == expected

def test_not_group_with_fts(compiler):
    dsl = {
        "op": "AND",
        "rules": [
            {"op": "NOT", "rules": [
                {AppConstants.FIELD_NAME: "type", "operator": "in", "value": ["foo", "bar"]}
            ]},
            {AppConstants.FIELD_NAME: "text", "operator": "fts", "value": "belgian chocolate"}
        ]
    }
    expected = "and(not(eq(type,$foo,$bar)),fts(text,$belgian%20chocolate))"
    assert compiler.compile(dsl) == expected

def test_not_group_with_several_rules(compiler):
    dsl = {
        "op": "NOT",
        "rules": [
            {AppConstants.FIELD_NAME: "price", "operator": ">", "value": 10},
            {AppConstants.FIELD_NAME: "rating", "operator": ">=", "value": 4.5}
        ]
    }
    assert compiler.compile(dsl) == "not(and(gt(price,10),ge(rating,4.5)))"

def test_negated_operators(compiler):
    dsl = {
        "op": "AND",
        "rules": [
            {AppConstants.FIELD_NAME: "brand", "operator": "!=", "value": "Nike"},
            {AppConstants.FIELD_NAME: "category", "operator": "not in", "value": ["A", "B"]}
        ]
    }
    assert compiler.compile(dsl) == "and(not(eq(brand,$Nike)),not(eq(category,$A,$B)))"

def test_null_operators(compiler):
    dsl = {
        "op": "OR",
        "rules": [
            {AppConstants.FIELD_NAME: "brand", "operator": "is null"},
            {AppConstants.FIELD_NAME: "category", "operator": "is not null"}
        ]
    }
    assert compiler.compile(dsl) == "or(eq(brand,null),not(eq(category,null)))"

def test_none_value_is_null_literal(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "price", "operator": "==", "value": None}]}
    assert compiler.compile(dsl) == "and(eq(price,null))"

def test_datetime_values(compiler):
    dsl = {
        "op": "AND",
        "rules": [
            {AppConstants.FIELD_NAME: "published_at", "operator": ">=", "value": "2014-05-01T12:00:00Z"},
            {AppConstants.FIELD_NAME: "published_at", "operator": "<",
             "value": datetime(2015, 1, 1, tzinfo=timezone.utc)}
        ]
    }
    expected = "and(ge(published_at,2014-05-01T12:00:00.000Z),lt(published_at,2015-01-01T00:00:00.000Z))"
    assert compiler.compile(dsl) == expected

def test_numeric_strings_follow_type_hint(compiler):
    dsl = {
        "op": "AND",
        "rules": [
            {AppConstants.FIELD_NAME: "price", "operator": "<=", "value": "12.5"},
            {AppConstants.FIELD_NAME: "itemId", "operator": "==", "value": "7"},
            {AppConstants.FIELD_NAME: "is_available", "operator": "==", "value": "TRUE"}
        ]
    }
    assert compiler.compile(dsl) == "and(le(price,12.5),eq(itemId,7),eq(is_available,true))"

def test_rule_dtype_overrides_hint(compiler):
    dsl = {"op": "AND", "rules": [
        {AppConstants.FIELD_NAME: "itemId", "operator": "==", "value": 42, AppConstants.DTYPE: "string"}
    ]}
    assert compiler.compile(dsl) == "and(eq(itemId,$42))"

def test_unknown_fields_are_not_rejected(compiler):
    dsl = {"op": "AND", "rules": [
        {AppConstants.FIELD_NAME: "my field (x)", "operator": "==", "value": 3},
        {AppConstants.FIELD_NAME: "flag", "operator": "==", "value": False}
    ]}
    assert compiler.compile(dsl) == "and(eq(my%20field%20%28x%29,3),eq(flag,false))"

def test_empty_groups():
    compiler = QueryMeFilterCompiler()
    assert compiler.compile({"op": "AND", "rules": []}) == "and()"
    assert compiler.compile({"op": "OR", "rules": []}) == "or()"

def test_compile_from_json_string(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "category", "operator": "==", "value": "a b"}]}
    assert compiler.compile(json.dumps(dsl)) == "and(eq(category,$a%20b))"

# ----------------------------
# Negative Test Cases
# ----------------------------

def test_unsupported_type_hint():
    with pytest.raises(ValueError) as excinfo:
        QueryMeFilterCompiler({'price': 'money'})
    assert "Unsupported datatype" in str(excinfo.value)

def test_unknown_operator(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "price", "operator": "contains", "value": "X"}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "Unknown operator 'contains'" in str(excinfo.value)

def test_in_operator_requires_list(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "category", "operator": "in", "value": "A"}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "requires a list" in str(excinfo.value)

def test_list_not_allowed_for_eq(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "category", "operator": "==", "value": ["A", "B"]}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "does not accept list" in str(excinfo.value)

def test_fts_requires_string(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "price", "operator": "fts", "value": 3}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "only valid for string" in str(excinfo.value)

def test_invalid_number(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "price", "operator": "<", "value": "cheap"}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "not a valid number" in str(excinfo.value)

def test_invalid_datetime(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "published_at", "operator": "<", "value": "yesterday"}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "not a valid ISO datetime" in str(excinfo.value)

def test_missing_value(compiler):
    dsl = {"op": "AND", "rules": [{AppConstants.FIELD_NAME: "price", "operator": "<"}]}
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile(dsl)
    assert "requires a value" in str(excinfo.value)

def test_invalid_group_op(compiler):
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile({"op": "XOR", "rules": []})
    assert "Group 'op' must be" in str(excinfo.value)

def test_empty_not_group(compiler):
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile({"op": "NOT", "rules": []})
    assert "requires at least one rule" in str(excinfo.value)

def test_invalid_json(compiler):
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile("{not json")
    assert "DSL JSON parse error" in str(excinfo.value)

def test_non_object_dsl(compiler):
    with pytest.raises(QueryCompilationError) as excinfo:
        compiler.compile("[1, 2]")
    assert "must be a JSON object" in str(excinfo.value)
