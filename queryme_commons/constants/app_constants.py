
class AppConstants:
    # literal tokens
    NULL = 'null'
    TRUE = 'true'
    FALSE = 'false'
    STRING_SIGIL = '$'
    DESCENDING = '!'

    # predicate operators
    NOT = 'not'
    AND = 'and'
    OR = 'or'
    EQ = 'eq'
    LT = 'lt'
    LE = 'le'
    GT = 'gt'
    GE = 'ge'
    FTS = 'fts'

    ARG_SEPARATOR = ','
    SORT_SEPARATOR = ''

    # filter dsl
    OP = 'op'
    RULES = 'rules'
    FIELD_NAME = 'field_name'
    OPERATOR = 'operator'
    VALUE = 'value'
    DTYPE = 'dtype'
    SUPPORTED_DATATYPES = ['int', 'float', 'string', 'datetime', 'boolean']

    # query string
    FILTER_QUERY_NAME = 'f'
    SORT_QUERY_NAME = 's'
    LIMIT_QUERY_NAME = 'l'
