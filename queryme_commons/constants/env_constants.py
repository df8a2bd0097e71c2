class EnvConstants:
    FILTER_QUERY_NAME = 'QUERYME_FILTER_QUERY_NAME'
    SORT_QUERY_NAME = 'QUERYME_SORT_QUERY_NAME'
    LIMIT_QUERY_NAME = 'QUERYME_LIMIT_QUERY_NAME'
