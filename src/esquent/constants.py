"""
Query vocabulary shared by the builder and the dialect compilers.
"""


class BoolMode:
    MUST = "must"
    MUST_NOT = "must_not"
    SHOULD = "should"


BOOL_MODES = (BoolMode.MUST, BoolMode.MUST_NOT, BoolMode.SHOULD)


class SortDirection:
    ASC = "asc"
    DESC = "desc"


class Dialect:
    BOOL = "bool"  # engine 5.x and later
    FILTERED = "filtered"  # engine 1.x / 2.x


# Relational operator -> engine keyword. "term" means exact match.
OPERATOR_MAP = {
    "=": "term",
    "<": "lt",
    ">": "gt",
    "<=": "lte",
    ">=": "gte",
    "<>": "term",
    "!=": "term",
}

EQUALITY_OPERATORS = ("=", "<>", "!=")

# Engine-native operators accepted by where_raw
RAW_OPERATORS = ("match_phrase", "multi_match", "prefix", "wildcard", "regexp", "fuzzy")
