# src/granular/core/query/operators.py

# Maps predicate operators to SQLAlchemy column methods.
# For example, a `name LIKE '%a%'` condition calls `Column.like('%a%')`.
OPERATOR_MAP = {
    '=': '__eq__',       # Equal
    'LIKE': 'like',      # String LIKE
    'IN': 'in_',         # In a list of values
    'IS NULL': 'is_',    # Is Null
}

# Operators that take no value from the condition.
NULLARY_OPERATORS = {'IS NULL'}
