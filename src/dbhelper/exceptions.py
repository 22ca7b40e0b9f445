"""
Helper-specific exception classes.

Driver errors are never wrapped: whatever the DB-API module raises reaches
the caller unchanged.
"""


class DatabaseError(Exception):
    """Base class for all dbhelper errors.
    """


class ConfigurationError(DatabaseError, ValueError):
    """Missing factory, empty connection string or unresolved configuration.
    """


class ValidationError(DatabaseError, ValueError):
    """Error in input validation.
    """


class TypeConversionError(DatabaseError, TypeError):
    """Error converting a database value to the requested Python type.
    """
