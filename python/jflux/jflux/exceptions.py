# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.


class JFluxError(Exception):
    pass


class InvalidShapeError(JFluxError):
    '''
    Raised when a class cannot be mapped to a measurement, for instance
    because it is not a dataclass or declares no field members.
    '''
    pass


class ShapeConflictError(JFluxError):
    '''
    Raised when a class declares two members that serialize to the same tag
    or field name, or more than one timestamp member.
    '''
    pass


class EmptyPointError(JFluxError):
    '''
    Raised when a point would be written without any field values.
    '''
    pass


class TypeCoercionError(JFluxError):
    def __init__(self, value, kind, column=None):
        if column is None:
            msg = 'Cannot coerce %r to %s' % (value, kind)
        else:
            msg = 'Cannot coerce %r in column "%s" to %s' % (value, column,
                                                             kind)
        super().__init__(msg)
        self.value  = value
        self.kind   = kind
        self.column = column


class QueryExecutionError(JFluxError):
    '''
    An error reported by the server for a statement or series.  The message
    is the server's error text, verbatim.
    '''
    def __init__(self, error, statement_id=None):
        super().__init__(error)
        self.error        = error
        self.statement_id = statement_id


class MultipleResultsError(JFluxError):
    pass


class InfluxClientError(JFluxError):
    '''
    The server rejected a request (syntax error, unknown database, field type
    conflict and the like).
    '''
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class JFluxConnectionError(JFluxError):
    pass


class NoDatabaseSelectedError(JFluxError):
    def __init__(self):
        super().__init__('No database selected, call use_database() first '
                         'or pass a database name.')


class DatabaseAlreadyExistsError(JFluxError):
    def __init__(self, database):
        super().__init__('Database "%s" already exists' % database)
        self.database = database


class UnknownDatabaseError(JFluxError):
    def __init__(self, database):
        super().__init__('Unknown database "%s"' % database)
        self.database = database


class RetentionPolicyAlreadyExistsError(JFluxError):
    def __init__(self, retention_policy, database):
        super().__init__('Retention policy "%s" already exists on "%s"' %
                         (retention_policy, database))
        self.retention_policy = retention_policy
        self.database         = database


class UnknownRetentionPolicyError(JFluxError):
    def __init__(self, retention_policy, database):
        super().__init__('Unknown retention policy "%s" on "%s"' %
                         (retention_policy, database))
        self.retention_policy = retention_policy
        self.database         = database
