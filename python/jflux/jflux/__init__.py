# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
from .client import (Client,
                     Connection,
                     ServerInfo)
from .coercion import (TimeUnit,
                       NANOSECONDS,
                       MICROSECONDS,
                       MILLISECONDS,
                       SECONDS,
                       MINUTES,
                       HOURS)
from .decoder import decode, decode_one, decode_series
from .exceptions import (JFluxError,
                         InvalidShapeError,
                         ShapeConflictError,
                         EmptyPointError,
                         TypeCoercionError,
                         QueryExecutionError,
                         MultipleResultsError,
                         InfluxClientError,
                         JFluxConnectionError,
                         NoDatabaseSelectedError,
                         DatabaseAlreadyExistsError,
                         UnknownDatabaseError,
                         RetentionPolicyAlreadyExistsError,
                         UnknownRetentionPolicyError)
from .point import Point, encode, encode_all
from .push_queue import PushQueue
from .response import QueryResult, Series
from .retention import RetentionPolicy
from .shapes import tag, field, timestamp, measurement, resolve


__all__ = [
    'Client',
    'Connection',
    'ServerInfo',
    'TimeUnit',
    'NANOSECONDS',
    'MICROSECONDS',
    'MILLISECONDS',
    'SECONDS',
    'MINUTES',
    'HOURS',
    'decode',
    'decode_one',
    'decode_series',
    'JFluxError',
    'InvalidShapeError',
    'ShapeConflictError',
    'EmptyPointError',
    'TypeCoercionError',
    'QueryExecutionError',
    'MultipleResultsError',
    'InfluxClientError',
    'JFluxConnectionError',
    'NoDatabaseSelectedError',
    'DatabaseAlreadyExistsError',
    'UnknownDatabaseError',
    'RetentionPolicyAlreadyExistsError',
    'UnknownRetentionPolicyError',
    'Point',
    'encode',
    'encode_all',
    'PushQueue',
    'QueryResult',
    'Series',
    'RetentionPolicy',
    'tag',
    'field',
    'timestamp',
    'measurement',
    'resolve',
]
