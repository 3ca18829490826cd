# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
'''
Reconstruction of mapped objects from query results.

Each row of each series becomes one object.  Columns are matched to members
by their serialized names, with the series' GROUP BY tags standing in for
tag columns the query didn't return.  Members without a matching column, or
whose cell is null, keep their dataclass default.
'''
from . import coercion
from . import shapes
from .exceptions import (InvalidShapeError,
                         MultipleResultsError,
                         TypeCoercionError)
from .response import QueryResult


def _results(result):
    if result is None:
        return []
    if isinstance(result, QueryResult):
        return [result]
    return list(result)


def _check_required(s, md, index):
    if md.unmapped:
        raise InvalidShapeError('%s cannot be built from a query result, '
                                'unmapped members have no default: %s' %
                                (md.shape.__qualname__,
                                 ', '.join(md.unmapped)))
    for m in md.members:
        if m.has_default or m.name in index or m.name in s.tags:
            continue
        raise InvalidShapeError('Series "%s" has no column "%s" for required '
                                'member %s.%s' % (s.name, m.name,
                                                  md.shape.__qualname__,
                                                  m.attr))


def _decode_series(s, md, precision):
    index = {c: i for i, c in enumerate(s.columns)}
    _check_required(s, md, index)

    objs = []
    for row in s.values:
        kwargs = {}
        for m in md.members:
            i = index.get(m.name)
            if i is not None:
                raw = row[i] if i < len(row) else None
            elif m.name in s.tags:
                raw = s.tags[m.name]
            else:
                continue

            if raw is None:
                if not m.has_default:
                    raise TypeCoercionError(None, m.kind.name if m.kind else
                                            'time', m.name)
                continue

            if m.kind is None:
                kwargs[m.attr] = coercion.coerce_time(raw, m.type, precision,
                                                      m.name, m.tz)
            else:
                kwargs[m.attr] = coercion.coerce(raw, m.kind, m.name)
        objs.append(md.shape(**kwargs))
    return objs


def decode_series(result, shape, precision=coercion.NANOSECONDS):
    '''
    Decodes a QueryResult (or a list of them, as returned by Client.query())
    into a list of (series, objects) pairs, one per series that has rows, in
    the order the server returned them.  Raises QueryExecutionError if the
    server reported an error for any statement or series.

    precision is the unit integer timestamps in the time column are expressed
    in, which is the epoch the query was run with.
    '''
    precision = coercion.time_unit(precision)
    results   = _results(result)
    for r in results:
        r.raise_for_error()

    series = [s for r in results for s in r.series if s.values]
    if not series:
        return []

    md = shapes.resolve(shape)
    return [(s, _decode_series(s, md, precision)) for s in series]


def decode(result, shape, precision=coercion.NANOSECONDS):
    '''
    Decodes every row of every series into an instance of shape.  No result,
    no series or no rows all decode to an empty list.
    '''
    return [obj
            for _, objs in decode_series(result, shape, precision)
            for obj in objs]


def decode_one(result, shape, precision=coercion.NANOSECONDS):
    '''
    Decodes a result expected to hold at most one point.  Returns None if it
    holds none and raises MultipleResultsError if it holds more than one, even
    when they come from different series.
    '''
    objs = decode(result, shape, precision)
    if not objs:
        return None
    if len(objs) > 1:
        raise MultipleResultsError('Expected at most one %s, got %u' %
                                   (shapes.measurement_name(shape),
                                    len(objs)))
    return objs[0]
