# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
import dataclasses
import typing

from . import coercion
from . import shapes
from .line_protocol import format_point
from .exceptions import EmptyPointError


@dataclasses.dataclass
class Point:
    '''
    A single point ready to be written.  tags and fields keep their insertion
    order, which is the order they are written in.  timestamp is an epoch
    count in precision units; if it is None the server assigns its own time
    on write.
    '''
    measurement: str
    tags:        typing.Dict[str, str]
    fields:      typing.Dict[str, typing.Any]
    timestamp:   typing.Optional[int]  = None
    precision:   coercion.TimeUnit     = coercion.NANOSECONDS

    def __post_init__(self):
        if not self.measurement:
            raise ValueError('Point needs a measurement name')
        if not self.fields:
            raise EmptyPointError('Point for "%s" has no fields' %
                                  self.measurement)
        self.tags      = dict(self.tags or {})
        self.fields    = dict(self.fields)
        self.precision = coercion.time_unit(self.precision)

    def to_line_protocol(self):
        return format_point(self)


def encode(measurement, obj, precision=coercion.NANOSECONDS):
    '''
    Converts a mapped object into a Point written to the given measurement.
    Tags whose value is None or empty are left out of the point, as are None
    fields; if that leaves no fields at all, EmptyPointError is raised.
    InfluxDB has no empty tag values, so a tag written as '' reads back as
    missing, that is, as the member's default.

    A datetime timestamp must be timezone-aware unless the member was marked
    with timestamp(tz=None), in which case it must be naive UTC.
    '''
    precision = coercion.time_unit(precision)
    md        = shapes.resolve(obj)

    tags = {}
    for t in md.tags:
        v = getattr(obj, t.attr)
        if v is None:
            continue
        s = coercion.to_string(v, t.name)
        if s:
            tags[t.name] = s

    fields = {}
    for f in md.fields:
        v = getattr(obj, f.attr)
        if v is None:
            continue
        fields[f.name] = coercion.coerce(v, f.kind, f.name)

    if not fields:
        raise EmptyPointError('%s has no field values to write to "%s"' %
                              (type(obj).__qualname__, measurement))

    ts = None
    if md.timestamp is not None:
        v = getattr(obj, md.timestamp.attr)
        if v is not None:
            coercion.check_tz(v, md.timestamp.tz, md.timestamp.name)
            ns = coercion.to_epoch_ns(v, precision, md.timestamp.name)
            ts = precision.from_ns(ns)

    return Point(measurement, tags, fields, ts, precision)


def encode_all(measurement, objs, precision=coercion.NANOSECONDS):
    return [encode(measurement, obj, precision) for obj in objs]
