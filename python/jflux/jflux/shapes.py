# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
'''
Discovery of the tag, field and timestamp members of mapped classes.

A mapped class is a dataclass whose members are marked with tag(), field()
or timestamp():

    @dataclasses.dataclass
    class CPU:
        host:  str                = tag(default=None)
        usage: float              = field(default=None)
        time:  datetime.datetime  = timestamp(default=None)

Unmarked members are neither written nor read.  The resulting
MeasurementDescriptor is computed once per class and cached.
'''
import dataclasses
import datetime
import types
import typing

import numpy as np

from . import coercion
from .exceptions import InvalidShapeError, ShapeConflictError


METADATA_KEY = 'jflux'
TIME_COLUMN  = 'time'


class TagMarker:
    def __init__(self, name=None):
        self.name = name


class FieldMarker:
    def __init__(self, name=None):
        self.name = name


class TimestampMarker:
    def __init__(self, tz=datetime.timezone.utc):
        self.tz = tz


def _marked(marker, kwargs):
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[METADATA_KEY] = marker
    return dataclasses.field(metadata=metadata, **kwargs)


def tag(name=None, **kwargs):
    '''
    Marks a dataclass member as a tag.  The tag is written under the member's
    own name unless name is given.  Remaining keyword arguments are passed
    through to dataclasses.field().
    '''
    return _marked(TagMarker(name), kwargs)


def field(name=None, **kwargs):
    '''
    Marks a dataclass member as a field.  See tag().
    '''
    return _marked(FieldMarker(name), kwargs)


def timestamp(tz=datetime.timezone.utc, **kwargs):
    '''
    Marks a dataclass member as the point's timestamp.  The member must be
    declared as a datetime, a numpy.datetime64 or an int (an epoch count in
    the precision the point is written or read with).

    tz applies to datetime members.  Decoded datetimes are returned in tz,
    and written datetimes must be timezone-aware.  With tz=None the member
    holds naive datetimes in UTC instead, both ways.
    '''
    return _marked(TimestampMarker(tz), kwargs)


def measurement(name):
    '''
    Class decorator recording the measurement objects of this class are
    written to when the caller doesn't name one.
    '''
    def decorator(cls):
        cls.__measurement__ = name
        return cls
    return decorator


def measurement_name(shape):
    cls = shape if isinstance(shape, type) else type(shape)
    return getattr(cls, '__measurement__', None) or cls.__name__


@dataclasses.dataclass(frozen=True)
class MemberDescriptor:
    '''
    A mapped member.  name is the serialized tag/field/column name and attr
    the dataclass attribute it comes from.  kind is the FieldKind values are
    coerced to; it is None for the timestamp member, which is converted to
    type instead.  tz is the timezone of a datetime timestamp, None
    meaning naive UTC.
    '''
    name:        str
    attr:        str
    kind:        typing.Optional[coercion.FieldKind]
    type:        typing.Any
    has_default: bool
    tz:          typing.Optional[datetime.tzinfo] = None


@dataclasses.dataclass(frozen=True)
class MeasurementDescriptor:
    shape:      type
    tags:       typing.Tuple[MemberDescriptor, ...]
    fields:     typing.Tuple[MemberDescriptor, ...]
    timestamp:  typing.Optional[MemberDescriptor]
    unmapped:   typing.Tuple[str, ...]

    @property
    def members(self):
        members = self.tags + self.fields
        if self.timestamp is not None:
            members += (self.timestamp,)
        return members


_cache = {}


def clear_cache():
    _cache.clear()


def resolve(shape):
    '''
    Returns the MeasurementDescriptor for a dataclass or dataclass instance.
    Concurrent first calls for the same class may both do the work, but only
    one descriptor ever ends up cached and returned.
    '''
    cls = shape if isinstance(shape, type) else type(shape)
    try:
        return _cache[cls]
    except KeyError:
        pass

    return _cache.setdefault(cls, _build(cls))


def _unwrap_optional(tp):
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is getattr(types, 'UnionType', None):
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _is_time_type(tp):
    if not isinstance(tp, type):
        return False
    if issubclass(tp, (datetime.datetime, np.datetime64)):
        return True
    return (issubclass(tp, (int, np.integer)) and
            not issubclass(tp, (bool, np.bool_)))


def _check_unique(members, what, cls):
    seen = set()
    for m in members:
        if m.name in seen:
            raise ShapeConflictError('%s declares %s "%s" more than once' %
                                     (cls.__qualname__, what, m.name))
        seen.add(m.name)
    return seen


def _build(cls):
    if not dataclasses.is_dataclass(cls):
        raise InvalidShapeError('%s is not a dataclass' % cls.__qualname__)

    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise InvalidShapeError('Cannot resolve annotations of %s: %s' %
                                (cls.__qualname__, e)) from e

    tags       = []
    fields     = []
    timestamps = []
    unmapped   = []
    for f in dataclasses.fields(cls):
        has_default = (f.default is not dataclasses.MISSING or
                       f.default_factory is not dataclasses.MISSING)
        marker = f.metadata.get(METADATA_KEY)
        if marker is None:
            if f.init and not has_default:
                unmapped.append(f.name)
            continue

        if not f.init:
            raise InvalidShapeError('%s.%s is mapped but excluded from '
                                    '__init__' % (cls.__qualname__, f.name))

        tp = _unwrap_optional(hints.get(f.name, typing.Any))
        if isinstance(marker, TimestampMarker):
            if not _is_time_type(tp):
                raise InvalidShapeError(
                    '%s.%s: timestamp must be a datetime, datetime64 or int, '
                    'not %r' % (cls.__qualname__, f.name, tp))
            timestamps.append(MemberDescriptor(TIME_COLUMN, f.name, None, tp,
                                               has_default, marker.tz))
        elif isinstance(marker, TagMarker):
            tags.append(MemberDescriptor(marker.name or f.name, f.name,
                                         coercion.kind_for_type(tp), tp,
                                         has_default))
        elif isinstance(marker, FieldMarker):
            fields.append(MemberDescriptor(marker.name or f.name, f.name,
                                           coercion.kind_for_type(tp), tp,
                                           has_default))

    if len(timestamps) > 1:
        raise ShapeConflictError('%s declares more than one timestamp: %s' %
                                 (cls.__qualname__,
                                  ', '.join(t.attr for t in timestamps)))
    if not fields:
        raise InvalidShapeError('%s declares no fields' % cls.__qualname__)

    tag_names   = _check_unique(tags, 'tag', cls)
    field_names = _check_unique(fields, 'field', cls)
    both        = tag_names & field_names
    if both:
        raise ShapeConflictError('%s uses "%s" as both a tag and a field' %
                                 (cls.__qualname__, sorted(both)[0]))
    if TIME_COLUMN in tag_names or TIME_COLUMN in field_names:
        raise ShapeConflictError('%s: "%s" is reserved for the timestamp' %
                                 (cls.__qualname__, TIME_COLUMN))

    return MeasurementDescriptor(shape=cls,
                                 tags=tuple(tags),
                                 fields=tuple(fields),
                                 timestamp=timestamps[0] if timestamps else None,
                                 unmapped=tuple(unmapped))


def is_shape(obj):
    '''
    True for dataclass instances, which are candidates for mapping.
    '''
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)
