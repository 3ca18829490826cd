# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
'''
Conversions between wire values and the Python types of mapped members.

Values coming back from the server are JSON scalars (str, int, float, bool)
and values going out may additionally be numpy scalars.  Every conversion
either returns a value of the requested kind or raises TypeCoercionError;
nothing is silently truncated.
'''
import datetime
import math
import re

import numpy as np

from .exceptions import TypeCoercionError


EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

TRUE_LITERALS  = frozenset(('t', 'T', 'true', 'True', 'TRUE'))
FALSE_LITERALS = frozenset(('f', 'F', 'false', 'False', 'FALSE'))

RFC3339_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})'
                        r'(?:\.(\d+))?(Z|z|[+-]\d{2}:\d{2})$')


class TimeUnit:
    def __init__(self, name, precision, ns):
        self.name      = name
        self.precision = precision
        self.ns        = ns

    def __repr__(self):
        return '<TimeUnit %s>' % self.precision

    def from_ns(self, ns):
        return ns // self.ns

    def to_ns(self, v):
        return v * self.ns


NANOSECONDS  = TimeUnit('nanoseconds',  'n',  1)
MICROSECONDS = TimeUnit('microseconds', 'u',  1000)
MILLISECONDS = TimeUnit('milliseconds', 'ms', 1000000)
SECONDS      = TimeUnit('seconds',      's',  1000000000)
MINUTES      = TimeUnit('minutes',      'm',  60 * 1000000000)
HOURS        = TimeUnit('hours',        'h',  3600 * 1000000000)

TIME_UNITS = {u.precision: u for u in (NANOSECONDS, MICROSECONDS,
                                       MILLISECONDS, SECONDS, MINUTES, HOURS)}


def time_unit(precision):
    '''
    Accepts either a TimeUnit or one of the precision strings the HTTP API
    uses ('n', 'u', 'ms', 's', 'm', 'h').
    '''
    if isinstance(precision, TimeUnit):
        return precision
    try:
        return TIME_UNITS[precision]
    except KeyError:
        raise ValueError('Unknown precision %r' % (precision,)) from None


def _is_bool(v):
    return isinstance(v, (bool, np.bool_))


def _is_int(v):
    return isinstance(v, (int, np.integer)) and not _is_bool(v)


def _is_float(v):
    return isinstance(v, (float, np.floating))


def to_integer(v, column=None):
    if _is_int(v):
        return int(v)
    if _is_float(v):
        if math.isfinite(v) and float(v).is_integer():
            return int(v)
    elif isinstance(v, str):
        s = v.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            raise TypeCoercionError(v, INTEGER.name, column) from None
        if math.isfinite(f) and f.is_integer():
            return int(f)
    raise TypeCoercionError(v, INTEGER.name, column)


def to_float(v, column=None):
    '''
    NaN and infinities have no line protocol representation and are refused.
    '''
    try:
        if _is_int(v) or _is_float(v):
            f = float(v)
        elif isinstance(v, str):
            f = float(v.strip())
        else:
            raise TypeCoercionError(v, FLOAT.name, column)
    except (ValueError, OverflowError):
        raise TypeCoercionError(v, FLOAT.name, column) from None

    if not math.isfinite(f):
        raise TypeCoercionError(v, FLOAT.name, column)
    return f


def to_boolean(v, column=None):
    if _is_bool(v):
        return bool(v)
    if isinstance(v, str):
        if v in TRUE_LITERALS:
            return True
        if v in FALSE_LITERALS:
            return False
    raise TypeCoercionError(v, BOOLEAN.name, column)


def to_string(v, column=None):
    if _is_bool(v):
        return 'true' if v else 'false'
    if isinstance(v, np.generic):
        return to_string(v.item(), column)
    if isinstance(v, float):
        return repr(v)
    if isinstance(v, datetime.datetime):
        return v.isoformat()
    if isinstance(v, bytes):
        try:
            return v.decode()
        except UnicodeDecodeError:
            raise TypeCoercionError(v, STRING.name, column) from None
    return str(v)


class FieldKind:
    def __init__(self, name, py_type, np_types, coerce):
        self.name     = name
        self.py_type  = py_type
        self.np_types = np_types
        self.coerce   = coerce

    def __repr__(self):
        return '<FieldKind %s>' % self.name


BOOLEAN = FieldKind('boolean', bool,  (np.bool_,),    to_boolean)
INTEGER = FieldKind('integer', int,   (np.integer,),  to_integer)
FLOAT   = FieldKind('float',   float, (np.floating,), to_float)
STRING  = FieldKind('string',  str,   (),             to_string)

# Checked in order: bool is a subclass of int.
FIELD_KINDS = (BOOLEAN, INTEGER, FLOAT)


def kind_for_type(tp):
    '''
    Infers the kind of a member from its declared type.  Anything that isn't
    recognizably boolean, integral or floating point is mapped as a string.
    '''
    if isinstance(tp, type):
        for k in FIELD_KINDS:
            if issubclass(tp, k.py_type) or issubclass(tp, k.np_types):
                return k
    return STRING


def coerce(v, kind, column=None):
    return kind.coerce(v, column)


def parse_rfc3339(s, column=None):
    '''
    Parses an RFC3339 timestamp as returned by the query API into epoch
    nanoseconds.  Fractions finer than a nanosecond are truncated.
    '''
    m = RFC3339_RE.match(s.strip())
    if not m:
        raise TypeCoercionError(s, 'time', column)

    date, hms, frac, tz = m.groups()
    text = '%sT%s' % (date, hms)
    if frac:
        text += '.' + frac[:9]
    try:
        ns = int(np.datetime64(text, 'ns').astype(np.int64))
    except ValueError:
        raise TypeCoercionError(s, 'time', column) from None

    if tz not in ('Z', 'z'):
        sign   = -1 if tz[0] == '-' else 1
        offset = int(tz[1:3]) * 3600 + int(tz[4:6]) * 60
        ns    -= sign * offset * 1000000000
    return ns


def to_epoch_ns(v, unit=NANOSECONDS, column=None):
    '''
    Converts a timestamp to epoch nanoseconds.  Integers are taken to be
    expressed in the given unit; naive datetimes are taken to be UTC.
    '''
    if isinstance(v, datetime.datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=datetime.timezone.utc)
        delta = v - EPOCH
        return ((delta.days * 86400 + delta.seconds) * 1000000000 +
                delta.microseconds * 1000)
    if isinstance(v, np.datetime64):
        if np.isnat(v):
            raise TypeCoercionError(v, 'time', column)
        return int(v.astype('datetime64[ns]').astype(np.int64))
    if _is_int(v):
        return unit.to_ns(int(v))
    if _is_float(v):
        if math.isfinite(v) and float(v).is_integer():
            return unit.to_ns(int(v))
    elif isinstance(v, str):
        return parse_rfc3339(v, column)
    raise TypeCoercionError(v, 'time', column)


def check_tz(v, tz, column=None):
    '''
    Checks that a datetime is naive if tz is None and timezone-aware
    otherwise, so that it reads back equal to what was written.
    '''
    if not isinstance(v, datetime.datetime):
        return
    if tz is None and v.tzinfo is not None:
        raise TypeCoercionError(v, 'naive datetime', column)
    if tz is not None and v.tzinfo is None:
        raise TypeCoercionError(v, 'timezone-aware datetime', column)


def from_epoch_ns(ns, target, unit=NANOSECONDS, tz=datetime.timezone.utc):
    '''
    Converts epoch nanoseconds into the declared type of a timestamp member.
    datetimes come back in tz, or naive in UTC if tz is None, with
    sub-microsecond precision truncated.
    '''
    if isinstance(target, type) and issubclass(target, np.datetime64):
        return np.datetime64(ns, 'ns')
    if isinstance(target, type) and issubclass(target, datetime.datetime):
        dt = EPOCH + datetime.timedelta(microseconds=ns // 1000)
        if tz is None:
            return dt.replace(tzinfo=None)
        return dt.astimezone(tz)
    return unit.from_ns(ns)


def coerce_time(v, target, unit=NANOSECONDS, column=None,
                tz=datetime.timezone.utc):
    return from_epoch_ns(to_epoch_ns(v, unit, column), target, unit, tz)
