# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
'''
Serialization of points to the InfluxDB line protocol:

    measurement[,tag=value...] field=value[,field=value...] [timestamp]
'''
import math

import numpy as np


MEASUREMENT_ESCAPES = str.maketrans({',': r'\,', ' ': r'\ ', '\n': r'\n'})
KEY_ESCAPES         = str.maketrans({',': r'\,', '=': r'\=', ' ': r'\ ',
                                     '\n': r'\n'})
STRING_ESCAPES      = str.maketrans({'"': r'\"', '\\': '\\\\'})


def escape_measurement(s):
    return s.translate(MEASUREMENT_ESCAPES)


def escape_key(s):
    '''
    Escapes tag keys, tag values and field keys.
    '''
    return s.translate(KEY_ESCAPES)


def format_field_value(v):
    if isinstance(v, np.generic):
        v = v.item()
    if isinstance(v, bool):
        return 'true' if v else 'false'
    if isinstance(v, int):
        return '%di' % v
    if isinstance(v, float):
        if not math.isfinite(v):
            raise ValueError('Cannot write non-finite float %r' % v)
        return repr(v)
    if isinstance(v, str):
        return '"%s"' % v.translate(STRING_ESCAPES)
    raise TypeError('Unsupported field value %r' % (v,))


def format_point(p):
    line = escape_measurement(p.measurement)
    for k, v in p.tags.items():
        line += ',%s=%s' % (escape_key(k), escape_key(v))
    line += ' ' + ','.join('%s=%s' % (escape_key(k), format_field_value(v))
                           for k, v in p.fields.items())
    if p.timestamp is not None:
        line += ' %d' % p.timestamp
    return line


def format_points(points):
    return '\n'.join(format_point(p) for p in points)
