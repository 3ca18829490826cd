# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
import dataclasses
import datetime
import re
import typing


DURATION_RE   = re.compile(r'(\d+)(ns|us|u|µ|ms|s|m|h|d|w)')
DURATION_UNIT = {
    'ns' : 1,
    'us' : 1000,
    'u'  : 1000,
    'µ'  : 1000,
    'ms' : 1000000,
    's'  : 1000000000,
    'm'  : 60 * 1000000000,
    'h'  : 3600 * 1000000000,
    'd'  : 86400 * 1000000000,
    'w'  : 7 * 86400 * 1000000000,
}


def parse_duration(s):
    '''
    Parses an InfluxQL duration such as '168h0m0s' or '30d'.  'INF' and '0s'
    both mean "keep forever" and parse to a zero timedelta.  Durations that
    aren't a whole number of microseconds can't be held in a timedelta and are
    refused.
    '''
    s = s.strip()
    if s.upper() == 'INF':
        return datetime.timedelta(0)

    pos = 0
    ns  = 0
    for m in DURATION_RE.finditer(s):
        if m.start() != pos:
            break
        ns  += int(m.group(1)) * DURATION_UNIT[m.group(2)]
        pos  = m.end()
    if pos != len(s) or not s:
        raise ValueError('Invalid duration %r' % s)

    us, rem = divmod(ns, 1000)
    if rem:
        raise ValueError('Duration %r is finer than a microsecond' % s)
    return datetime.timedelta(microseconds=us)


def format_duration(td):
    '''
    Formats a timedelta as an InfluxQL duration literal.  A zero duration is
    formatted as INF.
    '''
    us = td // datetime.timedelta(microseconds=1)
    if us < 0:
        raise ValueError('Negative duration %r' % td)
    if us == 0:
        return 'INF'

    s, us = divmod(us, 1000000)
    h, s  = divmod(s, 3600)
    m, s  = divmod(s, 60)
    parts = []
    for v, unit in ((h, 'h'), (m, 'm'), (s, 's'), (us, 'u')):
        if v:
            parts.append('%d%s' % (v, unit))
    return ''.join(parts)


@dataclasses.dataclass
class RetentionPolicy:
    '''
    A retention policy.  A zero duration keeps data forever; a shard_duration
    of None leaves the shard group duration up to the server.
    '''
    name:           str
    duration:       datetime.timedelta
    replication:    int                                   = 1
    shard_duration: typing.Optional[datetime.timedelta]   = None
    is_default:     bool                                  = False

    def __post_init__(self):
        if not self.name:
            raise ValueError('Retention policy needs a name')
        if self.replication < 1:
            raise ValueError('Replication factor must be at least 1')

    def definition(self):
        '''
        The DURATION/REPLICATION/SHARD DURATION/DEFAULT clauses shared by
        CREATE and ALTER RETENTION POLICY.
        '''
        clause = 'DURATION %s REPLICATION %d' % (format_duration(self.duration),
                                                 self.replication)
        if self.shard_duration:
            clause += ' SHARD DURATION %s' % format_duration(
                    self.shard_duration)
        if self.is_default:
            clause += ' DEFAULT'
        return clause

    @staticmethod
    def from_row(row):
        '''
        Builds a policy from a row of SHOW RETENTION POLICIES, given as a
        dict of column name to value.
        '''
        shard = row.get('shardGroupDuration')
        return RetentionPolicy(name=row['name'],
                               duration=parse_duration(row['duration']),
                               replication=int(row.get('replicaN') or 1),
                               shard_duration=(parse_duration(shard)
                                               if shard else None),
                               is_default=bool(row.get('default')))
