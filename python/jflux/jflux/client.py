# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
import dataclasses
import logging

import requests

from . import coercion
from . import decoder
from . import line_protocol
from . import point
from . import shapes
from .exceptions import (InfluxClientError,
                         QueryExecutionError,
                         JFluxConnectionError,
                         NoDatabaseSelectedError,
                         DatabaseAlreadyExistsError,
                         UnknownDatabaseError,
                         RetentionPolicyAlreadyExistsError,
                         UnknownRetentionPolicyError)
from .response import parse_response
from .retention import RetentionPolicy


logger = logging.getLogger(__name__)

INTERNAL_DATABASE = '_internal'


def quote_ident(name):
    return '"%s"' % name.replace('\\', '\\\\').replace('"', '\\"')


def _require(value, what):
    if value is None:
        raise ValueError('%s cannot be None' % what)


@dataclasses.dataclass
class ServerInfo:
    build:   str
    version: str


class Connection:
    '''
    A session with the InfluxDB HTTP API.  Server-reported failures raise
    InfluxClientError, transport failures JFluxConnectionError; neither is
    retried.
    '''
    def __init__(self, host='127.0.0.1', port=8086, credentials=None,
                 ssl=False, timeout=10):
        self.url     = '%s://%s:%u' % ('https' if ssl else 'http', host, port)
        self.timeout = timeout
        self.session = requests.Session()
        if credentials:
            assert len(credentials) == 2
            self.session.auth = tuple(credentials)

    def close(self):
        self.session.close()

    def _request(self, method, path, **kwargs):
        try:
            rsp = self.session.request(method, self.url + path,
                                       timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise JFluxConnectionError('%s %s%s failed: %s' %
                                       (method, self.url, path, e)) from e

        if rsp.status_code >= 400:
            try:
                msg = rsp.json().get('error') or rsp.text
            except ValueError:
                msg = rsp.text
            raise InfluxClientError(msg or 'HTTP %u' % rsp.status_code,
                                    rsp.status_code)
        return rsp

    def ping(self):
        rsp = self._request('GET', '/ping')
        return ServerInfo(build=rsp.headers.get('X-Influxdb-Build', ''),
                          version=rsp.headers.get('X-Influxdb-Version', ''))

    def query(self, statement, database=None, epoch=None):
        '''
        Runs a read-only statement and returns its list of QueryResults.
        Per-statement errors are left in the results for the caller.
        '''
        params = {'q': statement}
        if database is not None:
            params['db'] = database
        if epoch is not None:
            params['epoch'] = coercion.time_unit(epoch).precision
        logger.debug('Query: %s', statement)
        return parse_response(self._request('GET', '/query',
                                            params=params).json())

    def execute(self, statement, database=None):
        '''
        Runs a statement that modifies the server, raising
        QueryExecutionError if the server reports an error for it.
        '''
        params = {'q': statement}
        if database is not None:
            params['db'] = database
        logger.debug('Execute: %s', statement)
        results = parse_response(self._request('POST', '/query',
                                               params=params).json())
        for r in results:
            r.raise_for_error()
        return results

    def write(self, points, database, retention_policy=None):
        '''
        Writes points in line protocol.  Points are sent in one request per
        distinct precision, in the order the precisions first appear.
        '''
        batches = {}
        for p in points:
            batches.setdefault(p.precision.precision, []).append(p)

        for precision, batch in batches.items():
            params = {'db': database, 'precision': precision}
            if retention_policy is not None:
                params['rp'] = retention_policy
            logger.debug('Writing %u points to %s', len(batch), database)
            self._request('POST', '/write', params=params,
                          data=line_protocol.format_points(batch).encode())


class Client:
    '''
    Client for an InfluxDB instance.  The connection is opened on first use
    and dropped again if a call fails for any reason other than an error
    reported by the server.
    '''
    def __init__(self, host='127.0.0.1', port=8086, credentials=None,
                 ssl=False, timeout=10, database=None):
        self.host        = host
        self.port        = port
        self.credentials = credentials
        self.ssl         = ssl
        self.timeout     = timeout
        self.database    = database
        self.conn        = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def connect(self):
        assert self.conn is None
        conn = Connection(host=self.host, port=self.port,
                          credentials=self.credentials, ssl=self.ssl,
                          timeout=self.timeout)
        try:
            info = conn.ping()
        except Exception:
            conn.close()
            raise
        logger.info('Connected to InfluxDB %s %s instance at %s', info.build,
                    info.version, conn.url)
        self.conn = conn

    def close(self):
        if self.conn is not None:
            try:
                self.conn.close()
            finally:
                self.conn = None

    def _call(self, method, *args, **kwargs):
        if self.conn is None:
            self.connect()

        try:
            return getattr(self.conn, method)(*args, **kwargs)
        except (InfluxClientError, QueryExecutionError):
            raise
        except Exception:
            self.close()
            raise

    def ping(self):
        return self._call('ping')

    def query(self, statement, database=None, epoch=None):
        return self._call('query', statement, database=database, epoch=epoch)

    def get_databases(self):
        results   = self._call('execute', 'SHOW DATABASES')
        databases = [row[0]
                     for r in results
                     for s in r.series
                     for row in s.values]
        logger.debug('Found databases: %s', databases)
        return databases

    def database_exists(self, database):
        _require(database, 'Database name')
        return database in self.get_databases()

    def create_database(self, database):
        if self.database_exists(database):
            raise DatabaseAlreadyExistsError(database)

        self._call('execute', 'CREATE DATABASE %s' % quote_ident(database))
        logger.info('Created database "%s"', database)

    def drop_database(self, database):
        _require(database, 'Database name')
        if database == INTERNAL_DATABASE:
            raise ValueError('Cannot drop the internal database')
        if not self.database_exists(database):
            raise UnknownDatabaseError(database)

        self._call('execute', 'DROP DATABASE %s' % quote_ident(database))
        logger.info('Dropped database "%s"', database)
        if self.database == database:
            self.database = None

    def use_database(self, database):
        if not self.database_exists(database):
            raise UnknownDatabaseError(database)
        self.database = database

    def _target_database(self, database):
        database = database or self.database
        if database is None:
            raise NoDatabaseSelectedError()
        if not self.database_exists(database):
            raise UnknownDatabaseError(database)
        return database

    def get_retention_policies(self, database=None):
        database = self._target_database(database)
        results  = self._call('execute', 'SHOW RETENTION POLICIES ON %s' %
                              quote_ident(database))
        return [RetentionPolicy.from_row(row)
                for r in results
                for s in r.series
                for row in s.rows()]

    def get_retention_policy(self, name, database=None):
        _require(name, 'Retention policy name')
        for rp in self.get_retention_policies(database):
            if rp.name == name:
                return rp
        return None

    def retention_policy_exists(self, name, database=None):
        return self.get_retention_policy(name, database) is not None

    def create_retention_policy(self, retention_policy, database=None):
        _require(retention_policy, 'Retention policy')
        database = self._target_database(database)
        if self.retention_policy_exists(retention_policy.name, database):
            raise RetentionPolicyAlreadyExistsError(retention_policy.name,
                                                    database)

        self._call('execute', 'CREATE RETENTION POLICY %s ON %s %s' %
                   (quote_ident(retention_policy.name), quote_ident(database),
                    retention_policy.definition()))
        logger.info('Created retention policy "%s" on "%s"',
                    retention_policy.name, database)

    def alter_retention_policy(self, name, definition, database=None):
        '''
        Replaces the duration, replication, shard duration and default flag
        of an existing policy with those of definition.  The policy keeps its
        name.
        '''
        _require(name, 'Retention policy name')
        _require(definition, 'Retention policy definition')
        database = self._target_database(database)
        if not self.retention_policy_exists(name, database):
            raise UnknownRetentionPolicyError(name, database)

        self._call('execute', 'ALTER RETENTION POLICY %s ON %s %s' %
                   (quote_ident(name), quote_ident(database),
                    definition.definition()))
        logger.info('Altered retention policy "%s" on "%s"', name, database)

    def drop_retention_policy(self, name, database=None):
        _require(name, 'Retention policy name')
        database = self._target_database(database)
        if not self.retention_policy_exists(name, database):
            raise UnknownRetentionPolicyError(name, database)

        self._call('execute', 'DROP RETENTION POLICY %s ON %s' %
                   (quote_ident(name), quote_ident(database)))
        logger.info('Dropped retention policy "%s" on "%s"', name, database)

    def write_points(self, points, database=None, retention_policy=None):
        _require(points, 'Points')
        if isinstance(points, point.Point):
            points = [points]
        points   = list(points)
        database = self._target_database(database)
        if (retention_policy is not None and
                not self.retention_policy_exists(retention_policy, database)):
            raise UnknownRetentionPolicyError(retention_policy, database)
        if not points:
            return

        self._call('write', points, database, retention_policy)

    def write(self, objs, database=None, retention_policy=None,
              measurement=None, precision=coercion.NANOSECONDS):
        '''
        Writes one mapped object or an iterable of them.  The measurement is
        taken from the measurement argument, else the class's @measurement
        decorator, else the class name.
        '''
        _require(objs, 'Object')
        if isinstance(objs, point.Point) or shapes.is_shape(objs):
            objs = [objs]

        points = []
        for obj in objs:
            if isinstance(obj, point.Point):
                points.append(obj)
            else:
                points.append(point.encode(measurement or
                                           shapes.measurement_name(obj),
                                           obj, precision))
        self.write_points(points, database, retention_policy)

    def get_all_points(self, target, database=None, measurement=None,
                       precision=coercion.NANOSECONDS):
        '''
        Selects every point of a measurement.  If target is a measurement
        name the raw Series are returned; if it is a mapped class the rows
        are decoded into instances of it, read from measurement if given or
        else from the class's default measurement.
        '''
        _require(target, 'Target')
        database = self._target_database(database)
        if isinstance(target, str):
            results = self._call('query', 'SELECT * FROM %s' %
                                 quote_ident(target), database=database,
                                 epoch=precision)
            for r in results:
                r.raise_for_error()
            return [s for r in results for s in r.series]

        name    = measurement or shapes.measurement_name(target)
        results = self._call('query', 'SELECT * FROM %s' % quote_ident(name),
                             database=database, epoch=precision)
        return decoder.decode(results, target, precision)
