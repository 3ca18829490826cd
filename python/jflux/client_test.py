import dataclasses
import datetime
from unittest import mock

import pytest
import requests

import jflux
from jflux.client import Client, Connection, ServerInfo
from jflux.response import QueryResult, Series


RP_COLUMNS = ['name', 'duration', 'shardGroupDuration', 'replicaN', 'default']


@jflux.measurement('cpu')
@dataclasses.dataclass
class CPU:
    host:  str   = jflux.tag(default=None)
    usage: float = jflux.field(default=None)


def make_client(databases=('_internal', 'some_db'), policies=('autogen',)):
    client = Client()

    def execute(statement, database=None):
        if statement == 'SHOW DATABASES':
            return [QueryResult(series=[Series('databases', ['name'],
                                               [[d] for d in databases])])]
        if statement.startswith('SHOW RETENTION POLICIES'):
            rows = [[p, '0s', '168h0m0s', 1, p == 'autogen']
                    for p in policies]
            return [QueryResult(series=[Series(None, RP_COLUMNS, rows)])]
        return [QueryResult()]

    client.conn = mock.MagicMock()
    client.conn.execute.side_effect = execute
    return client


def executed(client):
    return [c.args[0] for c in client.conn.execute.call_args_list]


def test_get_databases():
    assert make_client().get_databases() == ['_internal', 'some_db']


def test_create_database():
    client = make_client()
    client.create_database('new_db')
    assert 'CREATE DATABASE "new_db"' in executed(client)


def test_create_database_fails_if_it_exists():
    with pytest.raises(jflux.DatabaseAlreadyExistsError):
        make_client().create_database('some_db')


def test_drop_database():
    client = make_client()
    client.use_database('some_db')
    client.drop_database('some_db')
    assert 'DROP DATABASE "some_db"' in executed(client)
    assert client.database is None


def test_drop_database_fails_if_unknown():
    with pytest.raises(jflux.UnknownDatabaseError):
        make_client().drop_database('non_existent_db')


def test_drop_internal_database_is_refused():
    with pytest.raises(ValueError):
        make_client().drop_database('_internal')


def test_use_database_fails_if_unknown():
    with pytest.raises(jflux.UnknownDatabaseError):
        make_client().use_database('non_existent_db')


def test_none_arguments_are_refused():
    client = make_client()
    client.use_database('some_db')
    with pytest.raises(ValueError):
        client.database_exists(None)
    with pytest.raises(ValueError):
        client.get_retention_policy(None)
    with pytest.raises(ValueError):
        client.create_retention_policy(None)
    with pytest.raises(ValueError):
        client.alter_retention_policy('autogen', None)
    with pytest.raises(ValueError):
        client.write(None)
    with pytest.raises(ValueError):
        client.get_all_points(None)


def test_retention_policies_need_a_database():
    client = make_client()
    with pytest.raises(jflux.NoDatabaseSelectedError):
        client.get_retention_policies()
    with pytest.raises(jflux.NoDatabaseSelectedError):
        client.retention_policy_exists('autogen')
    with pytest.raises(jflux.NoDatabaseSelectedError):
        client.drop_retention_policy('autogen')


def test_get_retention_policies_uses_selected_database():
    client = make_client()
    client.use_database('some_db')

    assert client.get_retention_policies() == [
        jflux.RetentionPolicy('autogen', datetime.timedelta(0), 1,
                              datetime.timedelta(days=7), True)]
    assert 'SHOW RETENTION POLICIES ON "some_db"' in executed(client)


def test_retention_policies_on_unknown_database():
    with pytest.raises(jflux.UnknownDatabaseError):
        make_client().get_retention_policies('non_existent_db')


def test_create_retention_policy():
    client = make_client()
    rp     = jflux.RetentionPolicy('week', datetime.timedelta(days=7))
    client.create_retention_policy(rp, 'some_db')
    assert ('CREATE RETENTION POLICY "week" ON "some_db" '
            'DURATION 168h REPLICATION 1') in executed(client)


def test_create_retention_policy_fails_if_it_exists():
    rp = jflux.RetentionPolicy('autogen', datetime.timedelta(0))
    with pytest.raises(jflux.RetentionPolicyAlreadyExistsError):
        make_client().create_retention_policy(rp, 'some_db')


def test_alter_retention_policy():
    client = make_client()
    client.use_database('some_db')
    client.alter_retention_policy(
            'autogen', jflux.RetentionPolicy('x', datetime.timedelta(hours=2)))
    assert ('ALTER RETENTION POLICY "autogen" ON "some_db" '
            'DURATION 2h REPLICATION 1') in executed(client)


def test_alter_retention_policy_fails_if_unknown():
    rp = jflux.RetentionPolicy('x', datetime.timedelta(hours=2))
    with pytest.raises(jflux.UnknownRetentionPolicyError):
        make_client().alter_retention_policy('non_existent_rp', rp, 'some_db')


def test_drop_retention_policy():
    client = make_client()
    client.drop_retention_policy('autogen', 'some_db')
    assert 'DROP RETENTION POLICY "autogen" ON "some_db"' in executed(client)


def test_drop_retention_policy_fails_if_unknown():
    with pytest.raises(jflux.UnknownRetentionPolicyError):
        make_client().drop_retention_policy('non_existent_rp', 'some_db')


def test_write_needs_a_database():
    with pytest.raises(jflux.NoDatabaseSelectedError):
        make_client().write(CPU(usage=0.5))
    with pytest.raises(jflux.NoDatabaseSelectedError):
        make_client().write_points([])


def test_write_encodes_objects():
    client = make_client()
    client.use_database('some_db')
    client.write([CPU(host='a', usage=0.5), CPU(host='b', usage=0.7)])

    client.conn.write.assert_called_once()
    points, database, rp = client.conn.write.call_args.args
    assert database == 'some_db'
    assert rp is None
    assert [p.measurement for p in points] == ['cpu', 'cpu']
    assert [p.tags for p in points] == [{'host': 'a'}, {'host': 'b'}]


def test_write_single_object_to_named_measurement():
    client = make_client()
    client.write(CPU(usage=0.5), 'some_db', 'autogen', measurement='cpu2')
    points, _, rp = client.conn.write.call_args.args
    assert [p.measurement for p in points] == ['cpu2']
    assert rp == 'autogen'


def test_write_to_unknown_retention_policy():
    client = make_client()
    with pytest.raises(jflux.UnknownRetentionPolicyError):
        client.write(CPU(usage=0.5), 'some_db', 'non_existent_rp')
    client.conn.write.assert_not_called()


def test_write_to_unknown_database():
    with pytest.raises(jflux.UnknownDatabaseError):
        make_client().write_points(jflux.Point('m', {}, {'v': 1}),
                                   'non_existent_db')


def test_get_all_points_decodes_objects():
    client = make_client()
    client.conn.query.return_value = [QueryResult(series=[
        Series('cpu', ['time', 'host', 'usage'], [[0, 'a', 0.5]])])]

    assert client.get_all_points(CPU, 'some_db') == [CPU('a', 0.5)]
    client.conn.query.assert_called_once_with('SELECT * FROM "cpu"',
                                              database='some_db',
                                              epoch=jflux.NANOSECONDS)


def test_get_all_points_returns_empty_list_if_no_results():
    client = make_client()
    client.conn.query.return_value = []
    assert client.get_all_points(CPU, 'some_db') == []
    assert client.get_all_points('non_existent_measurement', 'some_db') == []


def test_get_all_points_by_measurement_name():
    client = make_client()
    series = Series('m', ['time', 'v'], [[0, 1]])
    client.conn.query.return_value = [QueryResult(series=[series])]
    assert client.get_all_points('m', 'some_db') == [series]


def test_get_all_points_needs_a_database():
    with pytest.raises(jflux.NoDatabaseSelectedError):
        make_client().get_all_points(CPU)


def test_close_also_closes_connection():
    client = make_client()
    conn   = client.conn
    client.close()
    conn.close.assert_called_once_with()
    assert client.conn is None


def test_connection_failure_drops_connection():
    client = make_client()
    client.conn.execute.side_effect = jflux.JFluxConnectionError('gone')
    with pytest.raises(jflux.JFluxConnectionError):
        client.get_databases()
    assert client.conn is None


def test_server_error_keeps_connection():
    client = make_client()
    client.conn.execute.side_effect = jflux.InfluxClientError('bad', 400)
    with pytest.raises(jflux.InfluxClientError):
        client.get_databases()
    assert client.conn is not None


def test_connect_pings_server():
    with mock.patch.object(Connection, 'ping',
                           return_value=ServerInfo('OSS', '1.8.10')) as ping:
        with Client(host='db.local') as client:
            client.connect()
            assert client.conn.url == 'http://db.local:8086'
        ping.assert_called_once_with()
    assert client.conn is None


def response(status=200, payload=None, headers=None):
    rsp = mock.MagicMock()
    rsp.status_code = status
    rsp.json.return_value = payload if payload is not None else {}
    rsp.text = ''
    rsp.headers = headers or {}
    return rsp


def make_connection(*responses):
    conn = Connection(ssl=True, port=8087)
    conn.session = mock.MagicMock()
    conn.session.request.side_effect = list(responses)
    return conn


def test_connection_query():
    payload = {'results': [{'statement_id': 0, 'series': [
        {'name': 'cpu', 'columns': ['time', 'v'], 'values': [[1, 2]]}]}]}
    conn    = make_connection(response(payload=payload))

    results = conn.query('SELECT * FROM cpu', database='db', epoch='ms')

    conn.session.request.assert_called_once_with(
            'GET', 'https://127.0.0.1:8087/query', timeout=10,
            params={'q': 'SELECT * FROM cpu', 'db': 'db', 'epoch': 'ms'})
    assert results == [QueryResult(0, [Series('cpu', ['time', 'v'],
                                              [[1, 2]])])]


def test_connection_execute_raises_statement_errors():
    payload = {'results': [{'statement_id': 0, 'error': 'bad statement'}]}
    conn    = make_connection(response(payload=payload))
    with pytest.raises(jflux.QueryExecutionError):
        conn.execute('DROP NOTHING')


def test_connection_ping():
    conn = make_connection(response(status=204, headers={
        'X-Influxdb-Build': 'OSS', 'X-Influxdb-Version': '1.8.10'}))
    assert conn.ping() == ServerInfo('OSS', '1.8.10')


def test_connection_write_batches_by_precision():
    conn = make_connection(response(status=204), response(status=204))
    conn.write([jflux.Point('a', {}, {'v': 1}, 1),
                jflux.Point('b', {}, {'v': 2}, 2, 's'),
                jflux.Point('c', {}, {'v': 3}, 3)], 'db', 'rp')

    calls = conn.session.request.call_args_list
    assert len(calls) == 2
    assert calls[0].kwargs['params'] == {'db': 'db', 'precision': 'n',
                                         'rp': 'rp'}
    assert calls[0].kwargs['data'] == b'a v=1i 1\nc v=3i 3'
    assert calls[1].kwargs['params']['precision'] == 's'
    assert calls[1].kwargs['data'] == b'b v=2i 2'


def test_connection_http_error():
    conn = make_connection(response(status=404, payload={
        'error': 'database not found: "x"'}))
    with pytest.raises(jflux.InfluxClientError) as e:
        conn.write([jflux.Point('a', {}, {'v': 1})], 'x')
    assert e.value.status_code == 404
    assert str(e.value) == 'database not found: "x"'


def test_connection_transport_error():
    conn = make_connection(requests.ConnectionError('refused'))
    with pytest.raises(jflux.JFluxConnectionError):
        conn.ping()
