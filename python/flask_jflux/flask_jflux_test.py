from unittest import mock

import pytest
from flask import Flask

import jflux
from flask_jflux import JFlux


def make_app(**config):
    app = Flask(__name__)
    app.config.update(config)
    return app


def test_client_uses_app_config():
    app = make_app(JFLUX_HOST='db.local', JFLUX_PORT='8087',
                   JFLUX_USERNAME='user', JFLUX_PASSWORD='secret',
                   JFLUX_DATABASE='metrics')
    ext = JFlux(app)

    with app.app_context():
        client = ext.client
        assert isinstance(client, jflux.Client)
        assert client.host == 'db.local'
        assert client.port == 8087
        assert client.credentials == ('user', 'secret')
        assert client.database == 'metrics'
        assert ext.client is client


def test_defaults():
    app = make_app()
    ext = JFlux()
    ext.init_app(app)

    assert app.config['JFLUX_PORT'] == '8086'
    with app.app_context():
        assert ext.client.credentials is None
        assert ext.client.host == 'localhost'


def test_teardown_closes_client():
    app = make_app()
    ext = JFlux(app)

    with mock.patch.object(jflux.Client, 'close') as close:
        with app.app_context():
            ext.client
        close.assert_called_once_with()


def test_client_needs_app_context():
    ext = JFlux(make_app())
    with pytest.raises(RuntimeError):
        ext.client
