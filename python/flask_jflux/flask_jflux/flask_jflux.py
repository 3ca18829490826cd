# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
import jflux
from flask import current_app, g, has_app_context


_no_jflux_msg = '''\
No JFlux connection is present.

This means that something has overwritten g.jflux_client.
'''


class JFlux:
    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.config.setdefault('JFLUX_HOST', 'localhost')
        app.config.setdefault('JFLUX_PORT', '8086')
        app.config.setdefault('JFLUX_USERNAME', None)
        app.config.setdefault('JFLUX_PASSWORD', None)
        app.config.setdefault('JFLUX_SSL', False)
        app.config.setdefault('JFLUX_DATABASE', None)
        app.teardown_appcontext(self.teardown)

    @staticmethod
    def connect():
        username = current_app.config['JFLUX_USERNAME']
        password = current_app.config['JFLUX_PASSWORD']
        if username is None or password is None:
            credentials = None
        else:
            credentials = (username, password)

        return jflux.Client(
            host=current_app.config['JFLUX_HOST'],
            port=int(current_app.config['JFLUX_PORT']),
            credentials=credentials,
            ssl=bool(current_app.config['JFLUX_SSL']),
            database=current_app.config['JFLUX_DATABASE'])

    @staticmethod
    def teardown(_exc):
        client = g.pop('jflux_client', None)
        if client is not None:
            client.close()

    @property
    def client(self):
        if not has_app_context():
            raise RuntimeError('Working outside of application context.')

        if 'jflux_client' not in g:
            g.jflux_client = JFlux.connect()

        if g.jflux_client is None:
            raise RuntimeError(_no_jflux_msg)

        return g.jflux_client
