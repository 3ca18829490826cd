# Copyright (c) 2020 by Phase Advanced Sensor Systems, Inc.
# All rights reserved.
import logging
import threading

from . import coercion
from . import point
from . import shapes


logger = logging.getLogger(__name__)


class PushQueue:
    '''
    Class to asynchronously push objects or points to an InfluxDB instance.
    Pushing points can take a nondeterministic length of time and by trying to
    push them synchronously you can introduce lots of jitter into your
    measurement loop.  This asynchronous queue allows the work to be performed
    in a separate thread so as not to disturb the measurement times.

    Objects are encoded when they are appended, so mapping errors are raised
    to the caller.  A batch that fails to write is logged and handed to
    error_cb together with the exception; it is not retried.
    '''
    def __init__(self, client, database, retention_policy=None,
                 push_cb=None, error_cb=None, precision=coercion.NANOSECONDS):
        self.client           = client
        self.database         = database
        self.retention_policy = retention_policy
        self.push_cb          = push_cb
        self.error_cb         = error_cb
        self.precision        = coercion.time_unit(precision)

        self.queue_cond = threading.Condition()
        self.queue      = []
        self.cookies    = []
        self.busy       = False
        self.thread     = None
        self.running    = False
        self.start()

    def start(self):
        assert not self.thread
        self.running = True
        self.thread  = threading.Thread(target=self._push_loop, daemon=True)
        self.thread.start()

    def _to_point(self, obj, measurement):
        if isinstance(obj, point.Point):
            return obj
        return point.encode(measurement or shapes.measurement_name(obj), obj,
                            self.precision)

    def append(self, obj, measurement=None, cookie=None):
        '''
        Append a single object or point to the push queue.
        '''
        p = self._to_point(obj, measurement)
        with self.queue_cond:
            self.queue.append(p)
            self.cookies.append(cookie)
            self.queue_cond.notify_all()

    def append_list(self, objs, measurement=None, cookies=None):
        '''
        Append a list of objects or points to the push queue.
        '''
        ps = [self._to_point(obj, measurement) for obj in objs]
        if cookies is None:
            cookies = [None] * len(ps)
        with self.queue_cond:
            self.queue   += ps
            self.cookies += cookies
            self.queue_cond.notify_all()

    def flush(self):
        '''
        Block until everything appended so far has been pushed or has failed.
        '''
        with self.queue_cond:
            while self.queue or self.busy:
                self.queue_cond.wait()

    def stop(self):
        '''
        Push the remaining points and stop the push thread.
        '''
        with self.queue_cond:
            self.running = False
            self.queue_cond.notify_all()
        self.thread.join()
        self.thread = None

    @staticmethod
    def _callback(cb, *args):
        # Runs on the push thread, which must outlive a failing callback.
        try:
            cb(*args)
        except Exception:
            logger.exception('Push queue callback %r failed', cb)

    def _push_loop(self):
        while True:
            with self.queue_cond:
                while not self.queue and self.running:
                    self.queue_cond.wait()
                if not self.queue:
                    return

                points       = self.queue
                cookies      = self.cookies
                self.queue   = []
                self.cookies = []
                self.busy    = True

            try:
                self.client.write_points(points, self.database,
                                         self.retention_policy)
            except Exception as e:
                logger.exception('Failed to push %u points to %s',
                                 len(points), self.database)
                if self.error_cb:
                    self._callback(self.error_cb, points, cookies, e)
            else:
                if self.push_cb:
                    for p, c in zip(points, cookies):
                        self._callback(self.push_cb, p, c)
            finally:
                with self.queue_cond:
                    self.busy = False
                    self.queue_cond.notify_all()
