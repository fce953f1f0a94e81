# -*- coding: utf-8 -*-
"""WSGI integration. Wrap any WSGI application to get one access log
line per request:

.. code-block:: python

    from accesslog.wsgi import AccessLogMiddleware

    app = AccessLogMiddleware(app, format='combined')

The request is considered handled when the application returns its
response iterable, and complete when the server closes that iterable.
"""

from wsgiref.util import request_uri

from accesslog.logger import AccessLogger
from accesslog.record import RequestInfo, normalize_headers


DEFAULT_FORMAT = 'combined'
_CGI_HEADERS = ('CONTENT_TYPE', 'CONTENT_LENGTH')


def get_request_info(environ):
    "Build a :class:`~accesslog.record.RequestInfo` from a WSGI environ."
    headers = [(key[5:].replace('_', '-'), value)
               for key, value in environ.items()
               if key.startswith('HTTP_')]
    for key in _CGI_HEADERS:
        if environ.get(key):
            headers.append((key.replace('_', '-'), environ[key]))
    try:
        url = request_uri(environ)
    except KeyError:
        url = environ.get('PATH_INFO') or '/'
    protocol = environ.get('SERVER_PROTOCOL') or ''
    return RequestInfo(environ.get('REQUEST_METHOD', 'GET'),
                       url,
                       headers,
                       client_addr=environ.get('REMOTE_ADDR') or None,
                       http_version=protocol.partition('/')[2] or None)


def parse_status(status):
    "``'404 Not Found'`` becomes ``404``, unparseable values pass through."
    try:
        return int(status.split(None, 1)[0])
    except (ValueError, IndexError, AttributeError):
        return status


def is_not_found(exc):
    return getattr(exc, 'code', None) == 404


def log_error(logger, record, exc):
    """Log *record* as failed with *exc*. Servers answer an unhandled
    exception with a 500, so that is the status logged when the app
    raised before starting its response.
    """
    not_found = is_not_found(exc)
    if not not_found and record.response.status is None:
        record.response.status = 500
    return logger.on_error(record, not_found=not_found)


class LoggingIterable(object):
    """Wraps a WSGI response iterable, logging the request when the
    server closes it, or as an error if producing the body raises.
    """
    def __init__(self, app_iter, logger, record):
        self.app_iter = app_iter
        self.logger = logger
        self.record = record

    def __iter__(self):
        try:
            for chunk in self.app_iter:
                yield chunk
        except Exception as e:
            log_error(self.logger, self.record, e)
            raise

    def close(self):
        try:
            app_close = getattr(self.app_iter, 'close', None)
            if callable(app_close):
                app_close()
        finally:
            self.logger.on_response(self.record)


class AccessLogMiddleware(object):
    """WSGI middleware which drives an
    :class:`~accesslog.logger.AccessLogger` through each request.

    Args:
        app: The WSGI application to wrap.
        logger (AccessLogger): The logger to use. If omitted, one is
            built from the remaining keyword arguments, with
            ``format`` defaulting to ``"combined"``.

    Status codes and headers are captured from ``start_response``. An
    exception raised by the application is logged and reraised; one
    carrying ``code == 404`` (e.g., werkzeug's ``NotFound``) is logged
    with status 404, any other one with status 500 unless the app
    already started a response.
    """
    def __init__(self, app, logger=None, **kwargs):
        if logger is None:
            logger = AccessLogger(kwargs.pop('format', DEFAULT_FORMAT),
                                  **kwargs)
        elif kwargs:
            raise TypeError('unexpected keyword arguments with logger: %r'
                            % list(kwargs.keys()))
        self.app = app
        self.logger = logger

    def __call__(self, environ, start_response):
        logger = self.logger
        record = logger.start_request(get_request_info(environ))

        def _start_response(status, headers, exc_info=None):
            record.response.status = parse_status(status)
            record.response.headers = normalize_headers(headers)
            return start_response(status, headers, exc_info)

        try:
            app_iter = self.app(environ, _start_response)
        except Exception as e:
            log_error(logger, record, e)
            raise
        logger.after_handle(record)
        return LoggingIterable(app_iter, logger, record)

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s app=%r logger=%r>' % (cn, self.app, self.logger)
