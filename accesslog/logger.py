# -*- coding: utf-8 -*-
"""The :class:`AccessLogger` is the application developer's primary
interface to accesslog. Built once per application, it turns the
lifecycle of each request into exactly one access log line, and hands
that line to an emitter.

A host server or framework drives the logger through four hooks:

* :meth:`AccessLogger.start_request` when a request arrives
* :meth:`AccessLogger.after_handle` when the handler is done
* :meth:`AccessLogger.on_response` when the response has been sent
* :meth:`AccessLogger.on_error` when handling failed

See :mod:`accesslog.wsgi` for a ready-made WSGI integration.
"""

from collections import namedtuple

from accesslog.common import FormatError
from accesslog.context import note
from accesslog.emitters import get_emitter
from accesslog.formatters import AccessFormatter
from accesslog.record import RequestRecord


LoggerOptions = namedtuple('LoggerOptions', 'format immediate stream skip')

_FORMATTER_KWARGS = ('registry', 'placeholder')


class AccessLogger(object):
    """Logs one line per request, rendered from a format string.

    Args:
        format (str): A format string such as ``":method :url :status"``,
            or a preset name: ``"combined"``, ``"common"``,
            ``"default"``, ``"short"``, ``"tiny"``, or ``"dev"``.
            Required.
        immediate (bool): Log as soon as the request arrives, instead
            of when the response is sent. Response data and timings
            will not be available. Defaults to ``False``.
        stream: Where lines go. An emitter (any object with an
            ``emit_entry()`` method), a writable stream, or ``"stdout"``
            or ``"stderr"``. Defaults to stdout.
        skip (callable): Called with the
            :class:`~accesslog.record.RequestSnapshot` before anything
            is rendered. Returning ``True`` drops the line.
        registry (TokenRegistry): Token registry for custom tokens.
        placeholder (str): Text for absent values. Defaults to ``"-"``.

    The format is parsed, checked, and compiled here. An unknown token
    or missing format raises :exc:`~accesslog.common.FormatError`, and
    no logger is created.

    >>> from accesslog.emitters import AggregateEmitter
    >>> log = AccessLogger('tiny', stream=AggregateEmitter())
    """
    formatter_type = AccessFormatter
    record_type = RequestRecord

    def __init__(self, format=None, **kwargs):
        immediate = kwargs.pop('immediate', False)
        stream = kwargs.pop('stream', None)
        skip = kwargs.pop('skip', None)
        fmtr_kwargs = dict([(k, kwargs.pop(k)) for k in _FORMATTER_KWARGS
                            if k in kwargs])
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r'
                            % list(kwargs.keys()))
        if not format:
            raise FormatError('access log format is not defined')
        if skip is not None and not callable(skip):
            raise TypeError('expected callable for skip, not %r' % (skip,))

        self.formatter = self.formatter_type(format, **fmtr_kwargs)
        self.emitter = get_emitter(stream)
        self.options = LoggerOptions(format=format,
                                     immediate=bool(immediate),
                                     stream=stream,
                                     skip=skip)

    @classmethod
    def from_dict(cls, config):
        """Build an AccessLogger from a mapping of options, e.g., a
        section of an application's configuration file. Keys are the
        same as the constructor's keyword arguments.
        """
        kwargs = dict(config)
        return cls(kwargs.pop('format', None), **kwargs)

    @property
    def immediate(self):
        return self.options.immediate

    def start_request(self, request):
        """Start tracking *request*, a
        :class:`~accesslog.record.RequestInfo`. Returns the
        :class:`~accesslog.record.RequestRecord` to pass to the
        remaining hooks.
        """
        record = self.record_type(request, options=self.options)
        if self.options.immediate:
            self.log_request(record)
        record.mark_handling()
        return record

    def after_handle(self, record):
        record.end()
        return record

    def on_response(self, record):
        if self.options.immediate or record.is_logged:
            return None
        record.end()
        return self.log_request(record)

    def on_error(self, record, not_found=False):
        if not_found:
            record.response.status = 404
        if self.options.immediate or record.is_logged:
            return None
        record.end()
        return self.log_request(record)

    def log_request(self, record):
        """Render *record* and emit the line, unless the skip predicate
        says otherwise. Returns the line, or ``None`` when skipped. A
        record is only ever logged once.
        """
        snapshot = record.snapshot()
        record.mark_logged()
        if self._should_skip(snapshot):
            return None
        line = self.formatter.format(snapshot)
        self.emitter.emit_entry(snapshot, line)
        return line

    def format_line(self, target):
        "Render a record or snapshot without emitting it."
        snapshot = target.snapshot() if hasattr(target, 'snapshot') else target
        return self.formatter.format(snapshot)

    def wsgi(self, app):
        "Wrap WSGI *app* so that its requests are logged by this logger."
        from accesslog.wsgi import AccessLogMiddleware
        return AccessLogMiddleware(app, logger=self)

    def _should_skip(self, snapshot):
        skip = self.options.skip
        if skip is None:
            return False
        try:
            return bool(skip(snapshot))
        except Exception as e:
            note('skip', 'got %r calling skip predicate %r', e, skip)
        return False

    def __repr__(self):
        cn = self.__class__.__name__
        return ('<%s format=%r immediate=%r emitter=%r>'
                % (cn, self.options.format, self.options.immediate,
                   self.emitter))
