# -*- coding: utf-8 -*-
"""The :class:`RequestRecord` holds the state of one in-flight request,
as seen by the access logger: when it started and ended, what was
asked for, and what was answered. Records are owned by the request
that created them and are never shared.

Token extractors never see a live record. At the moment logging is
triggered, the record is copied into a :class:`RequestSnapshot`, which
does not change afterward.
"""

import time
from collections import namedtuple

from boltons.dictutils import FrozenDict

from accesslog.common import to_text


STARTED, HANDLING, ENDED, LOGGED = 'started', 'handling', 'ended', 'logged'


def normalize_headers(headers):
    """Returns a new dict of *headers* with lowercased names. Accepts a
    mapping or an iterable of ``(name, value)`` pairs. Repeated names
    are joined with ``", "``, as HTTP allows.
    """
    ret = {}
    if not headers:
        return ret
    items = headers.items() if hasattr(headers, 'items') else headers
    for name, value in items:
        name, value = to_text(name).lower(), to_text(value)
        if name in ret:
            ret[name] = ret[name] + ', ' + value
        else:
            ret[name] = value
    return ret


class RequestInfo(object):
    """The inbound half of a request: method, URL, and headers.

    Args:
        method (str): Request method, e.g., ``"GET"``.
        url (str): The request URL, preferably absolute.
        headers: Mapping or pairs of request headers. Names are
            matched case-insensitively.
        referrer (str): Referrer, when the host tracks it apart from
            the headers.
        client_addr (str): Address of the connected peer, if known.
        http_version (str): Negotiated protocol version, e.g., ``"1.0"``.
    """
    def __init__(self, method, url, headers=None, **kwargs):
        self.method = method
        self.url = url
        self.headers = normalize_headers(headers)
        self.referrer = kwargs.pop('referrer', None)
        self.client_addr = kwargs.pop('client_addr', None)
        self.http_version = kwargs.pop('http_version', None)
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r'
                            % list(kwargs.keys()))

    def get_header(self, name, default=None):
        return self.headers.get(name.lower(), default)

    def frozen(self):
        ret = RequestInfo(self.method, self.url,
                          referrer=self.referrer,
                          client_addr=self.client_addr,
                          http_version=self.http_version)
        ret.headers = FrozenDict(self.headers)
        return ret

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s %s %r>' % (cn, self.method, self.url)


class ResponseInfo(object):
    """The outbound half: status code and headers. The status is
    ``None`` until the host sets it."""
    def __init__(self, status=None, headers=None):
        self.status = status
        self.headers = normalize_headers(headers)

    def get_header(self, name, default=None):
        return self.headers.get(name.lower(), default)

    def set_header(self, name, value):
        self.headers[to_text(name).lower()] = to_text(value)

    def frozen(self):
        ret = ResponseInfo(self.status)
        ret.headers = FrozenDict(self.headers)
        return ret

    def __repr__(self):
        return '<%s status=%r>' % (self.__class__.__name__, self.status)


RequestSnapshot = namedtuple('RequestSnapshot',
                             'request response options'
                             ' start_at start_time end_at end_time')


class RequestRecord(object):
    """Mutable per-request logging state, moving through the states
    ``started``, ``handling``, ``ended``, and ``logged``.

    Start timestamps are captured on creation: ``start_at`` from
    :func:`time.perf_counter` for elapsed-time math, ``start_time``
    from :func:`time.time` for the wall clock. :meth:`end` does the
    same for the end timestamps, exactly once.
    """
    def __init__(self, request, options=None, response=None):
        self.request = request
        self.response = response if response is not None else ResponseInfo()
        self.options = options

        self.start_at = time.perf_counter()
        self.start_time = time.time()
        self.end_at = None
        self.end_time = None
        self.state = STARTED

    @property
    def is_ended(self):
        return self.end_at is not None

    @property
    def is_logged(self):
        return self.state == LOGGED

    def mark_handling(self):
        if self.state == STARTED:
            self.state = HANDLING

    def end(self):
        if self.end_at is None:
            self.end_at = time.perf_counter()
            self.end_time = time.time()
        if self.state != LOGGED:
            self.state = ENDED
        return self

    def mark_logged(self):
        self.state = LOGGED

    def snapshot(self):
        return RequestSnapshot(request=self.request.frozen(),
                               response=self.response.frozen(),
                               options=self.options,
                               start_at=self.start_at,
                               start_time=self.start_time,
                               end_at=self.end_at,
                               end_time=self.end_time)

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s %r %s>' % (cn, self.request, self.state)
