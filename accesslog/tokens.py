# -*- coding: utf-8 -*-
"""accesslog comes with the familiar built-in *tokens* of Apache- and
morgan-style access logs. A token is a name bound to an *extractor*, a
function that computes the token's text from a
:class:`~accesslog.record.RequestSnapshot`.

Extractors are called as ``extractor(snapshot, args)``, where *args*
is the tuple of bracketed arguments from the format string (a single
empty string if none were given). Returning ``None`` marks the value as
absent; the formatter substitutes its placeholder.

+----------------+-------------------------------------------------+
|token           |value                                            |
+----------------+-------------------------------------------------+
|url             |path of the request URL                          |
|method          |request method                                   |
|response-time   |ms from request start to end, ``[digits]``       |
|total-time      |ms from request start to now, ``[digits]``       |
|date            |current time, ``[clf]``, ``[iso]`` or ``[web]``  |
|status          |response status code, colored for ``dev``        |
|referrer        |request referrer                                 |
|http-version    |HTTP version                                     |
|user-agent      |User-Agent request header                        |
|req             |named request header, ``[name]``                 |
|res             |named response header, ``[name]``                |
|content-length  |Content-Length response header, ``0`` by default |
|remote-addr     |client IP address                                |
|remote-user     |Basic-Auth username                              |
+----------------+-------------------------------------------------+

Both timing tokens are absent until the request has ended, so they
always render as placeholders in immediate mode. Their ``[digits]``
argument sets the decimal places (3 by default, at most 20). A digits
argument that is not a number in that range makes the token absent.
"""

import time
import base64
import datetime
from email.utils import formatdate
from urllib.parse import urlsplit

from boltons.timeutils import UTC, LocalTZ
from boltons.dictutils import FrozenDict

from accesslog.common import (COLOR_FORMAT,
                              ANSI_RESET,
                              STATUS_COLORS,
                              DEFAULT_HTTP_VERSION,
                              FORWARDED_FOR_HEADER,
                              FALLBACK_IP_HEADERS,
                              UnknownTokenError,
                              RegistryFrozenError)
from accesslog.formatutils import is_valid_token_name


DEFAULT_DIGITS = 3
MAX_DIGITS = 20
MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
          'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


class TokenRegistry(object):
    """A table mapping token names to extractor functions.

    Registries are filled at import or setup time, then frozen the
    first time a formatter is built against them. A frozen registry
    is only ever read, so any number of requests may resolve tokens
    through it concurrently. Use :meth:`copy` to get an unfrozen
    registry for custom tokens.

    >>> reg = TokenRegistry()
    >>> reg.register('hello', lambda snapshot, args: 'world')
    >>> reg.resolve('hello', None)
    'world'
    """
    def __init__(self, tokens=None):
        self._token_map = {}
        self.frozen = False
        items = tokens.items() if hasattr(tokens, 'items') else tokens
        for name, extractor in items or []:
            self.register(name, extractor)

    def register(self, name, extractor):
        if self.frozen:
            raise RegistryFrozenError('cannot register token %r, registry'
                                      ' is frozen (use copy())' % (name,))
        if not callable(extractor):
            raise TypeError('expected callable extractor for token %r,'
                            ' not %r' % (name, extractor))
        if not is_valid_token_name(name):
            raise ValueError('invalid token name %r: expected two or more'
                             ' word or hyphen characters' % (name,))
        self._token_map[name] = extractor

    def freeze(self):
        if not self.frozen:
            self._token_map = FrozenDict(self._token_map)
            self.frozen = True
        return self

    def copy(self):
        return self.__class__(self._token_map)

    def get(self, name):
        try:
            return self._token_map[name]
        except KeyError:
            raise UnknownTokenError(name)

    def resolve(self, name, snapshot, args=('',)):
        return self.get(name)(snapshot, tuple(args) or ('',))

    def names(self):
        return list(self._token_map)

    def __contains__(self, name):
        return name in self._token_map

    def __iter__(self):
        return iter(self._token_map)

    def __len__(self):
        return len(self._token_map)

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s frozen=%r tokens=%r>' % (cn, self.frozen, self.names())


def _get_arg(args, default=None):
    return (args[0] if args else '') or default


def _get_digits(args):
    try:
        digits = int(_get_arg(args, DEFAULT_DIGITS))
    except ValueError:
        return None
    if not 0 <= digits <= MAX_DIGITS:
        return None
    return digits


def format_clf_date(timestamp, local=False):
    """Formats *timestamp* as an Apache Common Log Format date, e.g.,
    ``10/Oct/2000:13:55:36 +0000``. Month names are always English,
    regardless of locale.
    """
    dt = datetime.datetime.fromtimestamp(timestamp,
                                         tz=LocalTZ if local else UTC)
    return '%02d/%s/%04d:%02d:%02d:%02d %s' % (dt.day, MONTHS[dt.month - 1],
                                              dt.year, dt.hour, dt.minute,
                                              dt.second, dt.strftime('%z'))


def format_iso_date(timestamp):
    "UTC, millisecond precision, e.g., ``2000-10-10T13:55:36.000Z``."
    dt = datetime.datetime.fromtimestamp(timestamp, tz=UTC)
    return '%s.%03dZ' % (dt.strftime('%Y-%m-%dT%H:%M:%S'),
                         dt.microsecond // 1000)


def format_web_date(timestamp):
    "RFC 1123, as used in HTTP, e.g., ``Tue, 10 Oct 2000 13:55:36 GMT``."
    return formatdate(timestamp, usegmt=True)


DATE_FORMATTERS = {'clf': format_clf_date,
                   'iso': format_iso_date,
                   'web': format_web_date}


def get_client_ip(headers):
    """Finds the originating client address in a mapping of lowercased
    request *headers*, or ``None``. ``X-Forwarded-For`` wins when
    present, and only its first (client-most) entry is used.
    """
    forwarded_for = headers.get(FORWARDED_FOR_HEADER)
    if forwarded_for:
        return forwarded_for.split(',')[0].strip() or None
    for name in FALLBACK_IP_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return None


def get_basic_auth_user(headers):
    "Username from a ``Basic`` Authorization header, or ``None``."
    header = headers.get('authorization')
    if not header or header[:6].lower() != 'basic ':
        return None
    try:
        decoded = base64.b64decode(header[6:].strip(), validate=True)
    except ValueError:
        return None
    return decoded.decode('utf-8', 'replace').split(':', 1)[0] or None


def get_url(snapshot, args):
    url = snapshot.request.url
    if not url:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not (parts.scheme and parts.netloc):
        return url
    return parts.path or '/'


def get_method(snapshot, args):
    return snapshot.request.method


def get_response_time(snapshot, args):
    digits = _get_digits(args)
    if snapshot.start_at is None or snapshot.end_at is None:
        return None
    if digits is None:
        return None
    ms = (snapshot.end_at - snapshot.start_at) * 1e3
    return '%.*f' % (digits, ms)


def get_total_time(snapshot, args):
    digits = _get_digits(args)
    if snapshot.start_at is None or snapshot.end_at is None:
        return None
    if digits is None:
        return None
    ms = (time.perf_counter() - snapshot.start_at) * 1e3
    return '%.*f' % (digits, ms)


def get_date(snapshot, args):
    try:
        date_formatter = DATE_FORMATTERS[_get_arg(args, 'web')]
    except KeyError:
        return None
    return date_formatter(time.time())


def _is_color_format(snapshot):
    return getattr(snapshot.options, 'format', None) == COLOR_FORMAT


def get_status(snapshot, args):
    status = snapshot.response.status or 200
    if isinstance(status, str):
        return status
    status = int(status)
    if not _is_color_format(snapshot):
        return '%d' % status
    color = ANSI_RESET
    for lower_bound, status_color in STATUS_COLORS:
        if status >= lower_bound:
            color = status_color
            break
    return '%s%d%s' % (color, status, ANSI_RESET)


def get_referrer(snapshot, args):
    req = snapshot.request
    return (req.referrer
            or req.get_header('referer')
            or req.get_header('referrer')
            or None)


def get_http_version(snapshot, args):
    return snapshot.request.http_version or DEFAULT_HTTP_VERSION


def get_user_agent(snapshot, args):
    return snapshot.request.get_header('user-agent') or None


def get_request_header(snapshot, args):
    name = _get_arg(args)
    if not name:
        return None
    return snapshot.request.get_header(name) or None


def get_response_header(snapshot, args):
    name = _get_arg(args)
    if not name:
        return None
    return snapshot.response.get_header(name) or None


def get_content_length(snapshot, args):
    return snapshot.response.get_header('content-length') or '0'


def get_remote_addr(snapshot, args):
    req = snapshot.request
    return get_client_ip(req.headers) or req.client_addr or None


def get_remote_user(snapshot, args):
    return get_basic_auth_user(snapshot.request.headers)


BUILTIN_TOKENS = [('url', get_url),
                  ('method', get_method),
                  ('response-time', get_response_time),
                  ('total-time', get_total_time),
                  ('date', get_date),
                  ('status', get_status),
                  ('referrer', get_referrer),
                  ('http-version', get_http_version),
                  ('user-agent', get_user_agent),
                  ('req', get_request_header),
                  ('res', get_response_header),
                  ('content-length', get_content_length),
                  ('remote-addr', get_remote_addr),
                  ('remote-user', get_remote_user)]


DEFAULT_REGISTRY = TokenRegistry(BUILTIN_TOKENS)


def register_token(name, extractor=None, registry=None):
    """Register *extractor* as token *name* in the default registry
    (or *registry*). Without an *extractor*, returns a decorator:

    .. code-block:: python

        @register_token('request-id')
        def get_request_id(snapshot, args):
            return snapshot.request.get_header('x-request-id')

    Must be called before the first logger is built on the registry.
    """
    registry = DEFAULT_REGISTRY if registry is None else registry
    if extractor is None:
        def _register_decorator(func):
            registry.register(name, func)
            return func
        return _register_decorator
    registry.register(name, extractor)
    return extractor
