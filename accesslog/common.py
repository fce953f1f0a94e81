# -*- coding: utf-8 -*-

DEFAULT_PLACEHOLDER = '-'
DEFAULT_HTTP_VERSION = '1.1'


PRESET_FORMATS = {
    # Apache combined log format
    'combined': (':remote-addr - :remote-user [:date[clf]]'
                 ' ":method :url HTTP/:http-version"'
                 ' :status :res[content-length] ":referrer" ":user-agent"'),
    # Apache common log format
    'common': (':remote-addr - :remote-user [:date[clf]]'
               ' ":method :url HTTP/:http-version"'
               ' :status :res[content-length]'),
    'default': (':remote-addr - :remote-user [:date]'
                ' ":method :url HTTP/:http-version"'
                ' :status :res[content-length] ":referrer" ":user-agent"'),
    'short': (':remote-addr :remote-user :method :url HTTP/:http-version'
              ' :status :res[content-length] - :response-time ms'),
    'tiny': ':method :url :status :res[content-length] - :response-time ms',
    'dev': ':method :url :status :response-time ms - :res[content-length]',
}

COLOR_FORMAT = 'dev'

ANSI_RESET = '\x1b[0m'
ANSI_RED = '\x1b[31m'
ANSI_YELLOW = '\x1b[33m'
ANSI_CYAN = '\x1b[36m'
ANSI_GREEN = '\x1b[32m'

# lower bound of each status class, checked in order
STATUS_COLORS = ((500, ANSI_RED),
                 (400, ANSI_YELLOW),
                 (300, ANSI_CYAN),
                 (200, ANSI_GREEN))

FORWARDED_FOR_HEADER = 'x-forwarded-for'
FALLBACK_IP_HEADERS = ('forwarded-for',
                       'forwarded',
                       'x-real-ip',
                       'remote-addr',
                       'cf-connecting-ip',
                       'fastly-ip',
                       'akamai-requestip',
                       'true-client-ip',
                       'x-client-ip',
                       'x-remote-ip',
                       'http_x_forwarded_for',
                       'http_x_real_ip',
                       'http_remote_addr')


class FormatError(ValueError):
    pass


class UnknownTokenError(FormatError):
    def __init__(self, name, format_str=None):
        self.name = name
        self.format_str = format_str
        msg = 'unknown token %r' % (name,)
        if format_str is not None:
            msg += ' in format %r' % (format_str,)
        super(UnknownTokenError, self).__init__(msg)


class RegistryFrozenError(RuntimeError):
    pass


def get_preset(name):
    "Returns the format string for preset *name*, or ``None``."
    try:
        return PRESET_FORMATS.get(name)
    except TypeError:
        return None


def to_text(obj, encoding='utf-8'):
    if isinstance(obj, bytes):
        return obj.decode(encoding, 'replace')
    return str(obj)
