# -*- coding: utf-8 -*-
"""Tokenizing for access log format strings.

A format string is plain text with embedded tokens. A token is a colon
followed by a name of two or more word or hyphen characters, optionally
followed by a bracketed, comma-separated argument list:

>>> [seg.raw for seg in parse_format(':method :res[content-length]')]
['', ':method', ' ', ':res[content-length]', '']

Text between tokens is preserved exactly, so joining every segment's
``raw`` text always reproduces the original format string.
"""

import re


_token_re = re.compile(r':([-\w]{2,})(?:\[([^\]]+)\])?')

TEXT = 'text'
TOKEN = 'token'


class TextSegment(object):
    """A run of literal text between tokens. May be empty."""
    kind = TEXT
    __slots__ = ('literal',)

    def __init__(self, literal):
        object.__setattr__(self, 'literal', literal)

    def __setattr__(self, name, value):
        raise AttributeError('%s is immutable' % self.__class__.__name__)

    @property
    def raw(self):
        return self.literal

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.literal == other.literal)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((TEXT, self.literal))

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.literal)


class TokenSegment(object):
    """A reference to a named token, plus its arguments.

    *args* is always a non-empty tuple. A token written without
    brackets carries a single empty string, which extractors treat as
    "no argument supplied".
    """
    kind = TOKEN
    __slots__ = ('name', 'args', 'raw')

    def __init__(self, name, args=('',), raw=None):
        args = tuple(args) or ('',)
        if raw is None:
            raw = ':' + name
            if args != ('',):
                raw += '[%s]' % ','.join(args)
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'args', args)
        object.__setattr__(self, 'raw', raw)

    def __setattr__(self, name, value):
        raise AttributeError('%s is immutable' % self.__class__.__name__)

    @property
    def key(self):
        "Identity of this token's value within a single request."
        if self.args == ('',):
            return self.name
        return '%s[%s]' % (self.name, ','.join(self.args))

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.name == other.name
                and self.args == other.args)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((TOKEN, self.name, self.args))

    def __repr__(self):
        cn = self.__class__.__name__
        return '%s(%r, %r)' % (cn, self.name, self.args)


def parse_format(format_str):
    """Split *format_str* into an ordered list of
    :class:`TextSegment` and :class:`TokenSegment` instances.

    A text segment precedes every token, and one always trails the
    final token, even when empty.
    """
    ret, pos = [], 0
    for match in _token_re.finditer(format_str):
        ret.append(TextSegment(format_str[pos:match.start()]))
        name, arg_str = match.group(1), match.group(2)
        args = [a.strip() for a in (arg_str or '').strip().split(',')]
        ret.append(TokenSegment(name.strip(), args, raw=match.group()))
        pos = match.end()
    ret.append(TextSegment(format_str[pos:]))
    return ret


def get_token_segments(segments):
    return [seg for seg in segments if seg.kind == TOKEN]


def is_valid_token_name(name):
    "Whether the parser would ever produce a token named *name*."
    match = _token_re.match(':' + name)
    return bool(match) and match.group(1) == name
