# -*- coding: utf-8 -*-
"""Implements types and functions for rendering
:class:`~accesslog.record.RequestSnapshot` instances into access log
lines.
"""

from boltons.iterutils import unique

from accesslog.common import (DEFAULT_PLACEHOLDER,
                              FormatError,
                              UnknownTokenError,
                              get_preset,
                              to_text)
from accesslog.context import note
from accesslog.formatutils import TEXT, parse_format, get_token_segments
from accesslog.tokens import DEFAULT_REGISTRY


__all__ = ['AccessFormatter', 'compile_template']


def compile_template(segments, placeholder=DEFAULT_PLACEHOLDER):
    """Turns parsed *segments* into a renderer, a function which takes a
    mapping of token keys to values and returns the finished line.

    Literal text is copied as-is and tokens are substituted in the
    order they were parsed. Values that are ``None`` or missing from
    the mapping are rendered as *placeholder*.

    >>> render = compile_template(parse_format(':method :url'))
    >>> render({'method': 'GET'})
    'GET -'

    All of the work of walking the segments happens here, once. The
    renderer itself only does lookups and a join, and keeps no state
    between calls.
    """
    parts = []
    for seg in segments:
        if seg.kind == TEXT:
            if not seg.literal:
                continue
            if parts and parts[-1][0] == TEXT:
                parts[-1] = (TEXT, parts[-1][1] + seg.literal)
            else:
                parts.append((TEXT, seg.literal))
        else:
            parts.append((seg.kind, seg.key))
    parts = tuple(parts)

    def render(values):
        ret = []
        for kind, val in parts:
            if kind == TEXT:
                ret.append(val)
                continue
            value = values.get(val)
            if value is None:
                ret.append(placeholder)
            else:
                ret.append(value if isinstance(value, str)
                           else to_text(value))
        return ''.join(ret)

    render.segments = tuple(segments)
    return render


class AccessFormatter(object):
    """The ``AccessFormatter`` renders request snapshots into text, based
    on a format string of ``:token`` references, e.g., ``":method :url
    :status"``, or the name of one of the presets in
    :data:`~accesslog.common.PRESET_FORMATS`.

    Args:
        format_str (str): The format string or preset name.
        registry (TokenRegistry): Registry to look up tokens in.
            Defaults to the built-in
            :data:`~accesslog.tokens.DEFAULT_REGISTRY`. The registry
            is frozen once the formatter is built.
        placeholder (str): Text rendered in place of absent
            values. Defaults to ``"-"``.

    Every token is checked against the registry up front. An unknown
    token raises :exc:`~accesslog.common.UnknownTokenError` here, not
    when a request is being logged.
    """
    def __init__(self, format_str, **kwargs):
        registry = kwargs.pop('registry', None)
        placeholder = kwargs.pop('placeholder', DEFAULT_PLACEHOLDER)
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r'
                            % list(kwargs.keys()))
        if not format_str:
            raise FormatError('expected format string or preset name, not %r'
                              % (format_str,))
        if not isinstance(format_str, str):
            raise TypeError('expected format string or preset name, not %r'
                            % (format_str,))
        if not isinstance(placeholder, str):
            raise TypeError('expected text placeholder, not %r'
                            % (placeholder,))
        if registry is None:
            registry = DEFAULT_REGISTRY

        preset = get_preset(format_str)
        self.name = format_str if preset else None
        self.raw_format_str = format_str
        self.format_str = preset or format_str
        self.placeholder = placeholder

        self.segments = parse_format(self.format_str)
        self.tokens = get_token_segments(self.segments)
        for token in self.tokens:
            if token.name not in registry:
                raise UnknownTokenError(token.name, self.format_str)

        self.registry = registry.freeze()
        # one extractor call per distinct token per request
        self._extractors = [(t.key, self.registry.get(t.name), t.args)
                            for t in unique(self.tokens, key=lambda t: t.key)]
        self.renderer = compile_template(self.segments, placeholder)
        return

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.raw_format_str)

    def resolve(self, snapshot):
        """Returns a dict mapping each distinct token key in the format
        to its value for *snapshot*. Extractors that raise are noted and
        their value treated as absent.
        """
        ret = {}
        for key, extractor, args in self._extractors:
            try:
                value = extractor(snapshot, args)
            except Exception as e:
                note('token_resolve', 'got %r resolving token %r for %r',
                     e, key, snapshot)
                value = None
            ret[key] = value
        return ret

    def format(self, snapshot):
        return self.renderer(self.resolve(snapshot))

    __call__ = format
