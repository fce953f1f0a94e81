# -*- coding: utf-8 -*-

import pytest

from accesslog.common import FormatError, UnknownTokenError, PRESET_FORMATS
from accesslog.context import AccessLogContext, get_context, set_context
from accesslog.formatters import AccessFormatter, compile_template
from accesslog.formatutils import parse_format
from accesslog.record import RequestInfo, ResponseInfo, RequestRecord
from accesslog.tokens import DEFAULT_REGISTRY, TokenRegistry, BUILTIN_TOKENS


def _snapshot(status=200, res_headers=None, **kw):
    req = RequestInfo(kw.pop('method', 'GET'),
                      kw.pop('url', 'http://localhost/foo'),
                      kw.pop('headers', None))
    record = RequestRecord(req, response=ResponseInfo(status, res_headers))
    record.start_at, record.end_at = 0.0, 0.012345
    return record.snapshot()


def test_literal_only_roundtrip():
    fmt = 'no tokens here'
    render = compile_template(parse_format(fmt))
    assert render({}) == fmt


def test_render_order_and_placeholder():
    render = compile_template(parse_format('[:a-b] :cd/:a-b :ef'))
    assert render({'a-b': 'x', 'cd': 'y', 'ef': 'z'}) == '[x] y/x z'
    assert render({'a-b': 'x'}) == '[x] -/x -'
    assert render({'a-b': None, 'cd': ''}) == '[-] /- -'


def test_custom_placeholder():
    render = compile_template(parse_format(':ab :cd'), placeholder='?')
    assert render({'ab': 1}) == '1 ?'


def test_render_keys_include_args():
    render = compile_template(parse_format(':req[a] :req[b] :req'))
    values = {'req[a]': 'A', 'req[b]': 'B', 'req': 'none'}
    assert render(values) == 'A B none'


def test_renderer_substitution_reconstructs():
    fmt = PRESET_FORMATS['combined']
    segments = parse_format(fmt)
    render = compile_template(segments)
    values = dict([(s.key, s.raw) for s in segments if s.kind == 'token'])
    assert render(values) == fmt
    assert render.segments == tuple(segments)


def test_formatter_presets():
    for name, fmt in PRESET_FORMATS.items():
        fmtr = AccessFormatter(name)
        assert fmtr.name == name
        assert fmtr.format_str == fmt
        assert fmtr.raw_format_str == name

    custom = AccessFormatter(':method :url')
    assert custom.name is None
    assert custom.format_str == ':method :url'
    assert repr(custom) == "AccessFormatter(':method :url')"


def test_formatter_tiny():
    fmtr = AccessFormatter('tiny')
    snap = _snapshot(res_headers={'content-length': '42'})
    assert fmtr(snap) == 'GET /foo 200 42 - 12.345 ms'


def test_formatter_absent_values():
    fmtr = AccessFormatter('tiny')
    snap = _snapshot(status=404)._replace(end_at=None)
    assert fmtr(snap) == 'GET /foo 404 - - - ms'


def test_formatter_quotes_verbatim():
    fmtr = AccessFormatter('":method" \':url\'')
    assert fmtr(_snapshot()) == '"GET" \'/foo\''


def test_formatter_setup_errors():
    with pytest.raises(FormatError):
        AccessFormatter('')
    with pytest.raises(FormatError):
        AccessFormatter(None)
    with pytest.raises(TypeError):
        AccessFormatter(b':method')
    with pytest.raises(TypeError):
        AccessFormatter(':method', placeholder=None)
    with pytest.raises(TypeError):
        AccessFormatter(':method', quoter=repr)

    with pytest.raises(UnknownTokenError) as exc_info:
        AccessFormatter(':method :bogus-token')
    assert exc_info.value.name == 'bogus-token'
    assert 'bogus-token' in str(exc_info.value)
    assert isinstance(exc_info.value, ValueError)


def test_unknown_token_does_not_freeze():
    reg = TokenRegistry(BUILTIN_TOKENS)
    with pytest.raises(UnknownTokenError):
        AccessFormatter(':nope', registry=reg)
    assert not reg.frozen
    AccessFormatter(':method', registry=reg)
    assert reg.frozen


def test_default_registry_frozen():
    AccessFormatter('dev')
    assert DEFAULT_REGISTRY.frozen


def test_duplicate_tokens_resolved_once():
    calls = []

    def counting(snapshot, args):
        calls.append(args)
        return 'n%s' % len(calls)

    reg = TokenRegistry([('count', counting)])
    fmtr = AccessFormatter(':count :count :count[x] :count', registry=reg)
    assert fmtr(_snapshot()) == 'n1 n1 n2 n1'
    assert calls == [('',), ('x',)]
    assert len(fmtr.tokens) == 4


def test_raising_extractor_is_noted():
    def broken(snapshot, args):
        raise RuntimeError('kaboom')

    notes = []
    old_ctx = get_context()
    ctx = set_context(AccessLogContext())
    ctx.add_note_handler(lambda name, message: notes.append((name, message)))
    try:
        reg = TokenRegistry([('broken', broken), ('method', BUILTIN_TOKENS[1][1])])
        fmtr = AccessFormatter(':method :broken', registry=reg)
        assert fmtr(_snapshot()) == 'GET -'
    finally:
        set_context(old_ctx)
    assert len(notes) == 1
    assert notes[0][0] == 'token_resolve'
    assert 'kaboom' in notes[0][1]


def test_non_text_values():
    reg = TokenRegistry([('num', lambda snapshot, args: 7)])
    assert AccessFormatter('n=:num', registry=reg)(_snapshot()) == 'n=7'
