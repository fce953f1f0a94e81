# -*- coding: utf-8 -*-

import io
import errno
import threading

import pytest

from accesslog import AccessLogger
from accesslog.context import AccessLogContext, get_context, set_context
from accesslog.emitters import (StreamEmitter,
                                FileEmitter,
                                AggregateEmitter,
                                get_emitter)
from accesslog.record import RequestInfo


def _log_n(log, count, url='http://localhost/yäy'):
    for i in range(count):
        record = log.start_request(RequestInfo('GET', '%s%s' % (url, i)))
        log.on_response(record)


def test_aggregate_emitter():
    aggr_emtr = AggregateEmitter(limit=3)
    log = AccessLogger(':url', stream=aggr_emtr)
    _log_n(log, 5)
    assert len(aggr_emtr) == 3
    assert aggr_emtr.get_entry(-1) == '/yäy4'
    assert aggr_emtr.get_entries()[0].endswith('2')
    assert 'limit=3' in repr(aggr_emtr)
    aggr_emtr.clear()
    assert not aggr_emtr.get_entries()


def test_bad_encoding():
    with pytest.raises(LookupError):
        StreamEmitter(io.BytesIO(), encoding='nope')


def test_bad_encoding_error_fallback():
    with pytest.raises(LookupError):
        StreamEmitter(io.BytesIO(), errors='badvalue')


def test_not_a_stream():
    with pytest.raises(TypeError):
        StreamEmitter(object())
    with pytest.raises(TypeError):
        StreamEmitter(io.BytesIO(), sep='\r\n', reopen_stale=True)


def test_stream_types():
    examples = [io.BytesIO(), io.StringIO()]
    for example_stream in examples:
        log = AccessLogger(':method :url', stream=example_stream)
        _log_n(log, 201)
        contents = example_stream.getvalue()
        if isinstance(contents, bytes):
            contents = contents.decode('utf8')
        lines = contents.splitlines()
        assert len(lines) == 201
        assert lines[0] == u'GET /yäy0'
        assert lines[-1] == u'GET /yäy200'


def test_custom_sep():
    buf = io.StringIO()
    emitter = StreamEmitter(buf, sep='\r\n')
    emitter.emit_entry(None, 'one')
    emitter.emit_entry(None, 'two')
    assert buf.getvalue() == 'one\r\ntwo\r\n'


def test_get_emitter():
    aggr = AggregateEmitter()
    assert get_emitter(aggr) is aggr
    assert isinstance(get_emitter(io.StringIO()), StreamEmitter)
    assert isinstance(get_emitter('stderr'), StreamEmitter)
    assert isinstance(get_emitter(None), StreamEmitter)


def test_write_failure_is_noted_not_raised():
    class StaleFile(io.BytesIO):
        def write(self, data):
            exc = IOError('stale file handle')
            exc.errno = errno.ESTALE
            raise exc

    notes = []
    old_ctx = get_context()
    set_context(AccessLogContext([lambda name, msg: notes.append(name)]))
    try:
        stream = StaleFile()
        log = AccessLogger('tiny', stream=stream)
        _log_n(log, 3)
    finally:
        set_context(old_ctx)
    assert notes == ['stream_emit'] * 3
    assert stream.getvalue() == b''


def test_flush_failure_is_noted():
    class NoFlush(io.StringIO):
        broken = True

        def flush(self):
            if self.broken:
                raise OSError('cannot flush')

    notes = []
    old_ctx = get_context()
    set_context(AccessLogContext([lambda name, msg: notes.append(name)]))
    try:
        stream = NoFlush()
        log = AccessLogger(':method', stream=stream)
        _log_n(log, 1)
    finally:
        set_context(old_ctx)
    stream.broken = False
    assert notes == ['stream_flush']
    assert stream.getvalue() == 'GET\n'


def test_concurrent_writes_do_not_interleave():
    class SlowStream(object):
        def __init__(self):
            self.chunks = []

        def write(self, data):
            # split each write in two to expose interleaving
            half = len(data) // 2
            self.chunks.append(data[:half])
            self.chunks.append(data[half:])

    stream = SlowStream()
    log = AccessLogger(':method :url', stream=stream)

    def worker(i):
        _log_n(log, 50, url='http://localhost/t%s/' % i)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = ''.join(stream.chunks).splitlines()
    assert len(lines) == 400
    for line in lines:
        assert line.startswith('GET /t')


def test_file_emitter(tmpdir):
    path = '%s/access.log' % (tmpdir,)

    def get_logger(emitter):
        return AccessLogger(':method :url :status', stream=emitter)

    def _chk_linecount(count):
        with io.open(path, encoding='utf-8') as f:
            assert len(f.read().splitlines()) == count

    fe = FileEmitter(path)
    logger = get_logger(fe)
    _log_n(logger, 203)
    _chk_linecount(203)

    fe_over = FileEmitter(path, overwrite=True)
    logger_over = get_logger(fe_over)
    _log_n(logger_over, 22)
    _chk_linecount(22)

    fe_over.close()
    fe_over.close()
    assert fe_over.stream is None

    _log_n(logger, 23)
    _chk_linecount(45)
    fe.close()
