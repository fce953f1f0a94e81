# -*- coding: utf-8 -*-
"""Emitters are objects which take a finished access log line in
*text-form* and output it to a persistence resource, such as
stdout/stderr, files, or in-memory buffers.

Any object with an ``emit_entry(snapshot, entry)`` method can serve as
an emitter.
"""

import io
import os
import sys
import codecs
import threading
from collections import deque

from accesslog.context import note


DEFAULT_SEP = '\n'
DEFAULT_ENCODING = 'utf-8'


class EncodingLookupError(LookupError):
    pass


class ErrorBehaviorLookupError(LookupError):
    pass


def check_encoding_settings(encoding, errors):
    try:
        codecs.lookup(encoding)
    except LookupError as le:
        raise EncodingLookupError(le.args[0])
    try:
        codecs.lookup_error(errors)
    except LookupError as le:
        raise ErrorBehaviorLookupError(le.args[0])
    return True


def _is_binary_stream(stream):
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    if isinstance(stream, io.TextIOBase):
        return False
    mode = getattr(stream, 'mode', None)
    return isinstance(mode, str) and 'b' in mode


class AggregateEmitter(object):
    "Keeps emitted lines in memory, up to *limit* of the most recent."
    def __init__(self, limit=None):
        self._limit = limit
        self.items = deque(maxlen=limit)

    def get_entries(self):
        return [entry for snapshot, entry in self.items]

    def get_entry(self, idx):
        return self.items[idx][1]

    def clear(self):
        self.items.clear()

    def emit_entry(self, snapshot, entry):
        self.items.append((snapshot, entry))

    def __len__(self):
        return len(self.items)

    def __repr__(self):
        cn = self.__class__.__name__
        args = (cn, self._limit, len(self.items))
        msg = '<%s limit=%r entry_count=%r>' % args
        return msg


class StreamEmitter(object):
    '''Writes lines to a stream, be it a console stream (shortcut values
    ``"stdout"`` and ``"stderr"``), an in-memory buffer, or a file object.

    Binary streams get encoded lines, text streams get text. Each line
    and its separator go out in a single ``write()`` call, followed by a
    flush if the stream supports one. Writes are serialized, so many
    requests can share one emitter.

    Write and flush errors are noted (see :func:`accesslog.context.note`),
    never raised, and never retried: the line is lost, the request is
    unaffected.

    Avoid using StreamEmitter directly when you have a file path for
    your log file. Use FileEmitter instead.
    '''
    def __init__(self, stream='stdout', encoding=None, **kwargs):
        errors = kwargs.pop('errors', 'backslashreplace')
        self.sep = kwargs.pop('sep', DEFAULT_SEP)
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r'
                            % list(kwargs.keys()))
        if stream in ('stdout', 'stderr'):
            stream = getattr(sys, stream)
        if not callable(getattr(stream, 'write', None)):
            raise TypeError('%s expected writable stream, or shortcut'
                            ' values "stderr" or "stdout", not: %r'
                            % (self.__class__.__name__, stream))
        self.binary = _is_binary_stream(stream)
        if encoding is None:
            encoding = DEFAULT_ENCODING
            if not self.binary:
                encoding = getattr(stream, 'encoding', None) or encoding
        check_encoding_settings(encoding, errors)  # raises on error

        self.stream = stream
        self.encoding = encoding
        self.errors = errors
        self._lock = threading.Lock()

    def emit_entry(self, snapshot, entry):
        data = entry + self.sep if self.sep else entry
        if self.binary:
            data = data.encode(self.encoding, self.errors)
        with self._lock:
            try:
                self.stream.write(data)
            except Exception as e:
                note('stream_emit', 'got %r on %r.emit_entry()', e, self)
                return
            self.flush()
        return

    def flush(self):
        stream_flush = getattr(self.stream, 'flush', None)
        if not callable(stream_flush):
            return
        try:
            stream_flush()
        except Exception as e:
            note('stream_flush', 'got %r on %r.flush()', e, self)

    def __repr__(self):
        return '<%s stream=%r>' % (self.__class__.__name__, self.stream)


class FileEmitter(StreamEmitter):
    """
    The convenient and correct way to write access logs to a file when
    you have a path available. Appends unless *overwrite* is set.
    """
    def __init__(self, filepath, encoding=DEFAULT_ENCODING, **kwargs):
        self.filepath = os.path.abspath(filepath)
        mode = 'ab' if not kwargs.pop('overwrite', False) else 'wb'
        stream = io.open(self.filepath, mode)
        super(FileEmitter, self).__init__(stream, encoding=encoding, **kwargs)

    def close(self):
        with self._lock:
            if self.stream is None:
                return
            try:
                self.flush()
                self.stream.close()
            except Exception as e:
                note('file_close', 'got %r on %r.close()', e, self)
            self.stream = None


def get_emitter(stream=None):
    """Returns an emitter for *stream*: emitters are returned as-is,
    writable objects and the ``"stdout"``/``"stderr"`` shortcuts are
    wrapped in a :class:`StreamEmitter`, and ``None`` means stdout.
    """
    if stream is None:
        return StreamEmitter('stdout')
    if callable(getattr(stream, 'emit_entry', None)):
        return stream
    return StreamEmitter(stream)
