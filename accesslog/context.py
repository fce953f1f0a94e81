# -*- coding: utf-8 -*-

ACCESSLOG_CONTEXT = None


def get_context():
    if ACCESSLOG_CONTEXT is None:
        return set_context(AccessLogContext())
    return ACCESSLOG_CONTEXT


def set_context(context):
    global ACCESSLOG_CONTEXT
    ACCESSLOG_CONTEXT = context
    return context


def note(name, message, *a, **kw):
    "Report an internal failure through the current context."
    return get_context().note(name, message, *a, **kw)


class AccessLogContext(object):
    def __init__(self, note_handlers=None):
        self.note_handlers = list(note_handlers or [])

    def note(self, name, message, *a, **kw):
        """Report a failure that must not reach the request being
        logged, e.g., a stream that refuses a write or a custom token
        that raises. *name* is a short category such as
        ``"stream_emit"``. Nothing happens without note handlers.
        """
        if not self.note_handlers:
            return
        if a:
            try:
                message = message % a
            except (TypeError, ValueError):
                message = '%s %r' % (message, a)
        for nh in self.note_handlers:
            nh(name, message)
        return

    def add_note_handler(self, handler):
        if not callable(handler):
            raise TypeError('expected callable note handler, not %r'
                            % (handler,))
        if handler not in self.note_handlers:
            self.note_handlers.append(handler)

    def remove_note_handler(self, handler):
        try:
            self.note_handlers.remove(handler)
        except ValueError:
            pass

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s note_handlers=%r>' % (cn, self.note_handlers)
