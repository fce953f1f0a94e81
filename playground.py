# -*- coding: utf-8 -*-

from wsgiref.simple_server import make_server

from accesslog import AccessLogger, register_token
from accesslog.context import get_context


@register_token('request-id')
def get_request_id(snapshot, args):
    return snapshot.request.get_header('x-request-id')


def app(environ, start_response):
    if environ['PATH_INFO'] != '/':
        start_response('404 Not Found', [('Content-Type', 'text/plain')])
        return [b'nope']
    start_response('200 OK', [('Content-Type', 'text/plain'),
                              ('Content-Length', '1')])
    return [b'A']


get_context().add_note_handler(print)

dev_log = AccessLogger('dev')
id_log = AccessLogger(':request-id :method :url :status :total-time[1] ms',
                      stream='stderr')

server = make_server('127.0.0.1', 3000, dev_log.wsgi(id_log.wsgi(app)))
print('serving on http://127.0.0.1:3000/')
server.serve_forever()
