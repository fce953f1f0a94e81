# -*- coding: utf-8 -*-

from accesslog.context import get_context, set_context

from accesslog.common import (PRESET_FORMATS,
                              FormatError,
                              UnknownTokenError,
                              RegistryFrozenError)
from accesslog.logger import AccessLogger, LoggerOptions
from accesslog.formatters import AccessFormatter, compile_template
from accesslog.formatutils import parse_format, TextSegment, TokenSegment
from accesslog.tokens import TokenRegistry, DEFAULT_REGISTRY, register_token
from accesslog.record import (RequestInfo,
                              ResponseInfo,
                              RequestRecord,
                              RequestSnapshot)
from accesslog.emitters import (StreamEmitter,
                                FileEmitter,
                                AggregateEmitter)
from accesslog.wsgi import AccessLogMiddleware
