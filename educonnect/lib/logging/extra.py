import inspect
import json
import logging
import string
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from .json import JSONEncoder
from .style import LogStyle

# LogRecord attributes; anything else on a record came in through extra={...}
ReservedKeys = frozenset({
    "args",
    "asctime",
    "color_message",
    "created",
    "exc_info",
    "exc_text",
    "exception",
    "filename",
    "funcName",
    "id",
    "levelname",
    "levelno",
    "lineno",
    "log_color",
    "message",
    "module",
    "msecs",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
})


class ExtraFormatter(logging.Formatter):
    """Formats with `base`, then appends the record's extras as JSON.

    The JSON is syntax-highlighted when the handler's stream is a TTY.
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None,
        datefmt: str | None = None,
        indent: bool | None = False,
        pyg_style: t.Type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        **kwargs: t.Any,
    ):
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs)
        self.pyg_style = pyg_style
        self.handler: logging.StreamHandler[t.TextIO] | None = None
        self.indent = bool(indent)
        self.encoder = JSONEncoder()

    def format(self, record: logging.LogRecord) -> str:
        if "color_message" in record.__dict__:
            record.msg = record.__dict__.pop("color_message")

        msg = record.getMessage()
        if "\n" in msg:
            # hang continuation lines under the first line of the message
            formatted = self.base.format(record)
            idx = formatted.find(msg)
            indent = " " * len([c for c in formatted[:idx] if c in string.printable])
            line, *lines = msg.splitlines()
            body = textwrap.indent("\n".join(lines), prefix=indent)
            record.msg = record.message = f"{line}\n{body}"
            record.args = None
        message = self.base.format(record)

        d = record.__dict__
        extra = {k: d[k] for k in d.keys() - ReservedKeys}
        if not extra:
            return message

        if self.handler is None:
            # the handler is not known at construction; it is our caller
            frame = inspect.currentframe()
            assert frame is not None and frame.f_back is not None and "self" in frame.f_back.f_locals, (
                "where are we called from?"
            )
            self.handler = frame.f_back.f_locals["self"]

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), default=self.encoder.default)
        stream = getattr(self.handler, "stream", None)
        do_color = not getattr(self.base, "no_color", False) and stream is not None and stream.isatty()
        if do_color:
            hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
            ps = hl(js, JsonLexer(), Terminal256Formatter(style=self.pyg_style), None)
        else:
            ps = js
        return message + " " + ps.strip()

    def __getattr__(self, name: str) -> t.Any:
        return getattr(self.base, name)
