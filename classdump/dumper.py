"""
Text sink used to render decoded classes.
"""

import io
from contextlib import contextmanager

INDENT = '    '


class Dumper:
    """
    Writes rendered text to ``stream`` (an in-memory buffer by default).

    ``newln()`` requests a soft line break: it is only written if more text
    follows, and only if the current line is not already empty. A pending
    soft break can be dropped with ``remove_pending_carriage_return()``.
    """

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else io.StringIO()
        self.at_start = True
        self.pending_cr = False
        self.depth = 0
        self.empty = True

    def print(self, text):
        if self.pending_cr:
            self.stream.write('\n')
            self.at_start = True
            self.pending_cr = False
        for piece in text.splitlines(keepends=True):
            if self.at_start and piece != '\n':
                self.stream.write(INDENT * self.depth)
            self.stream.write(piece)
            self.empty = False
            self.at_start = piece.endswith('\n')
        return self

    def newln(self):
        if not self.at_start:
            self.pending_cr = True
        return self

    def remove_pending_carriage_return(self):
        self.pending_cr = False
        return self

    def line(self):
        """Start on a fresh line, separated from anything before by a blank one."""
        if not self.empty:
            self.newln()
            self.print("\n")
        return self

    @contextmanager
    def indent(self):
        self.depth += 1
        try:
            yield self
        finally:
            self.depth -= 1

    def flush(self):
        """Write out a pending soft line break, e.g. at the end of a listing."""
        if self.pending_cr:
            self.stream.write('\n')
            self.at_start = True
            self.pending_cr = False
        return self

    def getvalue(self):
        return self.flush().stream.getvalue()
