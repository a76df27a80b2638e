"""
Exception types raised while decoding, looking up and analysing class files.
"""


class ClassDumpError(Exception):
    pass


class DecodeError(ClassDumpError):
    """A class file could not be decoded. No partial model survives this."""

    def __init__(self, message, offset=None, source=None):
        self.message = message
        self.offset = offset
        self.source = source
        super().__init__(self._describe())

    def _describe(self):
        text = self.message
        if self.offset is not None:
            text += f" (at offset 0x{self.offset:X})"
        if self.source:
            text = f"{self.source}: {text}"
        return text


class MalformedContainer(DecodeError):
    pass


class UnresolvedSymbol(DecodeError):
    pass


class NotFound(ClassDumpError, LookupError):

    def __init__(self, name):
        self.name = name
        super().__init__(name)


class MethodAnalysisError(ClassDumpError):
    pass


class AnalysisFailed(ClassDumpError):
    """One or more methods failed analysis; raised after all were attempted."""

    def __init__(self, failures):
        self.failures = list(failures)
        lines = [f"{o.name}: {o.error}" for o in self.failures]
        super().__init__(f"Failed to analyse {len(lines)} method(s)\n" + '\n'.join(lines))
