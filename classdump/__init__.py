"""
Decode compiled Java class files into a structural model and render them
back as Java declarations.
"""

from classdump.bytedata import ByteData
from classdump.classfile import AnalysisOutcome, ClassFile, ClassKind, Layout
from classdump.dumper import Dumper
from classdump.errors import (
    AnalysisFailed, ClassDumpError, DecodeError, MalformedContainer,
    MethodAnalysisError, NotFound, UnresolvedSymbol,
)
from classdump.options import Options

__version__ = '0.1.0'


def decode(data, source=None):
    """Decode ``data`` (bytes or a ByteData) into a ClassFile."""
    return ClassFile(data, source=source)
