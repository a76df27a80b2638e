"""
Field and method records. Both share the ``field_info`` / ``method_info``
layout::

    u2 access_flags, u2 name_index, u2 descriptor_index,
    u2 attributes_count, attribute_info[attributes_count]
"""

from __future__ import annotations

import math
import struct
import weakref
from dataclasses import dataclass

from classdump import access, attributes, contiguous
from classdump.descriptors import (
    argument_slots, class_name_of, format_descriptor,
    parse_field_descriptor, parse_method_descriptor,
)
from classdump.errors import MethodAnalysisError

JAVA_ESCAPES = {
    '\b': '\\b', '\t': '\\t', '\n': '\\n', '\f': '\\f', '\r': '\\r',
    '"': '\\"', "'": "\\'", '\\': '\\\\',
}


def _escape(s, quote):
    out = []
    for ch in s:
        if ch in JAVA_ESCAPES and (ch not in '"\'' or ch == quote):
            out.append(JAVA_ESCAPES[ch])
        elif ord(ch) < 0x20 or 0x7F <= ord(ch) < 0xA0 or 0xD800 <= ord(ch) < 0xE000:
            out.append(f'\\u{ord(ch):04x}')
        else:
            out.append(ch)
    return quote + ''.join(out) + quote


def format_literal(value, desc):
    """Render a ConstantValue the way it would be written in Java source."""
    if desc == 'Ljava/lang/String;':
        return _escape(value, '"')
    if desc == 'Z':
        return 'true' if value else 'false'
    if desc == 'C':
        return _escape(chr(value), "'")
    if desc == 'J':
        return f'{value}L'
    if desc in ('F', 'D'):
        box = 'Float' if desc == 'F' else 'Double'
        if math.isnan(value):
            return f'{box}.NaN'
        if math.isinf(value):
            return f'{box}.POSITIVE_INFINITY' if value > 0 else f'{box}.NEGATIVE_INFINITY'
        return _float_text(value) + 'f' if desc == 'F' else repr(value)
    return str(value)


def _float_text(value):
    """Shortest decimal that reads back as the same 32-bit float."""
    for digits in range(1, 10):
        text = f'{value:.{digits}g}'
        if struct.unpack('>f', struct.pack('>f', float(text)))[0] == value:
            return repr(float(text))
    return repr(value)


class Member:
    """
    Shared layout of fields and methods. ``owner`` is the ClassFile being
    decoded; it is held weakly, so a member never keeps its class file alive.
    """
    flag_table = None

    def __init__(self, data, owner, pool):
        self._owner = weakref.ref(owner)
        self.access_flags = access.build(data.u2(0), self.flag_table)
        self.name_index = data.u2(2)
        self.name = pool.utf8(self.name_index)
        self.descriptor = pool.utf8(data.u2(4))
        count = data.u2(6)
        self.attributes, attributes_length = contiguous.build(
            data.window(8), count, lambda w: attributes.build_attribute(w, pool))
        self.raw_length = 8 + attributes_length

    @property
    def class_file(self):
        owner = self._owner()
        if owner is None:
            raise ReferenceError(f"class file owning {self.name} has been released")
        return owner

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}{self.descriptor}>"


class Field(Member):
    flag_table = access.FIELD_FLAGS

    def __init__(self, data, owner, pool):
        super().__init__(data, owner, pool)
        parse_field_descriptor(self.descriptor)
        type_name = class_name_of(self.descriptor)
        if type_name:
            pool.mark_class_used(type_name)
        self.constant_value = attributes.find(self.attributes, attributes.ConstantValue)

    def dump(self, d):
        pool = self.class_file.constant_pool
        text = access.render(self.access_flags, access.DUMPABLE_FIELD)
        text += f"{format_descriptor(self.descriptor, pool)} {self.name}"
        if self.constant_value is not None:
            text += ' = ' + format_literal(self.constant_value.value, self.descriptor)
        d.print(text + ";\n")


@dataclass(frozen=True)
class CodeSummary:
    code_length: int
    max_stack: int
    max_locals: int
    argument_slots: int
    exception_handlers: int

    def describe(self):
        text = (f"{self.code_length} bytes of bytecode, max_stack={self.max_stack}, "
                f"max_locals={self.max_locals}")
        if self.exception_handlers:
            text += f", {self.exception_handlers} exception handler(s)"
        return text


class Method(Member):
    flag_table = access.METHOD_FLAGS

    def __init__(self, data, owner, pool):
        super().__init__(data, owner, pool)
        self.params, self.return_type = parse_method_descriptor(self.descriptor)
        for t in self.params + [self.return_type]:
            type_name = class_name_of(t)
            if type_name:
                pool.mark_class_used(type_name)
        self.code = attributes.find(self.attributes, attributes.Code)
        exceptions = attributes.find(self.attributes, attributes.Exceptions)
        self.exceptions = exceptions.exceptions if exceptions else []
        self.analysis = None

    @property
    def is_bodyless(self):
        return 'abstract' in self.access_flags or 'native' in self.access_flags

    def signature_text(self, include_abstract=True):
        pool = self.class_file.constant_pool
        if self.name == '<clinit>':
            return 'static'

        flags = self.access_flags
        if not include_abstract:
            flags = flags - {'abstract'}
        text = access.render(flags, access.DUMPABLE_METHOD)

        args = []
        for i, p in enumerate(self.params):
            type_text = format_descriptor(p, pool)
            if 'varargs' in flags and i == len(self.params) - 1 and type_text.endswith('[]'):
                type_text = type_text[:-2] + '...'
            args.append(f"{type_text} arg{i}")

        if self.name == '<init>':
            text += self.class_file.class_type
        else:
            text += f"{format_descriptor(self.return_type, pool)} {self.name}"
        text += f"({', '.join(args)})"
        if self.exceptions:
            text += ' throws ' + ', '.join(pool.display_name(e) for e in self.exceptions)
        return text

    def analyse(self):
        """
        Check the method's Code attribute against its declaration and
        record a CodeSummary. Raises MethodAnalysisError on inconsistencies.
        """
        if self.is_bodyless:
            if self.code is not None:
                raise MethodAnalysisError("abstract or native method carries a Code attribute")
            return None
        if self.code is None:
            raise MethodAnalysisError("missing Code attribute")

        code_length = len(self.code.code)
        if code_length == 0:
            raise MethodAnalysisError("empty bytecode")

        slots = argument_slots(self.descriptor, 'static' in self.access_flags)
        if self.code.max_locals < slots:
            raise MethodAnalysisError(
                f"max_locals {self.code.max_locals} is less than the {slots} argument slot(s)")

        for h in self.code.exception_table:
            if not (h.start_pc < h.end_pc <= code_length) or h.handler_pc >= code_length:
                raise MethodAnalysisError(
                    f"exception handler [{h.start_pc}, {h.end_pc}) -> {h.handler_pc} "
                    f"outside {code_length} bytes of code")

        self.analysis = CodeSummary(
            code_length=code_length,
            max_stack=self.code.max_stack,
            max_locals=self.code.max_locals,
            argument_slots=slots,
            exception_handlers=len(self.code.exception_table),
        )
        return self.analysis

    def dump(self, d):
        signature = self.signature_text()
        if self.code is None:
            d.print(signature + ";\n")
            return
        d.print(signature + " {\n")
        with d.indent():
            if self.analysis is not None:
                d.print(f"// {self.analysis.describe()}\n")
            else:
                d.print(f"// {len(self.code.code)} bytes of bytecode, not analysed\n")
        d.print("}\n")
