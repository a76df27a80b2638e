"""
Attribute records, shared by classes, fields, methods and Code attributes.

Every attribute is ``u2 name_index, u4 length, u1[length]``; the subtypes
below read their own bodies, but the length consumed is always taken from
the header so an unusual body never shifts the records after it.
"""

from classdump import contiguous
from classdump.errors import MalformedContainer

HEADER_LENGTH = 6


class Attribute:
    name = None

    def __init__(self, data, pool):
        self.name_index = data.u2(0)
        self.length = data.u4(2)
        self.raw_length = HEADER_LENGTH + self.length
        # Bounds check up front; subtype parsers may read less than declared.
        self.body = data.raw(HEADER_LENGTH, self.length)
        self.parse(data.window(HEADER_LENGTH), pool)

    def parse(self, data, pool):
        pass

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} ({self.length} bytes)>"


class UnknownAttribute(Attribute):

    def __init__(self, data, pool, name):
        self.name = name
        super().__init__(data, pool)


class ConstantValue(Attribute):
    name = 'ConstantValue'

    def parse(self, data, pool):
        self.value_index = data.u2(0)
        self.value = pool.literal(self.value_index)


class SourceFile(Attribute):
    name = 'SourceFile'

    def parse(self, data, pool):
        self.filename = pool.utf8(data.u2(0))


class Signature(Attribute):
    name = 'Signature'

    def parse(self, data, pool):
        self.signature = pool.utf8(data.u2(0))


class Exceptions(Attribute):
    name = 'Exceptions'

    def parse(self, data, pool):
        count = data.u2(0)
        entries, _ = contiguous.build_sized(data.window(2), count, 2,
                                            lambda w: pool.class_entry(w.u2(0)))
        self.exceptions = [e.name(pool) for e in entries]
        for name in self.exceptions:
            pool.mark_class_used(name)


class Deprecated(Attribute):
    name = 'Deprecated'


class Synthetic(Attribute):
    name = 'Synthetic'


class ExceptionHandler:
    raw_length = 8

    def __init__(self, data, pool):
        self.start_pc = data.u2(0)
        self.end_pc = data.u2(2)
        self.handler_pc = data.u2(4)
        catch_index = data.u2(6)
        # 0 catches everything (finally blocks)
        self.catch_type = pool.class_entry(catch_index).name(pool) if catch_index else None


class Code(Attribute):
    name = 'Code'

    def parse(self, data, pool):
        self.max_stack = data.u2(0)
        self.max_locals = data.u2(2)
        code_length = data.u4(4)
        self.code = data.raw(8, code_length)

        table_offset = 8 + code_length
        handler_count = data.u2(table_offset)
        self.exception_table, table_length = contiguous.build(
            data.window(table_offset + 2), handler_count,
            lambda w: ExceptionHandler(w, pool))

        attributes_offset = table_offset + 2 + table_length
        count = data.u2(attributes_offset)
        self.attributes, attributes_length = contiguous.build(
            data.window(attributes_offset + 2), count,
            lambda w: build_attribute(w, pool))

        used = attributes_offset + 2 + attributes_length
        if used != self.length:
            raise MalformedContainer(
                f"Code attribute declares {self.length} bytes but contains {used}",
                offset=data.absolute(0), source=data.source)


ATTRIBUTE_TYPES = {
    cls.name: cls
    for cls in (ConstantValue, SourceFile, Signature, Exceptions, Deprecated, Synthetic, Code)
}


def build_attribute(data, pool):
    """Parse the attribute at the start of ``data``, picking the subtype by name."""
    name = pool.utf8(data.u2(0))
    cls = ATTRIBUTE_TYPES.get(name)
    if cls is None:
        return UnknownAttribute(data, pool, name)
    return cls(data, pool)


def find(attributes, cls):
    for attr in attributes:
        if isinstance(attr, cls):
            return attr
    return None
