"""
Decode a whole class file into a structural model and render it back as a
Java declaration.

The fixed header gives the first offsets; everything after the constant
pool is located by adding up the lengths of the sections before it::

    u4 magic, u2 minor, u2 major, u2 cp_count, cp_info[cp_count - 1],
    u2 access_flags, u2 this_class, u2 super_class,
    u2 interfaces_count, u2 interfaces[interfaces_count],
    u2 fields_count, field_info[fields_count],
    u2 methods_count, method_info[methods_count],
    u2 attributes_count, attribute_info[attributes_count]
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass

from classdump import access, attributes, contiguous
from classdump.bytedata import ByteData
from classdump.constant_pool import ConstantPool
from classdump.errors import AnalysisFailed, MalformedContainer, NotFound
from classdump.members import Field, Method
from classdump.options import Options

log = logging.getLogger(__name__)

MAGIC = 0xCAFEBABE

OFFSET_OF_MAGIC = 0
OFFSET_OF_MINOR = 4
OFFSET_OF_MAJOR = 6
OFFSET_OF_CONSTANT_POOL_COUNT = 8
OFFSET_OF_CONSTANT_POOL = 10


class ClassKind(enum.Enum):
    INTERFACE = 'interface'
    CLASS = 'class'


@dataclass(frozen=True)
class Layout:
    """Absolute offset of every section, as computed while decoding."""
    access_flags: int
    this_class: int
    super_class: int
    interfaces_count: int
    interfaces: int
    fields_count: int
    fields: int
    methods_count: int
    methods: int
    attributes_count: int
    attributes: int
    end: int


@dataclass(frozen=True)
class AnalysisOutcome:
    name: str
    descriptor: str
    summary: object = None
    error: Exception | None = None

    @property
    def ok(self):
        return self.error is None


class ClassFile:

    def __init__(self, data, source=None):
        if not isinstance(data, ByteData):
            data = ByteData(data, source=source)
        self.source = data.source

        magic = data.u4(OFFSET_OF_MAGIC)
        if magic != MAGIC:
            raise MalformedContainer(f"Magic 0x{magic:08X} != 0xCAFEBABE",
                                     offset=OFFSET_OF_MAGIC, source=self.source)

        self.minor_version = data.u2(OFFSET_OF_MINOR)
        self.major_version = data.u2(OFFSET_OF_MAJOR)
        constant_pool_count = data.u2(OFFSET_OF_CONSTANT_POOL_COUNT)
        self.constant_pool = pool = ConstantPool(data.window(OFFSET_OF_CONSTANT_POOL),
                                                 constant_pool_count)

        # From here on offsets depend on the length of everything before them.
        offset_of_access_flags = OFFSET_OF_CONSTANT_POOL + pool.raw_length
        offset_of_this_class = offset_of_access_flags + 2
        offset_of_super_class = offset_of_this_class + 2
        offset_of_interfaces_count = offset_of_super_class + 2
        offset_of_interfaces = offset_of_interfaces_count + 2

        self.access_flags = access.build(data.u2(offset_of_access_flags), access.CLASS_FLAGS)
        self.is_interface = 'interface' in self.access_flags
        self.kind = ClassKind.INTERFACE if self.is_interface else ClassKind.CLASS

        num_interfaces = data.u2(offset_of_interfaces_count)
        self.interfaces, interfaces_length = contiguous.build_sized(
            data.window(offset_of_interfaces), num_interfaces, 2,
            lambda w: pool.class_entry(w.u2(0)))

        offset_of_fields_count = offset_of_interfaces + interfaces_length
        offset_of_fields = offset_of_fields_count + 2
        num_fields = data.u2(offset_of_fields_count)
        self.fields, fields_length = contiguous.build(
            data.window(offset_of_fields), num_fields,
            lambda w: Field(w, self, pool))

        offset_of_methods_count = offset_of_fields + fields_length
        offset_of_methods = offset_of_methods_count + 2
        num_methods = data.u2(offset_of_methods_count)
        self.methods, methods_length = contiguous.build(
            data.window(offset_of_methods), num_methods,
            lambda w: Method(w, self, pool))

        offset_of_attributes_count = offset_of_methods + methods_length
        offset_of_attributes = offset_of_attributes_count + 2
        num_attributes = data.u2(offset_of_attributes_count)
        self.attributes, attributes_length = contiguous.build(
            data.window(offset_of_attributes), num_attributes,
            lambda w: attributes.build_attribute(w, pool))

        self.layout = Layout(
            access_flags=offset_of_access_flags,
            this_class=offset_of_this_class,
            super_class=offset_of_super_class,
            interfaces_count=offset_of_interfaces_count,
            interfaces=offset_of_interfaces,
            fields_count=offset_of_fields_count,
            fields=offset_of_fields,
            methods_count=offset_of_methods_count,
            methods=offset_of_methods,
            attributes_count=offset_of_attributes_count,
            attributes=offset_of_attributes,
            end=offset_of_attributes + attributes_length,
        )
        log.debug("%s: %s", self.source or '<bytes>', self.layout)

        self.this_class = pool.class_entry(data.u2(offset_of_this_class))
        super_class_index = data.u2(offset_of_super_class)
        # Only java/lang/Object has no superclass.
        self.super_class = pool.class_entry(super_class_index) if super_class_index else None

        self._fields_by_name = None  # Lazily populated if interrogated.
        self._methods_by_name = None
        self._index_lock = threading.Lock()

    @classmethod
    def from_path(cls, filepath):
        return cls(ByteData.from_path(filepath))

    def __repr__(self):
        return f"<ClassFile {self.class_name} {self.major_version}.{self.minor_version}>"

    @property
    def class_name(self):
        """Internal name of this class, e.g. ``java/lang/String``."""
        return self.this_class.name(self.constant_pool)

    @property
    def super_class_name(self):
        return self.super_class.name(self.constant_pool) if self.super_class else None

    @property
    def interface_names(self):
        return [i.name(self.constant_pool) for i in self.interfaces]

    @property
    def class_type(self):
        name = self.class_name
        if '$' in name.rsplit('/', 1)[-1]:
            # A nested class declares itself by its innermost name.
            return name.rsplit('$', 1)[-1]
        return self.this_class.type_name(self.constant_pool)

    @property
    def version(self):
        return self.major_version, self.minor_version

    # Name lookup. The maps are built from the declaration-ordered lists on
    # first use; duplicate simple names resolve to the last declaration.

    def _index(self, members):
        pool = self.constant_pool
        return {pool.utf8(m.name_index): m for m in members}

    def get_field_by_name(self, name):
        if self._fields_by_name is None:
            with self._index_lock:
                if self._fields_by_name is None:
                    self._fields_by_name = self._index(self.fields)
        try:
            return self._fields_by_name[name]
        except KeyError:
            raise NotFound(name) from None

    def get_method_by_name(self, name):
        if self._methods_by_name is None:
            with self._index_lock:
                if self._methods_by_name is None:
                    self._methods_by_name = self._index(self.methods)
        try:
            return self._methods_by_name[name]
        except KeyError:
            raise NotFound(name) from None

    def get_methods_by_name(self, name):
        """Every overload called ``name``, in declaration order."""
        return [m for m in self.methods if m.name == name]

    # Analysis

    def analyse_methods(self, options=None):
        """
        Analyse each selected method in declaration order. A failing method
        does not stop the others; its outcome carries the error instead.
        """
        options = options or Options()
        outcomes = []
        for method in self.methods:
            if not options.should_analyse(method.name):
                continue
            try:
                summary = method.analyse()
            except Exception as e:
                log.debug("Exception analysing %s", method.name, exc_info=True)
                outcomes.append(AnalysisOutcome(method.name, method.descriptor, error=e))
            else:
                outcomes.append(AnalysisOutcome(method.name, method.descriptor, summary))
        return outcomes

    def analyse_top(self, options=None):
        options = options or Options()
        outcomes = self.analyse_methods(options)
        failures = [o for o in outcomes if not o.ok]
        for o in failures:
            log.error("Exception analysing %s: %s", o.name, o.error)
        if failures and options.raise_on_failure:
            raise AnalysisFailed(failures)
        return outcomes

    # Rendering

    def _dump_type_list(self, d, keyword, entries):
        if not entries:
            return
        d.print(keyword + " ")
        pool = self.constant_pool
        size = len(entries)
        for x, entry in enumerate(entries):
            d.print(entry.type_name(pool) + (",\n" if x < size - 1 else "\n"))

    def _dump_interface_header(self, d):
        d.print(access.render(self.access_flags, access.DUMPABLE_INTERFACE)
                + f"interface {self.class_type}\n")
        self._dump_type_list(d, "extends", self.interfaces)
        d.remove_pending_carriage_return()

    def _dump_class_header(self, d):
        d.print(access.render(self.access_flags, access.DUMPABLE_CLASS)
                + f"class {self.class_type}\n")
        if self.super_class is not None:
            d.print(f"extends {self.super_class.type_name(self.constant_pool)}\n")
        self._dump_type_list(d, "implements", self.interfaces)
        d.remove_pending_carriage_return()

    def _dump_preamble(self, d):
        d.line()
        d.print("// Imports\n")
        self.constant_pool.dump_imports(d, self.class_name)

    def dump_as_interface(self, d):
        self._dump_preamble(d)
        self._dump_interface_header(d)
        d.print("{\n")
        with d.indent():
            if self.methods:
                d.print("// Methods\n")
                for meth in self.methods:
                    d.newln()
                    d.print(meth.signature_text(include_abstract=False) + ";")
            d.newln()
        d.print("}\n")

    def dump_as_class(self, d):
        self._dump_preamble(d)
        self._dump_class_header(d)
        d.print("{\n")
        with d.indent():
            if self.fields:
                d.print("// Fields\n")
                for field in self.fields:
                    field.dump(d)
            if self.methods:
                d.print("// Methods\n")
                for meth in self.methods:
                    d.newln()
                    meth.dump(d)
            d.newln()
        d.print("}\n")

    def dump(self, d):
        if self.kind is ClassKind.INTERFACE:
            self.dump_as_interface(d)
        else:
            self.dump_as_class(d)
