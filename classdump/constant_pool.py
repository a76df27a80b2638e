"""
The constant pool: the indexed table of names, type references and literals
that every other structure in a class file points into.
"""

import logging

from classdump.errors import MalformedContainer, UnresolvedSymbol

log = logging.getLogger(__name__)

JAVA_LANG = 'java/lang'


def decode_modified_utf8(raw):
    """
    Class files store strings as "modified UTF-8": NUL is written as C0 80 and
    characters above U+FFFF as two 3-byte surrogate halves.
    """
    s = raw.replace(b'\xc0\x80', b'\x00').decode('utf-8', errors='surrogatepass')
    # Join surrogate pairs; lone halves are kept as they are.
    return s.encode('utf-16-be', 'surrogatepass').decode('utf-16-be', 'surrogatepass')


def source_name(internal_name):
    """``a/b/Outer$Inner`` -> ``a.b.Outer.Inner``"""
    return internal_name.replace('/', '.').replace('$', '.')


def simple_name(internal_name):
    return source_name(internal_name.rsplit('/', 1)[-1])


class PoolEntry:
    __slots__ = ('kind', 'args')

    def __init__(self, kind, *args):
        self.kind = kind
        self.args = args

    @property
    def value(self):
        return self.args[0]

    def __repr__(self):
        return f"{self.kind}{self.args!r}"


class ClassEntry(PoolEntry):
    __slots__ = ()

    def __init__(self, name_index):
        super().__init__('Class', name_index)

    @property
    def name_index(self):
        return self.args[0]

    def name(self, pool):
        return pool.utf8(self.name_index)

    def type_name(self, pool):
        return pool.display_name(self.name(pool))


class ConstantPool:
    """
    Parse ``count - 1`` pool slots from ``data`` (a window starting at the
    first entry). Long and Double constants take two slots; the second one
    holds None and cannot be resolved.
    """

    def __init__(self, data, count):
        self.source = data.source
        self.entries = [None]  # 1-indexed
        self.lookups = 0
        self._marked = set()
        self._simple_counts = None

        pos = 0
        i = 1
        while i < count:
            tag = data.u1(pos)
            pos += 1
            if tag == 1:  # Utf8
                length = data.u2(pos)
                try:
                    s = decode_modified_utf8(data.raw(pos + 2, length))
                except UnicodeDecodeError:
                    raise MalformedContainer(f"Invalid modified UTF-8 in constant pool entry {i}",
                                             offset=data.absolute(pos + 2),
                                             source=self.source) from None
                pos += 2 + length
                self.entries.append(PoolEntry('Utf8', s))
            elif tag == 3:
                self.entries.append(PoolEntry('Integer', data.s4(pos)))
                pos += 4
            elif tag == 4:
                self.entries.append(PoolEntry('Float', data.f4(pos)))
                pos += 4
            elif tag == 5:
                self.entries.append(PoolEntry('Long', data.s8(pos)))
                pos += 8
                i += 1
                self.entries.append(None)
            elif tag == 6:
                self.entries.append(PoolEntry('Double', data.f8(pos)))
                pos += 8
                i += 1
                self.entries.append(None)
            elif tag == 7:
                self.entries.append(ClassEntry(data.u2(pos)))
                pos += 2
            elif tag == 8:
                self.entries.append(PoolEntry('String', data.u2(pos)))
                pos += 2
            elif tag == 9:
                self.entries.append(PoolEntry('Fieldref', data.u2(pos), data.u2(pos + 2)))
                pos += 4
            elif tag == 10:
                self.entries.append(PoolEntry('Methodref', data.u2(pos), data.u2(pos + 2)))
                pos += 4
            elif tag == 11:
                self.entries.append(PoolEntry('InterfaceMethodref', data.u2(pos), data.u2(pos + 2)))
                pos += 4
            elif tag == 12:
                self.entries.append(PoolEntry('NameAndType', data.u2(pos), data.u2(pos + 2)))
                pos += 4
            elif tag == 15:
                self.entries.append(PoolEntry('MethodHandle', data.u1(pos), data.u2(pos + 1)))
                pos += 3
            elif tag == 16:
                self.entries.append(PoolEntry('MethodType', data.u2(pos)))
                pos += 2
            elif tag == 17:
                self.entries.append(PoolEntry('Dynamic', data.u2(pos), data.u2(pos + 2)))
                pos += 4
            elif tag == 18:
                self.entries.append(PoolEntry('InvokeDynamic', data.u2(pos), data.u2(pos + 2)))
                pos += 4
            elif tag == 19:
                self.entries.append(PoolEntry('Module', data.u2(pos)))
                pos += 2
            elif tag == 20:
                self.entries.append(PoolEntry('Package', data.u2(pos)))
                pos += 2
            else:
                raise MalformedContainer(f"Unknown constant pool tag {tag}",
                                         offset=data.absolute(pos - 1), source=self.source)
            i += 1

        self.raw_length = pos
        self._check_class_names()
        log.debug("constant pool: %d slots, %d bytes", count - 1, pos)

    def _check_class_names(self):
        # Every Class entry must name a Utf8 entry, so resolving one can't fail later.
        for index, entry in enumerate(self.entries):
            if entry is None or entry.kind != 'Class':
                continue
            name_index = entry.name_index
            target = self.entries[name_index] if 0 < name_index < len(self.entries) else None
            if target is None or target.kind != 'Utf8':
                found = target.kind if target is not None else 'nothing'
                raise UnresolvedSymbol(
                    f"Class entry {index} names constant pool index {name_index}, "
                    f"which is {found}, expected Utf8", source=self.source)

    def __len__(self):
        return len(self.entries) - 1

    def entry(self, index, kind=None):
        """Resolve a 1-based index, optionally requiring a particular entry kind."""
        self.lookups += 1
        if index < 1 or index >= len(self.entries) or self.entries[index] is None:
            raise UnresolvedSymbol(f"Constant pool index {index} does not name an entry",
                                   source=self.source)
        entry = self.entries[index]
        if kind is not None and entry.kind != kind:
            raise UnresolvedSymbol(f"Constant pool index {index} is {entry.kind}, expected {kind}",
                                   source=self.source)
        return entry

    def class_entry(self, index):
        return self.entry(index, 'Class')

    def utf8(self, index):
        return self.entry(index, 'Utf8').value

    def literal(self, index):
        """The Python value of a loadable literal (for ConstantValue attributes)."""
        entry = self.entry(index)
        if entry.kind == 'String':
            return self.utf8(entry.value)
        if entry.kind in ('Integer', 'Float', 'Long', 'Double'):
            return entry.value
        raise UnresolvedSymbol(f"Constant pool index {index} is {entry.kind}, not a literal",
                               source=self.source)

    def constants(self, kind):
        """Yield the values of every literal entry of ``kind`` in pool order."""
        for entry in self.entries:
            if entry is None or entry.kind != kind:
                continue
            if kind == 'String':
                yield self.utf8(entry.value)
            else:
                yield entry.value

    # Referenced class tracking, used for imports and name shortening.

    def mark_class_used(self, internal_name):
        if internal_name not in self._marked:
            self._marked.add(internal_name)
            self._simple_counts = None

    def referenced_classes(self):
        names = set(self._marked)
        for entry in self.entries:
            if entry is not None and entry.kind == 'Class':
                name = self.utf8(entry.name_index)
                if not name.startswith('['):  # Skip array types
                    names.add(name)
        return names

    def display_name(self, internal_name):
        """Simple name of a class, or its dotted name if the simple one is ambiguous."""
        simple = simple_name(internal_name)
        if self._simple_counts is None:
            counts = {}
            for name in self.referenced_classes():
                short = simple_name(name)
                counts[short] = counts.get(short, 0) + 1
            self._simple_counts = counts
        if self._simple_counts.get(simple, 0) > 1:
            return source_name(internal_name)
        return simple

    def dump_imports(self, d, this_class=None):
        """
        Import the top-level class of everything referenced; nested classes
        are then written as ``Outer.Inner``.
        """
        this_package = this_class.rsplit('/', 1)[0] if this_class and '/' in this_class else None
        this_outer = this_class.split('$', 1)[0] if this_class else None
        outers = {name.split('$', 1)[0] for name in self.referenced_classes()}
        imported = 0
        for name in sorted(outers):
            if '/' not in name or name == this_outer:
                continue
            package = name.rsplit('/', 1)[0]
            if package == JAVA_LANG or package == this_package:
                continue
            if self.display_name(name) != simple_name(name):
                continue  # ambiguous, referenced fully qualified instead
            d.print(f"import {source_name(name)};\n")
            imported += 1
        if imported:
            d.print("\n")
        return imported
