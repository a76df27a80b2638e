import pytest

from classbuilder import ClassBuilder
from classdump import ByteData, Dumper, MalformedContainer, UnresolvedSymbol
from classdump.constant_pool import ConstantPool


def parse(builder):
    return ConstantPool(ByteData(bytes(builder.pool)), builder.count)


def test_entries_and_length():
    b = ClassBuilder('a/B')
    b.integer(-3)
    b.long(1 << 33)
    b.double(2.5)
    b.string('hello')
    b.methodref('a/B', 'run', '()V')
    pool = parse(b)

    assert pool.raw_length == len(b.pool)
    assert len(pool) == b.count - 1
    assert list(pool.constants('Integer')) == [-3]
    assert list(pool.constants('Long')) == [1 << 33]
    assert list(pool.constants('Double')) == [2.5]
    assert list(pool.constants('String')) == ['hello']


def test_typed_resolution():
    b = ClassBuilder('a/B')
    long_index = b.long(7)
    pool = parse(b)

    assert pool.class_entry(b.this_index).name(pool) == 'a/B'
    assert pool.literal(long_index) == 7
    for bad in (0, long_index + 1, b.count, 60000):
        with pytest.raises(UnresolvedSymbol):
            pool.entry(bad)
    with pytest.raises(UnresolvedSymbol, match='expected Class'):
        pool.class_entry(b.utf8('a/B'))
    with pytest.raises(UnresolvedSymbol):
        pool.literal(b.this_index)


def test_lookups_are_counted():
    b = ClassBuilder('a/B')
    pool = parse(b)

    pool.utf8(b.utf8('a/B'))
    pool.class_entry(b.this_index)
    assert pool.lookups == 2


def test_unknown_tag():
    data = ByteData(b'\x01\x00\x01x\x02\x00\x00', source='X.class')
    with pytest.raises(MalformedContainer) as exc:
        ConstantPool(data, 3)
    assert exc.value.offset == 4
    assert 'Unknown constant pool tag 2' in str(exc.value)


def test_truncated_pool():
    with pytest.raises(MalformedContainer):
        ConstantPool(ByteData(b'\x01\x00\x05ab'), 2)


def test_ambiguous_simple_names_stay_qualified():
    b = ClassBuilder('app/Main')
    b.class_ref('java/util/List')
    b.class_ref('java/awt/List')
    b.class_ref('java/util/Map')
    b.class_ref('[Ljava/util/Set;')
    pool = parse(b)

    assert pool.display_name('java/util/List') == 'java.util.List'
    assert pool.display_name('java/awt/List') == 'java.awt.List'
    assert pool.display_name('java/util/Map') == 'Map'

    d = Dumper()
    pool.dump_imports(d, 'app/Main')
    assert d.getvalue() == "import java.util.Map;\n\n"


def test_marked_classes_are_imported():
    b = ClassBuilder('app/Main')
    pool = parse(b)
    pool.mark_class_used('app/model/User')
    pool.mark_class_used('app/Helper')

    d = Dumper()
    assert pool.dump_imports(d, 'app/Main') == 1
    assert d.getvalue() == "import app.model.User;\n\n"


def test_modified_utf8():
    # NUL as C0 80, U+1F600 as a pair of 3-byte surrogate halves.
    pool = ConstantPool(ByteData(b'\x01\x00\x08\xc0\x80\xed\xa0\xbd\xed\xb8\x80'), 2)
    assert pool.utf8(1) == '\x00\U0001F600'


def test_invalid_utf8_bytes():
    with pytest.raises(MalformedContainer, match='modified UTF-8'):
        ConstantPool(ByteData(b'\x01\x00\x01\xff'), 2)


def test_class_entry_must_name_utf8():
    # Integer 7, then a Class entry pointing at it.
    data = ByteData(b'\x03\x00\x00\x00\x07\x07\x00\x01', source='X.class')
    with pytest.raises(UnresolvedSymbol, match='expected Utf8'):
        ConstantPool(data, 3)


def test_nested_classes_import_their_outer_class():
    b = ClassBuilder('app/Main')
    pool = parse(b)
    pool.mark_class_used('com/lib/Outer$Inner')
    pool.mark_class_used('com/lib/Outer')
    pool.mark_class_used('app/Main$Node')

    assert pool.display_name('com/lib/Outer$Inner') == 'Outer.Inner'
    assert pool.display_name('app/Main$Node') == 'Main.Node'
    d = Dumper()
    assert pool.dump_imports(d, 'app/Main') == 1
    assert d.getvalue() == "import com.lib.Outer;\n\n"
