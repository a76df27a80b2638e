import math
import struct

import pytest

from classbuilder import ClassBuilder
from classdump import ClassFile, Dumper, MalformedContainer, MethodAnalysisError
from classdump.descriptors import (
    argument_slots, class_name_of, format_descriptor, parse_method_descriptor,
)
from classdump.members import format_literal


def test_parse_method_descriptor():
    params, ret = parse_method_descriptor('(I[JLjava/lang/String;[[Ljava/util/Map;Z)V')
    assert params == ['I', '[J', 'Ljava/lang/String;', '[[Ljava/util/Map;', 'Z']
    assert ret == 'V'


@pytest.mark.parametrize('desc', ['I)V', '(Ljava/lang/String)V', '(Q)V', '()', '([)V'])
def test_malformed_method_descriptor(desc):
    with pytest.raises(MalformedContainer):
        parse_method_descriptor(desc)


def test_format_descriptor():
    assert format_descriptor('I') == 'int'
    assert format_descriptor('[[D') == 'double[][]'
    assert format_descriptor('[Ljava/lang/String;') == 'java.lang.String[]'
    assert class_name_of('[[Ljava/util/Map;') == 'java/util/Map'
    assert class_name_of('[I') is None


def test_argument_slots():
    assert argument_slots('(IJD)V', static=True) == 5
    assert argument_slots('(IJD)V', static=False) == 6
    assert argument_slots('()V', static=False) == 1


@pytest.mark.parametrize('value, desc, expected', [
    (1, 'Z', 'true'),
    (0, 'Z', 'false'),
    (65, 'C', "'A'"),
    (39, 'C', "'\\''"),
    (-7, 'I', '-7'),
    (1 << 40, 'J', '1099511627776L'),
    (1.5, 'F', '1.5f'),
    (0.25, 'D', '0.25'),
    (math.inf, 'D', 'Double.POSITIVE_INFINITY'),
    (math.nan, 'F', 'Float.NaN'),
    ('tab\there', 'Ljava/lang/String;', '"tab\\there"'),
    ("it's", 'Ljava/lang/String;', '"it\'s"'),
    (0xD800, 'C', "'\\ud800'"),
    ('\x00\U0001F600', 'Ljava/lang/String;', '"\\u0000\U0001F600"'),
    (struct.unpack('>f', struct.pack('>f', 0.1))[0], 'F', '0.1f'),
    (3.0, 'F', '3.0f'),
])
def test_format_literal(value, desc, expected):
    assert format_literal(value, desc) == expected


def sample(*specs):
    b = ClassBuilder('demo/Sample')
    for access, name, desc, attrs in specs:
        b.add_method(access, name, desc, attrs(b) if attrs else ())
    return ClassFile(b.build())


def test_signature_text():
    cf = sample(
        (0x0089, 'format', '(Ljava/lang/String;[Ljava/lang/Object;)Ljava/lang/String;',
         lambda b: [b.code(max_locals=2)]),
        (0x0001, 'load', '(Ljava/io/File;)[B',
         lambda b: [b.code(max_locals=2), b.exceptions('java/io/IOException')]),
        (0x0008, '<clinit>', '()V', lambda b: [b.code(max_locals=0)]),
    )
    varargs, thrower, clinit = cf.methods

    assert varargs.signature_text() == 'public static String format(String arg0, Object... arg1)'
    assert thrower.signature_text() == 'public byte[] load(File arg0) throws IOException'
    assert thrower.exceptions == ['java/io/IOException']
    assert clinit.signature_text() == 'static'


def test_abstract_is_optional_in_signature():
    cf = sample((0x0401, 'size', '()I', None))
    (method,) = cf.methods

    assert method.signature_text() == 'public abstract int size()'
    assert method.signature_text(include_abstract=False) == 'public int size()'
    assert method.analyse() is None


def test_analyse_rejects_code_on_abstract_method():
    cf = sample((0x0401, 'size', '()I', lambda b: [b.code(max_locals=1)]))
    (method,) = cf.methods
    with pytest.raises(MethodAnalysisError):
        method.analyse()


def test_analyse_checks_exception_table():
    cf = sample(
        (0x0001, 'good', '()V',
         lambda b: [b.code(code=b'\x00\x00\xb1', handlers=[(0, 1, 2, 'java/lang/Exception')])]),
        (0x0001, 'bad', '()V',
         lambda b: [b.code(code=b'\x00\xb1', handlers=[(0, 5, 1, None)])]),
    )
    good, bad = cf.methods

    summary = good.analyse()
    assert summary.exception_handlers == 1
    assert good.code.exception_table[0].catch_type == 'java/lang/Exception'
    assert bad.code.exception_table[0].catch_type is None
    with pytest.raises(MethodAnalysisError, match='outside 2 bytes'):
        bad.analyse()


def test_code_attribute_nested_attributes_are_parsed():
    cf = sample(
        (0x0001, 'run', '()V',
         lambda b: [b.code(attributes=[b.attribute('LineNumberTable', b'\x00\x01\x00\x00\x00\x07')])]),
    )
    (method,) = cf.methods

    (table,) = method.code.attributes
    assert table.name == 'LineNumberTable'
    assert table.raw_length == 6 + 6


def test_unknown_attribute_keeps_its_length():
    b = ClassBuilder('demo/Sample')
    b.add_field(0x0002, 'x', 'I', [b.attribute('Custom', b'\x01\x02\x03')])
    b.add_field(0x0002, 'y', 'I')
    cf = ClassFile(b.build())

    assert cf.fields[0].raw_length == 8 + 6 + 3
    assert cf.fields[0].attributes[0].body == b'\x01\x02\x03'
    assert cf.fields[1].name == 'y'


def test_field_dump_resolves_through_its_class_file():
    b = ClassBuilder('demo/Sample')
    b.add_field(0x0019, 'RATE', 'F', [b.constant_value(b.float(0.1))])
    cf = ClassFile(b.build())

    d = Dumper()
    cf.fields[0].dump(d)
    assert d.getvalue() == "public static final float RATE = 0.1f;\n"
