import pytest

from classdump import ByteData, MalformedContainer


def test_big_endian_reads():
    data = ByteData(b'\xca\xfe\xba\xbe\xff\xfe\x00\x00\x00\x00\x00\x00\x00\x2a')

    assert data.u4(0) == 0xCAFEBABE
    assert data.u2(4) == 0xFFFE
    assert data.s2(4) == -2
    assert data.u1(5) == 0xFE
    assert data.s8(6) == 42
    assert data.raw(0, 2) == b'\xca\xfe'


def test_window_is_relative():
    data = ByteData(b'\x00\x01\x00\x02\x00\x03', source='t.class')
    w = data.window(2)

    assert w.u2(0) == 2
    assert w.window(2).u2(0) == 3
    assert w.absolute(2) == 4
    assert len(w) == 4
    assert w.source == 't.class'


def test_read_past_end():
    data = ByteData(b'\x00\x01\x02', source='t.class').window(2)

    with pytest.raises(MalformedContainer) as exc:
        data.u2(0)
    assert exc.value.offset == 2
    assert str(exc.value) == "t.class: Truncated data reading 2 byte(s) (at offset 0x2)"
    with pytest.raises(MalformedContainer):
        data.raw(0, 5)


def test_from_path(tmp_path):
    path = tmp_path / 'x.bin'
    path.write_bytes(b'\x00\x07')

    data = ByteData.from_path(path)
    assert data.u2(0) == 7
    assert data.source == str(path)
