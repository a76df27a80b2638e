"""
Random access, big-endian view over the bytes of a class file.

Every read is addressed relative to the view's base, so record parsers can
work from offset 0 without knowing where they sit in the container.
"""

import struct

from classdump.errors import MalformedContainer


class ByteData:

    def __init__(self, data, base=0, source=None):
        self.data = data
        self.base = base
        self.source = source

    @classmethod
    def from_path(cls, filepath):
        with open(filepath, 'rb') as f:
            return cls(f.read(), source=str(filepath))

    def __len__(self):
        return max(len(self.data) - self.base, 0)

    def window(self, offset):
        """Return a view whose offset 0 is ``offset`` in this one."""
        return ByteData(self.data, self.base + offset, self.source)

    def _unpack(self, fmt, offset):
        pos = self.base + offset
        try:
            return struct.unpack_from(fmt, self.data, pos)[0]
        except struct.error:
            raise MalformedContainer(
                f"Truncated data reading {struct.calcsize(fmt)} byte(s)",
                offset=pos, source=self.source) from None

    def u1(self, offset):
        return self._unpack('>B', offset)

    def u2(self, offset):
        return self._unpack('>H', offset)

    def u4(self, offset):
        return self._unpack('>I', offset)

    def s2(self, offset):
        return self._unpack('>h', offset)

    def s4(self, offset):
        return self._unpack('>i', offset)

    def s8(self, offset):
        return self._unpack('>q', offset)

    def f4(self, offset):
        return self._unpack('>f', offset)

    def f8(self, offset):
        return self._unpack('>d', offset)

    def raw(self, offset, length):
        start = self.base + offset
        end = start + length
        if offset < 0 or end > len(self.data):
            raise MalformedContainer(f"Truncated data reading {length} byte(s)",
                                     offset=start, source=self.source)
        return self.data[start:end]

    def absolute(self, offset):
        return self.base + offset
