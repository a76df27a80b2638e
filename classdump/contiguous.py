"""
Build runs of back-to-back records, tracking how many bytes they cover.
"""


def build_sized(data, count, width, factory):
    """Parse ``count`` fixed ``width`` records; returns ``(items, total_length)``."""
    items = []
    for i in range(count):
        items.append(factory(data.window(i * width)))
    return items, count * width


def build(data, count, factory):
    """
    Parse ``count`` variable length records. Each record made by
    ``factory(window)`` reports the bytes it consumed as ``raw_length``;
    the next record starts right after it.
    """
    items = []
    pos = 0
    for _ in range(count):
        item = factory(data.window(pos))
        items.append(item)
        pos += item.raw_length
    return items, pos
