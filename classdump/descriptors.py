"""
Field and method descriptor parsing.

Descriptors are split into internal type strings first (``I``,
``[Ljava/lang/String;``); turning those into Java source text needs the
constant pool, because class names are shortened against everything else
the class file references.
"""

from classdump.constant_pool import source_name
from classdump.errors import MalformedContainer

PRIMITIVES = {
    'B': 'byte', 'C': 'char', 'D': 'double', 'F': 'float',
    'I': 'int', 'J': 'long', 'S': 'short', 'Z': 'boolean', 'V': 'void'
}


def _split_one(desc, i):
    """Return the end index of the single type starting at ``desc[i]``."""
    j = i
    while j < len(desc) and desc[j] == '[':
        j += 1
    if j >= len(desc):
        raise MalformedContainer(f"Malformed descriptor {desc!r}")
    if desc[j] == 'L':
        end = desc.find(';', j)
        if end < 0:
            raise MalformedContainer(f"Malformed descriptor {desc!r}")
        return end + 1
    if desc[j] in PRIMITIVES:
        return j + 1
    raise MalformedContainer(f"Malformed descriptor {desc!r}")


def parse_field_descriptor(desc):
    if _split_one(desc, 0) != len(desc):
        raise MalformedContainer(f"Malformed descriptor {desc!r}")
    return desc


def parse_method_descriptor(desc):
    """Split ``(params)return`` into a list of parameter types and the return type."""
    if not desc.startswith('(') or ')' not in desc:
        raise MalformedContainer(f"Malformed method descriptor {desc!r}")
    close = desc.index(')')
    params_str = desc[1:close]

    params = []
    i = 0
    while i < len(params_str):
        end = _split_one(params_str, i)
        params.append(params_str[i:end])
        i = end

    ret = desc[close+1:]
    if ret != 'V':
        parse_field_descriptor(ret)
    return params, ret


def class_name_of(desc):
    """The internal class name a type refers to, ignoring array dimensions, or None."""
    desc = desc.lstrip('[')
    if desc.startswith('L') and desc.endswith(';'):
        return desc[1:-1]
    return None


def argument_slots(desc, static):
    """Local variable slots taken by the arguments (plus ``this`` unless static)."""
    params, _ = parse_method_descriptor(desc)
    slots = 0 if static else 1
    for p in params:
        slots += 2 if p in ('J', 'D') else 1
    return slots


def format_descriptor(desc, pool=None):
    """Convert a Java type descriptor to human-readable form."""
    if desc in PRIMITIVES:
        return PRIMITIVES[desc]
    if desc.startswith('['):
        return format_descriptor(desc[1:], pool) + '[]'
    if desc.startswith('L') and desc.endswith(';'):
        name = desc[1:-1]
        if pool is not None:
            return pool.display_name(name)
        return source_name(name)
    return desc
