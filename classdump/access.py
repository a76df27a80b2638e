"""
Access flag tables. The same bit means different things on classes, fields
and methods (0x0020 is 'super' on a class, 'synchronized' on a method), so
each context has its own table.
"""

CLASS_FLAGS = (
    (0x0001, 'public'),
    (0x0010, 'final'),
    (0x0020, 'super'),
    (0x0200, 'interface'),
    (0x0400, 'abstract'),
    (0x1000, 'synthetic'),
    (0x2000, 'annotation'),
    (0x4000, 'enum'),
    (0x8000, 'module'),
)

# Nested classes carry these in their InnerClasses entry; the top-level
# access_flags word never sets them, but the renderer tolerates them.
CLASS_FLAGS += (
    (0x0002, 'private'),
    (0x0004, 'protected'),
    (0x0008, 'static'),
)

FIELD_FLAGS = (
    (0x0001, 'public'),
    (0x0002, 'private'),
    (0x0004, 'protected'),
    (0x0008, 'static'),
    (0x0010, 'final'),
    (0x0040, 'volatile'),
    (0x0080, 'transient'),
    (0x1000, 'synthetic'),
    (0x4000, 'enum'),
)

METHOD_FLAGS = (
    (0x0001, 'public'),
    (0x0002, 'private'),
    (0x0004, 'protected'),
    (0x0008, 'static'),
    (0x0010, 'final'),
    (0x0020, 'synchronized'),
    (0x0040, 'bridge'),
    (0x0080, 'varargs'),
    (0x0100, 'native'),
    (0x0400, 'abstract'),
    (0x0800, 'strictfp'),
    (0x1000, 'synthetic'),
)

# Words that may appear in rendered Java source, in source order.
DUMPABLE_INTERFACE = ('public', 'private', 'protected', 'static', 'final')
DUMPABLE_CLASS = ('public', 'private', 'protected', 'static', 'final', 'abstract')
DUMPABLE_FIELD = ('public', 'private', 'protected', 'static', 'final', 'transient', 'volatile')
DUMPABLE_METHOD = ('public', 'private', 'protected', 'abstract', 'static', 'final',
                   'synchronized', 'native', 'strictfp')


def build(value, table):
    """Decode a 16-bit flags word into the set of words it sets."""
    return frozenset(word for mask, word in table if value & mask)


def render(flags, dumpable):
    """The dumpable subset of ``flags``, each followed by a space."""
    return ''.join(word + ' ' for word in dumpable if word in flags)
