"""Tree record and name table decoding."""
from collections import namedtuple
from enum import IntFlag

from qrcextract.config import SUPPORTED_VERSIONS
from qrcextract.errors import EncodingError, FormatError
from qrcextract.resource.structure import resource_structure


class Flags(IntFlag):
    Compressed = 0x01
    Directory = 0x02
    CompressedZstd = 0x04


NODE_STRUCTS = {
    1: resource_structure.TreeNodeV1,
    2: resource_structure.TreeNodeV2,
}


def node_stride(version):
    """Size in bytes of one tree record for the given format version."""
    if version not in SUPPORTED_VERSIONS:
        raise FormatError(f'unsupported format version {version!r}')
    return len(NODE_STRUCTS[version])


def node_count(version, tree):
    """Number of whole records the tree buffer can hold."""
    return len(tree) // node_stride(version)


def read_struct(struct, buf, offset, what):
    """Decode `struct` at `offset`, refusing to read past the end of `buf`."""
    size = len(struct)
    if offset < 0 or offset + size > len(buf):
        raise FormatError(f'{what} of {size} bytes exceeds buffer of {len(buf)} bytes', offset=offset)
    return struct(bytes(buf[offset:offset + size]))


class Node(namedtuple('Node', ['index', 'name_offset', 'flags', 'count_or_locale', 'offset'])):
    """One tree record.

    The last two fields are unions: directories carry a child count and the
    index of their first child, files carry a locale and a byte offset into
    the data blob.
    """
    __slots__ = ()

    @property
    def is_directory(self):
        return bool(self.flags & Flags.Directory)

    @property
    def is_compressed(self):
        return bool(self.flags & Flags.Compressed)

    @property
    def is_zstd(self):
        return bool(self.flags & Flags.CompressedZstd)

    @property
    def child_count(self):
        return self.count_or_locale

    @property
    def child_offset(self):
        return self.offset

    @property
    def children(self):
        return range(self.child_offset, self.child_offset + self.child_count)

    @property
    def locale(self):
        return self.count_or_locale

    @property
    def data_offset(self):
        return self.offset

    def describe_flags(self):
        names = [flag.name for flag in Flags if self.flags & flag]
        return ' '.join([str(self.flags)] + [name.lower() for name in names])


def read_node(version, tree, index):
    """Decode record `index` of the tree buffer."""
    stride = node_stride(version)
    if index < 0:
        raise FormatError(f'negative node index {index}', index=index)
    raw = read_struct(NODE_STRUCTS[version], tree, index * stride, 'tree record')
    return Node(index, raw.name_offset, raw.flags, raw.count_or_locale, raw.offset)


def read_name(names, offset):
    """Decode the UTF-16BE name entry at `offset` of the name table.

    The hash that follows the length is read and dropped; nothing about it is
    assumed.
    """
    header = read_struct(resource_structure.NameHeader, names, offset, 'name header')
    start = offset + len(resource_structure.NameHeader)
    end = start + header.length * 2
    if end > len(names):
        raise FormatError(f'name of {header.length} code units exceeds name table', offset=offset)

    try:
        return bytes(names[start:end]).decode('utf-16-be')
    except UnicodeDecodeError as e:
        raise EncodingError(f'malformed UTF-16BE name: {e.reason}', offset=offset) from e
