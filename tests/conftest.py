"""
Shared fixtures: synthetic resource containers.

Containers are laid out the way rcc does it: children of a directory are
stored as one contiguous run of records, breadth first, the root at index 0.
"""

import struct
import zlib
from collections import namedtuple

import pytest

COMPRESSED = 0x01
DIRECTORY = 0x02
COMPRESSED_ZSTD = 0x04

Container = namedtuple('Container', ['version', 'tree', 'names', 'data'])


# COMPRESSED in flags makes the builder zlib compress the payload
File = namedtuple('File', ['payload', 'flags', 'locale'], defaults=(0, 0))


def pack_record(version, name_offset, flags, a, b):
    record = struct.pack('>IHII', name_offset, flags, a, b)
    if version != 1:
        record += struct.pack('>Q', 0x0123456789abcdef)
    return record


def pack_name(text, name_hash=0xdeadbeef):
    units = text.encode('utf-16-be')
    return struct.pack('>HI', len(units) // 2, name_hash) + units


def pack_blob(payload, compress=False):
    if compress:
        compressed = zlib.compress(payload)
        return struct.pack('>II', len(compressed) + 4, len(payload)) + compressed
    return struct.pack('>I', len(payload)) + payload


class ContainerBuilder(object):

    def __init__(self, version=2):
        self.version = version
        self.names = bytearray()
        self.data = bytearray()
        self.name_offsets = {}

    def add_name(self, text):
        if text not in self.name_offsets:
            self.name_offsets[text] = len(self.names)
            self.names += pack_name(text)
        return self.name_offsets[text]

    def add_blob(self, item):
        offset = len(self.data)
        if not isinstance(item, File):
            item = File(item)
        self.data += pack_blob(item.payload, compress=bool(item.flags & COMPRESSED))
        return offset, item

    def build(self, root):
        """`root` maps names to dicts (directories) or bytes/File (files)."""
        nodes = [(None, root)]
        records = []
        i = 0
        while i < len(nodes):
            name, content = nodes[i]
            name_offset = 0 if name is None else self.add_name(name)
            if isinstance(content, dict):
                first = len(nodes)
                nodes.extend(content.items())
                records.append(pack_record(self.version, name_offset, DIRECTORY, len(content), first))
            else:
                offset, item = self.add_blob(content)
                records.append(pack_record(self.version, name_offset, item.flags, item.locale, offset))
            i += 1

        return Container(self.version, b''.join(records), bytes(self.names), bytes(self.data))


@pytest.fixture
def build_container():
    def build(root, version=2):
        return ContainerBuilder(version).build(root)
    return build


@pytest.fixture
def nested_container(build_container):
    return build_container({
        'a': {
            'b': {
                'c.txt': b'hello from c\n',
            },
        },
        'readme.txt': File(b'compressed ' * 64, flags=COMPRESSED),
    })
