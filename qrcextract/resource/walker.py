"""
Depth-first extraction of a resource tree onto the filesystem.

Nodes are visited in pre-order starting at the root (index 0): a directory
is created before any of its children is looked at, and a file is written
as soon as it is reached. The first error stops the walk.
"""

import logging
import os
from collections import namedtuple

from rich.markup import escape

from qrcextract import config
from qrcextract.errors import ExtractionError, FormatError, PathLengthError, ResourceIOError
from qrcextract.resource.data import write_entry
from qrcextract.resource.nodes import node_count, read_name, read_node

Entry = namedtuple('Entry', ['index', 'depth', 'path', 'node'])

UNSAFE_NAMES = ('', '.', '..')
UNSAFE_CHARACTERS = ('/', '\\', '\x00')


class ExtractionResult(object):
    def __init__(self):
        self.directories = 0
        self.files = 0
        self.bytes_written = 0
        self.diagnostics = []

    def __repr__(self):
        return (f'<ExtractionResult directories={self.directories} files={self.files} '
                f'bytes={self.bytes_written} diagnostics={len(self.diagnostics)}>')


class TreeWalker(object):

    def __init__(self, session):
        self.session = session
        self.count = node_count(session.version, session.tree)

    def name_of(self, node):
        if node.index == 0:
            return self.session.root_name

        name = read_name(self.session.names, node.name_offset)
        if name in UNSAFE_NAMES or any(c in name for c in UNSAFE_CHARACTERS):
            raise FormatError(f'unsafe entry name {name!r}', index=node.index, offset=node.name_offset)
        return name

    def iter_entries(self, index=0):
        """Yield every entry below (and including) `index`, in pre-order.

        Structure is checked on the way: child ranges must stay inside the
        node array and no node may be reached twice.
        """
        visited = set()
        stack = [(index, 0, self.session.output_base)]
        while stack:
            index, depth, path = stack.pop()
            entry = self._visit(index, depth, path, visited)
            yield entry

            node = entry.node
            if not node.is_directory:
                continue

            if node.child_offset + node.child_count > self.count:
                raise FormatError(
                    f'children {node.child_offset}..{node.child_offset + node.child_count - 1} '
                    f'outside node array of {self.count} records', index=index, path=entry.path)

            # Reversed so the first child is popped first
            stack.extend((child, depth + 1, entry.path) for child in reversed(node.children))

    def _visit(self, index, depth, path, visited):
        if index in visited:
            raise FormatError('node reached more than once', index=index)
        visited.add(index)

        try:
            node = read_node(self.session.version, self.session.tree, index)
            fullpath = path / self.name_of(node)
        except ExtractionError as e:
            raise e.with_context(index=index, path=path)

        if len(os.fsencode(fullpath)) > self.session.max_path_length:
            raise PathLengthError(f'path exceeds {self.session.max_path_length} bytes', index=index, path=fullpath)

        indent = '  ' * depth
        if node.is_directory:
            logging.debug(f'{indent}{index:04d}: ({node.describe_flags()}) {escape(str(fullpath))} [{node.name_offset}] '
                          f'-> {node.child_count} children; offset: {node.child_offset}')
        else:
            logging.debug(f'{indent}{index:04d}: ({node.describe_flags()}) {escape(str(fullpath))} [{node.name_offset}] '
                          f'{node.locale:04x} locale; {node.data_offset} offset')

        return Entry(index, depth, fullpath, node)

    def walk(self, index=0):
        """Extract the subtree at `index` under the session's output base."""
        result = ExtractionResult()
        del self.session.diagnostics[:]

        for entry in self.iter_entries(index):
            try:
                if entry.node.is_directory:
                    self._make_directory(entry.path)
                    result.directories += 1
                else:
                    result.bytes_written += self._write_file(entry)
                    result.files += 1
            except ExtractionError as e:
                raise e.with_context(index=entry.index, path=entry.path)

        result.diagnostics = list(self.session.diagnostics)
        return result

    def _make_directory(self, path):
        try:
            path.mkdir(mode=config.DIRECTORY_MODE, exist_ok=True)
        except OSError as e:
            raise ResourceIOError(f'unable to create directory: {e.strerror}', path=path) from e

    def _write_file(self, entry):
        node = entry.node
        try:
            with open(entry.path, 'wb') as fh:
                written = write_entry(fh, self.session.data, node.data_offset, node.flags, self.session)
        except OSError as e:
            raise ResourceIOError(f'unable to dump file: {e.strerror}', path=entry.path) from e

        logging.debug(f'{"  " * entry.depth}      {written} bytes written')
        return written
