"""Errors raised while decoding a resource container.

Every error aborts the whole extraction. The context attributes (node index,
buffer offset, output path) are filled in as the error travels up through the
tree walker, so the caller gets one message naming where decoding stopped.
"""


class ExtractionError(Exception):
    """Base class for all extraction failures."""

    kind = 'extraction'

    def __init__(self, message, index=None, offset=None, path=None):
        super().__init__(message)
        self.message = message
        self.index = index
        self.offset = offset
        self.path = path

    def with_context(self, index=None, offset=None, path=None):
        # Innermost context wins
        if self.index is None:
            self.index = index
        if self.offset is None:
            self.offset = offset
        if self.path is None:
            self.path = path
        return self

    def __str__(self):
        context = []
        if self.index is not None:
            context.append(f'node {self.index}')
        if self.offset is not None:
            context.append(f'offset 0x{self.offset:x}')
        if self.path is not None:
            context.append(f'path {self.path}')
        if not context:
            return f'{self.kind} error: {self.message}'
        return f'{self.kind} error: {self.message} ({", ".join(context)})'


class FormatError(ExtractionError):
    """Declared structure points outside a buffer, or is otherwise unusable."""
    kind = 'format'


class PathLengthError(FormatError):
    kind = 'path length'


class EncodingError(ExtractionError):
    kind = 'encoding'


class DecompressionError(ExtractionError):
    kind = 'decompression'


class ResourceIOError(ExtractionError):
    """Creating a directory or writing a file failed."""
    kind = 'io'
