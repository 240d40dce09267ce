"""Data blob decoding: raw and zlib compressed payloads."""
import logging
import zlib

from qrcextract.errors import DecompressionError, FormatError
from qrcextract.resource.nodes import Flags, read_struct
from qrcextract.resource.structure import resource_structure


def _payload(data, offset, length):
    if offset + length > len(data):
        raise FormatError(f'payload of {length} bytes exceeds data blob of {len(data)} bytes', offset=offset)
    return data[offset:offset + length]


def inflate(payload, expected_length, offset=None):
    """Inflate a zlib stream that must yield exactly `expected_length` bytes."""
    try:
        decompressor = zlib.decompressobj()
        # One spare byte tells an oversized stream apart from an exact one
        output = decompressor.decompress(payload, expected_length + 1)
    except zlib.error as e:
        raise DecompressionError(f'inflate failed: {e}', offset=offset) from e

    if len(output) > expected_length:
        raise DecompressionError(f'stream inflates past {expected_length} expected bytes', offset=offset)
    if not decompressor.eof:
        raise DecompressionError(
            f'stream did not end after {len(output)} of {expected_length} expected bytes', offset=offset)
    if len(output) != expected_length:
        raise DecompressionError(
            f'stream ended after {len(output)} bytes, {expected_length} expected', offset=offset)
    return output


def read_entry(data, offset, flags, session=None):
    """Resolve the payload stored at `offset` of the data blob.

    Compressed entries are fully inflated before anything is returned, so a
    broken stream never leaves a partially written file behind.
    """
    header = read_struct(resource_structure.DataHeader, data, offset, 'data header')
    length = header.length
    offset += len(resource_structure.DataHeader)

    if flags & Flags.Compressed:
        if length < len(resource_structure.CompressedHeader):
            raise FormatError(f'compressed payload of {length} bytes has no size prefix', offset=offset)
        prefix = read_struct(resource_structure.CompressedHeader, data, offset, 'compressed header')
        offset += len(resource_structure.CompressedHeader)
        length -= len(resource_structure.CompressedHeader)

        logging.debug(f'inflating {length} bytes at 0x{offset:x} into {prefix.expected_length} bytes')
        return inflate(bytes(_payload(data, offset, length)), prefix.expected_length, offset=offset)

    if flags & Flags.CompressedZstd:
        message = f'unsupported compression (zstd), writing {length} raw bytes at offset 0x{offset:x}'
        logging.warning(message)
        if session is not None:
            session.record(message)

    return bytes(_payload(data, offset, length))


def write_entry(fh, data, offset, flags, session=None):
    """Write the payload at `offset` to the binary file handle `fh`."""
    payload = read_entry(data, offset, flags, session)
    fh.write(payload)
    return len(payload)
