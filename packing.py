'''
Block index codecs.

Litematic regions store palette ids as a stream of fixed-width entries packed
into 64-bit words, least significant bit first. An entry may straddle two
words; there is no padding except at the end of the last word.

Sponge schematics store one varint per block: seven payload bits per byte,
least significant group first, high bit set when another byte follows.
'''

from logging import getLogger

import numpy
from numpy import arange, ascontiguousarray, int64, uint8, uint64, zeros

from schembase import InvalidPalette, Truncated

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ['bitsPerEntry', 'packBits', 'unpackBits', 'encodeVarints', 'decodeVarints']


def bitsPerEntry(paletteSize):
    """max(ceil(log2(paletteSize)), 1)"""
    return max((paletteSize - 1).bit_length(), 1)


def _entryPositions(count, bits):
    bitIndex = arange(count, dtype=uint64) * uint64(bits)
    return (bitIndex >> uint64(6)).astype(numpy.intp), bitIndex & uint64(63)


def unpackBits(longs, bits, count):
    """Decode count entries of the given bit width from an array of 64-bit
    words. Returns an int64 array. Raises Truncated if the words hold fewer
    than count * bits bits."""
    words = ascontiguousarray(longs, dtype=int64).view(uint64)
    if len(words) * 64 < count * bits:
        raise Truncated("Packed array has {0} bits, {1} entries of {2} bits need {3}".format(
            len(words) * 64, count, bits, count * bits))
    if count == 0:
        return zeros(0, int64)

    mask = uint64((1 << bits) - 1)
    index, offset = _entryPositions(count, bits)
    values = words[index] >> offset

    # entries whose high bits spill into the next word
    spans = offset + uint64(bits) > uint64(64)
    if spans.any():
        values[spans] |= words[index[spans] + 1] << (uint64(64) - offset[spans])

    return (values & mask).astype(int64)


def packBits(ids, bits):
    """Encode ids into 64-bit words, bits per entry. The last word is
    zero-filled above the final entry. Returns an int64 array."""
    values = ascontiguousarray(ids, dtype=int64)
    if len(values) and (values.min() < 0 or int(values.max()) >= (1 << bits)):
        raise ValueError("Palette ids must lie in [0, {0}) for {1}-bit entries".format(1 << bits, bits))
    values = values.astype(uint64)

    count = len(values)
    words = zeros((count * bits + 63) // 64, uint64)
    if count == 0:
        return words.view(int64)

    index, offset = _entryPositions(count, bits)
    numpy.bitwise_or.at(words, index, values << offset)

    spans = offset + uint64(bits) > uint64(64)
    if spans.any():
        numpy.bitwise_or.at(words, index[spans] + 1, values[spans] >> (uint64(64) - offset[spans]))

    return words.view(int64)


def encodeVarints(ids):
    """Encode each id as a varint. Returns a uint8 array; ids below 128
    take exactly one byte."""
    values = ascontiguousarray(ids, dtype=int64)
    if len(values) and values.min() < 0:
        raise ValueError("Cannot varint-encode negative ids")
    if not len(values) or values.max() < 0x80:
        return values.astype(uint8)

    out = bytearray()
    for value in values.tolist():
        while value >= 0x80:
            out.append((value & 0x7F) | 0x80)
            value >>= 7
        out.append(value)

    return numpy.frombuffer(bytes(out), uint8).copy()


def decodeVarints(data, count=None):
    """Decode a varint byte stream. With count, stops after count values and
    raises Truncated if the stream holds fewer. A varint wider than 63 bits
    raises InvalidPalette. Returns an int64 array."""
    if isinstance(data, numpy.ndarray):
        data = ascontiguousarray(data)
        raw = data.view(uint8) if data.dtype.itemsize == 1 else data.astype(uint8)
    else:
        raw = numpy.frombuffer(bytes(data), uint8)

    if not (raw & 0x80).any():
        values = raw.astype(int64)
    else:
        raw = raw.tolist()
        decoded = []
        value = shift = 0
        cursor = 0
        while cursor < len(raw) and (count is None or len(decoded) < count):
            byte = raw[cursor]
            cursor += 1
            value |= (byte & 0x7F) << shift
            if byte & 0x80:
                shift += 7
                if shift >= 63:
                    raise InvalidPalette("Varint at byte {0} is too long for a palette id".format(cursor - 1))
                continue

            decoded.append(value)
            value = shift = 0

        if shift:
            raise Truncated("Block data ends in the middle of a varint")
        if cursor < len(raw):
            warn("Ignoring {0} bytes after the end of the block data".format(len(raw) - cursor))
        values = numpy.array(decoded, int64)

    if count is None:
        return values

    if len(values) < count:
        raise Truncated("Block data holds {0} values, expected {1}".format(len(values), count))
    if len(values) > count:
        warn("Ignoring {0} bytes after the end of the block data".format(len(values) - count))
    return values[:count]
