'''
Sponge schematics, version 2.

An uncompressed .schematic holds one block volume: Width, Height and Length
as (unsigned) shorts, a Palette compound mapping block state strings to ids,
and BlockData, one varint per block in y, z, x order. The gzipped form of
the same document is a .schem file.
'''

from logging import getLogger

import nbt
from entity import readEntityList
from packing import decodeVarints, encodeVarints
from palette import Palette
from schembase import (Author, BlockData, BlockEntities, DataVersion, Description, Entities, Height,
                       InvalidDimensions, InvalidPalette, Length, Offset, Palette as PaletteTag,
                       PaletteMax, SPONGE_VERSION, TileEntities, TypeMismatch, Version, Width)
from volume import UnifiedVolume

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ['SpongeSchematic']

MAX_DIMENSION = 0xFFFF


def readDimension(root_tag, key):
    tag = root_tag.require(key, nbt.TAG_Short, nbt.TAG_Int)
    if isinstance(tag, nbt.TAG_Short):
        return tag.value & 0xFFFF
    return tag.value


def dimensionTag(value, key):
    if not 0 < value <= MAX_DIMENSION:
        raise InvalidDimensions("{0} {1} does not fit a sponge schematic".format(key, value))
    # stored as a signed short, read back as unsigned
    if value > 0x7FFF:
        value -= 0x10000
    return nbt.TAG_Short(value)


def readEntities(root_tag, *keys):
    for key in keys:
        entities = readEntityList(root_tag, key, root_tag.name)
        if entities is not None:
            return entities
    return []


class SpongeSchematic(object):
    """A sponge schematic around a UnifiedVolume, plus the document's
    metadata. The volume's offset is written as Offset."""

    def __init__(self, volume, dataVersion=None, author=None, description=None):
        self.volume = volume
        self.dataVersion = dataVersion
        self.author = author
        self.description = description

    def __repr__(self):
        return "SpongeSchematic(size={0}, palette={1} states)".format(self.volume.size, len(self.volume.palette))

    @classmethod
    def fromTag(cls, root_tag):
        width = readDimension(root_tag, Width)
        height = readDimension(root_tag, Height)
        length = readDimension(root_tag, Length)
        if not (width and height and length):
            raise InvalidDimensions("Schematic has zero size {0}x{1}x{2}".format(width, height, length))

        version = root_tag.optional(Version, *nbt.integer_tags)
        if version is not None and version.value != SPONGE_VERSION:
            warn("Reading a version {0} sponge schematic as version {1}".format(version.value, SPONGE_VERSION))

        palette = Palette.fromPaletteTag(root_tag.require(PaletteTag, nbt.TAG_Compound), path=PaletteTag)
        paletteMax = root_tag.optional(PaletteMax, *nbt.integer_tags)
        if paletteMax is not None and paletteMax.value != len(palette):
            warn("PaletteMax is {0} but the palette has {1} entries".format(paletteMax.value, len(palette)))

        blockData = root_tag.require(BlockData, nbt.TAG_Byte_Array)
        blocks = decodeVarints(blockData.value, width * height * length)
        if blocks.size and blocks.max() >= len(palette):
            raise InvalidPalette("BlockData uses palette id {0} but the palette has {1} entries".format(
                int(blocks.max()), len(palette)))
        blocks = blocks.reshape((height, length, width))

        offset = (0, 0, 0)
        offsetTag = root_tag.optional(Offset, nbt.TAG_Int_Array)
        if offsetTag is not None:
            if offsetTag.value.size != 3:
                raise TypeMismatch(Offset, "three ints", "{0} ints".format(offsetTag.value.size))
            offset = [int(o) for o in offsetTag.value]

        entities = readEntities(root_tag, Entities)
        tileEntities = readEntities(root_tag, BlockEntities, TileEntities)

        volume = UnifiedVolume(blocks, palette, offset, entities, tileEntities)
        debug("Read {0}".format(volume))

        dataVersion = root_tag.optional(DataVersion, *nbt.integer_tags)
        author = root_tag.optional(Author, nbt.TAG_String)
        description = root_tag.optional(Description, nbt.TAG_String)
        return cls(volume,
                   dataVersion=nbt.valueOf(dataVersion),
                   author=nbt.valueOf(author),
                   description=nbt.valueOf(description))

    def toTag(self):
        volume = self.volume
        root_tag = nbt.TAG_Compound(name="Schematic")
        root_tag[Version] = nbt.TAG_Int(SPONGE_VERSION)
        if self.dataVersion is not None:
            root_tag[DataVersion] = nbt.TAG_Int(self.dataVersion)

        root_tag[Width] = dimensionTag(volume.Width, Width)
        root_tag[Height] = dimensionTag(volume.Height, Height)
        root_tag[Length] = dimensionTag(volume.Length, Length)
        root_tag[Offset] = nbt.TAG_Int_Array(volume.offset)

        root_tag[PaletteMax] = nbt.TAG_Int(len(volume.palette))
        root_tag[PaletteTag] = volume.palette.toPaletteTag()
        root_tag[BlockData] = nbt.TAG_Byte_Array(encodeVarints(volume.blocks.ravel()))

        if volume.tileEntities:
            root_tag[BlockEntities] = nbt.TAG_List(volume.tileEntities)
        if volume.entities:
            root_tag[Entities] = nbt.TAG_List(volume.entities)

        if self.author is not None:
            root_tag[Author] = nbt.TAG_String(self.author)
        if self.description is not None:
            root_tag[Description] = nbt.TAG_String(self.description)
        return root_tag

    @classmethod
    def load(cls, data):
        """Read an uncompressed schematic document."""
        return cls.fromTag(nbt.load(data))

    def save(self):
        return self.toTag().save()
