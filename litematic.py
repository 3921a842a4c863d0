'''
Litematica schematics.

A .litematic holds any number of named regions. Each region has its own
Position and (signed) Size, its own BlockStatePalette, and a BlockStates
long array of bit-packed palette ids. Files on disk are gzipped; load()
accepts gzipped or raw bytes, save() returns raw bytes.
'''

from logging import getLogger
import time

import numpy

import nbt
from entity import readEntityList
from palette import BlockState
from schembase import (Author, BlockStatePalette, BlockStates, Description, EnclosingSize, Entities,
                       InvalidDimensions, LITEMATIC_VERSION, Metadata, MinecraftDataVersion,
                       PendingBlockTicks, Position, Regions, Size, TileEntities, TypeMismatch, Version,
                       joinPath)
from volume import Region

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ['Litematic']

Name = "Name"
RegionCount = "RegionCount"
TotalVolume = "TotalVolume"
TotalBlocks = "TotalBlocks"
TimeCreated = "TimeCreated"
TimeModified = "TimeModified"

DEFAULT_NAME = "Unnamed"
AIR_BLOCKS = ("minecraft:air", "minecraft:cave_air", "minecraft:void_air")


def readVector(parent, key, path):
    tag = parent.require(key, nbt.TAG_Compound, path=path)
    path = joinPath(path, key)
    return [tag.require(a, *nbt.integer_tags, path=path).value for a in 'xyz']


def vectorTag(vector):
    tag = nbt.TAG_Compound()
    for a, v in zip('xyz', vector):
        tag[a] = nbt.TAG_Int(v)
    return tag


def countBlocks(region):
    """Number of non-air blocks in a region."""
    air = [i for i, state in enumerate(region.palette) if state.name in AIR_BLOCKS]
    blocks = region.decodeBlocks()
    return int(blocks.size - numpy.isin(blocks, air).sum())


class Litematic(object):
    """A litematic document: its regions, in file order, and its metadata."""

    def __init__(self, regions, metadata=None, version=LITEMATIC_VERSION, dataVersion=None):
        self.regions = list(regions)
        self.metadata = metadata if metadata is not None else nbt.TAG_Compound()
        self.version = version
        self.dataVersion = dataVersion

    def __repr__(self):
        return "Litematic({0!r}, regions={1})".format(self.name, [r.name for r in self.regions])

    @property
    def enclosingSize(self):
        return readVector(self.metadata, EnclosingSize, Metadata)

    @property
    def name(self):
        return nbt.valueOf(self.metadata.optional(Name, nbt.TAG_String, path=Metadata))

    @property
    def author(self):
        return nbt.valueOf(self.metadata.optional(Author, nbt.TAG_String, path=Metadata))

    @property
    def description(self):
        return nbt.valueOf(self.metadata.optional(Description, nbt.TAG_String, path=Metadata))

    @classmethod
    def create(cls, regions, name=None, author=None, description=None, dataVersion=None, timestamp=None):
        """Build a litematic around regions, filling in the metadata Litematica
        expects: enclosing size, region count, volume and block totals, and
        creation time in milliseconds."""
        regions = list(regions)
        if not regions:
            raise InvalidDimensions("A litematic needs at least one region")
        bounds = regions[0].box
        for region in regions[1:]:
            bounds = bounds.union(region.box)

        if timestamp is None:
            timestamp = int(time.time() * 1000)

        metadata = nbt.TAG_Compound()
        metadata[Name] = nbt.TAG_String(name or DEFAULT_NAME)
        metadata[Author] = nbt.TAG_String(author or "")
        metadata[Description] = nbt.TAG_String(description or "")
        metadata[EnclosingSize] = vectorTag(bounds.size)
        metadata[RegionCount] = nbt.TAG_Int(len(regions))
        metadata[TotalVolume] = nbt.TAG_Int(sum(r.volume for r in regions))
        metadata[TotalBlocks] = nbt.TAG_Int(sum(countBlocks(r) for r in regions))
        metadata[TimeCreated] = nbt.TAG_Long(timestamp)
        metadata[TimeModified] = nbt.TAG_Long(timestamp)

        return cls(regions, metadata, dataVersion=dataVersion)

    @classmethod
    def readRegion(cls, name, region_tag):
        path = joinPath(Regions, name)
        position = readVector(region_tag, Position, path)
        size = readVector(region_tag, Size, path)

        paletteTag = region_tag.require(BlockStatePalette, nbt.TAG_List, path=path)
        palette = []
        for i, stateTag in enumerate(paletteTag):
            statePath = joinPath(path, BlockStatePalette, str(i))
            if not isinstance(stateTag, nbt.TAG_Compound):
                raise TypeMismatch(statePath, "TAG_Compound", stateTag.__class__.__name__)
            palette.append(BlockState.fromTag(stateTag, path=statePath))

        blockStates = region_tag.require(BlockStates, nbt.TAG_Long_Array, path=path)
        entities = readEntityList(region_tag, Entities, path)
        tileEntities = readEntityList(region_tag, TileEntities, path)

        region = Region(name, position, size, palette, blockStates.value,
                        entities or (), tileEntities or ())
        debug("Read {0!r}".format(region))
        return region

    @classmethod
    def fromTag(cls, root_tag):
        metadata = root_tag.require(Metadata, nbt.TAG_Compound)
        readVector(metadata, EnclosingSize, Metadata)

        regions = []
        for name, region_tag in root_tag.require(Regions, nbt.TAG_Compound).items():
            if not isinstance(region_tag, nbt.TAG_Compound):
                raise TypeMismatch(joinPath(Regions, name), "TAG_Compound", region_tag.__class__.__name__)
            regions.append(cls.readRegion(name, region_tag))

        version = nbt.valueOf(root_tag.optional(Version, *nbt.integer_tags), LITEMATIC_VERSION)
        dataVersion = nbt.valueOf(root_tag.optional(MinecraftDataVersion, *nbt.integer_tags))
        return cls(regions, metadata, version=version, dataVersion=dataVersion)

    def regionTag(self, region):
        region_tag = nbt.TAG_Compound()
        region_tag[Position] = vectorTag(region.position)
        region_tag[Size] = vectorTag(region.size)
        region_tag[BlockStatePalette] = nbt.TAG_List([state.toTag() for state in region.palette])
        region_tag[BlockStates] = nbt.TAG_Long_Array(region.blockStates)
        region_tag[Entities] = nbt.TAG_List(region.entities)
        region_tag[TileEntities] = nbt.TAG_List(region.tileEntities)
        region_tag[PendingBlockTicks] = nbt.TAG_List()
        return region_tag

    def toTag(self):
        root_tag = nbt.TAG_Compound()
        root_tag[Version] = nbt.TAG_Int(self.version)
        if self.dataVersion is not None:
            root_tag[MinecraftDataVersion] = nbt.TAG_Int(self.dataVersion)
        root_tag[Metadata] = self.metadata

        regions = nbt.TAG_Compound()
        for region in self.regions:
            regions[region.name] = self.regionTag(region)
        root_tag[Regions] = regions
        return root_tag

    @classmethod
    def load(cls, data):
        if nbt.isGzipped(data):
            data = nbt.gunzip(data)
        return cls.fromTag(nbt.load(data))

    def save(self):
        return self.toTag().save()
