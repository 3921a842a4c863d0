'''
Regions and unified volumes.

Block arrays are indexed (y, z, x), the same order sponge schematics and
litematic regions store them in, so ravel() gives x fastest, then z, then y.

mergeRegions() composites any number of litematic regions into a single
volume with one palette; splitVolume() turns a volume back into a single
region anchored at the origin.
'''
from functools import reduce
from logging import getLogger

from numpy import ascontiguousarray, int64, zeros

from box import BoundingBox
from entity import Entity, TileEntity
from packing import bitsPerEntry, packBits, unpackBits
from palette import PaletteUnifier
from schembase import DEFAULT_REGION_NAME, InvalidDimensions, InvalidPalette

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ['Region', 'UnifiedVolume', 'mergeRegions', 'splitVolume']


class Region(object):
    """One litematic region. palette is the region's local list of block
    states; blockStates is its packed long array. size components may be
    negative, see BoundingBox.fromSignedSize."""

    def __init__(self, name, position, size, palette, blockStates, entities=(), tileEntities=()):
        self.name = name
        self.position = list(position)
        self.size = list(size)
        self.palette = list(palette)
        self.blockStates = ascontiguousarray(blockStates, dtype=int64)
        self.entities = list(entities)
        self.tileEntities = list(tileEntities)

    def __repr__(self):
        return "Region({0!r}, position={1}, size={2}, palette={3} states)".format(
            self.name, self.position, self.size, len(self.palette))

    @property
    def box(self):
        return BoundingBox.fromSignedSize(self.position, self.size)

    @property
    def volume(self):
        return self.box.volume

    @property
    def bitsPerEntry(self):
        return bitsPerEntry(len(self.palette))

    def decodeBlocks(self):
        """Unpack the region's local palette ids into a (y, z, x) array."""
        box = self.box
        blocks = unpackBits(self.blockStates, self.bitsPerEntry, box.volume)
        if blocks.size and blocks.max() >= len(self.palette):
            raise InvalidPalette("Region {0!r} uses palette id {1} but its palette has {2} entries".format(
                self.name, int(blocks.max()), len(self.palette)))
        return blocks.reshape((box.height, box.length, box.width))

    @classmethod
    def fromBlocks(cls, name, position, blocks, palette, entities=(), tileEntities=()):
        """Pack a (y, z, x) array of ids into palette into a new region."""
        height, length, width = blocks.shape
        blockStates = packBits(blocks.ravel(), bitsPerEntry(len(palette)))
        return cls(name, position, (width, height, length), palette, blockStates, entities, tileEntities)


class UnifiedVolume(object):
    """A single block array with one palette. offset is where the array's
    origin sat in the coordinates of the regions it was built from."""

    def __init__(self, blocks, palette, offset=(0, 0, 0), entities=(), tileEntities=()):
        if blocks.ndim != 3:
            raise InvalidDimensions("Block array must be three dimensional, got shape {0}".format(blocks.shape))
        self.blocks = blocks
        self.palette = palette
        self.offset = list(offset)
        self.entities = list(entities)
        self.tileEntities = list(tileEntities)

    def __repr__(self):
        return "UnifiedVolume(size={0}, offset={1}, palette={2} states)".format(self.size, self.offset, len(self.palette))

    @property
    def Width(self):
        return self.blocks.shape[2]

    @property
    def Height(self):
        return self.blocks.shape[0]

    @property
    def Length(self):
        return self.blocks.shape[1]

    @property
    def size(self):
        return (self.Width, self.Height, self.Length)


def mergeRegions(regions):
    """Composite regions into one UnifiedVolume.

    The volume spans the union of every region's box; its offset is that
    union's minimum corner. Voxels no region covers keep global id 0. Each
    region's block states join the global palette in region order, and its
    entities and tile entities are moved by -offset."""

    regions = list(regions)
    if not regions:
        raise InvalidDimensions("Cannot build a volume from zero regions")

    bounds = reduce(lambda a, b: a.union(b), [r.box for r in regions])
    if bounds.volume == 0:
        raise InvalidDimensions("Regions enclose no blocks (bounds {0})".format(bounds))

    offset = bounds.origin
    info("Merging {0} region(s) into a {1}x{2}x{3} volume at offset {4}".format(
        len(regions), bounds.width, bounds.height, bounds.length, offset))

    blocks = zeros((bounds.height, bounds.length, bounds.width), int64)
    unifier = PaletteUnifier()
    entities = []
    tileEntities = []
    copyOffset = [-o for o in offset]
    placed = []

    for region in regions:
        box = region.box
        for other in placed:
            if other.box.intersect(box).volume:
                warn("Regions {0!r} and {1!r} overlap; {1!r} wins where they do".format(other.name, region.name))

        lookup = unifier.unify(region.palette)
        local = region.decodeBlocks()

        x, y, z = [b - o for b, o in zip(box.origin, offset)]
        blocks[y:y + box.height, z:z + box.length, x:x + box.width] = lookup[local]
        debug("Placed {0!r} at ({1}, {2}, {3})".format(region, x, y, z))

        entities.extend(Entity.copyWithOffset(e, copyOffset) for e in region.entities)
        tileEntities.extend(TileEntity.copyWithOffset(e, copyOffset) for e in region.tileEntities)
        placed.append(region)

    return UnifiedVolume(blocks, unifier.palette, offset, entities, tileEntities)


def splitVolume(volume, name=DEFAULT_REGION_NAME):
    """Turn a UnifiedVolume into one region at the origin. Entities are
    copied as they are."""
    if not all(volume.size):
        raise InvalidDimensions("Volume has zero size {0}".format(volume.size))
    return Region.fromBlocks(name, (0, 0, 0), volume.blocks, volume.palette.states(),
                             volume.entities, volume.tileEntities)
