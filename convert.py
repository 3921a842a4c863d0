'''
Conversions between litematic, schematic and schem files.

Sample usage:

import convert

# Merge every region of a litematic into one sponge schematic.
schematicData = convert.convert(litematicData, convert.LITEMATIC, convert.SCHEMATIC)

# A .schem is the same document gzipped.
schemData = convert.convert(schematicData, convert.SCHEMATIC, convert.SCHEM)

# Or let the file extensions pick the formats.
convert.convertFile("castle.litematic", "castle.schematic")

Supported pairs are litematic -> schematic, schematic -> litematic,
schematic -> schem and schem -> schematic. Anything else raises
UnsupportedConversion.
'''

from logging import getLogger
import os

import nbt
from litematic import Litematic
from schematic import SpongeSchematic
from schembase import BlockData, ConversionError, DEFAULT_REGION_NAME, Regions, UnsupportedConversion
from volume import mergeRegions, splitVolume

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ['LITEMATIC', 'SCHEMATIC', 'SCHEM', 'convert', 'convertFile', 'identify', 'formatForFilename']

LITEMATIC = "litematic"
SCHEMATIC = "schematic"
SCHEM = "schem"

# the same formats by layout
MultiRegion = LITEMATIC
SingleRegion = SCHEMATIC
CompressedSingleRegion = SCHEM

formats = (LITEMATIC, SCHEMATIC, SCHEM)


def litematicToSchematic(data):
    """Merge all regions of a litematic into one uncompressed sponge schematic."""
    litematic = Litematic.load(data)
    info("Converting {0!r} to a schematic".format(litematic))

    volume = mergeRegions(litematic.regions)
    if list(litematic.enclosingSize) != list(volume.size):
        warn("EnclosingSize {0} disagrees with the merged regions {1}; using the regions".format(
            litematic.enclosingSize, list(volume.size)))
    info("Merged palette has {0} block states".format(len(volume.palette)))

    schematic = SpongeSchematic(volume,
                                dataVersion=litematic.dataVersion,
                                author=litematic.author,
                                description=litematic.description)
    return schematic.save()


def schematicToLitematic(data, name=None):
    """Turn an uncompressed sponge schematic into a single-region litematic."""
    schematic = SpongeSchematic.load(data)
    info("Converting {0!r} to a litematic".format(schematic))

    region = splitVolume(schematic.volume, DEFAULT_REGION_NAME)
    litematic = Litematic.create([region],
                                 name=name,
                                 author=schematic.author,
                                 description=schematic.description,
                                 dataVersion=schematic.dataVersion)
    return litematic.save()


def schematicToSchem(data):
    return nbt.gzip(data)


def schemToSchematic(data):
    return nbt.gunzip(data)


converters = {
    (LITEMATIC, SCHEMATIC): litematicToSchematic,
    (SCHEMATIC, LITEMATIC): schematicToLitematic,
    (SCHEMATIC, SCHEM): schematicToSchem,
    (SCHEM, SCHEMATIC): schemToSchematic,
}


def convert(data, source, target):
    """Convert the bytes of a source-format document to target format."""
    converter = converters.get((source, target))
    if converter is None:
        raise UnsupportedConversion(source, target)
    debug("Converting {0} bytes from {1} to {2}".format(len(data), source, target))
    return converter(data)


def identify(data):
    """Guess the format of a document from its contents. Litematics are
    recognised gzipped or not; a gzipped sponge schematic is a schem."""
    compressed = nbt.isGzipped(data)
    root_tag = nbt.load(nbt.gunzip(data) if compressed else data)

    if Regions in root_tag:
        info("Detected litematic")
        return LITEMATIC
    if BlockData in root_tag:
        if compressed:
            info("Detected schem")
            return SCHEM
        info("Detected schematic")
        return SCHEMATIC
    raise ConversionError("Document is neither a litematic nor a sponge schematic")


def formatForFilename(filename):
    ext = os.path.splitext(filename)[1].lower().lstrip(".")
    if ext not in formats:
        raise ConversionError("Don't know the format of {0}".format(os.path.basename(filename)))
    return ext


def convertFile(sourceFile, targetFile, source=None, target=None):
    """Convert sourceFile into targetFile. Formats default to the file
    extensions. The target is written to a temporary file first and renamed
    into place, so a failed conversion never leaves a partial file."""
    source = source or formatForFilename(sourceFile)
    target = target or formatForFilename(targetFile)

    with open(sourceFile, "rb") as f:
        data = f.read()

    if (source, target) == (SCHEMATIC, LITEMATIC):
        # litematics carry a name; use the file's
        output = schematicToLitematic(data, name=os.path.splitext(os.path.basename(targetFile))[0])
    else:
        output = convert(data, source, target)

    tempFile = targetFile + ".tmp"
    with open(tempFile, "wb") as f:
        f.write(output)
    os.replace(tempFile, targetFile)
    info("Wrote {0} ({1} bytes)".format(targetFile, len(output)))
