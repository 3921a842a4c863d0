'''
Shared exceptions and tag names for the schematic converters.
'''

# sponge schematic
Width = "Width"
Height = "Height"
Length = "Length"
Offset = "Offset"
Palette = "Palette"
PaletteMax = "PaletteMax"
BlockData = "BlockData"
BlockEntities = "BlockEntities"
Entities = "Entities"
TileEntities = "TileEntities"
Version = "Version"
DataVersion = "DataVersion"
Author = "Author"
Description = "Description"

# litematic
Metadata = "Metadata"
EnclosingSize = "EnclosingSize"
Regions = "Regions"
Position = "Position"
Size = "Size"
BlockStatePalette = "BlockStatePalette"
BlockStates = "BlockStates"
PendingBlockTicks = "PendingBlockTicks"
MinecraftDataVersion = "MinecraftDataVersion"

DEFAULT_REGION_NAME = "main"
SPONGE_VERSION = 2
LITEMATIC_VERSION = 5
DEFAULT_COMPRESSLEVEL = 9


class ConversionError(ValueError):
    pass


class MissingField(ConversionError):
    """A required key is absent. path is the slash-separated key path."""
    def __init__(self, path):
        ConversionError.__init__(self, "Missing required field {0}".format(path))
        self.path = path


class TypeMismatch(ConversionError):
    def __init__(self, path, expected, found):
        ConversionError.__init__(self, "Field {0} should be {1}, found {2}".format(path, expected, found))
        self.path = path
        self.expected = expected
        self.found = found


class Truncated(ConversionError):
    pass


class InvalidDimensions(ConversionError):
    pass


class InvalidPalette(ConversionError):
    pass


class UnsupportedConversion(ConversionError):
    def __init__(self, source, target):
        ConversionError.__init__(self, "No conversion from {0} to {1}".format(source, target))
        self.source = source
        self.target = target


class NBTFormatError(ConversionError):
    pass


def joinPath(*parts):
    return "/".join(p for p in parts if p)
