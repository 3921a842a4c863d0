import os
import unittest

import numpy

import convert
import nbt
import schemconv
from litematic import Litematic
from schembase import ConversionError, NBTFormatError, UnsupportedConversion
from test.templevel import (CUBE_IDS, CUBE_STATES, TempDir, cubeLitematic, cubeSchematic, entityTag, litematicTag,
                            regionTag, tileEntityTag)


def blockData(root_tag):
    return root_tag["BlockData"].value.tolist()


def paletteEntries(root_tag):
    return [(k, v.value) for k, v in root_tag["Palette"].items()]


def dimensions(root_tag):
    return [root_tag[k].value for k in ("Width", "Height", "Length")]


class TestLitematicToSchematic(unittest.TestCase):
    def testCube(self):
        output = convert.convert(cubeLitematic().save(), convert.LITEMATIC, convert.SCHEMATIC)
        assert not nbt.isGzipped(output)

        root_tag = nbt.load(output)
        assert dimensions(root_tag) == [2, 2, 2]
        assert blockData(root_tag) == [0, 0, 0, 0, 1, 1, 2, 1]
        assert paletteEntries(root_tag) == [("minecraft:air", 0), ("minecraft:stone", 1), ("minecraft:dirt", 2)]
        assert root_tag["PaletteMax"].value == 3
        assert root_tag["Offset"].value.tolist() == [0, 0, 0]
        assert root_tag["DataVersion"].value == 2586
        assert root_tag["Author"].value == "tester"
        assert root_tag["Description"].value == "a test build"

    def testCompressedLitematic(self):
        output = convert.convert(cubeLitematic().save(compressed=True), convert.MultiRegion, convert.SingleRegion)
        assert blockData(nbt.load(output)) == CUBE_IDS

    def testTwoRegions(self):
        root_tag = litematicTag([
            ("a", regionTag((0, 0, 0), (1, 1, 1), ["minecraft:air", "minecraft:stone"], [1])),
            ("b", regionTag((2, 0, 0), (1, 1, 1), ["minecraft:dirt", "minecraft:stone"], [0])),
        ], enclosingSize=(3, 1, 1))

        schematic = nbt.load(convert.convert(root_tag.save(), convert.LITEMATIC, convert.SCHEMATIC))
        assert dimensions(schematic) == [3, 1, 1]
        assert paletteEntries(schematic) == [("minecraft:air", 0), ("minecraft:stone", 1), ("minecraft:dirt", 2)]
        assert blockData(schematic) == [1, 0, 2]

    def testNegativeSize(self):
        root_tag = litematicTag([
            ("a", regionTag((0, 0, 0), (-2, 1, 1), ["minecraft:air", "minecraft:stone"], [1, 0])),
            ("b", regionTag((0, 0, 0), (1, 1, 1), ["minecraft:dirt"], [0])),
        ], enclosingSize=(3, 1, 1))

        schematic = nbt.load(convert.convert(root_tag.save(), convert.LITEMATIC, convert.SCHEMATIC))
        assert schematic["Offset"].value.tolist() == [-2, 0, 0]
        assert blockData(schematic) == [1, 0, 2]

    def testEntities(self):
        region = regionTag((5, 10, -3), (1, 1, 1), ["minecraft:chest[facing=north]"], [0],
                           entities=[entityTag("minecraft:cat", (5.5, 10.0, -2.5))],
                           tileEntities=[tileEntityTag("minecraft:chest", (5, 10, -3))])
        root_tag = litematicTag([("main", region)])

        schematic = nbt.load(convert.convert(root_tag.save(), convert.LITEMATIC, convert.SCHEMATIC))
        assert schematic["Offset"].value.tolist() == [5, 10, -3]
        assert [p.value for p in schematic["Entities"][0]["Pos"]] == [0.5, 0.0, 0.5]
        chest = schematic["BlockEntities"][0]
        assert [chest[a].value for a in "xyz"] == [0, 0, 0]
        assert list(schematic["Palette"]) == ["minecraft:chest[facing=north]"]

    def testEnclosingSizeMismatch(self):
        root_tag = cubeLitematic()
        root_tag["Metadata"]["EnclosingSize"]["x"] = nbt.TAG_Int(9)
        with self.assertLogs("convert", "WARNING"):
            output = convert.convert(root_tag.save(), convert.LITEMATIC, convert.SCHEMATIC)
        assert dimensions(nbt.load(output)) == [2, 2, 2]


class TestSchematicToLitematic(unittest.TestCase):
    def testCube(self):
        output = convert.convert(cubeSchematic().save(), convert.SCHEMATIC, convert.LITEMATIC)
        assert not nbt.isGzipped(output)

        root_tag = nbt.load(output)
        assert root_tag["Version"].value == 5
        assert root_tag["MinecraftDataVersion"].value == 2586
        assert [root_tag["Metadata"]["EnclosingSize"][a].value for a in "xyz"] == [2, 2, 2]
        assert list(root_tag["Regions"]) == ["main"]

        region = root_tag["Regions"]["main"]
        assert [region["Position"][a].value for a in "xyz"] == [0, 0, 0]
        assert [region["Size"][a].value for a in "xyz"] == [2, 2, 2]
        assert [s["Name"].value for s in region["BlockStatePalette"]] == CUBE_STATES
        # two bits per entry, eight entries: one long
        assert region["BlockStates"].value.size == 1

        litematic = Litematic.load(output)
        assert litematic.regions[0].decodeBlocks().ravel().tolist() == CUBE_IDS

    def testBlockRoundTrip(self):
        litematicData = convert.convert(cubeSchematic().save(), convert.SCHEMATIC, convert.LITEMATIC)
        schematic = nbt.load(convert.convert(litematicData, convert.LITEMATIC, convert.SCHEMATIC))
        assert blockData(schematic) == CUBE_IDS
        assert list(schematic["Palette"]) == CUBE_STATES
        assert dimensions(schematic) == [2, 2, 2]


class TestCompression(unittest.TestCase):
    def testSchem(self):
        data = cubeSchematic().save()
        schem = convert.convert(data, convert.SCHEMATIC, convert.SCHEM)
        assert nbt.isGzipped(schem)
        assert convert.convert(schem, convert.CompressedSingleRegion, convert.SingleRegion) == data
        assert nbt.load(nbt.gunzip(schem)) == cubeSchematic()

    def testBadGzip(self):
        with self.assertRaises(NBTFormatError):
            convert.convert(b"\x1f\x8b\x08 truncated", convert.SCHEM, convert.SCHEMATIC)


class TestDispatch(unittest.TestCase):
    def testUnsupported(self):
        data = cubeLitematic().save()
        for source, target in [(convert.LITEMATIC, convert.SCHEM),
                               (convert.SCHEM, convert.LITEMATIC),
                               (convert.SCHEMATIC, convert.SCHEMATIC),
                               (convert.LITEMATIC, convert.LITEMATIC),
                               ("mcedit", convert.SCHEMATIC)]:
            with self.assertRaises(UnsupportedConversion) as cm:
                convert.convert(data, source, target)
            assert (cm.exception.source, cm.exception.target) == (source, target)

    def testErrorsAreValueErrors(self):
        with self.assertRaises(ValueError):
            convert.convert(b"", convert.LITEMATIC, convert.SCHEM)
        with self.assertRaises(ConversionError):
            convert.convert(b"\x0a\x00\x00\x00", convert.LITEMATIC, convert.SCHEMATIC)

    def testIdentify(self):
        litematic = cubeLitematic().save()
        schematic = cubeSchematic().save()
        assert convert.identify(litematic) == convert.LITEMATIC
        assert convert.identify(nbt.gzip(litematic)) == convert.LITEMATIC
        assert convert.identify(schematic) == convert.SCHEMATIC
        assert convert.identify(nbt.gzip(schematic)) == convert.SCHEM

        with self.assertRaises(ConversionError):
            convert.identify(nbt.TAG_Compound(name="Level").save())
        with self.assertRaises(NBTFormatError):
            convert.identify(b"hello")

    def testFormatForFilename(self):
        assert convert.formatForFilename("castle.litematic") == convert.LITEMATIC
        assert convert.formatForFilename(os.path.join("builds", "Castle.SCHEMATIC")) == convert.SCHEMATIC
        assert convert.formatForFilename("castle.schem") == convert.SCHEM
        with self.assertRaises(ConversionError):
            convert.formatForFilename("castle.nbt")
        with self.assertRaises(ConversionError):
            convert.formatForFilename("castle")


class TestFiles(unittest.TestCase):
    def setUp(self):
        self.tempDir = TempDir()

    def tearDown(self):
        self.tempDir.close()

    def testConvertFile(self):
        source = self.tempDir.write("castle.litematic", cubeLitematic().save(compressed=True))
        target = self.tempDir.join("castle.schematic")
        convert.convertFile(source, target)

        assert blockData(nbt.load(self.tempDir.read("castle.schematic"))) == CUBE_IDS
        assert not os.path.exists(target + ".tmp")

    def testLitematicNamedAfterFile(self):
        source = self.tempDir.write("cube.schematic", cubeSchematic().save())
        convert.convertFile(source, self.tempDir.join("tower.litematic"))

        litematic = Litematic.load(self.tempDir.read("tower.litematic"))
        assert litematic.name == "tower"

    def testExplicitFormats(self):
        source = self.tempDir.write("cube.dat", cubeSchematic().save())
        target = self.tempDir.join("cube.out")
        convert.convertFile(source, target, source=convert.SCHEMATIC, target=convert.SCHEM)
        assert convert.identify(self.tempDir.read("cube.out")) == convert.SCHEM

    def testFailureLeavesNoFile(self):
        source = self.tempDir.write("broken.litematic", b"not a litematic")
        target = self.tempDir.join("broken.schematic")
        with self.assertRaises(ConversionError):
            convert.convertFile(source, target)
        assert not os.path.exists(target)
        assert not os.path.exists(target + ".tmp")


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.tempDir = TempDir()

    def tearDown(self):
        self.tempDir.close()

    def testConvert(self):
        source = self.tempDir.write("castle.schematic", cubeSchematic().save())
        target = self.tempDir.join("castle.schem")
        assert schemconv.main(["-q", source, target]) == 0
        assert nbt.load(nbt.gunzip(self.tempDir.read("castle.schem"))) == cubeSchematic()

    def testFormatOptions(self):
        source = self.tempDir.write("castle.bin", cubeLitematic().save())
        target = self.tempDir.join("castle.out")
        assert schemconv.main(["-q", "--from", "litematic", "--to", "schematic", source, target]) == 0
        assert blockData(nbt.load(self.tempDir.read("castle.out"))) == CUBE_IDS

    def testIdentifyAndDump(self):
        source = self.tempDir.write("castle.litematic", cubeLitematic().save(compressed=True))
        assert schemconv.main(["-q", "--identify", source]) == 0
        assert schemconv.main(["-q", "--dump", source]) == 0

    def testConversionError(self):
        source = self.tempDir.write("castle.litematic", cubeLitematic().save())
        assert schemconv.main(["-q", source, self.tempDir.join("castle.schem")]) == 1
        assert schemconv.main(["-q", self.tempDir.join("missing.schematic"), self.tempDir.join("out.schem")]) == 1

    def testUsage(self):
        with self.assertRaises(SystemExit):
            schemconv.main(["-q", "only-one-file"])
        with self.assertRaises(SystemExit):
            schemconv.main(["--to", "mcedit", "a.schematic", "b.schem"])

    def testMalformedContents(self):
        root_tag = cubeLitematic()
        root_tag["Regions"]["main"]["Entities"] = nbt.TAG_List([nbt.TAG_Int(1)])
        source = self.tempDir.write("castle.litematic", root_tag.save())
        assert schemconv.main(["-q", source, self.tempDir.join("castle.schematic")]) == 1

        root_tag = cubeSchematic()
        root_tag["BlockData"] = nbt.TAG_Byte_Array(numpy.array([0xFF] * 10 + [0x7F] + [0] * 7, numpy.uint8))
        source = self.tempDir.write("castle.schematic", root_tag.save())
        with self.assertRaises(ConversionError):
            convert.convert(root_tag.save(), convert.SCHEMATIC, convert.LITEMATIC)
        assert schemconv.main(["-q", source, self.tempDir.join("castle.litematic")]) == 1
