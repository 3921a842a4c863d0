import io
import unittest

import numpy

import nbt
from schembase import MissingField, NBTFormatError, TypeMismatch

__author__ = 'Rio'


class TestNBT(unittest.TestCase):

    def create(self):
        "Create a small sponge schematic."

        "The root of an NBT file is always a TAG_Compound."
        level = nbt.TAG_Compound(name="Schematic")

        "Subtags of a TAG_Compound are automatically named when you use the [] operator."
        level["Metadata"] = nbt.TAG_Compound()
        level["Metadata"]["Author"] = nbt.TAG_String("codewarrior")

        "You can also create and name a tag before adding it to the compound."
        offset = nbt.TAG_Int_Array([100, -45, 55])
        offset.name = "Offset"
        level.add(offset)

        l, w, h = 4, 3, 2
        level["Height"] = nbt.TAG_Short(h)  # y dimension
        level["Length"] = nbt.TAG_Short(l)  # z dimension
        level["Width"] = nbt.TAG_Short(w)  # x dimension

        "Byte arrays are stored as numpy.uint8 arrays."
        level["BlockData"] = nbt.TAG_Byte_Array(numpy.zeros(l * w * h, dtype=numpy.uint8))
        level["BlockData"].value[:w * l] = 1

        level["Entities"] = nbt.TAG_List([nbt.TAG_Compound(), nbt.TAG_Compound()])
        level["Entities"][0]["Pos"] = nbt.TAG_List([nbt.TAG_Double(0.5), nbt.TAG_Double(1.0), nbt.TAG_Double(-2.5)])

        level["States"] = nbt.TAG_Long_Array([-1, 0, 1 << 62])
        return level

    def testCreate(self):
        level = self.create()
        assert level.name == "Schematic"
        assert list(level) == ["Metadata", "Offset", "Height", "Length", "Width", "BlockData", "Entities", "States"]
        assert level["BlockData"].value.sum() == 12
        assert level["Metadata"]["Author"].value == "codewarrior"

    def testModify(self):
        level = self.create()

        "Most of the value types work as expected. Here, we replace the entire tag with a TAG_String"
        level["Metadata"]["Author"] = nbt.TAG_String("YARRR~!")

        "Because the tag type usually doesn't change, "
        "we can replace the string tag's value instead of replacing the entire tag."
        level["Metadata"]["Author"].value = "Stew Pickles"
        assert level["Metadata"]["Author"].value == "Stew Pickles"

        "Remove members of a TAG_Compound using del, similar to a python dict."
        del level["Metadata"]
        assert "Metadata" not in level

        "Plain strings and lists are wrapped for you."
        level["Name"] = "castle"
        assert isinstance(level["Name"], nbt.TAG_String)

    def testSaveLoad(self):
        level = self.create()
        data = level.save()
        newlevel = nbt.load(data)

        assert newlevel == level
        assert list(newlevel) == list(level)
        assert newlevel["Offset"].value.tolist() == [100, -45, 55]
        assert newlevel["States"].value.tolist() == [-1, 0, 1 << 62]
        assert newlevel["Entities"][0]["Pos"][2].value == -2.5

        "save() also writes into an open buffer."
        buf = io.BytesIO()
        level.save(buf=buf)
        assert buf.getvalue() == data

    def testCompressed(self):
        level = self.create()
        compressed = level.save(compressed=True)
        assert nbt.isGzipped(compressed)
        assert nbt.load(nbt.gunzip(compressed)) == level

    def testGzipRoundTrip(self):
        for data in (b"", b"\x00", bytes(range(256)) * 7, b"not nbt at all"):
            assert nbt.gunzip(nbt.gzip(data)) == data

    def testEquality(self):
        a = self.create()
        b = self.create()
        assert a == b
        b["BlockData"].value[0] = 9
        assert a != b
        assert nbt.TAG_Int(1) != nbt.TAG_Short(1)

    def testTypedAccess(self):
        level = self.create()
        assert level.get("Missing") is None
        assert level.optional("Missing", nbt.TAG_Int) is None
        assert level.optional("Width", nbt.TAG_Short, nbt.TAG_Int).value == 3
        assert level.require("Width").value == 3

        with self.assertRaises(TypeMismatch) as cm:
            level.optional("Width", nbt.TAG_String)
        assert cm.exception.path == "Schematic/Width"

        with self.assertRaises(MissingField) as cm:
            level["Metadata"].require("Name", nbt.TAG_String, path="Schematic/Metadata")
        assert cm.exception.path == "Schematic/Metadata/Name"

    def testErrors(self):
        """
        attempt to name elements of a TAG_List
        named list elements are not allowed by the NBT format,
        so we must discard any names when writing a list.
        """

        level = self.create()
        level["Entities"][0].name = "Torg Potter"
        data = level.save()
        newlevel = nbt.load(data)

        assert newlevel["Entities"][0].name == ""

        """
        attempt to delete non-existent TAG_Compound elements
        this generates a KeyError like a python dict does.
        """
        level = self.create()
        with self.assertRaises(KeyError):
            del level["DEADBEEF"]

        "Lists hold a single tag type."
        with self.assertRaises(TypeError):
            level["Entities"].append(nbt.TAG_Int(1))

    def testMalformed(self):
        data = self.create().save()
        with self.assertRaises(NBTFormatError):
            nbt.load(b"")
        with self.assertRaises(NBTFormatError):
            nbt.load(b"\x08\x00\x00")
        with self.assertRaises(NBTFormatError):
            nbt.load(data[:len(data) // 2])
        with self.assertRaises(NBTFormatError):
            nbt.gunzip(b"\x1f\x8b garbage")
