"""
Named Binary Tag library. Serializes and deserializes TAG_* objects
to and from binary data. Parse a document by calling nbt.load() on its
uncompressed bytes. Create your own TAG_* objects and set their values.
Call save() on the root TAG_Compound to get its bytes back.

Array tags hold numpy arrays. Byte arrays are uint8, int and long arrays
keep their big-endian dtype so they can be written without conversion.

TAG_Compound lookups come in three flavours:

    compound.get(key)                  None if absent
    compound.optional(key, TAG_Int)    None if absent, TypeMismatch if not a TAG_Int
    compound.require(key, TAG_Int)     MissingField if absent, TypeMismatch if not a TAG_Int
"""
import collections.abc
import io
import struct
import zlib
from contextlib import closing
from gzip import GzipFile

from numpy import array, array_equal, frombuffer, uint8, zeros

from schembase import DEFAULT_COMPRESSLEVEL, MissingField, NBTFormatError, TypeMismatch, joinPath

TAGfmt = ">b"
GZIP_MAGIC = b"\x1f\x8b"


class TAG_Value(object):
    """Simple values. Subclasses override fmt to change the type and size.
    Subclasses may set dataType instead of overriding setValue for automatic data type coercion"""

    fmt = ">b"
    tag = -1  # error!

    _value = None

    def getValue(self):
        return self._value

    def setValue(self, newVal):
        self._value = self.dataType(newVal)

    value = property(getValue, setValue, None, "Change the TAG's value. Data types are checked and coerced if needed.")

    _name = ""

    def getName(self):
        return self._name

    def setName(self, newVal):
        self._name = "" if newVal is None else str(newVal)

    def delName(self):
        self._name = ""

    name = property(getName, setName, delName, "Change the TAG's name. Coerced to a string.")

    @classmethod
    def load_from(cls, data, data_cursor):
        (value,) = struct.unpack_from(cls.fmt, data, data_cursor)
        return cls(value=value), data_cursor + struct.calcsize(cls.fmt)

    def __init__(self, value=0, name=""):
        self.name = name
        self.value = value

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.name == other.name and self._valueEquals(other)

    __hash__ = None

    def _valueEquals(self, other):
        return self.value == other.value

    def __repr__(self):
        return "%s( \"%s\" ): %r" % (self.__class__.__name__, self.name, self.value)

    def __str__(self):
        return self.pretty_string()

    def pretty_string(self, indent=0):
        if self.name:
            return " " * indent + "%s( \"%s\" ): %s" % (self.__class__.__name__, self.name, self.value)
        else:
            return " " * indent + "%s: %s" % (self.__class__.__name__, self.value)

    def write_tag(self, buf):
        buf.write(struct.pack(TAGfmt, self.tag))

    def write_name(self, buf):
        TAG_String(self.name).write_value(buf)

    def write_value(self, buf):
        buf.write(struct.pack(self.fmt, self.value))

    def save(self, buf=None, compressed=False):
        """Write this tag, with its type and name, as the root of a document.
        Returns the bytes written when no buffer is given."""
        if buf is not None:
            self.write_tag(buf)
            self.write_name(buf)
            self.write_value(buf)
            return

        buf = io.BytesIO()
        self.save(buf=buf)
        data = buf.getvalue()
        if compressed:
            return gzip(data)
        return data


class TAG_Byte(TAG_Value):
    tag = 1
    fmt = ">b"
    dataType = int


class TAG_Short(TAG_Value):
    tag = 2
    fmt = ">h"
    dataType = int


class TAG_Int(TAG_Value):
    tag = 3
    fmt = ">i"
    dataType = int


class TAG_Long(TAG_Value):
    tag = 4
    fmt = ">q"
    dataType = int


class TAG_Float(TAG_Value):
    tag = 5
    fmt = ">f"
    dataType = float


class TAG_Double(TAG_Value):
    tag = 6
    fmt = ">d"
    dataType = float


class TAG_Byte_Array(TAG_Value):
    """Like a string, but for binary data. Four length bytes instead of
    two. value is a numpy array, and you can change its elements"""

    tag = 7
    dtype = uint8
    itemsize = 1

    def dataType(self, value):
        return array(value, self.dtype)

    def __repr__(self):
        return "<%s: length %d> ( %s )" % (self.__class__.__name__, self.value.size, self.name)

    def _valueEquals(self, other):
        return array_equal(self.value.ravel(), other.value.ravel())

    def pretty_string(self, indent=0):
        if self.name:
            return " " * indent + "%s( \"%s\" ): shape=%s dtype=%s %s" % (
                self.__class__.__name__,
                self.name,
                self.value.shape,
                self.value.dtype,
                self.value)
        else:
            return " " * indent + "%s: %s %s" % (self.__class__.__name__, self.value.shape, self.value)

    @classmethod
    def load_from(cls, data, data_cursor):
        (count,) = struct.unpack_from(">i", data, data_cursor)
        data_cursor += 4
        if count < 0 or data_cursor + count * cls.itemsize > len(data):
            raise NBTFormatError("%s of length %d runs past the end of the data" % (cls.__name__, count))
        value = frombuffer(data, cls.dtype, count, data_cursor).copy()
        return cls(value), data_cursor + count * cls.itemsize

    def __init__(self, value=None, name=""):
        self.name = name
        if value is None:
            value = zeros(0, self.dtype)
        self.value = value

    def write_value(self, buf):
        buf.write(struct.pack(">i", self.value.size))
        buf.write(self.value.astype(self.dtype).tobytes())


class TAG_Int_Array(TAG_Byte_Array):
    """An array of ints"""
    tag = 11
    dtype = ">i4"
    itemsize = 4


class TAG_Long_Array(TAG_Byte_Array):
    """An array of longs"""
    tag = 12
    dtype = ">i8"
    itemsize = 8


class TAG_String(TAG_Value):
    """String in UTF-8. The value is a str; bytes are decoded as UTF-8."""

    tag = 8

    def dataType(self, s):
        if isinstance(s, bytes):
            return s.decode("utf-8")
        return str(s)

    @classmethod
    def load_from(cls, data, data_cursor):
        (string_len,) = struct.unpack_from(">H", data, data_cursor)
        data_cursor += 2
        if data_cursor + string_len > len(data):
            raise NBTFormatError("String of length %d runs past the end of the data" % string_len)
        value = data[data_cursor:data_cursor + string_len].decode("utf-8")
        return cls(value), data_cursor + string_len

    def __init__(self, value="", name=""):
        self.name = name
        self.value = value

    def write_value(self, buf):
        u8value = self._value.encode("utf-8")
        buf.write(struct.pack(">H", len(u8value)))
        buf.write(u8value)


class TAG_Compound(TAG_Value, collections.abc.MutableMapping):
    """A heterogenous list of named tags. Names must be unique within
    the TAG_Compound. Add tags to the compound using the subscript
    operator []. This will automatically name the tags.

    Tags keep the order they were added in."""

    tag = 10

    def dataType(self, val):
        tags = {}
        for i in val:
            if not isinstance(i, TAG_Value):
                raise TypeError("Invalid type %s for TAG_Compound" % (i.__class__,))
            tags[i.name] = i
        return tags

    def getValue(self):
        return list(self._value.values())

    value = property(getValue, TAG_Value.setValue, None, "The tags in this compound, in order.")

    def _valueEquals(self, other):
        return self.value == other.value

    def __repr__(self):
        return "%s( %s ): %s" % (self.__class__.__name__, self.name, self.value)

    def pretty_string(self, indent=0):
        if self.name:
            pretty = " " * indent + "%s( \"%s\" ): %d items\n" % (self.__class__.__name__, self.name, len(self))
        else:
            pretty = " " * indent + "%s(): %d items\n" % (self.__class__.__name__, len(self))
        indent += 4
        for tag in self.value:
            pretty += tag.pretty_string(indent) + "\n"
        return pretty

    @classmethod
    def load_from(cls, data, data_cursor):
        self = cls()
        while True:
            if data_cursor >= len(data):
                raise NBTFormatError("TAG_Compound is missing its TAG_End")
            tag_type = data[data_cursor]
            data_cursor += 1
            if tag_type == 0:
                break

            tag, data_cursor = load_named(data, data_cursor, tag_type)
            self._value[tag.name] = tag

        return self, data_cursor

    def __init__(self, value=None, name=""):
        self.name = name
        self.value = value or []

    def write_value(self, buf):
        for i in self.value:
            i.save(buf=buf)
        buf.write(b"\x00")

    # collection functions
    def __getitem__(self, k):
        try:
            return self._value[k]
        except KeyError:
            raise KeyError("Key {0} not found in tag {1}".format(k, self.name or "<root>"))

    def __iter__(self):
        return iter(self._value)

    def __contains__(self, k):
        return k in self._value

    def __len__(self):
        return len(self._value)

    def __setitem__(self, k, v):
        """Automatically wraps lists and tuples in a TAG_List, and wraps strings
        in a TAG_String."""
        if isinstance(v, (list, tuple)):
            v = TAG_List(v)
        elif isinstance(v, str):
            v = TAG_String(v)

        if v.__class__ not in tag_classes.values():
            raise TypeError("Invalid type %s for TAG_Compound" % (v.__class__,))
        v.name = k
        self._value[k] = v

    def __delitem__(self, k):
        del self._value[k]

    def get(self, k, default=None):
        return self._value.get(k, default)

    def add(self, v):
        self[v.name] = v

    def optional(self, k, *kinds, path=None):
        """Return the tag named k, or None if there is no such tag. If kinds
        are given, a tag of any other type raises TypeMismatch."""
        tag = self._value.get(k)
        if tag is None or not kinds or isinstance(tag, kinds):
            return tag
        raise TypeMismatch(joinPath(self.name if path is None else path, k),
                           " or ".join(kind.__name__ for kind in kinds),
                           tag.__class__.__name__)

    def require(self, k, *kinds, path=None):
        """Like optional(), but an absent tag raises MissingField."""
        tag = self.optional(k, *kinds, path=path)
        if tag is None:
            raise MissingField(joinPath(self.name if path is None else path, k))
        return tag


class TAG_List(TAG_Value, collections.abc.MutableSequence):
    """A homogenous list of unnamed data of a single TAG_* type.
    Once created, the type can only be changed by emptying the list
    and adding an element of the new type. If created with no arguments,
    returns a list of TAG_Compound

    Empty lists in the wild have been seen with type TAG_End"""

    tag = 9

    def dataType(self, val):
        val = list(val)
        if val:
            listType = val[0].__class__
            if not all(x.__class__ is listType for x in val):
                raise TypeError("TAG_List elements must all be %s" % (listType.__name__,))
            for x in val:
                x.name = ""
        return val

    def __repr__(self):
        return "%s( %s ): %s" % (self.__class__.__name__, self.name, self.value)

    def pretty_string(self, indent=0):
        if self.name:
            pretty = " " * indent + "%s( \"%s\" ):\n" % (self.__class__.__name__, self.name)
        else:
            pretty = " " * indent + "%s():\n" % (self.__class__.__name__,)

        indent += 4
        for tag in self.value:
            pretty += tag.pretty_string(indent) + "\n"
        return pretty

    @classmethod
    def load_from(cls, data, data_cursor):
        self = cls()
        self.list_type = data[data_cursor]
        data_cursor += 1

        list_length, data_cursor = TAG_Int.load_from(data, data_cursor)
        list_length = list_length.value
        if list_length > 0:
            tagClass = tagClassFor(self.list_type)
            for i in range(list_length):
                tag, data_cursor = tagClass.load_from(data, data_cursor)
                self._value.append(tag)

        return self, data_cursor

    def __init__(self, value=None, name="", list_type=None):
        # can be created from a list of tags in value, with an optional
        # name, or created with list_type taken from a TAG class
        self.name = name
        self.list_type = (list_type or TAG_Compound).tag
        value = list(value or [])
        if len(value):
            self.list_type = value[0].tag
        self.value = value

    # collection methods
    def __iter__(self):
        return iter(self._value)

    def __contains__(self, k):
        return k in self._value

    def __getitem__(self, i):
        return self._value[i]

    def __len__(self):
        return len(self._value)

    def __setitem__(self, i, v):
        if v.__class__ is not tag_classes.get(self.list_type):
            raise TypeError("Invalid type %s for TAG_List(%s)" % (v.__class__, tag_classes.get(self.list_type)))
        v.name = ""
        self._value[i] = v

    def __delitem__(self, i):
        del self._value[i]

    def insert(self, i, v):
        if v.tag not in tag_classes:
            raise TypeError("Not a tag type: %s" % (v,))
        if len(self) == 0:
            self.list_type = v.tag
        elif v.__class__ is not tag_classes[self.list_type]:
            raise TypeError("Invalid type %s for TAG_List(%s)" % (v.__class__, tag_classes[self.list_type]))

        v.name = ""
        self._value.insert(i, v)

    def write_value(self, buf):
        buf.write(struct.pack(TAGfmt, self.list_type))
        buf.write(struct.pack(">i", len(self)))
        for i in self._value:
            i.write_value(buf)


tag_classes = {
    1: TAG_Byte,
    2: TAG_Short,
    3: TAG_Int,
    4: TAG_Long,
    5: TAG_Float,
    6: TAG_Double,
    7: TAG_Byte_Array,
    8: TAG_String,
    9: TAG_List,
    10: TAG_Compound,
    11: TAG_Int_Array,
    12: TAG_Long_Array,
}

# numeric kinds, for fields that writers disagree on
integer_tags = (TAG_Byte, TAG_Short, TAG_Int, TAG_Long)
float_tags = (TAG_Float, TAG_Double)


def tagClassFor(tag_type):
    try:
        return tag_classes[tag_type]
    except KeyError:
        raise NBTFormatError("Unknown tag type %d" % (tag_type,))


def valueOf(tag, default=None):
    """The value of an optional tag, or default if the tag is None."""
    if tag is None:
        return default
    return tag.value


def isGzipped(data):
    return data[:2] == GZIP_MAGIC


def gunzip(data):
    with closing(GzipFile(fileobj=io.BytesIO(data), mode="rb")) as gz:
        try:
            return gz.read()
        except (OSError, EOFError, zlib.error) as e:
            raise NBTFormatError("Malformed gzip stream: %s" % (e,))


def gzip(data, compresslevel=DEFAULT_COMPRESSLEVEL):
    sio = io.BytesIO()
    with closing(GzipFile(fileobj=sio, mode="wb", compresslevel=compresslevel, mtime=0)) as outputGz:
        outputGz.write(data)
    return sio.getvalue()


def load_named(data, data_cursor, tag_type):
    tag_name, data_cursor = TAG_String.load_from(data, data_cursor)

    tag, data_cursor = tagClassFor(tag_type).load_from(data, data_cursor)
    tag.name = tag_name.value

    return tag, data_cursor


def load(buf):
    """Unserialize data from an entire uncompressed NBT document and return
    the root TAG_Compound object. buf may be bytes or a uint8 array."""

    data = bytes(buf)
    if not len(data):
        raise NBTFormatError("Asked to load root tag of zero length")

    tag_type = data[0]
    if tag_type != TAG_Compound.tag:
        raise NBTFormatError("Not an NBT file with a root TAG_Compound (found {0})".format(tag_type))

    try:
        tag, data_cursor = load_named(data, 1, tag_type)
    except NBTFormatError:
        raise
    except (struct.error, IndexError, UnicodeDecodeError) as e:
        raise NBTFormatError("Malformed NBT data: {0}".format(e))

    return tag


__all__ = [a.__name__ for a in tag_classes.values()] + ["load", "gzip", "gunzip", "isGzipped", "valueOf"]
