'''
Block states and palettes.

A block state is a namespaced block name plus an ordered set of properties.
Its canonical string is "name" or "name[k1=v1,k2=v2]" with the properties in
the order they were given, and two states are the same block exactly when
their canonical strings match.
'''

from logging import getLogger

from numpy import array, int64

import nbt
from schembase import InvalidPalette, TypeMismatch, joinPath

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ['BlockState', 'Palette', 'PaletteUnifier']

Name = "Name"
Properties = "Properties"


def propertyValue(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BlockState(object):
    def __init__(self, name, properties=None):
        self.name = name
        self.properties = dict((str(k), propertyValue(v)) for k, v in (properties or {}).items())

    @property
    def canonical(self):
        if not self.properties:
            return self.name
        return "{0}[{1}]".format(self.name, ",".join("{0}={1}".format(k, v) for k, v in self.properties.items()))

    def __eq__(self, other):
        if not isinstance(other, BlockState):
            return NotImplemented
        return self.canonical == other.canonical

    def __hash__(self):
        return hash(self.canonical)

    def __str__(self):
        return self.canonical

    def __repr__(self):
        return "BlockState({0!r})".format(self.canonical)

    @classmethod
    def fromString(cls, text):
        """Parse a canonical string such as minecraft:oak_log[axis=y]."""
        name, bracket, rest = text.partition("[")
        properties = {}
        if bracket:
            if not rest.endswith("]"):
                raise InvalidPalette("Unterminated property list in block state {0!r}".format(text))
            for pair in rest[:-1].split(","):
                if not pair:
                    continue
                key, equals, value = pair.partition("=")
                if not equals:
                    raise InvalidPalette("Property {0!r} has no value in block state {1!r}".format(pair, text))
                properties[key] = value
        return cls(name, properties)

    @classmethod
    def fromTag(cls, tag, path=""):
        """Read a litematic palette entry: Name, and an optional Properties
        compound of scalar tags."""
        name = tag.require(Name, nbt.TAG_String, path=path).value
        properties = {}
        propertiesTag = tag.optional(Properties, nbt.TAG_Compound, path=path)
        if propertiesTag is not None:
            for key, valueTag in propertiesTag.items():
                if isinstance(valueTag, (nbt.TAG_String,) + nbt.integer_tags + nbt.float_tags):
                    properties[key] = valueTag.value
                else:
                    raise TypeMismatch(joinPath(path, Properties, key), "a scalar tag", valueTag.__class__.__name__)
        return cls(name, properties)

    def toTag(self):
        tag = nbt.TAG_Compound()
        tag[Name] = nbt.TAG_String(self.name)
        if self.properties:
            propertiesTag = nbt.TAG_Compound()
            for key, value in self.properties.items():
                propertiesTag[key] = nbt.TAG_String(value)
            tag[Properties] = propertiesTag
        return tag


def asBlockState(state):
    if isinstance(state, BlockState):
        return state
    return BlockState.fromString(state)


class Palette(object):
    """Dense mapping between block states and ids 0..n-1. Ids are handed out
    in the order states are first added and never change afterwards."""

    def __init__(self, states=()):
        self._ids = {}
        self._states = []
        for state in states:
            self.add(state)

    def add(self, state):
        """Return the id of state, assigning the next free id if it is new."""
        state = asBlockState(state)
        key = state.canonical
        blockID = self._ids.get(key)
        if blockID is None:
            blockID = len(self._states)
            self._ids[key] = blockID
            self._states.append(state)
        return blockID

    def index(self, state):
        return self._ids[asBlockState(state).canonical]

    def __getitem__(self, blockID):
        return self._states[blockID]

    def __contains__(self, state):
        return asBlockState(state).canonical in self._ids

    def __len__(self):
        return len(self._states)

    def __iter__(self):
        return (state.canonical for state in self._states)

    def __repr__(self):
        return "Palette({0})".format(list(self))

    def states(self):
        return list(self._states)

    @classmethod
    def fromPaletteTag(cls, tag, path="Palette"):
        """Read a sponge palette, a compound mapping canonical strings to ids.
        The ids must be exactly 0..n-1."""
        entries = {}
        for key, idTag in tag.items():
            if not isinstance(idTag, nbt.integer_tags):
                raise TypeMismatch(joinPath(path, key), "an integer tag", idTag.__class__.__name__)
            if idTag.value in entries:
                raise InvalidPalette("Palette id {0} is used by both {1!r} and {2!r}".format(idTag.value, entries[idTag.value], key))
            entries[idTag.value] = key

        missing = sorted(set(range(len(entries))) - set(entries))
        if missing:
            raise InvalidPalette("Palette ids are not contiguous; {0} is missing".format(missing[0]))

        palette = cls()
        for blockID in range(len(entries)):
            if palette.add(entries[blockID]) != blockID:
                raise InvalidPalette("Palette lists block state {0!r} twice".format(entries[blockID]))
        return palette

    def toPaletteTag(self):
        tag = nbt.TAG_Compound()
        for blockID, key in enumerate(self):
            tag[key] = nbt.TAG_Int(blockID)
        return tag


class PaletteUnifier(object):
    """Builds one global palette from the local palettes of several regions.

    Call unify() once per region, in region order. Each call returns a lookup
    table from that region's local ids to global ids; the same block state
    in two regions gets the same global id."""

    def __init__(self):
        self.palette = Palette()

    def unify(self, localStates):
        lookup = array([self.palette.add(state) for state in localStates], int64)
        debug("Unified {0} local block states; global palette now has {1}".format(len(lookup), len(self.palette)))
        return lookup
