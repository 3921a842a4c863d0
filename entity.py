'''
Position handling for entities and tile entities.

Entities keep their position in a Pos list of doubles. Tile entities use
either a Pos int array (sponge schematics) or separate x, y, z ints
(litematic regions). Hanging entities also carry the block they hang on in
TileX, TileY, TileZ.
'''
from copy import deepcopy
from logging import getLogger

import nbt
from nbt import TAG_Int, TAG_Int_Array, TAG_List
from schembase import TypeMismatch, joinPath

log = getLogger(__name__)
warn, error, info, debug = log.warning, log.error, log.info, log.debug

__all__ = ["Entity", "TileEntity", "InvalidEntity", "readEntityList"]

id = "id"
Pos = "Pos"


class InvalidEntity(ValueError):
    pass


def entityID(tag):
    idTag = tag.get(id) if isinstance(tag, nbt.TAG_Compound) else None
    return idTag.value if isinstance(idTag, nbt.TAG_String) else "<unknown>"


def readEntityList(parent, key, path=""):
    """Return the compounds in parent[key] as a list, or None if the list is
    absent. Any element that is not a compound raises TypeMismatch."""
    listTag = parent.optional(key, TAG_List, path=path)
    if listTag is None:
        return None
    for i, tag in enumerate(listTag):
        if not isinstance(tag, nbt.TAG_Compound):
            raise TypeMismatch(joinPath(path, key, str(i)), "TAG_Compound", tag.__class__.__name__)
    return list(listTag)


class Entity(object):
    @classmethod
    def pos(cls, tag):
        posTag = tag.get(Pos)
        if not (isinstance(posTag, TAG_List) and len(posTag) == 3 and isinstance(posTag[0], nbt.float_tags + nbt.integer_tags)):
            raise InvalidEntity("Entity {0} has no Pos list".format(entityID(tag)))
        return [p.value for p in posTag]

    @classmethod
    def copyWithOffset(cls, entity, copyOffset):
        eTag = deepcopy(entity)
        try:
            pos = cls.pos(eTag)
        except InvalidEntity as e:
            warn("{0}; copying it without moving it".format(e))
            return eTag

        posType = eTag[Pos][0].__class__
        eTag[Pos] = TAG_List([posType(p + co) for p, co in zip(pos, copyOffset)])

        if all(isinstance(eTag.get(t), nbt.integer_tags) for t in ("TileX", "TileY", "TileZ")):
            eTag["TileX"].value += copyOffset[0]
            eTag["TileY"].value += copyOffset[1]
            eTag["TileZ"].value += copyOffset[2]

        return eTag


class TileEntity(object):
    @staticmethod
    def hasPosArray(tag):
        posTag = tag.get(Pos)
        return isinstance(posTag, TAG_Int_Array) and posTag.value.size == 3

    @classmethod
    def pos(cls, tag):
        if cls.hasPosArray(tag):
            return [int(p) for p in tag[Pos].value]
        if all(isinstance(tag.get(a), nbt.integer_tags) for a in 'xyz'):
            return [tag[a].value for a in 'xyz']
        raise InvalidEntity("Tile entity {0} has no position".format(entityID(tag)))

    @classmethod
    def copyWithOffset(cls, tileEntity, copyOffset):
        eTag = deepcopy(tileEntity)
        try:
            pos = cls.pos(eTag)
        except InvalidEntity as e:
            warn("{0}; copying it without moving it".format(e))
            return eTag

        newPos = [int(p + co) for p, co in zip(pos, copyOffset)]
        if cls.hasPosArray(eTag):
            eTag[Pos] = TAG_Int_Array(newPos)
        else:
            for a, p in zip('xyz', newPos):
                eTag[a] = TAG_Int(p)
        return eTag
