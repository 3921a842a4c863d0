from functools import reduce
import operator


class BoundingBox (object):
    type = int

    def __init__(self, origin=(0, 0, 0), size=(0, 0, 0)):
        if isinstance(origin, BoundingBox):
            origin, size = origin.origin, origin.size
        self.origin, self.size = list(map(self.type, origin)), list(map(self.type, size))

    @classmethod
    def fromSignedSize(cls, position, size):
        """Box covering a region anchored at position whose size components
        may be negative. A negative component extends the region backward
        from position, so each axis spans min(p, p+s) to max(p, p+s)."""
        origin = [min(p, p + s) for p, s in zip(position, size)]
        return cls(origin, [abs(s) for s in size])

    @classmethod
    def fromCorners(cls, minimum, maximum):
        return cls(minimum, [max(b - a, 0) for a, b in zip(minimum, maximum)])

    @property
    def minimum(self):
        return list(self.origin)

    @property
    def maximum(self):
        return [o + s for o, s in zip(self.origin, self.size)]

    @property
    def width(self):
        "The dimension along the X axis"
        return self.size[0]

    @property
    def height(self):
        "The dimension along the Y axis"
        return self.size[1]

    @property
    def length(self):
        "The dimension along the Z axis"
        return self.size[2]

    @property
    def volume(self):
        "The volume of the box in blocks"
        return reduce(operator.mul, self.size)

    def intersect(self, box):
        """ return a box containing the area self and box have in common"""
        low = list(map(max, self.minimum, box.minimum))
        high = list(map(min, self.maximum, box.maximum))
        if any(h <= l for l, h in zip(low, high)):
            return BoundingBox()
        return BoundingBox.fromCorners(low, high)

    def union(self, box):
        return BoundingBox.fromCorners(list(map(min, self.minimum, box.minimum)),
                                       list(map(max, self.maximum, box.maximum)))

    def __contains__(self, pos):
        return all(l <= p < h for p, l, h in zip(pos, self.minimum, self.maximum))

    def __eq__(self, b):
        if not isinstance(b, BoundingBox):
            return NotImplemented
        return (self.origin, self.size) == (b.origin, b.size)

    __hash__ = None

    def __repr__(self):
        return "BoundingBox({0}, {1})".format(self.origin, self.size)
