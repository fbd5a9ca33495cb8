"""Flattening hints into an ordered stream of script stack items.

A Builder collects items, each either an unsigned integer or a byte string, in
the order a script verifier pops them. Hint types contribute their items through
a `push_to(builder)` method; plain values (ints, bytes, field elements, lists
of those) are pushed directly.
"""

import json
import struct
from typing import Any, List, Union

from circle_primitives.field import CM31, FF

# --- Type Aliases ---

StackItem = Union[int, bytes]

_TAG_INT = 0
_TAG_BYTES = 1


class Builder:
    """Ordered stack items for a script verifier."""

    def __init__(self) -> None:
        self.items: List[StackItem] = []

    def __len__(self) -> int:
        return len(self.items)

    def push_int(self, value: int) -> "Builder":
        value = int(value)
        if value < 0:
            raise ValueError(f"only unsigned integers can be pushed, got {value}")
        self.items.append(value)
        return self

    def push_bytes(self, data: bytes) -> "Builder":
        self.items.append(bytes(data))
        return self

    def push(self, obj: Any) -> "Builder":
        """Push any pushable value."""
        if hasattr(obj, "push_to"):
            obj.push_to(self)
        elif isinstance(obj, (bytes, bytearray)):
            self.push_bytes(obj)
        elif isinstance(obj, CM31):
            for coord in obj.to_ints():
                self.push_int(coord)
        elif isinstance(obj, (int, FF)):
            self.push_int(int(obj))
        elif isinstance(obj, (list, tuple)):
            for item in obj:
                self.push(item)
        else:
            raise TypeError(f"cannot push value of type {type(obj).__name__}")
        return self

    def to_bytes(self) -> bytes:
        """Deterministic length-prefixed encoding of the item stream."""
        out = bytearray()
        for item in self.items:
            if isinstance(item, bytes):
                out += struct.pack("<BI", _TAG_BYTES, len(item)) + item
            else:
                out += struct.pack("<BQ", _TAG_INT, item)
        return bytes(out)

    def to_json(self) -> str:
        """Items as a JSON list: ints as numbers, byte strings as hex."""
        return json.dumps([item.hex() if isinstance(item, bytes) else item for item in self.items])


def push_all(*objs: Any) -> Builder:
    builder = Builder()
    for obj in objs:
        builder.push(obj)
    return builder
