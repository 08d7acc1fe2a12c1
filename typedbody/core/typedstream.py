"""
Decoder for streamtyped archives (NSArchiver "typedstream" format).

Archive layout:
- Header: streamer version (4), length-prefixed signature "streamtyped",
  system version (usually 1000, written as 0x81 E8 03)
- A sequence of records, each a type encoding followed by one value per
  type code in the encoding

Type encodings and class names are "shared strings": written once after a
0x84 marker, later referenced by index. Class descriptors and objects share a
second table the same way. An object is written as 0x84, its class chain
(each new class followed by its superclass, terminated by 0x85 or by a
reference to an already-known class), then its body records until 0x86.

The decoder emits a flat node list in wire order: an object appears when it
starts, every primitive record appears as a ValueRun when read, and a
back-referenced object appears again as the same instance.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .errors import MalformedArchive, NotThisFormat, TruncatedInput
from .models import (
    ArchivedObject, ClassDescriptor, DecodedNode, Primitive, PrimitiveKind, ValueRun,
)
from .reader import ByteReader, DECIMAL, EMPTY, END, START
from .tables import ArchiveTables

logger = logging.getLogger(__name__)

SIGNED_CODES = "cilqs"
UNSIGNED_CODES = "CILQSB"
FLOAT_CODES = "fd"
SCALAR_CODES = SIGNED_CODES + UNSIGNED_CODES + FLOAT_CODES
VALUE_CODES = SCALAR_CODES + "@+*:#"

STRING_CLASSES = ("NSString", "NSMutableString")


@dataclass(frozen=True)
class ArrayType:
    """Fixed-size array encoding such as [56c]."""
    count: int
    element: str


TypeCode = Union[str, ArrayType]


def parse_type_encoding(encoding: str) -> List[TypeCode]:
    """
    Split a type encoding string into individual type codes.

    Args:
        encoding: Encoding read from the archive, e.g. "iI" or "[12c]"

    Returns:
        List of single-character codes and ArrayType entries
    """
    codes: List[TypeCode] = []
    i = 0
    while i < len(encoding):
        ch = encoding[i]
        if ch == '[':
            close = encoding.find(']', i)
            if close == -1:
                raise MalformedArchive(f"Unterminated array encoding {encoding!r}")
            inner = encoding[i + 1:close]
            digits = len(inner) - len(inner.lstrip('0123456789'))
            element = inner[digits:]
            if digits == 0 or len(element) != 1 or element not in SCALAR_CODES:
                raise MalformedArchive(f"Unsupported array encoding {encoding!r}")
            codes.append(ArrayType(int(inner[:digits]), element))
            i = close + 1
        elif ch in VALUE_CODES:
            codes.append(ch)
            i += 1
        else:
            raise MalformedArchive(f"Unsupported type encoding {encoding!r}")
    return codes


class TypedStreamDecoder:
    """
    Decodes one typedstream archive into a flat list of DecodedNodes.

    Decoding is all-or-nothing: any malformed record raises and no partial
    output is returned. Tables are rebuilt on every call to decode().
    """

    STREAMER_VERSION = 4
    SIGNATURE = b"streamtyped"
    MAX_DEPTH = 200

    def __init__(self, data: bytes):
        """
        Initialize decoder.

        Args:
            data: Raw archive bytes (e.g. the attributedBody column)
        """
        self.data = bytes(data)
        self.system_version: Optional[int] = None
        self._reset()

    def _reset(self):
        self._reader = ByteReader(self.data)
        self._tables = ArchiveTables()
        self._chains: Dict[int, List[ClassDescriptor]] = {}
        self._nodes: List[DecodedNode] = []

    def decode(self) -> List[DecodedNode]:
        """
        Decode the archive.

        Returns:
            Nodes in wire order

        Raises:
            NotThisFormat: header signature/version mismatch
            TruncatedInput, BadBackreference, InvalidUtf8, MalformedArchive
        """
        self._reset()
        self._read_header()

        reader = self._reader
        while not reader.at_end:
            if reader.peek() == END:
                reader.skip()
                continue
            codes = self._read_type_codes()
            self._read_values(codes, None, 0)

        nodes = self._nodes
        logger.debug(
            f"Decoded typedstream: {len(nodes)} nodes, "
            f"{len(self._tables.strings)} shared strings, {len(self._tables.objects)} shared objects"
        )
        self._nodes = []
        return nodes

    def _read_header(self):
        reader = self._reader
        try:
            version = reader.read_unsigned_int()
            signature = reader.read_length_prefixed_bytes()
            system_version = reader.read_signed_int()
        except TruncatedInput as e:
            raise NotThisFormat("Archive header is truncated") from e

        if version != self.STREAMER_VERSION or signature != self.SIGNATURE:
            raise NotThisFormat(f"Unsupported archive header: version {version}, signature {signature!r}")

        self.system_version = system_version

    def _emit(self, node: DecodedNode, owner: Optional[ArchivedObject]):
        self._nodes.append(node)
        if owner is not None:
            owner.fields.append(node)

    def _read_shared_string(self) -> Optional[str]:
        reader = self._reader
        head = reader.peek()
        if head == START:
            reader.skip()
            value = reader.read_string()
            self._tables.declare_string(value)
            return value
        if head == EMPTY:
            reader.skip()
            return None
        return self._tables.resolve_string(reader.read_reference())

    def _read_type_codes(self) -> List[TypeCode]:
        encoding = self._read_shared_string()
        if encoding is None:
            raise MalformedArchive(f"Nil type encoding at offset {self._reader.position}")
        return parse_type_encoding(encoding)

    def _read_values(self, codes: List[TypeCode], owner: Optional[ArchivedObject], depth: int):
        pending: List[Primitive] = []
        for code in codes:
            if code == '@':
                if pending:
                    self._emit(ValueRun(pending), owner)
                    pending = []
                self._read_object(owner, depth)
            else:
                pending.extend(self._read_primitive(code))
        if pending:
            self._emit(ValueRun(pending), owner)

    def _read_primitive(self, code: TypeCode) -> List[Primitive]:
        reader = self._reader

        if isinstance(code, ArrayType):
            if code.element in "cC":
                return [Primitive(PrimitiveKind.BYTES, reader.read_bytes(code.count))]
            values = []
            for _ in range(code.count):
                values.extend(self._read_primitive(code.element))
            return values

        if code in SIGNED_CODES:
            return [Primitive(PrimitiveKind.SIGNED, reader.read_signed_int())]
        if code in UNSIGNED_CODES:
            return [Primitive(PrimitiveKind.UNSIGNED, reader.read_unsigned_int())]
        if code in FLOAT_CODES:
            if reader.peek() == DECIMAL:
                reader.skip()
                value = reader.read_f32() if code == 'f' else reader.read_f64()
            else:
                value = float(reader.read_signed_int())
            return [Primitive(PrimitiveKind.FLOAT, value)]
        if code == '+':
            return [Primitive(PrimitiveKind.STRING, reader.read_string())]
        if code in "*:":
            head = reader.peek()
            if head == EMPTY:
                reader.skip()
                return [Primitive(PrimitiveKind.NIL)]
            if head != START:
                raise MalformedArchive(f"Unexpected C string marker 0x{head:02x} at offset {reader.position}")
            reader.skip()
            value = self._read_shared_string()
            if value is None:
                return [Primitive(PrimitiveKind.NIL)]
            return [Primitive(PrimitiveKind.STRING, value)]
        if code == '#':
            chain = self._read_class()
            if not chain:
                return [Primitive(PrimitiveKind.NIL)]
            return [Primitive(PrimitiveKind.CLASS, chain[0])]

        raise MalformedArchive(f"Unsupported type code {code!r}")

    def _read_class(self) -> List[ClassDescriptor]:
        """
        Read a class chain.

        Returns:
            Descriptors from the concrete class up to the root class
        """
        reader = self._reader
        declared = []
        tail: List[ClassDescriptor] = []

        while True:
            head = reader.peek()
            if head == EMPTY:
                reader.skip()
                break
            if head == START:
                reader.skip()
                name = self._read_shared_string()
                if name is None:
                    raise MalformedArchive(f"Nil class name at offset {reader.position}")
                descriptor = ClassDescriptor(name, reader.read_unsigned_int())
                declared.append((self._tables.declare_class(descriptor), descriptor))
                continue
            index = reader.read_reference()
            descriptor = self._tables.resolve_class(index)
            tail = self._chains.get(index, [descriptor])
            break

        chain = list(tail)
        for index, descriptor in reversed(declared):
            chain = [descriptor] + chain
            self._chains[index] = chain
        return chain

    def _read_object(self, owner: Optional[ArchivedObject], depth: int) -> Optional[ArchivedObject]:
        if depth > self.MAX_DEPTH:
            raise MalformedArchive(f"Objects nested deeper than {self.MAX_DEPTH}")

        reader = self._reader
        head = reader.peek()

        if head == EMPTY:
            reader.skip()
            return None

        if head != START:
            obj = self._tables.resolve_value(reader.read_reference())
            self._emit(obj, owner)
            return obj

        reader.skip()
        obj = ArchivedObject()
        self._tables.declare_value(obj)
        chain = self._read_class()
        if not chain:
            raise MalformedArchive(f"Object without class at offset {reader.position}")
        obj.classes.extend(reversed(chain))
        self._emit(obj, owner)

        while True:
            if reader.peek() == END:
                reader.skip()
                break
            codes = self._read_type_codes()
            self._read_values(codes, obj, depth + 1)

        return obj


def decode_typedstream(data: bytes) -> List[DecodedNode]:
    """Decode a typedstream archive into its node list."""
    return TypedStreamDecoder(data).decode()


def first_string(nodes: List[DecodedNode]) -> Optional[str]:
    """Text of the first string object, which holds an attributed string's characters."""
    for node in nodes:
        if isinstance(node, ArchivedObject) and node.is_kind_of(*STRING_CLASSES):
            text = node.string_value()
            if text is not None:
                return text
    return None
