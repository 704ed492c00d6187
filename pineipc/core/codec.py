from pineipc.core.models.wire import (
    ADDRESS_SIZE,
    STATUS_SIZE,
    Opcode,
    check_width,
)

_READ_OPCODES: dict[int, Opcode] = {
    1: Opcode.READ8,
    2: Opcode.READ16,
    4: Opcode.READ32,
    8: Opcode.READ64,
}

_WRITE_OPCODES: dict[int, Opcode] = {
    1: Opcode.WRITE8,
    2: Opcode.WRITE16,
    4: Opcode.WRITE32,
    8: Opcode.WRITE64,
}

_ADDRESS_LIMIT = 1 << (ADDRESS_SIZE * 8)


class CommandCodec:
    """
    Encodes memory commands into, and decodes values out of, raw byte
    regions.

    Layouts (all integers little-endian):

        read request   = opcode(1) || address(4)
        read reply     = status(1) || value(width)
        write request  = opcode(1) || address(4) || value(width)
        write reply    = status(1)

    Encoding writes in place at a caller-supplied offset and returns the
    number of bytes consumed. The codec never performs I/O and never
    checks the destination capacity: that is the BufferPool's job.
    """

    @classmethod
    def read_opcode(cls, width: int) -> Opcode:
        return _READ_OPCODES[check_width(width)]

    @classmethod
    def write_opcode(cls, width: int) -> Opcode:
        return _WRITE_OPCODES[check_width(width)]

    @classmethod
    def read_size(cls, width: int) -> int:
        check_width(width)
        return 1 + ADDRESS_SIZE

    @classmethod
    def write_size(cls, width: int) -> int:
        return 1 + ADDRESS_SIZE + check_width(width)

    @classmethod
    def read_reply_size(cls, width: int) -> int:
        return STATUS_SIZE + check_width(width)

    @classmethod
    def write_reply_size(cls, width: int) -> int:
        check_width(width)
        return STATUS_SIZE

    @classmethod
    def encode_read(
        cls,
        buffer: bytearray | memoryview,
        offset: int,
        address: int,
        width: int,
    ) -> int:
        opcode = cls.read_opcode(width)
        address_bytes = cls._address_bytes(address)

        buffer[offset] = opcode
        buffer[offset + 1: offset + 1 + ADDRESS_SIZE] = address_bytes
        return 1 + ADDRESS_SIZE

    @classmethod
    def encode_write(
        cls,
        buffer: bytearray | memoryview,
        offset: int,
        address: int,
        value: int,
        width: int,
    ) -> int:
        opcode = cls.write_opcode(width)
        address_bytes = cls._address_bytes(address)
        value_bytes = cls._value_bytes(value, width)

        pos = offset
        buffer[pos] = opcode
        pos += 1
        buffer[pos: pos + ADDRESS_SIZE] = address_bytes
        pos += ADDRESS_SIZE
        buffer[pos: pos + width] = value_bytes
        return 1 + ADDRESS_SIZE + width

    @classmethod
    def decode_value(
        cls,
        buffer: bytes | bytearray | memoryview,
        offset: int,
        width: int,
    ) -> int:
        check_width(width)
        end = offset + width
        if end > len(buffer):
            raise IndexError(f"Value [{offset}:{end}] lies outside a {len(buffer)}-byte buffer")
        return int.from_bytes(buffer[offset:end], "little")

    @classmethod
    def encode_count(cls, buffer: bytearray | memoryview, offset: int, count: int) -> int:
        buffer[offset: offset + 2] = count.to_bytes(2, "little")
        return 2

    @staticmethod
    def _address_bytes(address: int) -> bytes:
        if not 0 <= address < _ADDRESS_LIMIT:
            raise ValueError(f"Address {address:#x} does not fit in 32 bits")
        return address.to_bytes(ADDRESS_SIZE, "little")

    @staticmethod
    def _value_bytes(value: int, width: int) -> bytes:
        if not 0 <= value < 1 << (width * 8):
            raise ValueError(f"Value {value:#x} does not fit in {width} byte(s)")
        return value.to_bytes(width, "little")
