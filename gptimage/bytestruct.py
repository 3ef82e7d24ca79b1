"""Packing and validation of little-endian on-disk structures."""

from __future__ import annotations

from dataclasses import InitVar
from typing import Any, ClassVar, NamedTuple, TypeVar
from uuid import UUID

from typing_extensions import Annotated, get_args, get_origin, get_type_hints

from .base import ValidationError
from .guid import GUID_SIZE, decode_guid, encode_guid

__all__ = ['ByteStruct']


BYTEORDER = 'little'
MAX_INT_SIZE = 8
TEXT_ENCODING = 'utf-16le'
TEXT_UNIT_SIZE = 2
FIELD_TYPES = (int, bytes, str, UUID)
INTERNAL_NAMES = (
    '__bytestruct_fields__',
    '__bytestruct_size__',
    '__bytestruct_cached__',
)

_Bs = TypeVar('_Bs', bound='ByteStruct')


class _FieldDescriptor(NamedTuple):
    """Metadata about a field of a `ByteStruct`.

    - `type_origin`: Origin of an `Annotated` type (e.g. `int` for
        `Annotated[int, 4]`) or the according `ByteStruct` subclass if the field
        represents an embedded `ByteStruct`.
    - `offset`: Position of the field within the `bytes` form of the structure.
    - `size`: Size of the field in bytes.
    - `is_bytestruct`: True if the field represents an embedded `ByteStruct`.
    """

    type_origin: Any
    offset: int
    size: int
    is_bytestruct: bool = False


def _decode_text(b: bytes) -> str:
    """Decode a NUL-terminated UTF-16LE string.

    Decoding stops at the first zero code unit. Malformed sequences such as
    unpaired surrogates are replaced by U+FFFD.
    """
    end = len(b) - len(b) % TEXT_UNIT_SIZE
    for i in range(0, end, TEXT_UNIT_SIZE):
        if b[i] == 0 and b[i + 1] == 0:
            end = i
            break
    return b[:end].decode(TEXT_ENCODING, errors='replace')


class _ByteStructMeta(type):
    """Metaclass of `ByteStruct`.

    Analyzes the type annotations found in a `ByteStruct` subclass and sets
    `__bytestruct_fields__` and `__bytestruct_size__` accordingly.

    - `__bytestruct_fields__` is a mapping of field names (`str`) to field
        descriptors (`_FieldDescriptor`) in declaration order.
    - `__bytestruct_size__` is the size of the `bytes` form of the `ByteStruct`
        in bytes.
    """

    def __init__(cls, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        super().__init__(name, bases, namespace)
        if not bases:
            return  # cls is ByteStruct

        type_hints = get_type_hints(cls, include_extras=True)
        fields = {}
        offset = 0

        for name, type_ in type_hints.items():
            if name in INTERNAL_NAMES or type(type_) is InitVar:
                continue

            origin = get_origin(type_)
            if origin is ClassVar:
                continue

            # Embedded ByteStruct
            if isinstance(type_, cls.__class__) and type_ is not ByteStruct:
                size = len(type_)
                fields[name] = _FieldDescriptor(type_, offset, size, True)
                offset += size
                continue

            if origin is not Annotated:
                raise TypeError(
                    f'Unannotated type {type_} of field {name!r} is not allowed for '
                    f'ByteStruct'
                )

            args = get_args(type_)
            annotated_type = args[0]
            size = args[1]
            if not isinstance(size, int):
                raise TypeError('Field size must be specified as int')
            if size < 1:
                raise ValueError('Field size must be greater than or equal to 1')

            if annotated_type not in FIELD_TYPES:
                raise TypeError(
                    f'Annotated type {annotated_type} of field {name!r} is not allowed '
                    f'for ByteStruct'
                )
            if annotated_type is int and size > MAX_INT_SIZE:
                raise ValueError(
                    f'Invalid int field size {size}, must be at most {MAX_INT_SIZE}'
                )
            if annotated_type is UUID and size != GUID_SIZE:
                raise ValueError(f'GUID fields must be {GUID_SIZE} bytes long')
            if annotated_type is str and size % TEXT_UNIT_SIZE != 0:
                raise ValueError('Text fields must be a multiple of 2 bytes long')

            fields[name] = _FieldDescriptor(annotated_type, offset, size)
            offset += size

        cls.__bytestruct_fields__ = fields
        cls.__bytestruct_size__ = offset

    def __len__(cls) -> int:
        """Size of the `bytes` form of the `ByteStruct` in bytes."""
        return cls.__bytestruct_size__


class ByteStruct(metaclass=_ByteStructMeta):
    """Packed little-endian binary data.

    Every field is converted on its own, so unlike with the `struct` module odd
    integer widths such as the 3-byte CHS addresses of an MBR are possible.

    Note that every `ByteStruct` subclass must be a frozen `dataclass`.

    Example::

        @dataclasses.dataclass(frozen=True)
        class MyStruct(ByteStruct):

            field_1: Annotated[int, 3]     # unsigned int of size 3 bytes
            field_2: Annotated[bytes, 4]   # bytes of size 4
            field_3: Annotated[UUID, 16]   # GUID in mixed-endian encoding
            field_4: Annotated[str, 72]    # NUL-padded UTF-16LE text

            field_5: MySecondStruct        # embedded ByteStruct

    Field values are validated against their widths when an instance is created.
    Custom validation logic can be added by overriding the `validate()` method.
    """

    # Populated per class
    __bytestruct_fields__: dict[str, _FieldDescriptor]
    __bytestruct_size__: int

    # Populated per instance
    __bytestruct_cached__: bytes

    @classmethod
    def _check_direct_instantiation(cls) -> None:
        """Raise `TypeError` if it is tried to directly instantiate `ByteStruct`
        and not a subclass of `ByteStruct`.
        """
        if cls.__bases__ == (object,):
            raise TypeError(f'Cannot directly instantiate {cls.__name__}')

    @classmethod
    def _check_frozen_dataclass(cls) -> None:
        """Raise `TypeError` if it is tried to instantiate a subclass of
        `ByteStruct` which is not a frozen `dataclass`.
        """
        params: Any = getattr(cls, '__dataclass_params__', None)
        if params is None or not params.frozen:
            raise TypeError('ByteStruct subclass must be a frozen dataclass')

    # noinspection PyUnusedLocal
    def __init__(self, *args: Any, **kwargs: Any):
        self._check_direct_instantiation()
        self._check_frozen_dataclass()

    def __post_init__(self) -> None:
        """Executed after instance creation as we expect every instance to be a
        `dataclass`.

        Triggers the internal and the user-defined validation logic.
        """
        self._check_frozen_dataclass()
        if '__bytestruct_cached__' not in self.__dict__:
            self._validate_and_cache()
        self.validate()

    def _pack_field(self, name: str, descriptor: _FieldDescriptor) -> bytes:
        type_ = descriptor.type_origin
        size = descriptor.size
        value = getattr(self, name)

        if descriptor.is_bytestruct:
            if not isinstance(value, type_):
                raise ValidationError(
                    f'Value of field {name!r} must be of type {type_.__name__}'
                )
            return bytes(value)

        if type_ is int:
            try:
                return value.to_bytes(size, BYTEORDER)
            except OverflowError as e:
                raise ValidationError(
                    f'Value {value} of field {name!r} does not fit into an unsigned '
                    f'int of {size} bytes'
                ) from e

        if type_ is UUID:
            return encode_guid(value)

        if type_ is str:
            encoded = value.encode(TEXT_ENCODING)
            if len(encoded) > size:
                raise ValidationError(
                    f'Value of field {name!r} must be at most {size // 2} UTF-16 '
                    f'code units long, got {len(encoded) // 2}'
                )
            return encoded + b'\x00' * (size - len(encoded))

        if len(value) != size:
            raise ValidationError(
                f'Value of field {name!r} must be of length {size} bytes, got '
                f'{len(value)} bytes'
            )
        return bytes(value)

    def _validate_and_cache(self) -> None:
        """Validate field values against their widths.

        Because this involves creating a `bytes` version of the `ByteStruct`
        instance anyway, we cache the resulting `bytes` object.
        """
        bytes_ = b''.join(
            self._pack_field(name, descriptor)
            for name, descriptor in self.__bytestruct_fields__.items()
        )

        # Avoid __setattr__() here because this is a frozen dataclass.
        self.__dict__['__bytestruct_cached__'] = bytes_

    def validate(self) -> None:
        """Custom validation logic.

        Automatically executed after object creation, but after validation of the
        field values against their widths.
        """

    @classmethod
    def from_bytes(cls: type[_Bs], b: bytes) -> _Bs:
        """Parse structure from `bytes`."""
        cls._check_direct_instantiation()

        size = cls.__bytestruct_size__
        if len(b) != size:
            raise ValueError(f'Structure is {size} bytes long, got {len(b)} bytes')

        values: list[Any] = []
        for descriptor in cls.__bytestruct_fields__.values():
            type_ = descriptor.type_origin
            chunk = bytes(b[descriptor.offset : descriptor.offset + descriptor.size])

            value: Any
            if descriptor.is_bytestruct:
                value = type_.from_bytes(chunk)
            elif type_ is int:
                value = int.from_bytes(chunk, BYTEORDER)
            elif type_ is UUID:
                value = decode_guid(chunk)
            elif type_ is str:
                value = _decode_text(chunk)
            else:
                value = chunk
            values.append(value)

        return cls(*values)

    def __bytes__(self) -> bytes:
        """`bytes` form of the `ByteStruct` instance."""
        return self.__bytestruct_cached__

    def __len__(self) -> int:
        """Size of the `bytes` form of the `ByteStruct` in bytes."""
        return self.__bytestruct_size__
