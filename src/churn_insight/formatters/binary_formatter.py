"""Protocol buffers encoding of churn results.

The message layout is::

    message EditsMessage {
        repeated uint32 days = 1;
        repeated uint32 additions = 2;
        repeated uint32 removals = 3;
    }
    message ChurnAnalysisResultMessage {
        EditsMessage global = 1;
        map<string, EditsMessage> people = 2;
    }

Messages are serialized with ``deterministic=True`` so map entries come out
sorted by name and the same result always yields the same bytes.
"""

from functools import lru_cache
from typing import Dict, Tuple, Type

import numpy as np
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, Message

from ..churn.models import AnalysisResult, Series
from ..exceptions import SerializationError
from .base import BaseFormatter

PROTO_PACKAGE = "churn_insight"
_FIELD = descriptor_pb2.FieldDescriptorProto
_SERIES_FIELDS = ("days", "additions", "removals")


@lru_cache(maxsize=None)
def message_classes() -> Tuple[Type[Message], Type[Message]]:
    """Build ``(EditsMessage, ChurnAnalysisResultMessage)`` in a private pool."""
    proto = descriptor_pb2.FileDescriptorProto(
        name="churn_insight/churn_analysis.proto",
        package=PROTO_PACKAGE,
        syntax="proto3",
    )

    edits = proto.message_type.add(name="EditsMessage")
    for number, name in enumerate(_SERIES_FIELDS, start=1):
        edits.field.add(
            name=name, number=number, type=_FIELD.TYPE_UINT32, label=_FIELD.LABEL_REPEATED
        )

    edits_type = f".{PROTO_PACKAGE}.EditsMessage"
    result = proto.message_type.add(name="ChurnAnalysisResultMessage")
    result.field.add(
        name="global",
        number=1,
        type=_FIELD.TYPE_MESSAGE,
        label=_FIELD.LABEL_OPTIONAL,
        type_name=edits_type,
    )
    entry = result.nested_type.add(name="PeopleEntry")
    entry.options.map_entry = True
    entry.field.add(name="key", number=1, type=_FIELD.TYPE_STRING, label=_FIELD.LABEL_OPTIONAL)
    entry.field.add(
        name="value",
        number=2,
        type=_FIELD.TYPE_MESSAGE,
        label=_FIELD.LABEL_OPTIONAL,
        type_name=edits_type,
    )
    result.field.add(
        name="people",
        number=2,
        type=_FIELD.TYPE_MESSAGE,
        label=_FIELD.LABEL_REPEATED,
        type_name=f".{PROTO_PACKAGE}.ChurnAnalysisResultMessage.PeopleEntry",
    )

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(proto.SerializeToString())
    return (
        message_factory.GetMessageClass(pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.EditsMessage")),
        message_factory.GetMessageClass(
            pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.ChurnAnalysisResultMessage")
        ),
    )


def _u32(values) -> list:
    # Values above 2**32 - 1 wrap, matching a plain uint32 conversion
    return (np.asarray(values, dtype=np.int64) & 0xFFFFFFFF).astype(np.uint32).tolist()


def _fill_edits(message: Message, series: Series) -> None:
    # "global" is always present, even when empty
    message.SetInParent()
    for name in _SERIES_FIELDS:
        getattr(message, name).extend(_u32(list(getattr(series, name))))


def _read_edits(message: Message) -> Series:
    try:
        return Series(
            days=tuple(message.days),
            additions=tuple(message.additions),
            removals=tuple(message.removals),
        )
    except ValueError as e:
        raise SerializationError(str(e)) from e


def encode_binary(result: AnalysisResult) -> bytes:
    _, result_message = message_classes()
    message = result_message()
    _fill_edits(getattr(message, "global"), result.global_series)
    for name, series in result.people.items():
        _fill_edits(message.people[name], series)
    return message.SerializeToString(deterministic=True)


def decode_binary(data: bytes) -> AnalysisResult:
    """Parse a serialized ``ChurnAnalysisResultMessage`` back into a result."""
    _, result_message = message_classes()
    message = result_message()
    try:
        message.ParseFromString(data)
    except DecodeError as e:
        raise SerializationError(f"malformed message: {e}") from e
    people: Dict[str, Series] = {
        name: _read_edits(edits) for name, edits in message.people.items()
    }
    return AnalysisResult(global_series=_read_edits(getattr(message, "global")), people=people)


class BinaryFormatter(BaseFormatter):
    """Render results with ``encode_binary``."""

    name = "binary"
    binary = True

    def format(self, result: AnalysisResult) -> bytes:
        return encode_binary(result)
