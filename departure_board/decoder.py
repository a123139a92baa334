from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Type

from google.protobuf import message as protobuf_message
from google.protobuf.json_format import MessageToDict
from google.transit import gtfs_realtime_pb2

from departure_board.schemas import vendor


logger = logging.getLogger(__name__)


class FeedSchema(enum.Enum):
    GTFS_REALTIME = "transit_realtime.FeedMessage"
    VENDOR_TRIP_UPDATE = vendor.MESSAGE_TYPE


class DecodeError(RuntimeError):
    """Raised when a payload or a schema reference cannot be decoded.

    ``kind`` is ``"bytes"`` when the payload does not parse as the requested
    message type, and ``"schema"`` when the message type itself is unknown or
    its descriptor could not be built.
    """

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class Decoder:
    schema: FeedSchema
    message_class: Type[protobuf_message.Message]
    print_defaults: bool = False

    def __call__(self, raw: bytes) -> Dict[str, Any]:
        parsed = self.message_class()
        try:
            parsed.ParseFromString(raw)
        except protobuf_message.DecodeError as exc:
            raise DecodeError(
                "bytes", f"Payload is not a valid {self.schema.value} message: {exc}"
            ) from exc
        # 64-bit integers come out as decimal strings, enums as names, bytes as base64.
        return MessageToDict(
            parsed,
            always_print_fields_with_no_presence=self.print_defaults,
        )


def _load_message_class(schema: FeedSchema) -> Type[protobuf_message.Message]:
    if schema is FeedSchema.GTFS_REALTIME:
        return gtfs_realtime_pb2.FeedMessage
    return vendor.load_message_class(schema.value)


def load_decoders() -> Mapping[FeedSchema, Decoder]:
    decoders: Dict[FeedSchema, Decoder] = {}
    for schema in FeedSchema:
        try:
            message_class = _load_message_class(schema)
        except (KeyError, TypeError) as exc:
            raise DecodeError("schema", f"Failed to load schema {schema.value}: {exc}") from exc
        decoders[schema] = Decoder(
            schema=schema,
            message_class=message_class,
            print_defaults=schema is FeedSchema.VENDOR_TRIP_UPDATE,
        )
        logger.info("Loaded decoder for %s", schema.value)
    return decoders


def resolve_schema(message_type: str) -> FeedSchema:
    try:
        return FeedSchema(message_type)
    except ValueError as exc:
        supported = ", ".join(schema.value for schema in FeedSchema)
        raise DecodeError(
            "schema", f"Unknown message type '{message_type}' (supported: {supported})."
        ) from exc


def decode(
    raw: bytes,
    decoders: Mapping[FeedSchema, Decoder],
    message_type: str,
) -> Dict[str, Any]:
    schema = resolve_schema(message_type)
    decoder = decoders.get(schema)
    if decoder is None:
        raise DecodeError("schema", f"No decoder loaded for {message_type}.")
    try:
        feed = decoder(raw)
    except DecodeError as exc:
        logger.error("Decode failed (%s): %s", exc.kind, exc)
        raise
    logger.debug("Decoded %s with %s entities", message_type, len(feed.get("entity", [])))
    return feed
