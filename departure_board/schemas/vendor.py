from __future__ import annotations

from typing import Type

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message


FILE_NAME = "generic.proto"
MESSAGE_TYPE = "TripUpdate"

_Field = descriptor_pb2.FieldDescriptorProto

# (name, number, label, type, type_name)
_MESSAGES = {
    "TripDescriptor": [
        ("trip_id", 1, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("start_time", 2, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("start_date", 3, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("schedule_relationship", 4, _Field.LABEL_OPTIONAL, _Field.TYPE_ENUM, ".ScheduleRelationship"),
        ("route_id", 5, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("direction_id", 6, _Field.LABEL_OPTIONAL, _Field.TYPE_UINT32, None),
    ],
    "VehicleDescriptor": [
        ("id", 1, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("label", 2, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("license_plate", 3, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
    ],
    "StopTimeEvent": [
        ("delay", 1, _Field.LABEL_OPTIONAL, _Field.TYPE_INT32, None),
        ("time", 2, _Field.LABEL_OPTIONAL, _Field.TYPE_INT64, None),
        ("uncertainty", 3, _Field.LABEL_OPTIONAL, _Field.TYPE_INT32, None),
    ],
    "StopTimeUpdate": [
        ("stop_sequence", 1, _Field.LABEL_OPTIONAL, _Field.TYPE_UINT32, None),
        ("arrival", 2, _Field.LABEL_OPTIONAL, _Field.TYPE_MESSAGE, ".StopTimeEvent"),
        ("departure", 3, _Field.LABEL_OPTIONAL, _Field.TYPE_MESSAGE, ".StopTimeEvent"),
        ("stop_id", 4, _Field.LABEL_OPTIONAL, _Field.TYPE_STRING, None),
        ("schedule_relationship", 5, _Field.LABEL_OPTIONAL, _Field.TYPE_ENUM, ".ScheduleRelationship"),
    ],
    "TripUpdate": [
        ("trip", 1, _Field.LABEL_OPTIONAL, _Field.TYPE_MESSAGE, ".TripDescriptor"),
        ("stop_time_update", 2, _Field.LABEL_REPEATED, _Field.TYPE_MESSAGE, ".StopTimeUpdate"),
        ("vehicle", 3, _Field.LABEL_OPTIONAL, _Field.TYPE_MESSAGE, ".VehicleDescriptor"),
        ("timestamp", 4, _Field.LABEL_OPTIONAL, _Field.TYPE_UINT64, None),
        ("delay", 5, _Field.LABEL_OPTIONAL, _Field.TYPE_INT32, None),
        ("signature", 6, _Field.LABEL_OPTIONAL, _Field.TYPE_BYTES, None),
    ],
}

_SCHEDULE_RELATIONSHIP = [
    ("SCHEDULED", 0),
    ("ADDED", 1),
    ("UNSCHEDULED", 2),
    ("CANCELED", 3),
    ("SKIPPED", 4),
    ("NO_DATA", 5),
]


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Describe the vendor trip-update feed.

    The vendor payload is a single package-less proto3 ``TripUpdate`` message
    laid out on the GTFS-realtime field numbers, plus a ``signature`` bytes
    field. Scalars carry no presence, so unset ones decode to their defaults.
    """

    file_proto = descriptor_pb2.FileDescriptorProto(name=FILE_NAME, syntax="proto3")
    enum_proto = file_proto.enum_type.add(name="ScheduleRelationship")
    for name, number in _SCHEDULE_RELATIONSHIP:
        enum_proto.value.add(name=name, number=number)

    for message_name, fields in _MESSAGES.items():
        message_proto = file_proto.message_type.add(name=message_name)
        for name, number, label, field_type, type_name in fields:
            field = message_proto.field.add(
                name=name,
                number=number,
                label=label,
                type=field_type,
            )
            if type_name:
                field.type_name = type_name
    return file_proto


def load_message_class(message_type: str = MESSAGE_TYPE) -> Type[Message]:
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(build_file_descriptor().SerializeToString())
    descriptor = pool.FindMessageTypeByName(message_type)
    return message_factory.GetMessageClass(descriptor)
