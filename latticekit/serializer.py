"""Serialize JSON to protobuf bytes and back using a schema given as text."""

from __future__ import annotations

from typing import IO

from google.protobuf import descriptor, descriptor_pb2, descriptor_pool, json_format, message_factory

from latticekit.proto_parser import ProtoSyntaxError, parse_proto

_FILE_NAME = "example.proto"


def make_file_descriptor(source: str | IO[str]) -> descriptor.FileDescriptor:
    """Build a FileDescriptor from schema text or a readable text stream."""
    text = source if isinstance(source, str) else source.read()
    fdp = parse_proto(text, _FILE_NAME)
    pool = descriptor_pool.DescriptorPool()
    try:
        pool.Add(fdp)
        return pool.FindFileByName(_FILE_NAME)
    except (TypeError, ValueError, KeyError) as error:
        raise ProtoSyntaxError(str(error)) from error


def _first_message_class(fd: descriptor.FileDescriptor):
    fdp = descriptor_pb2.FileDescriptorProto()
    fd.CopyToProto(fdp)
    if not fdp.message_type:
        raise ValueError("the schema defines no message")
    message_descriptor = fd.message_types_by_name[fdp.message_type[0].name]
    try:
        return message_factory.GetMessageClass(message_descriptor)
    except AttributeError:
        return message_factory.MessageFactory(fd.pool).GetPrototype(message_descriptor)


def marshal_message(fd: descriptor.FileDescriptor, json_text: str) -> bytes:
    """Encode JSON as the schema's first message in protobuf wire format."""
    message = _first_message_class(fd)()
    json_format.Parse(json_text, message)
    return message.SerializeToString()


def unmarshal_message(fd: descriptor.FileDescriptor, data: bytes) -> str:
    """Decode wire-format bytes as the schema's first message and render it as JSON."""
    message = _first_message_class(fd)()
    message.ParseFromString(data)
    return json_format.MessageToJson(message, indent=None)