import pytest
from google.protobuf import descriptor_pb2

from latticekit.proto_parser import ProtoSyntaxError, parse_proto

F = descriptor_pb2.FieldDescriptorProto


def test_simple_message_fields():
    fdp = parse_proto('syntax = "proto3"; package p; message M { int32 a = 1; string b_c = 2; }')
    assert fdp.syntax == "proto3"
    assert fdp.package == "p"
    msg = fdp.message_type[0]
    assert msg.name == "M"
    assert [(f.name, f.number, f.type) for f in msg.field] == [
        ("a", 1, F.TYPE_INT32),
        ("b_c", 2, F.TYPE_STRING),
    ]
    assert msg.field[1].json_name == "bC"


def test_nested_type_resolution():
    text = """
    syntax = "proto3";
    package p;
    message Outer {
      message Inner { bool x = 1; }
      enum Color { RED = 0; BLUE = 1; }
      Inner inner = 1;
      Color color = 2;
      repeated Outer children = 3;
    }
    """
    msg = parse_proto(text).message_type[0]
    fields = {f.name: f for f in msg.field}
    assert fields["inner"].type_name == ".p.Outer.Inner"
    assert fields["color"].type == F.TYPE_ENUM
    assert fields["children"].label == F.LABEL_REPEATED
    assert fields["children"].type_name == ".p.Outer"


def test_map_field_creates_entry():
    msg = parse_proto('syntax = "proto3"; message M { map<string, int64> my_map = 4; }').message_type[0]
    entry = msg.nested_type[0]
    assert entry.name == "MyMapEntry"
    assert entry.options.map_entry
    assert msg.field[0].type_name == ".M.MyMapEntry"


def test_proto3_optional_gets_synthetic_oneof():
    msg = parse_proto('syntax = "proto3"; message M { optional int32 a = 1; }').message_type[0]
    assert msg.field[0].proto3_optional
    assert msg.oneof_decl[0].name == "_a"


def test_unknown_type_raises():
    with pytest.raises(ProtoSyntaxError):
        parse_proto('syntax = "proto3"; message M { Missing m = 1; }')


def test_syntax_error_raises():
    with pytest.raises(ProtoSyntaxError):
        parse_proto('syntax = "proto3"; message M { int32 a 1; }')


def test_proto2_requires_label():
    with pytest.raises(ProtoSyntaxError):
        parse_proto('syntax = "proto2"; message M { int32 a = 1; }')