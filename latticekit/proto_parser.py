"""A parser for protobuf schema text producing a FileDescriptorProto."""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass

from google.protobuf import descriptor_pb2

_FDP = descriptor_pb2.FieldDescriptorProto

_SCALARS = {
    "double": _FDP.TYPE_DOUBLE,
    "float": _FDP.TYPE_FLOAT,
    "int64": _FDP.TYPE_INT64,
    "uint64": _FDP.TYPE_UINT64,
    "int32": _FDP.TYPE_INT32,
    "fixed64": _FDP.TYPE_FIXED64,
    "fixed32": _FDP.TYPE_FIXED32,
    "bool": _FDP.TYPE_BOOL,
    "string": _FDP.TYPE_STRING,
    "bytes": _FDP.TYPE_BYTES,
    "uint32": _FDP.TYPE_UINT32,
    "sfixed32": _FDP.TYPE_SFIXED32,
    "sfixed64": _FDP.TYPE_SFIXED64,
    "sint32": _FDP.TYPE_SINT32,
    "sint64": _FDP.TYPE_SINT64,
}

_LABELS = {
    "optional": _FDP.LABEL_OPTIONAL,
    "required": _FDP.LABEL_REQUIRED,
    "repeated": _FDP.LABEL_REPEATED,
}

_MAX_FIELD_NUMBER = 536870911

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<comment>//[^\n]*|/\*.*?\*/)
  | (?P<ident>\.?[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
  | (?P<number>-?(?:0[xX][0-9a-fA-F]+|\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+))
  | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
  | (?P<sym>[{}\[\]()<>;=,:\-+])
    """,
    re.VERBOSE | re.DOTALL,
)


class ProtoSyntaxError(ValueError):
    """Raised when schema text cannot be parsed or refers to unknown types."""


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    line: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos, line = 0, 1
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ProtoSyntaxError(f"line {line}: unexpected character {text[pos]!r}")
        kind = match.lastgroup or ""
        value = match.group()
        if kind not in ("ws", "comment"):
            tokens.append(_Token(kind, value, line))
        line += value.count("\n")
        pos = match.end()
    return tokens


def _camel(name: str, upper_first: bool) -> str:
    out: list[str] = []
    capitalize = upper_first
    for char in name:
        if char == "_":
            capitalize = True
        elif capitalize:
            out.append(char.upper())
            capitalize = False
        else:
            out.append(char)
    return "".join(out)


def _unquote(literal: str) -> str:
    return codecs.decode(literal[1:-1], "unicode_escape")


def _parse_int(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("-")
    if digits.lower().startswith("0x"):
        return sign * int(digits, 16)
    if len(digits) > 1 and digits.startswith("0"):
        return sign * int(digits, 8)
    return sign * int(digits, 10)


class _Parser:
    def __init__(self, text: str, name: str) -> None:
        self.tokens = _tokenize(text)
        self.pos = 0
        self.fdp = descriptor_pb2.FileDescriptorProto(name=name)
        self.syntax = "proto2"
        self.package = ""
        self.known: dict[str, str] = {}
        self.pending: list[tuple[descriptor_pb2.FieldDescriptorProto, str, str]] = []

    # token helpers
    def _error(self, message: str) -> ProtoSyntaxError:
        line = self.tokens[self.pos].line if self.pos < len(self.tokens) else "end"
        return ProtoSyntaxError(f"line {line}: {message}")

    def peek(self) -> _Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> _Token:
        token = self.peek()
        if token is None:
            raise self._error("unexpected end of input")
        self.pos += 1
        return token

    def accept(self, value: str) -> bool:
        token = self.peek()
        if token is not None and token.kind in ("sym", "ident") and token.value == value:
            self.pos += 1
            return True
        return False

    def expect(self, value: str) -> None:
        if not self.accept(value):
            token = self.peek()
            found = token.value if token else "end of input"
            raise self._error(f"expected {value!r}, found {found!r}")

    def ident(self) -> str:
        token = self.next()
        if token.kind != "ident":
            raise self._error(f"expected identifier, found {token.value!r}")
        return token.value

    def simple_ident(self) -> str:
        value = self.ident()
        if "." in value:
            raise self._error(f"invalid name {value!r}")
        return value

    def integer(self) -> int:
        token = self.next()
        if token.kind == "ident" and token.value == "max":
            return _MAX_FIELD_NUMBER
        if token.kind == "sym" and token.value == "-":
            token = self.next()
            if token.kind != "number":
                raise self._error("expected integer")
            return -_parse_int(token.value)
        if token.kind != "number":
            raise self._error(f"expected integer, found {token.value!r}")
        try:
            return _parse_int(token.value)
        except ValueError:
            raise self._error(f"invalid integer {token.value!r}") from None

    def string(self) -> str:
        token = self.next()
        if token.kind != "string":
            raise self._error(f"expected string, found {token.value!r}")
        value = _unquote(token.value)
        while (nxt := self.peek()) is not None and nxt.kind == "string":
            value += _unquote(self.next().value)
        return value

    def skip_statement(self) -> None:
        depth = 0
        while True:
            token = self.next()
            if token.kind == "sym":
                if token.value == "{":
                    depth += 1
                elif token.value == "}":
                    depth -= 1
                    if depth == 0:
                        self.accept(";")
                        return
                    if depth < 0:
                        raise self._error("unbalanced '}'")
                elif token.value == ";" and depth == 0:
                    return

    # file level
    def parse(self) -> descriptor_pb2.FileDescriptorProto:
        if self.accept("syntax"):
            self.expect("=")
            self.syntax = self.string()
            if self.syntax not in ("proto2", "proto3"):
                raise self._error(f"unsupported syntax {self.syntax!r}")
            self.expect(";")
        while self.peek() is not None:
            if self.accept(";"):
                continue
            keyword = self.ident()
            if keyword == "package":
                self.package = self.ident()
                self.expect(";")
            elif keyword == "import":
                raise self._error("imports are not supported")
            elif keyword == "option":
                self.skip_statement()
            elif keyword == "message":
                self.message(self.fdp.message_type.add(), self.package)
            elif keyword == "enum":
                self.enum(self.fdp.enum_type.add(), self.package)
            elif keyword in ("service", "extend"):
                self.skip_statement()
            else:
                raise self._error(f"unexpected {keyword!r}")
        if self.package:
            self.fdp.package = self.package
        self.fdp.syntax = self.syntax
        self.resolve()
        return self.fdp

    def _register(self, scope: str, name: str, kind: str) -> str:
        full = f"{scope}.{name}" if scope else name
        if full in self.known:
            raise self._error(f"{full!r} is already defined")
        self.known[full] = kind
        return full

    def message(self, msg: descriptor_pb2.DescriptorProto, scope: str) -> None:
        msg.name = self.simple_ident()
        full = self._register(scope, msg.name, "message")
        self.expect("{")
        synthetic: list[descriptor_pb2.FieldDescriptorProto] = []
        while not self.accept("}"):
            if self.accept(";"):
                continue
            token = self.peek()
            if token is None or token.kind != "ident":
                raise self._error("expected message element")
            word = token.value
            if word == "message":
                self.next()
                self.message(msg.nested_type.add(), full)
            elif word == "enum":
                self.next()
                self.enum(msg.enum_type.add(), full)
            elif word in ("option", "extensions", "extend"):
                self.next()
                self.skip_statement()
            elif word == "reserved":
                self.next()
                self.reserved(msg.reserved_range, msg.reserved_name, exclusive=True)
            elif word == "oneof":
                self.next()
                self.oneof(msg, full)
            elif word == "map" and self.tokens[self.pos + 1].value == "<":
                self.next()
                self.map_field(msg, full)
            else:
                field = self.field(msg, full, allow_label=True)
                if field.proto3_optional:
                    synthetic.append(field)
        for field in synthetic:
            oneof_name = "_" + field.name
            field.oneof_index = len(msg.oneof_decl)
            msg.oneof_decl.add(name=oneof_name)

    def field(
        self, msg: descriptor_pb2.DescriptorProto, scope: str, allow_label: bool
    ) -> descriptor_pb2.FieldDescriptorProto:
        field = msg.field.add()
        word = self.ident()
        label = None
        if word in _LABELS:
            if not allow_label:
                raise self._error(f"label {word!r} is not allowed here")
            label = word
            word = self.ident()
        if word == "group":
            raise self._error("groups are not supported")
        if label == "required" and self.syntax == "proto3":
            raise self._error("required fields are not allowed in proto3")
        if label is None and allow_label and self.syntax == "proto2":
            raise self._error("proto2 fields need a label")
        field.label = _LABELS[label or "optional"]
        if label == "optional" and self.syntax == "proto3":
            field.proto3_optional = True
        self._set_type(field, word, scope)
        field.name = self.simple_ident()
        field.json_name = _camel(field.name, upper_first=False)
        self.expect("=")
        field.number = self.integer()
        self.field_options(field)
        self.expect(";")
        return field

    def _set_type(self, field: descriptor_pb2.FieldDescriptorProto, type_name: str, scope: str) -> None:
        if type_name in _SCALARS:
            field.type = _SCALARS[type_name]
        else:
            self.pending.append((field, scope, type_name))

    def field_options(self, field: descriptor_pb2.FieldDescriptorProto) -> None:
        if not self.accept("["):
            return
        while True:
            if self.accept("("):
                while not self.accept(")"):
                    self.next()
                while (token := self.peek()) is not None and token.kind == "ident":
                    self.next()
                name = ""
            else:
                name = self.ident()
            self.expect("=")
            value = self.option_value()
            if name == "json_name":
                field.json_name = value
            elif name == "default":
                field.default_value = value
            elif name == "packed":
                field.options.packed = value == "true"
            if self.accept("]"):
                return
            self.expect(",")

    def option_value(self) -> str:
        token = self.next()
        if token.kind == "string":
            value = _unquote(token.value)
            while (nxt := self.peek()) is not None and nxt.kind == "string":
                value += _unquote(self.next().value)
            return value
        if token.kind == "sym" and token.value in ("-", "+"):
            return ("-" if token.value == "-" else "") + self.next().value
        if token.kind == "sym" and token.value == "{":
            depth = 1
            while depth:
                inner = self.next()
                if inner.value == "{":
                    depth += 1
                elif inner.value == "}":
                    depth -= 1
            return ""
        return token.value

    def oneof(self, msg: descriptor_pb2.DescriptorProto, scope: str) -> None:
        index = len(msg.oneof_decl)
        msg.oneof_decl.add(name=self.simple_ident())
        self.expect("{")
        while not self.accept("}"):
            if self.accept(";"):
                continue
            if self.accept("option"):
                self.skip_statement()
                continue
            field = self.field(msg, scope, allow_label=False)
            field.oneof_index = index

    def map_field(self, msg: descriptor_pb2.DescriptorProto, scope: str) -> None:
        self.expect("<")
        key_type = self.ident()
        self.expect(",")
        value_type = self.ident()
        self.expect(">")
        if key_type not in _SCALARS or key_type in ("double", "float", "bytes"):
            raise self._error(f"invalid map key type {key_type!r}")
        name = self.simple_ident()
        entry = msg.nested_type.add(name=_camel(name, upper_first=True) + "Entry")
        entry.options.map_entry = True
        entry_full = self._register(scope, entry.name, "message")
        key = entry.field.add(name="key", number=1, label=_FDP.LABEL_OPTIONAL, json_name="key")
        key.type = _SCALARS[key_type]
        value = entry.field.add(name="value", number=2, label=_FDP.LABEL_OPTIONAL, json_name="value")
        self._set_type(value, value_type, entry_full)
        field = msg.field.add(name=name, label=_FDP.LABEL_REPEATED, type=_FDP.TYPE_MESSAGE)
        field.json_name = _camel(name, upper_first=False)
        field.type_name = "." + entry_full
        self.expect("=")
        field.number = self.integer()
        self.field_options(field)
        self.expect(";")

    def reserved(self, ranges, names, exclusive: bool) -> None:
        while True:
            token = self.peek()
            if token is not None and token.kind == "string":
                names.append(self.string())
            else:
                start = self.integer()
                end = self.integer() if self.accept("to") else start
                ranges.add(start=start, end=end + 1 if exclusive else end)
            if self.accept(";"):
                return
            self.expect(",")

    def enum(self, enum: descriptor_pb2.EnumDescriptorProto, scope: str) -> None:
        enum.name = self.simple_ident()
        self._register(scope, enum.name, "enum")
        self.expect("{")
        while not self.accept("}"):
            if self.accept(";"):
                continue
            if self.accept("option"):
                self.skip_statement()
                continue
            if self.accept("reserved"):
                self.reserved(enum.reserved_range, enum.reserved_name, exclusive=False)
                continue
            value = enum.value.add(name=self.simple_ident())
            self.expect("=")
            value.number = self.integer()
            if self.accept("["):
                while not self.accept("]"):
                    self.next()
            self.expect(";")
        if not enum.value:
            raise self._error(f"enum {enum.name!r} has no values")

    def resolve(self) -> None:
        for field, scope, raw in self.pending:
            full = self._lookup(scope, raw)
            if full is None:
                raise ProtoSyntaxError(f"field {field.name!r}: unknown type {raw!r}")
            field.type = _FDP.TYPE_MESSAGE if self.known[full] == "message" else _FDP.TYPE_ENUM
            field.type_name = "." + full

    def _lookup(self, scope: str, raw: str) -> str | None:
        if raw.startswith("."):
            return raw[1:] if raw[1:] in self.known else None
        parts = scope.split(".") if scope else []
        while True:
            candidate = ".".join([*parts, raw])
            if candidate in self.known:
                return candidate
            if not parts:
                return None
            parts.pop()


def parse_proto(text: str, name: str = "example.proto") -> descriptor_pb2.FileDescriptorProto:
    """Parse schema text into a FileDescriptorProto named name."""
    return _Parser(text, name).parse()