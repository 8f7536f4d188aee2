"""Lattice node helpers: connection configuration, retry strategies, receipt polling and dynamic protobuf."""

__version__ = "0.1.0"
__all__ = ["config", "retry", "receipt", "proto_parser", "serializer"]