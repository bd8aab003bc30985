"""Models of gRPC service definitions read from protobuf and generated Go code."""

__version__ = "0.1.0"