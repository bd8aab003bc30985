"""Builds a service definition from the text of a .proto file."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Iterable

from ..execprotoc import ProtocError, generate_pb_dot_go
from .build import new
from .model import Svcdef

_DEF_FILE_NAME = "definition.proto"
_GO_FILE_NAME = "definition.pb.go"


def new_from_string(definition: str, gopath: Iterable[str]) -> Svcdef:
    """Create a Svcdef from the text of a valid protobuf file.

    The text is written to a temporary directory and protoc generates the
    Go code that the definition is read from.
    """
    with tempfile.TemporaryDirectory(prefix="trusssvcdef") as proto_dir:
        def_path = Path(proto_dir) / _DEF_FILE_NAME
        try:
            def_path.write_text(definition, encoding="utf-8")
        except OSError as err:
            raise OSError(f"cannot write proto definition to file: {err}") from err

        try:
            generate_pb_dot_go([def_path], list(gopath), proto_dir)
        except ProtocError as err:
            raise ProtocError(f"cannot create a pb.go file: {err}") from err

        go_path = Path(proto_dir) / _GO_FILE_NAME
        try:
            pbgo = go_path.read_text(encoding="utf-8")
        except OSError as err:
            raise OSError(f"cannot read pb.go file {str(go_path)!r}: {err}") from err

    return new(
        {"/tmp/doesntexist.pb.go": pbgo},
        {"/tmp/doesntexist.proto": definition},
    )