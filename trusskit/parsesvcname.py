"""Finds the CamelCased service name of a protobuf definition."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import IO, Iterable, Sequence, Union

from .execprotoc import ProtocError, generate_pb_dot_go
from .svcdef.build import new
from .svcdef.model import LocationError

Reader = Union[str, bytes, IO]


def _read_files(paths: Iterable[Path], kind: str) -> dict[str, str]:
    files = {}
    for path in paths:
        try:
            files[str(path)] = path.read_text(encoding="utf-8")
        except OSError as err:
            raise OSError(f"cannot open all {kind} files: cannot open file {str(path)!r}: {err}") from err
    return files


def from_paths(gopath: Iterable[str], proto_def_paths: Sequence[Union[str, "os.PathLike[str]"]]) -> str:
    """Return the name of the service defined in the given .proto files."""
    proto_paths = [Path(p) for p in proto_def_paths]
    with tempfile.TemporaryDirectory(prefix="parsesvcname") as out_dir:
        try:
            generate_pb_dot_go(proto_paths, list(gopath), out_dir)
        except ProtocError as err:
            raise ProtocError(
                f"failed to generate .pb.go files from proto definition files: {err}"
            ) from err
        pbgo_paths = [Path(out_dir) / (p.stem + ".pb.go") for p in proto_paths]
        pbgo_files = _read_files(pbgo_paths, ".pb.go")
    proto_files = _read_files(proto_paths, ".proto")

    try:
        sd = new(pbgo_files, proto_files)
    except (ValueError, LocationError) as err:
        raise ValueError(
            "failed to create service definition; did you pass ALL the protobuf "
            f"files to truss?: {err}"
        ) from err

    if sd.service is None:
        raise ValueError("no service defined")
    return sd.service.name


def from_readers(gopath: Iterable[str], proto_def_readers: Iterable[Reader]) -> str:
    """Return the service name of .proto contents given as text, bytes or readers."""
    with tempfile.TemporaryDirectory(prefix="parsesvcname-fromreaders") as proto_dir:
        paths = []
        for reader in proto_def_readers:
            data = reader.read() if hasattr(reader, "read") else reader
            if isinstance(data, str):
                data = data.encode("utf-8")
            fd, path = tempfile.mkstemp(
                prefix="parsesvcname-fromreader", suffix=".proto", dir=proto_dir
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            paths.append(path)
        return from_paths(gopath, paths)