"""Runs protoc and its plugins on .proto files given by path."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Iterable, Sequence, Union

from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

PathLike = Union[str, "os.PathLike[str]"]

_GOGO_TYPES = "github.com/gogo/protobuf/types"
_WELL_KNOWN_TYPES = ("any", "duration", "struct", "timestamp", "wrappers")


class ProtocError(RuntimeError):
    """Raised when protoc or one of its plugins cannot be run or fails."""


def _gogofaster_flag(out_dir: PathLike) -> str:
    mappings = ",".join(
        f"Mgoogle/protobuf/{name}.proto={_GOGO_TYPES}" for name in _WELL_KNOWN_TYPES
    )
    return (
        f"--gogofaster_out={mappings},paths=source_relative,plugins=grpc:"
        f"{os.fspath(out_dir)}"
    )


def generate_pb_dot_go(
    proto_paths: Sequence[PathLike], gopath: Iterable[str], out_dir: PathLike
) -> None:
    """Create .pb.go files for ``proto_paths`` and write them to ``out_dir``."""
    if shutil.which("protoc-gen-gogo") is None:
        raise ProtocError("cannot find protoc-gen-gogo in PATH")
    try:
        protoc(proto_paths, gopath, _gogofaster_flag(out_dir))
    except ProtocError as err:
        raise ProtocError(f"cannot exec protoc with protoc-gen-gogo: {err}") from err


def _protoc_output(proto_paths: Sequence[PathLike], gopath: Iterable[str]) -> bytes:
    if shutil.which("protoc-gen-truss-protocast") is None:
        raise ProtocError("protoc-gen-truss-protocast does not exist in $PATH")
    with tempfile.TemporaryDirectory(prefix="truss-") as out_dir:
        try:
            protoc(proto_paths, gopath, f"--truss-protocast_out={out_dir}")
        except ProtocError as err:
            raise ProtocError(f"protoc failed: {err}") from err
        for entry in sorted(Path(out_dir).iterdir()):
            if entry.is_dir():
                continue
            try:
                return entry.read_bytes()
            except OSError as err:
                raise ProtocError(f"cannot read file: {entry}: {err}") from err
        raise ProtocError(f"no protoc output file found in: {out_dir}")


def code_generator_request(
    proto_paths: Sequence[PathLike], gopath: Iterable[str]
) -> plugin_pb2.CodeGeneratorRequest:
    """Return the CodeGeneratorRequest protoc builds for ``proto_paths``."""
    try:
        data = _protoc_output(proto_paths, gopath)
    except ProtocError as err:
        raise ProtocError(f"cannot get output from protoc: {err}") from err
    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(data)
    except DecodeError as err:
        raise ProtocError(
            f"cannot unmarshal protoc output to code generator request: {err}"
        ) from err
    return request


def protoc(proto_paths: Sequence[PathLike], gopath: Iterable[str], plugin: str) -> None:
    """Run protoc with ``plugin`` on ``proto_paths``.

    The directory of the first proto file and ``<gopath>/src`` for each
    gopath entry are used as include paths.
    """
    paths = [os.fspath(p) for p in proto_paths]
    if not paths:
        raise ValueError("no proto files given to protoc")
    args = [f"--proto_path={os.path.dirname(paths[0]) or '.'}"]
    args.extend(f"-I{os.path.join(gp, 'src')}" for gp in gopath)
    args.append(plugin)
    args.extend(paths)
    cmd = ["protoc", *args]
    try:
        result = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
    except OSError as err:
        raise ProtocError(
            f"protoc exec failed: {err}\nprotoc arguments:\n\n{cmd}\n\n"
        ) from err
    if result.returncode != 0:
        output = (result.stdout or b"").decode("utf-8", errors="replace")
        raise ProtocError(
            f"protoc exec failed.\nprotoc output:\n\n{output}\n"
            f"protoc arguments:\n\n{cmd}\n\n"
        )