import os
import subprocess
from pathlib import Path
from unittest import mock

import pytest
from google.protobuf.compiler import plugin_pb2

from trusskit.execprotoc import (
    ProtocError,
    code_generator_request,
    generate_pb_dot_go,
    protoc,
)


@pytest.fixture
def tools():
    with mock.patch("shutil.which", return_value="/usr/local/bin/tool") as which, mock.patch(
        "subprocess.run"
    ) as run:
        run.return_value = subprocess.CompletedProcess([], 0, stdout=b"")
        yield which, run


def test_protoc_builds_arguments(tools, tmp_path):
    _, run = tools
    proto = tmp_path / "svc.proto"
    protoc([proto], ["/go"], "--plugin_out=x")
    cmd = run.call_args.args[0]
    assert cmd == [
        "protoc",
        f"--proto_path={tmp_path}",
        f"-I{os.path.join('/go', 'src')}",
        "--plugin_out=x",
        str(proto),
    ]


def test_protoc_failure_reports_output(tools, tmp_path):
    _, run = tools
    run.return_value = subprocess.CompletedProcess([], 1, stdout=b"bad syntax here")
    with pytest.raises(ProtocError, match="bad syntax here"):
        protoc([tmp_path / "svc.proto"], [], "--plugin_out=x")


def test_protoc_missing_binary(tools, tmp_path):
    _, run = tools
    run.side_effect = FileNotFoundError("protoc")
    with pytest.raises(ProtocError, match="protoc exec failed"):
        protoc([tmp_path / "svc.proto"], [], "--plugin_out=x")


def test_protoc_requires_paths(tools):
    with pytest.raises(ValueError):
        protoc([], [], "--plugin_out=x")


def test_generate_pb_dot_go_flag(tools, tmp_path):
    _, run = tools
    generate_pb_dot_go([tmp_path / "svc.proto"], [], tmp_path / "out")
    cmd = run.call_args.args[0]
    flags = [arg for arg in cmd if arg.startswith("--gogofaster_out=")]
    assert len(flags) == 1
    assert "paths=source_relative" in flags[0]
    assert flags[0].endswith("plugins=grpc:" + str(tmp_path / "out"))
    assert cmd[-1] == str(tmp_path / "svc.proto")


def test_generate_pb_dot_go_needs_plugin(tools, tmp_path):
    which, run = tools
    which.return_value = None
    with pytest.raises(ProtocError, match="protoc-gen-gogo"):
        generate_pb_dot_go([tmp_path / "svc.proto"], [], tmp_path)
    assert run.call_count == 0


def test_generate_pb_dot_go_wraps_failure(tools, tmp_path):
    _, run = tools
    run.return_value = subprocess.CompletedProcess([], 2, stdout=b"oops")
    with pytest.raises(ProtocError, match="cannot exec protoc with protoc-gen-gogo"):
        generate_pb_dot_go([tmp_path / "svc.proto"], [], tmp_path)


def _writing_protocast(payload):
    def run(cmd, **kwargs):
        flag = next(a for a in cmd if a.startswith("--truss-protocast_out="))
        out_dir = Path(flag.partition("=")[2])
        (out_dir / "output").write_bytes(payload)
        return subprocess.CompletedProcess(cmd, 0, stdout=b"")

    return run


def test_code_generator_request_round_trip(tools, tmp_path):
    _, run = tools
    sent = plugin_pb2.CodeGeneratorRequest(file_to_generate=["svc.proto"], parameter="p")
    run.side_effect = _writing_protocast(sent.SerializeToString())
    got = code_generator_request([tmp_path / "svc.proto"], [])
    assert got == sent
    assert list(got.file_to_generate) == ["svc.proto"]


def test_code_generator_request_without_output(tools, tmp_path):
    with pytest.raises(ProtocError, match="no protoc output file found"):
        code_generator_request([tmp_path / "svc.proto"], [])


def test_code_generator_request_needs_plugin(tools, tmp_path):
    which, _ = tools
    which.return_value = None
    with pytest.raises(ProtocError, match="protoc-gen-truss-protocast"):
        code_generator_request([tmp_path / "svc.proto"], [])