import io
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from trusskit.execprotoc import ProtocError
from trusskit.parsesvcname import from_paths, from_readers

ANNOTATED = """
	syntax = "proto3";
	package echo;

	import "google/api/annotations.proto";

	service BounceEcho {
	  rpc Echo (EchoRequest) returns (EchoResponse) {
		option (google.api.http) = {
			get: "/echo"
		  };
	  }
	}
	message EchoRequest {
	  string In = 1;
	}
	message EchoResponse {
	  string Out = 1;
	}
	"""

NO_ANNOTATIONS = """
	syntax = "proto3";
	package echo;

	service BounceEcho {
	  rpc Echo (EchoRequest) returns (EchoResponse) {}
	}
	message EchoRequest {
	  string In = 1;
	}
	message EchoResponse {
	  string Out = 1;
	}
	"""

UNDERSCORE = NO_ANNOTATIONS.replace("BounceEcho", "foo_bar_test")
LEADING_UNDERSCORE = NO_ANNOTATIONS.replace("BounceEcho", "_Foo_Bar")

NO_SERVICE = """
	syntax = "proto3";
	package echo;

	message EchoRequest {
	  string In = 1;
	}
	"""


def _go_code(interfaces):
    decls = "\n".join(
        f"""type {name} interface {{
	Echo(context.Context, *EchoRequest) (*EchoResponse, error)
}}
"""
        for name in interfaces
    )
    return f"""package echo

type EchoRequest struct {{
	In string `protobuf:"bytes,1,opt,name=In,proto3" json:"In,omitempty"`
}}

type EchoResponse struct {{
	Out string `protobuf:"bytes,1,opt,name=Out,proto3" json:"Out,omitempty"`
}}

{decls}
"""


def _fake_protoc(go_source):
    def run(cmd, **kwargs):
        flag = next(a for a in cmd if a.startswith("--gogofaster_out="))
        out_dir = Path(flag.partition("plugins=grpc:")[2])
        proto = Path(cmd[-1])
        (out_dir / (proto.stem + ".pb.go")).write_text(go_source)
        return subprocess.CompletedProcess(cmd, 0, stdout=b"")

    return run


def _patched(interfaces):
    return (
        mock.patch("shutil.which", return_value="/usr/local/bin/tool"),
        mock.patch("subprocess.run", side_effect=_fake_protoc(_go_code(interfaces))),
    )


def test_from_paths(tmp_path):
    proto = tmp_path / "trusstest.proto"
    proto.write_text(ANNOTATED)
    which, run = _patched(["BounceEchoClient", "BounceEchoServer"])
    with which, run as fake:
        assert from_paths(["/go"], [proto]) == "BounceEcho"
    assert fake.call_args.args[0][-1] == str(proto)


def test_from_reader():
    which, run = _patched(["BounceEchoServer"])
    with which, run:
        assert from_readers(["/go"], [io.StringIO(ANNOTATED)]) == "BounceEcho"


def test_no_annotations():
    which, run = _patched(["BounceEchoServer"])
    with which, run:
        assert from_readers(["/go"], [io.StringIO(NO_ANNOTATIONS)]) == "BounceEcho"


def test_underscore_service():
    which, run = _patched(["FooBarTestServer"])
    with which, run:
        assert from_readers(["/go"], [UNDERSCORE]) == "FooBarTest"


def test_leading_underscore_service():
    which, run = _patched(["XFoo_BarServer"])
    with which, run:
        assert from_readers(["/go"], [LEADING_UNDERSCORE.encode()]) == "XFoo_Bar"


def test_no_service_defined():
    which, run = _patched([])
    with which, run:
        with pytest.raises(ValueError, match="no service defined"):
            from_readers(["/go"], [NO_SERVICE])


def test_generation_failure():
    with mock.patch("shutil.which", return_value=None):
        with pytest.raises(ProtocError, match="failed to generate .pb.go files"):
            from_readers(["/go"], [ANNOTATED])