"""Writes a starter protobuf definition to the current directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from string import Template

from .naming import camel_case

log = logging.getLogger(__name__)

_FALLBACK_NAME = "get_started"

STARTER_PROTO = """
syntax = "proto3";

package ${package_name};

import "google/api/annotations.proto";

service ${service_name} {
  rpc Status(StatusRequest) returns (StatusResponse) {
    option (google.api.http) = {
      get: "/status"
    };
  }
}

enum ServiceStatus {
  FAIL = 0;
  OK = 1;
}

message StatusRequest {
  bool full = 1;
}

message StatusResponse {
  ServiceStatus status = 1;
}
"""

NEXT_STEP_MSG = """A "starter" protobuf file named '${file_name}' has been created in the
current directory. You can generate a service based on this new protobuf file
at any time using the following command:

    truss ${file_name}

If you want to generate a protofile with a different name, use the
'--getstarted' option with the name of your choice after '--getstarted'. For
example, to generate a 'foo.proto', use the following command:

    truss --getstarted foo
"""

EXISTING_FILE_MSG = """There's already a "starter" protobuf file named '${file_name}' in the current
directory. If you'd like to generate a service based on this existing protobuf
file, you should instead run the command:

    truss ${file_name}"""

_DOT_PROTO_IN_NAME = """The name you provided has a suffix of '.proto' when it should not. Instead of
'${got}', you should provide '${want}'. Here's an example of the correct
command to enter next time:

	truss --getstarted ${want}

For now this program is continuing as though you used '${want}'.
"""


@dataclass(frozen=True)
class ProtoInfo:
    """Names derived from the alias a user gives for a new service."""

    alias: str

    def file_name(self) -> str:
        """Name of the .proto file to write."""
        return self.package_name() + ".proto"

    def package_name(self) -> str:
        """Lower-case package name with dashes and spaces removed."""
        return self.alias.replace("-", "").replace(" ", "").lower()

    def service_name(self) -> str:
        """CamelCased service name."""
        return camel_case(self.alias.replace("-", "_").replace(" ", "_"))


def _render(template: str, info: ProtoInfo) -> str:
    return Template(template).substitute(
        package_name=info.package_name(),
        service_name=info.service_name(),
        file_name=info.file_name(),
    )


def remove_dot_proto_suffix(pkg: str) -> str:
    """Remove '.proto' from ``pkg``, warning the user if it was a suffix."""
    want = pkg.replace(".proto", "")
    if pkg.endswith(".proto"):
        log.warning(Template(_DOT_PROTO_IN_NAME).substitute(got=pkg, want=want))
    return want


def do(pkg: str = "") -> int:
    """Write a starter .proto file named after ``pkg`` into the current directory.

    Returns 0 on success and 1 if the file already exists or cannot be
    written, so the result can be used as an exit status.
    """
    info = ProtoInfo(remove_dot_proto_suffix(pkg or _FALLBACK_NAME))
    path = Path(info.file_name())
    if path.exists():
        log.error(_render(EXISTING_FILE_MSG, info))
        return 1
    try:
        path.write_text(_render(STARTER_PROTO, info), encoding="utf-8")
    except OSError as err:
        log.error("cannot create %r: %s", info.file_name(), err)
        return 1
    log.info(_render(NEXT_STEP_MSG, info))
    return 0