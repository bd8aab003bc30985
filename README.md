# trusskit

trusskit builds a plain Python model of a gRPC service from two sources:

* the `.proto` files that define it, read for their `service` blocks and
  `google.api.http` options, comments included;
* the Go code that the protobuf compiler generates from those files, read for
  messages, enums, map and oneof fields, and the `<Name>Server` interface.

The result says, for every method of the service, which HTTP verb and path it
is bound to and whether each field of its request message travels in the
path, the query string or the body.

## Parsing a service block

The service parser in `trusskit.svcparse` works on `.proto` text alone and
needs nothing else installed:

```python
from trusskit.svcparse.lexer import SvcLexer
from trusskit.svcparse.parser import parse_service

proto = '''
service Echo {
  rpc Say(SayRequest) returns (SayReply) {
    option (google.api.http) = {
      // Say something
      get: "/say/{text}"
      additional_bindings {
        post: "/say"
      }
    };
  }
}
'''

service = parse_service(SvcLexer(proto))
method = service.methods[0]
print(method.name, method.request_type, method.response_type)
for binding in method.http_bindings:
    print([(f.kind, f.value, f.description) for f in binding.fields])
```

Text outside the `service` block is skipped, and a `stream` keyword or a
qualified type name in an rpc signature is accepted (only the last part of the
name is kept). A `custom { kind: ... path: ... }` block ends up in
`HTTPBinding.custom_http_pattern`.

Errors:

* input that holds no service raises `EOFError`;
* malformed input raises `ParserError`;
* an rpc body holding something other than an `option` block raises
  `OptionalParseError`, a subclass of `ParserError` that callers may treat as
  "no HTTP transport";
* an rpc ending in `;` or with an empty body `{}` stops the parse, and the
  service is returned with the methods read up to that point.

The lower layers are usable on their own: `trusskit.svcparse.scanner.SvcScanner`
splits text into units and tracks brace depth and line numbers, and
`trusskit.svcparse.lexer.SvcLexer` turns them into `Token` values, joining
consecutive comments into one.

## Building a full service definition

`trusskit.svcdef.build.new(go_files, proto_files)` takes two mappings from a
path to the file's contents (a string, bytes or a readable object) and
returns a `trusskit.svcdef.model.Svcdef` holding the Go package name, the
messages, the enums and the service. Go sources are read by
`trusskit.svcdef.goparse.parse_file`, which understands declarations only and
raises `GoSyntaxError` on input it cannot parse.

Field types are resolved to the messages and enums they refer to
(`trusskit.svcdef.resolvetypes`), and every method carries its `HTTPBinding`
list with one `HTTPParameter` per request field. Helpers such as `get_verb`,
`get_path_params` and `param_location` live in
`trusskit.svcdef.consolidate_http`. If an rpc lacks HTTP annotations, a
warning is logged through the `logging` module and no bindings are added.

When `protoc` and `protoc-gen-gogo` are on `PATH`, two shortcuts run the
compiler for you:

```python
from trusskit.svcdef.fromstring import new_from_string
from trusskit.parsesvcname import from_paths, from_readers

sd = new_from_string(proto_text, gopath=["/home/me/go"])
print(sd.service.name)

print(from_paths(["/home/me/go"], ["echo.proto"]))
print(from_readers(["/home/me/go"], [proto_text]))
```

`from_paths` and `from_readers` return the CamelCased service name and raise
`ValueError` when no service is defined. `trusskit.execprotoc` holds the calls
to `protoc` itself (`protoc`, `generate_pb_dot_go`, `code_generator_request`)
and raises `ProtocError` when the compiler or a plugin fails or is missing.

`trusskit.config.Config` is a dataclass grouping the inputs of a generation
run: gopath entries, package names and paths, definition paths and the files
of an earlier generation.

## Starting a new definition

`trusskit.getstarted.do` writes a small starter `.proto` file to the current
directory, named after the given package name, and returns 0 on success or 1
if a file of that name is already there or cannot be written. Messages go to
the `logging` module.

```python
from trusskit.getstarted import do

do("echo-service")   # writes echoservice.proto with service EchoService
```

A trailing `.proto` in the name is removed with a warning. `ProtoInfo` gives
the file, package and service names derived from an alias, and
`trusskit.naming.camel_case` applies the CamelCase rules that generated Go code
uses for names.

## What it does not do

trusskit reads and models service definitions; it does not generate service
code from them, and it installs no command-line program. Producing Go code
from `.proto` files is left to `protoc` and its plugins, which must be
installed separately for the functions that call them.

## Tests

The test suite uses pytest, which comes with the `test` extra.