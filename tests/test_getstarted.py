import logging
from pathlib import Path

import pytest

from trusskit.getstarted import ProtoInfo, do, remove_dot_proto_suffix
from trusskit.svcparse.lexer import SvcLexer
from trusskit.svcparse.parser import parse_service


@pytest.mark.parametrize(
    "alias, want",
    [
        ("FooBar", "foobar.proto"),
        ("foo-bar", "foobar.proto"),
        ("foo bar", "foobar.proto"),
        ("foo_bar", "foo_bar.proto"),
    ],
)
def test_file_name(alias, want):
    assert ProtoInfo(alias).file_name() == want


@pytest.mark.parametrize(
    "alias, want",
    [
        ("foobar", "foobar"),
        ("foo-bar", "foobar"),
        ("foo bar", "foobar"),
        ("foo_bar", "foo_bar"),
    ],
)
def test_package_name(alias, want):
    assert ProtoInfo(alias).package_name() == want


@pytest.mark.parametrize(
    "alias, want",
    [
        ("foobar", "Foobar"),
        ("foo-bar", "FooBar"),
        ("foo_bar", "FooBar"),
        ("foo bar", "FooBar"),
    ],
)
def test_service_name(alias, want):
    assert ProtoInfo(alias).service_name() == want


def test_remove_dot_proto_suffix_warns(caplog):
    caplog.set_level(logging.WARNING)
    assert remove_dot_proto_suffix("foo.proto") == "foo"
    assert "truss --getstarted foo" in caplog.text


def test_remove_dot_proto_suffix_plain_name(caplog):
    caplog.set_level(logging.WARNING)
    assert remove_dot_proto_suffix("foo") == "foo"
    assert caplog.text == ""


def test_do_writes_parsable_starter(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert do("foo-bar") == 0
    text = (tmp_path / "foobar.proto").read_text()
    assert "package foobar;" in text
    svc = parse_service(SvcLexer(text))
    assert svc.name == "FooBar"
    assert [m.name for m in svc.methods] == ["Status"]
    fields = svc.methods[0].http_bindings[0].fields
    assert [(f.kind, f.value) for f in fields] == [("get", "/status")]


def test_do_default_name(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert do() == 0
    assert (tmp_path / "get_started.proto").exists()


def test_do_strips_suffix(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert do("echo.proto") == 0
    assert sorted(p.name for p in Path(tmp_path).iterdir()) == ["echo.proto"]


def test_do_refuses_existing_file(tmp_path, monkeypatch, caplog):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "foo.proto").write_text("keep me")
    caplog.set_level(logging.ERROR)
    assert do("foo") == 1
    assert (tmp_path / "foo.proto").read_text() == "keep me"
    assert "There's already" in caplog.text