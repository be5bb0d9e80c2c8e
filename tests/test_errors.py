"""
Test the error taxonomy and diagnostic annotation.
"""
from __future__ import annotations

import json

import pytest

from netstorage_http.errors import (
    NetStorageError,
    ParseError,
    ProtocolError,
    TransportError,
    ValidationError,
    is_conflict,
    is_not_found,
)


class TestHierarchy:
    """Test that every kind can be caught through the base class."""

    @pytest.mark.parametrize("error", [
        TransportError("boom"),
        ProtocolError("The server sent us the 500 code", status=500),
        ParseError("bad xml"),
        ValidationError("bad date"),
    ])
    def test_all_kinds_are_netstorage_errors(self, error):
        assert isinstance(error, NetStorageError)

    def test_validation_error_is_type_error(self):
        assert isinstance(ValidationError("x"), TypeError)

    def test_protocol_error_carries_status_and_body(self):
        error = ProtocolError("The server sent us the 404 code", status=404, body="nope")
        assert error.status == 404
        assert error.body == "nope"

    def test_predicates(self):
        conflict = ProtocolError("409", status=409)
        missing = ProtocolError("404", status=404)
        assert is_conflict(conflict) and not is_conflict(missing)
        assert is_not_found(missing) and not is_not_found(conflict)
        assert not is_conflict(TransportError("409"))


class TestAnnotate:
    """Test diagnostic context."""

    def test_plain_message_without_context(self):
        assert str(ParseError("bad xml")) == "bad xml"

    def test_annotate_returns_same_instance(self):
        error = ProtocolError("The server sent us the 403 code", status=403)
        assert error.annotate("mkdir", path="/1") is error
        assert error.status == 403

    def test_rendered_context(self):
        config = {"host": "h", "key": "***"}
        error = ProtocolError("The server sent us the 403 code", status=403)
        error.annotate("mkdir", path="/12345/images", config=config)

        message, _, config_json = str(error).partition("\t")
        assert message == "mkdir The server sent us the 403 code (/12345/images)"
        assert json.loads(config_json) == config

    def test_reannotation_updates_phase_keeps_path(self):
        error = TransportError("reset")
        error.annotate("mkdir", path="/1")
        error.annotate("upload")
        assert error.phase == "upload"
        assert error.path == "/1"
