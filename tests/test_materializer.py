"""
Tests for parent directory materialization.
"""
from __future__ import annotations

import pytest

from netstorage_http.errors import ParseError, ProtocolError, TransportError
from netstorage_http.materializer import DirectoryMaker, PathMaterializer, absolute_target, ancestor_chain

from .fakes.fake_directory_maker import FakeDirectoryMaker


class TestPaths:
    """Test target normalization and chain derivation."""

    @pytest.mark.parametrize("base,target,expected", [
        ("12345", "images/cat.png", "/12345/images/cat.png"),
        (12345, "images/cat.png", "/12345/images/cat.png"),
        ("12345", "/images//cat.png", "/12345/images/cat.png"),
        ("/12345/", "./images/cat.png", "/12345/images/cat.png"),
        ("12345", "images/../cat.png", "/12345/cat.png"),
        ("", "cat.png", "/cat.png"),
        ("12345", "../../cat.png", "/cat.png"),
    ])
    def test_absolute_target(self, base, target, expected):
        assert absolute_target(base, target) == expected

    def test_chain_excludes_leaf_and_is_ordered(self):
        assert ancestor_chain("/12345/a/b/c.txt") == ("/12345", "/12345/a", "/12345/a/b")

    def test_chain_empty_at_root(self):
        assert ancestor_chain("/cat.png") == ()

    @pytest.mark.parametrize("depth", [1, 2, 5, 12])
    def test_chain_length_matches_ancestor_count(self, depth):
        segments = [f"d{i}" for i in range(depth)]
        path = "/" + "/".join(segments) + "/leaf.bin"
        chain = ancestor_chain(path)
        assert len(chain) == depth
        assert [len(p) for p in chain] == sorted(len(p) for p in chain)
        for shorter, longer in zip(chain, chain[1:]):
            assert longer.startswith(shorter + "/")


class TestEnsureAncestors:
    """Test the ordered mkdir walk."""

    def test_fake_satisfies_protocol(self):
        assert isinstance(FakeDirectoryMaker(), DirectoryMaker)

    @pytest.mark.asyncio
    async def test_creates_each_ancestor_in_order(self):
        maker = FakeDirectoryMaker()
        target = await PathMaterializer(maker).ensure_ancestors("12345", "images/cats/cat.png")

        assert target == "/12345/images/cats/cat.png"
        assert maker.calls == ["/12345", "/12345/images", "/12345/images/cats"]

    @pytest.mark.asyncio
    async def test_conflict_is_tolerated(self):
        maker = FakeDirectoryMaker(existing={"/12345"})
        await PathMaterializer(maker).ensure_ancestors("12345", "images/cat.png")

        assert maker.calls == ["/12345", "/12345/images"]
        assert maker.existing == {"/12345", "/12345/images"}

    @pytest.mark.asyncio
    async def test_idempotent_rerun(self):
        maker = FakeDirectoryMaker()
        materializer = PathMaterializer(maker)

        await materializer.ensure_ancestors("12345", "a/b/c.txt")
        state_after_first = set(maker.existing)
        await materializer.ensure_ancestors("12345", "a/b/c.txt")

        assert maker.existing == state_after_first
        assert maker.calls == ["/12345", "/12345/a", "/12345/a/b"] * 2

    @pytest.mark.asyncio
    async def test_no_directory_component_makes_no_calls(self):
        maker = FakeDirectoryMaker()
        target = await PathMaterializer(maker).ensure_ancestors("", "cat.png")

        assert target == "/cat.png"
        assert maker.calls == []

    @pytest.mark.asyncio
    async def test_other_status_aborts_walk(self):
        maker = FakeDirectoryMaker()
        maker.fail_with("/12345/a", ProtocolError("The server sent us the 403 code", status=403))
        config = {"host": "h", "key": "***"}

        with pytest.raises(ProtocolError) as exc_info:
            await PathMaterializer(maker, config=config).ensure_ancestors("12345", "a/b/c.txt")

        error = exc_info.value
        assert maker.calls == ["/12345", "/12345/a"]
        assert error.status == 403
        assert error.phase == "mkdir"
        assert error.path == "/12345/a"
        assert error.config == config
        assert str(error).startswith("mkdir The server sent us the 403 code (/12345/a)\t")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        TransportError("connection refused"),
        ParseError("bad xml"),
        ProtocolError("The server sent us the 404 code", status=404),
    ])
    async def test_error_kind_preserved(self, error):
        maker = FakeDirectoryMaker()
        maker.fail_with("/12345", error)

        with pytest.raises(type(error)) as exc_info:
            await PathMaterializer(maker).ensure_ancestors("12345", "a.txt")

        assert exc_info.value is error
        assert maker.calls == ["/12345"]
