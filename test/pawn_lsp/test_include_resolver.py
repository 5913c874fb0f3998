"""
Unit tests for the Pawn IncludeResolver.

Tests search order, the auto-extension fallback, rooted includes and caching,
both against an in-memory file set and against real files under tmp_path.
"""

from pathlib import Path

import pytest

from pawn_lsp.config import ResolverConfig
from pawn_lsp.exceptions import InvalidIncludePath
from pawn_lsp.include_directive import IncludeDirective
from pawn_lsp.include_resolver import (
    IncludeResolver,
    find_include_file,
    has_recognized_extension,
)
from pawn_lsp.path_model import PathModel


class FakeFiles:
    """In-memory file set that records every checked path."""

    def __init__(self, *paths: str) -> None:
        self.paths = set(paths)
        self.checked: list[str] = []

    def __call__(self, path: str) -> bool:
        self.checked.append(path)
        return path in self.paths


def quote(raw_path: str) -> IncludeDirective:
    return IncludeDirective(raw_path=raw_path, kind="quote", is_rooted=False)


def angle(raw_path: str, is_rooted: bool = False) -> IncludeDirective:
    return IncludeDirective(raw_path=raw_path, kind="angle", is_rooted=is_rooted)


def make_resolver(files: FakeFiles, **kwargs) -> IncludeResolver:
    return IncludeResolver(ResolverConfig(**kwargs), file_exists=files, path_model=PathModel(sep="/"))


@pytest.mark.pawn
class TestSearchOrder:
    """Test directory precedence."""

    def test_quote_prefers_base_dir_over_search_dirs(self) -> None:
        """Test that the base directory wins for quote includes."""
        files = FakeFiles("/p/gm/u.inc", "/p/inc/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm", search_dirs=["/p/inc"])

        assert resolver.resolve(quote("u")) == "/p/gm/u.inc"

    def test_quote_falls_back_to_search_dirs(self) -> None:
        """Test that quote includes search the search dirs after the base dir."""
        files = FakeFiles("/p/inc/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm", search_dirs=["/p/inc"])

        assert resolver.resolve(quote("u")) == "/p/inc/u.inc"

    def test_quote_without_base_dir(self) -> None:
        """Test quote includes when no base directory is configured."""
        files = FakeFiles("/p/inc/u.inc")
        resolver = make_resolver(files, search_dirs=["/p/inc"])

        assert resolver.resolve(quote("u")) == "/p/inc/u.inc"

    def test_angle_ignores_base_dir(self) -> None:
        """Test that angle includes never resolve against the base directory."""
        files = FakeFiles("/p/gm/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm", search_dirs=["/p/inc"])

        assert resolver.resolve(angle("u")) is None
        assert not any(path.startswith("/p/gm") for path in files.checked)

    def test_search_dirs_first_match_wins(self) -> None:
        """Test that search directories are tried in configured order."""
        files = FakeFiles("/b/x.inc", "/c/x.inc")
        resolver = make_resolver(files, search_dirs=["/a", "/b", "/c"])

        assert resolver.resolve(angle("x")) == "/b/x.inc"
        assert not any(path.startswith("/c") for path in files.checked)

    def test_empty_search_dir_entries_are_skipped(self) -> None:
        """Test that empty search directory entries are ignored."""
        files = FakeFiles("/inc/x.inc")
        resolver = make_resolver(files, search_dirs=["", "/inc"])

        assert resolver.resolve(angle("x")) == "/inc/x.inc"
        assert all(path.startswith("/inc") for path in files.checked)

    def test_not_found_returns_none(self) -> None:
        """Test that a missing include yields None instead of raising."""
        resolver = make_resolver(FakeFiles(), base_dir="/p/gm", search_dirs=["/p/inc"])

        assert resolver.resolve(angle("missing_mp")) is None
        assert resolver.resolve(quote("missing_mp")) is None


@pytest.mark.pawn
class TestAutoExtension:
    """Test the auto-extension fallback."""

    def test_extension_appended_when_literal_missing(self) -> None:
        """Test that u resolves to u.inc."""
        files = FakeFiles("/p/gm/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm")

        assert resolver.resolve(quote("u")) == "/p/gm/u.inc"

    def test_literal_preferred_over_extension(self) -> None:
        """Test that an existing literal path wins over the fallback."""
        files = FakeFiles("/p/gm/u", "/p/gm/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm")

        assert resolver.resolve(quote("u")) == "/p/gm/u"

    def test_disabled_fallback(self) -> None:
        """Test that no extension is appended when auto-append is disabled."""
        files = FakeFiles("/p/gm/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm", auto_append_enabled=False)

        assert resolver.resolve(quote("u")) is None
        assert files.checked == ["/p/gm/u"]

    def test_recognized_extension_skips_fallback(self) -> None:
        """Test that a recognized extension is not extended further."""
        files = FakeFiles("/p/gm/u.pwn.inc")
        resolver = make_resolver(files, base_dir="/p/gm")

        assert resolver.resolve(quote("u.pwn")) is None
        assert files.checked == ["/p/gm/u.pwn"]

    def test_unrecognized_extension_uses_fallback(self) -> None:
        """Test that other extensions still get the fallback."""
        files = FakeFiles("/inc/u.txt.inc")
        resolver = make_resolver(files, search_dirs=["/inc"])

        assert resolver.resolve(angle("u.txt")) == "/inc/u.txt.inc"

    def test_dot_in_directory_name_is_not_an_extension(self) -> None:
        """Test that only the final segment's extension counts."""
        files = FakeFiles("/inc/lib.inc/core.inc")
        resolver = make_resolver(files, search_dirs=["/inc"])

        assert resolver.resolve(angle("lib.inc/core")) == "/inc/lib.inc/core.inc"

    def test_open_mp_sentinel_gets_fallback(self) -> None:
        """Test that open.mp is not treated as having a recognized extension."""
        files = FakeFiles("/inc/open.mp.inc")
        resolver = make_resolver(files, search_dirs=["/inc"])

        assert resolver.resolve(angle("open.mp")) == "/inc/open.mp.inc"

    def test_extensions_tried_in_order(self) -> None:
        """Test that the first existing auto-extension wins."""
        files = FakeFiles("/inc/x.pwn", "/inc/x.inc")
        resolver = make_resolver(files, search_dirs=["/inc"], auto_extensions=[".pwn", ".inc"])

        assert resolver.resolve(angle("x")) == "/inc/x.pwn"

    def test_fallback_applies_per_directory(self) -> None:
        """Test that a directory's extension fallback runs before the next directory."""
        files = FakeFiles("/a/x.inc", "/b/x")
        resolver = make_resolver(files, search_dirs=["/a", "/b"])

        assert resolver.resolve(angle("x")) == "/a/x.inc"


@pytest.mark.pawn
class TestHasRecognizedExtension:
    """Test recognized extension detection."""

    @pytest.mark.parametrize("raw_path", ["a.inc", "a.pwn", "a.p", "dir/a.inc", "dir\\a.p"])
    def test_recognized(self, raw_path: str) -> None:
        """Test paths with a recognized extension."""
        assert has_recognized_extension(raw_path) is True

    @pytest.mark.parametrize(
        "raw_path", ["a", "a.txt", "a.INC", "open.mp", "dir.inc/a", "dir.p\\a", "a.inc.bak"]
    )
    def test_not_recognized(self, raw_path: str) -> None:
        """Test paths without a recognized extension."""
        assert has_recognized_extension(raw_path) is False


@pytest.mark.pawn
class TestRootedIncludes:
    """Test rooted include handling."""

    def test_rooted_existing_path(self) -> None:
        """Test that a rooted include resolves to its literal path."""
        files = FakeFiles("/usr/share/pawn/a_samp.inc")
        resolver = make_resolver(files, search_dirs=["/inc"])

        assert resolver.resolve(angle("/usr/share/pawn/a_samp.inc", True)) == "/usr/share/pawn/a_samp.inc"
        assert files.checked == ["/usr/share/pawn/a_samp.inc"]

    def test_rooted_has_no_fallback_or_search(self) -> None:
        """Test that rooted includes skip extensions and search directories."""
        files = FakeFiles("/usr/share/pawn/a_samp.inc", "/inc/usr/share/pawn/a_samp")
        resolver = make_resolver(files, search_dirs=["/inc"])

        assert resolver.resolve(angle("/usr/share/pawn/a_samp", True)) is None
        assert files.checked == ["/usr/share/pawn/a_samp"]


@pytest.mark.pawn
class TestResolverCache:
    """Test resolver caching behavior."""

    def test_second_resolve_does_not_touch_files(self) -> None:
        """Test that a cached outcome is returned without filesystem access."""
        files = FakeFiles("/inc/x.inc")
        resolver = make_resolver(files, search_dirs=["/inc"])

        first = resolver.resolve(angle("x"))
        checks = len(files.checked)
        second = resolver.resolve(angle("x"))

        assert first == second == "/inc/x.inc"
        assert len(files.checked) == checks

    def test_not_found_is_cached(self) -> None:
        """Test that a negative outcome is sticky."""
        files = FakeFiles()
        resolver = make_resolver(files, search_dirs=["/inc"])

        assert resolver.resolve(angle("x")) is None
        files.paths.add("/inc/x.inc")

        assert resolver.resolve(angle("x")) is None

    def test_clear_cache_forces_new_lookup(self) -> None:
        """Test that clearing the cache lets the resolver see new files."""
        files = FakeFiles()
        resolver = make_resolver(files, search_dirs=["/inc"])
        assert resolver.resolve(angle("x")) is None
        files.paths.add("/inc/x.inc")

        resolver.clear_cache()

        assert len(resolver.cache) == 0
        assert resolver.resolve(angle("x")) == "/inc/x.inc"

    def test_cache_disabled_always_checks_files(self) -> None:
        """Test that every resolve checks files when caching is disabled."""
        files = FakeFiles("/inc/x.inc")
        resolver = make_resolver(files, search_dirs=["/inc"], cache_enabled=False)

        resolver.resolve(angle("x"))
        checks = len(files.checked)
        resolver.resolve(angle("x"))

        assert len(files.checked) == 2 * checks
        assert len(resolver.cache) == 0

    def test_angle_and_quote_share_cache_key(self) -> None:
        """Test that the cache keys on raw text only, not on directive kind."""
        files = FakeFiles("/p/gm/u.inc")
        resolver = make_resolver(files, base_dir="/p/gm", search_dirs=["/p/inc"])

        assert resolver.resolve(quote("u")) == "/p/gm/u.inc"
        # An uncached angle include would not search the base directory
        assert resolver.resolve(angle("u")) == "/p/gm/u.inc"

    def test_cache_capacity_from_config(self) -> None:
        """Test that the configured capacity bounds the cache."""
        resolver = make_resolver(FakeFiles(), search_dirs=["/inc"], cache_capacity=2)
        for name in ("a", "b", "c"):
            resolver.resolve(angle(name))

        assert len(resolver.cache) == 2
        assert resolver.cache.lookup("a") is None


@pytest.mark.pawn
class TestResolverOnDisk:
    """Test resolution against real files."""

    def test_order_sensitive_resolution(self, tmp_path: Path) -> None:
        """Test base directory precedence with real files."""
        gm = tmp_path / "p" / "gm"
        inc = tmp_path / "p" / "inc"
        gm.mkdir(parents=True)
        inc.mkdir(parents=True)
        (gm / "u.inc").write_text("// gm")
        (inc / "u.inc").write_text("// inc")
        resolver = IncludeResolver(ResolverConfig(base_dir=str(gm), search_dirs=[str(inc)]))

        assert resolver.resolve(quote("u")) == str(gm / "u.inc")

    def test_angle_only_in_base_dir_fails(self, tmp_path: Path) -> None:
        """Test that an angle include present only in the base dir fails."""
        gm = tmp_path / "p" / "gm"
        inc = tmp_path / "p" / "inc"
        gm.mkdir(parents=True)
        inc.mkdir(parents=True)
        (gm / "u.inc").write_text("")
        resolver = IncludeResolver(ResolverConfig(base_dir=str(gm), search_dirs=[str(inc)]))

        assert resolver.resolve(angle("u")) is None

    def test_cached_result_survives_deletion(self, tmp_path: Path) -> None:
        """Test that deleting the target does not change the cached result."""
        target = tmp_path / "u.inc"
        target.write_text("")
        resolver = IncludeResolver(ResolverConfig(base_dir=str(tmp_path)))

        first = resolver.resolve(quote("u"))
        target.unlink()
        second = resolver.resolve(quote("u"))

        assert first == second == str(target)

    def test_nonexistent_search_dir_is_unproductive(self, tmp_path: Path) -> None:
        """Test that a missing search directory is skipped without error."""
        inc = tmp_path / "inc"
        inc.mkdir()
        (inc / "x.inc").write_text("")
        resolver = IncludeResolver(
            ResolverConfig(search_dirs=[str(tmp_path / "missing"), str(inc)])
        )

        assert resolver.resolve(angle("x")) == str(inc / "x.inc")

    def test_quote_traversal_never_reaches_resolver(self, tmp_path: Path) -> None:
        """Test that a parent-directory quote include cannot be resolved outside base_dir."""
        base = tmp_path / "gm"
        base.mkdir()
        (tmp_path / "secret.inc").write_text("")
        resolver = IncludeResolver(ResolverConfig(base_dir=str(base)))

        with pytest.raises(InvalidIncludePath):
            resolver.resolve(quote("../secret"))
        assert len(resolver.cache) == 0

    def test_directory_is_not_a_match(self, tmp_path: Path) -> None:
        """Test that a directory with the include's name is not resolved."""
        (tmp_path / "x").mkdir()
        (tmp_path / "x.inc").write_text("")
        resolver = IncludeResolver(ResolverConfig(search_dirs=[str(tmp_path)]))

        assert resolver.resolve(angle("x")) == str(tmp_path / "x.inc")


@pytest.mark.pawn
class TestFindIncludeFile:
    """Test the one-shot helper."""

    def test_find_include_file(self, tmp_path: Path) -> None:
        """Test resolving once without a resolver."""
        (tmp_path / "x.inc").write_text("")

        assert find_include_file(quote("x"), str(tmp_path), []) == str(tmp_path / "x.inc")
        assert find_include_file(angle("x"), str(tmp_path), []) is None

    def test_find_include_file_rejects_bare_string_search_dirs(self, tmp_path: Path) -> None:
        """Test that a single directory string is rejected rather than split."""
        with pytest.raises(TypeError):
            find_include_file(angle("x"), None, str(tmp_path))  # type: ignore[arg-type]
