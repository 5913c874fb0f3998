"""Pawn include diagnostics server built on pygls.

This module provides the PawnIncludeServer class, a small language server
that checks the include directives of open Pawn documents and publishes one
diagnostic per include that cannot be resolved.

Usage:
    python -m pawn_lsp
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence

from lsprotocol import types
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path
from pygls.workspace.position_codec import PositionCodec

from pawn_lsp import __version__
from pawn_lsp.config import DEFAULT_TOML_FILE, project_search_dirs
from pawn_lsp.exceptions import ConfigError
from pawn_lsp.include_scanner import LINE_BREAK_PATTERN, IncludeOccurrence, IncludeScanner

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "pawn-include"


def occurrence_to_diagnostic(
    occurrence: IncludeOccurrence,
    lines: Sequence[str] | None = None,
    position_codec: PositionCodec | None = None,
) -> types.Diagnostic:
    """Convert an unresolved include occurrence to an LSP diagnostic.

    Occurrence columns count code points. When the document lines are given,
    the range is converted to the client's position encoding, UTF-16 unless
    another codec is passed.

    Args:
        occurrence: The unresolved include occurrence.
        lines: The document's lines, without line breaks.
        position_codec: Codec for the negotiated position encoding.

    Returns:
        An error diagnostic spanning the directive's line content.
    """
    line = occurrence.line_number - 1
    range_ = types.Range(
        start=types.Position(line=line, character=occurrence.character),
        end=types.Position(line=line, character=occurrence.end_character),
    )
    if lines is not None:
        range_ = (position_codec or PositionCodec()).range_to_client_units(lines, range_)

    return types.Diagnostic(
        range=range_,
        message=f"cannot find include '{occurrence.directive.raw_path}'",
        severity=types.DiagnosticSeverity.Error,
        source=DIAGNOSTIC_SOURCE,
    )


class PawnIncludeServer:
    """Language server publishing diagnostics for unresolved Pawn includes."""

    def __init__(
        self,
        workspace_root: str | None = None,
        search_dirs: list[str] | None = None,
    ) -> None:
        """Initialize the server.

        Args:
            workspace_root: Project root holding opencli.toml. When omitted it
                            is taken from the client's initialize request.
            search_dirs: Explicit search directories. When omitted they are
                         read from the project's opencli.toml.
        """
        self.lsp = LanguageServer("pawn-include-lsp", __version__)
        self._workspace_root = workspace_root
        self._explicit_search_dirs = search_dirs
        self._scanner = IncludeScanner(search_dirs=self._load_search_dirs())
        self._position_codec = PositionCodec()

        # Open documents: URI -> content
        self._documents: dict[str, str] = {}

        # Last diagnostics computed per URI
        self._diagnostics: dict[str, list[types.Diagnostic]] = {}

        self._register_handlers()

    def get_diagnostics(self, uri: str) -> list[types.Diagnostic]:
        return list(self._diagnostics.get(uri, []))

    def start(self) -> None:
        """Serve over stdio until the client exits."""
        self.lsp.start_io()

    def _load_search_dirs(self) -> list[str]:
        """Resolve the search directories from arguments or project config."""
        if self._explicit_search_dirs is not None:
            return list(self._explicit_search_dirs)
        if self._workspace_root is None:
            return []

        try:
            return project_search_dirs(self._workspace_root)
        except ConfigError as e:
            logger.warning(f"Ignoring project include configuration: {e}")
            return []

    def _register_handlers(self) -> None:
        """Register LSP feature handlers on the pygls server."""

        @self.lsp.feature(types.INITIALIZE)
        def initialize(params: types.InitializeParams) -> None:
            root = to_fs_path(params.root_uri) if params.root_uri else None
            if self._workspace_root is None and root:
                self._set_workspace_root(root)

        @self.lsp.feature(types.TEXT_DOCUMENT_DID_OPEN)
        def did_open(params: types.DidOpenTextDocumentParams) -> None:
            uri = params.text_document.uri
            self._open_document(uri, params.text_document.text)
            self._publish_diagnostics(uri)

        @self.lsp.feature(types.TEXT_DOCUMENT_DID_CHANGE)
        def did_change(params: types.DidChangeTextDocumentParams) -> None:
            uri = params.text_document.uri
            document = self.lsp.workspace.get_text_document(uri)
            self._change_document(uri, document.source)
            self._publish_diagnostics(uri)

        @self.lsp.feature(types.TEXT_DOCUMENT_DID_SAVE)
        def did_save(params: types.DidSaveTextDocumentParams) -> None:
            uri = params.text_document.uri
            if self._is_project_file(uri):
                self._reload_search_dirs()
                for open_uri in self._documents:
                    self._publish_diagnostics(open_uri)
                return
            document = self.lsp.workspace.get_text_document(uri)
            self._change_document(uri, document.source)
            self._publish_diagnostics(uri)

        @self.lsp.feature(types.TEXT_DOCUMENT_DID_CLOSE)
        def did_close(params: types.DidCloseTextDocumentParams) -> None:
            uri = params.text_document.uri
            self._close_document(uri)
            self._publish_diagnostics(uri)

    def _set_workspace_root(self, root: str) -> None:
        """Adopt a workspace root and re-check open documents against its configuration."""
        self._workspace_root = root
        logger.info(f"Workspace root set to {root}")
        self._reload_search_dirs()

    def _reload_search_dirs(self) -> None:
        """Rebuild the scanner from the current configuration and re-check open documents."""
        self._scanner = IncludeScanner(search_dirs=self._load_search_dirs())
        for uri, content in self._documents.items():
            self._diagnostics[uri] = self._check_document(uri, content)

    def _is_project_file(self, uri: str) -> bool:
        if self._workspace_root is None or not uri.startswith("file:"):
            return False
        path = to_fs_path(uri)
        if path is None:
            return False
        project_file = os.path.join(self._workspace_root, DEFAULT_TOML_FILE)
        return os.path.normcase(os.path.abspath(path)) == os.path.normcase(
            os.path.abspath(project_file)
        )

    def _open_document(self, uri: str, content: str) -> None:
        """Store a document and compute its include diagnostics."""
        self._documents[uri] = content
        self._diagnostics[uri] = self._check_document(uri, content)

    def _change_document(self, uri: str, content: str) -> None:
        self._open_document(uri, content)

    def _close_document(self, uri: str) -> None:
        self._documents.pop(uri, None)
        self._diagnostics.pop(uri, None)

    def _check_document(self, uri: str, content: str) -> list[types.Diagnostic]:
        """Scan a document's text and build diagnostics for missing includes.

        Args:
            uri: The document URI.
            content: The document text.

        Returns:
            One diagnostic per unresolved include. Empty for non-file URIs.
        """
        path = to_fs_path(uri) if uri.startswith("file:") else None
        if path is None:
            logger.debug(f"Skipping include check for non-file document {uri}")
            return []

        report = self._scanner.scan_text(path, content)
        lines = LINE_BREAK_PATTERN.split(content)
        return [
            occurrence_to_diagnostic(o, lines, self._position_codec) for o in report.unresolved
        ]

    def _publish_diagnostics(self, uri: str) -> None:
        self.lsp.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=self.get_diagnostics(uri))
        )


def main() -> None:
    """Start the Pawn include diagnostics server over stdio."""
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Pawn include diagnostics server")
    PawnIncludeServer().start()
