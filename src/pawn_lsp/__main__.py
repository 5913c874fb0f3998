"""Entry point for running the Pawn include diagnostics server as a module.

Usage:
    python -m pawn_lsp
"""

from pawn_lsp.server import main

if __name__ == "__main__":
    main()
