"""CLI entrypoint for chatting with the MCP-backed agent."""

from __future__ import annotations

import sys
from pathlib import Path

# Add src/ for imports
ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from agent.cli import main  # noqa: E402


if __name__ == "__main__":
    main()
