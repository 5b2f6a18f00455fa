"""
noderunner - start locally deployed ledger nodes

Discovers node directories under the working directory and starts each
node (and its web server) as an independent process, in a terminal
window, tmux window, screen session, or inline.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
