"""
Launcher for the StatFin HTTP server when the package is not installed.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

if __name__ == "__main__":
    from statfin_mcp.http_server import main

    main()
