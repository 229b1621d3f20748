"""
setup.py for packaging StatFin MCP
"""

from setuptools import find_packages, setup

setup(
    name="statfin-mcp",
    version="0.1.0",
    description="MCP server for Statistics Finland figures on the Kaustinen sub-region",
    packages=find_packages(include=["statfin_mcp", "statfin_mcp.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx",
        "mcp<2",
        "numpy",
        "polars",
        "fastapi",
        "pydantic",
        "uvicorn",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
    entry_points={
        "console_scripts": [
            "statfin-mcp=statfin_mcp.server:main",
            "statfin-mcp-http=statfin_mcp.http_server:main",
        ],
    },
)
