"""Setup configuration for MCP HTTP Proxy."""

from setuptools import setup, find_packages

setup(
    name="mcp-http-proxy",
    version="1.0.0",
    description="Stdio to HTTP proxy for remote MCP servers",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "httpx>=0.27.0",
        "mcp>=1.2.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.24",
            "fastapi>=0.115.0",
            "uvicorn>=0.32.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mcp-http-proxy=proxy_mcp.cli:main",
        ],
    },
    python_requires=">=3.10",
)
