import pytest

from proxy_mcp.config import (
    DEFAULT_MAX_IN_FLIGHT,
    DEFAULT_TIMEOUT,
    ConfigError,
    load_settings,
    parse_target,
)

ENV_VARS = (
    "MCP_PROXY_TIMEOUT",
    "MCP_PROXY_MAX_IN_FLIGHT",
    "MCP_PROXY_PRESERVE_ORDER",
    "MCP_PROXY_MAX_LINE_BYTES",
    "MCP_PROXY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("proxy_mcp.config.load_dotenv", lambda: False)


class TestParseTarget:
    @pytest.mark.parametrize("url,scheme,host,port,path", [
        ("https://example.com/mcp", "https", "example.com", 443, "/mcp"),
        ("http://example.com/mcp", "http", "example.com", 80, "/mcp"),
        ("http://localhost:8000/mcp/", "http", "localhost", 8000, "/mcp/"),
        ("https://example.com:8443/a/b?x=1&y=2", "https", "example.com", 8443, "/a/b?x=1&y=2"),
        ("https://example.com", "https", "example.com", 443, "/"),
    ])
    def test_valid_urls(self, url, scheme, host, port, path):
        target = parse_target(url)
        assert (target.scheme, target.host, target.port, target.path) == (scheme, host, port, path)
        assert target.is_https == (scheme == "https")

    @pytest.mark.parametrize("url", [
        None,
        "",
        "   ",
        "example.com/mcp",
        "ftp://example.com/mcp",
        "https://",
        "not a url",
    ])
    def test_invalid_urls(self, url):
        with pytest.raises(ConfigError):
            parse_target(url)


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings("https://example.com/mcp")
        assert settings.timeout == DEFAULT_TIMEOUT
        assert settings.max_in_flight == DEFAULT_MAX_IN_FLIGHT
        assert settings.preserve_order is True
        assert settings.log_level == "INFO"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("MCP_PROXY_TIMEOUT", "5.5")
        monkeypatch.setenv("MCP_PROXY_MAX_IN_FLIGHT", "4")
        monkeypatch.setenv("MCP_PROXY_PRESERVE_ORDER", "no")
        monkeypatch.setenv("MCP_PROXY_MAX_LINE_BYTES", "1024")
        monkeypatch.setenv("MCP_PROXY_LOG_LEVEL", "debug")

        settings = load_settings("https://example.com/mcp")
        assert settings.timeout == 5.5
        assert settings.max_in_flight == 4
        assert settings.preserve_order is False
        assert settings.max_line_bytes == 1024
        assert settings.log_level == "DEBUG"

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("MCP_PROXY_TIMEOUT", "5")
        monkeypatch.setenv("MCP_PROXY_PRESERVE_ORDER", "false")

        settings = load_settings("https://example.com/mcp", timeout=2.0, preserve_order=True)
        assert settings.timeout == 2.0
        assert settings.preserve_order is True

    @pytest.mark.parametrize("name,value", [
        ("MCP_PROXY_TIMEOUT", "soon"),
        ("MCP_PROXY_TIMEOUT", "0"),
        ("MCP_PROXY_MAX_IN_FLIGHT", "0"),
        ("MCP_PROXY_MAX_IN_FLIGHT", "many"),
        ("MCP_PROXY_PRESERVE_ORDER", "maybe"),
        ("MCP_PROXY_LOG_LEVEL", "TRACE"),
    ])
    def test_invalid_environment(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigError):
            load_settings("https://example.com/mcp")

    def test_invalid_override(self):
        with pytest.raises(ConfigError):
            load_settings("https://example.com/mcp", max_in_flight=0)

    def test_bad_url_fails_first(self):
        with pytest.raises(ConfigError, match="URL"):
            load_settings("nope")
