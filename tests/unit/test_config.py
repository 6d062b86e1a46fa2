"""
Unit tests for rewrite and server configuration.
"""

import json

import pytest

from bodyrewrite.config import (
    ConfigError,
    ResponseRule,
    Rewrite,
    RewriteConfig,
    ServerConfig,
    create_config,
    load_config,
)


class TestRewriteConfig:
    """Tests for building RewriteConfig from plain data."""

    def test_create_config_is_empty(self):
        """The default configuration has no rules."""
        assert create_config().responses == ()

    def test_from_dict(self):
        """The documented schema maps onto dataclasses."""
        config = RewriteConfig.from_dict({
            "responses": [
                {
                    "status": "200-299",
                    "rewrites": [
                        {"regex": "foo", "replacement": "bar"},
                        {"regex": "baz"},
                    ],
                },
            ]
        })

        assert config.responses == (
            ResponseRule(
                status="200-299",
                rewrites=(Rewrite("foo", "bar"), Rewrite("baz", "")),
            ),
        )

    def test_nested_under_plugin_key(self):
        """Rules may be nested under "responseBodyRewrite"."""
        config = RewriteConfig.from_dict({
            "responseBodyRewrite": {"responses": [{"status": "404"}]}
        })
        assert config.responses == (ResponseRule(status="404"),)

    def test_integer_status(self):
        """A bare integer status (common in YAML) is accepted."""
        config = RewriteConfig.from_dict({"responses": [{"status": 404}]})
        assert config.responses[0].status == "404"

    def test_none_is_empty(self):
        """An empty document gives an empty configuration."""
        assert RewriteConfig.from_dict(None) == RewriteConfig()

    @pytest.mark.parametrize("data", [
        [],
        {"responses": "200"},
        {"responses": ["200"]},
        {"responses": [{"status": "200", "rewrites": "foo"}]},
        {"responses": [{"status": "200", "rewrites": ["foo"]}]},
        {"responses": [{"status": "200", "rewrites": [{"regex": 1}]}]},
        {"responses": [{"status": ["200"]}]},
    ])
    def test_malformed_shapes(self, data):
        """Structures that do not match the schema raise ConfigError."""
        with pytest.raises(ConfigError):
            RewriteConfig.from_dict(data)

    def test_to_dict_round_trip(self):
        """to_dict produces data from_dict accepts."""
        config = RewriteConfig((
            ResponseRule("500-599", (Rewrite("secret", "***"),)),
        ))
        assert RewriteConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Tests for loading rule files."""

    def test_json(self, tmp_path):
        """JSON files are parsed by extension."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({
            "responses": [{"status": "200", "rewrites": [{"regex": "a", "replacement": "b"}]}]
        }))

        config = load_config(path)

        assert config.responses[0].rewrites == (Rewrite("a", "b"),)

    def test_yaml(self, tmp_path):
        """YAML files are parsed with safe_load."""
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rewrite:\n"
            "  responses:\n"
            "    - status: 200-299,404\n"
            "      rewrites:\n"
            "        - regex: 'foo(\\d+)'\n"
            "          replacement: 'bar\\1'\n"
        )

        config = load_config(str(path))

        assert config.responses == (
            ResponseRule("200-299,404", (Rewrite("foo(\\d+)", "bar\\1"),)),
        )

    def test_invalid_json(self, tmp_path):
        """Unparseable files raise ConfigError."""
        path = tmp_path / "rules.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rules.yml"
        path.write_text("responses: [unclosed")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        """A missing file is an OSError, not a ConfigError."""
        with pytest.raises(OSError):
            load_config(tmp_path / "missing.json")


class TestServerConfig:
    """Tests for the bundled server's configuration."""

    def test_defaults(self):
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.log_format == "text"

    def test_from_env(self, monkeypatch):
        """REWRITE_* variables override defaults."""
        monkeypatch.setenv("REWRITE_HOST", "0.0.0.0")
        monkeypatch.setenv("REWRITE_PORT", "3000")
        monkeypatch.setenv("REWRITE_UPSTREAM", "http://127.0.0.1:9000")
        monkeypatch.setenv("REWRITE_LOG_FORMAT", "json")
        monkeypatch.delenv("REWRITE_STATIC_DIR", raising=False)

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 3000
        assert config.upstream == "http://127.0.0.1:9000"
        assert config.log_format == "json"
        assert config.static_dir is None

    def test_validate_accepts_upstream(self):
        ServerConfig(upstream="http://127.0.0.1:9000").validate()

    @pytest.mark.parametrize("kwargs", [
        {"port": 70000, "static_dir": "."},
        {"port": -1, "static_dir": "."},
        {"log_level": "LOUD", "static_dir": "."},
        {"log_format": "xml", "static_dir": "."},
        {"upstream": "http://a", "static_dir": "."},
        {},
    ])
    def test_validate_rejects(self, kwargs):
        """Invalid settings fail fast."""
        with pytest.raises(ValueError):
            ServerConfig(**kwargs).validate()
