"""Tests for the gemfetch CLI and its configuration layer."""

import json
import logging
from unittest.mock import patch, MagicMock

import pytest

import gemfetch
from args import parse_args
from cli_config import build_client_config, load_settings
from constants import ExitCodes
from registry.rubygems import GemFetchError, GemInfo, GemInfoRequest, GemInfoResult


class TestParseGemToken:
    """NAME[:VERSION] tokens."""

    def test_name_only(self):
        assert gemfetch.parse_gem_token("rails") == GemInfoRequest("rails", None)

    def test_name_and_version(self):
        assert gemfetch.parse_gem_token(" rails:7.1.0 ") == GemInfoRequest("rails", "7.1.0")

    def test_trailing_colon(self):
        assert gemfetch.parse_gem_token("rails:") == GemInfoRequest("rails", None)

    @pytest.mark.parametrize("token", [":7", ":", " : 1.0 "])
    def test_missing_name_is_skipped(self, token):
        assert gemfetch.parse_gem_token(token) is None


class TestBuildRequests:
    """Request list construction."""

    def test_from_cli_deduplicates(self):
        args = parse_args(["-g", "rails:7.0", "-g", "rack", "-g", "rails:7.0"])
        assert gemfetch.build_requests(args) == [GemInfoRequest("rails", "7.0"), GemInfoRequest("rack")]

    def test_from_file(self, tmp_path):
        path = tmp_path / "gems.txt"
        path.write_text("# deps\nrails:7.0\n\nrack\n", encoding="utf-8")
        args = parse_args(["-l", str(path)])
        assert gemfetch.build_requests(args) == [GemInfoRequest("rails", "7.0"), GemInfoRequest("rack")]

    def test_tokens_without_name_dropped(self, tmp_path):
        args = parse_args(["-g", ":7", "-g", "rails"])
        assert gemfetch.build_requests(args) == [GemInfoRequest("rails")]

        path = tmp_path / "gems.txt"
        path.write_text(":1.0\nrack\n", encoding="utf-8")
        assert gemfetch.build_requests(parse_args(["-l", str(path)])) == [GemInfoRequest("rack")]

    def test_missing_file_exits(self, tmp_path):
        args = parse_args(["-l", str(tmp_path / "missing.txt")])
        with pytest.raises(SystemExit) as excinfo:
            gemfetch.build_requests(args)
        assert excinfo.value.code == ExitCodes.FILE_ERROR.value


class TestSettings:
    """YAML settings and CLI precedence."""

    def test_load_settings(self, tmp_path):
        path = tmp_path / "gemfetch.yml"
        path.write_text("gemfetch:\n  registry_url: https://gems.example.com\n  request_timeout: 5\n  unknown: x\n",
                        encoding="utf-8")
        assert load_settings(str(path)) == {"registry_url": "https://gems.example.com", "request_timeout": 5}

    def test_top_level_settings(self, tmp_path):
        path = tmp_path / "gemfetch.yml"
        path.write_text("pool_maxsize: 4\n", encoding="utf-8")
        assert load_settings(str(path)) == {"pool_maxsize": 4}

    def test_missing_or_malformed(self, tmp_path):
        assert load_settings(None) == {}
        assert load_settings(str(tmp_path / "missing.yml")) == {}
        bad = tmp_path / "bad.yml"
        bad.write_text("key: [unclosed\n", encoding="utf-8")
        assert load_settings(str(bad)) == {}

    def test_cli_overrides_yaml(self):
        args = parse_args(["-g", "rails", "-s", "https://cli.example.com", "--timeout", "9"])
        config = build_client_config(args, {"registry_url": "https://yaml.example.com", "request_timeout": 5})
        assert config.base_url == "https://cli.example.com"
        assert config.timeout == 9.0

    def test_yaml_overrides_defaults(self):
        args = parse_args(["-g", "rails"])
        config = build_client_config(args, {"registry_url": "https://yaml.example.com", "pool_maxsize": 4})
        assert config.base_url == "https://yaml.example.com"
        assert config.pool_maxsize == 4
        assert config.timeout == 30

    def test_invalid_values_fall_back(self):
        args = parse_args(["-g", "rails"])
        config = build_client_config(args, {"request_timeout": "soon", "pool_maxsize": "many"})
        assert config.timeout == 30
        assert config.pool_maxsize == 20

    def test_registry_url_without_scheme_rejected(self):
        args = parse_args(["-g", "rails"])
        with pytest.raises(ValueError, match="gem server URL"):
            build_client_config(args, {"registry_url": "gems.example.com"})


class TestMain:
    """End-to-end CLI flow with a fake client."""

    def _client(self, results=None, versions=None, versions_error=None):
        client = MagicMock()
        client.__enter__.return_value = client
        client.__exit__.return_value = False
        client.get_multiple_gem_info.return_value = results or []
        if versions_error is not None:
            client.get_gem_versions.side_effect = versions_error
        else:
            client.get_gem_versions.return_value = versions or []
        return client

    def test_batch_success(self, tmp_path):
        out = tmp_path / "out.json"
        req = GemInfoRequest("rails", "7.0")
        client = self._client(results=[GemInfoResult(request=req, info=GemInfo(name="rails", version="7.0"))])

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit) as excinfo:
                gemfetch.main(["-g", "rails:7.0", "-o", str(out)])

        assert excinfo.value.code == ExitCodes.SUCCESS.value
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data[0]["request"] == {"name": "rails", "version": "7.0"}
        assert data[0]["info"]["name"] == "rails"
        assert data[0]["error"] is None

    def test_batch_partial_failure(self, capsys):
        ok = GemInfoResult(request=GemInfoRequest("rails"), info=GemInfo(name="rails", version="7.0"))
        bad = GemInfoResult(request=GemInfoRequest("missing"), error=GemFetchError("RubyGems API returned status 404 for missing"))
        client = self._client(results=[ok, bad])

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit) as excinfo:
                gemfetch.main(["-g", "rails", "-g", "missing"])

        assert excinfo.value.code == ExitCodes.PARTIAL_FAILURE.value
        data = json.loads(capsys.readouterr().out)
        assert data[1]["error"] == "RubyGems API returned status 404 for missing"

    def test_versions(self, capsys):
        client = self._client(versions=["1.2.0", "1.1.0"])

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit) as excinfo:
                gemfetch.main(["--versions", "rails"])

        assert excinfo.value.code == ExitCodes.SUCCESS.value
        assert json.loads(capsys.readouterr().out) == {"name": "rails", "versions": ["1.2.0", "1.1.0"]}

    def test_versions_connection_error(self):
        client = self._client(versions_error=GemFetchError("failed to fetch gem versions: refused"))

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit) as excinfo:
                gemfetch.main(["--versions", "rails"])

        assert excinfo.value.code == ExitCodes.CONNECTION_ERROR.value

    def test_versions_registry_error(self):
        error = GemFetchError("RubyGems API returned status 404 for rails", status_code=404)
        client = self._client(versions_error=error)

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit) as excinfo:
                gemfetch.main(["--versions", "rails"])

        assert excinfo.value.code == ExitCodes.REGISTRY_ERROR.value

    def test_invalid_source_is_config_error(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(SystemExit) as excinfo:
            gemfetch.main(["-g", "rails", "-s", "gems.example.com", "--no-auth"])

        assert excinfo.value.code == ExitCodes.CONFIG_ERROR.value

    def test_logfile_handler_closed_on_exit(self, tmp_path):
        log_path = tmp_path / "gemfetch.log"
        client = self._client(versions_error=GemFetchError("failed to fetch gem versions: refused"))

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit):
                gemfetch.main(["--versions", "rails", "--logfile", str(log_path)])

        assert not [
            h for h in logging.getLogger().handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == str(log_path)
        ]
        assert "Couldn't fetch versions for rails" in log_path.read_text(encoding="utf-8")

    def test_teardown_logging_closes_handlers(self, tmp_path):
        args = parse_args(["-g", "rails", "--logfile", str(tmp_path / "run.log")])

        handlers = gemfetch.setup_logging(args)
        assert all(h in logging.getLogger().handlers for h in handlers)
        gemfetch.teardown_logging(handlers)

        assert len(handlers) == 1
        assert handlers[0] not in logging.getLogger().handlers
        assert handlers[0].stream is None

    def test_quiet_suppresses_stdout(self, capsys):
        client = self._client(versions=["1.0"])

        with patch("gemfetch.create_client", return_value=client):
            with pytest.raises(SystemExit):
                gemfetch.main(["--versions", "rails", "-q"])

        assert capsys.readouterr().out == ""


class TestCreateClient:
    """Client construction resolves credentials unless disabled."""

    def test_resolves_credentials_for_source_host(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("BUNDLE_GEMS__EXAMPLE__COM", "any:cli_token")
        args = parse_args(["-g", "rails", "-s", "https://gems.example.com"])

        client = gemfetch.create_client(args)

        assert client.config.credentials.bearer_token == "cli_token"

    def test_no_auth(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("BUNDLE_GEMS__EXAMPLE__COM", "any:cli_token")
        args = parse_args(["-g", "rails", "-s", "https://gems.example.com", "--no-auth"])

        client = gemfetch.create_client(args)

        assert client.config.credentials is None
