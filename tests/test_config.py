"""Tests for the config.py file."""

# pylint: disable=C0116:missing-function-docstring

import logging
from pathlib import Path

import pytest

from pyChainMaker import config


def test_missing_file_gives_defaults(tmp_path):
    assert config.load_settings(tmp_path / "missing.yaml") == config.Settings()


def test_empty_file_gives_defaults(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("")

    assert config.load_settings(fp) == config.Settings()


def test_values_from_file(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("debug: true\nca-path: /srv/certs\nsystem-certs: false\ncertifi: true\n")

    settings = config.load_settings(fp)

    assert settings == config.Settings(debug=True, ca_path="/srv/certs", system_certs=False, certifi_certs=True)


def test_invalid_yaml(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("debug: [unclosed\n")

    with pytest.raises(ValueError, match="not valid YAML"):
        config.load_settings(fp)


def test_not_a_mapping(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("- debug\n")

    with pytest.raises(ValueError, match="mapping"):
        config.load_settings(fp)


def test_unknown_key(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("ca_pth: /srv/certs\n")

    with pytest.raises(ValueError, match="unknown keys"):
        config.load_settings(fp)


def test_merge_ignores_none():
    settings = config.Settings(ca_path="/from/file", debug=True)

    merged = settings.merge(ca_path=None, debug=None, system_certs=False)

    assert merged == config.Settings(ca_path="/from/file", debug=True, system_certs=False)


def test_merge_rejects_unknown_settings():
    with pytest.raises(ValueError):
        config.Settings().merge(colour=True)


def test_ca_dir_expands_variables(monkeypatch):
    monkeypatch.setenv("CERT_ROOT", "/srv/certs")

    assert config.Settings(ca_path="${CERT_ROOT}/intermediates").ca_dir == Path("/srv/certs/intermediates")


def test_empty_values_are_ignored(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("ca-path:\nsystem-certs:\n")

    settings = config.load_settings(fp)

    assert settings == config.Settings()
    assert settings.ca_dir == Path(".")


def test_numeric_ca_path_is_a_string(tmp_path):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text("ca-path: 2024\n")

    assert config.load_settings(fp).ca_path == "2024"


@pytest.mark.parametrize(
    "line",
    ['system-certs: "false"', "certifi: 1", "debug: yes please", "ca-path: true", "ca-path: [a, b]"],
)
def test_wrong_value_types(tmp_path, line):
    fp = tmp_path / "make-chain.yaml"
    fp.write_text(line + "\n")

    with pytest.raises(ValueError, match="must be a"):
        config.load_settings(fp)


def test_toml_config_is_not_ignored_silently(tmp_path, caplog):
    (tmp_path / "make-chain.toml").write_text('ca-path = "/srv/certs"\n')

    with caplog.at_level(logging.WARNING, logger="pyChainMaker"):
        settings = config.load_settings(tmp_path / "make-chain.yaml")

    assert settings == config.Settings()
    assert "make-chain.toml" in caplog.text
