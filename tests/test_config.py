"""Tests for ConfigLoader type coercion and .env loading."""

import pytest

from config import ConfigLoader


@pytest.fixture
def loader(tmp_path) -> ConfigLoader:
    return ConfigLoader(env_path=str(tmp_path / "missing.env"))


def test_default_when_unset(loader, monkeypatch):
    monkeypatch.delenv("SESSION_TEST_VALUE", raising=False)

    assert loader.get("SESSION_TEST_VALUE", 5.0) == 5.0


@pytest.mark.parametrize(
    "raw, default, expected",
    [
        ("12.5", 10.0, 12.5),
        ("7", 3, 7),
        ("true", False, True),
        ("0", True, False),
        ("https://api.test", "http://localhost:8000", "https://api.test"),
    ],
)
def test_env_value_is_coerced(loader, monkeypatch, raw, default, expected):
    monkeypatch.setenv("SESSION_TEST_VALUE", raw)

    assert loader.get("SESSION_TEST_VALUE", default) == expected


def test_unparseable_number_falls_back(loader, monkeypatch):
    monkeypatch.setenv("SESSION_TEST_VALUE", "soon")

    assert loader.get("SESSION_TEST_VALUE", 10.0) == 10.0


def test_home_relative_default_is_expanded(loader, monkeypatch, tmp_path):
    monkeypatch.delenv("SESSION_TEST_VALUE", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert loader.get("SESSION_TEST_VALUE", "~/tokens.json") == str(tmp_path / "tokens.json")


def test_env_file_is_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("SESSION_TEST_FROM_FILE", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("SESSION_TEST_FROM_FILE=from-file\n")

    loader = ConfigLoader(env_path=str(env_file))

    assert loader.get("SESSION_TEST_FROM_FILE", "default") == "from-file"
    monkeypatch.delenv("SESSION_TEST_FROM_FILE")
