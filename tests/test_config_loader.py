import json

import pytest

from dobao.core.config_loader import get_default_price, get_max_capacity, load_venue_config


def test_bundled_config_loads():
    config = load_venue_config()

    assert config["venue_name"] == "Dobao Gourmet"
    assert get_max_capacity(config) == 35
    assert get_default_price(config) == 180


def test_defaults_when_keys_missing():
    assert get_max_capacity({}) == 35
    assert get_default_price({}) == 180


def test_config_path_override(tmp_path, monkeypatch):
    path = tmp_path / "venue.json"
    path.write_text(json.dumps({"venue_name": "Txoko", "max_capacity": 20}), encoding="utf-8")
    monkeypatch.setattr("dobao.core.config_loader.settings.VENUE_CONFIG_PATH", str(path))

    config = load_venue_config()

    assert config["venue_name"] == "Txoko"
    assert get_max_capacity(config) == 20


def test_missing_config(tmp_path, monkeypatch):
    monkeypatch.setattr("dobao.core.config_loader.settings.VENUE_CONFIG_PATH", str(tmp_path / "nope.json"))

    with pytest.raises(FileNotFoundError):
        load_venue_config()


def test_invalid_json(tmp_path, monkeypatch):
    path = tmp_path / "venue.json"
    path.write_text("{", encoding="utf-8")
    monkeypatch.setattr("dobao.core.config_loader.settings.VENUE_CONFIG_PATH", str(path))

    with pytest.raises(ValueError):
        load_venue_config()
