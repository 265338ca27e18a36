"""
Tests for the server config: JSON loading and hyper-parameter validation.
"""

import json
import socket
from pathlib import Path

import pytest
from minirelay.utils.json_handlers import load_config
from minirelay.utils.server_configs import ServerConfig

TEMPLATE = Path(__file__).resolve().parent.parent / "templates" / "server_config.json"


def test_defaults():
    config = ServerConfig()
    assert config.recv_chunk_size == 4096
    assert config.backlog == socket.SOMAXCONN
    assert config.client_error_policy == "fatal"
    assert config.client_errors_are_fatal


def test_template_server_config():
    """
    The shipped template is a well formed server configuration
    """
    assert TEMPLATE.is_file(), f"{TEMPLATE} is not a file"
    big_config = load_config(str(TEMPLATE))
    hyper_parameters = big_config["hyper_parameters"]
    config = ServerConfig()
    problems = config.merge_in(**hyper_parameters)
    assert len(problems) == 0, \
        "The template was supposed to be a well formed server configuration. So it should have had no problems."
    assert config.recv_chunk_size == hyper_parameters["recv_chunk_size"]
    assert config.backlog == hyper_parameters["backlog"]
    assert config.client_error_policy == hyper_parameters["client_error_policy"]


def test_merge_in_accepts_valid_values():
    config = ServerConfig()
    assert config.merge_in(recv_chunk_size=1, backlog=0, client_error_policy="disconnect") == []
    assert (config.recv_chunk_size, config.backlog) == (1, 0)
    assert not config.client_errors_are_fatal


@pytest.mark.parametrize("key, value", [
    ("recv_chunk_size", 0),
    ("recv_chunk_size", "4096"),
    ("recv_chunk_size", True),
    ("backlog", -1),
    ("backlog", 1.5),
    ("client_error_policy", "ignore"),
    ("client_error_policy", None),
])
def test_merge_in_reports_and_keeps_defaults(key, value):
    config = ServerConfig()
    problems = config.merge_in(**{key: value})
    assert len(problems) == 1
    assert key in problems[0]
    assert config == ServerConfig()


def test_unknown_keys_are_ignored():
    config = ServerConfig()
    assert config.merge_in(max_clients=10) == []


@pytest.mark.parametrize("kwargs", [
    {"recv_chunk_size": 0},
    {"backlog": -5},
    {"client_error_policy": "retry"},
])
def test_constructor_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ServerConfig(**kwargs)


def test_load_config_tolerates_missing_and_invalid_files(tmp_path):
    assert load_config(None) == {}
    assert load_config("") == {}
    assert load_config(str(tmp_path / "absent.json")) == {}

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert load_config(str(broken)) == {}

    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]", encoding="utf-8")
    assert load_config(str(listing)) == {}

    good = tmp_path / "good.json"
    good.write_text(json.dumps({"port": 9000}), encoding="utf-8")
    assert load_config(str(good)) == {"port": 9000}
