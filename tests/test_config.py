import pytest


def test_defaults():
    from shared.config import ClientConfig

    config = ClientConfig()
    assert config.url == "ws://localhost:8001/ws"
    assert config.peer_port == 2448
    assert config.subprotocol == "echo-protocol"
    assert config.origin == "http://localhost/"
    assert config.request_timeout is None


def test_yaml_then_env_then_overrides(tmp_path):
    from shared.config import load_config

    path = tmp_path / "config.yaml"
    path.write_text("host: 10.0.0.5\nrpc_port: 9001\nrequest_timeout: 30\nunknown_key: 1\n")

    config = load_config(path, environ={})
    assert (config.host, config.rpc_port, config.request_timeout) == ("10.0.0.5", 9001, 30)

    config = load_config(path, environ={"LIT_RPC_PORT": "9100", "LIT_PEER_PORT": "2500"})
    assert (config.rpc_port, config.peer_port) == (9100, 2500)

    config = load_config(path, environ={"LIT_RPC_PORT": "9100"}, rpc_port=9200, host=None)
    assert (config.host, config.rpc_port) == ("10.0.0.5", 9200)


def test_missing_default_file_is_fine(tmp_path, monkeypatch):
    from shared.config import load_config

    monkeypatch.setenv("HOME", str(tmp_path))
    config = load_config(environ={})
    assert config.host == "localhost"


@pytest.mark.parametrize("environ", [{"LIT_RPC_PORT": "abc"}, {"LIT_RPC_PORT": "70000"}, {"LIT_REQUEST_TIMEOUT": "-1"}])
def test_invalid_values_raise(tmp_path, environ):
    from shared.config import load_config
    from shared.errors import ConfigError

    path = tmp_path / "config.yaml"
    path.write_text("host: localhost\n")
    with pytest.raises(ConfigError):
        load_config(path, environ=environ)


def test_explicit_missing_file_raises(tmp_path):
    from shared.config import load_config
    from shared.errors import ConfigError

    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml", environ={})


def test_non_mapping_yaml_raises(tmp_path):
    from shared.config import load_config
    from shared.errors import ConfigError

    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(path, environ={})
