import pytest

from config import Config, ConfigurationLoadError

pytestmark = pytest.mark.asyncio


async def test_defaults_fill_missing_keys(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    path = tmp_path / "config.toml"
    path.write_text('[server]\nport = 8080\n')

    config = Config(path)
    await config.initialize()

    assert config.config["server"] == {"host": "", "port": 8080, "public_dir": "./public"}
    assert config.config["session"]["code_prefix"] == "SCP-"
    assert config.config["session"]["code_bytes"] == 3
    assert config.config["websocket"]["max_size"] == 65536


async def test_port_environment_variable_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "4000")
    path = tmp_path / "config.toml"
    path.write_text('[server]\nport = 8080\n')

    config = Config(path)
    await config.initialize()
    assert config.config["server"]["port"] == 4000


async def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationLoadError):
        await Config(tmp_path / "missing.toml").initialize()


async def test_unparsable_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[server\nport = ")
    with pytest.raises(ConfigurationLoadError):
        await Config(path).initialize()


@pytest.mark.parametrize("content", [
    "[session]\ncode_bytes = 2\n",
    "[server]\nport = 70000\n",
    "[server]\nunknown = 1\n",
])
async def test_invalid_values(tmp_path, content):
    path = tmp_path / "config.toml"
    path.write_text(content)
    with pytest.raises(ConfigurationLoadError):
        await Config(path).initialize()


async def test_example_config_is_valid(monkeypatch):
    from pathlib import Path

    monkeypatch.delenv("PORT", raising=False)
    config = Config(Path(__file__).resolve().parents[1] / ".example" / "config.toml")
    await config.initialize()
    assert config.config["server"]["port"] == 3000
