from pathlib import Path

import pytest

from loadclient.config import DEFAULT_CONFIG, Config
from loadclient.errors import ConfigurationError
from loadclient.policy.last_n import LastNTier
from loadclient.policy.settings import PolicySettings


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clear_loadclient_env(monkeypatch):
    import os

    for key in list(os.environ):
        if key.startswith("LOADCLIENT_"):
            monkeypatch.delenv(key, raising=False)


def test_defaults_when_no_files(tmp_path):
    config = Config.from_yaml([tmp_path / "missing.yml"])

    assert config.to_dict() == DEFAULT_CONFIG.to_dict()
    assert config.policy.channel_last_n == -1
    assert config.frame_heights.stage == 2160


def test_files_merge_left_to_right(tmp_path):
    base = _write(
        tmp_path,
        "base.yml",
        """
policy:
  channel_last_n: 8
  last_n_limits:
    - {max_participants: 5, last_n: 20}
    - {max_participants: null, last_n: 5}
clients:
  num_clients: 3
""",
    )
    override = _write(
        tmp_path,
        "override.yml",
        """
policy:
  stage_view: true
clients:
  client_interval_ms: 250
""",
    )

    config = Config.from_yaml([base, override])

    assert config.policy.channel_last_n == 8
    assert config.policy.stage_view is True
    assert config.policy.last_n_limits == (LastNTier(5, 20), LastNTier(None, 5))
    assert config.clients.num_clients == 3
    assert config.clients.client_interval_ms == 250


def test_later_tier_table_replaces_earlier(tmp_path):
    first = _write(tmp_path, "a.yml", "policy:\n  last_n_limits: {5: 20, 30: 15}\n")
    second = _write(tmp_path, "b.yml", "policy:\n  last_n_limits:\n    - {max_participants: 2, last_n: 10}\n")

    config = Config.from_yaml([first, second])

    assert config.policy.last_n_limits == (LastNTier(2, 10),)


def test_unsorted_tiers_fail_at_load(tmp_path):
    path = _write(
        tmp_path,
        "bad.yml",
        """
policy:
  last_n_limits:
    - {max_participants: 30, last_n: 15}
    - {max_participants: 5, last_n: 20}
""",
    )

    with pytest.raises(ConfigurationError, match="ascending"):
        Config.from_yaml([path])


def test_invalid_yaml_raises_configuration_error(tmp_path):
    path = _write(tmp_path, "broken.yml", "policy: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        Config.from_yaml([path])


def test_unknown_key_raises_configuration_error(tmp_path):
    path = _write(tmp_path, "unknown.yml", "clients:\n  num_clientz: 4\n")

    with pytest.raises(ConfigurationError, match="Unknown or missing"):
        Config.from_yaml([path])


def test_invalid_channel_last_n(tmp_path):
    path = _write(tmp_path, "cap.yml", "policy:\n  channel_last_n: -5\n")

    with pytest.raises(ConfigurationError, match="channel_last_n"):
        Config.from_yaml([path])


def test_null_channel_last_n_means_unlimited(tmp_path):
    path = _write(tmp_path, "cap.yml", "policy:\n  channel_last_n: null\n")

    assert Config.from_yaml([path]).policy.channel_last_n == -1


def test_inconsistent_frame_heights(tmp_path):
    path = _write(tmp_path, "heights.yml", "frame_heights:\n  low: 1000\n")

    with pytest.raises(ConfigurationError, match="frame_heights"):
        Config.from_yaml([path])


def test_environment_overrides_apply_after_files(tmp_path, monkeypatch):
    path = _write(tmp_path, "c.yml", "policy:\n  stage_view: false\nclients:\n  num_clients: 2\n")
    monkeypatch.setenv("LOADCLIENT_POLICY_STAGE_VIEW", "true")
    monkeypatch.setenv("LOADCLIENT_CLIENTS_NUM_CLIENTS", "12")
    monkeypatch.setenv("LOADCLIENT_FRAME_HEIGHTS_STAGE", "1440")

    config = Config.from_yaml([path])

    assert config.policy.stage_view is True
    assert config.clients.num_clients == 12
    assert config.frame_heights.stage == 1440


def test_environment_overrides_can_be_disabled(monkeypatch):
    monkeypatch.setenv("LOADCLIENT_CLIENTS_NUM_CLIENTS", "12")

    assert Config.from_yaml([], env_prefix=None).clients.num_clients == 1


def test_bad_environment_value_is_configuration_error(monkeypatch):
    monkeypatch.setenv("LOADCLIENT_CLIENTS_NUM_CLIENTS", "lots")

    with pytest.raises(ConfigurationError, match="LOADCLIENT_CLIENTS_NUM_CLIENTS"):
        Config.from_yaml([])


def test_policy_settings_built_from_config():
    config = Config.from_dict(
        {
            "policy": {"channel_last_n": 4, "last_n_limits": {"*": 2}, "stage_view": True},
            "frame_heights": {"stage": 1080, "high": 720},
        }
    )

    settings = PolicySettings.from_config(config)

    assert settings.channel_last_n == 4
    assert settings.last_n_tiers == (LastNTier(None, 2),)
    assert settings.stage_view is True
    assert settings.frame_heights.stage == 1080


@pytest.mark.parametrize(
    "section, body, message",
    [
        ("policy", "stage_view: \"false\"", "policy.stage_view must be a boolean"),
        ("policy", "stage_view: 1", "policy.stage_view must be a boolean"),
        ("clients", "local_video: \"no\"", "clients.local_video must be a boolean"),
        ("room", "start_muted: \"true\"", "room.start_muted must be a boolean"),
        ("room", "visitors_after: -2", "room.visitors_after"),
    ],
)
def test_flags_must_have_their_declared_type(tmp_path, section, body, message):
    path = _write(tmp_path, "flags.yml", f"{section}:\n  {body}\n")

    with pytest.raises(ConfigurationError, match=message):
        Config.from_yaml([path])


def test_visitors_after_from_environment(monkeypatch):
    monkeypatch.setenv("LOADCLIENT_ROOM_VISITORS_AFTER", "3")

    config = Config.from_yaml([])

    assert config.room.visitors_after == 3
    assert config.to_dict()["room"]["visitors_after"] == 3
