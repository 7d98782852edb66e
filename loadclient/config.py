from __future__ import annotations

import importlib.util
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigurationError
from .policy.last_n import UNLIMITED_LAST_N, LastNTier, parse_last_n_tiers
from .policy.settings import FrameHeights
from .utils.dict_utils import deep_merge
from .utils.env_config import ENV_PREFIX, apply_env_overrides

logger = logging.getLogger(__name__)


def _require_bool(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{label} must be a boolean, got {value!r}")
    return value


@dataclass
class SystemConfig:
    log_level: str = "INFO"

    def to_dict(self) -> Dict:
        return {"log_level": self.log_level}


@dataclass
class PolicyConfig:
    """Inputs of the receiver constraints policy.

    ``channel_last_n`` of -1 (or null) means no configured cap.
    """

    channel_last_n: int = UNLIMITED_LAST_N
    last_n_limits: Tuple[LastNTier, ...] = ()
    stage_view: bool = False

    def to_dict(self) -> Dict:
        return {
            "channel_last_n": self.channel_last_n,
            "last_n_limits": [tier.to_dict() for tier in self.last_n_limits],
            "stage_view": self.stage_view,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PolicyConfig":
        channel_last_n = data.get("channel_last_n", UNLIMITED_LAST_N)
        if channel_last_n is None:
            channel_last_n = UNLIMITED_LAST_N
        if isinstance(channel_last_n, bool) or not isinstance(channel_last_n, int) or channel_last_n < UNLIMITED_LAST_N:
            raise ConfigurationError(f"policy.channel_last_n must be an integer >= -1, got {channel_last_n!r}")
        return cls(
            channel_last_n=channel_last_n,
            last_n_limits=parse_last_n_tiers(data.get("last_n_limits")),
            stage_view=_require_bool(data.get("stage_view", False), "policy.stage_view"),
        )


@dataclass
class ClientsConfig:
    num_clients: int = 1
    client_interval_ms: int = 100
    local_audio: bool = True
    local_video: bool = True
    unmute_delay_ms: int = 2000

    def __post_init__(self) -> None:
        if self.num_clients < 0:
            raise ConfigurationError("clients.num_clients cannot be negative")
        if self.client_interval_ms < 0 or self.unmute_delay_ms < 0:
            raise ConfigurationError("clients intervals cannot be negative")
        _require_bool(self.local_audio, "clients.local_audio")
        _require_bool(self.local_video, "clients.local_video")

    def to_dict(self) -> Dict:
        return {
            "num_clients": self.num_clients,
            "client_interval_ms": self.client_interval_ms,
            "local_audio": self.local_audio,
            "local_video": self.local_video,
            "unmute_delay_ms": self.unmute_delay_ms,
        }


@dataclass
class RoomConfig:
    name: str = "loadtest"
    speaker_interval_ms: int = 1500
    start_muted: bool = False
    # Joiners beyond this many full participants are redirected as visitors; 0 disables
    visitors_after: int = 0

    def __post_init__(self) -> None:
        _require_bool(self.start_muted, "room.start_muted")
        if isinstance(self.visitors_after, bool) or not isinstance(self.visitors_after, int) or self.visitors_after < 0:
            raise ConfigurationError(f"room.visitors_after must be a non-negative integer, got {self.visitors_after!r}")

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "speaker_interval_ms": self.speaker_interval_ms,
            "start_muted": self.start_muted,
            "visitors_after": self.visitors_after,
        }


@dataclass
class Config:
    system: SystemConfig = field(default_factory=SystemConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    frame_heights: FrameHeights = field(default_factory=FrameHeights)
    clients: ClientsConfig = field(default_factory=ClientsConfig)
    room: RoomConfig = field(default_factory=RoomConfig)

    def to_dict(self) -> Dict:
        return {
            "system": self.system.to_dict(),
            "policy": self.policy.to_dict(),
            "frame_heights": self.frame_heights.to_dict(),
            "clients": self.clients.to_dict(),
            "room": self.room.to_dict(),
        }

    @classmethod
    def from_yaml(cls, paths: list[Path], env_prefix: Optional[str] = ENV_PREFIX) -> "Config":
        """Load and merge multiple YAML config files, then apply environment overrides.

        Configs are merged left-to-right over the defaults, with later files
        overriding earlier ones. Missing paths are logged and skipped.

        Raises:
            ConfigurationError: unreadable YAML or invalid values.
        """
        merged_dict = DEFAULT_CONFIG.to_dict()

        yaml = None
        for path in paths or []:
            if not path.is_file():
                logger.warning("Config path does not exist or is not a file: %s", path)
                continue
            yaml = yaml or cls._import_yaml()
            try:
                with Path(path).open("r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
            merged_dict = deep_merge(merged_dict, data)
            logger.info("config_file_loaded path=%s", path)

        if yaml is None:
            logger.info("No valid config files found, using defaults")

        if env_prefix:
            merged_dict = apply_env_overrides(merged_dict, prefix=env_prefix)

        return cls.from_dict(merged_dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        system = data.get("system") or {}
        policy = data.get("policy") or {}
        frame_heights = data.get("frame_heights") or {}
        clients = data.get("clients") or {}
        room = data.get("room") or {}

        try:
            return cls(
                system=SystemConfig(**system),
                policy=PolicyConfig.from_dict(policy),
                frame_heights=FrameHeights(**frame_heights),
                clients=ClientsConfig(**clients),
                room=RoomConfig(**room),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Unknown or missing configuration key: {exc}") from exc

    @staticmethod
    def _import_yaml():
        if importlib.util.find_spec("yaml") is None:  # type: ignore[attr-defined]
            raise ConfigurationError("PyYAML is required to load configuration from YAML.")
        return importlib.import_module("yaml")


DEFAULT_CONFIG = Config()
