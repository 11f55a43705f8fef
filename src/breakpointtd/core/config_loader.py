from __future__ import annotations

from dataclasses import asdict, fields, replace
import json
from pathlib import Path
from typing import Any

from .model.config import DEFAULT_CONFIG, GameConfig


_SUPPORTED_SCHEMA_VERSIONS = {1}
_CONFIG_FIELDS = {f.name for f in fields(GameConfig)}
_ALLOWED_KEYS: dict[str, Any] = {
    "schema_version": None,
    "balance": {name: None for name in _CONFIG_FIELDS},
}


def load_json_config(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        raise ValueError(f"config root must be a JSON object: {p}")
    _validate_config(payload)
    return payload


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in out and isinstance(out[key], dict) and isinstance(value, dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def apply_overrides(cfg: dict[str, Any], overrides_list: list[str] | None) -> dict[str, Any]:
    if not overrides_list:
        return cfg

    out = cfg
    for item in overrides_list:
        if "=" not in item:
            raise ValueError(f"override must contain '=': {item}")
        path_str, value_str = item.split("=", 1)
        if not path_str:
            raise ValueError(f"override path empty: {item}")
        keys = path_str.split(".")
        if any(not key for key in keys):
            raise ValueError(f"override path has empty segment: {item}")
        value = _cast_scalar(value_str)

        cursor = out
        for key in keys[:-1]:
            if key not in cursor or not isinstance(cursor[key], dict):
                cursor[key] = {}
            cursor = cursor[key]
        cursor[keys[-1]] = value
    return out


def default_config_dict() -> dict[str, Any]:
    balance = asdict(DEFAULT_CONFIG)
    balance["game_speeds"] = list(balance["game_speeds"])
    return {"schema_version": 1, "balance": balance}


def build_game_config(cfg: dict[str, Any]) -> GameConfig:
    _validate_config(cfg)
    balance = dict(cfg.get("balance") or {})
    if "game_speeds" in balance:
        speeds = balance["game_speeds"]
        if not isinstance(speeds, (list, tuple)) or not speeds:
            raise ValueError("balance.game_speeds must be a non-empty list")
        balance["game_speeds"] = tuple(int(s) for s in speeds)
    for key, value in balance.items():
        if key != "game_speeds" and not _is_number(value):
            raise ValueError(f"balance.{key} must be a number")
    config = replace(DEFAULT_CONFIG, **balance)
    _validate_balance(config)
    return config


def load_game_config(path: str | Path | None = None, overrides: list[str] | None = None) -> GameConfig:
    cfg = default_config_dict()
    if path is not None:
        cfg = deep_merge(cfg, load_json_config(path))
    cfg = apply_overrides(cfg, overrides)
    return build_game_config(cfg)


def _cast_scalar(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_config(cfg: dict[str, Any]) -> None:
    unknown = _find_unknown_keys(cfg, _ALLOWED_KEYS, path="")
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ValueError(f"unknown config keys: {unknown_str}")

    schema_version = cfg.get("schema_version", 1)
    if schema_version not in _SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")

    balance = cfg.get("balance")
    if balance is not None and not isinstance(balance, dict):
        raise ValueError("config 'balance' must be a JSON object")


def _validate_balance(config: GameConfig) -> None:
    if config.wave_duration_ms <= 0:
        raise ValueError("balance.wave_duration_ms must be > 0")
    if config.min_spawn_interval_ms <= 0:
        raise ValueError("balance.min_spawn_interval_ms must be > 0")
    if config.spawn_rate_multiplier <= 0:
        raise ValueError("balance.spawn_rate_multiplier must be > 0")
    if not 0 < config.spawn_interval_decay <= 1:
        raise ValueError("balance.spawn_interval_decay must be in (0, 1]")
    if config.frame_ms <= 0:
        raise ValueError("balance.frame_ms must be > 0")
    if config.max_catchup_frames < 1:
        raise ValueError("balance.max_catchup_frames must be >= 1")
    if config.starting_currency < 0:
        raise ValueError("balance.starting_currency must be >= 0")
    if config.starting_base_hp < 1:
        raise ValueError("balance.starting_base_hp must be >= 1")
    if config.max_tower_level < 1 or config.max_range_level < 1:
        raise ValueError("balance max levels must be >= 1")
    if any(s < 1 for s in config.game_speeds):
        raise ValueError("balance.game_speeds entries must be >= 1")


def _find_unknown_keys(value: Any, allowed: Any, *, path: str) -> list[str]:
    if not isinstance(value, dict) or not isinstance(allowed, dict):
        return []
    unknown: list[str] = []
    for key, sub_value in value.items():
        if key not in allowed:
            unknown.append(f"{path}{key}" if path else key)
            continue
        sub_allowed = allowed[key]
        if isinstance(sub_value, dict) and isinstance(sub_allowed, dict):
            child_path = f"{path}{key}."
            unknown.extend(_find_unknown_keys(sub_value, sub_allowed, path=child_path))
    return unknown
