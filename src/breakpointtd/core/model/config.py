from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GameConfig:
    # Starting values
    starting_currency: int = 150
    starting_base_hp: int = 100

    # Spawning (biome spawn-rate multiplier divides the base interval)
    base_spawn_interval_ms: float = 2000.0
    spawn_rate_multiplier: float = 1.25
    spawn_interval_decay: float = 0.92
    min_spawn_interval_ms: float = 400.0
    wave_duration_ms: float = 15000.0
    miniboss_interval_ms: float = 60000.0

    # Scaling
    hp_scale_per_wave: float = 1.08
    speed_scale_per_wave: float = 1.02
    enemy_speed_multiplier: float = 1.1

    # Time marker, in path progress per second (full lane in 8 minutes)
    time_marker_speed: float = 1.0 / 480.0

    # Projectiles
    projectile_speed: float = 400.0
    projectile_hit_radius: float = 10.0

    # Towers
    max_towers: int = 6
    max_tower_level: int = 3
    max_range_level: int = 3

    # Host loop
    frame_ms: float = 1000.0 / 60.0
    max_catchup_frames: int = 5
    game_speeds: tuple[int, ...] = (1, 2, 3)

    @property
    def initial_spawn_interval_ms(self) -> float:
        return self.base_spawn_interval_ms / self.spawn_rate_multiplier


DEFAULT_CONFIG = GameConfig()
