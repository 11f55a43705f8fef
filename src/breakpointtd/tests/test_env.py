import numpy as np
import pytest

from breakpointtd.ai.actions import (
    Noop,
    Place,
    Upgrade,
    UpgradeRange,
    UseAbility,
    action_space_spec,
    compute_action_mask,
    flatten,
    unflatten,
)
from breakpointtd.ai.env import BreakpointEnv
from breakpointtd.core import engine


def test_action_table_layout() -> None:
    spec = action_space_spec(9)
    assert spec.tower_kinds == ("validator", "jupiter", "tensor")
    assert spec.abilities == ("bomb", "freeze", "airdrop")
    assert spec.num_actions == 1 + 3 * 9 + 9 + 9 + 3
    assert flatten(Noop(), spec) == 0
    assert flatten(Place(1, 4), spec) == 1 + 9 + 4
    assert unflatten(spec.offsets.upgrade + 2, spec) == Upgrade(slot=2)
    assert unflatten(spec.offsets.upgrade_range, spec) == UpgradeRange(slot=0)
    assert unflatten(spec.num_actions - 1, spec) == UseAbility(ability=2)


def test_unflatten_rejects_out_of_range() -> None:
    spec = action_space_spec(9)
    with pytest.raises(ValueError):
        unflatten(spec.num_actions, spec)


def test_mask_tracks_affordability_and_locks() -> None:
    spec = action_space_spec(9)
    s = engine.initialize()
    s.slots[0].locked = True
    mask = compute_action_mask(s, spec)
    assert mask[flatten(Noop(), spec)]
    assert not mask[flatten(Place(0, 0), spec)]
    assert mask[flatten(Place(0, 1), spec)]
    assert mask[flatten(Place(2, 1), spec)]
    assert not mask[flatten(Upgrade(1), spec)]
    assert all(mask[flatten(UseAbility(i), spec)] for i in range(3))

    s.currency = 60
    mask = compute_action_mask(s, spec)
    assert mask[flatten(Place(0, 1), spec)]
    assert not mask[flatten(Place(2, 1), spec)]


def test_env_reset_and_step() -> None:
    env = BreakpointEnv(frames_per_step=10, max_steps=3)
    obs, info = env.reset(seed=0)
    assert obs.shape == env.observation_space.shape
    assert obs.dtype == np.float32
    assert info["action_mask"].shape == (env.action_space.n,)

    place = flatten(Place(0, 0), env.action_spec)
    assert env.action_masks()[place]
    obs, reward, terminated, truncated, info = env.step(np.int64(place))
    assert not info["invalid_action"]
    assert len(env.engine.state.towers) == 1
    assert env.engine.state.elapsed_ms == pytest.approx(10 * env.engine.frame_ms)
    assert isinstance(reward, float)
    assert not terminated and not truncated

    env.step(0)
    _, _, terminated, truncated, _ = env.step(0)
    assert truncated and not terminated


def test_env_flags_rejected_actions() -> None:
    env = BreakpointEnv(frames_per_step=1)
    env.reset(seed=1)
    upgrade_empty = flatten(Upgrade(3), env.action_spec)
    _, reward, _, _, info = env.step(upgrade_empty)
    assert info["invalid_action"]


def test_env_strict_mode_raises_on_rejected_actions() -> None:
    env = BreakpointEnv(frames_per_step=1, strict_invalid_actions=True)
    env.reset(seed=1)
    with pytest.raises(ValueError):
        env.step(flatten(Upgrade(3), env.action_spec))


def test_env_seed_is_reproducible() -> None:
    a = BreakpointEnv(frames_per_step=30)
    b = BreakpointEnv(frames_per_step=30)
    obs_a, _ = a.reset(seed=123)
    obs_b, _ = b.reset(seed=123)
    for _ in range(20):
        obs_a, *_ = a.step(0)
        obs_b, *_ = b.step(0)
    assert np.array_equal(obs_a, obs_b)
    assert a.episode_seed == b.episode_seed
