from __future__ import annotations

# Park-Miller minimal standard generator, state kept on the GameState.
_MODULUS = 0x7FFFFFFF
_MULTIPLIER = 48271


def normalize_seed(seed: int | None) -> int:
    if seed is None:
        return 1
    seed_val = int(seed) & _MODULUS
    return seed_val if seed_val != 0 else 1


def seed_state(state, seed: int | None) -> int:
    seed_val = normalize_seed(seed)
    setattr(state, "rng_state", seed_val)
    if hasattr(state, "rng_calls"):
        setattr(state, "rng_calls", 0)
    return seed_val


def get_state_seed(state) -> int:
    return int(getattr(state, "rng_state", 1))


def _next(state) -> int:
    value = (get_state_seed(state) * _MULTIPLIER) % _MODULUS
    state.rng_state = value
    if hasattr(state, "rng_calls"):
        state.rng_calls += 1
    return value


def rand_float(state) -> float:
    """Uniform float in [0, 1)."""
    return (_next(state) - 1) / (_MODULUS - 1)


def rand_index(state, n: int) -> int:
    if n <= 0:
        raise ValueError("rand_index needs n > 0")
    return min(n - 1, int(rand_float(state) * n))


def shuffle(state, items: list) -> None:
    """Fisher-Yates in place, driven by the state generator."""
    for i in range(len(items) - 1, 0, -1):
        j = rand_index(state, i + 1)
        items[i], items[j] = items[j], items[i]
