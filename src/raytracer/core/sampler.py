"""Per-task random number streams.

Every parallel rendering task owns one random stream: a 32-bit xorshift state
stored in its own slot of a Taichi field. A task only ever reads and advances
its own slot, so streams are never shared between concurrent workers and no
locking is needed. Because the state of a slot depends only on the seed and
on how many numbers that slot has produced, a render is bit-reproducible for
a fixed seed no matter how the backend schedules its threads.

Streams are seeded on the host from NumPy's PCG64 generator so neighbouring
slots start from statistically independent states.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.core.sampler import random_f32, seed_streams
    >>> seed_streams(7)
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     return random_f32(0)
"""

import logging

import numpy as np
import taichi as ti

from raytracer.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

logger = logging.getLogger(__name__)

# One stream per pixel of the largest supported render target
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# 2^-24: maps the top 24 bits of a state onto [0, 1) exactly in f32
_INV_2_24 = 1.0 / 16777216.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


def seed_streams(seed: int) -> None:
    """Seed every random stream from a single integer seed.

    Xorshift has a fixed point at zero, so states are drawn from [1, 2^32).

    Args:
        seed: Any non-negative integer.

    Raises:
        ValueError: If seed is negative.
    """
    if seed < 0:
        raise ValueError(f"Seed must be non-negative, got {seed}")

    generator = np.random.default_rng(seed)
    states = generator.integers(1, 2**32, size=MAX_STREAMS, dtype=np.uint32)
    _rng_state.from_numpy(states)
    logger.debug("Seeded %d random streams with seed %d", MAX_STREAMS, seed)


def get_stream_state(stream: int) -> int:
    """Get the raw state of a stream (for debugging and tests)."""
    return int(_rng_state[stream])


@ti.func
def next_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream by one xorshift32 step and return the new state.

    Args:
        stream: Index of the stream owned by the calling task.

    Returns:
        The next 32-bit pseudo-random value (never zero).
    """
    x = _rng_state[stream]
    x ^= x << 13
    x ^= x >> 17
    x ^= x << 5
    _rng_state[stream] = x
    return x


@ti.func
def random_f32(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a stream.

    Args:
        stream: Index of the stream owned by the calling task.

    Returns:
        A pseudo-random float in [0, 1).
    """
    return ti.cast(next_u32(stream) >> 8, ti.f32) * _INV_2_24
