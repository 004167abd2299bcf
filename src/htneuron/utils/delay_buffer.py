"""
Delay Accumulator - per-channel ring buffer of future inputs.

Incoming events are not applied when they are delivered. They are summed into
the slot of the step at which they become due and read back exactly once,
when the owning entity integrates that step.

Layout:
=======
Storage is a ``[n_channels, horizon]`` tensor. Column ``ptr`` holds the
current step; column ``(ptr + k) % horizon`` holds step ``current + k``.

    rel_step:   0     1     2    ...  horizon-1
              ┌─────┬─────┬─────┬────┬─────┐
    channel 0 │ now │ +1  │ +2  │ .. │     │
    channel 1 │     │     │     │    │     │
              └─────┴─────┴─────┴────┴─────┘
                 ▲ ptr (moves by one per advance())

The horizon must cover every delivery offset that can occur: events of a
slice are delivered once the slice has finished, so the buffer needs room for
``min_delay + max_delay`` steps.
"""

from __future__ import annotations

from typing import Union

import torch
import torch.nn as nn

from htneuron.core.errors import ConfigurationError


class DelayAccumulator(nn.Module):
    """Ring buffer summing weighted inputs per channel and future step.

    Args:
        n_channels: Number of independent input channels
        horizon: Number of future steps that can be addressed
        device: Torch device ('cpu', 'cuda', etc.)
        dtype: Data type of the accumulated values
    """

    def __init__(
        self,
        n_channels: int,
        horizon: int,
        device: Union[str, torch.device] = "cpu",
        dtype: torch.dtype = torch.float64,
    ):
        if n_channels <= 0:
            raise ValueError(f"n_channels must be > 0, got {n_channels}")
        if horizon <= 0:
            raise ValueError(f"horizon must be > 0, got {horizon}")

        super().__init__()

        self.n_channels = n_channels
        self.horizon = horizon
        self.register_buffer(
            "buffer",
            torch.zeros((n_channels, horizon), dtype=dtype, device=device),
        )
        self.ptr = 0

    @property
    def device(self) -> torch.device:  # type: ignore[override]
        """Device where the buffer tensor resides."""
        return self.buffer.device

    def _slot(self, channel: int, rel_step: int) -> int:
        if not 0 <= channel < self.n_channels:
            raise IndexError(f"Channel {channel} out of range [0, {self.n_channels})")
        if not 0 <= rel_step < self.horizon:
            raise ConfigurationError(
                f"Relative delivery step {rel_step} outside accumulator horizon "
                f"[0, {self.horizon}); check min/max delay settings"
            )
        return (self.ptr + rel_step) % self.horizon

    def add(self, channel: int, rel_step: int, weight: float) -> None:
        """Add ``weight`` to the slot ``rel_step`` steps ahead of the current one."""
        self.buffer[channel, self._slot(channel, rel_step)] += weight

    def get_value(self, channel: int, rel_step: int = 0) -> float:
        """Peek at a slot without clearing it."""
        return float(self.buffer[channel, self._slot(channel, rel_step)])

    def take(self, channel: int) -> float:
        """Return the current slot of ``channel`` and zero it.

        A second call for the same step therefore returns 0.
        """
        slot = self._slot(channel, 0)
        value = float(self.buffer[channel, slot])
        self.buffer[channel, slot] = 0.0
        return value

    def advance(self) -> None:
        """Move to the next step.

        The slot being left is cleared so that it can be reused for the step
        ``horizon - 1`` ahead.
        """
        self.buffer[:, self.ptr] = 0.0
        self.ptr = (self.ptr + 1) % self.horizon

    def clear(self) -> None:
        """Drop all pending inputs and rewind to the first slot."""
        self.buffer.zero_()
        self.ptr = 0

    def pending(self) -> float:
        """Sum over all slots and channels (inputs not yet taken)."""
        return float(self.buffer.sum())
