"""
Base Configuration Classes.

This module provides the base configuration class with the fields shared by
every configurable component (tensor device and dtype for buffer storage).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Type, TypeVar

import torch

from htneuron.config.validation import ConfigValidationError

_C = TypeVar("_C", bound="BaseConfig")


@dataclass
class BaseConfig:
    """Base configuration with common fields for all components.

    This provides standard fields that appear in every config:
    - device: Hardware device for buffer tensors (cpu/cuda)
    - dtype: Tensor data type for buffer tensors
    """

    device: str = "cpu"
    """Device to run on: 'cpu', 'cuda', 'cuda:0', etc."""

    dtype: str = "float64"
    """Data type for accumulator tensors: 'float64' or 'float32'."""

    def get_torch_device(self) -> torch.device:
        """Get PyTorch device object."""
        return torch.device(self.device)

    def get_torch_dtype(self) -> torch.dtype:
        """Get PyTorch dtype object."""
        dtype_map = {
            "float32": torch.float32,
            "float64": torch.float64,
        }
        if self.dtype not in dtype_map:
            raise ConfigValidationError(
                f"Unknown dtype '{self.dtype}'. "
                f"Choose from: {list(dtype_map.keys())}"
            )
        return dtype_map[self.dtype]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls: Type[_C], d: Dict[str, Any]) -> _C:
        """Create from dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigValidationError(
                f"{cls.__name__} got unknown keys: {', '.join(unknown)}"
            )
        return cls(**d)
