"""
Configuration validation for htneuron.

This module provides declarative validation patterns to catch configuration
errors before a model is calibrated or simulated.

Validation Features:
- Declarative validation rules via ValidatedConfig mixin
- Predefined validators (positive, finite, positive_integer, etc.)
- Cross-field checks collected into a single error report

All failures raise ConfigValidationError, a ConfigurationError, so callers
can handle any configuration problem with a single except clause.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Tuple

from htneuron.core.errors import ConfigurationError


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""


# =============================================================================
# DECLARATIVE VALIDATION FRAMEWORK
# =============================================================================


class ValidatorRegistry:
    """Registry of predefined validation rules.

    Usage:
        validator = ValidatorRegistry.get_validator('positive')
        validator(0.5, 'tau_m')   # Passes
        validator(-0.1, 'tau_m')  # Raises ConfigValidationError
    """

    _validators: Dict[str, Callable[[Any, str], None]] = {}

    @classmethod
    def register(cls, name: str, validator: Callable[[Any, str], None]) -> None:
        """Register a validation function."""
        cls._validators[name] = validator

    @classmethod
    def get_validator(cls, rule: str) -> Callable[[Any, str], None]:
        """Get validator by name."""
        if rule in cls._validators:
            return cls._validators[rule]

        raise ValueError(f"Unknown validation rule: {rule}")


def _require_number(value: Any, name: str) -> None:
    # bool is an int subclass but never a meaningful physical quantity
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{name} must be numeric, got {type(value).__name__}")


def _register_builtin_validators() -> None:
    """Register standard validation rules."""

    def positive(value: Any, name: str) -> None:
        """Value must be > 0."""
        _require_number(value, name)
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive")

    def non_negative(value: Any, name: str) -> None:
        """Value must be >= 0."""
        _require_number(value, name)
        if value < 0:
            raise ConfigValidationError(f"{name}={value} must be non-negative")

    def finite(value: Any, name: str) -> None:
        """Value must be finite (not inf or nan)."""
        _require_number(value, name)
        if not math.isfinite(value):
            raise ConfigValidationError(f"{name}={value} must be finite (not inf/nan)")

    def positive_integer(value: Any, name: str) -> None:
        """Value must be a positive integer."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"{name} must be integer, got {type(value).__name__}")
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive integer")

    def non_empty_string(value: Any, name: str) -> None:
        """Value must be a non-empty string."""
        if not isinstance(value, str):
            raise ConfigValidationError(f"{name} must be string, got {type(value).__name__}")
        if not value.strip():
            raise ConfigValidationError(f"{name} must be non-empty string")

    ValidatorRegistry.register('positive', positive)
    ValidatorRegistry.register('non_negative', non_negative)
    ValidatorRegistry.register('finite', finite)
    ValidatorRegistry.register('positive_integer', positive_integer)
    ValidatorRegistry.register('non_empty_string', non_empty_string)


_register_builtin_validators()


class ValidatedConfig:
    """Mixin for declarative config validation.

    Usage:
        @dataclass
        class MyConfig(ValidatedConfig):
            tau_m: float = 16.0
            g_KL: float = 1.0

            _validation_rules = {
                'tau_m': ('positive', 'finite'),
                'g_KL': ('non_negative',),
            }

            def __post_init__(self):
                self.validate_config()

    Subclasses may override ``_cross_field_errors`` to add checks that
    involve more than one field; those errors are reported together with
    the per-field ones.
    """

    _validation_rules: Dict[str, Tuple[str, ...]] = {}

    def _cross_field_errors(self) -> List[str]:
        """Return messages for constraints spanning several fields."""
        return []

    def validate_config(self) -> None:
        """Validate configuration based on _validation_rules.

        Should be called from __post_init__() or manually.

        Raises:
            ConfigValidationError: If any validation fails
        """
        errors: List[str] = []

        for field_name, rules in self._validation_rules.items():
            if not hasattr(self, field_name):
                errors.append(f"Validation rule for non-existent field: {field_name}")
                continue

            value = getattr(self, field_name)

            for rule in rules:
                try:
                    validator = ValidatorRegistry.get_validator(rule)
                    validator(value, field_name)
                except ConfigValidationError as e:
                    errors.append(str(e))
                    break  # later rules assume earlier ones passed

        if not errors:
            errors.extend(self._cross_field_errors())

        if errors:
            error_msg = (
                f"{self.__class__.__name__} validation failed:\n" +
                "\n".join(f"  • {e}" for e in errors)
            )
            raise ConfigValidationError(error_msg)
