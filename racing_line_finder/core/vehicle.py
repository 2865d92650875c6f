"""
Vehicle module for racing line simulation.

This module defines the PhysicsParameters bundle that describes the kart for a
lap simulation: distance calibration, tyre grip, braking, engine power, top
speed and mass, together with the simplified longitudinal acceleration models
used by the speed profile solver.
"""

import os
from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Optional, Literal
import yaml
import logging

from ..utils.constants import (
    DEFAULT_DISTANCE_UNIT_SCALE, DEFAULT_TYRE_GRIP, DEFAULT_MAX_BRAKE_DECEL,
    DEFAULT_ENGINE_POWER, DEFAULT_TOP_SPEED, DEFAULT_KART_MASS,
    MAX_CONSTANT_ACCELERATION, POWER_NORMALISATION, MIN_POWER_MODEL_SPEED
)
from ..utils.validation import validate_positive

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Vehicle")

AccelerationModel = Literal['constant', 'power']


@dataclass(frozen=True)
class PhysicsParameters:
    """
    Kart and calibration parameters for one lap simulation.

    Attributes:
        distance_unit_scale: Metres per input unit (e.g. per pixel)
        tyre_grip_coefficient: Lateral friction coefficient (mu)
        max_brake_decel: Maximum braking deceleration in m/s²
        engine_power: Engine power in W
        top_speed: Maximum speed in m/s
        kart_mass: Kart plus driver mass in kg (power model only)
        acceleration_model: 'constant' for the capped constant acceleration,
            'power' for power-limited acceleration a = P / (m * v)
    """
    distance_unit_scale: float = DEFAULT_DISTANCE_UNIT_SCALE
    tyre_grip_coefficient: float = DEFAULT_TYRE_GRIP
    max_brake_decel: float = DEFAULT_MAX_BRAKE_DECEL
    engine_power: float = DEFAULT_ENGINE_POWER
    top_speed: float = DEFAULT_TOP_SPEED
    kart_mass: float = DEFAULT_KART_MASS
    acceleration_model: AccelerationModel = 'constant'

    def __post_init__(self):
        validate_positive(self.distance_unit_scale, 'distance_unit_scale')
        validate_positive(self.tyre_grip_coefficient, 'tyre_grip_coefficient')
        validate_positive(self.max_brake_decel, 'max_brake_decel')
        validate_positive(self.engine_power, 'engine_power', allow_zero=True)
        validate_positive(self.top_speed, 'top_speed')
        validate_positive(self.kart_mass, 'kart_mass')
        if self.acceleration_model not in ('constant', 'power'):
            raise ValueError(f"Unknown acceleration model: {self.acceleration_model}")

    @property
    def constant_acceleration(self) -> float:
        """
        Simplified constant longitudinal acceleration in m/s².

        Not a power-to-weight computation: the engine power is normalised and
        capped so that any realistic kart ends up at the cap.
        """
        power = self.engine_power
        return min(power / max(1.0, power / POWER_NORMALISATION), MAX_CONSTANT_ACCELERATION)

    def longitudinal_acceleration(self, speed: float) -> float:
        """
        Available forward acceleration at a given speed.

        Args:
            speed: Current speed in m/s

        Returns:
            Acceleration in m/s²
        """
        if self.acceleration_model == 'power':
            # Power limited, capped by the same traction limit as the constant model
            effective_speed = max(speed, MIN_POWER_MODEL_SPEED)
            return min(self.engine_power / (self.kart_mass * effective_speed),
                       MAX_CONSTANT_ACCELERATION)
        return self.constant_acceleration

    def with_scale(self, distance_unit_scale: float) -> 'PhysicsParameters':
        """Return a copy with a different calibration scale."""
        return replace(self, distance_unit_scale=distance_unit_scale)

    def to_dict(self) -> Dict:
        """Convert parameters to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config: Optional[Dict]) -> 'PhysicsParameters':
        """
        Create parameters from a dictionary, ignoring unknown keys.

        Args:
            config: Dictionary of parameter values

        Returns:
            PhysicsParameters instance
        """
        if not config:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            logger.warning(f"Ignoring unknown physics parameters: {sorted(unknown)}")

        return cls(**{k: v for k, v in config.items() if k in known})

    @classmethod
    def from_yaml(cls, config_path: str) -> 'PhysicsParameters':
        """
        Load parameters from the 'physics' section of a YAML file.

        A missing file or section falls back to the defaults.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            PhysicsParameters instance
        """
        if not os.path.exists(config_path):
            logger.warning(f"Configuration file not found: {config_path}")
            return cls()

        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        return cls.from_dict(config.get('physics', {}))


def create_default_kart() -> PhysicsParameters:
    """
    Create the parameter set of a typical rental kart.

    Returns:
        PhysicsParameters with the default kart values
    """
    params = PhysicsParameters()
    logger.info(f"Default kart created: {params.engine_power:.0f} W, "
                f"top speed {params.top_speed:.1f} m/s, mu = {params.tyre_grip_coefficient:.2f}")
    return params
