"""Tests for PhysicsParameters and the longitudinal acceleration models."""

import pytest
import yaml

from racing_line_finder.core.vehicle import PhysicsParameters, create_default_kart


def test_defaults_match_rental_kart():
    params = create_default_kart()
    assert params.distance_unit_scale == 0.2
    assert params.tyre_grip_coefficient == 1.6
    assert params.max_brake_decel == 7.5
    assert params.engine_power == 8500.0
    assert params.top_speed == 22.0
    assert params.kart_mass == 160.0
    assert params.acceleration_model == 'constant'


@pytest.mark.parametrize("power,expected", [
    (8500.0, 3.5),
    (500.0, 3.5),
    (2.0, 2.0),
    (0.0, 0.0),
])
def test_constant_acceleration_is_capped(power, expected):
    params = PhysicsParameters(engine_power=power)
    assert params.constant_acceleration == pytest.approx(expected)
    assert params.longitudinal_acceleration(15.0) == pytest.approx(expected)


def test_power_model_falls_with_speed():
    params = PhysicsParameters(acceleration_model='power')
    # 8500 W / (160 kg * 10 m/s) exceeds the traction cap
    assert params.longitudinal_acceleration(10.0) == pytest.approx(3.5)
    assert params.longitudinal_acceleration(20.0) == pytest.approx(8500.0 / (160.0 * 20.0))
    assert params.longitudinal_acceleration(0.0) == pytest.approx(3.5)


@pytest.mark.parametrize("field,value", [
    ('distance_unit_scale', 0.0),
    ('tyre_grip_coefficient', -1.0),
    ('max_brake_decel', 0.0),
    ('engine_power', -10.0),
    ('top_speed', 0.0),
    ('kart_mass', float('nan')),
    ('acceleration_model', 'turbo'),
])
def test_invalid_parameters_raise(field, value):
    with pytest.raises(ValueError):
        PhysicsParameters(**{field: value})


def test_with_scale_returns_copy():
    params = PhysicsParameters()
    scaled = params.with_scale(1.0)
    assert scaled.distance_unit_scale == 1.0
    assert params.distance_unit_scale == 0.2
    assert scaled.top_speed == params.top_speed


def test_dict_round_trip_ignores_unknown_keys():
    params = PhysicsParameters(top_speed=25.0, acceleration_model='power')
    data = params.to_dict()
    data['wing_angle'] = 12.0

    assert PhysicsParameters.from_dict(data) == params
    assert PhysicsParameters.from_dict(None) == PhysicsParameters()


def test_from_yaml_reads_physics_section(tmp_path):
    config_path = tmp_path / "kart.yaml"
    config_path.write_text(yaml.safe_dump({
        'physics': {'tyre_grip_coefficient': 1.2, 'top_speed': 18.0},
        'optimizer': {'iterations': 10},
    }))

    params = PhysicsParameters.from_yaml(str(config_path))
    assert params.tyre_grip_coefficient == 1.2
    assert params.top_speed == 18.0
    assert params.max_brake_decel == 7.5


def test_from_yaml_missing_file_uses_defaults(tmp_path):
    params = PhysicsParameters.from_yaml(str(tmp_path / "missing.yaml"))
    assert params == PhysicsParameters()
