import dataclasses

import numpy as np
import pytest

from harmonic_fit.core.model import (
    WeightedObservation,
    WeightedObservations,
    observations_from_arrays,
)


def test_observation_is_immutable_and_defaults_weight():
    o = WeightedObservation(1.0, 2.0)
    assert o.weight == 1.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        o.x = 3.0  # type: ignore[misc]


def test_collector_add_iter_and_clear():
    pts = WeightedObservations()
    pts.add(0.0, 1.0)
    pts.add(1, 2, weight=0.5)
    pts.add_observation(WeightedObservation(-1.0, 0.0, 2.0))
    assert len(pts) == 3
    assert [o.x for o in pts] == [0.0, 1.0, -1.0]
    assert pts.to_list()[1] == WeightedObservation(1.0, 2.0, 0.5)
    assert isinstance(pts.to_list()[1].x, float)
    pts.clear()
    assert len(pts) == 0


def test_collector_to_list_is_a_copy():
    pts = WeightedObservations([WeightedObservation(0.0, 0.0)])
    snapshot = pts.to_list()
    snapshot.append(WeightedObservation(1.0, 1.0))
    assert len(pts) == 1


def test_observations_from_arrays_default_and_explicit_weights():
    obs = observations_from_arrays([0, 1, 2], np.array([1.0, 0.0, -1.0]))
    assert [o.weight for o in obs] == [1.0, 1.0, 1.0]
    obs = observations_from_arrays([0, 1], [5, 6], [0.5, 2.0])
    assert obs == [WeightedObservation(0.0, 5.0, 0.5), WeightedObservation(1.0, 6.0, 2.0)]


def test_observations_from_arrays_length_mismatch():
    with pytest.raises(ValueError):
        observations_from_arrays([0, 1, 2], [1, 2])
    with pytest.raises(ValueError):
        observations_from_arrays([0, 1], [1, 2], [1.0])
