import random

import pytest

from ride_simulator.injector import ErrorInjector
from ride_simulator.simulator import RideSimulator
from support import FakeClient, make_errors, make_events


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def no_errors():
    return ErrorInjector(errors=make_errors(), rng=random.Random(1))


@pytest.fixture
def quiet_simulator():
    """Simulator where nothing happens unless a test turns it on."""
    return RideSimulator(events=make_events(), special_actors={}, seed=7)
