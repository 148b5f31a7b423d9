"""
Simulation rules: signups (default and special riders) and per-rider events.
Probabilities are forced to 0 or 1 so each rule can be checked on its own.
"""

import random
import re

from ride_simulator.catalog import SPECIAL_ACTORS, EventType
from ride_simulator.simulator import Armed, Fired, RideSimulator, draw_ride_amount
from support import make_events


def test_signup_is_certain_with_probability_one():
    sim = RideSimulator(events=make_events(rider_signed_up=1.0), special_actors={}, seed=1)

    events = sim.propose_signups(max_actors=1)

    assert len(events) == 1
    assert events[0].type == EventType.RIDER_SIGNED_UP
    actors = sim.registry.all()
    assert len(actors) == 1
    assert actors[0].name == "John Doe"
    assert events[0].payload == {"id": actors[0].id, "name": "John Doe"}


def test_no_default_signup_once_population_is_reached():
    sim = RideSimulator(events=make_events(rider_signed_up=1.0), special_actors={}, seed=1)

    for _ in range(5):
        sim.propose_signups(max_actors=3)

    assert sim.registry.size() == 3


def test_registry_size_never_decreases():
    sim = RideSimulator(seed=42)

    sizes = []
    for _ in range(200):
        sim.propose_signups(max_actors=20)
        sim.propose_actor_events()
        sizes.append(sim.registry.size())

    assert sizes == sorted(sizes)
    # at most 20 default riders plus each special rider once
    assert sizes[-1] <= 20 + len(SPECIAL_ACTORS)


def test_special_actor_signs_up_at_most_once():
    specials = {"Hubert Sacrin": {EventType.RIDER_SIGNED_UP: 1.0}}
    sim = RideSimulator(events=make_events(), special_actors=specials, seed=3)

    first = sim.propose_signups(max_actors=0)
    later = [sim.propose_signups(max_actors=0) for _ in range(20)]

    assert [e.payload["name"] for e in first] == ["Hubert Sacrin"]
    assert all(events == [] for events in later)
    assert sim.special_signups["Hubert Sacrin"] == Fired()
    assert SPECIAL_ACTORS["Hubert Sacrin"][EventType.RIDER_SIGNED_UP] == 0.5


def test_special_signups_follow_default_signup_in_creation_order():
    specials = {
        "Hubert Sacrin": {EventType.RIDER_SIGNED_UP: 1.0},
        "Marcel Bofbof": {EventType.RIDER_SIGNED_UP: 1.0},
    }
    sim = RideSimulator(events=make_events(rider_signed_up=1.0), special_actors=specials, seed=3)

    events = sim.propose_signups(max_actors=10)

    assert [e.payload["name"] for e in events] == ["John Doe", "Hubert Sacrin", "Marcel Bofbof"]


def test_special_signups_start_armed():
    sim = RideSimulator(seed=3)
    assert sim.special_signups == {name: Armed(0.5) for name in SPECIAL_ACTORS}


def test_special_overrides_win_over_base_catalog():
    sim = RideSimulator(seed=3)
    special = sim.registry.create("Hubert Cestnul")
    default = sim.registry.create()

    assert sim.probabilities_for(special)[EventType.RIDE_CREATED] == 0.5
    assert sim.probabilities_for(special)[EventType.RIDER_UPDATED_PHONE_NUMBER] == 0.05
    assert sim.probabilities_for(default)[EventType.RIDE_CREATED] == 0.2


def test_phone_update_does_not_touch_the_actor():
    sim = RideSimulator(events=make_events(rider_updated_phone_number=1.0), special_actors={}, seed=5)
    actor = sim.registry.create()

    events = sim.propose_actor_events()

    assert [e.type for e in events] == [EventType.RIDER_UPDATED_PHONE_NUMBER]
    assert events[0].payload["id"] == actor.id
    assert re.fullmatch(r"\+336\d{9}", events[0].payload["phone_number"])
    assert sim.registry.get(actor.id) == actor


def test_ride_created_attaches_ride_to_actor():
    sim = RideSimulator(events=make_events(ride_created=1.0), special_actors={}, seed=5)
    actor = sim.registry.create()

    (event,) = sim.propose_actor_events()

    assert event.type == EventType.RIDE_CREATED
    assert set(event.payload) == {"id", "amount", "rider_id"}
    assert event.payload["rider_id"] == actor.id
    assert sim.registry.get(actor.id).ride_id == event.payload["id"]


def test_ride_completed_reuses_attached_ride():
    sim = RideSimulator(events=make_events(ride_completed=1.0), special_actors={}, seed=5)
    actor = sim.registry.create()
    sim.registry.attach_ride(actor.id, "ride-R")

    (event,) = sim.propose_actor_events()

    assert event.type == EventType.RIDE_COMPLETED
    assert event.payload["id"] == "ride-R"
    assert event.payload["rider_id"] == actor.id


def test_ride_completed_without_ride_uses_fresh_id():
    sim = RideSimulator(events=make_events(ride_completed=1.0), special_actors={}, seed=5)
    actor = sim.registry.create()

    first = sim.propose_actor_events()[0].payload["id"]
    second = sim.propose_actor_events()[0].payload["id"]

    assert first != second
    assert sim.registry.get(actor.id).ride_id is None


def test_all_three_events_in_fixed_order_and_same_ride():
    sim = RideSimulator(
        events=make_events(rider_updated_phone_number=1.0, ride_created=1.0, ride_completed=1.0),
        special_actors={},
        seed=5,
    )
    sim.registry.create()

    phone, created, completed = sim.propose_actor_events()

    assert [e.type for e in (phone, created, completed)] == [
        EventType.RIDER_UPDATED_PHONE_NUMBER,
        EventType.RIDE_CREATED,
        EventType.RIDE_COMPLETED,
    ]
    # completion picks up the ride created earlier in the same tick
    assert completed.payload["id"] == created.payload["id"]


def test_quiet_simulator_emits_nothing(quiet_simulator):
    quiet_simulator.registry.create()
    assert quiet_simulator.propose_signups(max_actors=10) == []
    assert quiet_simulator.propose_actor_events() == []


def test_ride_amount_range_and_precision():
    rng = random.Random(11)
    amounts = [draw_ride_amount(rng) for _ in range(5000)]

    assert all(3.0 <= a < 33.0 for a in amounts)
    assert all(round(a, 2) == a for a in amounts)


def test_ride_amount_bounds():
    class Edge(random.Random):
        def __init__(self, value):
            super().__init__()
            self.value = value

        def random(self):
            return self.value

    assert draw_ride_amount(Edge(0.0)) == 3.0
    assert draw_ride_amount(Edge(0.9999999)) == 32.99


def test_same_seed_same_run():
    def trace(seed):
        sim = RideSimulator(seed=seed)
        out = []
        for _ in range(30):
            out.extend((e.type, sorted(e.payload)) for e in sim.propose_signups(10))
            out.extend((e.type, sorted(e.payload)) for e in sim.propose_actor_events())
        return out

    assert trace(99) == trace(99)
