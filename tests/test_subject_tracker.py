import math
import random
import threading

from bodyosc.sensor import Body, JointType, make_body
from bodyosc.tracking import (
    SubjectTracker,
    SubjectTrackerConfig,
    TrackerState,
    body_distance,
    find_closest_body,
)


def _tracker():
    return SubjectTracker(SubjectTrackerConfig(log_switches=False))


def test_initial_acquisition_picks_closest():
    tracker = _tracker()
    bodies = [
        make_body(1, (0.0, 0.0, 5.0)),
        make_body(2, (0.0, 0.0, 2.0)),
        make_body(3, (0.0, 0.0, 3.0)),
    ]
    assert tracker.update(bodies) == 2
    assert tracker.state == TrackerState.TRACKING
    assert math.isclose(tracker.active_distance, 2.0)


def test_untracked_bodies_are_ignored():
    tracker = _tracker()
    bodies = [
        make_body(7, (0.0, 0.0, 1.0), is_tracked=False),
        make_body(9, (0.0, 0.0, 4.0)),
    ]
    assert tracker.update(bodies) == 9


def test_active_subject_kept_while_tracked():
    tracker = _tracker()
    assert tracker.update([make_body(4, (0.0, 0.0, 2.0))]) == 4

    # A closer body appears; the active subject does not switch
    for step in range(20):
        bodies = [
            make_body(4, (0.0, 0.0, 2.0 + step * 0.1)),
            make_body(5, (0.0, 0.0, 0.8)),
        ]
        assert tracker.update(bodies) == 4
    assert tracker.acquisition_count == 1


def test_reacquires_closest_when_active_disappears():
    tracker = _tracker()
    tracker.update([make_body(1, (0.0, 0.0, 1.0)), make_body(2, (0.0, 0.0, 3.0))])
    assert tracker.active_identity == 1

    assert tracker.update([make_body(2, (0.0, 0.0, 3.0)), make_body(3, (0.0, 0.0, 2.5))]) == 3
    assert tracker.loss_count == 1


def test_reacquires_when_active_stops_being_tracked():
    tracker = _tracker()
    tracker.update([make_body(1, (0.0, 0.0, 1.0))])
    bodies = [make_body(1, (0.0, 0.0, 1.0), is_tracked=False), make_body(2, (0.0, 0.0, 2.0))]
    assert tracker.update(bodies) == 2


def test_no_tracked_bodies_means_unacquired():
    tracker = _tracker()
    assert tracker.update([]) is None
    assert tracker.update([Body(tracking_id=0, is_tracked=False), None]) is None
    assert tracker.state == TrackerState.UNACQUIRED

    tracker.update([make_body(1, (0.0, 0.0, 1.0))])
    assert tracker.update([]) is None
    assert tracker.active_distance is None


def test_ties_go_to_first_candidate():
    tracker = _tracker()
    bodies = [make_body(8, (1.0, 0.0, 0.0)), make_body(3, (0.0, 1.0, 0.0))]
    assert tracker.update(bodies) == 8


def test_identity_lost_reacquires_on_next_tick():
    tracker = _tracker()
    bodies = [make_body(1, (0.0, 0.0, 1.0)), make_body(2, (0.0, 0.0, 2.0))]
    tracker.update(bodies)

    tracker.notify_identity_lost(1)
    assert tracker.active_identity is None
    assert tracker.state == TrackerState.UNACQUIRED
    assert tracker.external_loss_count == 1

    # Same scene: closest selection runs again in the same tick
    assert tracker.update(bodies) == 1


def test_listeners_receive_identity_changes():
    tracker = _tracker()
    targets = []
    unsubscribe = tracker.subscribe(targets.append)

    bodies = [make_body(1, (0.0, 0.0, 1.0))]
    tracker.update(bodies)
    tracker.update(bodies)
    tracker.notify_identity_lost(1)
    tracker.notify_identity_lost(1)
    tracker.update([make_body(2, (0.0, 0.0, 2.0))])
    tracker.update([])

    assert targets == [1, None, 2, None]

    unsubscribe()
    tracker.update(bodies)
    assert targets == [1, None, 2, None]


def test_failing_listener_does_not_break_update():
    tracker = _tracker()
    received = []

    def broken(_):
        raise RuntimeError("listener failed")

    tracker.subscribe(broken)
    tracker.subscribe(received.append)
    assert tracker.update([make_body(1, (0.0, 0.0, 1.0))]) == 1
    assert received == [1]


def test_active_identity_is_always_a_tracked_candidate():
    rng = random.Random(42)
    tracker = _tracker()

    for _ in range(300):
        bodies = []
        for tracking_id in rng.sample(range(1, 10), rng.randint(0, 6)):
            position = (rng.uniform(-2, 2), rng.uniform(-1, 1), rng.uniform(0.5, 6))
            bodies.append(make_body(tracking_id, position, is_tracked=rng.random() > 0.3))
        if rng.random() < 0.05:
            tracker.notify_identity_lost()

        active = tracker.update(bodies)
        tracked_ids = {b.tracking_id for b in bodies if b.is_tracked}
        if tracked_ids:
            assert active in tracked_ids
        else:
            assert active is None


def test_body_distance_and_missing_reference_joint():
    body = make_body(1, (3.0, 4.0, 0.0))
    assert math.isclose(body_distance(body), 5.0)

    headless = Body(tracking_id=2, is_tracked=True)
    assert body_distance(headless) == math.inf

    # Still selectable when it is the only tracked body
    closest, distance = find_closest_body([headless])
    assert closest is headless
    assert distance == math.inf


def test_reference_joint_from_config():
    config = SubjectTrackerConfig.from_config({'reference_joint': 'Head', 'log_switches': False})
    assert config.reference_joint == JointType.HEAD
    assert config.log_switches is False

    fallback = SubjectTrackerConfig.from_config({'reference_joint': 'Tail'})
    assert fallback.reference_joint == JointType.SPINE_BASE

    assert SubjectTrackerConfig.from_config(None).reference_joint == JointType.SPINE_BASE


def test_reset_clears_state_and_notifies():
    tracker = _tracker()
    targets = []
    tracker.subscribe(targets.append)
    tracker.update([make_body(1, (0.0, 0.0, 1.0))])

    tracker.reset()
    assert tracker.active_identity is None
    assert targets == [1, None]
    assert tracker.get_stats()['state'] == 'unacquired'


def test_loss_reported_while_acquisition_is_being_delivered():
    tracker = _tracker()
    delivered = []
    reported = threading.Event()

    def report_loss_from_face_thread(identity):
        if identity == 1 and not reported.is_set():
            reported.set()
            face_thread = threading.Thread(target=tracker.notify_identity_lost, args=(1,))
            face_thread.start()
            face_thread.join(timeout=5.0)

    tracker.subscribe(report_loss_from_face_thread)
    tracker.subscribe(delivered.append)

    tracker.update([make_body(1, (0.0, 0.0, 1.0))])

    # The stale 1 is followed by the current value
    assert tracker.active_identity is None
    assert delivered == [None, 1, None]

    tracker.update([])
    assert delivered[-1] is None


def test_listener_ends_on_active_identity_under_concurrent_updates():
    tracker = _tracker()
    last = {}
    tracker.subscribe(lambda identity: last.__setitem__('target', identity))
    scenes = [[make_body(i, (0.0, 0.0, float(i)))] for i in (1, 2, 3)] + [[]]

    def body_thread():
        for i in range(2000):
            tracker.update(scenes[i % len(scenes)])

    def face_thread():
        for _ in range(2000):
            tracker.notify_identity_lost()

    threads = [threading.Thread(target=body_thread), threading.Thread(target=face_thread)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30.0)

    assert 'target' in last
    assert last['target'] == tracker.active_identity
