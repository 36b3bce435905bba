from cityprogress.models import Region
from cityprogress.services import EventBus, LevelUp, RegionUnlocked


def test_publish_delivers_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.subscribe(LevelUp, lambda event: calls.append(("first", event.level)))
    bus.subscribe(LevelUp, lambda event: calls.append(("second", event.level)))

    assert bus.publish(LevelUp(2)) == 2
    assert calls == [("first", 2), ("second", 2)]


def test_handlers_only_receive_their_event_type():
    bus = EventBus()
    levels = []
    bus.subscribe(LevelUp, levels.append)
    assert bus.publish(RegionUnlocked(Region.MIND_PALACE)) == 0
    assert levels == []


def test_unsubscribe_callable():
    bus = EventBus()
    levels = []
    unsubscribe = bus.subscribe(LevelUp, levels.append)
    unsubscribe()
    bus.publish(LevelUp(3))
    assert levels == []
    assert bus.unsubscribe(LevelUp, levels.append) is False


def test_subscribed_block_cleans_up():
    bus = EventBus()
    levels = []
    with bus.subscribed(LevelUp, levels.append):
        assert bus.handler_count(LevelUp) == 1
        bus.publish(LevelUp(2))
    bus.publish(LevelUp(3))

    assert levels == [LevelUp(2)]
    assert bus.handler_count(LevelUp) == 0


def test_failing_handler_does_not_stop_delivery():
    bus = EventBus()
    levels = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(LevelUp, broken)
    bus.subscribe(LevelUp, levels.append)
    bus.publish(LevelUp(4))
    assert levels == [LevelUp(4)]


def test_handler_may_unsubscribe_itself():
    bus = EventBus()
    seen = []

    def once(event):
        seen.append(event)
        unsubscribe()

    unsubscribe = bus.subscribe(LevelUp, once)
    bus.publish_all([LevelUp(2), LevelUp(3)])
    assert seen == [LevelUp(2)]


def test_stats_count_published_events():
    bus = EventBus()
    bus.publish_all([LevelUp(2), LevelUp(3), RegionUnlocked(Region.SOCIAL_SQUARE, "level")])
    assert bus.stats() == {"LevelUp": 2, "RegionUnlocked": 1}
