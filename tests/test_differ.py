from functionality.feedr.differ import StateDiffer
from functionality.feedr.models import LiveState, Platform, VideoState


def test_differ_reports_only_changed_ids():
	stored = {"a": VideoState("1"), "b": VideoState("2"), "c": VideoState(None)}
	fetched = {"a": VideoState("1"), "b": VideoState("3"), "c": VideoState("9")}
	changes = StateDiffer(Platform.YOUTUBE).diff(stored, fetched)
	assert {c.canonical_id for c in changes} == {"b", "c"}
	b = next(c for c in changes if c.canonical_id == "b")
	assert b.previous == VideoState("2")
	assert b.current == VideoState("3")


def test_differ_ignores_ids_missing_from_either_side():
	stored = {"a": LiveState(False), "gone": LiveState(True)}
	fetched = {"a": LiveState(True), "new": LiveState(True)}
	changes = StateDiffer(Platform.TWITCH).diff(stored, fetched)
	assert [c.canonical_id for c in changes] == ["a"]
	assert changes[0].should_notify
