import pytest

from core.track_filter import TrackFilter
from tests.fakes import FakeBlockStore, FakeCooldownStore, make_track


@pytest.fixture
def track_filter():
    return TrackFilter(FakeBlockStore({"blocked"}), FakeCooldownStore({"recent"}), allow_explicit=False)


class TestTrackFilter:
    def test_accepts_regular_track(self, track_filter):
        assert track_filter(make_track("fine"))
        assert track_filter.rejection_reason(make_track("fine")) is None

    @pytest.mark.parametrize("track,reason", [
        (make_track("local", is_local=True), "local"),
        (make_track("greyed", is_playable=False), "unplayable"),
        (make_track("blocked"), "blocked"),
        (make_track("dirty", explicit=True), "explicit"),
        (make_track("recent"), "cooldown"),
    ])
    def test_rejection_reasons(self, track_filter, track, reason):
        assert not track_filter(track)
        assert track_filter.rejection_reason(track) == reason

    def test_explicit_allowed_when_enabled(self):
        track_filter = TrackFilter(FakeBlockStore(), allow_explicit=True)
        assert track_filter(make_track("dirty", explicit=True))

    def test_cooldown_skipped_without_store(self):
        track_filter = TrackFilter(FakeBlockStore())
        assert track_filter(make_track("recent"))

    def test_apply_keeps_order(self, track_filter):
        tracks = [make_track("a"), make_track("blocked"), make_track("b"), make_track("recent")]

        assert [track.id for track in track_filter.apply(tracks, "Liked")] == ["a", "b"]
