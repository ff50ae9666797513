import random

from core.mix_assembly import fill_from_fallback, interleave, take
from core.mix_models import FALLBACK_LABEL
from tests.fakes import make_track, make_tracks


class TestInterleave:
    def test_round_robin_in_priority_order(self):
        queues = [
            ("A", make_tracks("a", 2)),
            ("B", make_tracks("b", 1)),
            ("C", make_tracks("c", 3)),
        ]

        result = interleave(queues, 10)

        assert [track.id for _, track in result] == ["a-0", "b-0", "c-0", "a-1", "c-1", "c-2"]
        assert [label for label, _ in result] == ["A", "B", "C", "A", "C", "C"]

    def test_duplicate_ids_are_placed_once(self):
        shared = make_track("shared")
        queues = [("A", [shared]), ("B", [shared, make_track("b-only")])]

        result = interleave(queues, 10)

        assert [(label, track.id) for label, track in result] == [("A", "shared"), ("B", "b-only")]

    def test_stops_at_target_length(self):
        queues = [("A", make_tracks("a", 20)), ("B", make_tracks("b", 20))]

        result = interleave(queues, 7)

        assert len(result) == 7
        assert len({track.id for _, track in result}) == 7

    def test_same_channel_run_bounded_by_channel_count(self):
        queues = [("A", make_tracks("a", 10)), ("B", make_tracks("b", 3)), ("C", make_tracks("c", 3))]

        labels = [label for label, _ in interleave(queues, 16)]

        longest = current = 1
        for previous, label in zip(labels, labels[1:]):
            current = current + 1 if label == previous else 1
            longest = max(longest, current)
        # once B and C run dry A repeats; before that it never follows itself
        assert labels[:9] == ["A", "B", "C"] * 3
        assert longest <= 7

    def test_empty_queues(self):
        assert interleave([("A", []), ("B", [])], 5) == []

    def test_take_is_bounded(self):
        pool = make_tracks("p", 3)
        assert take(pool, 5) == pool
        assert take(pool, 0) == []
        assert take(pool, -2) == []


class TestFallback:
    def test_already_full_selection_is_untouched(self):
        selected = [("A", track) for track in make_tracks("a", 3)]

        filled, added, warning = fill_from_fallback(selected, [make_tracks("x", 5)], 3)

        assert filled == selected
        assert added == 0
        assert warning is None

    def test_fills_from_pool_union_without_duplicates(self):
        selected = [("A", track) for track in make_tracks("a", 2)]
        pools = [make_tracks("a", 4), make_tracks("b", 3)]

        filled, added, warning = fill_from_fallback(selected, pools, 6, rng=random.Random(1))

        ids = [track.id for _, track in filled]
        assert len(filled) == 6
        assert len(set(ids)) == 6
        assert added == 4
        assert all(label == FALLBACK_LABEL for label, _ in filled[2:])
        assert warning == "Some sources were limited. Added 4 fallback tracks."

    def test_warns_when_still_short(self):
        selected = [("A", make_track("a-0"))]

        filled, added, warning = fill_from_fallback(selected, [make_tracks("a", 3)], 10, rng=random.Random(1))

        assert len(filled) == 3
        assert added == 2
        assert warning == ("Some sources were limited. Added 2 fallback tracks. "
                           "Only 3 of 10 tracks could be found.")
