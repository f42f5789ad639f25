"""Tests for the leveling engine (curves and XP awards)."""

import pytest

from studyblocks.engine.leveling import (
    GLOBAL_CURVE,
    SUBJECT_CURVE,
    apply_xp_delta,
    award_for_block,
    block_xp,
    custom_block_xp,
    global_level,
    global_xp,
    level_for_xp,
    level_progress,
    predict_levels,
    round_half_up,
    xp_earned_per_subject,
    xp_for_level,
)


CURVES = [SUBJECT_CURVE, GLOBAL_CURVE]


class TestCurves:
    """Test xp_for_level() / level_for_xp() on both progression curves."""

    @pytest.mark.parametrize("curve", CURVES, ids=lambda c: c.name)
    def test_level_one_is_zero_xp(self, curve):
        assert xp_for_level(1, curve) == 0

    def test_subject_level_two_threshold(self):
        """round(100 * 1.5 ** 1.2) = round(162.67...) = 163."""
        assert xp_for_level(2, SUBJECT_CURVE) == 163
        assert xp_for_level(2, SUBJECT_CURVE) == round_half_up(100 * 1.5 ** 1.2)

    def test_global_level_two_threshold(self):
        assert xp_for_level(2, GLOBAL_CURVE) == round_half_up(200 * 1.8 ** 1.3)

    def test_matches_formula_for_higher_levels(self):
        for level in range(2, 30):
            assert xp_for_level(level, SUBJECT_CURVE) == round_half_up(100 * ((level - 1) * 1.5) ** 1.2)
            assert xp_for_level(level, GLOBAL_CURVE) == round_half_up(200 * ((level - 1) * 1.8) ** 1.3)

    @pytest.mark.parametrize("curve", CURVES, ids=lambda c: c.name)
    def test_strictly_increasing(self, curve):
        thresholds = [xp_for_level(level, curve) for level in range(1, 80)]
        assert all(a < b for a, b in zip(thresholds, thresholds[1:]))

    @pytest.mark.parametrize("curve", CURVES, ids=lambda c: c.name)
    def test_round_trip_at_boundaries(self, curve):
        """level_for_xp(xp_for_level(L)) == L, and one XP short stays at L - 1."""
        for level in range(1, 60):
            threshold = xp_for_level(level, curve)
            assert level_for_xp(threshold, curve) == level
            if level > 1:
                assert level_for_xp(threshold - 1, curve) == level - 1

    def test_subject_level_examples(self):
        assert level_for_xp(0) == 1
        assert level_for_xp(162) == 1
        assert level_for_xp(163) == 2

    def test_negative_xp_is_level_one(self):
        assert level_for_xp(-50, SUBJECT_CURVE) == 1
        assert level_for_xp(-50, GLOBAL_CURVE) == 1

    def test_curves_are_independent(self):
        """The same XP sits at a lower level on the steeper global curve."""
        xp = 5000
        assert level_for_xp(xp, GLOBAL_CURVE) < level_for_xp(xp, SUBJECT_CURVE)


class TestLevelProgress:
    """Test level_progress()."""

    def test_zero_at_level_threshold(self):
        assert level_progress(0, 1) == 0.0
        assert level_progress(163, 2) == 0.0

    def test_partial_progress(self):
        assert level_progress(81, 1) == pytest.approx(81 / 163)

    def test_clamped_to_unit_interval(self):
        assert level_progress(10_000, 1) == 1.0
        assert level_progress(0, 5) == 0.0

    def test_global_curve(self):
        threshold = xp_for_level(2, GLOBAL_CURVE)
        assert level_progress(threshold // 2, 1, GLOBAL_CURVE) == pytest.approx((threshold // 2) / threshold)


class TestBlockXp:
    """Test block_xp() time-based award."""

    def test_single_hour_block_alone_in_schedule(self):
        """round(60 * (60/60*100/1) / 60) = 100."""
        assert block_xp(60, 60, 1, 60) == 100

    def test_pool_split_equally_between_subjects(self):
        # 180 scheduled minutes -> 300 XP pool -> 150 per subject
        assert block_xp(60, 120, 2, 180) == 75
        assert block_xp(60, 60, 2, 180) == 150

    def test_subject_total_is_independent_of_block_count(self):
        """Every subject earns the same total over a full schedule."""
        # Subject A: 2 x 60 min, subject B: 1 x 60 min, 180 minutes scheduled
        subject_a_total = 2 * block_xp(60, 120, 2, 180)
        subject_b_total = block_xp(60, 60, 2, 180)
        assert subject_a_total == subject_b_total == 150

    @pytest.mark.parametrize(
        "args",
        [
            (60, 0, 1, 60),
            (60, 60, 0, 60),
            (60, 60, 1, 0),
            (0, 60, 1, 60),
            (60, -10, 1, 60),
            (60, 60, -1, 60),
            (60, 60, 1, -60),
        ],
    )
    def test_degenerate_inputs_award_zero(self, args):
        assert block_xp(*args) == 0


class TestCustomBlockXp:
    """Test custom_block_xp() flat hourly rate."""

    def test_thirty_minutes(self):
        assert custom_block_xp(30) == 50

    def test_rounds_to_nearest(self):
        assert custom_block_xp(45) == 75
        assert custom_block_xp(1) == 2  # 1.67 rounds up

    def test_non_positive_duration(self):
        assert custom_block_xp(0) == 0
        assert custom_block_xp(-30) == 0


class TestHelpers:
    """Test XP delta and aggregation helpers."""

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2

    def test_apply_xp_delta_recomputes_level(self):
        assert apply_xp_delta(100, 63) == (163, 2)

    def test_apply_xp_delta_floors_at_zero(self):
        assert apply_xp_delta(10, -50) == (0, 1)

    def test_global_xp_is_sum(self):
        assert global_xp([10, 20, 30]) == 60
        assert global_xp([]) == 0

    def test_global_level_uses_global_curve(self):
        threshold = xp_for_level(2, GLOBAL_CURVE)
        assert global_level(threshold - 1) == 1
        assert global_level(threshold) == 2


@pytest.fixture
def small_schedule(make_subject, make_block):
    """Algebra (0 XP) with two 60-minute blocks, Botany (100 XP) with one, Chemistry with none.

    180 scheduled minutes make a 300 XP pool: Algebra blocks are worth 75, the Botany block 150.
    """
    algebra = make_subject(name="Algebra", confidence=1)
    botany = make_subject(name="Botany", confidence=10, xp=100)
    chemistry = make_subject(name="Chemistry", confidence=5)
    blocks = [
        make_block(algebra, block_number=1, total_blocks_for_subject=2),
        make_block(algebra, block_number=2, total_blocks_for_subject=2),
        make_block(botany, block_number=1),
    ]
    return [algebra, botany, chemistry], blocks


class TestAwardForBlock:
    """Test award_for_block() pricing against a whole schedule."""

    def test_scheduled_blocks(self, small_schedule):
        _, blocks = small_schedule
        assert [award_for_block(b, blocks) for b in blocks] == [75, 75, 150]

    def test_custom_block_flat_rate_and_excluded_from_totals(self, small_schedule, make_block):
        subjects, blocks = small_schedule
        custom = make_block(subjects[0], block_number=3, duration_minutes=30, is_custom_block=True)
        schedule = blocks + [custom]

        assert award_for_block(custom, schedule) == 50
        assert award_for_block(blocks[0], schedule) == 75


class TestPredictLevels:
    """Test predict_levels() over pending scheduled blocks."""

    def test_gains_cover_every_pending_block(self, small_schedule):
        subjects, blocks = small_schedule
        algebra, botany, chemistry = subjects

        predictions = predict_levels(subjects, blocks)

        assert set(predictions) == {algebra.id, botany.id, chemistry.id}
        assert predictions[algebra.id].xp_gain == 150
        assert predictions[algebra.id].predicted_level == 1
        assert predictions[algebra.id].predicted_progress == pytest.approx(150 / 163)
        assert predictions[botany.id].predicted_xp == 250
        assert predictions[botany.id].predicted_level == 2
        assert predictions[botany.id].levels_gained == 1

    def test_subject_without_blocks_is_unchanged(self, small_schedule):
        subjects, blocks = small_schedule
        chemistry = subjects[2]

        prediction = predict_levels(subjects, blocks)[chemistry.id]

        assert prediction.xp_gain == 0
        assert prediction.predicted_xp == prediction.current_xp == 0
        assert prediction.predicted_level == prediction.current_level == 1

    def test_completed_blocks_are_already_earned(self, small_schedule):
        subjects, blocks = small_schedule
        blocks[0] = blocks[0].model_copy(update={"is_completed": True})

        predictions = predict_levels(subjects, blocks)

        assert predictions[subjects[0].id].xp_gain == 75

    def test_custom_blocks_do_not_count(self, small_schedule, make_block):
        subjects, blocks = small_schedule
        blocks.append(make_block(subjects[0], block_number=3, duration_minutes=120, is_custom_block=True))

        assert predict_levels(subjects, blocks)[subjects[0].id].xp_gain == 150

    def test_no_schedule(self, make_subject):
        subject = make_subject(xp=200, level=2)

        prediction = predict_levels([subject], [])[subject.id]

        assert prediction.predicted_xp == 200
        assert prediction.predicted_level == 2


class TestXpEarnedPerSubject:
    """Test xp_earned_per_subject() over completed blocks."""

    def test_only_completed_blocks_count(self, small_schedule):
        subjects, blocks = small_schedule
        blocks[0] = blocks[0].model_copy(update={"is_completed": True})
        blocks[2] = blocks[2].model_copy(update={"is_completed": True})

        assert xp_earned_per_subject(subjects, blocks) == {"Algebra": 75, "Botany": 150, "Chemistry": 0}

    def test_completed_custom_block_earns_flat_rate(self, small_schedule, make_block):
        subjects, blocks = small_schedule
        blocks.append(
            make_block(subjects[2], duration_minutes=30, is_custom_block=True, is_completed=True)
        )

        assert xp_earned_per_subject(subjects, blocks)["Chemistry"] == 50

    def test_nothing_completed(self, small_schedule):
        subjects, blocks = small_schedule
        assert sum(xp_earned_per_subject(subjects, blocks).values()) == 0
