from quizroom.models import AnswerRecord
from quizroom.services.rooms.scoring import points_for, score_answers


def test_points_full_and_empty_clock():
    assert points_for(15, 15) == 150
    assert points_for(0, 15) == 0


def test_points_example_round():
    # x = 12 / 15 = 0.8 -> 150 * 0.64
    assert points_for(12, 15, max_points=150, exponent=2) == 96


def test_points_monotonic_and_bounded():
    budget = 15
    previous = -1
    t = 0.0
    while t <= budget:
        pts = points_for(t, budget)
        assert 0 <= pts <= 150
        assert pts >= previous
        previous = pts
        t += 0.25


def test_points_clamped_outside_budget():
    assert points_for(30, 15) == 150
    assert points_for(-2, 15) == 0
    assert points_for(5, 0) == 0


def test_steeper_exponent_rewards_speed_more():
    assert points_for(7.5, 15, exponent=3) < points_for(7.5, 15, exponent=2) < points_for(7.5, 15, exponent=1)


def test_score_answers_unanswered_and_wrong_get_zero():
    answers = {
        'a': AnswerRecord(identity='a', time_remaining=12, correct=True, option_index=1),
        'b': AnswerRecord(identity='b', time_remaining=14, correct=False, option_index=0),
    }
    result = score_answers(['a', 'b', 'c'], answers, 15)
    assert result == {'a': 96, 'b': 0, 'c': 0}


def test_score_answers_counts_departed_answerers():
    answers = {'gone': AnswerRecord(identity='gone', time_remaining=15, correct=True, option_index=2)}
    result = score_answers(['here'], answers, 15)
    assert result == {'here': 0, 'gone': 150}


def test_equal_remaining_time_scores_equal():
    answers = {
        'a': AnswerRecord(identity='a', time_remaining=9.5, correct=True, option_index=1),
        'b': AnswerRecord(identity='b', time_remaining=9.5, correct=True, option_index=1),
    }
    result = score_answers(['a', 'b'], answers, 15)
    assert result['a'] == result['b'] > 0
