import pytest

from studydeck.models.quiz import UNANSWERED
from studydeck.services.quiz_grader import InvalidInputError, grade


def test_mixed_submission(make_quiz):
    attempt, results = grade(make_quiz(), [0, 1, 9, 3, 1], time_spent=120)

    assert attempt.correct_answers == 3
    assert attempt.total_questions == 5
    assert attempt.score == 60
    assert attempt.time_spent == 120
    assert attempt.quiz_id == "quiz-1"
    assert [a.is_correct for a in attempt.answers] == [True, True, False, True, False]
    assert [a.question_index for a in attempt.answers] == [0, 1, 2, 3, 4]
    assert results.score == results.percentage == 60


def test_fully_correct_submission_scores_100(make_quiz):
    key = [2, 2, 0, 1, 3, 3, 0]
    attempt, _ = grade(make_quiz(key), list(key), time_spent=30)
    assert attempt.score == 100
    assert attempt.correct_answers == len(key)


def test_unanswered_submission_scores_0(make_quiz):
    attempt, _ = grade(make_quiz(), [UNANSWERED] * 5, time_spent=0)
    assert attempt.score == 0
    assert attempt.correct_answers == 0


def test_none_counts_as_unanswered(make_quiz):
    attempt, results = grade(make_quiz(), [0, None, None, 3, None], time_spent=10)
    assert attempt.correct_answers == 2
    assert attempt.answers[1].selected_answer == UNANSWERED
    assert results.answers[2].selected_answer == UNANSWERED


@pytest.mark.parametrize("answers", [[0, 1, 2, 3], [0, 1, 2, 3, 0, 1], []])
def test_length_mismatch_is_rejected(make_quiz, answers):
    with pytest.raises(InvalidInputError, match="Expected 5 answers"):
        grade(make_quiz(), answers, time_spent=0)


def test_invalid_input_is_a_value_error():
    assert issubclass(InvalidInputError, ValueError)


def test_empty_quiz_scores_zero(make_quiz):
    attempt, results = grade(make_quiz([]), [], time_spent=0)
    assert attempt.score == 0
    assert attempt.total_questions == 0
    assert results.answers == []


@pytest.mark.parametrize(
    "key,answers,expected",
    [
        ([0] * 8, [0] + [1] * 7, 13),
        ([0] * 3, [0, 0, 1], 67),
        ([0] * 6, [0] + [1] * 5, 17),
    ],
)
def test_score_rounds_half_up(make_quiz, key, answers, expected):
    attempt, _ = grade(make_quiz(key), answers, time_spent=0)
    assert attempt.score == expected


def test_grading_is_repeatable(make_quiz):
    quiz = make_quiz()
    first = grade(quiz, [0, 1, 9, 3, 1], time_spent=45)
    second = grade(quiz, [0, 1, 9, 3, 1], time_spent=45)
    assert first == second


def test_detailed_results_join_question_data(make_quiz):
    _, results = grade(make_quiz(), [0, 1, 9, 3, 1], time_spent=0)
    third = results.answers[2]
    assert third.question == "Question 3?"
    assert third.options == ["A", "B", "C", "D"]
    assert third.correct_answer == 2
    assert third.selected_answer == 9
    assert third.explanation == "Option 2 is right"
    assert third.is_correct is False
