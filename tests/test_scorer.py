"""Tests for quiz scoring."""

import pytest

from learnsphere.models.content import QuizQuestion
from learnsphere.progression.scorer import QuizScore, all_answered, score_quiz


@pytest.fixture
def questions():
    return [
        QuizQuestion(q=f"Question {i}?", options=["A", "B", "C"], answer="A")
        for i in range(5)
    ]


class TestScoreQuiz:
    def test_all_correct(self, questions):
        result = score_quiz(questions, {i: "A" for i in range(5)})
        assert result == QuizScore(score_percent=100, correct_count=5, total_questions=5)

    def test_all_wrong(self, questions):
        result = score_quiz(questions, {i: "B" for i in range(5)})
        assert result.score_percent == 0
        assert result.correct_count == 0

    def test_three_of_five(self, questions):
        answers = {0: "A", 1: "A", 2: "A", 3: "C", 4: "B"}
        result = score_quiz(questions, answers)
        assert result.score_percent == 60
        assert result.correct_count == 3
        assert result.total_questions == 5

    def test_rounds_half_up(self):
        questions = [QuizQuestion(q="?", options=["x", "y"], answer="x") for _ in range(8)]
        # 1/8 = 12.5% -> 13, matching the browser's Math.round
        result = score_quiz(questions, {0: "x", **{i: "y" for i in range(1, 8)}})
        assert result.score_percent == 13

    def test_two_of_three_rounds(self):
        questions = [QuizQuestion(q="?", options=["x", "y"], answer="x") for _ in range(3)]
        result = score_quiz(questions, {0: "x", 1: "x", 2: "y"})
        assert result.score_percent == 67

    def test_exact_match_is_default(self):
        questions = [QuizQuestion(q="Capital of France?", options=["Paris", "Rome"], answer="Paris")]
        assert score_quiz(questions, {0: "paris"}).correct_count == 0
        assert score_quiz(questions, {0: "Paris "}).correct_count == 0

    def test_normalized_match_opt_in(self):
        questions = [QuizQuestion(q="Capital of France?", options=["Paris", "Rome"], answer="Paris")]
        result = score_quiz(questions, {0: "  paris "}, normalize=True)
        assert result.correct_count == 1
        assert result.score_percent == 100

    def test_empty_quiz(self):
        result = score_quiz([], {})
        assert result.score_percent == 0
        assert result.total_questions == 0

    def test_deterministic(self, questions):
        answers = {0: "A", 1: "B", 2: "A", 3: "B", 4: "A"}
        assert score_quiz(questions, answers) == score_quiz(questions, answers)


class TestAllAnswered:
    def test_complete(self, questions):
        assert all_answered(questions, {i: "A" for i in range(5)})

    def test_missing_one(self, questions):
        assert not all_answered(questions, {i: "A" for i in range(4)})

    def test_extra_index_does_not_count(self, questions):
        answers = {i: "A" for i in range(4)}
        answers[7] = "A"
        assert not all_answered(questions, answers)
