from __future__ import annotations

import pytest

from learnkids.data import ContentStore, Lesson
from learnkids.features.validation import check_submission, guided_rule, registered_rules


def _lesson(store: ContentStore, number: int) -> Lesson:
    lesson = store.get_lesson("python-kids", number)
    assert lesson is not None
    return lesson


def test_every_bundled_lesson_has_a_rule(store: ContentStore) -> None:
    lessons = store.get_lessons("python-kids")
    assert lessons is not None
    rules = registered_rules()
    assert {("python-kids", lesson.id) for lesson in lessons} <= set(rules)


def test_duplicate_registration_is_refused() -> None:
    with pytest.raises(ValueError):
        guided_rule("python-kids", "lesson-1")(lambda lesson, submission, base: base)


def test_exact_answer_never_reaches_guided_rules(store: ContentStore) -> None:
    lesson = _lesson(store, 1)
    result = check_submission(lesson, 'favorite_animal = "cat"\nprint(favorite_animal)')
    assert result.correct
    assert result.message == lesson.reward["message"]
    assert result.next_lesson == "lesson-2"


def test_lesson1_unquoted_text(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 1), "favorite_animal = cat\nprint(favorite_animal)")
    assert not result.correct
    assert result.message == 'Use quotes around the animal name, like favorite_animal = "cat".'
    assert result.hint


def test_lesson1_other_name_printed_is_accepted(store: ContentStore) -> None:
    lesson = _lesson(store, 1)
    result = check_submission(lesson, 'pet = "dog"\nprint(pet)')
    assert result.correct
    assert result.message == 'Nice work! Tip: name the variable "favorite_animal" to match the instructions.'
    assert result.reward == lesson.reward
    assert result.next_lesson == "lesson-2"


def test_lesson1_other_name_not_printed(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 1), 'pet = "dog"')
    assert not result.correct
    assert result.message == 'Try naming the variable "favorite_animal" and printing it.'


def test_lesson1_unrecognised_shape_keeps_primary_failure(store: ContentStore) -> None:
    lesson = _lesson(store, 1)
    result = check_submission(lesson, "x = 5")
    assert not result.correct
    assert result.message == lesson.validation.error_message
    assert result.hint == lesson.hint


def test_lesson2_quoted_numbers(store: ContentStore) -> None:
    code = 'my_candies = "5"\nfriend_candies = "3"\nprint(my_candies + friend_candies)'
    result = check_submission(_lesson(store, 2), code)
    assert not result.correct
    assert result.message == 'Use numbers without quotes for candies (e.g., 7 instead of "7").'


def test_lesson2_other_names_with_plus_are_accepted(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 2), "a = 5\nb = 3\nprint(a + b)")
    assert result.correct
    assert result.message == "Nice work! Tip: follow the variable names from the template for this exercise."


def test_lesson2_missing_plus(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 2), "my_candies = 5\nfriend_candies = 3\nprint(my_candies)")
    assert not result.correct
    assert result.message == "Remember to add the two candy counts together with +."


def test_lesson2_multiline_exact_answer(store: ContentStore) -> None:
    code = "my_candies = 5\nfriend_candies = 3\nprint(my_candies + friend_candies)"
    assert check_submission(_lesson(store, 2), code).correct


def test_lesson3_unquoted_name(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 3), 'my_name = Sam\nprint("Welcome, " + my_name)')
    assert result.message == "Put your name in quotes so Python knows it is text."


def test_lesson3_other_variable_joined(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 3), 'name = "Sam"\nprint("Welcome, " + name)')
    assert result.correct
    assert result.message == 'Nice work! Tip: name the variable "my_name" to match the instructions.'


def test_lesson3_other_variable_not_joined(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 3), 'name = "Sam"\nprint(name)')
    assert not result.correct
    assert result.message == 'Try creating a variable named "my_name" and use it in your welcome message.'


def test_lesson4_other_list_name_accepted(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 4), 'hobbies = ["reading", "soccer", "drawing"]')
    assert result.correct
    assert result.message == 'Nice work! Tip: name the list "my_hobbies" to match the instructions.'


def test_lesson4_short_list(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 4), 'my_hobbies = ["reading", "soccer"]')
    assert not result.correct
    assert result.message == "Add at least three hobbies to the list."


def test_lesson4_unquoted_items(store: ContentStore) -> None:
    result = check_submission(_lesson(store, 4), "my_hobbies = [reading, soccer, drawing]")
    assert result.message == 'Put each hobby in quotes, like "reading".'


def test_lesson5_other_function_name_accepted(store: ContentStore) -> None:
    code = 'def greet(name):\n    return "Hi, I am " + name'
    result = check_submission(_lesson(store, 5), code)
    assert result.correct
    assert result.message == 'Nice work! Tip: name the function "make_introduction" to match the instructions.'
    assert result.next_lesson is None


def test_lesson5_missing_return(store: ContentStore) -> None:
    code = 'def make_introduction(name):\n    print("Hi, I am " + name)'
    result = check_submission(_lesson(store, 5), code)
    assert not result.correct
    assert result.message == "Remember to return the greeting from the function."
