import json
import time

import pytest
from selenium.common.exceptions import TimeoutException

import quiz
from conftest import FakeDriver, FakeElement


def labels(*texts):
    return [FakeElement(text) for text in texts]


@pytest.mark.parametrize("reply, expected", [
    ("start quiz", "start quiz"),
    ("  Continue Quiz.\n", "continue quiz"),
    ("The quiz already submitted, so move on", "quiz already submitted"),
    ("Answer: non-quiz content", "non-quiz content"),
    ("I am not sure", "go to next"),
    ("", "go to next"),
])
def test_normalize_action(reply, expected):
    assert quiz.normalize_action(reply) == expected


def test_analyze_page_sends_capped_html(monkeypatch, settings):
    prompts = []
    monkeypatch.setattr(quiz, "generate", lambda prompt, s: prompts.append(prompt) or "Start quiz")
    settings.max_html_chars = 10
    driver = FakeDriver(page_source="<html>" + "x" * 100)

    assert quiz.analyze_page(driver, settings) == "start quiz"
    assert prompts[0].endswith("<html>xxxx")


def test_analyze_page_falls_back_on_model_error(monkeypatch, settings):
    def boom(prompt, s):
        raise RuntimeError("quota exceeded")
    monkeypatch.setattr(quiz, "generate", boom)
    assert quiz.analyze_page(FakeDriver(), settings) == "go to next"


def test_extract_json_plain_and_wrapped():
    assert quiz.extract_json('{"answer": "b"}') == {"answer": "b"}
    wrapped = 'Sure!\n```json\n{"question": "Q?", "options": ["x"], "answer": "a"}\n```'
    assert quiz.extract_json(wrapped)["answer"] == "a"
    with pytest.raises(ValueError):
        quiz.extract_json("no braces here")


def test_ask_question_normalizes_fields(monkeypatch, settings):
    reply = '{"question": "  What is 2+2? ", "options": ["a. 3", "b. 4"], "answer": " B "}'
    monkeypatch.setattr(quiz, "generate", lambda prompt, s: reply)
    assert quiz.ask_question("What is 2+2?", settings, 1) == {
        "question": "What is 2+2?",
        "options": ["a. 3", "b. 4"],
        "answer": "b",
    }


def test_ask_question_blank_on_garbage(monkeypatch, settings):
    monkeypatch.setattr(quiz, "generate", lambda prompt, s: "I cannot help with that")
    assert quiz.ask_question("block", settings, 3) == {"question": "", "options": [], "answer": ""}


def test_pick_option_by_letter():
    texts = ["a. Stack", "b. Queue", "c: Heap"]
    assert quiz.pick_option(texts, "b") == 1
    assert quiz.pick_option(texts, "C") == 2
    assert quiz.pick_option(["a.\nStack", "b.\nQueue"], "a") == 0


@pytest.mark.parametrize("answer", ["b.", "b)", "(b)", "b:", " B. "])
def test_pick_option_punctuated_letter(answer):
    assert quiz.pick_option(["a. Stack", "b. Queue", "c. Heap"], answer) == 1


def test_pick_option_by_text_and_prefix():
    texts = ["a. Stack", "b. Queue", "c. Heap"]
    assert quiz.pick_option(texts, "queue") == 1
    assert quiz.pick_option(texts, "c) heap") == 2
    assert quiz.pick_option(texts, "(c) heap") == 2
    assert quiz.pick_option(texts, "d") is None
    assert quiz.pick_option(texts, "(d)") is None
    assert quiz.pick_option(texts, "") is None


def test_answer_question_clicks_suggested_label(monkeypatch, settings):
    monkeypatch.setattr(quiz, "ask_question", lambda text, s, n: {"question": "Q", "options": [], "answer": "b"})
    options = labels("a. Stack", "b. Queue")
    block = FakeElement("Q\na. Stack\nb. Queue", children={"label": options})

    record = quiz.answer_question(FakeDriver(), block, 1, settings)

    assert options[1].clicks == 1
    assert options[0].clicks == 0
    assert record["selected_index"] == 1
    assert record["selected_text"] == "b. Queue"


def test_answer_question_leaves_blank_without_match(monkeypatch, settings):
    monkeypatch.setattr(quiz, "ask_question", lambda text, s, n: {"question": "Q", "options": [], "answer": "e"})
    options = labels("a. Stack", "b. Queue")
    block = FakeElement("Q", children={"label": options})

    record = quiz.answer_question(FakeDriver(), block, 2, settings)

    assert all(option.clicks == 0 for option in options)
    assert record["selected_index"] is None


def test_solve_quiz_answers_submits_and_logs(monkeypatch, settings):
    monkeypatch.setattr(quiz, "ask_question", lambda text, s, n: {"question": text, "options": [], "answer": "a"})
    first = FakeElement("Q1", children={"label": labels("a. yes", "b. no")})
    second = FakeElement("Q2", children={"label": labels("a. up", "b. down")})
    finish, submit, confirm = FakeElement("Finish attempt ..."), FakeElement("Submit all and finish"), FakeElement("Submit all and finish")
    driver = FakeDriver([{
        ".que": [first, second],
        quiz.FINISH_ATTEMPT: [finish],
        quiz.SUBMIT_ALL: [submit],
        quiz.CONFIRM_SUBMIT: [confirm],
    }])

    records = quiz.solve_quiz(driver, settings)

    assert [r["question"] for r in records] == ["Q1", "Q2"]
    assert finish.clicks == submit.clicks == confirm.clicks == 1
    with open(settings.quiz_log_path, encoding="utf-8") as file:
        assert json.load(file) == records
    names = [path.rsplit("/", 1)[-1] for path in driver.screenshots]
    assert names[0].startswith("before-finish-")
    assert names[-1].startswith("quiz-submitted-")


def test_append_quiz_log_only_adds_new_records(tmp_path):
    path = str(tmp_path / "quiz-log.json")
    quiz.append_quiz_log([{"question": "one"}], path)
    quiz.append_quiz_log([{"question": "two"}], path)
    with open(path, encoding="utf-8") as file:
        assert json.load(file) == [{"question": "one"}, {"question": "two"}]


def test_append_quiz_log_replaces_corrupt_file(tmp_path):
    path = tmp_path / "quiz-log.json"
    path.write_text("{not json", encoding="utf-8")
    quiz.append_quiz_log([{"question": "fresh"}], str(path))
    assert json.loads(path.read_text(encoding="utf-8")) == [{"question": "fresh"}]


def test_reset_quiz_log(tmp_path):
    path = tmp_path / "quiz-log.json"
    path.write_text("[]", encoding="utf-8")
    quiz.reset_quiz_log(str(path))
    assert not path.exists()
    quiz.reset_quiz_log(str(path))


def test_submit_quiz_waits_no_longer_than_the_run_deadline(settings):
    driver = FakeDriver([{
        quiz.FINISH_ATTEMPT: [FakeElement("Finish attempt ...")],
        quiz.SUBMIT_ALL: [FakeElement("Submit all and finish")],
        quiz.CONFIRM_SUBMIT: [FakeElement("Submit all and finish")],
        quiz.SUBMITTED_TEXT: [FakeElement("Your attempt has been submitted")],
    }])
    started = time.monotonic()

    with pytest.raises(TimeoutException):
        quiz.submit_quiz(driver, settings, deadline=started - 5)

    assert time.monotonic() - started < 5
