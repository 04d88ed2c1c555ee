#python
import time
import logging

#my
from misc import *
import navigate
import quiz

#selenium
from selenium.webdriver.common.by import By


NEXT_ACTIVITY = link_xpath("Next Activity")
ALREADY_SUBMITTED = text_xpath("Quiz already submitted")
MODULE_ASSESSMENT = text_xpath("Module Assessment")
ATTEMPT_QUIZ = button_xpath("Attempt quiz")
CONTINUE_ATTEMPT = button_xpath("Continue your attempt")
START_ATTEMPT = button_xpath("Start attempt")
FEEDBACK_BUTTON = button_xpath("Answer the questions")
FEEDBACK_SUBMIT = button_xpath("Submit")

SKIP_DELAY = 2
NEXT_DELAY = 3


class RunTimeout(Exception):
    pass


# Functions
def find_next_link(driver):
    links = driver.find_elements(By.XPATH, NEXT_ACTIVITY)
    return links[0] if links else None

def already_submitted(driver):
    return bool(driver.find_elements(By.XPATH, ALREADY_SUBMITTED))

def module_assessment(driver):
    return is_visible(driver, MODULE_ASSESSMENT)

def advance(driver, link, delay, settings):
    safe_click(driver, link, "'Next Activity' link", directory=settings.screenshot_dir)
    pause(delay)


def open_quiz(driver, suggestion, settings):
    """Opens or resumes the quiz according to the page suggestion, then starts the attempt."""
    if suggestion in ("start quiz", "go to next") and is_visible(driver, ATTEMPT_QUIZ):
        safe_click(driver, (By.XPATH, ATTEMPT_QUIZ), "'Attempt quiz' button", directory=settings.screenshot_dir)
    elif suggestion == "continue quiz" and is_visible(driver, CONTINUE_ATTEMPT):
        safe_click(driver, (By.XPATH, CONTINUE_ATTEMPT), "'Continue your attempt' button", directory=settings.screenshot_dir)

    if is_visible(driver, START_ATTEMPT):
        safe_click(driver, (By.XPATH, START_ATTEMPT), "'Start attempt' button", directory=settings.screenshot_dir)


def navigate_activities(driver, settings, deadline=None):
    """
    Walks the module through its 'Next Activity' links, answering quizzes on the way.
    Stops when no link is left or the Module Assessment is reached.
    Returns every quiz record written during the walk.
    """
    navigate.close_welcome_popup(driver, directory=settings.screenshot_dir)

    records = []
    index = 0
    next_link = find_next_link(driver)

    while next_link is not None:
        if deadline is not None and time.monotonic() > deadline:
            raise RunTimeout(f"Run timeout reached at activity #{index}")

        logging.info(f"📌 Activity #{index}")
        log_page_errors(driver)

        if index < settings.start_activity:
            advance(driver, next_link, SKIP_DELAY, settings)
            index += 1
            next_link = find_next_link(driver)
            continue

        if already_submitted(driver):
            logging.info("⏭️ Already submitted – skipping")
            advance(driver, next_link, SKIP_DELAY, settings)
            index += 1
            next_link = find_next_link(driver)
            continue

        if module_assessment(driver):
            logging.info("🛑 Module Assessment found – stopping")
            return records

        suggestion = quiz.analyze_page(driver, settings)
        open_quiz(driver, suggestion, settings)

        if is_visible(driver, quiz.FINISH_ATTEMPT):
            records.extend(quiz.solve_quiz(driver, settings, deadline))

        # quiz pages replace the link, so look it up again before moving on
        next_link = find_next_link(driver)
        if next_link is None:
            break
        advance(driver, next_link, NEXT_DELAY, settings)
        index += 1
        next_link = find_next_link(driver)

    logging.info(f"✅ No more activities after #{index}.")
    return records


def has_feedback_form(driver):
    return bool(driver.find_elements(By.XPATH, FEEDBACK_BUTTON))

def fill_feedback_form(driver, settings):
    """Rates the first two feedback questions with the sixth choice and submits."""
    safe_click(driver, (By.XPATH, FEEDBACK_BUTTON), "'Answer the questions'", directory=settings.screenshot_dir)
    pause(SKIP_DELAY)

    groups = driver.find_elements(By.XPATH, "//*[@role='radiogroup']")
    for number, group in enumerate(groups[:2], start=1):
        radios = group.find_elements(By.CSS_SELECTOR, "input[type='radio']")
        if len(radios) >= 6:
            safe_click(driver, radios[5], f"6th radio for Q{number}", directory=settings.screenshot_dir)

    if driver.find_elements(By.XPATH, FEEDBACK_SUBMIT):
        safe_click(driver, (By.XPATH, FEEDBACK_SUBMIT), "'Submit' feedback", directory=settings.screenshot_dir)
