import os
import json
import re
import time
import logging
import openai
from google import genai
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException
from misc import *


PAGE_ACTIONS = (
    "start quiz",
    "continue quiz",
    "quiz already submitted",
    "non-quiz content",
    "go to next",
)
DEFAULT_ACTION = "go to next"

PAGE_PROMPT = """
You're a human student navigating an online course.
Return exactly one of: start quiz | continue quiz | quiz already submitted | non-quiz content | go to next.
HTML:
{html}
"""

QUESTION_PROMPT = '''
You are answering a multiple-choice question.
Return JSON: {{ question, options[], answer }}.
The answer is the letter of the correct option (a, b, c, ...).
Block:
"""
{block}
"""
'''

FINISH_ATTEMPT = button_xpath("Finish attempt")
SUBMIT_ALL = button_xpath("Submit all and finish")
CONFIRM_SUBMIT = (
    "//div[contains(@class, 'modal') or @role='dialog']"
    "//button[contains(normalize-space(.), 'Submit all and finish')]"
)
SUBMITTED_TEXT = text_xpath("Your attempt has been submitted")


### AI REQUEST FUNCTIONS
def generate(prompt, settings):
    """Sends a prompt to the configured service and returns the reply text."""
    if settings.llm_service == "gemini":
        client = genai.Client(api_key=settings.gemini_api_key)
        response = client.models.generate_content(
            model=settings.gemini_model, contents=prompt
        )
        return response.text or ""

    if settings.llm_service == "openai":
        client = openai.OpenAI(api_key=settings.openai_api_key)
        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[{"role": "user", "content": prompt}]
        )
        return response.choices[0].message.content or ""

    raise ValueError(f"Unknown service '{settings.llm_service}'")


def normalize_action(reply):
    """Maps a free-form model reply onto one of PAGE_ACTIONS."""
    text = (reply or "").lower().strip().strip(".\"'`")
    if text in PAGE_ACTIONS:
        return text
    # longest first so "quiz already submitted" wins over shorter overlaps
    for action in sorted(PAGE_ACTIONS, key=len, reverse=True):
        if action in text:
            return action
    return DEFAULT_ACTION


def analyze_page(driver, settings):
    html = driver.page_source[:settings.max_html_chars]
    prompt = PAGE_PROMPT.format(html=html).strip()
    try:
        reply = generate(prompt, settings)
    except Exception as e:
        logging.error(f"❌ {settings.llm_service} page analysis failed: {e}")
        return DEFAULT_ACTION

    action = normalize_action(reply)
    logging.info(f"🤖 Page suggestion: '{action}' (raw: {reply.strip()[:80]!r})")
    return action


### JSON PARSING FUNCTIONS
def extract_json(raw_response):
    """Parses a model reply as JSON, falling back to the outermost {...} span."""
    try:
        parsed = json.loads(raw_response)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    json_match = re.search(r"\{.*\}", raw_response or "", re.DOTALL)
    if not json_match:
        raise ValueError("No JSON object in model response")
    return json.loads(json_match.group(0))


def blank_result():
    return {"question": "", "options": [], "answer": ""}


def ask_question(block_text, settings, number):
    prompt = QUESTION_PROMPT.format(block=block_text).strip()
    try:
        parsed = extract_json(generate(prompt, settings))
        return {
            "question": str(parsed["question"]).strip(),
            "options": list(parsed.get("options") or []),
            "answer": str(parsed["answer"]).strip().lower(),
        }
    except Exception as e:
        logging.error(f"❌ {settings.llm_service} Q{number}: {e}")
        return blank_result()


def pick_option(labels, answer):
    """
    Returns the index of the label matching the suggested answer, or None.
    Letter prefixes ("b." / "b:") are tried first, then a loose text match.
    """
    answer = (answer or "").strip().lower()
    if not answer:
        return None

    # bare letters with punctuation: "b.", "b)", "(b)", "b:"
    bare = re.fullmatch(r"\(?([a-z])[\.\):]?", answer)
    if bare and bare.group(1) != answer:
        return pick_option(labels, bare.group(1))

    letter = re.compile(rf"^\s*{re.escape(answer)}[\.:]", re.IGNORECASE)
    for index, label in enumerate(labels):
        if letter.match(label):
            return index

    # letter replies like "b) foo" or "(b) foo", or the full option text
    prefix = re.match(r"^\(?([a-z])[\.\):]\s", answer)
    if prefix:
        return pick_option(labels, prefix.group(1))
    if len(answer) > 1:
        for index, label in enumerate(labels):
            option_text = re.sub(r"^\s*[a-z][\.:]\s*", "", label.strip().lower())
            if option_text and (answer in option_text or option_text in answer):
                return index
    return None


def answer_question(driver, block, number, settings):
    """Asks the model about one .que block and clicks the suggested option."""
    result = ask_question(block.text, settings, number)
    result["selected_index"] = None
    result["selected_text"] = None

    if not result["answer"]:
        return result

    labels = block.find_elements(By.TAG_NAME, "label")
    index = pick_option([label.text for label in labels], result["answer"])
    if index is None:
        logging.error(f"❌ Could not find option {result['answer']} for Q{number}")
        return result

    safe_click(driver, labels[index], f"option {result['answer']} for Q{number}",
               directory=settings.screenshot_dir)
    result["selected_index"] = index
    result["selected_text"] = labels[index].text.strip()
    return result


def submit_quiz(driver, settings, deadline=None):
    """Finishes the attempt and confirms the submission dialog when it shows up."""
    safe_click(driver, (By.XPATH, FINISH_ATTEMPT), "'Finish attempt'", directory=settings.screenshot_dir)
    safe_click(driver, (By.XPATH, SUBMIT_ALL), "'Submit all and finish'", directory=settings.screenshot_dir)

    try:
        confirm_button = WebDriverWait(driver, 3).until(EC.element_to_be_clickable((By.XPATH, CONFIRM_SUBMIT)))
        safe_click(driver, confirm_button, "'Submit all and finish' confirmation", directory=settings.screenshot_dir)
    except TimeoutException:
        logging.info("ℹ️ No confirmation dialog appeared. Proceeding without it.")

    timeout = settings.run_timeout if deadline is None else max(deadline - time.monotonic(), 0)
    WebDriverWait(driver, timeout).until(EC.invisibility_of_element_located((By.XPATH, SUBMITTED_TEXT)))
    logging.info("✅ Quiz submitted.")


def solve_quiz(driver, settings, deadline=None):
    """Answers every question block, submits the attempt before the run deadline and logs the answers."""
    logging.info("📝 Answering quiz…")
    records = []
    questions = driver.find_elements(By.CSS_SELECTOR, ".que")

    for number, block in enumerate(questions, start=1):
        records.append(answer_question(driver, block, number, settings))

    screenshot(driver, f"before-finish-{now_ms()}.png", settings.screenshot_dir)
    submit_quiz(driver, settings, deadline)

    append_quiz_log(records, settings.quiz_log_path)
    screenshot(driver, f"quiz-submitted-{now_ms()}.png", settings.screenshot_dir)
    return records


### QUIZ LOG FUNCTIONS
def load_quiz_log(path):
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as file:
            existing = json.load(file)
    except (OSError, json.JSONDecodeError) as e:
        logging.warning(f"⚠️ Quiz log {path} unreadable ({e}); starting a new one.")
        return []
    if not isinstance(existing, list):
        logging.warning(f"⚠️ Quiz log {path} is not a JSON array; starting a new one.")
        return []
    return existing

def append_quiz_log(records, path):
    existing = load_quiz_log(path)
    with open(path, "w", encoding="utf-8") as file:
        json.dump(existing + list(records), file, indent=2, ensure_ascii=False)
    logging.info(f"🗒️ Quiz log updated ({len(records)} new, {len(existing) + len(records)} total)")

def reset_quiz_log(path):
    if os.path.exists(path):
        os.remove(path)
        logging.info(f"🗑️ Removed old quiz log {path}")
