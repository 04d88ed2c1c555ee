import os
import random
import time
import logging

from selenium.common.exceptions import ElementClickInterceptedException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC


SCREENSHOT_DIR = "screenshots"
IGNORED_PAGE_ERRORS = ("availableblockregions",)
UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def iota(n = 1):
    """Returns a random float between 0.00 and n, rounded to 2 decimal places."""
    return round(random.uniform(0, n), 2)

def pause(seconds, jitter=0.5):
    time.sleep(seconds + iota(jitter))

def now_ms():
    return int(time.time() * 1000)


def xpath_literal(text):
    """Quotes text for an XPath expression, splitting on single quotes with concat() when needed."""
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"

def button_xpath(name):
    name = xpath_literal(name)
    return (
        f"//button[contains(normalize-space(.), {name})]"
        f" | //input[(@type='submit' or @type='button') and contains(@value, {name})]"
        f" | //*[@role='button' and contains(normalize-space(.), {name})]"
    )

def link_xpath(text):
    return f"//a[contains(normalize-space(.), {xpath_literal(text)})]"

def text_xpath(text):
    """Innermost elements whose whitespace-collapsed text contains text, ignoring case."""
    needle = xpath_literal(" ".join(text.lower().split()))
    match = f"contains(translate(normalize-space(.), '{UPPER}', '{UPPER.lower()}'), {needle})"
    return f"//body//*[{match} and not(*[{match}])]"


def is_visible(driver, xpath):
    """True when any element matching the XPath is displayed."""
    for element in driver.find_elements(By.XPATH, xpath):
        try:
            if element.is_displayed():
                return True
        except WebDriverException:
            continue
    return False


def screenshot(driver, name, directory=SCREENSHOT_DIR):
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, name)
    driver.save_screenshot(path)
    logging.info(f"📸 Screenshot saved: {path}")
    return path


def safe_click(driver, target, description, timeout=10, directory=SCREENSHOT_DIR):
    """
    Clicks a WebElement or a (By, value) locator.
    An intercepted click is retried through JavaScript. Any other failure
    saves an error screenshot and re-raises.
    """
    logging.info(f"🖱️ Clicking {description}")
    try:
        if isinstance(target, tuple):
            target = WebDriverWait(driver, timeout).until(EC.element_to_be_clickable(target))
        try:
            target.click()
        except ElementClickInterceptedException:
            logging.warning(f"⚠️ Click on {description} intercepted, using JavaScript click.")
            driver.execute_script("arguments[0].click();", target)
    except WebDriverException as e:
        screenshot(driver, f"error-{now_ms()}.png", directory)
        logging.error(f"❌ {description} failed: {e.msg or e}")
        raise


def log_page_errors(driver, ignore=IGNORED_PAGE_ERRORS):
    """Logs severe browser console entries, skipping known portal noise."""
    try:
        entries = driver.get_log("browser")
    except WebDriverException as e:
        logging.debug(f"Browser log unavailable: {e.msg}")
        return []

    errors = []
    for entry in entries:
        message = entry.get("message", "")
        if entry.get("level") != "SEVERE" or any(noise in message for noise in ignore):
            continue
        logging.error(f"[PAGE ERROR]: {message}")
        errors.append(message)
    return errors
