#python
import logging


#my
from misc import *



# selenium
from selenium import webdriver
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException, WebDriverException


POPUP_CLOSE = "#welcomePopup .popup-close"
CARD_DIV = "(//*[contains(concat(' ', normalize-space(@class), ' '), ' single-card ')])[{n}]//div[1]"


def get_driver(settings):
    """Creates and returns a Chrome WebDriver with the specified settings."""
    options = Options()
    if settings.chrome_binary:
        options.binary_location = settings.chrome_binary

    if settings.headless:
        options.add_argument("--headless=new")
        options.add_argument("--disable-gpu")
        options.add_argument("--window-size=1920,1080")

    # Mute audio
    options.add_argument("--mute-audio")

    # Additional performance optimizations
    options.add_argument("--no-sandbox")  # Prevents issues in certain environments
    options.add_argument("--disable-dev-shm-usage")  # Prevents memory crashes

    # Keep console errors for log_page_errors
    options.set_capability("goog:loggingPrefs", {"browser": "SEVERE"})

    # Disable geolocation and unwanted requests
    options.add_experimental_option("prefs", {
        "profile.default_content_setting_values.geolocation": 2,
        "profile.default_content_setting_values.notifications": 2,
    })

    # Selenium Manager resolves a driver when no path is given
    service = Service(settings.chromedriver_path) if settings.chromedriver_path else Service()
    driver = webdriver.Chrome(service=service, options=options)

    if not settings.headless:
        driver.maximize_window()
    return driver


def wait_ready(driver, timeout=10):
    WebDriverWait(driver, timeout).until(
        lambda d: d.execute_script("return document.readyState") == "complete"
    )


def close_welcome_popup(driver, timeout=5, directory=SCREENSHOT_DIR):
    """Closes the welcome popup, or strips it from the DOM when the close button never shows."""
    try:
        close_btn = WebDriverWait(driver, timeout).until(
            EC.element_to_be_clickable((By.CSS_SELECTOR, POPUP_CLOSE))
        )
        safe_click(driver, close_btn, "'Welcome popup close' button", directory=directory)
        logging.info("❎ Popup closed via button")
    except WebDriverException:
        driver.execute_script("""
            const el = document.getElementById('welcomePopup');
            if (el) el.remove();
        """)
        logging.info("❎ Popup removed via DOM")
    return driver


def login(driver, settings):
    """Opens the portal and logs in with the configured credentials."""
    logging.info(f"🌐 Go to login page {settings.url}")
    driver.get(settings.url)
    wait_ready(driver)

    logging.info("🔑 Fill credentials")
    wait = WebDriverWait(driver, 15)
    username = wait.until(EC.presence_of_element_located((By.XPATH, "//input[@placeholder='Username']")))
    username.clear()
    username.send_keys(settings.user_name)
    password = driver.find_element(By.XPATH, "//input[@placeholder='Password']")
    password.clear()
    password.send_keys(settings.password)
    screenshot(driver, "login.png", settings.screenshot_dir)

    safe_click(driver, (By.XPATH, button_xpath("Log in")), "'Log in'", directory=settings.screenshot_dir)
    close_welcome_popup(driver, directory=settings.screenshot_dir)
    return driver


def enter_course(driver, settings):
    logging.info("📚 Enter course & module")
    safe_click(driver, (By.XPATH, link_xpath(settings.course)), f"Course \"{settings.course}\"",
               timeout=15, directory=settings.screenshot_dir)
    # the popup can come back after the course page loads
    close_welcome_popup(driver, directory=settings.screenshot_dir)

    safe_click(driver, (By.XPATH, link_xpath(settings.module)), f"Module \"{settings.module}\"",
               timeout=15, directory=settings.screenshot_dir)
    return driver


def has_next_activity(driver, timeout=5):
    try:
        WebDriverWait(driver, timeout).until(EC.presence_of_element_located((By.XPATH, link_xpath("Next Activity"))))
        return True
    except TimeoutException:
        return False


def click_card_with_fallback(driver, settings):
    """Opens the module's first activity card, trying the next card if the first leads nowhere."""
    try:
        safe_click(driver, (By.XPATH, CARD_DIV.format(n=2)), "first card", directory=settings.screenshot_dir)
    except WebDriverException:
        logging.warning("⚠️ First card fail, trying second")
    if has_next_activity(driver):
        return driver

    safe_click(driver, (By.XPATH, CARD_DIV.format(n=3)), "second card", directory=settings.screenshot_dir)
    has_next_activity(driver)
    return driver
