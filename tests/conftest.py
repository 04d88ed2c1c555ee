import pytest
from selenium.common.exceptions import NoSuchElementException

from config import Settings


class FakeElement:
    """Stands in for a WebElement: text, visibility, children and a click hook."""

    def __init__(self, text="", displayed=True, enabled=True, children=None, on_click=None, click_error=None):
        self.text = text
        self.displayed = displayed
        self.enabled = enabled
        self.children = children or {}
        self.on_click = on_click
        self.click_error = click_error
        self.clicks = 0

    def click(self):
        if self.click_error is not None:
            raise self.click_error
        self.clicks += 1
        if self.on_click:
            self.on_click()

    def is_displayed(self):
        return self.displayed

    def is_enabled(self):
        return self.enabled

    def find_elements(self, by, value):
        return list(self.children.get(value, []))

    def find_element(self, by, value):
        found = self.find_elements(by, value)
        if not found:
            raise NoSuchElementException(value)
        return found[0]


class FakeDriver:
    """A driver over a list of pages; each page maps a locator string to its elements."""

    def __init__(self, pages=None, page_source="<html><body>activity</body></html>", logs=None):
        self.pages = pages if pages is not None else [{}]
        self.page = 0
        self.page_source = page_source
        self.logs = logs or []
        self.screenshots = []
        self.scripts = []
        self.quit_calls = 0

    @property
    def elements(self):
        return self.pages[self.page]

    def next_page(self):
        self.page += 1

    def find_elements(self, by, value):
        return list(self.elements.get(value, []))

    def find_element(self, by, value):
        found = self.find_elements(by, value)
        if not found:
            raise NoSuchElementException(value)
        return found[0]

    def save_screenshot(self, path):
        self.screenshots.append(path)
        return True

    def execute_script(self, script, *args):
        self.scripts.append((script, args))
        for arg in args:
            if isinstance(arg, FakeElement):
                arg.clicks += 1

    def get_log(self, kind):
        return list(self.logs)

    def quit(self):
        self.quit_calls += 1


@pytest.fixture
def settings(tmp_path):
    return Settings(
        user_name="student",
        password="secret",
        course="Data Structures",
        module="Module 1",
        gemini_api_key="key",
        screenshot_dir=str(tmp_path / "screenshots"),
        log_dir=str(tmp_path / "logs"),
        quiz_log_path=str(tmp_path / "quiz-log.json"),
    )
