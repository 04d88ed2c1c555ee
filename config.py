#python
import os
from dataclasses import dataclass

#installed
from dotenv import find_dotenv, load_dotenv


PORTAL_URL = "https://amigo.amityonline.com/"
SERVICES = ("gemini", "openai")


class ConfigError(Exception):
    pass


def _flag(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _int(environ, name, default):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 10)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _positive(environ, name, default):
    value = _int(environ, name, default)
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}")
    return value


@dataclass
class Settings:
    user_name: str
    password: str
    course: str
    module: str
    llm_service: str = "gemini"
    gemini_api_key: str = None
    gemini_model: str = "gemini-2.0-flash"
    openai_api_key: str = None
    openai_model: str = "gpt-4o-mini"
    start_activity: int = 0
    url: str = PORTAL_URL
    run_timeout: int = 1800
    headless: bool = False
    screenshot_dir: str = "screenshots"
    log_dir: str = "logs"
    quiz_log_path: str = "quiz-log.json"
    reset_quiz_log: bool = False
    max_html_chars: int = 200000
    chrome_binary: str = None
    chromedriver_path: str = None

    @classmethod
    def from_env(cls, environ=None, env_file=None):
        """Reads settings from the environment, loading .env first when no mapping is given."""
        if environ is None:
            load_dotenv(env_file or find_dotenv(usecwd=True))
            environ = os.environ

        missing = [name for name in ("USER_NAME", "PASSWORD", "COURSE", "MODULE") if not environ.get(name)]

        service = environ.get("LLM_SERVICE", "gemini").strip().lower()
        if service not in SERVICES:
            raise ConfigError(f"LLM_SERVICE must be one of {', '.join(SERVICES)}, got {service!r}")
        key_name = "GEMINI_API_KEY" if service == "gemini" else "OPENAI_API_KEY"
        if not environ.get(key_name):
            missing.append(key_name)

        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        start_activity = _int(environ, "START_ACTIVITY", 0)
        if start_activity < 0:
            raise ConfigError("START_ACTIVITY cannot be negative")

        return cls(
            user_name=environ["USER_NAME"],
            password=environ["PASSWORD"],
            course=environ["COURSE"],
            module=environ["MODULE"],
            llm_service=service,
            gemini_api_key=environ.get("GEMINI_API_KEY"),
            gemini_model=environ.get("GEMINI_MODEL") or cls.gemini_model,
            openai_api_key=environ.get("OPENAI_API_KEY"),
            openai_model=environ.get("OPENAI_MODEL") or cls.openai_model,
            start_activity=start_activity,
            url=environ.get("PORTAL_URL") or PORTAL_URL,
            run_timeout=_positive(environ, "RUN_TIMEOUT", cls.run_timeout),
            headless=_flag(environ.get("HEADLESS", "")),
            screenshot_dir=environ.get("SCREENSHOT_DIR") or cls.screenshot_dir,
            log_dir=environ.get("LOG_DIR") or cls.log_dir,
            quiz_log_path=environ.get("QUIZ_LOG") or cls.quiz_log_path,
            reset_quiz_log=_flag(environ.get("RESET_QUIZ_LOG", "")),
            max_html_chars=_positive(environ, "MAX_HTML_CHARS", cls.max_html_chars),
            chrome_binary=environ.get("CHROME_BINARY") or None,
            chromedriver_path=environ.get("CHROMEDRIVER_PATH") or None,
        )
