#inbuilto
import os
import sys
import time
import logging
import argparse
from datetime import datetime

#installed
from selenium.common.exceptions import WebDriverException

#mein kampf
import navigate
import course
import quiz
import misc
from config import Settings, ConfigError


def setup_logging(log_dir):
    """Logs to the console and to a per-run file under log_dir."""
    os.makedirs(log_dir, exist_ok=True)
    log_filename = os.path.join(log_dir, f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler(log_filename, encoding="utf-8")],
        force=True,
    )
    logging.info(f"Logging to {log_filename}")
    return log_filename


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Walk an Amity online course module, answering its quizzes with an AI model."
    )
    parser.add_argument("--env-file", help="Read settings from this .env file instead of ./.env")
    parser.add_argument("--headless", action="store_true", help="Run Chrome without a window")
    parser.add_argument("--start-activity", type=int, help="Skip activities before this index")
    return parser.parse_args(argv)


def run(driver, settings):
    """Logs in, walks the module and fills the feedback form."""
    deadline = time.monotonic() + settings.run_timeout

    if settings.reset_quiz_log:
        quiz.reset_quiz_log(settings.quiz_log_path)

    navigate.login(driver, settings)
    navigate.enter_course(driver, settings)
    navigate.click_card_with_fallback(driver, settings)

    records = course.navigate_activities(driver, settings, deadline)
    logging.info(f"🗒️ {len(records)} questions answered this run.")

    if course.has_feedback_form(driver):
        logging.info("📋 Feedback form found")
        course.fill_feedback_form(driver, settings)

    misc.screenshot(driver, "final.png", settings.screenshot_dir)
    logging.info("✅ Done.")
    return records


def main(argv=None):
    """Main execution function."""
    args = parse_args(argv)
    try:
        settings = Settings.from_env(env_file=args.env_file)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    if args.headless:
        settings.headless = True
    if args.start_activity is not None:
        settings.start_activity = args.start_activity

    setup_logging(settings.log_dir)
    driver = navigate.get_driver(settings)
    logging.info("Session active. Ready for automation.")

    try:
        run(driver, settings)
    except Exception:
        try:
            misc.screenshot(driver, f"error-{misc.now_ms()}.png", settings.screenshot_dir)
        except WebDriverException as shot_error:
            logging.warning(f"⚠️ Could not capture error screenshot: {shot_error.msg}")
        logging.exception("❌ Run aborted.")
        raise
    finally:
        driver.quit()  # Close browser when done
    return 0


if __name__ == "__main__":
    sys.exit(main())
