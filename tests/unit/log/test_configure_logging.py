from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from contextbuilder.log import PACKAGE_LOGGER, configure_logging


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    def test_repeated_calls_replace_handlers(self) -> None:
        configure_logging("INFO")
        logger = configure_logging("debug")
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)

    def test_unknown_level_falls_back_to_warning(self) -> None:
        logger = configure_logging("chatty")
        self.assertEqual(logger.level, logging.WARNING)

    def test_log_file_receives_debug_records(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "logs" / "contextbuilder.log"
            logger = configure_logging("ERROR", log_file)
            logging.getLogger(f"{PACKAGE_LOGGER}.scanner").debug("scanned %d files", 3)
            for handler in logger.handlers:
                handler.flush()
            self.assertIn("scanned 3 files", log_file.read_text(encoding="utf-8"))
            self.tearDown()


if __name__ == "__main__":
    unittest.main()
