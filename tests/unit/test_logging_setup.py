import io
import json
import logging
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))

from fritzbox_bootstrap.logging_setup import configure_logging, get_logger, reset_logging


class LoggingSetupTests(unittest.TestCase):
    def tearDown(self):
        reset_logging()

    def test_console_prefixes_without_color(self):
        stream = io.StringIO()
        configure_logging(stream=stream, color=False)
        logger = get_logger()
        logger.info("Checking dependencies...")
        logger.warning("Retry attempt 2/3 in 2s...")
        logger.error("Checksum verification failed")

        lines = stream.getvalue().splitlines()
        self.assertEqual(lines[0], "Checking dependencies...")
        self.assertEqual(lines[1], "Warning: Retry attempt 2/3 in 2s...")
        self.assertEqual(lines[2], "Error: Checksum verification failed")
        self.assertNotIn("\033[", stream.getvalue())

    def test_color_codes_when_enabled(self):
        stream = io.StringIO()
        configure_logging(stream=stream, color=True)
        get_logger().info("✓ Checksum verified", extra={"success": True})
        self.assertIn("\033[0;32m", stream.getvalue())

    def test_configure_is_idempotent(self):
        configure_logging(stream=io.StringIO(), color=False)
        configure_logging(stream=io.StringIO(), color=False)
        self.assertEqual(len(get_logger().handlers), 1)

    def test_json_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "logs" / "install.jsonl"
            configure_logging(log_file=path, console=False)
            get_logger().warning("retrying", extra={"event": "download_retry", "attempt": 2})
            reset_logging()

            record = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
            self.assertEqual(record["level"], "WARNING")
            self.assertEqual(record["event"], "download_retry")
            self.assertEqual(record["attempt"], 2)
            self.assertEqual(record["logger"], "fritzbox_bootstrap")
            self.assertEqual(get_logger().level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
