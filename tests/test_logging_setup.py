import tempfile
import unittest
from pathlib import Path
from unittest import mock

from feed2blog.config.settings import Settings
from feed2blog.tools import logging_setup


class SetupLoggingTests(unittest.TestCase):
    def test_file_and_stream_handlers_with_run_log_format(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "logs" / "run.log"
            with mock.patch.object(logging_setup.logging, "basicConfig") as basic:
                logging_setup.setup_logging(Settings(log_file=str(log_file), log_level="debug"))

            kwargs = basic.call_args.kwargs
            self.assertEqual(kwargs["format"], "%(asctime)s | %(levelname)s | %(message)s")
            self.assertEqual(kwargs["level"], logging_setup.logging.DEBUG)
            self.assertTrue(log_file.parent.is_dir())
            for handler in kwargs["handlers"]:
                handler.close()


if __name__ == "__main__":
    unittest.main()
