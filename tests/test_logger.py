import os
import tempfile
import unittest
from unittest import mock

from utils import logger


class LoggerTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.log_path = os.path.join(self.temp_dir.name, "client.log")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_log_file_is_closed_at_exit(self):
        with mock.patch.dict(
            os.environ, {"SHOPCLIENT_LOG_FILE": self.log_path}
        ), mock.patch.object(logger, "_log_console", None), mock.patch(
            "utils.logger.atexit.register"
        ) as register:
            console = logger._get_console()
            # one console per process
            self.assertIs(logger._get_console(), console)

        register.assert_called_once()
        (close,), _ = register.call_args
        self.assertFalse(console.file.closed)
        close()
        self.assertTrue(console.file.closed)

    def test_stderr_without_log_file(self):
        env = {k: v for k, v in os.environ.items() if k != "SHOPCLIENT_LOG_FILE"}
        with mock.patch.dict(os.environ, env, clear=True), mock.patch.object(
            logger, "_log_console", None
        ), mock.patch("utils.logger.atexit.register") as register:
            console = logger._get_console()

        self.assertTrue(console.stderr)
        register.assert_not_called()


if __name__ == "__main__":
    unittest.main()
