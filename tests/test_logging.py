import logging
import os
import tempfile
import unittest

from memorial import create_app
from memorial.db import get_database


class TestLoggingSetup(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.log_dir = os.path.join(self.tmpdir.name, "logs")
        self.loggers = [logging.getLogger("memorial"), logging.getLogger("werkzeug")]
        self.existing = {id(h) for logger in self.loggers for h in logger.handlers}
        self.app = create_app({
            "TESTING": False,
            "DATABASE_URL": f"sqlite:///{os.path.join(self.tmpdir.name, 'log.sqlite')}",
            "UPLOAD_DIR": os.path.join(self.tmpdir.name, "uploads"),
            "LOG_DIR": self.log_dir,
            "LOG_LEVEL": "DEBUG",
        })

    def tearDown(self):
        for logger in self.loggers:
            for handler in list(logger.handlers):
                if id(handler) not in self.existing:
                    logger.removeHandler(handler)
                    handler.close()
        get_database(self.app).dispose()
        self.tmpdir.cleanup()

    def test_module_loggers_reach_log_file(self):
        self.assertEqual(self.app.logger.level, logging.DEBUG)
        logging.getLogger("memorial.search").warning("search fallback marker")
        for handler in self.app.logger.handlers:
            handler.flush()

        with open(os.path.join(self.log_dir, "app.log")) as f:
            contents = f.read()
        self.assertIn("Logging initialized", contents)
        self.assertIn("memorial.search - WARNING - search fallback marker", contents)
