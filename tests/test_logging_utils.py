import logging
import unittest

from utils import logging_utils
from utils.logging_utils import EnsureTagFilter, MaxLevelFilter, build_logging_config, get_tagged_logger


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


class TestLoggingUtils(unittest.TestCase):
    def test_build_logging_config_has_expected_handlers_and_filters(self):
        cfg = build_logging_config(job_name="advisor-test")
        self.assertIn("stdout", cfg["handlers"])
        self.assertIn("stderr", cfg["handlers"])
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "advisor-test")

    def test_get_tagged_logger_injects_tag(self):
        handler = _ListHandler()
        logger = get_tagged_logger("advisor.tests", tag="alerts")
        base_logger = logger.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False

        try:
            logger.info("Planning disruptions detected")
        finally:
            base_logger.removeHandler(handler)

        record = handler.records[-1]
        self.assertEqual(record.tag, "alerts")

    def test_filters(self):
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "msg", None, None)
        self.assertFalse(MaxLevelFilter(logging.WARNING).filter(record))
        self.assertTrue(EnsureTagFilter().filter(record))
        self.assertTrue(hasattr(record, "tag"))

    def test_setup_logging_override_applies_filters(self):
        root = logging.getLogger()
        orig_handlers = root.handlers[:]
        orig_level = root.level
        try:
            logging_utils.setup_logging(level="INFO", job_name="advisor-test", override_existing=True)
            self.assertTrue(root.handlers)
            self.assertTrue(
                any(
                    any(f.__class__.__name__ == "JobNameFilter" for f in h.filters)
                    for h in root.handlers
                )
            )
        finally:
            root.handlers = orig_handlers
            root.setLevel(orig_level)
            root.propagate = True
            logging_utils._CONFIGURED = False  # reset for other tests


if __name__ == "__main__":
    unittest.main()
