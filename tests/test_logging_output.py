import os
import unittest
from unittest.mock import patch

from housekeeping.utils import logging as hk_logging
from housekeeping.utils.logging import debug, error, good, info, set_verbosity, status, warn


class TestLoggingOutput(unittest.TestCase):

    def setUp(self):
        set_verbosity(False, False)
        os.environ.pop("HOUSEKEEPING_DEBUG", None)

    def tearDown(self):
        set_verbosity(False, False)
        os.environ.pop("HOUSEKEEPING_DEBUG", None)

    @patch("housekeeping.utils.logging._status")
    def test_status_always_printed(self, mock_status):
        status("Resolving 2 identities")
        mock_status.assert_called_once_with("Resolving 2 identities")

    @patch("housekeeping.utils.logging._good")
    def test_good_hidden_when_concise(self, mock_good):
        good("Resolved testuser")
        mock_good.assert_not_called()

    @patch("housekeeping.utils.logging._good")
    def test_good_shown_when_verbose(self, mock_good):
        set_verbosity(True, False)
        good("Resolved testuser")
        mock_good.assert_called_once_with("Resolved testuser")

    @patch("housekeeping.utils.logging._info")
    def test_info_hidden_when_concise(self, mock_info):
        info("Connecting")
        mock_info.assert_not_called()

    @patch("housekeeping.utils.logging._info")
    def test_info_shown_when_debug(self, mock_info):
        set_verbosity(False, True)
        info("Connecting")
        mock_info.assert_called_once_with("Connecting")

    @patch("housekeeping.utils.logging._warn")
    def test_warn_passes_verbose_only(self, mock_warn):
        warn("Falling back", verbose_only=True)
        mock_warn.assert_called_once_with("Falling back", verbose_only=True)

    @patch("housekeeping.utils.logging._error")
    def test_error_always_printed(self, mock_error):
        error("Directory unavailable")
        mock_error.assert_called_once_with("Directory unavailable")

    @patch("housekeeping.utils.logging._debug")
    def test_debug_hidden_by_default(self, mock_debug):
        debug("query")
        mock_debug.assert_not_called()

    @patch("housekeeping.utils.logging._debug")
    def test_debug_flag_sets_environment(self, mock_debug):
        set_verbosity(False, True)
        self.assertEqual(os.environ.get("HOUSEKEEPING_DEBUG"), "1")

        debug("query", exc_info=True)
        mock_debug.assert_called_once_with("query", exc_info=True)

    @patch("housekeeping.utils.logging._debug")
    def test_debug_from_environment(self, mock_debug):
        os.environ["HOUSEKEEPING_DEBUG"] = "1"
        debug("query")
        mock_debug.assert_called_once()

    def test_set_verbosity_propagates_to_console(self):
        with patch("housekeeping.utils.logging._set_verbosity") as mock_set:
            set_verbosity(True, False)
        mock_set.assert_called_once_with(True, False)
        self.assertTrue(hk_logging._VERBOSE)
        self.assertFalse(hk_logging._DEBUG)


if __name__ == "__main__":
    unittest.main()
