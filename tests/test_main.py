"""
Tests for the command line entry point.
"""
import logging
import unittest
from unittest.mock import patch

from check_ssl_web import main as cli
from check_ssl_web.main import create_parser, main, resolve_port


class TestResolvePort(unittest.TestCase):

    def test_numeric_argument_is_used(self):
        self.assertEqual(resolve_port("3000"), 3000)

    def test_non_numeric_argument_uses_default(self):
        self.assertEqual(resolve_port("abc"), 8080)
        self.assertEqual(resolve_port("30a0"), 8080)
        self.assertEqual(resolve_port("-1"), 8080)

    def test_missing_or_empty_argument_uses_default(self):
        self.assertEqual(resolve_port(None), 8080)
        self.assertEqual(resolve_port(""), 8080)

    def test_non_ascii_digits_use_default(self):
        self.assertEqual(resolve_port("３０００"), 8080)


class TestMain(unittest.TestCase):

    def setUp(self):
        patcher = patch('check_ssl_web.main.setup_logging')
        self.mock_setup_logging = patcher.start()
        self.addCleanup(patcher.stop)

    @patch('builtins.print')
    @patch('check_ssl_web.main.run_server')
    def test_numeric_port_binds_that_port(self, mock_run_server, mock_print):
        main(["3000"])

        mock_run_server.assert_called_once()
        args, kwargs = mock_run_server.call_args
        self.assertEqual(args[0], 3000)
        self.assertEqual(kwargs['host'], "127.0.0.1")
        mock_print.assert_called_once_with("Server run on port 3000")

    @patch('check_ssl_web.main.run_server')
    def test_non_numeric_port_uses_default(self, mock_run_server):
        main(["abc"])

        self.assertEqual(mock_run_server.call_args[0][0], 8080)

    @patch('check_ssl_web.main.run_server')
    def test_no_argument_uses_default(self, mock_run_server):
        main([])

        self.assertEqual(mock_run_server.call_args[0][0], 8080)

    @patch('check_ssl_web.main.run_server')
    def test_extra_arguments_are_ignored(self, mock_run_server):
        main(["3000", "foo"])

        self.assertEqual(mock_run_server.call_args[0][0], 3000)

    @patch('check_ssl_web.main.run_server')
    def test_unknown_dashed_argument_uses_default(self, mock_run_server):
        main(["--x"])

        self.assertEqual(mock_run_server.call_args[0][0], 8080)

    @patch('check_ssl_web.main.run_server')
    def test_options_are_passed_as_config(self, mock_run_server):
        main(["-m", "simple", "-t", "2.5", "-l", "DEBUG"])

        self.assertEqual(
            mock_run_server.call_args[1]['config'],
            {"LOOKUP_MODE": "simple", "LOOKUP_TIMEOUT": 2.5},
        )
        self.mock_setup_logging.assert_called_once_with(logging.DEBUG)

    @patch('check_ssl_web.main.run_server')
    def test_out_of_range_port_exits(self, mock_run_server):
        with self.assertRaises(SystemExit) as ctx:
            main(["70000"])

        self.assertEqual(ctx.exception.code, 1)
        mock_run_server.assert_not_called()

    @patch('check_ssl_web.main.run_server', side_effect=OSError(98, "Address already in use"))
    def test_bind_failure_exits(self, mock_run_server):
        with self.assertRaises(SystemExit) as ctx:
            main(["3000"])

        self.assertEqual(ctx.exception.code, 1)

    def test_parser_defaults(self):
        args = create_parser().parse_args([])
        self.assertIsNone(args.port)
        self.assertEqual(args.loglevel, "WARN")
        self.assertEqual(args.mode, "full")


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger("checkssl")
        self.saved = (list(self.logger.handlers), self.logger.level, self.logger.propagate)
        self.logger.handlers = []

    def tearDown(self):
        self.logger.handlers, level, self.logger.propagate = self.saved
        self.logger.setLevel(level)

    @patch('check_ssl_web.main.sys.stderr')
    def test_plain_handler_when_not_a_tty(self, mock_stderr):
        mock_stderr.isatty.return_value = False

        cli.setup_logging(logging.INFO)

        self.assertEqual(self.logger.level, logging.INFO)
        self.assertEqual(len(self.logger.handlers), 1)
        self.assertFalse(self.logger.propagate)

    @patch('check_ssl_web.main.coloredlogs.install')
    @patch('check_ssl_web.main.sys.stderr')
    def test_coloredlogs_on_a_tty(self, mock_stderr, mock_install):
        mock_stderr.isatty.return_value = True

        cli.setup_logging(logging.WARNING)

        mock_install.assert_called_once()
        self.assertIs(mock_install.call_args[1]['logger'], self.logger)


if __name__ == '__main__':
    unittest.main()
