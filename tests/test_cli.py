"""Unit tests for the command-line interface"""

import argparse
import unittest
from pathlib import Path
from unittest.mock import patch

from clipforge.__main__ import build_effects, main, parse_args, parse_size
from clipforge.effects import Blur, Resize, Rotate
from clipforge.exceptions import ProbeError
from clipforge.transcoder import MediaInfo

class TestArguments(unittest.TestCase):
    """Test cases for argument parsing"""

    def test_parse_size(self):
        self.assertEqual(parse_size("640x480"), (640, 480))
        self.assertEqual(parse_size("320X200"), (320, 200))
        with self.assertRaises(argparse.ArgumentTypeError):
            parse_size("wide")

    def test_render_arguments(self):
        args = parse_args(["render", "in.mp4", "out.mp4", "--start", "1", "--end", "4", "--resize", "320x240", "--preset", "warm"])
        self.assertEqual(args.command, "render")
        self.assertEqual(args.input, Path("in.mp4"))
        self.assertEqual((args.start, args.end), (1.0, 4.0))
        self.assertEqual(args.resize, (320, 240))
        self.assertEqual(args.codec, "libx264")

    def test_composite_arguments(self):
        args = parse_args(["composite", "a.mp4", "b.mp4", "out.mp4", "--center", "--mode", "screen", "--opacity", "0.5"])
        self.assertTrue(args.center)
        self.assertEqual(args.mode, "screen")
        self.assertEqual(args.opacity, 0.5)

    def test_build_effects_order(self):
        args = parse_args(["render", "in.mp4", "out.mp4", "--resize", "100x100", "--rotate", "90", "--blur", "2", "--preset", "cool"])
        effects = build_effects(args)
        self.assertIsInstance(effects[0], Resize)
        self.assertIsInstance(effects[1], Rotate)
        self.assertIsInstance(effects[2], Blur)
        self.assertEqual([e.name for e in effects[3:]], ["brightness", "saturation"])

    def test_no_effects(self):
        self.assertEqual(build_effects(parse_args(["render", "in.mp4", "out.mp4"])), [])

@patch("clipforge.__main__.print_header")
@patch("clipforge.__main__.configure_logging", return_value=None)
class TestMain(unittest.TestCase):
    """Test cases for main()"""

    @patch("clipforge.__main__.check_dependencies", return_value=False)
    @patch("clipforge.__main__.print_error")
    def test_missing_dependencies(self, mock_error, _deps, _logging, _header):
        self.assertEqual(main(["info", "in.mp4"]), 1)
        mock_error.assert_called_once()

    @patch("clipforge.__main__.check_dependencies", return_value=True)
    @patch("clipforge.__main__.print_media_info")
    @patch("clipforge.__main__.probe_media", return_value=MediaInfo(duration=2.0, width=4, height=2, fps=25.0))
    def test_info(self, mock_probe, mock_print, _deps, _logging, _header):
        self.assertEqual(main(["info", "in.mp4"]), 0)
        mock_probe.assert_called_once_with(Path("in.mp4"))
        mock_print.assert_called_once_with("in.mp4", mock_probe.return_value)

    @patch("clipforge.__main__.check_dependencies", return_value=True)
    @patch("clipforge.__main__.print_error")
    @patch("clipforge.__main__.probe_media", side_effect=ProbeError("File not found: in.mp4", module="probe"))
    def test_errors_exit_nonzero(self, _probe, mock_error, _deps, _logging, _header):
        self.assertEqual(main(["info", "in.mp4"]), 1)
        self.assertIn("File not found", mock_error.call_args[0][0])

    @patch("clipforge.__main__.check_dependencies", return_value=True)
    @patch("clipforge.__main__.run_render", side_effect=KeyboardInterrupt)
    def test_interrupt(self, _render, _deps, _logging, _header):
        self.assertEqual(main(["render", "in.mp4", "out.mp4"]), 130)

if __name__ == "__main__":
    unittest.main()
