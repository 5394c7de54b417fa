"""Unit tests for media probing"""

import unittest
from unittest.mock import patch

import ffmpeg

from clipforge.exceptions import ProbeError
from clipforge.transcoder import parse_frame_rate, parse_probe, probe_media

PROBE_OUTPUT = {
    "format": {"duration": "12.5", "bit_rate": "800000"},
    "streams": [
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1280,
            "height": 720,
            "r_frame_rate": "30000/1001",
        },
        {
            "codec_type": "audio",
            "codec_name": "aac",
            "sample_rate": "48000",
            "channels": 2,
        },
        {"codec_type": "video", "codec_name": "mjpeg", "width": 64, "height": 64},
    ],
}

class TestParseProbe(unittest.TestCase):
    """Test cases for ffprobe output parsing"""

    def test_parse_full_output(self):
        info = parse_probe(PROBE_OUTPUT)
        self.assertEqual(info.duration, 12.5)
        self.assertEqual((info.width, info.height), (1280, 720))
        self.assertAlmostEqual(info.fps, 29.97, places=2)
        self.assertEqual(info.codec, "h264")
        self.assertEqual(info.bit_rate, "800000")
        self.assertTrue(info.has_audio)
        self.assertEqual(info.audio_sample_rate, 48000)
        self.assertEqual(info.audio_channels, 2)
        self.assertTrue(info.has_video)

    def test_audio_only(self):
        info = parse_probe({"format": {"duration": "3"}, "streams": [PROBE_OUTPUT["streams"][1]]})
        self.assertFalse(info.has_video)
        self.assertTrue(info.has_audio)

    def test_empty_output(self):
        info = parse_probe({})
        self.assertEqual(info.duration, 0.0)
        self.assertFalse(info.has_video)

    def test_parse_frame_rate(self):
        self.assertEqual(parse_frame_rate("25/1"), 25.0)
        self.assertEqual(parse_frame_rate("24"), 24.0)
        self.assertEqual(parse_frame_rate("0/0"), 0.0)
        self.assertEqual(parse_frame_rate("abc"), 0.0)
        self.assertEqual(parse_frame_rate(None), 0.0)

class TestProbeMedia(unittest.TestCase):
    """Test cases for probe_media"""

    def test_missing_file(self):
        with self.assertRaises(ProbeError):
            probe_media("/nonexistent/clipforge/input.mp4")

    @patch("clipforge.transcoder.probe.ffmpeg.probe")
    @patch("clipforge.transcoder.probe.Path.exists", return_value=True)
    def test_probe_success(self, _exists, mock_probe):
        mock_probe.return_value = PROBE_OUTPUT
        info = probe_media("/tmp/input.mp4")
        self.assertEqual(info.width, 1280)
        self.assertEqual(mock_probe.call_args[0][0], "/tmp/input.mp4")
        self.assertEqual(mock_probe.call_args[1]["cmd"], "ffprobe")

    @patch("clipforge.transcoder.probe.ffmpeg.probe")
    @patch("clipforge.transcoder.probe.Path.exists", return_value=True)
    def test_probe_failure_carries_stderr(self, _exists, mock_probe):
        mock_probe.side_effect = ffmpeg.Error("ffprobe", b"", b"moov atom not found")
        with self.assertRaises(ProbeError) as ctx:
            probe_media("/tmp/broken.mp4")
        self.assertIn("moov atom not found", str(ctx.exception))

    @patch("clipforge.transcoder.probe.ffmpeg.probe", side_effect=FileNotFoundError("ffprobe"))
    @patch("clipforge.transcoder.probe.Path.exists", return_value=True)
    def test_probe_binary_missing(self, _exists, _probe):
        with self.assertRaises(ProbeError):
            probe_media("/tmp/input.mp4")

if __name__ == "__main__":
    unittest.main()
