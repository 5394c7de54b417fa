"""
Command-line interface for clipforge
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .clips import Clip, CompositeClip, SourceClip, write_videofile
from .compositing import BlendMode, CompositionLayer, Position
from .config import DEFAULT_VIDEO_BITRATE, DEFAULT_VIDEO_CODEC
from .effects import PRESETS, Blur, Effect, Resize, Rotate, get_preset
from .exceptions import ClipforgeError
from .formatting import (
    print_check, print_error, print_header, print_info, print_media_info, print_success, print_warning,
)
from .logging import configure_logging
from .process import ProcessSupervisor
from .transcoder import probe_media
from .utils import check_dependencies

log = logging.getLogger("clipforge")

def parse_size(value: str) -> Tuple[int, int]:
    """Parse ``WIDTHxHEIGHT``"""
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}") from None
    return width, height

def add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("output", type=Path, help="Output video file")
    parser.add_argument("--fps", type=float, default=None, help="Output frame rate (default: source)")
    parser.add_argument("--codec", default=DEFAULT_VIDEO_CODEC, help="Video codec (default: %(default)s)")
    parser.add_argument("--bitrate", default=DEFAULT_VIDEO_BITRATE, help="Video bitrate (default: %(default)s)")

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="clipforge",
        description="Frame-level video editing on top of ffmpeg"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default from config)"
    )
    parser.add_argument(
        "--no-log-file",
        dest="file_logging",
        action="store_false",
        help="Log to the console only"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    info = commands.add_parser("info", help="Show media properties")
    info.add_argument("input", type=Path, help="Media file")

    render = commands.add_parser("render", help="Cut, retime and apply effects to a clip")
    render.add_argument("input", type=Path, help="Source video file")
    add_output_options(render)
    render.add_argument("--start", type=float, default=None, help="Subclip start (seconds)")
    render.add_argument("--end", type=float, default=None, help="Subclip end (seconds)")
    render.add_argument("--speed", type=float, default=None, help="Playback speed factor")
    render.add_argument("--resize", type=parse_size, default=None, metavar="WxH", help="Resize frames")
    render.add_argument("--rotate", type=float, default=None, metavar="DEGREES", help="Rotate frames")
    render.add_argument("--blur", type=int, default=None, metavar="RADIUS", help="Box blur radius")
    render.add_argument("--preset", choices=sorted(PRESETS), default=None, help="Apply a named look")

    composite = commands.add_parser("composite", help="Blend an overlay video onto a base video")
    composite.add_argument("base", type=Path, help="Base video file")
    composite.add_argument("overlay", type=Path, help="Overlay video file")
    add_output_options(composite)
    composite.add_argument("--x", type=int, default=0, help="Overlay left offset")
    composite.add_argument("--y", type=int, default=0, help="Overlay top offset")
    composite.add_argument("--center", action="store_true", help="Centre the overlay")
    composite.add_argument("--scale", type=float, default=1.0, help="Overlay scale")
    composite.add_argument("--rotation", type=float, default=0.0, help="Overlay rotation (degrees)")
    composite.add_argument("--opacity", type=float, default=1.0, help="Overlay opacity 0..1")
    composite.add_argument(
        "--mode",
        choices=[mode.value for mode in BlendMode],
        default=BlendMode.OVERLAY.value,
        help="Blend mode (default: %(default)s)"
    )
    return parser.parse_args(argv)

def build_effects(args: argparse.Namespace) -> List[Effect]:
    effects: List[Effect] = []
    if args.resize:
        effects.append(Resize(*args.resize))
    if args.rotate is not None:
        effects.append(Rotate(args.rotate))
    if args.blur is not None:
        effects.append(Blur(args.blur))
    if args.preset:
        effects.extend(get_preset(args.preset))
    return effects

def run_info(args: argparse.Namespace) -> int:
    print_media_info(args.input.name, probe_media(args.input))
    return 0

def run_render(args: argparse.Namespace, supervisor: ProcessSupervisor) -> int:
    opened: List[Clip] = []
    try:
        clip: Clip = SourceClip.open(args.input, supervisor)
        opened.append(clip)
        if args.start is not None or args.end is not None:
            clip = clip.subclip(args.start or 0.0, args.end if args.end is not None else clip.duration)
            opened.append(clip)
        if args.speed is not None:
            clip = clip.with_speed(args.speed)
            opened.append(clip)
        effects = build_effects(args)
        if effects:
            clip = clip.with_effects(*effects)
            opened.append(clip)
        print_info(f"Rendering {clip.width}x{clip.height}, {clip.duration:.2f}s")
        frames = write_videofile(clip, args.output, supervisor, args.fps, args.codec, args.bitrate)
    finally:
        for clip in reversed(opened):
            clip.close()
    print_success(f"Wrote {frames} frames to {args.output}")
    return 0

def run_composite(args: argparse.Namespace, supervisor: ProcessSupervisor) -> int:
    base = SourceClip.open(args.base, supervisor)
    try:
        overlay = SourceClip.open(args.overlay, supervisor)
    except ClipforgeError:
        base.close()
        raise
    position = Position.center() if args.center else Position(args.x, args.y)
    layers = [
        CompositionLayer(base),
        CompositionLayer(
            overlay,
            position=position,
            scale=args.scale,
            rotation=args.rotation,
            opacity=args.opacity,
            blend_mode=BlendMode.parse(args.mode),
        ),
    ]
    with base, overlay, CompositeClip(layers) as composite:
        print_info(f"Compositing {args.overlay.name} onto {args.base.name} ({args.mode})")
        frames = write_videofile(composite, args.output, supervisor, args.fps, args.codec, args.bitrate)
    print_success(f"Wrote {frames} frames to {args.output}")
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    log_file = configure_logging(args.log_level, args.file_logging)
    if log_file is not None:
        log.debug("Log file: %s", log_file)

    print_header(f"clipforge v{__version__}")

    if not check_dependencies():
        print_error("Missing required dependencies (ffmpeg, ffprobe)")
        return 1
    print_check("ffmpeg and ffprobe found")

    try:
        if args.command == "info":
            return run_info(args)
        with ProcessSupervisor() as supervisor:
            if args.command == "render":
                return run_render(args, supervisor)
            return run_composite(args, supervisor)
    except KeyboardInterrupt:
        print_warning("Interrupted by user")
        return 130
    except (ClipforgeError, ValueError) as e:
        print_error(str(e))
        log.debug("Command failed", exc_info=True)
        return 1
    except Exception as e:
        log.exception("Unexpected failure: %s", e)
        return 1

if __name__ == "__main__":
    sys.exit(main())
