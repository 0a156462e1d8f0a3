"""Command line entry point: screenshots at every width, then optional video."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from screenshat.browser import BROWSERS, check_browser, open_page
from screenshat.canvas import canvas_size
from screenshat.capture import CaptureRun, capture_sequence, frame_pattern
from screenshat.encode import Details, EncodeSupervisor, Progress, RawLine, find_ffmpeg
from screenshat.errors import Cancelled, ScreenshatError, UsageError
from screenshat.ffmpeg_args import EncoderJob, OutputFormat, build_args, format_command
from screenshat.log import Verbosity, configure_logging
from screenshat.planner import FULL_HEIGHT, CapturePlan, HeightPolicy, plan_captures
from screenshat.summary import RunSummary

BAR_FORMAT = "{desc} |{bar}| {percentage:3.0f}%"

# one --output-<tag> flag per video format, in the order --help lists them
FORMAT_FLAGS = (
    ("mp4", "output mp4 video"),
    ("webm", "output webm video"),
    ("gif", "output animated gif"),
    ("png", "output animated png"),
)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="screenshat",
        usage="%(prog)s [options] --url <url>",
        description=(
            "Take screenshots and videos of a website at different widths.\n\n"
            "Requires ffmpeg to be installed and in your PATH for video output."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--url", required=True, help="URL to screenshot")
    parser.add_argument(
        "--min-width",
        type=int,
        default=320,
        metavar="PIXELS",
        help="minimum width (default: 320)",
    )
    parser.add_argument(
        "--max-width",
        type=int,
        default=1920,
        metavar="PIXELS",
        help="maximum width (default: 1920)",
    )
    parser.add_argument(
        "--max-height",
        default="800",
        metavar="PIXELS",
        help=f'maximum height in pixels, or "{FULL_HEIGHT}" (default: 800)',
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        metavar="DIR",
        help="output directory (default: new temp directory)",
    )
    parser.add_argument(
        "--browser",
        default="chromium",
        help=f"browser to use with Playwright, one of {', '.join(BROWSERS)} (default: chromium)",
    )
    parser.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        help="disable progress bars",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="print details as JSON (it can be helpful to include --quiet)",
    )
    for tag, help_text in FORMAT_FLAGS:
        parser.add_argument(f"--output-{tag}", action="store_true", help=help_text)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="produce minimal command-line output",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="produce more command-line output",
    )
    return parser.parse_args(argv)


def requested_formats(args: argparse.Namespace) -> list[OutputFormat]:
    tags = [tag for tag, _ in FORMAT_FLAGS if getattr(args, f"output_{tag}", False)]
    return sorted((OutputFormat.parse(tag) for tag in tags), key=lambda fmt: fmt.value)


def video_outputs(
    output_dir: Path,
    browser: str,
    plan: CapturePlan,
    formats: list[OutputFormat],
) -> dict[OutputFormat, Path]:
    base = f"video-{browser}-{plan.min_width}px-to-{plan.max_width}px"
    return {fmt: output_dir / f"{base}.{fmt.value}" for fmt in formats}


def prepare_output_dir(args: argparse.Namespace, log: logging.Logger) -> tuple[Path, bool]:
    """Return the output directory and whether we created it ourselves."""
    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir, False
    log.debug("Creating temp directory")
    prefix = f"screenshat-{args.browser}-{args.min_width}px-to-{args.max_width}px"
    return Path(tempfile.mkdtemp(prefix=prefix)), True


@contextmanager
def cancel_on_interrupt(cancel: threading.Event) -> Iterator[threading.Event]:
    """Turn the first Ctrl-C into ``cancel.set()`` for the length of the block.

    The capture loop stops before its next width and ffmpeg is terminated.
    A second Ctrl-C raises :class:`KeyboardInterrupt` as usual.
    """

    def handler(signum, frame) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


def take_screenshots(
    args: argparse.Namespace,
    plan: CapturePlan,
    output_dir: Path,
    show_progress: bool,
    cancel: threading.Event,
    log: logging.Logger,
) -> CaptureRun:
    with open_page(args.browser, args.url, log=log) as page, logging_redirect_tqdm(loggers=[log]):
        log.info(
            "Taking screenshots of %s into directory %s from %d to %d pixels wide",
            args.url,
            output_dir,
            plan.min_width,
            plan.max_width,
        )
        with tqdm(total=len(plan), desc="Taking screenshots", disable=not show_progress) as bar:
            return capture_sequence(
                page,
                plan,
                output_dir,
                args.browser,
                on_capture=lambda result: bar.update(1),
                cancel=cancel,
                log=log,
            )


def make_video(
    job: EncoderJob,
    supervisor: EncodeSupervisor,
    show_progress: bool,
    log: logging.Logger,
) -> None:
    label = "Generating video ({})".format(
        ", ".join(fmt.value for fmt, _ in job.ordered_outputs())
    )
    log.info(label)
    with logging_redirect_tqdm(loggers=[log]), tqdm(
        total=1.0, desc=label, bar_format=BAR_FORMAT, disable=not show_progress
    ) as bar:

        def on_event(event) -> None:
            if isinstance(event, RawLine):
                log.debug(event.text)
            elif isinstance(event, Details):
                log.debug(json.dumps(event.info))
            elif isinstance(event, Progress):
                log.debug("progress %.3f", event.fraction)
                bar.n = event.fraction
                bar.refresh()

        supervisor.run(on_event)
    log.info("Video creation finished successfully.")


def run(
    args: argparse.Namespace,
    verbosity: Verbosity,
    log: logging.Logger,
    cancel: threading.Event,
) -> RunSummary:
    policy = HeightPolicy.parse(args.max_height)
    check_browser(args.browser)
    plan = plan_captures(args.min_width, args.max_width, policy)
    formats = requested_formats(args)
    if formats:
        find_ffmpeg()

    quiet = verbosity is Verbosity.QUIET
    show_progress = not quiet and args.progress
    output_dir, created = prepare_output_dir(args, log)
    outputs = video_outputs(output_dir, args.browser, plan, formats)

    capture = take_screenshots(args, plan, output_dir, show_progress, cancel, log)
    stats = capture.stats
    log.info("The longest image was %d pixels tall.", stats.tallest_height)
    log.info("The widest image was %d pixels wide.", stats.widest_width)

    summary = RunSummary(
        browser=args.browser,
        output_dir=output_dir,
        min_width=plan.min_width,
        max_width=plan.max_width,
        max_height=policy.limit,
        stats=stats,
        num_digits=plan.width_digits,
        url=args.url,
    )

    if not outputs:
        if args.json:
            print(summary.to_json())
        if created and not quiet:
            print(f"Output screenshots are in {output_dir}")
        return summary

    width, height = canvas_size(stats)
    job = EncoderJob(
        input_pattern=frame_pattern(output_dir, args.browser, plan.width_digits),
        start_number=plan.min_width,
        frame_count=len(plan),
        canvas_width=width,
        canvas_height=height,
        outputs=outputs,
    )
    supervisor = EncodeSupervisor(build_args(job), job.frame_count, cancel=cancel, log=log)
    log.debug("Running ffmpeg with arguments: %s", format_command(supervisor.full_args))

    summary.video_files = outputs
    summary.video_width = width
    summary.video_height = height
    summary.ffmpeg_args = supervisor.full_args
    if args.json:
        print(summary.to_json())

    make_video(job, supervisor, show_progress, log)
    if created and not quiet:
        print(f"Output files are in {output_dir}")
    return summary


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    try:
        verbosity = Verbosity.from_flags(args.quiet, args.verbose)
    except UsageError as exc:
        configure_logging(Verbosity.NORMAL).error("%s", exc)
        sys.exit(exc.exit_code)

    log = configure_logging(verbosity)
    cancel = threading.Event()
    try:
        with cancel_on_interrupt(cancel):
            run(args, verbosity, log, cancel)
    except KeyboardInterrupt:
        log.error("Interrupted")
        sys.exit(Cancelled.exit_code)
    except ScreenshatError as exc:
        # the browser driver and ffmpeg see Ctrl-C too and may fail first
        if cancel.is_set():
            log.error("Interrupted: %s", exc)
            sys.exit(Cancelled.exit_code)
        log.error("%s", exc)
        sys.exit(exc.exit_code)


if __name__ == "__main__":
    main()
