from pathlib import Path

import pytest

from screenshat.errors import AssemblyError, UsageError
from screenshat.ffmpeg_args import (
    EncoderJob,
    OutputFormat,
    build_args,
    build_filter_graph,
    format_command,
)


def make_job(outputs, width=500, height=802):
    return EncoderJob(
        input_pattern="/tmp/shots/screenshot-chromium-%03d.png",
        start_number=320,
        frame_count=3,
        canvas_width=width,
        canvas_height=height,
        outputs=outputs,
    )


def test_single_output_uses_plain_filter():
    args = build_args(make_job({OutputFormat.MP4: Path("/tmp/v.mp4")}))
    assert args == [
        "-start_number", "320",
        "-i", "/tmp/shots/screenshot-chromium-%03d.png",
        "-vf", "pad=w=500:h=802:x=0:y=0:eval=frame:color=black@0x00",
        "-c:v", "libx264", "-movflags", "+faststart", "-pix_fmt", "yuv420p",
        "/tmp/v.mp4",
    ]
    assert "-map" not in args


def test_two_outputs_split_in_tag_order():
    # mp4 given first; gif still gets the first branch
    outputs = {OutputFormat.MP4: Path("/o/v.mp4"), OutputFormat.GIF: Path("/o/v.gif")}
    graph = build_filter_graph(make_job(outputs))
    assert graph.split is not None
    assert graph.split.labels == ("out1", "out2")
    assert [b.format for b in graph.branches] == [OutputFormat.GIF, OutputFormat.MP4]

    args = build_args(make_job(outputs))
    fc = args[args.index("-filter_complex") + 1]
    assert fc.endswith(",split=2[out1][out2]")
    gif_map = args.index("[out1]")
    mp4_map = args.index("[out2]")
    assert args[gif_map + 1 : gif_map + 3] == ["-c:v", "gif"]
    assert args[mp4_map + 1 : mp4_map + 3] == ["-c:v", "libx264"]
    assert args.index("/o/v.gif") < mp4_map
    assert args[-1] == "/o/v.mp4"


def test_all_four_formats():
    outputs = {fmt: Path(f"/o/v.{fmt.value}") for fmt in OutputFormat}
    args = build_args(make_job(outputs))
    assert "split=4[out1][out2][out3][out4]" in args[args.index("-filter_complex") + 1]
    order = [args[args.index(f"[out{i}]") + 2] for i in range(1, 5)]
    assert order == ["gif", "libx264", "apng", "libvpx-vp9"]
    webm = args.index("libvpx-vp9")
    assert args[webm + 1 : webm + 5] == ["-b:v", "800k", "-pix_fmt", "yuva420p"]


def test_mp4_and_webm_scenario():
    outputs = {OutputFormat.WEBM: Path("/o/v.webm"), OutputFormat.MP4: Path("/o/v.mp4")}
    args = build_args(make_job(outputs, width=500, height=802))
    fc = args[args.index("-filter_complex") + 1]
    assert "w=500:h=802" in fc
    assert "split=2" in fc


def test_empty_outputs_fail():
    with pytest.raises(AssemblyError):
        build_args(make_job({}))


@pytest.mark.parametrize("width,height", [(501, 802), (500, 801), (0, 802)])
def test_odd_or_empty_canvas_fails(width, height):
    with pytest.raises(AssemblyError):
        build_args(make_job({OutputFormat.GIF: Path("/o/v.gif")}, width, height))


def test_unknown_tag_rejected():
    with pytest.raises(UsageError, match="avi"):
        OutputFormat.parse("avi")
    assert OutputFormat.parse("WebM") is OutputFormat.WEBM


def test_format_command_quotes():
    assert format_command(["-i", "/tmp/it's here/%03d.png"]) == "-i '/tmp/it'\"'\"'s here/%03d.png'"
