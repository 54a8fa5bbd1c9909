"""Main CLI entry point."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from scanprep.config import PipelineConfig
from scanprep.frame import Frame
from scanprep.geometry import Rect, Size
from scanprep.pdf import pdf_to_frames
from scanprep.preprocessing import prepare_for_recognition

console = Console(stderr=True)
load_dotenv()

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tif", ".tiff"}


def _parse(converter, value: Optional[str], param_hint: str):
    if value is None:
        return None
    try:
        return converter(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=param_hint) from None


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output PNG path (or directory for PDFs). Defaults to <input>.prepared.png.",
)
@click.option(
    "--rotate", "rotate_degrees",
    type=float,
    default=0.0,
    show_default=True,
    help="Rotate the frame about its centre by this many degrees.",
)
@click.option(
    "--roi",
    default=None,
    metavar="X,Y,W,H",
    help="Scan box in screen coordinates (requires --screen).",
)
@click.option(
    "--screen",
    default=None,
    metavar="WxH",
    help="Size of the screen the --roi box was drawn on.",
)
@click.option(
    "--aspect-ratio",
    type=float,
    default=None,
    help="Width/height of the ROI crop (default 1.586, an ID card).",
)
@click.option("--fit", default=None, metavar="WxH", help="Scale to fit inside WxH (letterbox).")
@click.option("--fill", default=None, metavar="WxH", help="Scale to cover WxH and centre-crop.")
@click.option(
    "--grayscale/--no-grayscale",
    default=None,
    help="Desaturate before enhancement.",
)
@click.option("--blur", "blur_radius", type=float, default=None, help="Gaussian blur radius.")
@click.option(
    "--threshold",
    type=float,
    default=None,
    help="Emphasise text with a contrast stretch around this level (0 <= t < 1).",
)
@click.option(
    "--auto-adjust/--no-auto-adjust",
    default=None,
    help="Sample brightness and invert or stretch to normalise the background.",
)
@click.option(
    "--dpi",
    default=150,
    show_default=True,
    help="DPI for PDF rendering.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline decisions.")
@click.version_option(package_name="scanprep")
def main(
    input_path, output, rotate_degrees, roi, screen, aspect_ratio, fit, fill,
    grayscale, blur_radius, threshold, auto_adjust, dpi, verbose,
):
    """Prepare an image or PDF for text recognition.

    INPUT_PATH can be a .pdf or a .png, .jpg, .jpeg, .webp, .gif, .bmp or
    .tif file.  Each prepared frame is written as a PNG.
    """
    _setup_logging(verbose)

    roi_rect = _parse(Rect.parse, roi, "--roi")
    screen_size = _parse(Size.parse, screen, "--screen")
    fit_size = _parse(Size.parse, fit, "--fit")
    fill_size = _parse(Size.parse, fill, "--fill")
    if (roi_rect is None) != (screen_size is None):
        raise click.UsageError("--roi and --screen must be used together.")
    if fit_size is not None and fill_size is not None:
        raise click.UsageError("--fit and --fill are mutually exclusive.")

    try:
        config = PipelineConfig.from_env(
            aspect_ratio=aspect_ratio,
            blur_radius=blur_radius,
            threshold=threshold,
            grayscale=grayscale,
            auto_adjust=auto_adjust,
        )
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    suffix = input_path.suffix.lower()

    if suffix == ".pdf":
        with console.status("[cyan]Rendering PDF pages..."):
            frames = pdf_to_frames(input_path, dpi=dpi)
        console.print(f"[dim]{len(frames)} page(s) extracted[/dim]")
    elif suffix in IMAGE_EXTENSIONS:
        frames = [Frame.from_bytes(input_path.read_bytes())]
    else:
        console.print(f"[red]Unsupported file type:[/red] {suffix}")
        sys.exit(1)

    with console.status("[cyan]Preparing frames..."):
        prepared = [
            prepare_for_recognition(
                frame,
                config,
                rotate_degrees=rotate_degrees,
                roi=roi_rect,
                screen_size=screen_size,
                fit=fit_size,
                fill=fill_size,
            )
            for frame in frames
        ]

    if any(frame.is_empty() for frame in prepared):
        console.print("[red]Error:[/red] the scan box does not overlap the frame.")
        sys.exit(1)

    for path, frame in zip(_output_paths(input_path, output, len(prepared)), prepared):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(frame.to_png_bytes())
        console.print(f"[green]Written to {path}[/green]")


def _output_paths(input_path: Path, output: Optional[Path], count: int) -> list[Path]:
    """One PNG per frame: a file for single frames, numbered files for pages."""
    stem = input_path.stem
    if count == 1 and input_path.suffix.lower() != ".pdf":
        return [output or input_path.with_name(f"{stem}.prepared.png")]
    directory = output or input_path.parent
    return [directory / f"{stem}.page{i + 1}.prepared.png" for i in range(count)]
