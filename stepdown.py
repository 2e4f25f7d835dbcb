#!/usr/bin/env python3
"""
Stepdown: fit an image inside a bounding box with progressive downscaling.

This is the orchestrator that wires the codec engine and the processors
into one asynchronous process() call.

Pipeline stages:
1. Validate the declared media type and pick the encode target
2. Decode (codec engine, off the event loop)
3. Resolve EXIF orientation and draw the upright image
4. Progressive downscale to fit max_width x max_height
5. Re-encode
6. Size guard: keep the original bytes if re-encoding did not help

Usage:
    import asyncio
    from stepdown import CompressionPipeline
    from models import InputFile

    pipeline = CompressionPipeline({"max_width": 1024, "max_height": 1024})
    outcome = asyncio.run(pipeline.process(InputFile.from_path("photo.jpg")))

Or from command line:
    python stepdown.py photo.jpg small.jpg --max-width 1024
"""

import asyncio
import re
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from engines.codec import get_codec
from errors import CompressionError, ImageDecodeError, UnsupportedInputTypeError
from models import (
    DEFAULT_FORMAT,
    CompressionConfig,
    CompressionOutcome,
    Dimension,
    FillMode,
    FormatFallback,
    ImageFormat,
    ImagePayload,
    InputFile,
    load_config,
)
from processors import ProgressiveScaler, RasterSurface, choose, resolve
from utilities import Print, format_bytes, memory_usage, set_debug

IMAGE_TYPE_PATTERN = re.compile(r"^image/", re.IGNORECASE)


class PipelineState(Enum):
    IDLE = "Idle"
    DECODING = "Decoding"
    ORIENTATION_RESOLVING = "OrientationResolving"
    SCALING = "Scaling"
    ENCODING = "Encoding"
    GUARDING = "Guarding"
    DONE = "Done"
    FAILED = "Failed"


def compute_scale(config: CompressionConfig, dimension: Dimension) -> float:
    """Largest scale <= 1 that fits dimension inside the configured bounds."""
    return min(1, config.max_width / dimension.width, config.max_height / dimension.height)


def select_output_format(media_type: str) -> Tuple[ImageFormat, Optional[FormatFallback]]:
    """
    Encode target for a media type.

    Returns:
        (ImageFormat, FormatFallback or None)

    Raises:
        UnsupportedInputTypeError: If media_type is not an image type
    """
    if not IMAGE_TYPE_PATTERN.match(media_type or ""):
        raise UnsupportedInputTypeError(media_type)

    fmt = ImageFormat.from_media_type(media_type)
    if fmt is None:
        return DEFAULT_FORMAT, FormatFallback(media_type, DEFAULT_FORMAT)
    return fmt, None


class CompressionPipeline:
    """
    Main orchestrator for Stepdown image compression.

    The instance only holds its immutable config and a stateless codec, so
    concurrent process() calls never share mutable state.

    Attributes:
        config: Immutable CompressionConfig
        codec: Codec engine used for decode/encode
    """

    def __init__(self, options: Optional[dict] = None, codec: str = "pillow", codec_config: Optional[dict] = None):
        """
        Initialize pipeline.

        Args:
            options: Recognized keys max_width, max_height, quality
                     (maxWidth/maxHeight accepted); anything else is ignored
            codec: Name of a registered codec engine (default: pillow)
            codec_config: Codec-specific configuration

        Raises:
            ValueError: If an option is invalid or the codec is unknown
        """
        if isinstance(options, CompressionConfig):
            self.config = options
        else:
            self.config = CompressionConfig.from_options(options)
        self.codec = get_codec(codec, codec_config)

        Print("DEBUG", (
            f"Pipeline ready: bounds {self.config.max_width}x{self.config.max_height}, "
            f"quality {self.config.quality}, codec {self.codec.name}"
        ))

    async def process(self, input_file: InputFile) -> CompressionOutcome:
        """
        Compress one image.

        Args:
            input_file: Bytes plus declared media type

        Returns:
            CompressionOutcome with the original (source) and the shipped (dist) payload

        Raises:
            UnsupportedInputTypeError: Media type is not image/*; nothing is decoded
            ImageDecodeError: Bytes could not be loaded as an image
        """
        state = PipelineState.IDLE
        Print("STARTING", f"Processing {input_file.name} ({input_file.media_type}, {format_bytes(input_file.size)})")

        output_format, fallback = select_output_format(input_file.media_type)
        if fallback is not None:
            Print("WARNING", fallback.message)

        # =====================================================================
        # Decode
        # =====================================================================
        state = self._transition(state, PipelineState.DECODING)
        try:
            raw = await asyncio.to_thread(self.codec.decode, input_file.payload, input_file.media_type)
        except ImageDecodeError as e:
            self._transition(state, PipelineState.FAILED)
            Print("FAILURE", str(e))
            raise

        raw_dimension = Dimension(raw.width, raw.height)

        # =====================================================================
        # Orientation
        # =====================================================================
        state = self._transition(state, PipelineState.ORIENTATION_RESOLVING)
        tag = await asyncio.to_thread(self.codec.read_orientation, raw)
        canonical_dimension, transform = resolve(raw_dimension, tag)

        fill_mode = FillMode.for_format(output_format)
        canvas = RasterSurface.create(canonical_dimension.width, canonical_dimension.height)
        canvas.clear(fill_mode)
        canvas.draw_transformed(raw, transform)

        # =====================================================================
        # Scale
        # =====================================================================
        state = self._transition(state, PipelineState.SCALING)
        scale = compute_scale(self.config, canonical_dimension)
        result = ProgressiveScaler(fill_mode).scale(canvas, scale)
        Print("INFO", f"Scale {scale:.4f}: {canonical_dimension} -> {result.dimension}")

        # =====================================================================
        # Encode
        # =====================================================================
        state = self._transition(state, PipelineState.ENCODING)
        candidate = self.codec.encode(result.image, output_format, self.config.quality)

        # =====================================================================
        # Size guard
        # =====================================================================
        state = self._transition(state, PipelineState.GUARDING)
        source = ImagePayload(input_file.payload, raw_dimension.width, raw_dimension.height)
        dist = choose(input_file.payload, raw_dimension, candidate, result.dimension)
        if dist.payload is input_file.payload:
            dist = source
            Print("INFO", (
                f"Re-encoded {format_bytes(len(candidate))} is larger than original "
                f"{format_bytes(source.size)}, keeping original"
            ))

        outcome = CompressionOutcome(source=source, dist=dist, output_format=output_format, fallback=fallback)

        self._transition(state, PipelineState.DONE)
        Print("COMPLETED", (
            f"{input_file.name}: {format_bytes(source.size)} -> {format_bytes(dist.size)} "
            f"({dist.width}x{dist.height}, {outcome.compression_ratio:.1f}x)"
        ))
        Print("DEBUG", memory_usage())
        return outcome

    async def process_path(self, path: Path, media_type: Optional[str] = None) -> CompressionOutcome:
        """Read path from disk and process it."""
        return await self.process(InputFile.from_path(path, media_type))

    @staticmethod
    def _transition(current: PipelineState, new: PipelineState) -> PipelineState:
        Print("STATE", f"{current.value} -> {new.value}")
        return new


def main():
    """Command-line entry point for quick testing."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Stepdown: fit an image inside a bounding box with progressive downscaling',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python stepdown.py photo.jpg small.jpg
  python stepdown.py photo.jpg small.jpg --max-width 1024 --max-height 768
  python stepdown.py scan.png scan_small.png --config config/config.json
        """
    )

    parser.add_argument('input', type=Path, help='Input image file')
    parser.add_argument('output', type=Path, help='Output image file')
    parser.add_argument('--max-width', type=int, default=None, help='Maximum width (default: 1600)')
    parser.add_argument('--max-height', type=int, default=None, help='Maximum height (default: 1600)')
    parser.add_argument('--quality', type=float, default=None, help='Lossy quality in (0, 1] (default: 0.92)')
    parser.add_argument('--config', type=Path, default=None, help='Path to config.json')
    parser.add_argument('--debug', action='store_true', help='Show debug output')

    args = parser.parse_args()
    set_debug(args.debug)

    try:
        config = load_config(args.config) if args.config is not None else {}
        options = dict(config.get('compression', {}))
        for key in ('max_width', 'max_height', 'quality'):
            value = getattr(args, key)
            if value is not None:
                options[key] = value

        pipeline = CompressionPipeline(options, codec_config=config.get('codecs', {}).get('pillow'))
        outcome = asyncio.run(pipeline.process_path(args.input))

        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(outcome.dist.payload)

        summary = outcome.to_dict()
        Print("SUCCESS", f"Saved: {args.output}")
        Print("INFO", f"Output: {summary['dist']['width']}x{summary['dist']['height']}, {format_bytes(summary['dist']['size'])}")
        if summary['kept_original']:
            Print("INFO", "Original bytes kept (re-encoding was larger)")
        return 0

    except FileNotFoundError as e:
        Print("FAILURE", str(e))
        return 1
    except (CompressionError, ValueError) as e:
        Print("FAILURE", str(e))
        return 2
    except KeyboardInterrupt:
        Print("WARNING", "Interrupted by user")
        return 130
    except Exception as e:
        Print("FAILURE", f"Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    import sys
    sys.exit(main())
