import argparse
import logging
import os
from pprint import pprint
from typing import Optional

from wallcomp import scene as scene_io
from wallcomp.constants import ExportFormat, Quality
from wallcomp.exceptions import InvalidSceneError
from wallcomp.export import ExportRequest, Exporter
from wallcomp.pil_io import ImageLoader
from wallcomp.version import __version__

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="wallcomp command line utility.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Be more verbose.")
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Export a wall scene")
    export_parser.add_argument("input_file", help="Scene JSON file")
    export_parser.add_argument("output_file", help="Output file")
    export_parser.add_argument(
        "--format",
        choices=[f.value for f in ExportFormat] + ["jpg"],
        help="Output format (default: from the output file extension)",
    )
    export_parser.add_argument(
        "--quality",
        choices=[q.value for q in Quality],
        default=Quality.STANDARD.value,
        help="Resolution preset for raster formats",
    )
    export_parser.add_argument(
        "--workers", type=int, default=None, help="Image decode threads"
    )

    show_parser = subparsers.add_parser("show", help="Show the parsed scene")
    show_parser.add_argument("input_file", help="Scene JSON file")

    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> Optional[int]:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    package_logger = logging.getLogger("wallcomp")
    if args.verbose:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.INFO)

    try:
        scene = scene_io.load(args.input_file)
    except InvalidSceneError as e:
        logger.error("Invalid scene %s: %s" % (args.input_file, e))
        return 1

    if args.command == "export":
        base, ext = os.path.splitext(args.output_file)
        try:
            export_format = ExportFormat.from_name(args.format or ext or "png")
        except ValueError:
            logger.error("Unknown output format: %s" % (args.format or ext))
            return 1
        request = ExportRequest(
            format=export_format,
            quality=args.quality,
            file_name=os.path.basename(base),
        )
        # Relative image paths are resolved against the scene file.
        loader = ImageLoader(os.path.dirname(os.path.abspath(args.input_file)))
        result = Exporter(loader=loader, workers=args.workers).export(scene, request)
        output_file = args.output_file
        if result.fell_back:
            output_file = os.path.join(os.path.dirname(base), result.file_name)
            logger.warning(
                "Wrote %s instead of %s" % (result.format.value, result.requested_format.value)
            )
        with open(output_file, "wb") as f:
            f.write(result.data)
        for item in result.skipped_elements:
            logger.warning("Skipped %r: %s" % (item.element_id, item.reason))
        logger.info("Saved %s (%dx%d)" % (output_file, result.size[0], result.size[1]))

    elif args.command == "show":
        pprint(scene)

    return None


if __name__ == "__main__":
    main()
