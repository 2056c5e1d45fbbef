"""
Command Line Interface for derivative generation.
"""

import argparse
import logging
from typing import List, Optional

from .batch import BatchConverter
from .config import ImgOptConfig
from .conversion_progress import ConversionProgress
from .derivative import TargetFormat
from .encoders import default_encoders
from .orchestrator import ConversionOrchestrator
from .scanner import SourceScanner


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('imgopt')


def get_config(args: argparse.Namespace) -> ImgOptConfig:
    """Get configuration from environment and CLI overrides."""
    config = ImgOptConfig.from_env()

    if getattr(args, 'web_root', None):
        config.web_root = args.web_root
    if getattr(args, 'webp_dir', None):
        config.webp_dir = args.webp_dir
    if getattr(args, 'avif_dir', None):
        config.avif_dir = args.avif_dir
    if getattr(args, 'size', None):
        config.sizes = args.size
    if getattr(args, 'recreate', False):
        config.recreate = True
    if getattr(args, 'disable', False):
        config.disabled = True
    if getattr(args, 'deadline', None):
        config.deadline_seconds = args.deadline

    return config


def get_formats(args: argparse.Namespace) -> List[TargetFormat]:
    names = getattr(args, 'format', None) or ['webp']
    formats = []
    for name in names:
        fmt = TargetFormat.from_name(name)
        if fmt not in formats:
            formats.append(fmt)
    return formats


def add_conversion_arguments(parser: argparse.ArgumentParser) -> None:
    """Add derivative options to a parser."""
    group = parser.add_argument_group('Derivatives')
    group.add_argument('--web-root', metavar='PATH',
                       help='Directory sources are relative to (overrides IMGOPT_WEB_ROOT)')
    group.add_argument('--format', action='append', choices=[f.value for f in TargetFormat],
                       help='Target format(s) (default: webp)')
    group.add_argument('-s', '--size', action='append', type=int, metavar='WIDTH',
                       help='Resized width(s) to generate besides full size')
    group.add_argument('--recreate', action='store_true',
                       help='Regenerate derivatives even if they are fresh')
    group.add_argument('--disable', action='store_true',
                       help='Do not generate derivatives')
    group.add_argument('--webp-dir', help='WEBP subdirectory (default: /webp)')
    group.add_argument('--avif-dir', help='AVIF subdirectory (default: /avif)')
    group.add_argument('--deadline', type=float, metavar='SECONDS',
                       help='Time budget per derivative quality search')
    group.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')


def cmd_convert(args: argparse.Namespace) -> int:
    """Convert a single source and print derivative paths."""
    logger = setup_logging(args.verbose)
    config = get_config(args)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    orchestrator = ConversionOrchestrator(config, logger=logger)

    try:
        requests = [orchestrator.build_request(args.src, target_format=fmt) for fmt in get_formats(args)]
    except ValueError as e:
        logger.error(str(e))
        return 1

    for result in orchestrator.convert_many(requests):
        print(f"{result.target_format.name}:")
        for key, outcome in result.outcomes.items():
            label = f"{key}w" if key else "full"
            if outcome.is_usable:
                print(f"  {label} -> {outcome.short_path}")
            else:
                print(f"  {label} -> original ({outcome})")

    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    """Convert every source under the web root."""
    logger = setup_logging(args.verbose)
    config = get_config(args)

    if not config.web_root:
        logger.error("Batch conversion needs --web-root or IMGOPT_WEB_ROOT")
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    logger.info(f"Web root: {config.web_root}")
    logger.info(f"Sizes: {config.sizes or 'full size only'}")
    if args.limit:
        logger.info(f"Test mode: limiting to {args.limit} sources")

    try:
        formats = get_formats(args)
        orchestrator = ConversionOrchestrator(config, logger=logger)
        scanner = SourceScanner(
            config.web_root,
            exclude_dirs=[config.webp_dir, config.avif_dir],
            logger=logger,
        )
        converter = BatchConverter(
            orchestrator,
            formats=formats,
            cadence=args.cadence,
            workers=args.workers,
            dry_run=args.dry_run,
            force_recreate=config.recreate,
            logger=logger,
        )

        progress = None
        if not args.quiet:
            progress = ConversionProgress(show_files=args.show_files, logger=logger)

        stats = converter.run(scanner.scan(), progress=progress, limit=args.limit)

        if not args.quiet:
            print()
            print(f"Encoded: {stats.encoded}")
            print(f"Reused: {stats.reused}")
            print(f"Skipped: {stats.skipped}")
            for reason, count in sorted(stats.reason_counts().items()):
                print(f"  {reason}: {count}")
            print(f"Errors: {stats.errors}")
            print(f"Saved: {stats.bytes_saved:,} bytes")
            print(f"Time: {stats.elapsed_seconds:.1f}s")

        return 0 if stats.errors == 0 else 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Batch conversion failed: {e}")
        return 1


def cmd_probe(args: argparse.Namespace) -> int:
    """Print which target formats can be encoded."""
    setup_logging(args.verbose)

    for fmt, encoder in default_encoders().items():
        status = "available" if encoder.is_available() else "UNAVAILABLE"
        print(f"{fmt.name}: {status}")

    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='imgopt',
        description='WEBP/AVIF derivative generation for PNG and JPEG images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  imgopt convert /images/product/extra.png --web-root /var/www -s 576 -s 768
  imgopt batch --web-root /var/www --format webp --format avif
  imgopt probe

Derivatives are written next to each source, e.g. /images/product/webp/extra.webp
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    convert_parser = subparsers.add_parser('convert', help='Get or create derivatives of one image')
    convert_parser.add_argument('src', help='Source image (relative to the web root if given)')
    add_conversion_arguments(convert_parser)

    batch_parser = subparsers.add_parser('batch', help='Convert every image under the web root')
    batch_parser.add_argument('-c', '--cadence', type=float, default=0.0, help='Seconds between sources')
    batch_parser.add_argument('-w', '--workers', type=int, default=1, help='Worker threads (default: 1)')
    batch_parser.add_argument('-n', '--dry-run', action='store_true', help='Show what would be done')
    batch_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    batch_parser.add_argument('--show-files', action='store_true',
                              help='Print each derivative as processed with result')
    batch_parser.add_argument('--limit', type=int, metavar='N',
                              help='Limit to N sources (for testing)')
    add_conversion_arguments(batch_parser)

    probe_parser = subparsers.add_parser('probe', help='Show available encoders')
    probe_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'convert':
        return cmd_convert(parsed_args)
    elif parsed_args.command == 'batch':
        return cmd_batch(parsed_args)
    elif parsed_args.command == 'probe':
        return cmd_probe(parsed_args)

    return 1
