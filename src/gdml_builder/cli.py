"""Command line entry point: build the detector setup and write it as GDML."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from gdml_builder.config import SetupConfig, load_config
from gdml_builder.detector import build_setup
from gdml_builder.errors import GeometryError
from gdml_builder.materials import MaterialCatalog
from gdml_builder.output import write_geometry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build the detector setup geometry and write it as GDML"
    )
    parser.add_argument(
        "--output", default=None, help="GDML output path (default: config output_path)"
    )
    parser.add_argument(
        "--config", default=None, help="JSON file overriding default dimensions/materials"
    )
    parser.add_argument(
        "--catalog-url", default=None, help="URL of the GDML materials catalog"
    )
    parser.add_argument(
        "--catalog-file",
        default=None,
        help="Local GDML materials catalog (skips the download)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Catalog download timeout in seconds",
    )
    parser.add_argument(
        "--no-manifest", action="store_true", help="Do not write the JSON manifest"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def load_catalog(args: argparse.Namespace, config: SetupConfig) -> MaterialCatalog:
    if args.catalog_file:
        return MaterialCatalog.from_file(args.catalog_file)
    return MaterialCatalog.fetch(
        args.catalog_url or config.catalog_url, timeout=max(1.0, float(args.timeout))
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else SetupConfig()
        output = args.output or config.output_path
        catalog = load_catalog(args, config)
        geometry = build_setup(config, catalog)
        manifest = write_geometry(geometry, output, manifest=not args.no_manifest)
    except GeometryError as exc:
        logger.error("Geometry build failed: %s", exc)
        return 1
    except (ValueError, OSError) as exc:
        logger.error("Setup failed: %s", exc)
        return 1

    print(f"GDML written: {manifest.gdml_path}")
    print(f"SHA-256: {manifest.sha256}")
    if manifest.manifest_path:
        print(f"Manifest: {manifest.manifest_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
