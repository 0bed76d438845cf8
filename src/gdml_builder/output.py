"""Write a finished geometry to disk together with a JSON manifest."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from gdml_builder.gdml_writer import to_gdml
from gdml_builder.geometry import Geometry

logger = logging.getLogger(__name__)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(content)


def manifest_path_for(gdml_path: Path) -> Path:
    return gdml_path.with_suffix(".manifest.json")


@dataclass
class GeometryManifest:
    """What was written, for audit and for comparing two runs."""

    geometry: str
    gdml_path: str
    sha256: str
    world: str
    counts: Dict[str, int] = field(default_factory=dict)
    physical_instances: int = 0
    catalog_source: str = ""
    created_utc: str = ""
    manifest_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("manifest_path")
        return payload


def write_geometry(
    geometry: Geometry, path: Union[str, Path], manifest: bool = True
) -> GeometryManifest:
    """Render `geometry` to GDML at `path`; optionally write the manifest beside it.

    The document is fully rendered before anything touches the disk, so a
    geometry error never leaves a partial file behind.
    """
    text = to_gdml(geometry)
    instances = geometry.scene.flatten()

    gdml_path = Path(path)
    write_text(gdml_path, text)
    logger.info("Wrote %s (%d bytes)", gdml_path, len(text.encode("utf-8")))

    result = GeometryManifest(
        geometry=geometry.name,
        gdml_path=str(gdml_path),
        sha256=sha256_text(text),
        world=geometry.scene.require_world().name,
        counts=geometry.counts(),
        physical_instances=len(instances),
        catalog_source=geometry.materials.catalog.source,
        created_utc=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    )
    if manifest:
        target = manifest_path_for(gdml_path)
        write_json(target, result.to_dict())
        result.manifest_path = str(target)
        logger.info("Wrote manifest %s", target)
    return result
