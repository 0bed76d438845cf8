"""
Dimension tables and run settings for the detector setup.

Every dimension is an explicit field (mm, degrees); quantities that follow
from them are properties. Offsets between stacked parts are not stored here:
`detector` derives them with the chain calculator.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

from gdml_builder.materials import DEFAULT_CATALOG_URL


@dataclass(frozen=True)
class ChamberDimensions:
    """Chamber body, backplate, readout and cathode."""

    # Body + backplate
    height: float = 30.0
    diameter: float = 102.0
    backplate_thickness: float = 15.0
    square_side: float = 134.0
    teflon_wall_thickness: float = 1.0

    # Readout
    readout_kapton_thickness: float = 0.5
    readout_copper_thickness: float = 0.2
    readout_plane_side: float = 60.0
    readout_rotation_deg: float = 45.0

    # Cathode
    cathode_teflon_disk_hole_radius: float = 15.0
    cathode_teflon_disk_thickness: float = 5.0
    cathode_copper_support_outer_radius: float = 45.0
    cathode_copper_support_inner_radius: float = 8.5
    cathode_copper_support_thickness: float = 1.0
    cathode_window_thickness: float = 0.004
    cathode_pattern_disk_radius: float = 4.25
    cathode_pattern_line_width: float = 0.3
    cathode_pattern_line_count: int = 4
    cathode_pattern_step_deg: float = 45.0
    cathode_pattern_hole_oversize: float = 1.1

    @property
    def radius(self) -> float:
        return self.diameter / 2

    @property
    def gas_radius(self) -> float:
        return self.radius - self.teflon_wall_thickness


@dataclass(frozen=True)
class DetectorPipeDimensions:
    """Copper pipe between chamber and telescope, with its tapered bore."""

    total_length: float = 491.0

    # Outside
    chamber_flange_thickness: float = 14.0
    telescope_flange_thickness: float = 18.0
    telescope_flange_radius: float = 75.0
    telescope_side_span: float = 150.0  # second section + telescope flange
    outer_radius_1: float = 46.0
    outer_radius_2: float = 54.0

    # Inside (bore)
    bore_radius_1: float = 21.5
    bore_radius_2: float = 34.0
    bore_radius_3: float = 42.5
    bore_radius_telescope: float = 54.0
    bore_cone_length_1: float = 21.65
    bore_cone_length_2: float = 14.72
    bore_cone_length_3: float = 9.0
    bore_front_span: float = 201.0  # section 1 + cone 1
    bore_rear_span: float = 290.0   # section 2 up to the telescope end
    bore_last_span: float = 115.0   # section 3 + cone 3

    @property
    def section_2_length(self) -> float:
        return self.telescope_side_span - self.telescope_flange_thickness

    @property
    def section_1_length(self) -> float:
        return (
            self.total_length
            - self.telescope_flange_thickness
            - self.chamber_flange_thickness
            - self.section_2_length
        )

    @property
    def bore_section_1_length(self) -> float:
        return self.bore_front_span - self.bore_cone_length_1

    @property
    def bore_section_3_length(self) -> float:
        return self.bore_last_span - self.bore_cone_length_3

    @property
    def bore_section_2_length(self) -> float:
        return (
            self.bore_rear_span
            - self.bore_section_3_length
            - self.bore_cone_length_3
            - self.bore_cone_length_2
        )


@dataclass(frozen=True)
class ShieldingDimensions:
    """Lead box with a shaft for the detector."""

    size_xy: float = 590.0
    size_z: float = 540.0
    shaft_short_side_x: float = 194.0
    shaft_short_side_y: float = 170.0
    shaft_long_side: float = 340.0
    detector_to_shielding_separation: float = -60.0


def _default_materials() -> Mapping[str, str]:
    return MappingProxyType({
        "Gas": "G4_Ar",
        "Vacuum": "G4_Galactic",
        "Copper": "G4_Cu",
        "Lead": "G4_Pb",
        "Teflon": "G4_TEFLON",
        "Kapton": "G4_KAPTON",
        "Mylar": "G4_MYLAR",
        "Air": "G4_AIR",
    })


@dataclass(frozen=True)
class SetupConfig:
    """Everything the setup builder and the CLI need for one run."""

    chamber: ChamberDimensions = field(default_factory=ChamberDimensions)
    detector_pipe: DetectorPipeDimensions = field(default_factory=DetectorPipeDimensions)
    shielding: ShieldingDimensions = field(default_factory=ShieldingDimensions)
    world_size: float = 4000.0
    materials: Mapping[str, str] = field(default_factory=_default_materials)
    catalog_url: str = DEFAULT_CATALOG_URL
    output_path: str = "Setup.gdml"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SetupConfig":
        """Defaults overridden by `data`; unknown keys are an error."""
        config = cls()
        sections = {
            "chamber": config.chamber,
            "detector_pipe": config.detector_pipe,
            "shielding": config.shielding,
        }
        top_level = {f.name for f in fields(cls)}
        changes: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in top_level:
                raise ValueError(f"unknown config key: {key}")
            if key in sections:
                changes[key] = _override(sections[key], value, key)
            elif key == "materials":
                merged = dict(config.materials)
                merged.update(value)
                changes[key] = MappingProxyType(merged)
            else:
                changes[key] = value
        return replace(config, **changes)


def _override(section: Any, values: Mapping[str, Any], prefix: str) -> Any:
    known = {f.name for f in fields(section)}
    for key in values:
        if key not in known:
            raise ValueError(f"unknown config key: {prefix}.{key}")
    return replace(section, **values)


def load_config(path: str) -> SetupConfig:
    """Read JSON overrides for the default setup."""
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    with config_path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a JSON object")
    return SetupConfig.from_dict(data)
