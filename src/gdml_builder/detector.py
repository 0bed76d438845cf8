"""
Detector setup: chamber, detector pipe and shielding inside an air world.

Each part is built as its own Geometry (they share no solids or volumes)
and merged into the world geometry once complete. Stacking offsets come
from the chain calculator instead of hand-accumulated constants.
"""

from __future__ import annotations

import logging
from typing import Dict

from gdml_builder.chain import chain_offsets, flush_start_offset
from gdml_builder.config import SetupConfig
from gdml_builder.contracts import AssemblyRef, MaterialRef, Position, Rotation
from gdml_builder.geometry import Geometry
from gdml_builder.materials import MaterialCatalog

logger = logging.getLogger(__name__)

CHAMBER_ASSEMBLY = "chamberAssembly"
DETECTOR_PIPE_ASSEMBLY = "detectorPipeAssembly"
SHIELDING_ASSEMBLY = "shieldingAssembly"
WORLD_VOLUME = "world"


def _bind_materials(
    geometry: Geometry, config: SetupConfig, *names: str
) -> Dict[str, MaterialRef]:
    return {name: geometry.material(name, config.materials[name]) for name in names}


def build_chamber(config: SetupConfig, catalog: MaterialCatalog) -> Geometry:
    """Chamber body, backplate, readout, gas and cathode as one assembly."""
    dims = config.chamber
    geometry = Geometry(catalog, name="chamber")
    mats = _bind_materials(geometry, config, "Copper", "Teflon", "Kapton", "Mylar", "Gas", "Vacuum")

    # body + backplate
    chamber_body_solid = geometry.subtraction(
        geometry.box(dims.square_side, dims.square_side, dims.height, "chamberBodyBaseSolid"),
        geometry.tube(dims.radius, dims.height, "chamberBodyHoleSolid"),
        "chamberBodySolid",
    )
    chamber_body = geometry.volume(chamber_body_solid, mats["Copper"], "chamberBodyVolume")

    backplate_solid = geometry.box(
        dims.square_side, dims.square_side, dims.backplate_thickness, "chamberBackplateSolid"
    )
    backplate = geometry.volume(backplate_solid, mats["Copper"], "chamberBackplateVolume")

    teflon_wall_solid = geometry.tube(
        dims.radius, dims.height, "chamberTeflonWallSolid",
        rmin=dims.radius - dims.teflon_wall_thickness,
    )
    teflon_wall = geometry.volume(teflon_wall_solid, mats["Teflon"], "chamberTeflonWallVolume")

    # readout
    kapton_readout_solid = geometry.box(
        dims.square_side, dims.square_side, dims.readout_kapton_thickness, "kaptonReadoutSolid"
    )
    kapton_readout = geometry.volume(kapton_readout_solid, mats["Kapton"], "kaptonReadoutVolume")

    copper_readout_solid = geometry.box(
        dims.readout_plane_side, dims.readout_plane_side, dims.readout_copper_thickness,
        "copperReadoutSolid",
    )
    copper_readout = geometry.volume(copper_readout_solid, mats["Copper"], "copperReadoutVolume")

    # cathode
    cathode_disk_base = geometry.tube(
        dims.square_side / 2, dims.cathode_teflon_disk_thickness, "cathodeTeflonDiskBaseSolid",
        rmin=dims.cathode_teflon_disk_hole_radius,
    )
    cathode_copper_disk = geometry.tube(
        dims.cathode_copper_support_outer_radius, dims.cathode_copper_support_thickness,
        "cathodeCopperDiskSolid",
        rmin=dims.cathode_copper_support_inner_radius,
    )
    copper_in_disk = Position(z=flush_start_offset(
        dims.cathode_teflon_disk_thickness, dims.cathode_copper_support_thickness
    ))
    cathode_disk_solid = geometry.subtraction(
        cathode_disk_base, cathode_copper_disk, "cathodeTeflonDiskSolid", position=copper_in_disk
    )
    cathode_disk = geometry.volume(cathode_disk_solid, mats["Teflon"], "cathodeTeflonDiskVolume")

    cathode_window_solid = geometry.tube(
        dims.cathode_teflon_disk_hole_radius, dims.cathode_window_thickness, "cathodeWindowSolid"
    )
    cathode_window = geometry.volume(cathode_window_solid, mats["Mylar"], "cathodeWindowVolume")

    # cathode copper disk pattern
    pattern_line_aux = geometry.box(
        dims.cathode_pattern_line_width,
        dims.cathode_copper_support_inner_radius * 2,
        dims.cathode_copper_support_thickness,
        "cathodePatternLineAux",
    )
    pattern_central_hole = geometry.tube(
        dims.cathode_pattern_disk_radius,
        dims.cathode_copper_support_thickness * dims.cathode_pattern_hole_oversize,
        "cathodePatternCentralHole",
    )
    pattern_line = geometry.subtraction(pattern_line_aux, pattern_central_hole, "cathodePatternLine")
    pattern_disk = geometry.tube(
        dims.cathode_pattern_disk_radius, dims.cathode_copper_support_thickness,
        "cathodePatternDisk",
        rmin=dims.cathode_pattern_disk_radius - dims.cathode_pattern_line_width,
    )
    patterned_disk_solid = geometry.replicate(
        cathode_copper_disk,
        pattern_line,
        "cathodeCopperDiskFinal",
        count=dims.cathode_pattern_line_count,
        step=dims.cathode_pattern_step_deg,
        axis="z",
        hub=pattern_disk,
    )
    patterned_disk = geometry.volume(
        patterned_disk_solid, mats["Copper"], "cathodeCopperDiskVolume"
    )

    filling_base = geometry.tube(
        dims.cathode_teflon_disk_hole_radius, dims.cathode_teflon_disk_thickness,
        "cathodeFillingBaseSolid",
    )
    filling_solid = geometry.subtraction(
        filling_base, patterned_disk_solid, "cathodeFillingSolid", position=copper_in_disk
    )
    cathode_filling = geometry.volume(filling_solid, mats["Vacuum"], "cathodeFillingVolume")

    # gas
    readout_in_gas = Position(z=flush_start_offset(dims.height, dims.readout_copper_thickness))
    window_in_gas = Position(z=-flush_start_offset(dims.height, dims.cathode_window_thickness))
    readout_rotation = Rotation.about("z", dims.readout_rotation_deg)

    gas_original = geometry.tube(dims.gas_radius, dims.height, "gasSolidOriginal")
    gas_aux = geometry.subtraction(
        gas_original, copper_readout_solid, "gasSolidAux",
        position=readout_in_gas, rotation=readout_rotation,
    )
    gas_solid = geometry.subtraction(gas_aux, cathode_window_solid, "gasSolid", position=window_in_gas)
    gas = geometry.volume(gas_solid, mats["Gas"], "gasVolume")

    # readout stack below the chamber, cathode stack above it
    below = chain_offsets([dims.height, dims.readout_kapton_thickness, dims.backplate_thickness])
    above_disk = chain_offsets([dims.height, dims.cathode_teflon_disk_thickness])[1]
    above_copper = chain_offsets([dims.height, dims.cathode_copper_support_thickness])[1]

    chamber = geometry.assembly(CHAMBER_ASSEMBLY)
    geometry.place(chamber, gas, "gas")
    geometry.place(chamber, backplate, "chamberBackplate", position=Position(z=-below[2]))
    geometry.place(chamber, chamber_body, "chamberBody")
    geometry.place(chamber, teflon_wall, "chamberTeflonWall")
    geometry.place(chamber, kapton_readout, "kaptonReadout", position=Position(z=-below[1]))
    geometry.place(
        chamber, copper_readout, "copperReadout",
        position=readout_in_gas, rotation=readout_rotation,
    )
    geometry.place(chamber, cathode_window, "cathodeWindow", position=window_in_gas)
    geometry.place(chamber, cathode_disk, "cathodeTeflonDisk", position=Position(z=above_disk))
    geometry.place(chamber, cathode_filling, "cathodeFilling", position=Position(z=above_disk))
    geometry.place(
        chamber, patterned_disk, "cathodeCopperDiskPattern", position=Position(z=above_copper)
    )
    return geometry


def build_detector_pipe(config: SetupConfig, catalog: MaterialCatalog) -> Geometry:
    """Flanged copper pipe with a tapered vacuum bore."""
    dims = config.detector_pipe
    geometry = Geometry(catalog, name="detectorPipe")
    mats = _bind_materials(geometry, config, "Copper", "Vacuum")

    chamber_flange = geometry.tube(
        config.chamber.square_side / 2, dims.chamber_flange_thickness,
        "detectorPipeChamberFlangeSolid",
    )
    telescope_flange = geometry.tube(
        dims.telescope_flange_radius, dims.telescope_flange_thickness,
        "detectorPipeTelescopeFlangeSolid",
    )
    section_1 = geometry.tube(dims.outer_radius_1, dims.section_1_length, "detectorPipeSection1of2Solid")
    section_2 = geometry.tube(dims.outer_radius_2, dims.section_2_length, "detectorPipeSection2of2Solid")
    pipe_full = geometry.chain(
        [chamber_flange, section_1, section_2, telescope_flange], "detectorPipeNotEmpty"
    )

    bore_1 = geometry.tube(dims.bore_radius_1, dims.bore_section_1_length, "detectorPipeInside1of3Solid")
    bore_2 = geometry.tube(dims.bore_radius_2, dims.bore_section_2_length, "detectorPipeInside2of3Solid")
    bore_3 = geometry.tube(dims.bore_radius_3, dims.bore_section_3_length, "detectorPipeInside3of3Solid")
    cone_1 = geometry.cone(
        dims.bore_cone_length_1, dims.bore_radius_1, dims.bore_radius_2,
        "detectorPipeInsideCone1of3Solid",
    )
    cone_2 = geometry.cone(
        dims.bore_cone_length_2, dims.bore_radius_2, dims.bore_radius_3,
        "detectorPipeInsideCone2of3Solid",
    )
    cone_3 = geometry.cone(
        dims.bore_cone_length_3, dims.bore_radius_3, dims.bore_radius_telescope,
        "detectorPipeInsideCone3of3Solid",
    )
    bore = geometry.chain([bore_1, cone_1, bore_2, cone_2, bore_3, cone_3], "detectorPipeInside")

    bore_in_pipe = Position(z=flush_start_offset(
        dims.chamber_flange_thickness, dims.bore_section_1_length
    ))
    pipe_solid = geometry.subtraction(pipe_full, bore, "detectorPipeSolid", position=bore_in_pipe)
    pipe = geometry.volume(pipe_solid, mats["Copper"], "detectorPipeVolume")
    filling = geometry.volume(bore, mats["Vacuum"], "detectorPipeFillingVolume")

    assembly = geometry.assembly(DETECTOR_PIPE_ASSEMBLY)
    geometry.place(assembly, pipe, "detectorPipe")
    geometry.place(assembly, filling, "detectorPipeFilling", position=bore_in_pipe)
    return geometry


def build_shielding(config: SetupConfig, catalog: MaterialCatalog) -> Geometry:
    """Lead box with a shaft open towards the detector side."""
    dims = config.shielding
    chamber = config.chamber
    geometry = Geometry(catalog, name="shielding")
    mats = _bind_materials(geometry, config, "Lead")

    lead_box = geometry.box(dims.size_xy, dims.size_xy, dims.size_z, "leadBoxSolid")
    shaft = geometry.box(
        dims.shaft_short_side_x, dims.shaft_short_side_y, dims.shaft_long_side, "leadBoxShaftSolid"
    )
    shaft_in_box = Position(z=-flush_start_offset(dims.size_z, dims.shaft_long_side))
    lead_solid = geometry.subtraction(lead_box, shaft, "leadBoxWithShaftSolid", position=shaft_in_box)
    shielding = geometry.volume(lead_solid, mats["Lead"], "shieldingVolume")

    offset_z = (
        dims.detector_to_shielding_separation
        + chamber.height / 2
        + chamber.readout_kapton_thickness
        + chamber.backplate_thickness
    )
    assembly = geometry.assembly(SHIELDING_ASSEMBLY)
    geometry.place(assembly, shielding, "shielding20cm", position=Position(z=-offset_z))
    return geometry


def build_setup(config: SetupConfig, catalog: MaterialCatalog) -> Geometry:
    """Full setup: the three parts placed inside the air world."""
    geometry = Geometry(catalog, name="setup")
    air = geometry.material("Air", config.materials["Air"])

    for part in (
        build_chamber(config, catalog),
        build_detector_pipe(config, catalog),
        build_shielding(config, catalog),
    ):
        geometry.merge(part)

    world_box = geometry.box(config.world_size, config.world_size, config.world_size, "worldBox")
    world = geometry.set_world(geometry.volume(world_box, air, WORLD_VOLUME))

    # pipe's chamber flange rests on the cathode disk
    pipe_z = chain_offsets([
        config.chamber.height,
        config.chamber.cathode_teflon_disk_thickness,
        config.detector_pipe.chamber_flange_thickness,
    ])[2]
    geometry.place(world, AssemblyRef(CHAMBER_ASSEMBLY), "Chamber")
    geometry.place(world, AssemblyRef(DETECTOR_PIPE_ASSEMBLY), "DetectorPipe", position=Position(z=pipe_z))
    geometry.place(world, AssemblyRef(SHIELDING_ASSEMBLY), "Shielding")

    logger.info("Built setup geometry: %s", geometry.counts())
    return geometry
