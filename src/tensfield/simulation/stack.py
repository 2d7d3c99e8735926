"""
Tissue Stack
============
Converts layer thicknesses into cumulative depth boundaries.

Each layer starts where the previous one ends (skin -> fat -> muscle) and
bone fills whatever remains of the fixed tissue block. When the soft layers
alone are deeper than the block, the bone thickness clamps to zero and the
`overflow` flag is raised instead of an exception.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple
import logging

from tensfield.config import TOTAL_BLOCK_DEPTH
from tensfield.model.tissue import TissueConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TissueStack:
    skin_end: float
    fat_end: float
    muscle_end: float
    bone_start: float
    bone_thickness: float
    total_block_depth: float
    overflow: bool = False

    @property
    def total_tissue_depth(self) -> float:
        """Depth of the soft tissue above the bone."""
        return self.muscle_end

    def layers(self) -> List[Tuple[str, float, float]]:
        """(name, start, end) of each layer from the surface down."""
        return [
            ("skin", 0.0, self.skin_end),
            ("fat", self.skin_end, self.fat_end),
            ("muscle", self.fat_end, self.muscle_end),
            ("bone", self.bone_start, self.bone_start + self.bone_thickness),
        ]


def compute_tissue_stack(
    tissue: TissueConfig,
    total_block_depth: float = TOTAL_BLOCK_DEPTH,
) -> TissueStack:
    skin = max(0.0, tissue.skin_thickness)
    fat = max(0.0, tissue.fat_thickness)
    muscle = max(0.0, tissue.muscle_thickness)
    total = max(0.0, total_block_depth)

    skin_end = skin
    fat_end = skin_end + fat
    muscle_end = fat_end + muscle
    bone_start = muscle_end
    bone_thickness = max(0.0, total - bone_start)

    overflow = bone_start > total
    if overflow:
        logger.warning(
            f"Tissue stack overflow: soft layers reach {bone_start:.3f}, "
            f"block depth is {total:.3f}. Bone thickness clamped to 0."
        )

    return TissueStack(
        skin_end=skin_end,
        fat_end=fat_end,
        muscle_end=muscle_end,
        bone_start=bone_start,
        bone_thickness=bone_thickness,
        total_block_depth=total,
        overflow=overflow,
    )
