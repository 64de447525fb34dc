"""Pipeline stages, one class per step, registered in execution order."""

from __future__ import annotations

from pipectl.domain.stages import STAGE_ORDER, StageName
from pipectl.stages.analysis import AnalysisStage
from pipectl.stages.archive import ArchiveStage
from pipectl.stages.backend import BackendBuildStage, BackendTestStage
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome
from pipectl.stages.checkout import CheckoutStage
from pipectl.stages.container import ContainerStage
from pipectl.stages.frontend import FrontendBuildStage
from pipectl.stages.structure import ValidateStage
from pipectl.stages.tools import ToolsStage

STAGE_CLASSES: dict[StageName, type[Stage]] = {
    cls.name: cls
    for cls in (
        ToolsStage,
        CheckoutStage,
        ValidateStage,
        BackendBuildStage,
        AnalysisStage,
        BackendTestStage,
        FrontendBuildStage,
        ArchiveStage,
        ContainerStage,
    )
}


def build_pipeline() -> list[Stage]:
    """Fresh stage instances in execution order."""
    return [STAGE_CLASSES[name]() for name in STAGE_ORDER]


__all__ = [
    "STAGE_CLASSES",
    "Stage",
    "StageContext",
    "StageError",
    "StageOutcome",
    "build_pipeline",
]
