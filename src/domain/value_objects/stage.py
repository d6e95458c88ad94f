from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    SIN_UBICACION = "sinUbicacion"
    CRIA = "cria"
    ENGORDE = "engorde"
    MATADERO = "matadero"
    SECADERO = "secadero"
    DISTRIBUCION = "distribucion"
    FINALIZADO = "finalizado"

    @property
    def is_physical(self) -> bool:
        """Whether zones can be tagged with this stage."""
        return self in PHYSICAL_STAGES

    @property
    def position(self) -> int:
        return STAGE_ORDER.index(self)


STAGE_ORDER: tuple[Stage, ...] = (
    Stage.SIN_UBICACION,
    Stage.CRIA,
    Stage.ENGORDE,
    Stage.MATADERO,
    Stage.SECADERO,
    Stage.DISTRIBUCION,
    Stage.FINALIZADO,
)

PHYSICAL_STAGES: tuple[Stage, ...] = (
    Stage.CRIA,
    Stage.ENGORDE,
    Stage.MATADERO,
    Stage.SECADERO,
    Stage.DISTRIBUCION,
)

# Stages whose stays become phases of a traceability certificate.
# Entering distribution is the labelling moment, so it is not a phase itself.
TRACEABLE_STAGES: tuple[Stage, ...] = (
    Stage.CRIA,
    Stage.ENGORDE,
    Stage.MATADERO,
    Stage.SECADERO,
)

NEXT_STAGE: dict[Stage, Stage | None] = {
    Stage.SIN_UBICACION: Stage.CRIA,
    Stage.CRIA: Stage.ENGORDE,
    Stage.ENGORDE: Stage.MATADERO,
    Stage.MATADERO: Stage.SECADERO,
    Stage.SECADERO: Stage.DISTRIBUCION,
    Stage.DISTRIBUCION: Stage.FINALIZADO,
    Stage.FINALIZADO: None,
}


def next_stage(stage: Stage) -> Stage | None:
    return NEXT_STAGE[stage]


def allowed_targets(current: Stage, entry_stages: tuple[Stage, ...] = (Stage.CRIA,)) -> set[Stage]:
    """Stages a lot sitting in `current` may move to.

    A lot without location may enter production through any configured entry
    stage; every other stage only advances to its immediate successor.
    """
    if current is Stage.SIN_UBICACION:
        return {stage for stage in entry_stages if stage.is_physical}
    following = NEXT_STAGE[current]
    return {following} if following is not None else set()


def parse_stage(value: str) -> Stage:
    try:
        return Stage(value)
    except ValueError as exc:
        raise ValueError(f"Unknown stage '{value}'") from exc
