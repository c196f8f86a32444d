"""Case stage definitions and ordering per category."""

from __future__ import annotations

from casecore.db.enums import CaseStatus


# Categories that follow court proceedings
LEGAL_CATEGORIES = frozenset({"Familiar", "Civil"})

LEGAL_STAGE_ORDER = (
    "etapa_inicial",
    "notificacion",
    "audiencia_preliminar",
    "audiencia_juicio",
    "sentencia",
)

DEFAULT_STAGE_ORDER = (
    "intake",
    "initial_consultation",
    "document_review",
    "action_plan",
    "resolution",
    "closed",
)

STAGE_LABELS = {
    "etapa_inicial": "Etapa inicial",
    "notificacion": "Notificación",
    "audiencia_preliminar": "Audiencia preliminar",
    "audiencia_juicio": "Audiencia de juicio",
    "sentencia": "Sentencia",
    "intake": "Intake",
    "initial_consultation": "Initial consultation",
    "document_review": "Document review",
    "action_plan": "Action plan",
    "resolution": "Resolution",
    "closed": "Closed",
}


def stages_for_category(category: str) -> tuple[str, ...]:
    """Return the ordered stage list a case of this category moves through."""
    if category in LEGAL_CATEGORIES:
        return LEGAL_STAGE_ORDER
    return DEFAULT_STAGE_ORDER


def initial_stage(category: str) -> str:
    return stages_for_category(category)[0]


def is_valid_stage(category: str, stage: str) -> bool:
    return stage in stages_for_category(category)


def stage_index(category: str, stage: str) -> int:
    """Position of a stage in its category order. Raises ValueError if unknown."""
    return stages_for_category(category).index(stage)


def status_for_stage(category: str, stage: str) -> CaseStatus:
    """First stage means the case is still open; any later stage means work started."""
    if stage_index(category, stage) == 0:
        return CaseStatus.OPEN
    return CaseStatus.ACTIVE
