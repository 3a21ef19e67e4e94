from __future__ import annotations

from typing import Union

from pydantic import Field

from scenegrid.utils.models import CamelModel

NO_TRANSITION_ECHO = "no_transition"


class DirectTransition(CamelModel):
    scene_id: int
    subscene_id: int
    message: str
    effects: dict = Field(default_factory=dict)
    echo: str = "grid_click"
    matrix_action: str | None = None
    navigate_to: str | None = None

    @property
    def is_no_op(self) -> bool:
        return self.echo == NO_TRANSITION_ECHO


class ZoomTransition(CamelModel):
    """Zoom onto ``zoom_to`` first, then apply ``next_action`` as a fresh direct result."""

    zoom_to: str
    message: str
    effects: dict = Field(default_factory=dict)
    next_action: DirectTransition


TransitionResult = Union[DirectTransition, ZoomTransition]


def no_transition(scene_id: int, subscene_id: int) -> DirectTransition:
    return DirectTransition(
        scene_id=scene_id,
        subscene_id=subscene_id,
        message="No transition defined",
        effects={},
        echo=NO_TRANSITION_ECHO,
    )


def final_target(result: TransitionResult) -> DirectTransition:
    if isinstance(result, ZoomTransition):
        return result.next_action
    return result
