"""Style resolution: reusable style classes merged with per-block overrides."""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from quizcentral.schemas.quiz_schema import StylingProps

logger = logging.getLogger(__name__)

# Style id -> style properties (padding, font_size, bg_color, ...)
StyleRegistry = Mapping[str, Mapping[str, Any]]


def resolve_style(
    styling: Optional[Union[StylingProps, Mapping[str, Any]]],
    registry: Optional[StyleRegistry] = None,
) -> Dict[str, Any]:
    """
    Merge a block's styling into one flat property map.

    Classes are applied in order, then overrides; later keys win.

    Args:
        styling: The block's `props.styling`
        registry: Reusable style classes

    Returns:
        Resolved style properties (empty when the block has no styling)
    """
    if styling is None:
        return {}
    if not isinstance(styling, StylingProps):
        styling = StylingProps.model_validate(styling)

    resolved: Dict[str, Any] = {}
    for style_id in styling.classes:
        properties = (registry or {}).get(style_id)
        if properties is None:
            logger.debug(f"Unknown style class skipped: {style_id}")
            continue
        resolved.update(properties)

    resolved.update(styling.overrides)
    return resolved
