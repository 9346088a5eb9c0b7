"""Weather theme classification.

Maps a free-text condition label (``"Light rain"``, ``"Thunderstorms"``, …) to
one of the display themes in ``core.models.Theme``.

Keyword groups are checked in order and the first match wins, so
``"Cloudy with thunderstorms"`` is stormy rather than cloudy. ``Theme.NIGHT``
is part of the enum but no condition keyword produces it.
"""

from __future__ import annotations

from core.models import Theme

#: Ordered (keywords, theme) pairs; earlier groups take precedence.
_KEYWORD_GROUPS: tuple[tuple[tuple[str, ...], Theme], ...] = (
    (("sun", "clear"), Theme.SUNNY),
    (("rain", "drizzle"), Theme.RAINY),
    (("storm", "thunder"), Theme.STORMY),
    (("snow",), Theme.SNOWY),
    (("cloud",), Theme.CLOUDY),
)


def classify(condition: str) -> Theme:
    """Classify a weather condition string into a ``Theme``.

    Args:
        condition: The condition label reported for the city.

    Returns:
        The first matching ``Theme``, or ``Theme.DEFAULT`` when nothing matches.

    Examples:
        >>> classify("Mostly Sunny")
        <Theme.SUNNY: 'sunny'>
        >>> classify("Thunderstorms expected")
        <Theme.STORMY: 'stormy'>
        >>> classify("Fog")
        <Theme.DEFAULT: 'default'>
    """
    lowered = (condition or "").lower()
    for keywords, theme in _KEYWORD_GROUPS:
        if any(keyword in lowered for keyword in keywords):
            return theme
    return Theme.DEFAULT
