"""
Viewport Resolver
=================

Resolves the render geometry in two phases around the page load:

1. ``plan_geometry`` runs before the browser starts and fixes everything the
   caller supplied (height, full-page mode and, if given, width).
2. ``GeometryPlan.resolve`` runs after the content loaded and fills in the
   width from the document's natural content width when the caller left it out.
"""

from dataclasses import dataclass
from typing import Optional, Union

from html_renderer.core.exceptions import InvalidParameter
from html_renderer.models.schemas import ResolvedGeometry

MEASURE_CONTENT_WIDTH_JS = "() => document.body.scrollWidth"


def parse_dimension(
    value: Union[str, int, None], name: str, maximum: Optional[int] = None
) -> Optional[int]:
    """
    Parse an optional width/height value.

    Args:
        value: Raw value from a query parameter or header, or an int
        name: Parameter name used in the error message
        maximum: Optional upper bound

    Returns:
        The positive integer, or None if the value is absent

    Raises:
        InvalidParameter: If the value is not a positive integer
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise InvalidParameter(name)

    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = int(text, 10)
        except ValueError:
            raise InvalidParameter(name) from None

    if number <= 0:
        raise InvalidParameter(name)
    if maximum is not None and number > maximum:
        raise InvalidParameter(name, f"Invalid {name}. Must not exceed {maximum}.")
    return number


@dataclass(frozen=True)
class GeometryPlan:
    """Geometry known before the page is loaded."""

    width: Optional[int]
    height: Optional[int]
    full_page: bool

    @property
    def needs_measurement(self) -> bool:
        """Whether the width has to be measured from the loaded document."""
        return self.width is None

    def resolve(
        self, measured_width: Optional[int] = None, fallback_width: int = 800
    ) -> ResolvedGeometry:
        """
        Produce the final geometry.

        A caller-supplied width is used verbatim. Otherwise ``measured_width``
        is used; an empty document measures as 0 and falls back to
        ``fallback_width``.
        """
        width = self.width
        if width is None:
            if measured_width is None:
                raise ValueError("Width must be measured from the loaded document")
            width = int(measured_width) if measured_width > 0 else fallback_width

        return ResolvedGeometry(width=width, height=self.height, full_page=self.full_page)


def plan_geometry(width: Optional[int] = None, height: Optional[int] = None) -> GeometryPlan:
    """
    Pre-load phase of geometry resolution.

    Supplying a height disables full-page capture and the height is applied
    verbatim. Without one the page is captured at its full scroll height.

    Raises:
        InvalidParameter: If a supplied width or height is not positive
    """
    width = parse_dimension(width, "width")
    height = parse_dimension(height, "height")
    if height is not None:
        return GeometryPlan(width=width, height=height, full_page=False)
    return GeometryPlan(width=width, height=None, full_page=True)
