from __future__ import annotations

from dataclasses import dataclass

from geods_poi.core.errors import ValidationError


@dataclass(frozen=True, slots=True)
class Rectangle:
    """
    Axis-aligned lon/lat rectangle, in `bbox` parameter order.

    No min <= max check is made: an inverted rectangle is accepted
    and simply matches nothing at query time.
    """
    left: float    # min longitude
    bottom: float  # min latitude
    right: float   # max longitude
    top: float     # max latitude


def parse_bbox(raw: str) -> Rectangle:
    """
    Parse "left,bottom,right,top" into a Rectangle.
    """
    parts = raw.split(",")
    if len(parts) != 4:
        raise ValidationError("bbox must have 4 comma-separated values")

    values: list[float] = []
    for part in parts:
        try:
            # float() also takes digit-group underscores ("1_000"); bbox does not.
            if "_" in part:
                raise ValueError(part)
            values.append(float(part.strip()))
        except ValueError:
            raise ValidationError(f"invalid bbox value '{part}': not a valid float") from None

    left, bottom, right, top = values
    return Rectangle(left=left, bottom=bottom, right=right, top=top)
