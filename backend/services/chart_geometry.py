"""SVG geometry for the epic pie and column charts.

Angles are in degrees, 0 pointing up and increasing clockwise, on a
fixed-radius circle in a 200x200 view box.
"""

import math

PIE_CENTER_X = 100
PIE_CENTER_Y = 100
PIE_RADIUS = 80

# An SVG arc whose end point equals its start point draws nothing
FULL_CIRCLE_SWEEP = 359.9


def _fmt(value: float) -> str:
    # + 0.0 turns -0.0 into 0.0
    return f"{round(value, 3) + 0.0:g}"


def polar_to_cartesian(cx: float, cy: float, radius: float, angle: float) -> tuple:
    """Point on the circle at `angle` degrees, 0 up and clockwise."""
    radians = math.radians(angle - 90)
    return cx + radius * math.cos(radians), cy + radius * math.sin(radians)


def full_circle_path(cx: float, cy: float, radius: float, start_angle: float = 0) -> str:
    """Closed circle drawn as two half-circle arcs."""
    x0, y0 = polar_to_cartesian(cx, cy, radius, start_angle)
    x1, y1 = polar_to_cartesian(cx, cy, radius, start_angle + 180)
    r = _fmt(radius)
    return (
        f"M {_fmt(x0)} {_fmt(y0)} "
        f"A {r} {r} 0 1 1 {_fmt(x1)} {_fmt(y1)} "
        f"A {r} {r} 0 1 1 {_fmt(x0)} {_fmt(y0)} Z"
    )


def slice_path(cx: float, cy: float, radius: float, start_angle: float, sweep: float) -> str:
    """Wedge from the center spanning `sweep` degrees from `start_angle`."""
    x0, y0 = polar_to_cartesian(cx, cy, radius, start_angle)
    x1, y1 = polar_to_cartesian(cx, cy, radius, start_angle + sweep)
    large_arc = 1 if sweep > 180 else 0
    r = _fmt(radius)
    return (
        f"M {_fmt(cx)} {_fmt(cy)} "
        f"L {_fmt(x0)} {_fmt(y0)} "
        f"A {r} {r} 0 {large_arc} 1 {_fmt(x1)} {_fmt(y1)} Z"
    )


def layout_pie(segments: list, cx: float = PIE_CENTER_X, cy: float = PIE_CENTER_Y,
               radius: float = PIE_RADIUS) -> list:
    """Lay out pie slices in segment order.

    Args:
        segments: Dicts with key and percentage (label/count are carried over)

    Returns:
        List of {key, label, percentage, startAngle, sweepAngle, pathData}.
        Empty segments keep their place with an empty path.
    """
    slices = []
    angle = 0.0

    for segment in segments:
        sweep = (segment.get("percentage") or 0) / 100 * 360

        if sweep >= FULL_CIRCLE_SWEEP:
            path = full_circle_path(cx, cy, radius, angle)
        elif sweep > 0:
            path = slice_path(cx, cy, radius, angle, sweep)
        else:
            path = ""

        slices.append({
            "key": segment.get("key"),
            "label": segment.get("label"),
            "percentage": segment.get("percentage") or 0,
            "startAngle": round(angle, 4),
            "sweepAngle": round(sweep, 4),
            "pathData": path
        })
        angle += sweep

    return slices


def layout_bars(segments: list) -> list:
    """Column heights as a linear percentage of the summed counts."""
    total = sum(segment.get("count") or 0 for segment in segments)
    return [
        {
            "key": segment.get("key"),
            "label": segment.get("label"),
            "count": segment.get("count") or 0,
            "heightPercent": (segment.get("count") or 0) / total * 100 if total > 0 else 0
        }
        for segment in segments
    ]
