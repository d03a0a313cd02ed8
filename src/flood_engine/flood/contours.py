"""Marching-squares contour extraction.

Each 2x2 block of grid samples forms a square with corners tl, tr, br,
bl (north is "top").  The case code sets bit 1/2/4/8 for tl/tr/br/bl
when that corner is below the threshold; no-data corners never count
as below.  Cases 0 and 15 have no crossing.

Inside a square every contour segment runs from the point where the
counter-clockwise boundary walk leaves the below region to the point
where it re-enters, so the below side is always on the left.  Segments
share crossing points with their neighbours, which lets them be linked
into polylines without any lookup table; saddles (cases 5 and 10) are
resolved with the average of the four corners.
"""

import logging

from flood_engine.flood.grid import ElevationGrid
from flood_engine.flood.types import Contour, Point, Ring

logger = logging.getLogger(__name__)

# Edge keys: ("h", i, j) joins samples (i, j)-(i, j+1); ("v", i, j) joins (i, j)-(i+1, j)
Edge = tuple[str, int, int]

CASE_TL = 1
CASE_TR = 2
CASE_BR = 4
CASE_BL = 8
_SADDLES = (CASE_TL | CASE_BR, CASE_TR | CASE_BL)


def case_code(tl: bool, tr: bool, br: bool, bl: bool) -> int:
    """4-bit marching-squares case from per-corner "below" flags."""
    code = 0
    if tl:
        code |= CASE_TL
    if tr:
        code |= CASE_TR
    if br:
        code |= CASE_BR
    if bl:
        code |= CASE_BL
    return code


def interpolate(v0: float, v1: float, threshold: float) -> float:
    """Fraction along v0 -> v1 where the threshold is crossed, clamped to [0, 1]."""
    if v1 == v0:
        return 0.5
    t = (threshold - v0) / (v1 - v0)
    return min(1.0, max(0.0, t))


def signed_area(ring: Ring) -> float:
    """Shoelace area; positive for counter-clockwise rings."""
    total = 0.0
    for (x0, y0), (x1, y1) in zip(ring, ring[1:] + ring[:1]):
        total += x0 * y1 - x1 * y0
    return total / 2.0


class _Squares:
    """Per-threshold view over the grid's marching squares."""

    def __init__(self, grid: ElevationGrid, threshold: float) -> None:
        self.grid = grid
        self.threshold = threshold
        values = grid.values
        self.below = (values < threshold) & ~grid.no_data_mask
        self._points: dict[Edge, Point] = {}

    def corners(self, i: int, j: int) -> list[tuple[int, int]]:
        """Square (i, j) corners in counter-clockwise order: bl, br, tr, tl."""
        return [(i, j), (i, j + 1), (i + 1, j + 1), (i + 1, j)]

    def case(self, i: int, j: int) -> int:
        b = self.below
        return case_code(b[i + 1, j], b[i + 1, j + 1], b[i, j + 1], b[i, j])

    def point(self, edge: Edge) -> Point:
        cached = self._points.get(edge)
        if cached is not None:
            return cached

        grid = self.grid
        kind, i, j = edge
        lat, lng = grid.lat_lng(i, j)
        ni, nj = (i, j + 1) if kind == "h" else (i + 1, j)

        if grid.is_no_data(i, j) or grid.is_no_data(ni, nj):
            t = 0.5
        else:
            t = interpolate(grid.elevation(i, j), grid.elevation(ni, nj), self.threshold)

        if kind == "h":
            pt = (lng + t * grid.lng_step, lat)
        else:
            pt = (lng, lat + t * grid.lat_step)
        self._points[edge] = pt
        return pt

    def segments(self, i: int, j: int) -> list[tuple[Edge, Edge]]:
        """Oriented (exit_edge, entry_edge) segments for square (i, j)."""
        code = self.case(i, j)
        if code == 0 or code == 15:
            return []

        corners = self.corners(i, j)
        edges: list[Edge] = [("h", i, j), ("v", i, j + 1), ("h", i + 1, j), ("v", i, j)]

        # Walk the boundary counter-clockwise recording crossings
        crossings: list[tuple[str, Edge]] = []
        for k in range(4):
            a = self.below[corners[k]]
            b = self.below[corners[(k + 1) % 4]]
            if a and not b:
                crossings.append(("exit", edges[k]))
            elif b and not a:
                crossings.append(("entry", edges[k]))

        n = len(crossings)
        center_below = True
        if code in _SADDLES:
            vals = [self.grid.elevation(*c) for c in corners if not self.grid.is_no_data(*c)]
            center_below = sum(vals) / len(vals) < self.threshold

        result = []
        for idx, (kind, edge) in enumerate(crossings):
            if kind != "exit":
                continue
            step = 1 if center_below else -1
            _, entry = crossings[(idx + step) % n]
            result.append((edge, entry))
        return result


def extract_contours(grid: ElevationGrid, threshold: float) -> list[Contour]:
    """Trace every iso-line where the grid crosses *threshold*.

    Closed loops end with a repeat of their first point.  Lines that run
    off the grid edge are closed by joining their last point to their
    first; lines with fewer than three points are discarded.  Rings are
    returned counter-clockwise.  Tracing stops after rows x cols steps
    and force-closes whatever was collected.

    Returns:
        Contours in no particular order (empty on degenerate input).
    """
    rows, cols = grid.shape
    if rows < 2 or cols < 2:
        return []

    squares = _Squares(grid, threshold)

    # exit edge -> (entry edge, square)
    forward: dict[Edge, tuple[Edge, tuple[int, int]]] = {}
    backward: dict[Edge, Edge] = {}
    order: list[Edge] = []

    for i in range(rows - 1):
        for j in range(cols - 1):
            for start, end in squares.segments(i, j):
                forward[start] = (end, (i, j))
                backward[end] = start
                order.append(start)

    max_steps = rows * cols
    consumed: set[Edge] = set()
    contours: list[Contour] = []

    for seed_edge in order:
        if seed_edge in consumed:
            continue

        # Rewind to the start of an open line (or all the way round a loop)
        head = seed_edge
        for _ in range(max_steps):
            prev = backward.get(head)
            if prev is None or prev == seed_edge or prev in consumed:
                break
            head = prev

        points: list[Point] = [squares.point(head)]
        edge = head
        closed = False
        truncated = True
        for _ in range(max_steps):
            consumed.add(edge)
            step = forward.get(edge)
            if step is None:
                truncated = False
                break
            nxt, _square = step
            points.append(squares.point(nxt))
            if nxt == head:
                closed = True
                truncated = False
                break
            if nxt in consumed or nxt not in forward:
                consumed.add(nxt)
                truncated = False
                break
            edge = nxt

        if truncated:
            logger.warning(
                "Contour at %.2f did not close within %d steps; truncating", threshold, max_steps
            )

        contour = _finish(points, threshold, closed)
        if contour is not None:
            contours.append(contour)

    logger.debug("Extracted %d contours at threshold %.2f", len(contours), threshold)
    return contours


def _finish(points: list[Point], threshold: float, closed: bool) -> Contour | None:
    ring = points[:-1] if closed else list(points)
    if len(set(ring)) < 3:
        return None
    if signed_area(ring) < 0:
        ring.reverse()
    return Contour(points=ring + [ring[0]], threshold=threshold, closed=closed)
