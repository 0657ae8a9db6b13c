# src/haulengine/pathfinding.py
"""
Reference grid pathfinder.

Multi-goal A* over per-zone terrain grids. Each zone is an ``(height, width)``
``uint8`` array of :data:`PLAIN`, :data:`SWAMP` or :data:`WALL` tiles indexed
``[y, x]``; movement is 8-connected and never leaves the origin's zone.

The search stops as soon as any goal is within its range, so the returned
path ends next to (or on) the goal rather than necessarily on it. When the
expansion budget ``cost_model.max_ops`` runs out, or no goal is reachable,
the partial result is flagged ``incomplete``.
"""

from __future__ import annotations

import heapq
from typing import Sequence

import numpy as np

from haulengine import logging
from haulengine.roles import Position
from haulengine.typing import Terrain2D, ZoneName
from haulengine.world import CostModel, Goal, PathResult

log = logging.getLogger(__name__)

PLAIN = 0
SWAMP = 1
WALL = 2

DEFAULT_ZONE_SIZE = 50

_NEIGHBOURS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)  # fmt: skip


class GridPathFinder:
    """
    A* pathfinder over NumPy terrain grids.

    Parameters
    ----------
    terrain : dict[str, ndarray], optional
        Terrain grid per zone. Zones without an entry are open plain of
        ``default_size`` x ``default_size`` tiles.
    default_size : int
        Side length of implicit plain zones.

    Attributes
    ----------
    searches : int
        Number of :meth:`search` calls served; useful to check the
        one-query-per-carrier-per-round budget.
    """

    def __init__(
        self,
        terrain: dict[ZoneName, Terrain2D] | None = None,
        *,
        default_size: int = DEFAULT_ZONE_SIZE,
    ) -> None:
        self._terrain: dict[ZoneName, Terrain2D] = {}
        self.default_size = default_size
        self.searches = 0
        for zone, grid in (terrain or {}).items():
            self.set_terrain(zone, grid)

    def set_terrain(self, zone: ZoneName, grid: np.ndarray) -> None:
        grid = np.asarray(grid, dtype=np.uint8)
        if grid.ndim != 2:
            raise ValueError(f"Terrain of zone {zone} must be 2-D, got {grid.ndim}-D")
        if np.any(grid > WALL):
            raise ValueError(f"Terrain of zone {zone} has unknown tile codes")
        self._terrain[zone] = grid

    def terrain(self, zone: ZoneName) -> Terrain2D:
        grid = self._terrain.get(zone)
        if grid is None:
            grid = np.zeros((self.default_size, self.default_size), dtype=np.uint8)
            self._terrain[zone] = grid
        return grid

    def search(
        self,
        origin: Position,
        goals: Sequence[Goal],
        cost_model: CostModel,
    ) -> PathResult:
        self.searches += 1
        targets = [(g.pos.x, g.pos.y, g.range) for g in goals if g.pos.zone == origin.zone]
        if not targets:
            return PathResult(path=[], incomplete=True)

        grid = self.terrain(origin.zone)
        height, width = grid.shape
        step_cost = np.array(
            [cost_model.plain_cost, cost_model.swamp_cost, 0], dtype=np.int64
        )
        min_step = int(min(cost_model.plain_cost, cost_model.swamp_cost))

        def heuristic(x: int, y: int) -> int:
            best = min(max(abs(x - gx), abs(y - gy)) - r for gx, gy, r in targets)
            return max(best, 0) * min_step

        def reached(x: int, y: int) -> bool:
            return any(max(abs(x - gx), abs(y - gy)) <= r for gx, gy, r in targets)

        start = (origin.x, origin.y)
        if reached(*start):
            return PathResult(path=[], incomplete=False)

        open_set: list[tuple[int, int, tuple[int, int]]] = []
        counter = 0
        heapq.heappush(open_set, (heuristic(*start), counter, start))
        came_from: dict[tuple[int, int], tuple[int, int]] = {}
        g_score = {start: 0}
        closed: set[tuple[int, int]] = set()

        best_node = start
        best_h = heuristic(*start)
        ops = 0
        goal_node: tuple[int, int] | None = None

        while open_set:
            ops += 1
            if ops > cost_model.max_ops:
                log.deep(
                    "Path search from %s exhausted %d ops", origin, cost_model.max_ops
                )
                break

            _, _, node = heapq.heappop(open_set)
            if node in closed:
                continue
            closed.add(node)
            x, y = node
            if reached(x, y):
                goal_node = node
                break

            h = heuristic(x, y)
            if h < best_h:
                best_node, best_h = node, h

            for dx, dy in _NEIGHBOURS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < width and 0 <= ny < height):
                    continue
                tile = grid[ny, nx]
                if tile == WALL:
                    continue
                tentative = g_score[node] + int(step_cost[tile])
                key = (nx, ny)
                if tentative < g_score.get(key, 1 << 62):
                    came_from[key] = node
                    g_score[key] = tentative
                    counter += 1
                    heapq.heappush(open_set, (tentative + heuristic(nx, ny), counter, key))

        end = goal_node if goal_node is not None else best_node
        path: list[Position] = []
        node = end
        while node != start:
            path.append(Position(node[0], node[1], origin.zone))
            node = came_from[node]
        path.reverse()
        return PathResult(path=path, incomplete=goal_node is None)
