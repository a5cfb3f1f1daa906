"""
modules/optimization/shortest_paths.py
----------------------------------------
Shortest-path searches over the travel-cost matrix.

Both searches take a weight function w(i, j) -> float | None; None means
there is no edge (UNAVAILABLE cell) and the pair is skipped.

  dijkstra        — single source, heap based, O(E log V)
  floyd_warshall  — all pairs, O(V³); only used for ≤ 10 candidates
  path_from_next  — index path out of the floyd_warshall next-hop table
"""

from __future__ import annotations
import heapq
import math
from dataclasses import dataclass
from typing import Callable, Optional

WeightFn = Callable[[int, int], Optional[float]]


@dataclass(frozen=True)
class ShortestPaths:
    """Distances from one source."""
    source: int
    dist: tuple[float, ...]

    def reachable(self, target: int) -> bool:
        return not math.isinf(self.dist[target])


def dijkstra(n: int, source: int, weight: WeightFn) -> ShortestPaths:
    dist = [math.inf] * n
    dist[source] = 0.0
    heap = [(0.0, source)]
    done = [False] * n

    while heap:
        d, u = heapq.heappop(heap)
        if done[u]:
            continue
        done[u] = True
        for v in range(n):
            if v == u or done[v]:
                continue
            w = weight(u, v)
            if w is None:
                continue
            alt = d + w
            if alt < dist[v]:
                dist[v] = alt
                heapq.heappush(heap, (alt, v))

    return ShortestPaths(source=source, dist=tuple(dist))


def floyd_warshall(n: int, weight: WeightFn) -> tuple[list[list[float]], list[list[Optional[int]]]]:
    """
    All-pairs shortest distances.

    Returns:
        (dist, nxt) where nxt[i][j] is the first hop on the i→j path
        (None if unreachable).
    """
    dist = [[math.inf] * n for _ in range(n)]
    nxt: list[list[Optional[int]]] = [[None] * n for _ in range(n)]
    for i in range(n):
        dist[i][i] = 0.0
        nxt[i][i] = i
        for j in range(n):
            if i == j:
                continue
            w = weight(i, j)
            if w is not None:
                dist[i][j] = w
                nxt[i][j] = j

    for k in range(n):
        dk = dist[k]
        for i in range(n):
            dik = dist[i][k]
            if math.isinf(dik):
                continue
            di = dist[i]
            for j in range(n):
                alt = dik + dk[j]
                if alt < di[j]:
                    di[j] = alt
                    nxt[i][j] = nxt[i][k]
    return dist, nxt


def path_from_next(nxt: list[list[Optional[int]]], source: int, target: int) -> list[int]:
    """Source→target index path read from floyd_warshall's nxt table; [] if unreachable."""
    if nxt[source][target] is None:
        return []
    path = [source]
    node = source
    while node != target:
        node = nxt[node][target]
        path.append(node)
    return path
