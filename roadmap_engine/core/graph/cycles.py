from __future__ import annotations

from roadmap_engine.core.graph.dependency_graph import DependencyGraph


WHITE, GRAY, BLACK = 0, 1, 2


def has_cycle_if_added(graph: DependencyGraph, from_id: str, to_id: str) -> bool:
    """Would adding ``from_id -> to_id`` close a cycle?

    ``graph`` must already be acyclic. The new edge closes a cycle exactly when
    ``to_id`` already reaches ``from_id``, so a single DFS from ``to_id`` is enough.
    """

    if from_id == to_id:
        return True

    seen: set[str] = set()
    stack: list[str] = [to_id]
    while stack:
        cur = stack.pop()
        if cur == from_id:
            return True
        if cur in seen:
            continue
        seen.add(cur)
        for nxt in graph.neighbors(cur):
            if nxt not in seen:
                stack.append(nxt)
    return False


def has_cycle_if_added_exhaustive(graph: DependencyGraph, from_id: str, to_id: str) -> bool:
    """Same answer as :func:`has_cycle_if_added`, by scanning the whole simulated graph."""
    if from_id == to_id:
        return True
    return has_cycle(graph.with_proposed_edge(from_id, to_id))


def has_cycle(graph: DependencyGraph) -> bool:
    return bool(find_cycles(graph))


def find_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Return every distinct cycle found by a white/grey/black DFS.

    Each cycle is reported as a closed path, e.g. ``["A", "B", "A"]``.
    Nodes are visited in sorted order so the output is stable.
    """

    state: dict[str, int] = {nid: WHITE for nid in graph.nodes}
    emitted: set[str] = set()
    out: list[list[str]] = []

    for root in sorted(graph.nodes):
        if state[root] != WHITE:
            continue

        # Iterative DFS; each frame is (node, remaining neighbours).
        path: list[str] = [root]
        frames: list[tuple[str, list[str]]] = [(root, sorted(graph.neighbors(root)))]
        state[root] = GRAY
        while frames:
            node, pending = frames[-1]
            if not pending:
                frames.pop()
                path.pop()
                state[node] = BLACK
                continue

            nxt = pending.pop(0)
            nxt_state = state.get(nxt, WHITE)
            if nxt_state == GRAY:
                cycle = path[path.index(nxt):] + [nxt]
                key = "->".join(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append(cycle)
            elif nxt_state == WHITE:
                state[nxt] = GRAY
                path.append(nxt)
                frames.append((nxt, sorted(graph.neighbors(nxt))))

    return out
