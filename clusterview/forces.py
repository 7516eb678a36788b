"""Force kernels for the layout simulation.

All kernels work in place on ``(n, 2)`` float64 position / velocity arrays and
are compiled with numba. Repulsion follows the classic many-body model: the
velocity change is ``strength * alpha * d / |d|^2`` with ``|d|^2`` floored at
``distance_min2``.
"""
from __future__ import annotations

import numba as nb
import numpy as np

MAX_DEPTH = 48


@nb.njit(cache=True)
def seed_kernels(seed):
    np.random.seed(seed)


@nb.njit(cache=True)
def _jiggle():
    return (np.random.random() - 0.5) * 1e-6


# ---------------------------------------------------------------------------- #
# Links                                                                        #
# ---------------------------------------------------------------------------- #
@nb.njit(cache=True)
def apply_links(pos, vel, src, tgt, distance, strength, bias, alpha):
    for k in range(src.shape[0]):
        s = src[k]
        t = tgt[k]
        x = pos[t, 0] + vel[t, 0] - pos[s, 0] - vel[s, 0]
        y = pos[t, 1] + vel[t, 1] - pos[s, 1] - vel[s, 1]
        if x == 0.0:
            x = _jiggle()
        if y == 0.0:
            y = _jiggle()
        l = np.sqrt(x * x + y * y)
        l = (l - distance[k]) / l * alpha * strength[k]
        x *= l
        y *= l
        b = bias[k]
        vel[t, 0] -= x * b
        vel[t, 1] -= y * b
        vel[s, 0] += x * (1.0 - b)
        vel[s, 1] += y * (1.0 - b)


# ---------------------------------------------------------------------------- #
# Many-body, exact                                                             #
# ---------------------------------------------------------------------------- #
@nb.njit(cache=True)
def _pair_push(vel, i, x, y, s, alpha, dmin2, dmax2):
    l = x * x + y * y
    if l >= dmax2:
        return
    if x == 0.0:
        x = _jiggle()
        l += x * x
    if y == 0.0:
        y = _jiggle()
        l += y * y
    if l < dmin2:
        l = np.sqrt(dmin2 * l)
    w = s * alpha / l
    vel[i, 0] += x * w
    vel[i, 1] += y * w


@nb.njit(cache=True)
def apply_many_body_exact(pos, vel, strength, alpha, dmin2, dmax2):
    n = pos.shape[0]
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            _pair_push(vel, i, pos[j, 0] - pos[i, 0], pos[j, 1] - pos[i, 1],
                       strength[j], alpha, dmin2, dmax2)


# ---------------------------------------------------------------------------- #
# Many-body, Barnes-Hut                                                        #
# ---------------------------------------------------------------------------- #
@nb.njit(cache=True)
def _grow_children(a):
    b = np.empty((a.shape[0] * 2, 4), np.int64)
    b[:] = -1
    b[: a.shape[0]] = a
    return b


@nb.njit(cache=True)
def _grow_heads(a):
    b = np.empty(a.shape[0] * 2, np.int64)
    b[:] = -1
    b[: a.shape[0]] = a
    return b


@nb.njit(cache=True)
def _grow_geom(a):
    b = np.zeros((a.shape[0] * 2, 3))
    b[: a.shape[0]] = a
    return b


@nb.njit(cache=True)
def _is_leaf(child, node):
    return (child[node, 0] == -1 and child[node, 1] == -1
            and child[node, 2] == -1 and child[node, 3] == -1)


@nb.njit(cache=True)
def build_quadtree(pos, strength):
    """Return ``(count, child, head, nxt, geom, value, comx, comy)``.

    ``geom`` rows are ``(cx, cy, half)`` of each square cell; leaves keep a
    linked list of point indices (``head`` -> ``nxt``) so coincident points
    never force endless subdivision.
    """
    n = pos.shape[0]
    cap = 4 * n + 4
    child = np.empty((cap, 4), np.int64)
    child[:] = -1
    head = np.empty(cap, np.int64)
    head[:] = -1
    geom = np.zeros((cap, 3))
    nxt = np.empty(n, np.int64)
    nxt[:] = -1

    x0 = pos[:, 0].min()
    x1 = pos[:, 0].max()
    y0 = pos[:, 1].min()
    y1 = pos[:, 1].max()
    half = max(x1 - x0, y1 - y0) * 0.5
    if half <= 0.0:
        half = 1.0
    geom[0, 0] = (x0 + x1) * 0.5
    geom[0, 1] = (y0 + y1) * 0.5
    geom[0, 2] = half * 1.0001
    count = 1

    for i in range(n):
        node = 0
        depth = 0
        while True:
            if _is_leaf(child, node):
                j = head[node]
                if j == -1:
                    head[node] = i
                    break
                if (pos[j, 0] == pos[i, 0] and pos[j, 1] == pos[i, 1]) or depth >= MAX_DEPTH:
                    nxt[i] = j
                    head[node] = i
                    break
                # split: the resident chain moves one level down
                if count >= child.shape[0]:
                    child = _grow_children(child)
                    head = _grow_heads(head)
                    geom = _grow_geom(geom)
                h = geom[node, 2] * 0.5
                qx = 1 if pos[j, 0] >= geom[node, 0] else 0
                qy = 1 if pos[j, 1] >= geom[node, 1] else 0
                c = count
                count += 1
                geom[c, 0] = geom[node, 0] + (h if qx else -h)
                geom[c, 1] = geom[node, 1] + (h if qy else -h)
                geom[c, 2] = h
                head[c] = j
                head[node] = -1
                child[node, qx + 2 * qy] = c

            qx = 1 if pos[i, 0] >= geom[node, 0] else 0
            qy = 1 if pos[i, 1] >= geom[node, 1] else 0
            c = child[node, qx + 2 * qy]
            if c == -1:
                if count >= child.shape[0]:
                    child = _grow_children(child)
                    head = _grow_heads(head)
                    geom = _grow_geom(geom)
                h = geom[node, 2] * 0.5
                c = count
                count += 1
                geom[c, 0] = geom[node, 0] + (h if qx else -h)
                geom[c, 1] = geom[node, 1] + (h if qy else -h)
                geom[c, 2] = h
                head[c] = i
                child[node, qx + 2 * qy] = c
                break
            node = c
            depth += 1

    # children are always created after their parent, so a reverse sweep
    # aggregates bottom-up
    weight = np.zeros(count)
    value = np.zeros(count)
    comx = np.zeros(count)
    comy = np.zeros(count)
    for node in range(count - 1, -1, -1):
        sw = 0.0
        sv = 0.0
        sx = 0.0
        sy = 0.0
        if _is_leaf(child, node):
            j = head[node]
            while j != -1:
                w = abs(strength[j])
                sw += w
                sv += strength[j]
                sx += w * pos[j, 0]
                sy += w * pos[j, 1]
                j = nxt[j]
        else:
            for q in range(4):
                c = child[node, q]
                if c != -1:
                    sw += weight[c]
                    sv += value[c]
                    sx += weight[c] * comx[c]
                    sy += weight[c] * comy[c]
        weight[node] = sw
        value[node] = sv
        if sw > 0.0:
            comx[node] = sx / sw
            comy[node] = sy / sw
        else:
            comx[node] = geom[node, 0]
            comy[node] = geom[node, 1]
    return count, child, head, nxt, geom, value, comx, comy


@nb.njit(cache=True)
def apply_many_body_barnes_hut(pos, vel, strength, alpha, theta2, dmin2, dmax2):
    n = pos.shape[0]
    if n < 2:
        return
    count, child, head, nxt, geom, value, comx, comy = build_quadtree(pos, strength)
    stack = np.empty(count + 4, np.int64)
    for i in range(n):
        stack[0] = 0
        top = 1
        while top > 0:
            top -= 1
            node = stack[top]
            if value[node] == 0.0:
                continue
            if not _is_leaf(child, node):
                x = comx[node] - pos[i, 0]
                y = comy[node] - pos[i, 1]
                width = 2.0 * geom[node, 2]
                if width * width / theta2 < x * x + y * y:
                    _pair_push(vel, i, x, y, value[node], alpha, dmin2, dmax2)
                    continue
                for q in range(4):
                    c = child[node, q]
                    if c != -1:
                        stack[top] = c
                        top += 1
                continue
            j = head[node]
            while j != -1:
                if j != i:
                    _pair_push(vel, i, pos[j, 0] - pos[i, 0], pos[j, 1] - pos[i, 1],
                               strength[j], alpha, dmin2, dmax2)
                j = nxt[j]


# ---------------------------------------------------------------------------- #
# Centering                                                                    #
# ---------------------------------------------------------------------------- #
def apply_center(pos: np.ndarray, center: tuple[float, float], strength: float) -> None:
    if len(pos) == 0:
        return
    shift = (pos.mean(axis=0) - np.asarray(center, dtype=float)) * strength
    pos -= shift
