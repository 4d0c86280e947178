# backend/campusbot/similarity.py
"""
Normalized edit-distance similarity used by every matcher.
"""


def edit_distance(s1: str, s2: str) -> int:
    """Levenshtein distance with unit costs, computed over a single DP row."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    # row is sized by the shorter string
    costs = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, 1):
        diag = costs[0]
        costs[0] = i
        for j, c2 in enumerate(s2, 1):
            up = costs[j]
            if c1 == c2:
                costs[j] = diag
            else:
                costs[j] = min(diag, up, costs[j - 1]) + 1
            diag = up
    return costs[-1]


def similarity(a: str, b: str) -> float:
    """
    Case-insensitive similarity in [0, 1].

    (len(longer) - edit_distance) / len(longer); two empty strings count as identical.
    """
    s1 = a.lower()
    s2 = b.lower()
    if s1 == s2:
        return 1.0

    longer, shorter = (s1, s2) if len(s1) > len(s2) else (s2, s1)
    if len(longer) == 0:
        return 1.0

    return (len(longer) - edit_distance(longer, shorter)) / len(longer)
