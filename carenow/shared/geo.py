KM_PER_DEGREE = 111


def approximate_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Flat-earth distance estimate: one degree of latitude or longitude is
    treated as 111 km and the two deltas are added.
    """
    return (abs(lat1 - lat2) + abs(lng1 - lng2)) * KM_PER_DEGREE
