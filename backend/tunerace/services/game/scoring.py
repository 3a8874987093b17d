CORRECT_GUESS_POINTS = 100


def normalize_guess(raw) -> str:
    """Case-fold and trim a guess so it can be compared to a stored answer."""
    if not isinstance(raw, str):
        return ''
    return raw.strip().casefold()


def is_correct(raw, track) -> bool:
    if track is None:
        return False
    return normalize_guess(raw) == track.answer
