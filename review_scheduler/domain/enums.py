from enum import IntEnum


class ScoreBand(IntEnum):
    FAIL = 0
    MARGINAL = 1
    PASS = 2


SCORE_BAND_LABELS = {
    ScoreBand.FAIL: "Keep practicing",
    ScoreBand.MARGINAL: "Good work",
    ScoreBand.PASS: "Excellent",
}
