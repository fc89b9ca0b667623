from .enums import ScoreBand
from .records import validate_score
from ..config import DEFAULT_CONFIG, FIRST_INTERVAL_DAYS, RETRY_INTERVAL_DAYS
from ..errors import InvariantViolation


def classify_score(score: float, config=DEFAULT_CONFIG) -> ScoreBand:
    score = validate_score(score)
    if score < config.fail_threshold:
        return ScoreBand.FAIL
    if score < config.pass_threshold:
        return ScoreBand.MARGINAL
    return ScoreBand.PASS


def next_interval(current_interval_days: int, score: float, attempt_count: int,
                  config=DEFAULT_CONFIG) -> int:
    if current_interval_days < 0:
        raise InvariantViolation(f"negative interval reached the policy: {current_interval_days}")
    if attempt_count < 0:
        raise InvariantViolation(f"negative attempt count reached the policy: {attempt_count}")

    band = classify_score(score, config)

    if attempt_count == 0:
        return FIRST_INTERVAL_DAYS

    if band == ScoreBand.FAIL:
        return RETRY_INTERVAL_DAYS

    if band == ScoreBand.MARGINAL:
        return min(max(1, current_interval_days), config.max_interval_days)

    proposed = max(1, round(current_interval_days * config.growth_factor))
    # Passing never shrinks the interval unless it already exceeds the cap
    return min(max(proposed, current_interval_days), config.max_interval_days)
