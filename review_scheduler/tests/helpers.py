from datetime import timedelta

from review_scheduler.domain.records import ReviewRecord


class RacingStore:
    """Wraps a store so a rival writer commits right after each of our loads."""

    def __init__(self, inner, rival_commits, when):
        self.inner = inner
        self.rival_commits = rival_commits
        self.when = when

    def load(self, owner_id, item_id):
        record = self.inner.load(owner_id, item_id)
        if self.rival_commits > 0:
            self.rival_commits -= 1
            base = record or ReviewRecord.initial(owner_id, item_id)
            rival = base.advance(self.when, 1, self.when + timedelta(days=1))
            assert self.inner.compare_and_swap(rival, base.revision)
        return record

    def __getattr__(self, name):
        return getattr(self.inner, name)
