from pydantic import BaseModel


class EntityRecord(BaseModel):
    """Success/trial counts for one entity (e.g. hits and at-bats for a player).

    Counts are not constrained here; they are checked when the posterior is
    computed so a bad record fails on its own.
    """

    entity_id: str
    successes: int
    trials: int

    @property
    def ratio(self) -> float:
        return self.successes / self.trials


class PriorFit(BaseModel):
    shape1: float
    shape2: float
    method: str
    n_used: int | None = None

    @property
    def mean(self) -> float:
        return self.shape1 / (self.shape1 + self.shape2)


class EntityInterval(BaseModel):
    entity_id: str
    successes: int
    trials: int
    ratio: float
    shape1_posterior: float
    shape2_posterior: float
    point_estimate: float
    low: float
    high: float
    shrinkage: float


class EntityFailure(BaseModel):
    entity_id: str
    error: str


class IntervalReport(BaseModel):
    prior: PriorFit
    level: float
    results: list[EntityInterval]
    failures: list[EntityFailure] = []
