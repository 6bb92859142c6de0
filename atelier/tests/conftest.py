import pytest

from atelier.domain.production.read_models.station_summary import StationAggregator
from atelier.domain.production.services.assignment_matcher import AssignmentMatcher
from atelier.domain.production.services.metrics_calculator import MetricsCalculator
from atelier.domain.production.services.stage_transition_engine import (
    StageTransitionEngine,
)
from atelier.domain.production.value_objects.department_map import DepartmentStageMap
from atelier.domain.production.value_objects.stage_catalog import DEFAULT_STAGE_CATALOG
from atelier.tests.fixtures import FixedClock, make_department_map


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def department_map() -> DepartmentStageMap:
    return make_department_map()


@pytest.fixture
def engine(clock: FixedClock) -> StageTransitionEngine:
    return StageTransitionEngine(DEFAULT_STAGE_CATALOG, clock)


@pytest.fixture
def matcher(department_map: DepartmentStageMap, clock: FixedClock) -> AssignmentMatcher:
    return AssignmentMatcher(department_map, clock)


@pytest.fixture
def metrics(clock: FixedClock) -> MetricsCalculator:
    return MetricsCalculator(DEFAULT_STAGE_CATALOG, 100.0, clock)


@pytest.fixture
def aggregator(department_map: DepartmentStageMap) -> StationAggregator:
    return StationAggregator(department_map, DEFAULT_STAGE_CATALOG)
