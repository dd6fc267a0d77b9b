import pytest

from routeplanner.models.domain import Origin, Stop, TimeWindow
from routeplanner.services.geospatial import haversine_km
from routeplanner.services.routing.evaluator import (
    RouteEvaluator,
    estimated_time,
    fitness,
    fuel_cost,
    optimization_score,
    origin_adjacency_bonus,
    priority_bonus,
    route_distance,
    time_window_penalty,
)
from routeplanner.services.routing.models import RouteCostModel

DEPOT = Origin(latitude=8.4850, longitude=124.6500, name="Depot")


def _stop(sid: str, lat: float | None, lon: float | None, **kwargs) -> Stop:
    return Stop(
        stop_id=sid,
        order_id=f"O-{sid}",
        customer_name=f"Customer {sid}",
        address="Somewhere",
        area="Carmen",
        latitude=lat,
        longitude=lon,
        **kwargs,
    )


def _stops() -> list[Stop]:
    return [
        _stop("S1", 8.4900, 124.6520),
        _stop("S2", 8.4990, 124.6610),
        _stop("S3", 8.4780, 124.6700),
        _stop("S4", 8.4700, 124.6400),
    ]


def test_route_distance_empty_route_is_zero():
    assert route_distance([], DEPOT) == 0.0


def test_route_distance_is_scaled_sum_of_legs():
    stops = _stops()
    legs = haversine_km(DEPOT.latitude, DEPOT.longitude, stops[0].latitude, stops[0].longitude)
    for a, b in zip(stops, stops[1:]):
        legs += haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
    legs += haversine_km(stops[-1].latitude, stops[-1].longitude, DEPOT.latitude, DEPOT.longitude)

    distance = route_distance(stops, DEPOT)

    assert distance >= 0
    assert distance == pytest.approx(legs * 1.2)


def test_route_distance_single_stop_is_round_trip():
    stop = _stop("S1", 8.5000, 124.6600)
    one_way = haversine_km(DEPOT.latitude, DEPOT.longitude, stop.latitude, stop.longitude)

    assert route_distance([stop], DEPOT) == pytest.approx(2 * one_way * 1.2)


def test_route_distance_closes_at_explicit_end():
    stop = _stop("S1", 8.5000, 124.6600)
    driver = Origin(latitude=8.4950, longitude=124.6550, name="Driver", kind="current_position")
    expected = (
        haversine_km(driver.latitude, driver.longitude, stop.latitude, stop.longitude)
        + haversine_km(stop.latitude, stop.longitude, DEPOT.latitude, DEPOT.longitude)
    ) * 1.2

    assert route_distance([stop], driver, end=DEPOT) == pytest.approx(expected)


def test_route_distance_counts_penalty_for_ungeocoded_stop():
    stop = _stop("S1", None, None)

    assert route_distance([stop], DEPOT) == pytest.approx(2000 * 1.2)


def test_fitness_within_baseline_is_full_score():
    assert fitness(4.0, 3) == 100.0
    assert fitness(4.5, 3) == 100.0


def test_fitness_penalizes_excess_and_adds_bonus():
    # baseline 4.5km, excess 4.5km -> 100 - 50
    assert fitness(9.0, 3) == pytest.approx(50.0)
    assert fitness(9.0, 3, bonus=50) == pytest.approx(100.0)
    assert fitness(100.0, 3) == 0.0
    assert fitness(100.0, 3, bonus=-10) == -10.0


def test_time_fuel_and_score_formulas():
    assert estimated_time(0, 0.0) == 0.0
    assert estimated_time(3, 30.0) == pytest.approx(1.0 + 3 * 0.33)
    assert fuel_cost(10.0) == pytest.approx(60.0)
    assert optimization_score(6.0, 3) == 100.0
    assert optimization_score(9.0, 3) == pytest.approx(50.0)
    assert optimization_score(100.0, 3) == 0.0
    assert optimization_score(2.0, 3) == 100.0
    assert optimization_score(0.0, 0) == 100.0


def test_origin_adjacency_bonus():
    assert origin_adjacency_bonus(1.05, 1.0) == 50.0
    assert origin_adjacency_bonus(1.5, 1.0) == pytest.approx(-5.0)
    assert origin_adjacency_bonus(9.0, 1.0) == -30.0


def test_time_window_penalty_waiting_and_lateness():
    early = _stop("S1", 8.49, 124.65, time_window=TimeWindow(start_hour=10, end_hour=12))
    late = _stop("S2", 8.50, 124.66, time_window=TimeWindow(start_hour=6, end_hour=8))
    model = RouteCostModel(service_hours_per_stop=0.5)

    # clock 9.0 at first stop (waiting 1h), 9.5 at second (1.5h late)
    assert time_window_penalty([early, late], cost_model=model) == pytest.approx(10.0 + 30.0)


def test_priority_bonus_rewards_early_high_priority():
    urgent = _stop("S1", 8.49, 124.65, priority=1)
    normal = _stop("S2", 8.50, 124.66, priority=4)

    assert priority_bonus([urgent, normal]) == pytest.approx(2 * 2)
    assert priority_bonus([normal, urgent]) == pytest.approx(1 * 2)


def test_route_evaluator_agrees_with_reference_functions():
    stops = _stops()
    evaluator = RouteEvaluator(stops, DEPOT)
    route = [2, 0, 3, 1]

    expected = route_distance([stops[i] for i in route], DEPOT)

    assert evaluator.distance(route) == pytest.approx(expected, abs=1e-9)
    assert evaluator.base_fitness(expected) == pytest.approx(fitness(expected, 4))


def test_route_evaluator_uses_separate_end_point():
    stops = _stops()
    driver = Origin(latitude=8.4990, longitude=124.6700, name="Driver", kind="current_position")
    evaluator = RouteEvaluator(stops, driver, DEPOT)
    route = [1, 0, 3, 2]

    expected = route_distance([stops[i] for i in route], driver, end=DEPOT)

    assert evaluator.distance(route) == pytest.approx(expected, abs=1e-9)
    assert evaluator.nearest_to_start() == 1


def test_evaluate_population_matches_single_route_scoring():
    evaluator = RouteEvaluator(_stops(), DEPOT)
    population = [[0, 1, 2, 3], [3, 2, 1, 0], [1, 0, 3, 2]]

    distances, scores = evaluator.evaluate_population(population)

    for route, distance, score in zip(population, distances, scores):
        assert distance == pytest.approx(evaluator.distance(route))
        assert score == pytest.approx(evaluator.search_fitness(route))


def test_search_fitness_rewards_nearest_first_start():
    evaluator = RouteEvaluator(_stops(), DEPOT)
    nearest = evaluator.nearest_to_start()
    others = [i for i in range(4) if i != nearest]

    assert nearest == 0
    assert evaluator.adjacency_bonus([nearest, *others]) == 50.0
    assert evaluator.adjacency_bonus([*others, nearest]) < 0


def test_evaluation_is_idempotent():
    evaluator = RouteEvaluator(_stops(), DEPOT)
    route = [0, 2, 1, 3]

    first = (evaluator.distance(route), evaluator.search_fitness(route))
    second = (evaluator.distance(route), evaluator.search_fitness(route))

    assert first == second
    stops = _stops()
    assert route_distance(stops, DEPOT) == route_distance(stops, DEPOT)


def test_soft_constraint_weights_change_search_fitness():
    stops = [
        _stop("S1", 8.4900, 124.6520, priority=1),
        _stop("S2", 8.4990, 124.6610, priority=5),
        _stop("S3", 8.4780, 124.6700),
    ]
    plain = RouteEvaluator(stops, DEPOT)
    weighted = RouteEvaluator(stops, DEPOT, cost_model=RouteCostModel(priority_weight=1.0))
    route = [0, 1, 2]

    assert weighted.search_fitness(route) == pytest.approx(plain.search_fitness(route) + 3 * 2)
    _, scores = weighted.evaluate_population([route])
    assert scores[0] == pytest.approx(weighted.search_fitness(route))


def test_route_evaluator_rejects_ungeocoded_stops():
    with pytest.raises(ValueError):
        RouteEvaluator([_stop("S1", None, None)], DEPOT)
