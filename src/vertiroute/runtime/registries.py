# runtime/registries.py
from collections.abc import Callable

from vertiroute.app.protocols import CostModel, PathFinder
from vertiroute.config.models import (
    CostModelDistanceModel,
    CostModelFlightTimeModel,
    CostModelUnion,
    LimitsModel,
    PathFinderAStarModel,
    PathFinderDijkstraModel,
    PathFinderUnion,
)
from vertiroute.domain.mechanics.mechanics_costs import FlightTimeCost, GeodesicDistanceCost
from vertiroute.domain.mechanics.mechanics_routers import AStarPathFinder, DijkstraPathFinder

CostModelFactory = Callable[[CostModelUnion, dict], CostModel]
PathFinderFactory = Callable[[PathFinderUnion, dict], PathFinder]

_cost_model_registry: dict[str, CostModelFactory] = {}
_path_finder_registry: dict[str, PathFinderFactory] = {}


# ------------------- Cost models ---------------------------


def register_cost_model(kind: str):
    def deco(fn: CostModelFactory):
        _cost_model_registry[kind] = fn
        return fn

    return deco


def make_cost_model(cfg: CostModelUnion, *, deps: dict | None = None) -> CostModel:
    try:
        factory = _cost_model_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown cost model kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_cost_model("distance")
def _make_distance(cfg: CostModelDistanceModel, deps):
    return GeodesicDistanceCost()


@register_cost_model("flight_time")
def _make_flight_time(cfg: CostModelFlightTimeModel, deps):
    return FlightTimeCost(cfg.cruise_speed_mps, cfg.overhead_s)


# --------------------- Path finders  ---------------------


def register_path_finder(kind: str):
    def deco(fn: PathFinderFactory):
        _path_finder_registry[kind] = fn
        return fn

    return deco


def make_path_finder(cfg: PathFinderUnion, *, deps: dict) -> PathFinder:
    """
    deps can include:
      - 'cost_model': CostModel
      - 'availability': AvailabilityResolver
      - 'limits': LimitsModel
    """
    try:
        factory = _path_finder_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown path finder kind {cfg.kind!r}")
    return factory(cfg, deps)


def _common(deps: dict) -> dict:
    limits = deps.get("limits") or LimitsModel()
    return {
        "cost_model": deps.get("cost_model"),
        "availability": deps.get("availability"),
        "max_nodes": limits.max_nodes,
        "max_edges": limits.max_edges,
    }


@register_path_finder("dijkstra")
def _make_dijkstra(cfg: PathFinderDijkstraModel, deps):
    return DijkstraPathFinder(**_common(deps))


@register_path_finder("astar")
def _make_astar(cfg: PathFinderAStarModel, deps):
    return AStarPathFinder(heuristic_scale=cfg.heuristic_scale, **_common(deps))
