# vertiroute/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from vertiroute.app.engine import RouterEngine
from vertiroute.app.hooks import EngineHooks, NoopHooks
from vertiroute.config.models import EngineModel
from vertiroute.domain.entities.geography import Location, NodeKind
from vertiroute.domain.mechanics.mechanics_node_samplers import NearbyNodeSampler
from vertiroute.domain.state import GraphStore
from vertiroute.io.engine_logging import EngineLogging  # JSON logs
from vertiroute.runtime.registries import make_cost_model, make_path_finder
from vertiroute.runtime.rng import RNGRegistry
from vertiroute.services.availability import RecurrenceAvailability


@dataclass
class App:
    engine: RouterEngine
    rng: RNGRegistry
    model: EngineModel
    hooks: EngineHooks

    def node_sampler(
        self,
        center: Location,
        radius_m: float,
        *,
        tag: str | int = 0,
        kinds: list[NodeKind] | None = None,
        weights: list[float] | None = None,
        altitude_range_m: tuple[float, float] | None = None,
    ) -> NearbyNodeSampler:
        """Synthetic nodes around `center`, on an RNG substream keyed by tag."""
        return NearbyNodeSampler(
            center=center,
            radius_m=radius_m,
            rng=self.rng.substream("nodes", tag),
            kinds=kinds,
            weights=weights,
            altitude_range_m=altitude_range_m,
        )


def build(cfg: EngineModel | Mapping, *, use_logging: bool = True) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, EngineModel) else EngineModel.model_validate(cfg)

    # 1) RNG
    rng_registry = RNGRegistry(model.seed, scenario=model.name)

    # 2) Hooks
    hooks = (
        EngineLogging(
            name=model.name,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )

    # 3) Mechanics
    availability = RecurrenceAvailability()
    cost_model = make_cost_model(model.cost_model)
    path_finder = make_path_finder(
        model.path_finder,
        deps={"cost_model": cost_model, "availability": availability, "limits": model.limits},
    )

    # 4) Engine
    engine = RouterEngine(
        store=GraphStore(),
        path_finder=path_finder,
        availability=availability,
        cost_model=cost_model,
        hooks=hooks,
    )

    # 5) Seed inventory
    if model.inventory is not None:
        engine.load_inventory(model.inventory)

    hooks.built(
        name=model.name,
        nodes=engine.node_count,
        edges=engine.edge_count,
        path_finder=model.path_finder.kind,
    )
    return App(engine, rng_registry, model, hooks)
