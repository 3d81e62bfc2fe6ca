# main.py
from datetime import datetime

from vertiroute.app.build import build
from vertiroute.domain.entities.geography import Location


def run(n_nodes: int = 20, radius_m: float = 15_000.0, hop_m: float = 8_000.0):
    app = build(
        {
            "name": "demo",
            "log": {"level": "INFO", "debug": True, "sample_every": 10},
            "path_finder": {"kind": "astar"},
        }
    )
    center = Location(52.52, 13.405)
    app.engine.add_nodes(app.node_sampler(center, radius_m).sample(n_nodes))
    app.engine.connect_within(hop_m)

    src = app.engine.nearest_node(Location(52.45, 13.30))
    dst = app.engine.nearest_node(Location(52.60, 13.50))
    route = app.engine.shortest_path(src.uid, dst.uid, at=datetime.now())
    print(f"{route.hops} hops, {route.weight:.0f} m")
    return route


if __name__ == "__main__":
    run()
