"""Tests for auto-layout strategies."""
from modelcanvas.domain.strategies import (
    GridLayoutStrategy,
    LayeredLayoutStrategy,
    LayoutStrategyFactory,
    calculate_auto_layout,
    calculate_service_layout,
)


def entity(entity_id, field_count=0):
    return {"id": entity_id, "fields": [{}] * field_count}


class TestLayoutStrategyFactory:
    """Test strategy selection."""

    def test_edgeless_graph_uses_grid(self):
        strategy = LayoutStrategyFactory.get_strategy("horizontal", has_edges=False)
        assert isinstance(strategy, GridLayoutStrategy)

    def test_preset_strategy(self):
        strategy = LayoutStrategyFactory.get_strategy("vertical")
        assert isinstance(strategy, LayeredLayoutStrategy)
        assert strategy.direction == "TB"
        assert strategy.get_preset_name() == "vertical"

    def test_unknown_preset_falls_back_to_compact(self):
        assert LayoutStrategyFactory.get_strategy("diagonal").get_preset_name() == "compact"

    def test_register_preset(self):
        LayoutStrategyFactory.register_preset("reverse", "RL", 10, 10)
        try:
            assert "reverse" in LayoutStrategyFactory.presets()
            assert LayoutStrategyFactory.get_strategy("reverse").direction == "RL"
        finally:
            LayoutStrategyFactory._presets.pop("reverse")


class TestCalculateAutoLayout:
    """Test computed positions."""

    def test_grid_positions_are_distinct(self):
        positions = calculate_auto_layout([entity(str(i)) for i in range(5)], [])
        assert len({(p["x"], p["y"]) for p in positions.values()}) == 5

    def test_chain_is_ranked_left_to_right(self):
        relations = [
            {"source_entity_id": "a", "target_entity_id": "b"},
            {"source_entity_id": "b", "target_entity_id": "c"},
        ]
        positions = calculate_auto_layout([entity("c"), entity("a"), entity("b")], relations, "horizontal")

        assert positions["a"]["x"] < positions["b"]["x"] < positions["c"]["x"]

    def test_vertical_ranks_top_to_bottom(self):
        relations = [{"source_entity_id": "a", "target_entity_id": "b"}]
        positions = calculate_auto_layout([entity("a"), entity("b")], relations, "vertical")

        assert positions["a"]["y"] < positions["b"]["y"]
        assert positions["a"]["x"] == positions["b"]["x"]

    def test_cycles_share_a_layer(self):
        relations = [
            {"source_entity_id": "a", "target_entity_id": "b"},
            {"source_entity_id": "b", "target_entity_id": "a"},
        ]
        positions = calculate_auto_layout([entity("a"), entity("b")], relations, "horizontal")

        assert positions["a"]["x"] == positions["b"]["x"]
        assert positions["a"]["y"] != positions["b"]["y"]

    def test_dangling_relations_ignored(self):
        relations = [{"source_entity_id": "a", "target_entity_id": "missing"}]
        positions = calculate_auto_layout([entity("a")], relations)

        assert set(positions) == {"a"}

    def test_service_layout(self):
        services = [
            {"id": "s1", "width": 400, "height": 300},
            {"id": "s2", "width": 400, "height": 300},
        ]
        connections = [{"source_service_id": "s1", "target_service_id": "s2"}]
        positions = calculate_service_layout(services, connections, "horizontal")

        assert positions["s2"]["x"] - positions["s1"]["x"] >= 400

    def test_grid_rows_clear_tall_containers(self):
        services = [{"id": f"s{i}", "width": 400, "height": 350} for i in range(4)]
        positions = calculate_service_layout(services, [])

        assert positions["s2"]["y"] - positions["s0"]["y"] >= 350
