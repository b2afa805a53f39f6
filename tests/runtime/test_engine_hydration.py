"""
Unit tests for QuizEngine session setup.

Tests the path from an authored schema to the first snapshot: id
normalization, node hydration, container ordering and the initial
derived-state pass.
"""

import pytest

from quizcentral.config import EngineConfig
from quizcentral.runtime.engine import QuizEngine
from quizcentral.runtime.schema_loader import load_styles
from quizcentral.runtime.template_compiler import TemplateNotFoundError

TOGGLES = ["toggle_001", "toggle_002", "toggle_003", "toggle_004"]


def _picking_quiz(shuffle, pick_n):
    return {
        "id": "quiz_pick",
        "pages": [{
            "id": "p1",
            "blocks": [{
                "id": "box",
                "type": "container",
                "props": {
                    "behavior": {"shuffle_children": shuffle, "pick_n": pick_n},
                    "children": [{"id": f"t{i}", "type": "text"} for i in range(6)],
                },
            }],
        }],
    }


class TestHydration:
    """Test the initial session snapshot."""

    def test_session_fields(self, engine):
        """Test session id, schema id, navigation and variables."""
        state = engine.get_state()

        assert state.session_id.startswith("sess_")
        assert state.schema_id == "quiz_001"
        assert state.current_step_id == "page01"
        assert state.history == ["page01"]
        assert state.variables == {"score": 0, "timer": 10}
        assert engine.page_ids == ["page01", "page02"]

    def test_sessions_get_distinct_ids(self, quiz_schema):
        """Test that every engine starts a new session."""
        assert QuizEngine(quiz_schema).get_state().session_id != QuizEngine(quiz_schema).get_state().session_id

    def test_interaction_unit_state(self, engine):
        """Test that unit nodes copy their declared state."""
        q1 = engine.get_store().get_node("q1")

        assert q1.value is False
        assert q1.visited is False
        assert q1.touched is False
        assert q1.scope_id is None
        assert q1.computed.required is True
        assert q1.validation.is_valid is True

    def test_scope_ids(self, engine):
        """Test that a unit's view and widgets are scoped to the unit."""
        store = engine.get_store()

        assert store.get_node("container_001").scope_id == "q1"
        assert store.get_node("trigger_001").scope_id == "q1"
        assert store.get_node("container_002").scope_id == "q2"
        assert store.get_node("toggle_003").scope_id == "q2"
        assert store.get_node("input_001").scope_id == "q3"

    def test_generated_ids(self, engine):
        """Test that blocks without ids get positional ids."""
        store = engine.get_store()

        assert store.get_node("gen_page02_0") is not None
        assert store.get_node("gen_page02_1").children_ids == ["gen_page02_1_0"]
        assert store.get_node("gen_page02_1_0").scope_id is None
        assert engine.get_schema_block("gen_page02_0").props.content == "Thanks!"

    def test_generated_view_and_page_ids(self):
        """Test id generation for unit views and pages without ids."""
        engine = QuizEngine({
            "id": "quiz_gen",
            "pages": [{"blocks": [{"id": "u", "type": "interaction_unit", "view": {"type": "input"}}]}],
        })

        assert engine.page_ids == ["page_0"]
        assert engine.get_state().current_step_id == "page_0"
        assert engine.get_store().get_node("gen_page_0_0_view").scope_id == "u"

    def test_unshuffled_children_keep_order(self, engine):
        """Test container child order without behavior flags."""
        assert engine.get_store().get_node("container_001").children_ids == ["text_001", "trigger_001"]

    def test_empty_quiz_rejected(self):
        """Test that a quiz needs at least one page."""
        with pytest.raises(ValueError):
            QuizEngine({"id": "empty", "pages": []})

    def test_unknown_template_rejected(self):
        """Test that unknown template ids fail construction."""
        schema = {"id": "q", "pages": [{"id": "p", "blocks": [{"type": "template_instance", "template_id": "nope"}]}]}
        with pytest.raises(TemplateNotFoundError):
            QuizEngine(schema)


class TestContainerOrdering:
    """Test shuffle and pick-n applied at hydration."""

    def test_shuffle_is_a_permutation(self, engine):
        """Test that shuffling keeps every child exactly once."""
        children = engine.get_store().get_node("container_002").children_ids
        assert sorted(children) == TOGGLES

    def test_same_seed_same_order(self, quiz_schema):
        """Test that a pinned seed reproduces the permutation."""
        config = EngineConfig(shuffle_seed=1234)
        first = QuizEngine(quiz_schema, config=config).get_store().get_node("container_002").children_ids
        second = QuizEngine(quiz_schema, config=config).get_store().get_node("container_002").children_ids
        assert first == second

    def test_pick_n_without_shuffle_keeps_schema_order(self):
        """Test that a random subset is returned in authored order."""
        engine = QuizEngine(_picking_quiz(False, 3), config=EngineConfig(shuffle_seed=3))
        children = engine.get_store().get_node("box").children_ids

        assert len(children) == 3
        assert children == sorted(children, key=lambda c: int(c[1:]))

    def test_pick_n_with_shuffle(self):
        """Test that shuffle plus pick-n keeps n distinct children."""
        engine = QuizEngine(_picking_quiz(True, 2), config=EngineConfig(shuffle_seed=3))
        children = engine.get_store().get_node("box").children_ids

        assert len(children) == 2
        assert len(set(children)) == 2

    def test_pick_n_larger_than_children(self):
        """Test that pick-n beyond the child count keeps everything."""
        engine = QuizEngine(_picking_quiz(False, 10))
        assert engine.get_store().get_node("box").children_ids == [f"t{i}" for i in range(6)]

    def test_unpicked_children_still_hydrated(self):
        """Test that every child has a node even when not picked."""
        engine = QuizEngine(_picking_quiz(False, 1))
        nodes = engine.get_state().nodes
        assert all(f"t{i}" in nodes for i in range(6))


class TestInitialDerivedState:
    """Test the first recompute pass."""

    def test_hidden_from_other_unit(self, engine):
        """Test that q2 starts hidden while q1 is false."""
        assert engine.get_store().get_node("q2").computed.hidden is True

    def test_widget_logic_uses_unit_value(self, engine):
        """Test widget flags evaluated against the owning unit's value."""
        store = engine.get_store()
        assert store.get_node("trigger_001").computed.disabled is False
        assert store.get_node("toggle_001").computed.active is False

    def test_static_disabled_prop(self):
        """Test that props.disabled applies without state logic."""
        engine = QuizEngine({
            "id": "q",
            "pages": [{"id": "p", "blocks": [{"id": "btn", "type": "trigger", "props": {"disabled": True}}]}],
        })
        assert engine.get_store().get_node("btn").computed.disabled is True


class TestReadSurface:
    """Test context building and style resolution."""

    def test_build_context_shape(self, engine):
        """Test globals and node views in an evaluation context."""
        context = engine.build_context(local_value=5)

        assert context["globals"] == {"quiz.score": 0, "quiz.timer": 10}
        assert context["nodes"]["q2"]["hidden"] is True
        assert context["nodes"]["q2"]["computed"]["hidden"] is True
        assert context["nodes"]["q1"]["valid"] is True
        assert context["value"] == 5

    def test_context_evaluates(self, engine):
        """Test expressions against a built context."""
        context = engine.build_context()
        assert engine.evaluator.evaluate({"var": "quiz.timer"}, context) == 10
        assert engine.evaluator.evaluate({"var": "q1.required"}, context) is True

    def test_resolve_style(self, quiz_schema, domain_definitions, fixtures_dir):
        """Test classes and overrides resolved through the engine."""
        engine = QuizEngine(quiz_schema, domains=domain_definitions, styles=load_styles(fixtures_dir / "styles.yaml"))

        assert engine.resolve_style("toggle_001") == {
            "bg_color": "#2E6F40",
            "text_color": "#FFFFFF",
            "font_size": "lg",
        }
        assert engine.resolve_style("q1") == {}
        assert engine.resolve_style("nope") == {}
