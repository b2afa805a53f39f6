"""
Integration tests for templated quizzes running in the engine.
"""

import pytest

from quizcentral.runtime.engine import QuizEngine
from quizcentral.schemas.runtime import SetVariable

OPTIONS = [{"label": "Red", "value": "r"}, {"label": "Blue", "value": "b"}]


@pytest.fixture
def templated_engine(template_definitions):
    schema = {
        "id": "quiz_tpl",
        "state": {"timer": {"default": 30}},
        "pages": [{
            "id": "p1",
            "blocks": [{
                "type": "template_instance",
                "id": "q_color",
                "template_id": "single_choice",
                "parameters": {"question": "Favourite colour?", "options": OPTIONS},
            }],
        }],
    }
    return QuizEngine(schema, templates=template_definitions)


class TestTemplatedSession:
    """Test sessions built from template instances."""

    def test_expanded_nodes(self, templated_engine):
        """Test node ids of the expanded structure."""
        store = templated_engine.get_store()

        assert store.get_node("q_color").computed.required is True
        view = store.get_node("gen_p1_0_view")
        assert view.scope_id == "q_color"
        assert view.children_ids == ["gen_p1_0_view_0", "gen_p1_0_view_1", "gen_p1_0_view_2"]

    def test_generated_toggle_sets_value(self, templated_engine):
        """Test that a mapped toggle's click sets its option value."""
        block = templated_engine.get_schema_block("gen_p1_0_view_2")
        templated_engine.execute_logic_action(block.props.events["on_click"], "gen_p1_0_view_2")

        store = templated_engine.get_store()
        assert store.get_node("q_color").value == "b"
        assert store.get_node("gen_p1_0_view_2").computed.active is True
        assert store.get_node("gen_p1_0_view_1").computed.active is False

    def test_template_listener(self, templated_engine):
        """Test the listener carried by the template structure."""
        templated_engine.dispatch(SetVariable(name="timer", value=29))
        assert templated_engine.get_store().get_node("q_color").visited is True
