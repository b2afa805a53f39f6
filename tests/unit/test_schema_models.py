"""
Unit tests for the quiz, domain and runtime pydantic models.
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from quizcentral.schemas.domain import CombineTransform, DomainBody, DomainDefinition, FilterTransform, MapTransform
from quizcentral.schemas.quiz_schema import (
    ContainerBlock,
    InteractionUnit,
    QuizSchema,
    TextBlock,
    ToggleBlock,
)
from quizcentral.schemas.runtime import BlockRuntimeState, EngineAction, Navigate, SetValue, SetVariable


class TestQuizSchema:
    """Test parsing of authored quiz documents."""

    def test_fixture_parses(self, quiz_schema):
        """Test the example quiz block tree."""
        schema = QuizSchema.model_validate(quiz_schema)
        q1 = schema.pages[0].blocks[0]

        assert isinstance(q1, InteractionUnit)
        assert q1.domain_id == "$$BOOL"
        assert isinstance(q1.view, ContainerBlock)
        assert schema.state["score"].default == 0

    def test_block_discriminator(self):
        """Test that the type tag selects the block model."""
        schema = QuizSchema.model_validate({
            "id": "q",
            "pages": [{"id": "p", "blocks": [
                {"type": "text", "props": {"content": "hi"}},
                {"type": "toggle", "props": {"label": "A", "events": {"on_click": {"navigate": "p"}}}},
            ]}],
        })
        text, toggle = schema.pages[0].blocks
        assert isinstance(text, TextBlock)
        assert isinstance(toggle, ToggleBlock)
        assert toggle.props.events["on_click"] == {"navigate": "p"}
        assert toggle.props.disabled is False

    def test_unknown_block_type(self):
        """Test that unknown type tags are rejected."""
        with pytest.raises(ValidationError):
            QuizSchema.model_validate({"id": "q", "pages": [{"blocks": [{"type": "video"}]}]})

    def test_interaction_unit_needs_view(self):
        """Test that an interaction unit must wrap a view."""
        with pytest.raises(ValidationError):
            QuizSchema.model_validate({"id": "q", "pages": [{"blocks": [{"type": "interaction_unit"}]}]})

    def test_inline_domain(self):
        """Test a literal array domain reference."""
        unit = InteractionUnit.model_validate({"domain_id": [[1], [2]], "view": {"type": "text"}})
        assert unit.domain_id == [[1], [2]]


class TestDomainModels:
    """Test domain definition parsing."""

    def test_transform_kinds(self, domain_definitions):
        """Test that transform steps parse to their variant."""
        by_id = {d["id"]: DomainDefinition.model_validate(d) for d in domain_definitions}

        assert isinstance(by_id["scores"].definition.transforms[0], FilterTransform)
        assert isinstance(by_id["doubled"].definition.transforms[0], MapTransform)
        combine = by_id["seats"].definition.transforms[0]
        assert isinstance(combine, CombineTransform)
        assert combine.kind == "combine"
        assert combine.combine.other_name == "row"
        assert by_id["profile"].definition.construct_.size.max == 3

    def test_needs_source_or_construct(self):
        """Test the source-or-construct requirement."""
        with pytest.raises(ValidationError):
            DomainDefinition.model_validate({"id": "x", "definition": {"transforms": []}})

    def test_construct_alias(self):
        """Test that the construct body keeps its JSON name without hiding BaseModel.construct."""
        body = DomainBody.model_validate({"construct": {"size": {"max": 2}}})

        assert body.construct_.size.max == 2
        assert body.model_dump(by_alias=True, exclude_none=True)["construct"] == {"size": {"max": 2}}
        assert callable(DomainBody.construct)


class TestRuntimeModels:
    """Test runtime snapshots and actions."""

    def test_nodes_are_frozen(self):
        """Test that runtime nodes cannot be edited in place."""
        node = BlockRuntimeState(id="q1", schema_id="q1")
        with pytest.raises(ValidationError):
            node.value = 1
        assert node.model_copy(update={"value": 1}).value == 1

    def test_action_discriminator(self):
        """Test dict actions parse by their type tag."""
        adapter = TypeAdapter(EngineAction)
        assert isinstance(adapter.validate_python({"type": "SET_VALUE", "id": "q1", "value": 1}), SetValue)
        assert isinstance(adapter.validate_python({"type": "SET_VARIABLE", "name": "timer"}), SetVariable)
        assert adapter.validate_python({"type": "NAVIGATE", "target_id": "p2"}) == Navigate(target_id="p2")
        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "DELETE", "id": "q1"})
