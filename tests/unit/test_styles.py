"""
Unit tests for style class resolution.
"""

from quizcentral.runtime.styles import resolve_style
from quizcentral.schemas.quiz_schema import StylingProps

REGISTRY = {
    "green_bg": {"bg_color": "green", "padding": "md"},
    "white_text": {"text_color": "white", "padding": "sm"},
}


class TestResolveStyle:
    def test_no_styling(self):
        """Test that a block without styling resolves to nothing."""
        assert resolve_style(None, REGISTRY) == {}

    def test_classes_in_order_then_overrides(self):
        """Test merge order: classes left to right, then overrides."""
        styling = StylingProps(classes=["green_bg", "white_text"], overrides={"text_color": "black"})
        assert resolve_style(styling, REGISTRY) == {
            "bg_color": "green",
            "padding": "sm",
            "text_color": "black",
        }

    def test_dict_styling_and_unknown_class(self):
        """Test plain dict styling with an unregistered class."""
        styling = {"classes": ["nope", "green_bg"]}
        assert resolve_style(styling, REGISTRY) == {"bg_color": "green", "padding": "md"}

    def test_without_registry(self):
        """Test that overrides apply even without a registry."""
        assert resolve_style({"classes": ["green_bg"], "overrides": {"font_size": "lg"}}) == {"font_size": "lg"}
