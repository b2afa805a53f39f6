"""Pydantic schemas for reusable block templates."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TemplateParameter(BaseModel):
    type: Optional[str] = None
    default: Any = None
    description: Optional[str] = None


class TemplateDefinition(BaseModel):
    """A parameterized block structure expanded by the template compiler.

    Attributes:
        id: Template id referenced by `template_instance.template_id`.
        parameters: Declared parameters; a declared `default` is used when an
            instance does not supply the parameter.
        structure: Block structure containing macro directives
            ({"param": ...}, {"var": ...}, $$map, $$switch).
    """

    id: str = Field(..., min_length=1)
    description: Optional[str] = None
    parameters: Dict[str, TemplateParameter] = Field(default_factory=dict)
    structure: Dict[str, Any]

    def parameter_defaults(self) -> Dict[str, Any]:
        """Return defaults for parameters that explicitly declare one."""
        return {
            name: param.default
            for name, param in self.parameters.items()
            if "default" in param.model_fields_set
        }
