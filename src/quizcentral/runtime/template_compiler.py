"""
Template Compiler - expands template instances into concrete schema blocks.

Runs before engine hydration. Every block of type "template_instance" is
replaced by its template's structure after macro expansion:

    {"param": "a.b"}            -> value at a.b in the instance parameters
    {"var": "opt.label"}        -> value of a build-time loop variable, if bound;
                                   otherwise kept as a runtime expression
    {"$$map": {source, as, template}}
                                -> one clone of `template` per source item
    {"$$switch": {on, cases, default}}
                                -> nested {"if": [{"==": [on, match]}, result, ...]}

The instance then overlays the expanded structure: its id replaces the
template's, `state` is shallow-merged and `behavior` is deep-merged.
The input is never mutated.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from quizcentral.schemas.quiz_schema import BlockType, QuizSchema
from quizcentral.schemas.template import TemplateDefinition
from quizcentral.utils.paths import MISSING, get_path

logger = logging.getLogger(__name__)

MAP_DIRECTIVE = "$$map"
SWITCH_DIRECTIVE = "$$switch"


class TemplateError(Exception):
    """Raised when a template cannot be expanded."""
    pass


class TemplateNotFoundError(TemplateError):
    """Raised when a template instance references an unknown template id."""
    pass


class TemplateCompiler:
    """
    Macro-expands template instances in a quiz schema.

    Args:
        templates: Template definitions (models or their dict form)
    """

    def __init__(self, templates: Optional[Iterable[Union[TemplateDefinition, Mapping[str, Any]]]] = None):
        self._templates: Dict[str, TemplateDefinition] = {}
        self._expanding: List[str] = []
        for template in templates or []:
            self.add_template(template)

    def add_template(self, template: Union[TemplateDefinition, Mapping[str, Any]]) -> None:
        if not isinstance(template, TemplateDefinition):
            template = TemplateDefinition.model_validate(template)
        self._templates[template.id] = template

    @property
    def template_ids(self) -> List[str]:
        return sorted(self._templates)

    def compile(self, schema: Union[QuizSchema, Mapping[str, Any]]) -> QuizSchema:
        """
        Expand every template instance and validate the result.

        Raises:
            TemplateNotFoundError: If an instance references an unknown template
            pydantic.ValidationError: If the expanded document is not a valid quiz
        """
        return QuizSchema.model_validate(self.compile_dict(schema))

    def compile_dict(self, schema: Union[QuizSchema, Mapping[str, Any]]) -> Dict[str, Any]:
        """Expand every template instance, returning the plain document."""
        if isinstance(schema, QuizSchema):
            root = schema.model_dump(by_alias=True)
        else:
            root = copy.deepcopy(dict(schema))

        pages = root.get("pages") or []
        root["pages"] = [
            {**page, "blocks": self._compile_block_list(page.get("blocks") or [])}
            for page in pages
        ]
        return root

    # ------------------------------------------------------------------
    # Block walk
    # ------------------------------------------------------------------

    def _compile_block_list(self, blocks: List[Any]) -> List[Any]:
        compiled: List[Any] = []
        for block in blocks:
            if not isinstance(block, dict):
                compiled.append(block)
                continue

            if block.get("type") == BlockType.TEMPLATE_INSTANCE.value:
                compiled.extend(self._expand_template(block))
                continue

            props = block.get("props")
            if isinstance(props, dict) and isinstance(props.get("children"), list):
                props["children"] = self._compile_block_list(props["children"])

            if block.get("type") == BlockType.INTERACTION_UNIT.value and isinstance(block.get("view"), dict):
                block["view"] = self._compile_block_list([block["view"]])[0]

            compiled.append(block)
        return compiled

    def _expand_template(self, instance: Dict[str, Any]) -> List[Any]:
        template_id = instance.get("template_id")
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(f"Template not found: {template_id}")

        if template_id in self._expanding:
            chain = " -> ".join(self._expanding + [template_id])
            raise TemplateError(f"Recursive template expansion: {chain}")

        params = {**template.parameter_defaults(), **(instance.get("parameters") or {})}
        context = {"param": params}

        structure = self.expand_directives(copy.deepcopy(template.structure), context)
        if not isinstance(structure, dict):
            raise TemplateError(f"Template {template_id} did not expand to a block")

        # Instance overlays
        if instance.get("id") is not None:
            structure["id"] = instance["id"]
        else:
            structure.pop("id", None)

        if instance.get("state"):
            structure["state"] = {**(structure.get("state") or {}), **instance["state"]}

        if instance.get("behavior"):
            structure["behavior"] = self._merge_behavior(structure.get("behavior") or {}, instance["behavior"])

        logger.debug(f"Expanded template {template_id} as {structure.get('id')}")

        self._expanding.append(template_id)
        try:
            return self._compile_block_list([structure])
        finally:
            self._expanding.pop()

    @staticmethod
    def _merge_behavior(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key in ("hidden", "disabled"):
            if override.get(key) is not None:
                merged[key] = override[key]
        merged["listeners"] = {**(base.get("listeners") or {}), **(override.get("listeners") or {})}
        merged["context_validators"] = list(base.get("context_validators") or []) + list(
            override.get("context_validators") or []
        )
        return merged

    # ------------------------------------------------------------------
    # Macro expansion
    # ------------------------------------------------------------------

    def expand_directives(self, node: Any, context: Dict[str, Any]) -> Any:
        """
        Resolve macro directives in `node` against a build-time context.

        Args:
            node: Any JSON value from a template structure
            context: {"param": instance parameters, <loop var>: item, ...}

        Returns:
            The expanded value (a new structure)
        """
        if self._is_replacement(node):
            return self._resolve_replacement(node, context)

        if isinstance(node, list):
            expanded: List[Any] = []
            for item in node:
                if isinstance(item, dict) and MAP_DIRECTIVE in item:
                    # A $$map inside a list contributes its items to that list
                    expanded.extend(self._process_map(item[MAP_DIRECTIVE], context))
                else:
                    expanded.append(self.expand_directives(item, context))
            return expanded

        if isinstance(node, dict):
            if MAP_DIRECTIVE in node:
                return self._process_map(node[MAP_DIRECTIVE], context)
            if SWITCH_DIRECTIVE in node:
                return self._process_switch(node[SWITCH_DIRECTIVE], context)
            return {key: self.expand_directives(value, context) for key, value in node.items()}

        return node

    @staticmethod
    def _is_replacement(node: Any) -> bool:
        return isinstance(node, dict) and len(node) == 1 and ("param" in node or "var" in node)

    def _resolve_replacement(self, node: Dict[str, Any], context: Dict[str, Any]) -> Any:
        if "param" in node:
            path = node["param"]
            value = get_path(context["param"], path) if isinstance(path, str) and path else MISSING
            if value is MISSING:
                logger.warning(f"Template parameter not supplied: {path!r}")
                return None
            return value

        path = node["var"]
        if isinstance(path, str) and path:
            value = get_path(context, path)
            if value is not MISSING:
                return value
        # Not a build-time binding: keep for runtime evaluation
        return node

    def _process_map(self, config: Any, context: Dict[str, Any]) -> List[Any]:
        if not isinstance(config, dict):
            logger.warning(f"Malformed {MAP_DIRECTIVE} directive: {config!r}")
            return []

        source = self.expand_directives(config.get("source"), context)
        if not isinstance(source, list):
            logger.warning(f"{MAP_DIRECTIVE} source did not resolve to a list: {source!r}")
            return []

        name = config.get("as") or "item"
        template = config.get("template")
        return [
            self.expand_directives(copy.deepcopy(template), {**context, name: item})
            for item in source
        ]

    def _process_switch(self, config: Any, context: Dict[str, Any]) -> Any:
        if not isinstance(config, dict):
            logger.warning(f"Malformed {SWITCH_DIRECTIVE} directive: {config!r}")
            return None

        on = self.expand_directives(config.get("on"), context)
        default = self.expand_directives(config.get("default"), context)
        cases = self.expand_directives(config.get("cases"), context)
        if not isinstance(cases, list):
            return default

        # Build the chain backwards so the first case is tested first
        chain = default
        for case in reversed(cases):
            if not isinstance(case, dict):
                continue
            chain = {"if": [{"==": [on, case.get("match")]}, case.get("result"), chain]}
        return chain
