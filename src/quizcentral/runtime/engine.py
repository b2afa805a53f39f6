"""
Quiz Engine - the orchestrator.

Turns a static quiz schema into a live session and keeps it consistent:

    schema -> TemplateCompiler -> index + normalize ids -> hydrate -> StateStore
    dispatch(action) -> commit -> listener cascade -> derived-state recompute

The engine is the only writer of session state. Consumers read snapshots from
the store and request changes through dispatch() or execute_logic_action().
Logic expressions never mutate state themselves: they return intents which
handle_effect_result() translates into engine actions.
"""

import logging
import random
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from quizcentral.config.engine import EngineConfig
from quizcentral.domains.registry import DomainRegistry
from quizcentral.runtime.evaluator import IEvaluator, LogicEvaluator
from quizcentral.runtime.intents import CompoundIntent, Intent, NavigateIntent, SetIntent, collect_intents, parse_intent
from quizcentral.runtime.operators import apply_compound
from quizcentral.runtime.persistence import SessionSnapshot
from quizcentral.runtime.state_store import StateStore
from quizcentral.runtime.styles import StyleRegistry, resolve_style
from quizcentral.runtime.template_compiler import TemplateCompiler
from quizcentral.schemas.domain import DomainDefinition
from quizcentral.schemas.quiz_schema import AnyBlock, ContainerBlock, InteractionUnit, QuizSchema
from quizcentral.schemas.runtime import (
    SETTABLE_NODE_PROPERTIES,
    BlockRuntimeState,
    ComputedState,
    EngineAction,
    Navigate,
    QuizSessionState,
    RuntimeID,
    SessionStatus,
    SetNodeProperty,
    SetValue,
    SetVariable,
    ValidationResult,
    utc_now,
)
from quizcentral.schemas.template import TemplateDefinition
from quizcentral.utils.paths import MISSING

logger = logging.getLogger(__name__)

# Prefix addressing global variables in effect targets and listener keys
GLOBAL_PREFIX = "quiz."

INVALID_FORMAT_ERROR = "Invalid Format"

_ACTION_ADAPTER = TypeAdapter(EngineAction)

ActionModel = Union[SetValue, SetNodeProperty, SetVariable, Navigate]


class QuizEngine:
    """
    Runtime orchestrator for one quiz session.

    Args:
        schema: Authored quiz (model or dict); always passed through the template compiler
        templates: Template definitions for template instances
        styles: Style registry (style id -> properties)
        domains: Domain definitions registered on the domain registry
        evaluator: Logic evaluator (a private LogicEvaluator by default)
        domain_registry: Domain registry (a private one sharing the evaluator by default)
        config: Engine settings (defaults when omitted)

    Raises:
        TemplateNotFoundError: If the schema references an unknown template
        ValueError: If the compiled schema has no pages
    """

    def __init__(
        self,
        schema: Union[QuizSchema, Mapping[str, Any]],
        *,
        templates: Optional[Iterable[Union[TemplateDefinition, Mapping[str, Any]]]] = None,
        styles: Optional[StyleRegistry] = None,
        domains: Optional[Iterable[Union[DomainDefinition, Mapping[str, Any]]]] = None,
        evaluator: Optional[IEvaluator] = None,
        domain_registry: Optional[DomainRegistry] = None,
        config: Optional[EngineConfig] = None,
    ):
        self._config = config or EngineConfig()
        self._evaluator = evaluator or LogicEvaluator()
        self._domain_registry = domain_registry or DomainRegistry(self._evaluator)
        if domains:
            self._domain_registry.register(domains)
        self._styles: Dict[str, Any] = dict(styles or {})

        self._schema = TemplateCompiler(templates).compile(schema)
        if not self._schema.pages:
            raise ValueError(f"Quiz schema {self._schema.id} has no pages")

        # Schema lookup (id -> block) and the interaction units scanned for listeners
        self._schema_map: Dict[str, AnyBlock] = {}
        self._interaction_units: List[InteractionUnit] = []

        self._rng = random.Random(self._config.shuffle_seed)
        self._cascade_depth = 0
        self._recompute_count = 0

        # 1. Index, 2. Normalize, 3. Hydrate, 4. Initial derived state
        self._index_schema()
        self._normalize_ids()
        self._store = StateStore(self._hydrate_state())
        self._recalculate_derived_state()

        logger.info(
            f"Started session {self._store.get_state().session_id} for quiz {self._schema.id} "
            f"({len(self._store.get_state().nodes)} nodes, {len(self._schema.pages)} pages)"
        )

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    def get_store(self) -> StateStore:
        return self._store

    def get_state(self) -> QuizSessionState:
        return self._store.get_state()

    def get_schema(self) -> QuizSchema:
        return self._schema

    def get_schema_block(self, block_id: str) -> Optional[AnyBlock]:
        return self._schema_map.get(block_id)

    @property
    def page_ids(self) -> List[str]:
        return [page.id for page in self._schema.pages]

    @property
    def evaluator(self) -> IEvaluator:
        return self._evaluator

    @property
    def domain_registry(self) -> DomainRegistry:
        return self._domain_registry

    @property
    def config(self) -> EngineConfig:
        return self._config

    def snapshot(self) -> SessionSnapshot:
        """Minimal persistable view of the session (step, variables, answers)."""
        return SessionSnapshot.from_state(self._store.get_state())

    def resolve_style(self, block_id: str) -> Dict[str, Any]:
        """Resolve a block's styling against the engine's style registry."""
        block = self._schema_map.get(block_id)
        props = getattr(block, "props", None)
        return resolve_style(getattr(props, "styling", None), self._styles)

    def build_context(self, local_value: Any = MISSING, **bindings: Any) -> Dict[str, Any]:
        """
        Build an evaluation context from the current state.

        Globals are exposed under "quiz." ({"var": "quiz.score"}), nodes by id
        ({"var": "q1.value"}, {"var": "q1.hidden"}).

        Args:
            local_value: Bound as `value` when given
            **bindings: Extra local bindings (e.g. a trigger key)
        """
        state = self._store.get_state()
        locals_: Dict[str, Any] = dict(bindings)
        if local_value is not MISSING:
            locals_["value"] = local_value
        return LogicEvaluator.make_context(
            self._globals_view(state),
            self._nodes_view(state),
            **locals_,
        )

    @staticmethod
    def _globals_view(state: QuizSessionState) -> Dict[str, Any]:
        return {f"{GLOBAL_PREFIX}{name}": value for name, value in state.variables.items()}

    @staticmethod
    def _nodes_view(state: QuizSessionState) -> Dict[str, Dict[str, Any]]:
        view: Dict[str, Dict[str, Any]] = {}
        for node_id, node in state.nodes.items():
            computed = node.computed.model_dump()
            view[node_id] = {
                "value": node.value,
                "visited": node.visited,
                "touched": node.touched,
                "valid": node.validation.is_valid,
                "computed": computed,
                **computed,
            }
        return view

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _visit_blocks(self, visit) -> None:
        """Call visit(block, page_id, path) depth-first over every block."""

        def walk(block: AnyBlock, page_id: str, path: str) -> None:
            visit(block, page_id, path)
            if isinstance(block, InteractionUnit):
                walk(block.view, page_id, f"{path}_view")
            elif isinstance(block, ContainerBlock):
                for i, child in enumerate(block.props.children):
                    walk(child, page_id, f"{path}_{i}")

        for page in self._schema.pages:
            for i, block in enumerate(page.blocks):
                walk(block, page.id or "", str(i))

    def _index_schema(self) -> None:
        def visit(block: AnyBlock, page_id: str, path: str) -> None:
            if isinstance(block, InteractionUnit):
                self._interaction_units.append(block)
            if block.id is None:
                return
            if block.id in self._schema_map:
                logger.warning(f"Duplicate block id in schema: {block.id}")
            self._schema_map[block.id] = block

        self._visit_blocks(visit)

    def _normalize_ids(self) -> None:
        """Assign stable ids to pages and blocks that lack one."""
        for index, page in enumerate(self._schema.pages):
            if not page.id:
                page.id = f"page_{index}"

        def visit(block: AnyBlock, page_id: str, path: str) -> None:
            if block.id:
                return
            block.id = f"gen_{page_id}_{path}"
            self._schema_map[block.id] = block

        self._visit_blocks(visit)

    def _hydrate_state(self) -> QuizSessionState:
        nodes: Dict[RuntimeID, BlockRuntimeState] = {}

        def process_block(block: AnyBlock, scope_id: Optional[str]) -> RuntimeID:
            node_id = block.id
            fields: Dict[str, Any] = {"id": node_id, "schema_id": node_id}

            if isinstance(block, InteractionUnit):
                fields["value"] = block.state.value
                fields["visited"] = block.state.visited
                fields["computed"] = ComputedState(required=block.state.required)
                # The view and its widgets read their value from this unit
                process_block(block.view, node_id)
            else:
                fields["scope_id"] = scope_id

            if isinstance(block, ContainerBlock):
                child_ids = [process_block(child, scope_id) for child in block.props.children]
                fields["children_ids"] = self._apply_container_behavior(block, child_ids)

            if node_id in nodes:
                logger.warning(f"Node {node_id} hydrated twice; keeping the last definition")
            nodes[node_id] = BlockRuntimeState(**fields)
            return node_id

        for page in self._schema.pages:
            for block in page.blocks:
                process_block(block, None)

        now = utc_now()
        first_page = self._schema.pages[0].id
        return QuizSessionState(
            session_id=f"sess_{uuid.uuid4().hex}",
            schema_id=self._schema.id,
            start_time=now,
            updated_at=now,
            status=SessionStatus.ACTIVE,
            current_step_id=first_page,
            history=[first_page],
            variables={name: var.default for name, var in self._schema.state.items()},
            nodes=nodes,
        )

    def _apply_container_behavior(self, block: ContainerBlock, child_ids: List[RuntimeID]) -> List[RuntimeID]:
        """Shuffle and/or pick a subset of children, once per session."""
        behavior = block.props.behavior
        if behavior is None:
            return child_ids

        ids = list(child_ids)
        if behavior.shuffle_children:
            self._rng.shuffle(ids)

        if behavior.pick_n is not None and behavior.pick_n < len(ids):
            if behavior.shuffle_children:
                ids = ids[: behavior.pick_n]
            else:
                chosen = sorted(self._rng.sample(range(len(ids)), behavior.pick_n))
                ids = [ids[i] for i in chosen]

        return ids

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Union[ActionModel, Mapping[str, Any]]) -> None:
        """
        Apply one action to the session.

        Accepts action models or their dict form ({"type": "SET_VALUE", ...}).
        Malformed actions and unknown node ids are logged and ignored.
        """
        if not isinstance(action, (SetValue, SetNodeProperty, SetVariable, Navigate)):
            try:
                action = _ACTION_ADAPTER.validate_python(action)
            except ValidationError as e:
                logger.warning(f"Ignoring malformed action {action!r}: {e.error_count()} error(s)")
                return

        logger.debug(f"Dispatch {action.type}: {action.model_dump(exclude={'type'})}")

        if isinstance(action, SetValue):
            self._set_value(action)
        elif isinstance(action, SetNodeProperty):
            self._set_node_property(action)
        elif isinstance(action, SetVariable):
            self._set_variable(action)
        elif isinstance(action, Navigate):
            self._navigate(action)

    def _commit(self, state: QuizSessionState, nodes: Optional[Dict[RuntimeID, BlockRuntimeState]] = None, **fields: Any) -> None:
        update: Dict[str, Any] = dict(fields)
        if nodes:
            update["nodes"] = {**state.nodes, **nodes}
        update["updated_at"] = utc_now()
        self._store.set_state(state.model_copy(update=update))

    def _set_value(self, action: SetValue) -> None:
        state = self._store.get_state()
        node = state.nodes.get(action.id)
        if node is None:
            logger.warning(f"Attempted to set value for unknown node: {action.id}")
            return

        next_node = node.model_copy(
            update={
                "value": action.value,
                "touched": True,
                "validation": self.validate_node(action.value, node.schema_id),
            }
        )
        # Committed before listeners run so they read the new value
        self._commit(state, nodes={action.id: next_node})
        self._after_change(f"{action.id}.value", action.value)

    def _set_node_property(self, action: SetNodeProperty) -> None:
        if action.property not in SETTABLE_NODE_PROPERTIES:
            logger.debug(f"Ignoring SET_NODE_PROPERTY of unsupported property '{action.property}'")
            return

        state = self._store.get_state()
        node = state.nodes.get(action.id)
        if node is None:
            logger.warning(f"Attempted to set property '{action.property}' on unknown node: {action.id}")
            return

        if action.property == "required":
            next_node = node.model_copy(
                update={"computed": node.computed.model_copy(update={"required": bool(action.value)})}
            )
        else:
            # visited is one-way
            if node.visited or not action.value:
                return
            next_node = node.model_copy(update={"visited": True})

        self._commit(state, nodes={action.id: next_node})
        self._recalculate_derived_state()

    def _set_variable(self, action: SetVariable) -> None:
        state = self._store.get_state()
        self._commit(state, variables={**state.variables, action.name: action.value})
        self._after_change(f"{GLOBAL_PREFIX}{action.name}", action.value)

    def _navigate(self, action: Navigate) -> None:
        if self._config.guard_navigation and action.target_id not in self.page_ids:
            logger.warning(f"Ignoring navigation to unknown page: {action.target_id}")
            return

        state = self._store.get_state()
        self._commit(
            state,
            current_step_id=action.target_id,
            history=[*state.history, action.target_id],
        )
        self._recalculate_derived_state()

    def _after_change(self, trigger_key: str, value: Any) -> None:
        """Run listeners for a changed path, then recompute unless a nested dispatch already did."""
        recomputes_before = self._recompute_count
        dispatched = self.process_listeners(trigger_key, value)
        if dispatched and self._recompute_count > recomputes_before:
            return
        self._recalculate_derived_state()

    # ------------------------------------------------------------------
    # Listener cascade & effects
    # ------------------------------------------------------------------

    def process_listeners(self, trigger_key: str, new_value: Any) -> bool:
        """
        Evaluate every listener registered for `trigger_key` and dispatch its effects.

        Args:
            trigger_key: Changed path, e.g. "q1.value" or "quiz.timer"
            new_value: The path's new value, bound under the trigger key

        Returns:
            True if at least one action was dispatched
        """
        if self._cascade_depth >= self._config.max_cascade_depth:
            logger.error(
                f"Listener cascade exceeded depth {self._config.max_cascade_depth} at '{trigger_key}'; "
                f"remaining listeners skipped"
            )
            return False

        self._cascade_depth += 1
        try:
            dispatched = False
            for unit in self._interaction_units:
                if unit.behavior is None or trigger_key not in unit.behavior.listeners:
                    continue

                logic = unit.behavior.listeners[trigger_key]
                expressions = logic if isinstance(logic, list) else [logic]
                for expression in expressions:
                    context = self.build_context(
                        local_value=self._node_value(unit.id),
                        **{trigger_key: new_value},
                    )
                    result = self._evaluator.evaluate(expression, context)
                    if self._dispatch_intents(collect_intents(result), unit.id):
                        dispatched = True
            return dispatched
        finally:
            self._cascade_depth -= 1

    def _dispatch_intents(self, intents: List[Intent], context_id: Optional[str]) -> List[ActionModel]:
        """Resolve and dispatch intents one at a time so each sees the state left by the previous."""
        dispatched: List[ActionModel] = []
        for intent in intents:
            for action in self.handle_effect_result(intent, context_id):
                self.dispatch(action)
                dispatched.append(action)
        return dispatched

    def handle_effect_result(self, result: Any, context_id: Optional[str]) -> List[ActionModel]:
        """
        Translate one intent into engine actions.

        Targets: "quiz.<name>" is a global variable; "<id>.<prop>" a node
        property; a bare "<prop>" a property of the originating node.

        Args:
            result: SetIntent, CompoundIntent, NavigateIntent or tagged dict
            context_id: Node that produced the intent

        Returns:
            Actions to dispatch (empty when the intent is invalid)
        """
        intent = parse_intent(result)
        if intent is None:
            logger.debug(f"Ignoring non-intent effect result: {result!r}")
            return []

        if isinstance(intent, NavigateIntent):
            return [Navigate(target_id=intent.target)]

        if isinstance(intent, CompoundIntent):
            return self._resolve_compound(intent, context_id)

        target = intent.target
        if target.startswith(GLOBAL_PREFIX):
            name = target[len(GLOBAL_PREFIX):]
            if not name:
                logger.warning(f"Effect target '{target}' names no variable")
                return []
            return [SetVariable(name=name, value=intent.value)]

        if "." in target:
            node_id, prop = target.split(".", 1)
        else:
            node_id, prop = context_id, target

        if not node_id:
            logger.warning(f"Effect target '{target}' has no node to apply to")
            return []

        if prop == "value":
            return [SetValue(id=node_id, value=intent.value)]
        return [SetNodeProperty(id=node_id, property=prop, value=intent.value)]

    def _resolve_compound(self, intent: CompoundIntent, context_id: Optional[str]) -> List[ActionModel]:
        base = self._resolve_base(intent.target, context_id)

        if intent.operator == "uncat" and base is None:
            logger.debug(f"Nothing to remove from missing '{intent.target}'")
            return []

        try:
            new_value = apply_compound(intent.operator, base, intent.amount)
        except ZeroDivisionError as e:
            logger.warning(f"Compound update of '{intent.target}' skipped: {e}")
            return []
        except (TypeError, ValueError) as e:
            logger.warning(f"Compound update of '{intent.target}' skipped: {e}")
            return []

        return self.handle_effect_result(SetIntent(target=intent.target, value=new_value), context_id)

    def _resolve_base(self, target: str, context_id: Optional[str]) -> Any:
        if target == "value":
            return self._node_value(context_id)
        if "." not in target and context_id:
            target = f"{context_id}.{target}"
        return self._evaluator.evaluate({"var": target}, self.build_context())

    def _node_value(self, node_id: Optional[str]) -> Any:
        node = self._store.get_node(node_id) if node_id else None
        return node.value if node is not None else None

    def execute_logic_action(self, logic: Any, context_id: str) -> List[ActionModel]:
        """
        Run imperative logic from the UI (e.g. a trigger's on_click).

        A scoped node (a widget inside an interaction unit) acts on behalf of
        its unit: the unit's value is bound as `value` and bare targets
        address the unit.

        Returns:
            The actions dispatched (empty when `context_id` is unknown)
        """
        node = self._store.get_node(context_id)
        if node is None:
            logger.warning(f"Ignoring logic action from unknown node: {context_id}")
            return []

        if isinstance(logic, dict) and len(logic) == 1 and isinstance(logic.get("navigate"), str):
            action = Navigate(target_id=logic["navigate"])
            self.dispatch(action)
            return [action]

        owner_id = node.scope_id or context_id

        context = self.build_context(local_value=self._node_value(owner_id))
        intents = collect_intents(self._evaluator.evaluate(logic, context))
        if not intents:
            logger.debug(f"Logic action from {context_id} produced no effects")
            return []
        return self._dispatch_intents(intents, owner_id)

    # ------------------------------------------------------------------
    # Derived state & validation
    # ------------------------------------------------------------------

    def _recalculate_derived_state(self) -> None:
        self._recompute_count += 1

        state = self._store.get_state()
        globals_view = self._globals_view(state)
        nodes_view = self._nodes_view(state)
        updates: Dict[RuntimeID, BlockRuntimeState] = {}

        for node in state.nodes.values():
            block = self._schema_map.get(node.schema_id)
            if block is None:
                continue

            # Widgets evaluate logic against their owning unit's value
            if node.scope_id and node.scope_id in state.nodes:
                local_value = state.nodes[node.scope_id].value
            else:
                local_value = node.value

            context = LogicEvaluator.make_context(globals_view, nodes_view, value=local_value)
            computed = self._compute_flags(block, node.computed, context)
            if computed != node.computed:
                updates[node.id] = node.model_copy(update={"computed": computed})

        if updates:
            logger.debug(f"Derived state changed for {len(updates)} node(s)")
            self._commit(state, nodes=updates)

    def _compute_flags(self, block: AnyBlock, current: ComputedState, context: Dict[str, Any]) -> ComputedState:
        if isinstance(block, InteractionUnit):
            behavior = block.behavior
            if behavior is None:
                return current
            return current.model_copy(
                update={
                    "hidden": self._evaluate_flag(behavior.hidden, context, False),
                    "disabled": self._evaluate_flag(behavior.disabled, context, False),
                }
            )

        props = getattr(block, "props", None)
        logic = getattr(props, "state_logic", None)
        static_disabled = bool(getattr(props, "disabled", False))
        if logic is None:
            if static_disabled == current.disabled:
                return current
            return current.model_copy(update={"disabled": static_disabled})

        return current.model_copy(
            update={
                "hidden": self._evaluate_flag(logic.hidden, context, False),
                "disabled": self._evaluate_flag(logic.disabled, context, static_disabled),
                "active": self._evaluate_flag(logic.active, context, False),
            }
        )

    def _evaluate_flag(self, expression: Any, context: Dict[str, Any], default: bool) -> bool:
        if expression is None:
            return default
        return bool(self._evaluator.evaluate(expression, context))

    def validate_node(self, value: Any, schema_id: str) -> ValidationResult:
        """
        Validate a value for a node.

        Interaction units check the value against their domain; other blocks
        are always valid. Context validators are not evaluated.
        """
        block = self._schema_map.get(schema_id)
        if not isinstance(block, InteractionUnit):
            return ValidationResult()

        check = self._domain_registry.check(value, block.domain_id)
        if not check.is_valid:
            logger.debug(f"Value {value!r} rejected for {schema_id} ({check.status.value}: {check.reason})")
            return ValidationResult(is_valid=False, errors=[INVALID_FORMAT_ERROR])
        return ValidationResult()
