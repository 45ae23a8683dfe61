"""
Priority-function contract: validation, ordering and custom compilation.

A boarding algorithm is any callable priority(passenger, context) -> number.
Higher priority boards earlier; ties go to the lower passenger id, so a
given set of priorities always yields exactly one boarding order.

Custom algorithms arrive as Python source for a function body, e.g.

    row_weight = 10
    return passenger.row * row_weight

Top-level numeric assignments such as `row_weight` become tunable
parameters that can be overridden without editing the code.
"""

import ast
import logging
import math
import numbers
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from boardingsim.config import CONFIG, LayoutConfig
from boardingsim.errors import ContractViolation
from boardingsim.passenger import Passenger, PassengerView
from boardingsim.rng import DeterministicSequence

logger = logging.getLogger(__name__)

PriorityFn = Callable[[PassengerView, 'AlgorithmContext'], float]
PriorityFactory = Callable[[Mapping[str, float], Optional[DeterministicSequence]], PriorityFn]

# ==============[CONTRACT TYPES]====================


@dataclass(frozen=True)
class AlgorithmContext:
    """Flight-wide facts visible to every priority evaluation."""
    total_rows: int
    total_passengers: int
    columns: Tuple[str, ...]

    @classmethod
    def for_flight(cls, layout: LayoutConfig, passenger_count: int) -> "AlgorithmContext":
        return cls(total_rows=layout.rows, total_passengers=passenger_count,
                   columns=tuple(layout.columns))


@dataclass(frozen=True)
class ParameterSpec:
    """A numeric knob an algorithm exposes to users and to the optimizer."""
    label: str
    default: float
    min: float
    max: float

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(True, [], list(warnings or []))

    @classmethod
    def failure(cls, errors: List[str], warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(False, list(errors), list(warnings or []))

    def raise_if_invalid(self):
        if not self.is_valid:
            raise ContractViolation(self)

    def to_dict(self) -> dict:
        return {'is_valid': self.is_valid, 'errors': self.errors, 'warnings': self.warnings}


@dataclass(frozen=True)
class BoardingAlgorithm:
    """
    A named boarding strategy: preset or user-defined, same interface.

    Attributes:
        key:         Registry key (custom algorithms use 'custom').
        name:        Display name.
        description: One-line summary.
        code:        Python source of the priority body, for display/editing.
        factory:     (params, rng) -> priority function.
        parameters:  Tunable numeric knobs (name -> ParameterSpec).
        custom:      True when built from user-supplied source.
    """
    key: str
    name: str
    description: str
    code: str
    factory: PriorityFactory
    parameters: Mapping[str, ParameterSpec] = field(default_factory=dict)
    custom: bool = False

    def default_params(self) -> Dict[str, float]:
        return {name: spec.default for name, spec in self.parameters.items()}

    def create_priority_fn(
        self,
        params: Optional[Mapping[str, float]] = None,
        rng: Optional[DeterministicSequence] = None,
    ) -> PriorityFn:
        merged = self.default_params()
        merged.update(params or {})
        return self.factory(merged, rng)

# ==============[VALIDATION]====================


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_priority_fn(
    priority_fn: Any,
    sample: Sequence[PassengerView],
    context: AlgorithmContext,
    budget_ms: float = CONFIG['VALIDATION_BUDGET_MS'],
    determinism_sample: int = CONFIG['DETERMINISM_SAMPLE'],
) -> ValidationResult:
    """
    Check a priority function before it is allowed to drive a simulation.

    Rejects non-callables, non-numeric / NaN / infinite results, exceptions
    raised during evaluation, a sample run slower than `budget_ms`, and
    results that change when the first `determinism_sample` passengers are
    evaluated again. Never raises; problems come back as error messages.
    """
    if not callable(priority_fn):
        return ValidationResult.failure(['Priority must be a function'])

    errors: List[str] = []
    warnings: List[str] = []
    if not sample:
        warnings.append('No sample passengers; priority function was not exercised')

    started = time.perf_counter()
    for passenger in sample:
        try:
            result = priority_fn(passenger, context)
        except Exception as exc:
            errors.append(f'Execution error: {type(exc).__name__}: {exc}')
            break

        if not _is_number(result):
            errors.append(f'Priority function returned {type(result).__name__}, expected number')
            break
        try:
            value = float(result)
        except OverflowError:
            # Integers beyond float range
            errors.append('Priority function returned Infinity')
            break
        if math.isnan(value):
            errors.append('Priority function returned NaN')
            break
        if math.isinf(value):
            errors.append('Priority function returned Infinity')
            break

        if (time.perf_counter() - started) * 1000 > budget_ms:
            errors.append(f'Execution time exceeded limit of {budget_ms:g} ms')
            break

    if not errors:
        for passenger in sample[:determinism_sample]:
            try:
                first = priority_fn(passenger, context)
                second = priority_fn(passenger, context)
            except Exception as exc:
                errors.append(f'Execution error: {type(exc).__name__}: {exc}')
                break
            if first != second:
                errors.append('Priority function is not deterministic')
                break

    if errors:
        return ValidationResult.failure(errors, warnings)
    return ValidationResult.success(warnings)


def validate_algorithm(
    algorithm: BoardingAlgorithm,
    passengers: Sequence[Passenger],
    layout: LayoutConfig,
    params: Optional[Mapping[str, float]] = None,
    rng: Optional[DeterministicSequence] = None,
) -> ValidationResult:
    """Build the algorithm's priority function and validate it on `passengers`."""
    warnings = []
    unknown = sorted(set(params or {}) - set(algorithm.parameters))
    if unknown:
        warnings.append(f"Ignoring unknown parameters: {', '.join(unknown)}")
    try:
        priority_fn = algorithm.create_priority_fn(params, rng)
    except Exception as exc:
        return ValidationResult.failure([f'Construction error: {type(exc).__name__}: {exc}'], warnings)

    result = validate_on_flight(priority_fn, passengers, layout)
    result.warnings[:0] = warnings
    return result


def validate_on_flight(
    priority_fn: Any,
    passengers: Sequence[Passenger],
    layout: LayoutConfig,
) -> ValidationResult:
    """Validate against every passenger of an actual flight."""
    context = AlgorithmContext.for_flight(layout, len(passengers))
    views = [p.to_view(layout) for p in passengers]
    return validate_priority_fn(priority_fn, views, context)

# ==============[BOARDING ORDER]====================


def compute_boarding_order(
    priority_fn: PriorityFn,
    passengers: Sequence[Passenger],
    layout: LayoutConfig,
) -> List[int]:
    """
    Passenger ids sorted by descending priority, ties by ascending id.

    Returns:
        Boarding order (first element boards first)
    """
    context = AlgorithmContext.for_flight(layout, len(passengers))
    scored = [(priority_fn(p.to_view(layout), context), p.id) for p in passengers]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [pid for _, pid in scored]


def prepare_boarding_order(
    algorithm: BoardingAlgorithm,
    passengers: Sequence[Passenger],
    layout: LayoutConfig,
    params: Optional[Mapping[str, float]] = None,
    rng: Optional[DeterministicSequence] = None,
    validate: bool = True,
) -> List[int]:
    """
    Validate an algorithm on this flight, then produce its boarding order.

    Raises:
        ContractViolation: the priority function failed validation; no
            order is produced and nothing is simulated.
    """
    priority_fn = algorithm.create_priority_fn(params, rng)
    if validate:
        result = validate_on_flight(priority_fn, passengers, layout)
        if not result.is_valid:
            logger.warning("Algorithm %r rejected: %s", algorithm.name, "; ".join(result.errors))
            raise ContractViolation(result)
    return compute_boarding_order(priority_fn, passengers, layout)

# ==============[CUSTOM CODE PREFILTER]====================

FORBIDDEN_NODES = {
    ast.Import: 'imports',
    ast.ImportFrom: 'imports',
    ast.While: 'while loops',
    ast.For: 'for loops',
    ast.AsyncFor: 'asynchronous constructs',
    ast.AsyncWith: 'asynchronous constructs',
    ast.AsyncFunctionDef: 'asynchronous constructs',
    ast.Await: 'asynchronous constructs',
    ast.Yield: 'generators',
    ast.YieldFrom: 'generators',
    ast.With: 'context managers',
    ast.Global: 'global statements',
    ast.Nonlocal: 'nonlocal statements',
    ast.FunctionDef: 'nested function definitions',
    ast.ClassDef: 'class definitions',
    ast.Lambda: 'lambdas',
    ast.Delete: 'del statements',
}

FORBIDDEN_NAMES = {
    'eval', 'exec', 'compile', 'open', '__import__', 'input', 'print',
    'globals', 'locals', 'vars', 'getattr', 'setattr', 'delattr',
    'breakpoint', 'exit', 'quit', 'help', 'memoryview', 'type', 'object', 'pow',
    # Modules offering IO, clocks, randomness or concurrency
    'os', 'sys', 'io', 'socket', 'subprocess', 'pathlib', 'shutil',
    'time', 'datetime', 'random', 'secrets', 'asyncio', 'threading',
    'multiprocessing', 'requests', 'urllib', 'http', 'builtins', 'importlib',
}

SAFE_BUILTINS = {
    'abs': abs, 'min': min, 'max': max, 'round': round, 'sum': sum,
    'len': len, 'int': int, 'float': float, 'bool': bool, 'str': str,
    'divmod': divmod, 'sorted': sorted, 'any': any, 'all': all,
    'range': range, 'enumerate': enumerate, 'zip': zip,
    'dict': dict, 'list': list, 'tuple': tuple, 'set': set,
    'True': True, 'False': False, 'None': None,
}

# Ranges feeding comprehensions stay bounded
MAX_RANGE = 10000

# Big-integer arithmetic that a single call could spend seconds on
MAX_EXPONENT = 64
FORBIDDEN_MATH = {'factorial', 'comb', 'perm'}


def _bounded_range(*args):
    r = range(*args)
    if len(r) > MAX_RANGE:
        raise ValueError(f'range of {len(r)} items exceeds limit of {MAX_RANGE}')
    return r


def check_forbidden_constructs(tree: ast.AST, line_offset: int = 0) -> List[str]:
    """Static prefilter: constructs that could bring IO, randomness or unbounded work."""
    problems = []
    for node in ast.walk(tree):
        lineno = getattr(node, 'lineno', 0) - line_offset
        for node_type, label in FORBIDDEN_NODES.items():
            if isinstance(node, node_type):
                problems.append(f'Forbidden construct on line {lineno}: {label}')
        if isinstance(node, ast.Name) and node.id in FORBIDDEN_NAMES:
            problems.append(f'Forbidden name on line {lineno}: {node.id}')
        elif isinstance(node, ast.Attribute) and node.attr.startswith('_'):
            problems.append(f'Forbidden attribute on line {lineno}: {node.attr}')
        elif isinstance(node, ast.Attribute) and node.attr in FORBIDDEN_MATH:
            problems.append(f'Forbidden name on line {lineno}: {node.attr}')
        if isinstance(node, (ast.BinOp, ast.AugAssign)) and isinstance(node.op, ast.Pow):
            exponent = _numeric_literal(node.right if isinstance(node, ast.BinOp) else node.value)
            if exponent is None or abs(exponent) > MAX_EXPONENT:
                problems.append(
                    f'Forbidden construct on line {lineno}: exponent must be a number literal '
                    f'of at most {MAX_EXPONENT}'
                )
    return problems


def _numeric_literal(node: ast.AST) -> Optional[float]:
    if isinstance(node, ast.Constant) and _is_number(node.value):
        return node.value
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        inner = _numeric_literal(node.operand)
        if inner is not None:
            return -inner if isinstance(node.op, ast.USub) else inner
    return None


def _label_for(name: str) -> str:
    """row_weight -> 'Row Weight', rowWeight -> 'Row Weight'."""
    words = re.sub(r'([a-z0-9])([A-Z])', r'\1 \2', name).replace('_', ' ').split()
    return ' '.join(w[:1].upper() + w[1:] for w in words)


def extract_parameters(body: Sequence[ast.stmt]) -> Dict[str, ParameterSpec]:
    """Top-level `name = <number>` statements, in source order."""
    params = {}
    for stmt in body:
        if (isinstance(stmt, ast.Assign) and len(stmt.targets) == 1
                and isinstance(stmt.targets[0], ast.Name)):
            value = _numeric_literal(stmt.value)
            if value is not None and stmt.targets[0].id not in params:
                params[stmt.targets[0].id] = ParameterSpec(
                    label=_label_for(stmt.targets[0].id),
                    default=value,
                    min=CONFIG['CUSTOM_PARAM_MIN'],
                    max=CONFIG['CUSTOM_PARAM_MAX'],
                )
    return params


def _apply_overrides(func: ast.FunctionDef, overrides: Mapping[str, float]):
    """Swap the literal of overridden top-level parameter assignments."""
    for stmt in func.body:
        if (isinstance(stmt, ast.Assign) and len(stmt.targets) == 1
                and isinstance(stmt.targets[0], ast.Name)
                and stmt.targets[0].id in overrides
                and _numeric_literal(stmt.value) is not None):
            literal = ast.Constant(overrides[stmt.targets[0].id])
            stmt.value = ast.copy_location(literal, stmt.value)


def parse_priority_code(code: str) -> Tuple[Optional[ast.Module], List[str]]:
    """Parse a priority body and run the prefilter. Returns (tree, errors)."""
    if not code or not code.strip():
        return None, ['Priority code is empty']

    indented = '\n'.join('    ' + line for line in code.splitlines())
    source = f'def priority(passenger, context):\n{indented}\n'
    try:
        tree = ast.parse(source, filename='<priority>', mode='exec')
    except SyntaxError as exc:
        # Line numbers are shifted by the wrapper's def line
        lineno = (exc.lineno or 1) - 1
        return None, [f'Syntax error on line {lineno}: {exc.msg}']

    func = tree.body[0]
    problems = check_forbidden_constructs(ast.Module(body=func.body, type_ignores=[]), line_offset=1)
    if problems:
        return None, problems
    if not any(isinstance(node, ast.Return) for node in ast.walk(func)):
        return None, ['Priority code must return a value']
    return tree, []


def compile_priority_code(code: str, overrides: Optional[Mapping[str, float]] = None) -> PriorityFn:
    """
    Compile user source into priority(passenger, context).

    Raises:
        ContractViolation: the code failed parsing or the static prefilter
    """
    tree, errors = parse_priority_code(code)
    if errors:
        raise ContractViolation(ValidationResult.failure(errors))

    if overrides:
        _apply_overrides(tree.body[0], overrides)
    ast.fix_missing_locations(tree)

    builtins = dict(SAFE_BUILTINS, range=_bounded_range)
    namespace = {'__builtins__': builtins, 'math': math}
    exec(compile(tree, '<priority>', 'exec'), namespace)
    return namespace['priority']


def compile_algorithm(code: str, name: str = 'Custom', base: Optional[BoardingAlgorithm] = None) -> BoardingAlgorithm:
    """
    Turn user source into a BoardingAlgorithm.

    When `base` is given, the result is named as its modified version.

    Raises:
        ContractViolation: the code failed parsing or the static prefilter
    """
    tree, errors = parse_priority_code(code)
    if errors:
        raise ContractViolation(ValidationResult.failure(errors))
    parameters = extract_parameters(tree.body[0].body)

    def factory(params, rng=None):
        return compile_priority_code(code, params)

    if base is not None:
        name = base.name if base.name.endswith('(Modified)') else f'{base.name} (Modified)'
    return BoardingAlgorithm(
        key='custom',
        name=name,
        description=base.description if base is not None else 'User-defined priority function',
        code=code,
        factory=factory,
        parameters=parameters,
        custom=True,
    )
