"""
Weight trees.

The UI hands over weights as a nested mapping: a component is either a
number (a leaf) or a mapping of sub-components, with the component's own
share under the ``"weight"`` key. ``parse_weight_tree`` checks that mapping
against ``WEIGHT_SCHEMA`` once and returns a tree of ``Leaf`` and ``Branch``
nodes; ``compose_tree`` then folds leaf scores up through it.

Sibling weights are expected to sum to 100 but never have to. At every
branch the score is

    sum(score_i * weight_i) / sum(weight_i)

over the children that have a score and a positive weight, so a missing or
disabled child shrinks the denominator instead of dragging the score to 0.
"""
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from config.settings import DEFAULT_WEIGHTS, WEIGHT_PRESETS
from qb_rankings.features.clutch_categories import CLUTCH_CATEGORIES
from qb_rankings.utils.helpers import weighted_mean

# Weight of a branch whose mapping does not carry a "weight" key.
DEFAULT_BRANCH_WEIGHT = 100.0

WEIGHT_KEY = "weight"

LeafPath = Tuple[str, ...]

# Component names the composer understands. None marks a leaf.
WEIGHT_SCHEMA: Dict[str, Any] = {
    "team": {
        "regular_season": None,
        "offensive_output": None,
        "playoff": None,
    },
    "stats": {
        "efficiency": {
            "any_a": None,
            "td_pct": None,
            "completion_pct": None,
        },
        "protection": {
            "sack_pct": None,
            "turnover_rate": None,
        },
        "volume": {
            "pass_yards": None,
            "pass_tds": None,
            "rush_yards": None,
            "rush_tds": None,
            "total_attempts": None,
        },
    },
    "clutch": {
        "game_winning_drives": None,
        "fourth_quarter_comebacks": None,
        "situational": {key: None for key in CLUTCH_CATEGORIES},
        "playoff_bonus": None,
    },
    "durability": {
        "availability": None,
        "consistency": None,
    },
    "support": {
        "offensive_line": None,
        "weapons": None,
        "defense": None,
    },
}


class WeightConfigurationError(ValueError):
    """A weight mapping does not fit the component schema."""


@dataclass(frozen=True)
class Leaf:
    weight: float


@dataclass(frozen=True)
class Branch:
    weight: float
    children: Dict[str, "WeightNode"] = field(default_factory=dict)

    def get(self, path: LeafPath) -> Optional["WeightNode"]:
        """Node at a path of component names, or None."""
        node: WeightNode = self
        for name in path:
            if not isinstance(node, Branch) or name not in node.children:
                return None
            node = node.children[name]
        return node

    def leaf_paths(self, prefix: LeafPath = ()) -> Dict[LeafPath, float]:
        """Every leaf below this branch with its raw weight."""
        paths: Dict[LeafPath, float] = {}
        for name, child in self.children.items():
            if isinstance(child, Branch):
                paths.update(child.leaf_paths(prefix + (name,)))
            else:
                paths[prefix + (name,)] = child.weight
        return paths

    def to_dict(self) -> Dict[str, Any]:
        """Back to the nested-mapping format the UI edits."""
        out: Dict[str, Any] = {WEIGHT_KEY: self.weight}
        for name, child in self.children.items():
            out[name] = child.to_dict() if isinstance(child, Branch) else child.weight
        return out


WeightNode = Union[Leaf, Branch]


def _format_path(path: LeafPath) -> str:
    return ".".join(path) if path else "<root>"


def _parse_weight(value: Any, path: LeafPath) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise WeightConfigurationError(
            f"Weight for '{_format_path(path)}' must be a number, got {value!r}"
        )
    weight = float(value)
    if math.isnan(weight) or math.isinf(weight) or weight < 0:
        raise WeightConfigurationError(
            f"Weight for '{_format_path(path)}' must be a finite non-negative number, got {value!r}"
        )
    return weight


def _parse_branch(
    mapping: Mapping[str, Any],
    schema: Mapping[str, Any],
    defaults: Optional[Mapping[str, Any]],
    path: LeafPath,
) -> Branch:
    weight = DEFAULT_BRANCH_WEIGHT
    children: Dict[str, WeightNode] = {}

    for name, value in mapping.items():
        if name == WEIGHT_KEY:
            weight = _parse_weight(value, path)
            continue
        if name not in schema:
            known = ", ".join(sorted(schema))
            raise WeightConfigurationError(
                f"Unknown component '{_format_path(path + (name,))}' (expected one of: {known})"
            )
        child_schema = schema[name]
        child_path = path + (name,)
        child_defaults = defaults.get(name) if isinstance(defaults, Mapping) else None

        if child_schema is None:
            if isinstance(value, Mapping):
                raise WeightConfigurationError(
                    f"Component '{_format_path(child_path)}' is a leaf and takes a number"
                )
            children[name] = Leaf(_parse_weight(value, child_path))
        elif isinstance(value, Mapping):
            children[name] = _parse_branch(value, child_schema, child_defaults, child_path)
        else:
            # A bare number for a branch keeps the default sub-weights.
            branch_weight = _parse_weight(value, child_path)
            sub = dict(child_defaults) if isinstance(child_defaults, Mapping) else {}
            sub[WEIGHT_KEY] = branch_weight
            children[name] = _parse_branch(sub, child_schema, child_defaults, child_path)

    return Branch(weight=weight, children=children)


def parse_weight_tree(
    mapping: Optional[Mapping[str, Any]] = None,
    schema: Optional[Mapping[str, Any]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> Branch:
    """
    Validate a nested weight mapping and build a weight tree.

    Args:
        mapping: UI weight mapping. None uses DEFAULT_WEIGHTS.
        schema: Component schema (WEIGHT_SCHEMA by default)
        defaults: Sub-weights used when a branch is given as a bare number

    Returns:
        Root Branch of the tree. Components left out of the mapping are
        left out of the tree and contribute nothing.

    Raises:
        WeightConfigurationError: unknown component name, a mapping where a
            leaf is expected, or a negative or non-numeric weight.
    """
    if mapping is None:
        mapping = DEFAULT_WEIGHTS
    if schema is None:
        schema = WEIGHT_SCHEMA
    if defaults is None:
        defaults = DEFAULT_WEIGHTS
    if not isinstance(mapping, Mapping):
        raise WeightConfigurationError(f"Weights must be a mapping, got {type(mapping).__name__}")
    return _parse_branch(mapping, schema, defaults, ())


def preset_weights(name: str) -> Branch:
    """Weight tree for a named preset from WEIGHT_PRESETS."""
    preset = WEIGHT_PRESETS.get(name)
    if preset is None:
        raise WeightConfigurationError(
            f"Unknown weight preset '{name}' (expected one of: {', '.join(WEIGHT_PRESETS)})"
        )
    return parse_weight_tree(preset)


@dataclass
class ComponentScore:
    """
    Composed score of one node of the weight tree.

    ``score`` is in [0, 1], or None when nothing below the node had data.
    """
    name: str
    weight: float
    score: Optional[float] = None
    children: Dict[str, "ComponentScore"] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return self.score is not None

    @property
    def points(self) -> float:
        """Score on the 0-100 display scale (0 when absent)."""
        return 0.0 if self.score is None else self.score * 100.0

    def child(self, *path: str) -> Optional["ComponentScore"]:
        node = self
        for name in path:
            node = node.children.get(name)
            if node is None:
                return None
        return node

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "weight": self.weight,
            "score": None if self.score is None else self.points,
        }
        if self.children:
            out["children"] = {name: c.to_dict() for name, c in self.children.items()}
        return out


def compose_tree(
    node: WeightNode,
    leaf_scores: Mapping[LeafPath, Optional[float]],
    name: str = "overall",
    path: LeafPath = (),
) -> ComponentScore:
    """
    Fold leaf scores up through a weight tree.

    Args:
        node: Tree (or subtree) to compose
        leaf_scores: Leaf path -> score in [0, 1], or None when absent.
            Leaves missing from the mapping are absent.
        name: Name of ``node`` in the result

    Returns:
        ComponentScore for ``node`` with the full child breakdown. A branch
        whose children are all absent or zero-weighted is itself absent.
    """
    if isinstance(node, Leaf):
        return ComponentScore(name=name, weight=node.weight, score=leaf_scores.get(path))

    children = {
        child_name: compose_tree(child, leaf_scores, child_name, path + (child_name,))
        for child_name, child in node.children.items()
    }
    score = weighted_mean(
        {child_name: c.score for child_name, c in children.items()},
        {child_name: c.weight for child_name, c in children.items()},
    )
    return ComponentScore(name=name, weight=node.weight, score=score, children=children)
