"""
Phrase book: the texts the narrator speaks and extra command keywords.

Phrase books are YAML (preferred) or JSON files in `narration/phrases/`,
parsed with PyYAML's safe_load. Selection is by name (NARRATION_PHRASEBOOK).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .commands import Command


DEFAULT_PROMPT = (
    "Say 'continue' to proceed, 'repeat' to hear this again, "
    "'start over' to begin from the start, or 'stop' to cancel."
)

# Placeholders available to the intro, ingredients and steps templates.
TEMPLATE_FIELDS = ("name", "chef", "family", "ingredients", "steps")


def _check_template(key: str, template: str) -> str:
    try:
        template.format(**{field: "" for field in TEMPLATE_FIELDS})
    except (KeyError, IndexError, AttributeError, ValueError) as e:
        raise ValueError(f"Invalid phrasebook template {key!r}: {template!r}") from e
    return template


_FALLBACK: Dict[str, Any] = {
    "name": "default",
    "intro": "This is the {name} recipe from {chef}.......",
    "ingredients": "Here are the Ingredients........ {ingredients}",
    "steps": "And now the steps for preparation. {steps}",
    "prompt": DEFAULT_PROMPT,
    "keywords": {},
}


@dataclass(frozen=True)
class Phrasebook:
    name: str
    intro: str
    ingredients: str
    steps: str
    prompt: str
    keywords: Dict[Command, Tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Phrasebook":
        keywords: Dict[Command, Tuple[str, ...]] = {}
        for key, words in (data.get("keywords") or {}).items():
            try:
                command = Command(str(key).lower())
            except ValueError:
                raise ValueError(f"Unknown command in phrasebook keywords: {key}")
            if isinstance(words, str):
                words = [words]
            keywords[command] = tuple(str(w) for w in words)

        return cls(
            name=str(data.get("name", "default")),
            intro=_check_template("intro", str(data.get("intro", _FALLBACK["intro"]))),
            ingredients=_check_template("ingredients", str(data.get("ingredients", _FALLBACK["ingredients"]))),
            steps=_check_template("steps", str(data.get("steps", _FALLBACK["steps"]))),
            prompt=" ".join(str(data.get("prompt", DEFAULT_PROMPT)).split()),
            keywords=keywords,
        )


def _get_phrases_dir() -> Path:
    return Path(__file__).parent / "phrases"


def _load_file(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Phrasebook file {path} must contain a mapping at top-level")
    return data


def load_phrasebook(name: Optional[str] = None, directory: Optional[Path] = None) -> Phrasebook:
    """
    Load a phrase book by name.

    Resolution order:
    1) <name>.yaml / <name>.yml / <name>.json
    2) default.yaml / default.yml / default.json
    3) built-in texts
    """
    phrases_dir = directory or _get_phrases_dir()
    for stem in (name or "default", "default"):
        for suffix in (".yaml", ".yml", ".json"):
            candidate = phrases_dir / f"{stem}{suffix}"
            if candidate.exists():
                return Phrasebook.from_dict(_load_file(candidate))

    return Phrasebook.from_dict(_FALLBACK)
