"""
Topic canonicalization.

GitHub topics are free-form, so the same subject shows up under several
spellings (``ml``, ``machine-learning``; ``library``, ``libraries``). Raw topics
are mapped to a canonical key by an exact synonym lookup first and a small set
of singularization heuristics second. Canonicalization is only ever applied to
raw topic strings, never to keys it has already produced.
"""
from typing import Dict, Iterable, List, Set

# Exact-match synonyms. A hit is returned as-is, singularization is skipped.
SYNONYMS: Dict[str, str] = {
    "ai": "artificial-intelligence",
    "artificial-intelligence": "artificial-intelligence",
    "ai-agent": "ai-agent",
    "ai-agents": "ai-agent",
    "agent": "ai-agent",
    "agents": "ai-agent",
    "agentic": "ai-agent",
    "agentic-ai": "ai-agent",
    "gpt": "openai",
    "gpt-3": "openai",
    "gpt-4": "openai",
    "chatgpt": "openai",
    "openai": "openai",
    "ml": "machine-learning",
    "dl": "deep-learning",
    "nlp": "natural-language-processing",
    "cv": "computer-vision",
    "llm": "llm",
    "llms": "llm",
    "large-language-model": "llm",
    "large-language-models": "llm",
    "genai": "generative-ai",
    "gen-ai": "generative-ai",
    "rag": "retrieval-augmented-generation",
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "python3": "python",
    "golang": "go",
    "k8s": "kubernetes",
    "reactjs": "react",
    "react-js": "react",
    "vuejs": "vue",
    "vue-js": "vue",
    "node-js": "nodejs",
    "node": "nodejs",
    "db": "database",
    "cli-tool": "cli",
    "command-line": "cli",
}

# Words that end in "s" without being plurals.
NON_PLURALS: Set[str] = {
    "redis", "postgres", "canvas", "cors", "sass", "less", "css", "express",
    "cypress", "aws", "ios", "macos", "devops", "kubernetes",
}

_ES_STEM_ENDINGS = ("s", "x", "z", "ch", "sh")


def singularize(word: str) -> str:
    """Apply the ordered singularization rules; the first matching rule wins."""
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"

    if word.endswith("es") and not word.endswith(("ess", "ness", "less")) and len(word) > 3:
        stem = word[:-2]
        if stem.endswith(_ES_STEM_ENDINGS):
            return stem
        return word

    if (
        word.endswith("s")
        and not word.endswith(("ss", "us", "as", "is"))
        and len(word) > 3
        and word not in NON_PLURALS
    ):
        return word[:-1]

    return word


def canonicalize(raw: str) -> str:
    """Map a raw topic string to its canonical key."""
    word = raw.strip().lower()
    synonym = SYNONYMS.get(word)
    if synonym is not None:
        return synonym
    return singularize(word)


class TopicIndex:
    """
    Canonicalizes raw topics and remembers every raw string seen per key.

    Canonical keys are memoized per raw string, so a key is computed once per
    distinct spelling within the lifetime of the index.
    """

    def __init__(self) -> None:
        self._keys: Dict[str, str] = {}
        self._variations: Dict[str, List[str]] = {}

    def key(self, raw: str) -> str:
        key = self._keys.get(raw)
        if key is None:
            key = canonicalize(raw)
            self._keys[raw] = key
        variations = self._variations.setdefault(key, [])
        if raw not in variations:
            variations.append(raw)
        return key

    def keys_for(self, raw_topics: Iterable[str]) -> List[str]:
        """Canonical keys of one repository's topics, deduplicated, first-seen order."""
        seen: List[str] = []
        for raw in raw_topics:
            key = self.key(raw)
            if key not in seen:
                seen.append(key)
        return seen

    def variations(self, key: str) -> List[str]:
        return list(self._variations.get(key, []))
