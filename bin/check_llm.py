#!/usr/bin/env python3
"""Quick check: synthesize one fake topic with the configured LLM provider. Run from project root."""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))

from newsdigest.config import api_keys, load_config
from newsdigest.digest.models import ArticleResult
from newsdigest.digest.summarizer import LLMSummarizer, synthesis_error_message


def main() -> None:
    config = load_config(str(root / "config.yaml"))
    _, _, llm_key = api_keys(config)

    topic = "Test du fournisseur LLM"
    articles = [
        ArticleResult(
            title="Un article de test",
            link="https://example.com/test",
            snippet="Ceci est un court extrait pour vérifier que la synthèse fonctionne.",
            source="example.com",
        )
    ]

    summarizer = LLMSummarizer(config)
    summary = asyncio.run(summarizer.synthesize(topic, articles, llm_key))

    print("Summary:", summary)
    if summary == synthesis_error_message(topic):
        sys.exit(1)
    print(f"OK: {summarizer.provider} summarizer works.")


if __name__ == "__main__":
    main()
