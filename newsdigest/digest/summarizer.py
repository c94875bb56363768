"""LLM summarizer with multi-provider support (Gemini, OpenAI, Anthropic, local, mock)."""

from __future__ import annotations

import logging
from typing import Any, List

from newsdigest.digest.models import ArticleResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Tu es un analyste de veille technologique. Tu rédiges des synthèses "
    "factuelles en français, sans mentionner que tu es une IA."
)


def no_articles_message(topic: str) -> str:
    return f'Aucun article récent trouvé pour "{topic}" au cours des dernières 24 heures.'


def synthesis_error_message(topic: str) -> str:
    return f'Erreur lors de la synthèse pour "{topic}". Les articles sont listés ci-dessous.'


class LLMSummarizer:
    """Turn a topic's recent articles into a 3-5 paragraph French synthesis."""

    def __init__(self, config: dict[str, Any]) -> None:
        llm = config.get("llm", {})
        self.provider: str = (llm.get("provider") or "gemini").lower()
        self.model: str = llm.get("model") or "gemini-2.0-flash"
        self.max_tokens: int = llm.get("max_tokens", 1024)
        self.temperature: float = llm.get("temperature", 0.4)
        self.local_url: str = llm.get("local_url", "http://localhost:11434/v1")
        self.local_model: str = llm.get("local_model", "llama3.2")

    async def synthesize(self, topic: str, articles: List[ArticleResult], api_key: str) -> str:
        """Return the synthesis for ``topic``.

        No articles: a fixed message, no model call. Provider failure or empty
        output: a fixed error sentence for this topic only.
        """
        if not articles:
            return no_articles_message(topic)

        prompt = self.build_prompt(topic, articles)
        try:
            text = await self._dispatch(prompt, topic, articles, api_key)
        except Exception as e:
            logger.error("LLM synthesis error for %r: %s", topic, e)
            return synthesis_error_message(topic)

        text = (text or "").strip()
        if not text:
            logger.warning("LLM returned empty synthesis for %r", topic)
            return synthesis_error_message(topic)
        return text

    async def _dispatch(
        self, prompt: str, topic: str, articles: List[ArticleResult], api_key: str
    ) -> str:
        if self.provider == "mock":
            return self._mock_summary(topic, articles)
        elif self.provider == "gemini":
            return await self._call_gemini(prompt, api_key)
        elif self.provider == "openai":
            return await self._call_openai(prompt, api_key)
        elif self.provider == "anthropic":
            return await self._call_anthropic(prompt, api_key)
        elif self.provider == "local":
            return await self._call_local(prompt)
        else:
            logger.warning("Unknown provider %r, using mock", self.provider)
            return self._mock_summary(topic, articles)

    # ------------------------------------------------------------------
    # Provider implementations
    # ------------------------------------------------------------------

    async def _call_gemini(self, prompt: str, api_key: str) -> str:
        from google import genai

        client = genai.Client(api_key=api_key)
        resp = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config={
                "max_output_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
        )
        return resp.text or ""

    async def _call_openai(self, prompt: str, api_key: str) -> str:
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=api_key or None)
        resp = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return resp.choices[0].message.content or ""

    async def _call_anthropic(self, prompt: str, api_key: str) -> str:
        from anthropic import AsyncAnthropic

        client = AsyncAnthropic(api_key=api_key or None)
        resp = await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return resp.content[0].text

    async def _call_local(self, prompt: str) -> str:
        """Call a local Ollama-compatible OpenAI API."""
        from openai import AsyncOpenAI

        client = AsyncOpenAI(base_url=self.local_url, api_key="ollama")
        resp = await client.chat.completions.create(
            model=self.local_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return resp.choices[0].message.content or ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def build_prompt(topic: str, articles: List[ArticleResult]) -> str:
        articles_text = "\n\n".join(
            f'{i}. "{a.title}" ({a.source})\n   {a.snippet}'
            for i, a in enumerate(articles, 1)
        )
        return (
            "Tu es un analyste de veille technologique. Voici des articles récents "
            f'(dernières 24 heures) sur le thème "{topic}".\n\n'
            f"Articles trouvés :\n{articles_text}\n\n"
            "Rédige une synthèse concise en français (3-5 paragraphes maximum) "
            "des principales nouveautés et tendances.\n"
            "La synthèse doit :\n"
            "- Identifier les informations clés et les développements importants\n"
            "- Être factuelle et informative\n"
            "- Utiliser un ton professionnel mais accessible\n"
            "- Mentionner les sources quand c'est pertinent\n\n"
            "Ne mentionne pas que tu es une IA. Écris directement la synthèse."
        )

    @staticmethod
    def _mock_summary(topic: str, articles: List[ArticleResult]) -> str:
        """Template-based synthesis for testing (no API calls)."""
        sources = ", ".join(sorted({a.source for a in articles if a.source})) or "sources inconnues"
        titles = "; ".join(a.title for a in articles)
        return f"{topic} : {len(articles)} article(s) ({sources}). {titles}"
