import json
import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from aristotest.core.config import Settings
from aristotest.models.quiz import QuestionType
from aristotest.schemas import QuestionCreate
from aristotest.services.grading import check_definition


class GeneratorUnavailable(RuntimeError):
    pass


class GenerationFailed(RuntimeError):
    pass


SYSTEM_PROMPT = "You write quiz questions and answer with a JSON array only."


def strip_code_fences(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class QuestionGenerator:
    """Drafts questions from source text through an OpenAI-compatible chat API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.logger = logging.getLogger("authoring")
        self.settings = settings
        self.transport = transport

    @property
    def available(self) -> bool:
        return bool(self.settings.openai_api_key)

    def _prompt(self, source_text: str, count: int, question_type: str) -> str:
        if question_type == QuestionType.MULTIPLE_CHOICE:
            shape = 'options: 4 strings, correct_answer: the correct option string (or a list of strings if several are correct)'
        elif question_type == QuestionType.TRUE_FALSE:
            shape = 'options: ["True", "False"], correct_answer: true or false'
        else:
            shape = "options: [], correct_answer: a list of acceptable short answers"
        return (
            f"Write {count} {question_type} quiz questions based only on the text below.\n"
            "Return a JSON array. Each item has: question_type, text, "
            f"{shape}, explanation (one sentence), points (integer, default 10).\n\n"
            f"Text:\n{source_text}"
        )

    async def _complete(self, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.settings.openai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.7,
        }
        url = f"{self.settings.openai_base_url.rstrip('/')}/chat/completions"
        try:
            async with httpx.AsyncClient(timeout=self.settings.openai_timeout, transport=self.transport) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            self.logger.error("Question drafting request failed: %s", exc)
            raise GenerationFailed("AI service request failed") from exc

        if resp.status_code != 200:
            self.logger.warning("Question drafting failed status: %s body: %s", resp.status_code, resp.text)
            raise GenerationFailed(f"AI service returned {resp.status_code}")
        try:
            return resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationFailed("AI service returned an unexpected body") from exc

    def _parse(self, content: str, question_type: str) -> List[QuestionCreate]:
        try:
            items: Any = json.loads(strip_code_fences(content))
        except json.JSONDecodeError as exc:
            self.logger.warning("Question drafting returned invalid JSON: %r", content[:200])
            raise GenerationFailed("AI service returned invalid JSON") from exc
        if isinstance(items, dict) and isinstance(items.get("questions"), list):
            items = items["questions"]
        if not isinstance(items, list):
            raise GenerationFailed("AI service did not return a list of questions")

        drafts = []
        for idx, item in enumerate(items):
            if not isinstance(item, dict):
                self.logger.warning("Dropping drafted item %s: not an object", idx)
                continue
            item.setdefault("question_type", question_type)
            item.setdefault("options", [])
            try:
                draft = QuestionCreate.model_validate(item)
                check_definition(draft.question_type, draft.options, draft.correct_answer)
            except (ValidationError, ValueError) as exc:
                self.logger.warning("Dropping drafted item %s: %s", idx, exc)
                continue
            drafts.append(draft)
        return drafts

    async def generate(self, source_text: str, count: int, question_type: str) -> List[QuestionCreate]:
        if not self.available:
            raise GeneratorUnavailable("AI question drafting is not configured")
        content = await self._complete(self._prompt(source_text, count, question_type))
        drafts = self._parse(content, question_type)[:count]
        self.logger.info(
            "Drafted questions model=%s type=%s requested=%s accepted=%s",
            self.settings.openai_model,
            question_type,
            count,
            len(drafts),
        )
        return drafts
