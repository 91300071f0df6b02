from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Optional, Sequence

from openai import OpenAI

from .config import Settings
from .converter.text_utils import collapse_blank_lines, strip_code_fences
from .errors import AIServiceError
from .prompts import (
    CHAT_SYSTEM,
    OCR_PROMPT,
    TIKZ_FROM_IMAGE_PROMPT,
    TRANSFORM_PROMPTS,
    WORKSHEET_LEVELS,
    exam_question_prompt,
    tikz_from_description_prompt,
    worksheet_prompt,
)

logger = logging.getLogger(__name__)

TRANSFORM_MODES = tuple(TRANSFORM_PROMPTS)
WORKSHEET_LEVEL_NAMES = tuple(WORKSHEET_LEVELS)

POLYA_THINKING_BUDGET = 10240
WORKSHEET_THINKING_BUDGET = 8192

_OCR_BOLD_RE = re.compile(r"\*\*")
_OCR_QUESTION_RE = re.compile(r"([^\n])\n*(Câu|Bài)\s+([\dIVX]+[.:]?)", re.IGNORECASE)
_OCR_LETTER_ITEM_RE = re.compile(r"([,;.]|\s)(\s*)([a-z]\))(\s)")
# Not after a question word, so "Câu 1. ..." keeps its number on the same line.
_OCR_NUMBER_ITEM_RE = re.compile(r"(?<!Câu)(?<!Bài)([,;.]|\s)(\s*)([1-9]\.)(\s)")


def postprocess_ocr_text(text: str) -> str:
    """Vietnamese exam layout for OCR output: clean question and sub-item line breaks."""
    s = _OCR_BOLD_RE.sub("", text or "")
    s = _OCR_QUESTION_RE.sub(r"\1\n\n\2 \3", s)
    s = _OCR_LETTER_ITEM_RE.sub(r"\n\3\4", s)
    s = _OCR_NUMBER_ITEM_RE.sub(r"\n\3\4", s)
    s = collapse_blank_lines(s, keep=2)
    return s.strip()


def append_generated(text: str, generated: str) -> str:
    """Append generated content at the end, separated by a blank line when there is prior content."""
    text = text or ""
    return text + ("\n\n" if text.strip() else "") + (generated or "")


def _image_part(image: dict) -> dict:
    mime = image.get("mime_type") or image.get("mimeType") or "image/png"
    return {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{image['data']}"}}


def _thinking(budget: int) -> dict:
    # Gemini's OpenAI-compatible endpoint takes vendor options under extra_body.google.
    return {"extra_body": {"google": {"thinking_config": {"thinking_budget": int(budget)}}}}


class MathDocAI:
    def __init__(self, settings: Settings, client: Any = None) -> None:
        if client is None and not settings.api_key:
            raise AIServiceError(
                "configure",
                "Missing GEMINI_API_KEY (or GOOGLE_API_KEY / OPENAI_API_KEY). Set it in the environment first.",
            )
        self._settings = settings
        self._client = client or OpenAI(api_key=settings.api_key, base_url=settings.base_url)

    def _complete(
        self,
        operation: str,
        messages: list[dict],
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        thinking_budget: int = 0,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model or self._settings.model_fast,
            "messages": messages,
        }
        if self._settings.timeout_s is not None:
            kwargs["timeout"] = self._settings.timeout_s
        if temperature is not None:
            kwargs["temperature"] = temperature
        if thinking_budget > 0:
            kwargs["extra_body"] = _thinking(thinking_budget)
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except Exception as e:  # noqa: BLE001
            logger.error("%s failed: %s", operation, e)
            raise AIServiceError(operation, str(e)) from e
        return (resp.choices[0].message.content or "").strip()

    # --- recognition ---

    def transcribe_images(self, images: Sequence[dict]) -> str:
        """OCR one or more page images (dicts with mime_type and base64 data) into LaTeX text."""
        content = [_image_part(img) for img in images]
        content.append({"type": "text", "text": OCR_PROMPT})
        text = self._complete(
            "transcribe_images",
            [{"role": "user", "content": content}],
            model=self._settings.model_fast,
        )
        return postprocess_ocr_text(text)

    def transcribe_image(self, data: str, mime_type: str) -> str:
        return self.transcribe_images([{"mime_type": mime_type, "data": data}])

    def tikz_from_image(self, data: str, mime_type: str) -> str:
        code = self._complete(
            "tikz_from_image",
            [
                {
                    "role": "user",
                    "content": [
                        _image_part({"mime_type": mime_type, "data": data}),
                        {"type": "text", "text": TIKZ_FROM_IMAGE_PROMPT},
                    ],
                }
            ],
            model=self._settings.model_pro,
        )
        return strip_code_fences(code)

    # --- generation ---

    def tikz_from_description(self, description: str) -> str:
        code = self._complete(
            "tikz_from_description",
            [{"role": "user", "content": tikz_from_description_prompt(description)}],
            model=self._settings.model_pro,
        )
        return strip_code_fences(code)

    def generate_exam_question(self, description: str) -> str:
        return self._complete(
            "generate_exam_question",
            [{"role": "user", "content": exam_question_prompt(description)}],
            model=self._settings.model_pro,
        )

    def transform_content(self, content: str, mode: str) -> str:
        """
        Rewrite `content` with the instruction for `mode` (SOLVE, TRANSLATE,
        FORMAT or POLYA). POLYA runs on the pro model with a thinking budget.

        An empty reply leaves the content unchanged.
        """
        mode = (mode or "").strip().upper()
        if mode not in TRANSFORM_PROMPTS:
            raise ValueError(f"unknown transform mode {mode!r}; choose one of {', '.join(TRANSFORM_MODES)}")
        polya = mode == "POLYA"
        out = self._complete(
            f"transform_content:{mode}",
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": TRANSFORM_PROMPTS[mode]},
                        {"type": "text", "text": f"\n\nINPUT CONTENT:\n{content}"},
                    ],
                }
            ],
            model=self._settings.model_pro if polya else self._settings.model_fast,
            thinking_budget=POLYA_THINKING_BUDGET if polya else 0,
        )
        return out or content

    def create_worksheet(
        self,
        grade: str,
        lesson_name: str,
        level: str = "average",
        include_answer_key: bool = False,
    ) -> str:
        if level not in WORKSHEET_LEVELS:
            raise ValueError(f"unknown worksheet level {level!r}; choose one of {', '.join(WORKSHEET_LEVEL_NAMES)}")
        return self._complete(
            "create_worksheet",
            [{"role": "user", "content": worksheet_prompt(grade, lesson_name, level, include_answer_key)}],
            model=self._settings.model_pro,
            thinking_budget=WORKSHEET_THINKING_BUDGET,
        )

    def chat_session(self) -> "ChatSession":
        return ChatSession(self._client, self._settings)


class ChatSession:
    """Multi-turn assistant chat; replies are streamed chunk by chunk."""

    def __init__(self, client: Any, settings: Settings, temperature: float = 0.7) -> None:
        self._client = client
        self._settings = settings
        self.temperature = temperature
        self.history: list[dict] = [{"role": "system", "content": CHAT_SYSTEM}]

    def send(self, message: str) -> Iterator[str]:
        """
        Lazily stream the reply to `message`.

        The request is made on first iteration. The generator is single-pass;
        the reply is added to the history when the stream ends, or as far as
        it was read when the generator is closed early.
        """
        self.history.append({"role": "user", "content": message})
        kwargs: dict[str, Any] = {
            "model": self._settings.chat_model,
            "messages": list(self.history),
            "temperature": self.temperature,
            "stream": True,
        }
        if self._settings.timeout_s is not None:
            kwargs["timeout"] = self._settings.timeout_s
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except Exception as e:  # noqa: BLE001
            self.history.pop()
            raise AIServiceError("chat", str(e)) from e

        pieces: list[str] = []
        finished = False
        try:
            for event in resp:
                if not getattr(event, "choices", None):
                    continue
                delta = getattr(event.choices[0], "delta", None)
                piece = (getattr(delta, "content", None) or "") if delta is not None else ""
                if piece:
                    pieces.append(piece)
                    yield piece
            finished = True
        except Exception as e:  # noqa: BLE001
            logger.error("chat stream failed: %s", e)
            raise AIServiceError("chat", str(e)) from e
        finally:
            # Keep user/assistant turns paired even when the reader stops early.
            if finished or pieces:
                self.history.append({"role": "assistant", "content": "".join(pieces)})
            else:
                self.history.pop()
