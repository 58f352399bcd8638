"""
Chat assistant (question answering over the context log)

Flow for one question:
1. Ask the LLM which day the question is about (YYYY-MM-DD), clamped to
   [QA_MIN_DATE, today]; anything unusable means today.
2. Read the last CONTEXT_LAST_N records of that day's context log.
3. Render them as compact lines and chunk them to ~QA_CHUNK_CHARS characters.
4. Ask the LLM with a Hebrew system prompt, the chunks and the question.

Failures never propagate: rate limits, oversize context and any other error
each map to a fixed user-facing message.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
import re
from collections.abc import Callable
from datetime import datetime

import litellm

import constants as const
import util
from context_log import ContextLog, ContextLogRecord
from llm_provider import LLMProvider, create_llm_provider, response_text


logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://\S+")
MENTION_RE = re.compile(r"<@[!&]?\d+>")
WHITESPACE_RE = re.compile(r"\s+")
DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

SYSTEM_PROMPT = "\n".join([
    "אתה עוזר חכם המתמחה בניתוח שיחות ודאטה על שוק ההון בעברית.",
    "מטרה: תשובות קצרות, מקצועיות ומדויקות בהתבסס על ההקשר הנתון.",
    "הנחיות פלט:",
    "- הדגש TICKERS ב-**Bold** (למשל **TSLA**).",
    "- ציין חדשות/מאקרו/אירועים אם מופיעים.",
    "- סכם עמדות: מי תומך/מתנגד/נייטרלי, וציין משתמשים בסוגריים.",
    "- אם המידע חסר/סותר – אמור זאת במפורש.",
    "ענה בעברית בלבד, בנקודות קצרות וברורות.",
])

MSG_NO_INFO = "לא מצאתי מידע רלוונטי בשיחה שהתקיימה בחדר בזמן הזה, אולי צריך לשאול על שעות אחרות או יום אחר."
MSG_RATE_LIMIT = "❌ הגעת לגבול השאלות היומי של מודל השפה. נסו שוב מאוחר יותר."
MSG_TOO_LONG = "❌ השאלה ארוכה מדי. נסו לשאול שאלה קצרה יותר, או לשאול על פרק זמן קצר יותר (כמו השעה האחרונה, או היום האחרון)."
MSG_ERROR = "❌ שגיאה בעיבוד השאלה."

TOKEN_LIMIT_MARKER = "exceeds the maximum number of tokens"


def sanitize_content(text: str | None, max_len: int = 700) -> str:
    """Drop URLs and user mentions, collapse whitespace, truncate."""
    text = URL_RE.sub("", str(text or ""))
    text = MENTION_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text).strip()[:max_len]


def format_record(record: ContextLogRecord, tz_name: str = const.LOCAL_TIMEZONE) -> str:
    created = record.created
    stamp = util.local_format(created, tz_name) if created else "??/??/?? ??:??"
    return f"- {stamp} | {record.author}: {sanitize_content(record.content)}"


def chunk_records(
    records: list[ContextLogRecord],
    max_chars: int = const.QA_CHUNK_CHARS,
    tz_name: str = const.LOCAL_TIMEZONE,
) -> list[str]:
    """
    Render records one per line and pack the lines into chunks.

    A chunk is closed before it would exceed max_chars; a single line longer than
    max_chars becomes its own chunk.
    """
    chunks = []
    buf = ""
    for line in (format_record(r, tz_name) for r in records):
        candidate = f"{buf}\n{line}" if buf else line
        if len(candidate) > max_chars and buf:
            chunks.append(buf.strip())
            buf = line
        else:
            buf = candidate
    if buf:
        chunks.append(buf.strip())
    return chunks


def clamp_question_date(raw: str | None, today: str, min_date: str = const.QA_MIN_DATE) -> str:
    """Accept a bare YYYY-MM-DD within [min_date, today]; anything else is today."""
    raw = (raw or "").strip()
    if not DATE_RE.match(raw):
        return today
    try:
        day = util.parse_day(raw)
    except ValueError:
        return today
    if util.parse_day(min_date) <= day <= util.parse_day(today):
        return raw
    logger.debug(f"Question date {raw} out of range, using {today}")
    return today


def date_prompt(question: str, today: str) -> str:
    return "\n".join([
        "אתה עוזר חכם שמנתח שאלות של משתמשים.",
        "בדוק את השאלה הבאה והחזר את התאריך המפורש או המרומז בה, בפורמט YYYY-MM-DD.",
        f"התאריך הנוכחי הוא {today}, והאזור הזמני הוא {const.LOCAL_TIMEZONE}.",
        f"אם יש מונחים יחסיים (כגון 'אתמול', 'לפני יומיים'), חשב את התאריך בהתבסס על התאריך הנוכחי ({today}).",
        "אם אין תאריך מפורש או מרומז, השתמש בתאריך הנוכחי כברירת מחדל.",
        "החזר רק את התאריך בפורמט YYYY-MM-DD.",
        "",
        f"### שאלה: {sanitize_content(question, 300)}",
    ])


async def extract_question_date(llm: LLMProvider, question: str, today: str) -> str:
    """Day (YYYY-MM-DD) the question refers to; today when the model is unhelpful."""
    try:
        response = await llm.acompletion(
            messages=[{"role": "user", "content": date_prompt(question, today)}],
            max_tokens=512,
        )
    except Exception as e:
        logger.warning(f"Date extraction failed, using {today}: {e}")
        return today
    return clamp_question_date(response_text(response), today)


def error_message(error: Exception) -> str:
    """User-facing message for an LLM failure."""
    if isinstance(error, litellm.RateLimitError) or getattr(error, "status_code", None) == 429:
        return MSG_RATE_LIMIT
    if isinstance(error, litellm.ContextWindowExceededError) or TOKEN_LIMIT_MARKER in str(error):
        return MSG_TOO_LONG
    return MSG_ERROR


class ChatAssistant:
    """Answers free-text questions from one channel's context log"""

    def __init__(
        self,
        context_log: ContextLog,
        llm: LLMProvider | None = None,
        channel_id: str = const.CONTEXT_CHANNEL_ID,
        last_n: int = const.CONTEXT_LAST_N,
        clock: Callable[[], datetime] = util.utc_now,
    ) -> None:
        self.context_log = context_log
        self._llm = llm
        self.channel_id = channel_id
        self.last_n = last_n
        self.clock = clock

    @property
    def llm(self) -> LLMProvider:
        if self._llm is None:
            self._llm = create_llm_provider()
        return self._llm

    def build_messages(self, question: str, chunks: list[str]) -> list[dict[str, str]]:
        messages = [
            {"role": "user", "content": f"### הקשר מהחדר (חלק {i}/{len(chunks)}):\n{chunk}"}
            for i, chunk in enumerate(chunks, start=1)
        ]
        messages.append({
            "role": "user",
            "content": f"### שאלה: {sanitize_content(question, 300)}\nנא להשיב בעברית קצר ותכליתי.",
        })
        return messages

    async def ask(self, question: str) -> str:
        """Answer a question; always returns a displayable string."""
        try:
            llm = self.llm
            today = util.local_day_string(self.clock())
            day = await extract_question_date(llm, question, today)

            records = await self.context_log.read_last_n(self.channel_id, self.last_n, day=day)
            chunks = chunk_records(records)
            logger.info(f"Question for {day}: {len(records)} record(s) in {len(chunks)} chunk(s)")

            response = await llm.acompletion(
                messages=self.build_messages(question, chunks),
                system=SYSTEM_PROMPT,
                max_tokens=const.QA_MAX_TOKENS,
                temperature=const.QA_TEMPERATURE,
            )
            return response_text(response) or MSG_NO_INFO

        except Exception as e:
            logger.error(f"Question answering failed for {question!r}: {e}", exc_info=True)
            return error_message(e)
