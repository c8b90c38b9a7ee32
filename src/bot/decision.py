"""
Decision Query Protocol

Asks the Oracle for a recommendation with an explicit, bounded retry loop,
turns the free-text reply into a BotAction and validates it before it is
presented or executed.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from decimal import Decimal, InvalidOperation

from core.errors import ActionValidationError, DecisionUnavailable
from models.actions import AIMessage, BotAction
from models.enums import ActionKind, Role
from services.logger import PerformanceLogger

from .oracles.base import Oracle, get_playstyle_prompt

logger = logging.getLogger(__name__)

# "ACTION: raise 6" style line takes precedence over free text
_ACTION_LINE_RE = re.compile(
    r"^\s*(?:\*\*)?(?:action|decision|recommendation)\s*(?:\*\*)?\s*[:\-]\s*(?:\*\*)?\s*(?P<body>.+)$",
    re.I | re.M,
)
_ACTION_RE = re.compile(
    r"\b(?P<kind>all[\s-]?in|check|call|fold|bet|raise)(?:s|es)?\b"
    r"(?:\s+(?:to\s+)?(?P<size>\d+(?:\.\d+)?))?",
    re.I,
)

_KIND_ALIASES = {
    "check": ActionKind.CHECK,
    "call": ActionKind.CALL,
    "fold": ActionKind.FOLD,
    "bet": ActionKind.BET,
    "raise": ActionKind.RAISE,
}


def _build_action(match: re.Match, rationale: str) -> BotAction:
    raw_kind = re.sub(r"[\s-]", "", match.group("kind").lower())
    kind = ActionKind.ALL_IN if raw_kind == "allin" else _KIND_ALIASES[raw_kind]

    size = Decimal("0")
    if kind.is_sized and match.group("size"):
        try:
            size = Decimal(match.group("size"))
        except InvalidOperation as e:
            raise ActionValidationError(f"Invalid size in {match.group(0)!r}") from e

    rationale = rationale.strip(" \n\t.:-")
    return BotAction(action_kind=kind, size_in_big_blinds=size, rationale=rationale or None)


def _single_action(fragment: str) -> re.Match | None:
    """The one action named in fragment (ActionValidationError if several kinds)"""
    matches = list(_ACTION_RE.finditer(fragment))
    kinds = {re.sub(r"[\s-]", "", m.group("kind").lower()) for m in matches}
    if len(kinds) > 1:
        raise ActionValidationError(
            f"Ambiguous response names {', '.join(sorted(kinds))}: {fragment[:120]!r}"
        )
    return matches[0] if matches else None


def parse_response(text: str) -> BotAction:
    """
    Parse a free-text Oracle reply into a BotAction

    An explicit "Action: ..." line is preferred; otherwise only the first
    non-empty line is read. The remaining text is kept as the rationale.

    Raises:
        ActionValidationError: If no known action kind is present, or the
            deciding line names more than one
    """
    if not text or not text.strip():
        raise ActionValidationError("Empty Oracle response")

    for line in _ACTION_LINE_RE.finditer(text):
        match = _single_action(line.group("body"))
        if match is not None:
            rest = text[: line.start()] + text[line.end() :]
            return _build_action(match, rest)

    first_line, _, rest = text.strip().partition("\n")
    match = _single_action(first_line)
    if match is not None:
        return _build_action(match, first_line[match.end() :] + "\n" + rest)

    raise ActionValidationError(f"No recognizable action in response: {text[:120]!r}")


def validate_action(action: BotAction, hero_stack_bb: Decimal) -> BotAction:
    """
    Reject malformed actions and normalize sizes

    - bet/raise must carry a positive size
    - a bet/raise at or above the hero stack becomes all-in
    - all-in is sized to the hero stack, or left at 0 when the stack is unknown
    - check/call/fold carry no size

    Raises:
        ActionValidationError: If the action cannot be made valid
    """
    kind = action.action_kind

    if kind in (ActionKind.BET, ActionKind.RAISE):
        if action.size_in_big_blinds <= 0:
            raise ActionValidationError(
                f"{kind.value} requires a positive size, got {action.size_in_big_blinds}"
            )
        if hero_stack_bb > 0 and action.size_in_big_blinds >= hero_stack_bb:
            logger.warning(
                f"{kind.value} {action.size_in_big_blinds} BB covers hero stack {hero_stack_bb} BB, using all-in"
            )
            kind = ActionKind.ALL_IN
        else:
            return action

    if kind == ActionKind.ALL_IN:
        if hero_stack_bb <= 0:
            # sized from the table when executed
            logger.warning("Hero stack unknown, all-in left unsized")
            return action.model_copy(
                update={"action_kind": ActionKind.ALL_IN, "size_in_big_blinds": Decimal("0")}
            )
        return action.model_copy(
            update={"action_kind": ActionKind.ALL_IN, "size_in_big_blinds": hero_stack_bb}
        )

    if action.size_in_big_blinds != 0:
        return action.model_copy(update={"size_in_big_blinds": Decimal("0")})
    return action


def fallback_action(available_actions: list[str] | None) -> BotAction:
    """Conservative default: check if available, else fold"""
    if available_actions and ActionKind.CHECK.value in [a.lower() for a in available_actions]:
        return BotAction.check(rationale="Fallback: decision unavailable, checking")
    return BotAction.fold(rationale="Fallback: decision unavailable, folding")


class DecisionQueryProtocol:
    """
    Bounded-retry decision protocol with a hand-scoped conversation

    The conversation starts with the playstyle system prompt and keeps at
    most max_history_messages user/assistant messages after it.
    """

    def __init__(
        self,
        oracle: Oracle,
        playstyle: str = "neutral",
        retry_delay: float = 1.0,
        max_history_messages: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            oracle: Decision source
            playstyle: Playstyle key for the system prompt
            retry_delay: Fixed delay between attempts (seconds)
            max_history_messages: Cap on remembered user/assistant messages
            sleep: Awaitable sleep (injected in tests)
        """
        if max_history_messages < 0:
            raise ValueError("max_history_messages cannot be negative")
        self.oracle = oracle
        self.retry_delay = retry_delay
        self.max_history_messages = max_history_messages
        self._sleep = sleep
        self._system = AIMessage(text=get_playstyle_prompt(playstyle), role=Role.SYSTEM)
        self._messages: list[AIMessage] = []

        self.total_queries = 0
        self.failed_attempts = 0

    @property
    def history(self) -> list[AIMessage]:
        """System prompt followed by the most recent messages"""
        if self.max_history_messages == 0:
            return [self._system]
        return [self._system] + self._messages[-self.max_history_messages :]

    def reset_history(self) -> None:
        """Forget the conversation (called at every hand boundary)"""
        self._messages = []

    def _remember(self, query: str, reply: str) -> None:
        self._messages.append(AIMessage(text=query, role=Role.USER))
        self._messages.append(AIMessage(text=reply, role=Role.ASSISTANT))
        if len(self._messages) > self.max_history_messages:
            self._messages = self._messages[len(self._messages) - self.max_history_messages :]

    async def query_bot_action(
        self, query: str, retries: int, hero_stack_bb: Decimal | None = None
    ) -> BotAction:
        """
        Query the Oracle with up to `retries` retries (retries + 1 attempts)

        Oracle exceptions, unparseable replies and invalid actions each count
        as one failed attempt.

        Args:
            query: Prompt from construct_query()
            retries: Retries after the first attempt
            hero_stack_bb: Hero stack for validation (all-in sizing)

        Returns:
            Validated BotAction

        Raises:
            DecisionUnavailable: If every attempt failed
        """
        if retries < 0:
            raise ValueError(f"retries cannot be negative, got {retries}")

        self.total_queries += 1
        attempts = retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                async with PerformanceLogger(logger, "oracle_query", {"attempt": attempt}):
                    response = await self.oracle.query(query, self.history)
                action = response.parsed_action or parse_response(response.text)
                if hero_stack_bb is not None:
                    action = validate_action(action, hero_stack_bb)
                elif action.action_kind.is_sized and action.action_kind != ActionKind.ALL_IN:
                    if action.size_in_big_blinds <= 0:
                        raise ActionValidationError(
                            f"{action.action_kind.value} requires a positive size"
                        )

                self._remember(query, response.text)
                logger.info(f"Oracle recommended {action.describe()} (attempt {attempt}/{attempts})")
                return action
            except ActionValidationError as e:
                last_error = e
                logger.warning(f"Invalid Oracle response (attempt {attempt}/{attempts}): {e}")
            except Exception as e:
                last_error = e
                logger.warning(f"Oracle query failed (attempt {attempt}/{attempts}): {e}")

            self.failed_attempts += 1
            if attempt < attempts:
                await self._sleep(self.retry_delay)

        raise DecisionUnavailable(
            f"Oracle failed {attempts} attempts, last error: {last_error}", attempts=attempts
        )
